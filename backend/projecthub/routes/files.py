"""Files API routes: uploads, new versions, history and downloads."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse

from projecthub.config import settings
from projecthub.schemas.file import FileMetadata, FileRecordResponse
from projecthub.services.exceptions import (
    InvariantViolation,
    ParentNotFoundError,
    StorageWriteError,
    VersionConflictError,
)
from projecthub.services.file_storage import FileStorageService, get_file_storage
from projecthub.services.versioned_file_store import VersionedFileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


def _check_upload(file: UploadFile) -> None:
    """Enforce the type and size limits without reading the body.

    Starlette has already spooled the part and knows its size.
    """
    content_type = file.content_type or "application/octet-stream"
    if content_type not in settings.allowed_mime_types:
        raise HTTPException(status_code=415, detail=f"File type {content_type} is not allowed")
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")


async def _read_upload(file: UploadFile) -> bytes:
    contents = await file.read()
    # size is unset when the part came without one
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    return contents


@router.post("/upload", response_model=list[FileRecordResponse], status_code=201)
async def upload_files(
    files: Optional[list[UploadFile]] = FastAPIFile(None),
    project_id: int = Form(..., alias="projectId"),
    uploader_id: int = Form(..., alias="uploaderId"),
    store: VersionedFileStore = Depends(get_file_store),
    storage: FileStorageService = Depends(get_file_storage),
):
    """Upload one or more new documents. Each file starts its own version chain."""
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=413,
            detail=f"Too many files: at most {settings.MAX_FILES_PER_UPLOAD} per upload",
        )

    # Validate the whole batch before writing anything
    for upload in files:
        _check_upload(upload)

    records = []
    for upload in files:
        name = upload.filename or "unnamed"
        contents = await _read_upload(upload)
        try:
            storage_path = await storage.write(contents, name)
        except StorageWriteError as e:
            raise HTTPException(status_code=500, detail=e.message)

        metadata = FileMetadata(
            uploader_id=uploader_id,
            original_name=name,
            mime_type=upload.content_type,
            byte_size=len(contents),
            storage_path=storage_path,
        )
        try:
            records.append(await store.create_initial_file(project_id, metadata))
        except StorageWriteError as e:
            await storage.delete(storage_path)
            raise HTTPException(status_code=500, detail=e.message)

    return records


@router.post("/{file_id}/versions", response_model=FileRecordResponse, status_code=201)
async def upload_new_version(
    file_id: UUID,
    file: UploadFile = FastAPIFile(...),
    uploader_id: int = Form(..., alias="uploaderId"),
    version_note: Optional[str] = Form(None, alias="versionNote"),
    store: VersionedFileStore = Depends(get_file_store),
    storage: FileStorageService = Depends(get_file_storage),
):
    """Upload a new revision of an existing document.

    file_id may be any revision of the document; the new one is appended
    after the current highest version.
    """
    _check_upload(file)
    contents = await _read_upload(file)
    name = file.filename or "unnamed"
    try:
        storage_path = await storage.write(contents, name)
    except StorageWriteError as e:
        raise HTTPException(status_code=500, detail=e.message)

    metadata = FileMetadata(
        uploader_id=uploader_id,
        original_name=name,
        mime_type=file.content_type,
        byte_size=len(contents),
        storage_path=storage_path,
    )
    try:
        return await store.create_new_version(file_id, metadata, version_note)
    except ParentNotFoundError:
        await storage.delete(storage_path)
        raise HTTPException(status_code=404, detail="File not found")
    except VersionConflictError:
        await storage.delete(storage_path)
        raise HTTPException(status_code=409, detail="File was updated concurrently, please retry")
    except StorageWriteError as e:
        await storage.delete(storage_path)
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/{file_id}", response_model=FileRecordResponse)
async def get_file_metadata(
    file_id: UUID,
    store: VersionedFileStore = Depends(get_file_store),
):
    """Get file metadata by ID."""
    record = await store.get_file(file_id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@router.get("/{file_id}/versions", response_model=list[FileRecordResponse])
async def list_file_versions(
    file_id: UUID,
    store: VersionedFileStore = Depends(get_file_store),
):
    """Version history of the document file_id belongs to, newest first."""
    versions = await store.list_versions(file_id)
    if not versions:
        raise HTTPException(status_code=404, detail="File not found")
    return versions


@router.get("/{file_id}/latest", response_model=FileRecordResponse)
async def get_latest_version(
    file_id: UUID,
    store: VersionedFileStore = Depends(get_file_store),
):
    """Current revision of the document file_id belongs to."""
    try:
        record = await store.get_latest(file_id)
    except InvariantViolation:
        raise HTTPException(status_code=500, detail="File has no consistent current version")
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@router.get("/{file_id}/download")
async def download_file(
    file_id: UUID,
    store: VersionedFileStore = Depends(get_file_store),
    storage: FileStorageService = Depends(get_file_storage),
):
    """Download a specific revision by ID."""
    record = await store.get_file(file_id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    if not await storage.exists(record.storage_path):
        logger.warning(f"Blob missing for file {record.id} at {record.storage_path}")
        raise HTTPException(status_code=404, detail="File not found on server")

    return FileResponse(
        path=record.storage_path,
        filename=record.original_name,
        media_type=record.mime_type or "application/octet-stream",
    )
