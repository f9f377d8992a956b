"""Project-scoped file listing."""
from fastapi import APIRouter, Depends

from projecthub.schemas.file import FileRecordResponse
from projecthub.services.versioned_file_store import VersionedFileStore, get_file_store

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("/{project_id}/files", response_model=list[FileRecordResponse])
async def list_project_files(
    project_id: int,
    store: VersionedFileStore = Depends(get_file_store),
):
    """Current revision of every document in a project, newest first."""
    return await store.list_project_files(project_id)
