"""File request/response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import Field
from projecthub.schemas.base import CamelModel, CamelORMModel


class FileMetadata(CamelModel):
    """Blob metadata for a single upload, handed from the routes to the file store."""
    uploader_id: int
    original_name: str
    mime_type: Optional[str] = None
    byte_size: int = Field(ge=0)
    storage_path: str


class FileRecordResponse(CamelORMModel):
    id: uuid.UUID
    project_id: int
    uploader_id: int
    original_name: str
    mime_type: Optional[str] = None
    byte_size: int
    storage_path: str
    root_id: uuid.UUID
    version_number: int
    is_latest: bool
    version_note: Optional[str] = None
    created_at: datetime
