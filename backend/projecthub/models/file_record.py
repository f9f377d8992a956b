"""FileRecord model - one stored revision of a project document.

Revisions of the same document form a chain keyed by root_id (the id of
version 1). Bytes live in blob storage; this table only holds metadata.
"""
import uuid
from sqlalchemy import (
    BigInteger, Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from projecthub.models.base import Base, TimestampMixin


class FileRecord(Base, TimestampMixin):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    uploader_id: Mapped[int] = mapped_column(Integer, nullable=False)
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    byte_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)

    # Version chain
    root_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("files.id"), nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_latest: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("root_id", "version_number", name="uq_files_root_version"),
        # At most one head per chain
        Index(
            "uq_files_root_latest", "root_id", unique=True,
            postgresql_where=text("is_latest"),
            sqlite_where=text("is_latest = 1"),
        ),
        Index("idx_files_project_latest", "project_id", "is_latest"),
    )

    def __repr__(self) -> str:
        return f"<FileRecord {self.id} root={self.root_id} v{self.version_number}{' latest' if self.is_latest else ''}>"
