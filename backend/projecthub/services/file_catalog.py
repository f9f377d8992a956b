"""Data access for the files table.

FileCatalog wraps one AsyncSession. It flushes but never commits; the
caller owns the transaction boundary.
"""
import uuid

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.models.file_record import FileRecord


class FileCatalog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, record: FileRecord) -> FileRecord:
        self.db.add(record)
        await self.db.flush()
        return record

    async def get_by_id(self, file_id: uuid.UUID) -> FileRecord | None:
        result = await self.db.execute(
            select(FileRecord)
            .where(FileRecord.id == file_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_root(self, root_id: uuid.UUID) -> None:
        """Take a row lock on the chain's root record (SELECT ... FOR UPDATE).

        Serialises version uploads across processes on Postgres. SQLite has
        no row locks and compiles this to a plain SELECT.
        """
        await self.db.execute(
            select(FileRecord.id).where(FileRecord.id == root_id).with_for_update()
        )

    async def update_is_latest(self, file_id: uuid.UUID, is_latest: bool) -> None:
        await self.db.execute(
            update(FileRecord)
            .where(FileRecord.id == file_id)
            .values(is_latest=is_latest)
        )

    async def query_by_root(self, root_id: uuid.UUID) -> list[FileRecord]:
        """All records of a chain, newest version first. Always re-read from the DB."""
        result = await self.db.execute(
            select(FileRecord)
            .where(FileRecord.root_id == root_id)
            .order_by(desc(FileRecord.version_number))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def query_latest_by_project(self, project_id: int) -> list[FileRecord]:
        result = await self.db.execute(
            select(FileRecord)
            .where(FileRecord.project_id == project_id, FileRecord.is_latest.is_(True))
            .order_by(desc(FileRecord.created_at), FileRecord.original_name, FileRecord.id)
        )
        return list(result.scalars().all())
