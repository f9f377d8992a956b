"""Version chains for project files.

Every upload of a new document starts a chain whose root is its own
version-1 record. Later revisions point at that root through root_id and
get the next version number. Exactly one record per chain carries
is_latest=True.

New versions are written under three guards:
  - an in-process asyncio.Lock per chain (ChainLocks),
  - a row lock on the root record (Postgres),
  - a partial unique index on root_id WHERE is_latest plus a unique
    (root_id, version_number) constraint.
Demotion and insert share one transaction, so a failure rolls both back.
"""
import logging
import uuid

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.database import get_db
from projecthub.models.file_record import FileRecord
from projecthub.schemas.file import FileMetadata
from projecthub.services.chain_locks import ChainLocks, chain_locks
from projecthub.services.exceptions import (
    InvariantViolation,
    ParentNotFoundError,
    StorageWriteError,
    VersionConflictError,
)
from projecthub.services.file_catalog import FileCatalog

logger = logging.getLogger(__name__)


class VersionedFileStore:
    """Creates and queries file version chains for one DB session."""

    def __init__(self, db: AsyncSession, locks: ChainLocks | None = None):
        self.db = db
        self.catalog = FileCatalog(db)
        self.locks = locks if locks is not None else chain_locks

    async def create_initial_file(self, project_id: int, metadata: FileMetadata) -> FileRecord:
        """Store the first revision of a new document."""
        record_id = uuid.uuid4()
        record = FileRecord(
            id=record_id,
            root_id=record_id,
            project_id=project_id,
            version_number=1,
            is_latest=True,
            **metadata.model_dump(),
        )
        try:
            await self.catalog.insert(record)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create file record for {metadata.original_name}: {e}")
            raise StorageWriteError(f"Failed to store {metadata.original_name}") from e

        await self.db.refresh(record)
        logger.info(f"Created file {record.id} ({record.original_name}) in project {project_id}")
        return record

    async def create_new_version(
        self,
        parent_file_id: uuid.UUID,
        metadata: FileMetadata,
        version_note: str | None = None,
    ) -> FileRecord:
        """Append a revision to the chain that parent_file_id belongs to.

        parent_file_id may be any member of the chain, not only the head.
        The version number is computed from the persisted chain after the
        chain lock is taken.
        """
        try:
            parent = await self.catalog.get_by_id(parent_file_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to load parent file {parent_file_id}: {e}")
            raise StorageWriteError(f"Failed to add version to {parent_file_id}") from e
        if parent is None:
            raise ParentNotFoundError(parent_file_id)
        root_id = parent.root_id or parent.id
        project_id = parent.project_id

        async with self.locks.hold(root_id):
            try:
                await self.catalog.lock_root(root_id)
                chain = await self.catalog.query_by_root(root_id)
                next_version = max((r.version_number for r in chain), default=0) + 1

                for existing in chain:
                    if existing.is_latest:
                        await self.catalog.update_is_latest(existing.id, False)

                record = FileRecord(
                    root_id=root_id,
                    project_id=project_id,
                    version_number=next_version,
                    is_latest=True,
                    version_note=version_note or f"Version {next_version}",
                    **metadata.model_dump(),
                )
                await self.catalog.insert(record)
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.warning(f"Version conflict on chain {root_id}: {e.orig}")
                raise VersionConflictError(root_id) from e
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to add version to chain {root_id}: {e}")
                raise StorageWriteError(f"Failed to add version to {root_id}", root_id=root_id) from e

        await self.db.refresh(record)
        logger.info(f"Created version {record.version_number} of chain {root_id} as {record.id}")
        return record

    async def list_versions(self, any_file_id: uuid.UUID) -> list[FileRecord]:
        """Full history of a chain, newest first. Empty if the id is unknown."""
        root_id = await self._resolve_root(any_file_id)
        if root_id is None:
            return []
        return await self.catalog.query_by_root(root_id)

    async def get_latest(self, any_file_id: uuid.UUID) -> FileRecord | None:
        """The head of the chain, or None if the id is unknown.

        Raises InvariantViolation when the chain has zero or several heads
        rather than guessing which one is current.
        """
        root_id = await self._resolve_root(any_file_id)
        if root_id is None:
            return None
        chain = await self.catalog.query_by_root(root_id)
        heads = [r for r in chain if r.is_latest]
        if len(heads) != 1:
            logger.error(f"Chain {root_id} has {len(heads)} latest records")
            raise InvariantViolation(root_id, len(heads))
        return heads[0]

    async def list_project_files(self, project_id: int) -> list[FileRecord]:
        """Current head of every chain in a project."""
        return await self.catalog.query_latest_by_project(project_id)

    async def get_file(self, file_id: uuid.UUID) -> FileRecord | None:
        return await self.catalog.get_by_id(file_id)

    async def _resolve_root(self, file_id: uuid.UUID) -> uuid.UUID | None:
        record = await self.catalog.get_by_id(file_id)
        if record is None:
            return None
        return record.root_id or record.id


def get_file_store(db: AsyncSession = Depends(get_db)) -> VersionedFileStore:
    """FastAPI dependency building a file store on the request's session."""
    return VersionedFileStore(db)
