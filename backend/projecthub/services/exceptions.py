"""Errors raised by the file store and blob storage.

Routes translate these into HTTP responses; nothing here is retried
automatically.
"""
import uuid


class ParentNotFoundError(Exception):
    """The file id a new version should attach to does not exist."""

    def __init__(self, file_id: uuid.UUID):
        self.file_id = file_id
        super().__init__(f"Parent file {file_id} not found")


class StorageWriteError(Exception):
    """A blob write or catalog write failed. No partial state is committed."""

    def __init__(self, message: str, root_id: uuid.UUID | None = None):
        self.message = message
        self.root_id = root_id
        super().__init__(message)


class VersionConflictError(StorageWriteError):
    """Another writer changed the chain concurrently; the caller may retry."""

    def __init__(self, root_id: uuid.UUID):
        super().__init__(f"Concurrent update to version chain {root_id}", root_id=root_id)


class InvariantViolation(Exception):
    """A chain does not have exactly one latest record."""

    def __init__(self, root_id: uuid.UUID, latest_count: int):
        self.root_id = root_id
        self.latest_count = latest_count
        super().__init__(f"Version chain {root_id} has {latest_count} latest records, expected 1")
