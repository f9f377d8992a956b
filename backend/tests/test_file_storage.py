import shutil
from pathlib import Path

import pytest

from projecthub.services.exceptions import StorageWriteError
from projecthub.services.file_storage import FileStorageService


async def test_write_keeps_extension_and_never_reuses_a_path(storage):
    first = await storage.write(b"one", "spec.pdf")
    second = await storage.write(b"two", "spec.pdf")

    assert first != second
    assert first.endswith(".pdf")
    assert Path(first).parent == storage.base_path
    assert Path(first).read_bytes() == b"one"


async def test_read_streams_in_chunks(storage):
    payload = b"x" * 10 + b"y" * 5
    path = await storage.write(payload, "data.csv")

    chunks = [chunk async for chunk in storage.read(path, chunk_size=4)]

    assert b"".join(chunks) == payload
    assert len(chunks) == 4


async def test_exists_and_delete(storage):
    path = await storage.write(b"bytes", "notes.txt")
    assert await storage.exists(path) is True

    await storage.delete(path)
    assert await storage.exists(path) is False
    # Deleting twice is harmless
    await storage.delete(path)


async def test_write_failure_raises_storage_write_error(tmp_path):
    storage = FileStorageService(base_path=tmp_path / "gone")
    shutil.rmtree(storage.base_path)

    with pytest.raises(StorageWriteError):
        await storage.write(b"bytes", "spec.pdf")


def test_unknown_storage_type_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        FileStorageService(base_path=tmp_path, storage_type="azure_blob")
