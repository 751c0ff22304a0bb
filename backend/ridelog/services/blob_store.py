"""
Blob store for GPX files.

Stores each file under a generated id in a folder. Callers only see ids,
so a bucket-backed store can replace this without touching the API.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


_FILE_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class BlobStore:
    """Folder-backed large-object store."""

    def __init__(self, folder: Path, suffix: str = ".gpx"):
        self._folder = folder
        self._suffix = suffix
        self._folder.mkdir(parents=True, exist_ok=True)

    @property
    def folder(self) -> Path:
        return self._folder

    def put(self, data: bytes) -> str:
        """
        Store a blob.

        Returns:
            The new file id
        """
        file_id = uuid.uuid4().hex
        path = self._path(file_id)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
        logger.debug(f"Stored blob {file_id} ({len(data)} bytes)")
        return file_id

    def get(self, file_id: str) -> Optional[bytes]:
        """Read a blob, or None if it does not exist."""
        if not _FILE_ID_PATTERN.match(file_id):
            return None
        path = self._path(file_id)
        if not path.is_file():
            return None
        return path.read_bytes()

    def delete(self, file_id: str) -> bool:
        """Delete a blob. Returns True if it existed."""
        if not _FILE_ID_PATTERN.match(file_id):
            return False
        path = self._path(file_id)
        if not path.is_file():
            return False
        path.unlink()
        logger.debug(f"Deleted blob {file_id}")
        return True

    def _path(self, file_id: str) -> Path:
        return self._folder / f"{file_id}{self._suffix}"
