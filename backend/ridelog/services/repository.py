"""
Ride Repository - manages storage of ride records and their GPX files.

Ride records are JSON documents in <data_folder>/rides, GPX files live in
the blob store under <data_folder>/blobs. This abstraction layer can be
swapped for a real database and bucket later without touching the API.
"""

import json
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

from ridelog.models.ride import Ride, RideMetadata, RideSource, RideSummary
from ridelog.services.blob_store import BlobStore


logger = logging.getLogger(__name__)


DEFAULT_DATA_FOLDER = Path("./data")
DATA_FOLDER_ENV = "RIDELOG_DATA_FOLDER"

_RIDE_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def default_data_folder() -> Path:
    return Path(os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER)))


class RideRepository:
    """
    Repository for ride records.

    Indexes ride documents on startup and caches parsed records in memory.
    Every lookup is scoped to the owning user.
    """

    def __init__(self, data_folder: Path):
        """
        Initialize the repository.

        Args:
            data_folder: Folder holding the rides/ and blobs/ subfolders.
                Created if missing.
        """
        self._data_folder = data_folder
        self._rides_folder = data_folder / "rides"
        self._rides_folder.mkdir(parents=True, exist_ok=True)
        self._blobs = BlobStore(data_folder / "blobs")
        self._cache: dict[str, Ride] = {}
        self._index: dict[str, Path] = {}  # id -> document path

        self.scan_folder()

    @property
    def data_folder(self) -> Path:
        return self._data_folder

    @property
    def ride_count(self) -> int:
        return len(self._index)

    def scan_folder(self) -> int:
        """
        Scan the rides folder and rebuild the index.

        Returns:
            Number of ride documents found
        """
        self._index.clear()
        self._cache.clear()

        for doc in self._rides_folder.glob("*.json"):
            if doc.is_file() and _RIDE_ID_PATTERN.match(doc.stem):
                self._index[doc.stem] = doc
                logger.debug(f"Indexed ride: {doc.stem}")

        logger.info(f"Scanned {len(self._index)} rides in {self._rides_folder}")
        return len(self._index)

    def create_ride(
        self,
        user_id: str,
        name: str,
        gpx: bytes,
        metadata: RideMetadata,
        source: RideSource,
        original_filename: Optional[str] = None,
    ) -> Ride:
        """
        Store a GPX file and its ride record.

        Returns:
            The stored Ride
        """
        file_id = self._blobs.put(gpx)
        ride = Ride(
            id=uuid.uuid4().hex,
            user_id=user_id,
            name=name,
            file_id=file_id,
            source=source,
            metadata=metadata,
            original_filename=original_filename,
        )

        path = self._rides_folder / f"{ride.id}.json"
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(ride.to_dict(), indent=2))
        tmp_path.replace(path)

        self._index[ride.id] = path
        self._cache[ride.id] = ride
        logger.info(f"Stored ride {ride.id} for user {user_id} ({metadata.point_count} points)")
        return ride

    def list_rides(self, user_id: str) -> list[RideSummary]:
        """
        List a user's rides, newest start first.
        """
        summaries = []
        for ride_id in list(self._index):
            ride = self._load_ride(ride_id)
            if ride is not None and ride.user_id == user_id:
                summaries.append(RideSummary.from_ride(ride))

        summaries.sort(key=lambda s: (s.start, s.name), reverse=True)
        return summaries

    def get_ride(self, user_id: str, ride_id: str) -> Optional[Ride]:
        """
        Get a ride by ID.

        Returns:
            Ride if it exists and belongs to the user, None otherwise
        """
        ride = self._load_ride(ride_id)
        if ride is None or ride.user_id != user_id:
            return None
        return ride

    def get_gpx(self, ride: Ride) -> Optional[bytes]:
        """Read the stored GPX file of a ride."""
        return self._blobs.get(ride.file_id)

    def delete_ride(self, user_id: str, ride_id: str) -> bool:
        """
        Delete a ride record and its GPX file.

        Returns:
            True if the ride existed and belonged to the user
        """
        ride = self.get_ride(user_id, ride_id)
        if ride is None:
            return False

        self._index.pop(ride_id).unlink(missing_ok=True)
        self._cache.pop(ride_id, None)
        self._blobs.delete(ride.file_id)
        logger.info(f"Deleted ride {ride_id} for user {user_id}")
        return True

    def clear_cache(self) -> None:
        """Clear the in-memory cache."""
        self._cache.clear()
        logger.info("Ride cache cleared")

    def _load_ride(self, ride_id: str) -> Optional[Ride]:
        """Load a ride document and cache it."""
        if ride_id in self._cache:
            return self._cache[ride_id]
        if ride_id not in self._index:
            return None

        path = self._index[ride_id]
        try:
            ride = Ride.from_dict(json.loads(path.read_text()))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load ride {path}: {e}")
            return None

        self._cache[ride_id] = ride
        return ride


# Global repository instance (set up by app initialization)
_repository: Optional[RideRepository] = None


def get_repository() -> RideRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = RideRepository(default_data_folder())
    return _repository


def init_repository(data_folder: Path) -> RideRepository:
    """Initialize the global repository with a data folder."""
    global _repository
    _repository = RideRepository(data_folder)
    return _repository
