"""
Ride data model.

RideMetadata is the trip summary reduced from a GPX track. Ride is the
stored record tying a user, a GPX blob and its metadata together.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class RideSource(Enum):
    """Format the ride was uploaded in."""

    CSV = "csv"
    GPX = "gpx"


@dataclass
class RideMetadata:
    """Trip-level aggregates of a ride."""

    start: datetime
    end: datetime
    trip_time: int                  # milliseconds
    point_count: int
    trip_distance: Optional[float]  # from last point, or geodesic length
    trip_used_energy: Optional[float]
    max_speed: Optional[float]
    max_current: Optional[float]
    average_speed: Optional[float]
    average_speed_when_moving: Optional[float]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RideMetadata":
        values = dict(data)
        values["start"] = datetime.fromisoformat(values["start"])
        values["end"] = datetime.fromisoformat(values["end"])
        return cls(**values)


@dataclass
class Ride:
    """A stored ride owned by a single user."""

    id: str
    user_id: str
    name: str
    file_id: str
    source: RideSource
    metadata: RideMetadata
    original_filename: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "file_id": self.file_id,
            "source": self.source.value,
            "original_filename": self.original_filename,
            "created_at": self.created_at.isoformat(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ride":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            name=data["name"],
            file_id=data["file_id"],
            source=RideSource(data["source"]),
            original_filename=data.get("original_filename"),
            created_at=datetime.fromisoformat(data["created_at"]),
            metadata=RideMetadata.from_dict(data["metadata"]),
        )


@dataclass
class RideSummary:
    """Lightweight summary of a ride for listing."""

    id: str
    name: str
    start: str
    trip_time: int
    trip_distance: Optional[float]
    max_speed: Optional[float]

    @classmethod
    def from_ride(cls, ride: Ride) -> "RideSummary":
        return cls(
            id=ride.id,
            name=ride.name,
            start=ride.metadata.start.isoformat(),
            trip_time=ride.metadata.trip_time,
            trip_distance=ride.metadata.trip_distance,
            max_speed=ride.metadata.max_speed,
        )
