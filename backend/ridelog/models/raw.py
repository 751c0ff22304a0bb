"""
Raw telemetry model (recorder CSV, unnormalized).

The CSV parser loads recorder logs into this columnar structure before
conversion to GPX. Missing cells are NaN; absent columns are all-NaN.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

import numpy as np
from numpy.typing import NDArray


# Per-point fields carried in the GPX extension block, in output order
EXTENSION_FIELDS = ("speed", "voltage", "current", "used_energy", "trip_distance")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Epoch-second range representable as a datetime
MIN_TIMESTAMP = (datetime(1, 1, 1, tzinfo=timezone.utc) - EPOCH).total_seconds()
MAX_TIMESTAMP = (datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc) - EPOCH).total_seconds()


@dataclass
class TelemetryRow:
    """One recorder row. Numeric fields are None when missing."""

    latitude: float
    longitude: float
    timestamp: Optional[float] = None  # epoch seconds
    altitude: Optional[float] = None
    speed: Optional[float] = None
    voltage: Optional[float] = None
    current: Optional[float] = None
    used_energy: Optional[float] = None
    trip_distance: Optional[float] = None

    @property
    def time(self) -> Optional[datetime]:
        """Absolute UTC time at millisecond precision."""
        if self.timestamp is None:
            return None
        millis = int(round(self.timestamp * 1000))
        return EPOCH + timedelta(milliseconds=millis)

    def extension_values(self) -> dict[str, float]:
        """Extension fields that are present, in EXTENSION_FIELDS order."""
        values = {}
        for name in EXTENSION_FIELDS:
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        return values


@dataclass
class RawTelemetry:
    """Raw telemetry extracted from a recorder CSV."""

    source: str
    name: str

    latitude: NDArray[np.float64]
    longitude: NDArray[np.float64]
    timestamps: NDArray[np.float64]  # epoch seconds

    altitude: Optional[NDArray[np.float64]] = None  # meters
    speed: Optional[NDArray[np.float64]] = None
    voltage: Optional[NDArray[np.float64]] = None  # V
    current: Optional[NDArray[np.float64]] = None  # A
    used_energy: Optional[NDArray[np.float64]] = None  # cumulative
    trip_distance: Optional[NDArray[np.float64]] = None  # cumulative

    def __len__(self) -> int:
        return len(self.latitude)

    def rows(self) -> Iterator[TelemetryRow]:
        """Iterate rows in file order."""
        for i in range(len(self)):
            yield TelemetryRow(
                latitude=float(self.latitude[i]),
                longitude=float(self.longitude[i]),
                timestamp=_cell(self.timestamps, i),
                altitude=_cell(self.altitude, i),
                speed=_cell(self.speed, i),
                voltage=_cell(self.voltage, i),
                current=_cell(self.current, i),
                used_energy=_cell(self.used_energy, i),
                trip_distance=_cell(self.trip_distance, i),
            )


def _cell(column: Optional[NDArray[np.float64]], idx: int) -> Optional[float]:
    if column is None:
        return None
    value = float(column[idx])
    if np.isnan(value):
        return None
    return value
