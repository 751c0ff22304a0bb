"""
Parsed GPX model.

A typed tree mirroring the GPX element structure:
GpxDocument -> Track -> TrackSegment -> TrackPoint -> PointExtensions.
Extension values keep their source text; numeric interpretation is left
to the metadata reducer.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ridelog.models.raw import EXTENSION_FIELDS


@dataclass
class PointExtensions:
    """Vendor extension block of a track point (raw text per field)."""

    speed: Optional[str] = None
    voltage: Optional[str] = None
    current: Optional[str] = None
    used_energy: Optional[str] = None
    trip_distance: Optional[str] = None

    def number(self, name: str) -> float:
        """
        Numeric value of an extension field.

        Returns NaN when the field is absent or not a finite number.
        """
        if name not in EXTENSION_FIELDS:
            raise KeyError(name)
        text = getattr(self, name)
        if text is None:
            return math.nan
        try:
            value = float(text)
        except ValueError:
            return math.nan
        return value if math.isfinite(value) else math.nan

    def is_malformed(self, name: str) -> bool:
        """True when the field is present but does not hold a number."""
        return getattr(self, name) is not None and math.isnan(self.number(name))


@dataclass
class TrackPoint:
    latitude: float
    longitude: float
    elevation: Optional[float] = None
    time: Optional[datetime] = None
    extensions: PointExtensions = field(default_factory=PointExtensions)


@dataclass
class TrackSegment:
    points: list[TrackPoint] = field(default_factory=list)


@dataclass
class Track:
    name: Optional[str] = None
    segments: list[TrackSegment] = field(default_factory=list)

    @property
    def points(self) -> list[TrackPoint]:
        """Points of the first segment (the recorded path)."""
        if not self.segments:
            return []
        return self.segments[0].points


@dataclass
class GpxDocument:
    creator: Optional[str] = None
    name: Optional[str] = None
    tracks: list[Track] = field(default_factory=list)

    @property
    def first_track(self) -> Optional[Track]:
        return self.tracks[0] if self.tracks else None
