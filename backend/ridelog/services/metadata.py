"""
Track -> ride metadata reduction.

Reduces the first segment of a parsed track into trip aggregates. Speed
and current values that are absent or non-numeric are missing: they never
raise a maximum and are excluded from both the sum and the count of an
average.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from ridelog.models.ride import RideMetadata
from ridelog.models.track import GpxDocument, Track, TrackPoint
from ridelog.services.errors import EmptyTrackError, MetadataError
from ridelog.utils.coordinates import track_length


logger = logging.getLogger(__name__)


MOVING_SPEED_THRESHOLD = 1.0  # points with speed above this count as moving


def _max(values: NDArray[np.float64]) -> Optional[float]:
    valid = ~np.isnan(values)
    if not np.any(valid):
        return None
    return float(np.max(values[valid]))


def _mean(values: NDArray[np.float64]) -> Optional[float]:
    valid = ~np.isnan(values)
    if not np.any(valid):
        return None
    return float(np.mean(values[valid]))


def _required_time(point: TrackPoint, label: str) -> datetime:
    if not isinstance(point.time, datetime):
        raise MetadataError(f"{label} point has no timestamp")
    if point.time.tzinfo is None:
        return point.time.replace(tzinfo=timezone.utc)
    return point.time.astimezone(timezone.utc)


def _cumulative(point: TrackPoint, name: str) -> Optional[float]:
    """Cumulative counter from the last point, None when absent."""
    if point.extensions.is_malformed(name):
        raise MetadataError(
            f"Last point {name} is not a number: {getattr(point.extensions, name)!r}"
        )
    value = point.extensions.number(name)
    return None if math.isnan(value) else value


def reduce_points(points: list[TrackPoint]) -> RideMetadata:
    """
    Compute ride metadata from an ordered list of track points.

    Raises:
        EmptyTrackError: when there are no points
        MetadataError: when the first/last point lacks a timestamp, or the
            last point carries a non-numeric cumulative field
    """
    if not points:
        raise EmptyTrackError("Track has no points")

    start, end = points[0], points[-1]
    start_time = _required_time(start, "First")
    end_time = _required_time(end, "Last")

    trip_time = int(round((end_time - start_time).total_seconds() * 1000))

    speed = np.array([p.extensions.number("speed") for p in points], dtype=np.float64)
    current = np.array([p.extensions.number("current") for p in points], dtype=np.float64)
    moving = speed[speed > MOVING_SPEED_THRESHOLD]

    trip_distance = _cumulative(end, "trip_distance")
    if trip_distance is None:
        lat = np.array([p.latitude for p in points], dtype=np.float64)
        lon = np.array([p.longitude for p in points], dtype=np.float64)
        trip_distance = track_length(lat, lon)
        logger.debug(f"No trip_distance on last point, using geodesic length {trip_distance:.1f} m")

    return RideMetadata(
        start=start_time,
        end=end_time,
        trip_time=trip_time,
        point_count=len(points),
        trip_distance=trip_distance,
        trip_used_energy=_cumulative(end, "used_energy"),
        max_speed=_max(speed),
        max_current=_max(current),
        average_speed=_mean(speed),
        average_speed_when_moving=_mean(moving),
    )


def compute_ride_metadata(source: Union[GpxDocument, Track]) -> RideMetadata:
    """
    Reduce the first segment of the first track into RideMetadata.

    Accepts either a parsed GpxDocument or a single Track.
    """
    track = source.first_track if isinstance(source, GpxDocument) else source
    if track is None:
        raise EmptyTrackError("GPX has no tracks")
    return reduce_points(track.points)
