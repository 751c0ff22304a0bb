"""
Upload ingestion.

Turns an uploaded ride log (recorder CSV or GPX) into a GPX document plus
its metadata, and stores both.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from ridelog.models.ride import Ride, RideMetadata, RideSource
from ridelog.services.gpx_builder import convert_csv_to_gpx
from ridelog.services.gpx_parser import parse_gpx
from ridelog.services.metadata import compute_ride_metadata
from ridelog.services.repository import RideRepository


logger = logging.getLogger(__name__)


MAX_UPLOAD_MB_ENV = "RIDELOG_MAX_UPLOAD_MB"
MAX_UPLOAD_BYTES = int(float(os.getenv(MAX_UPLOAD_MB_ENV, "50")) * 1024 * 1024)


@dataclass
class IngestedRide:
    name: str
    source: RideSource
    gpx: bytes
    metadata: RideMetadata


def detect_source(filename: Optional[str], content: bytes) -> RideSource:
    """Pick the upload format from the file extension, else sniff the content."""
    if filename:
        suffix = PurePath(filename).suffix.lower()
        if suffix == ".csv":
            return RideSource.CSV
        if suffix in (".gpx", ".xml"):
            return RideSource.GPX

    head = content[:64].lstrip(b"\xef\xbb\xbf").lstrip()
    return RideSource.GPX if head.startswith(b"<") else RideSource.CSV


def _ride_name(name: Optional[str], filename: Optional[str], metadata: RideMetadata) -> str:
    if name and name.strip():
        return name.strip()
    if filename and PurePath(filename).stem:
        return PurePath(filename).stem
    return f"Ride {metadata.start:%Y-%m-%d %H:%M}"


def ingest_upload(
    content: bytes,
    filename: Optional[str] = None,
    name: Optional[str] = None,
) -> IngestedRide:
    """
    Convert (if needed), parse and reduce an uploaded ride log.

    Raises:
        ParseError: malformed CSV or GPX
        EmptyTrackError: the log has no points
        MetadataError: the first/last point is missing required fields
    """
    source = detect_source(filename, content)

    if source is RideSource.CSV:
        track_name = name or (PurePath(filename).stem if filename else "ride")
        gpx = convert_csv_to_gpx(content, track_name).encode("utf-8")
    else:
        gpx = content

    document = parse_gpx(gpx)
    metadata = compute_ride_metadata(document)

    return IngestedRide(
        name=_ride_name(name, filename, metadata),
        source=source,
        gpx=gpx,
        metadata=metadata,
    )


def store_upload(
    repository: RideRepository,
    user_id: str,
    content: bytes,
    filename: Optional[str] = None,
    name: Optional[str] = None,
) -> Ride:
    """Ingest an upload and store it for a user."""
    ingested = ingest_upload(content, filename, name)
    logger.info(
        f"Ingested {ingested.source.value} upload '{filename}' for user {user_id}: "
        f"{ingested.metadata.point_count} points"
    )
    return repository.create_ride(
        user_id=user_id,
        name=ingested.name,
        gpx=ingested.gpx,
        metadata=ingested.metadata,
        source=ingested.source,
        original_filename=filename,
    )
