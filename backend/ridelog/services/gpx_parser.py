"""
GPX XML -> typed track tree.

A structural bridge only: no domain validation happens here. Extension
fields are matched by local element name, so files written by other
loggers with the same field names (under any namespace prefix) load the
same way as files produced by ridelog.services.gpx_builder.
"""

import logging
from typing import Iterable, Optional, Union
from xml.etree import ElementTree

import gpxpy
import gpxpy.gpx

from ridelog.models.raw import EXTENSION_FIELDS
from ridelog.models.track import (
    GpxDocument,
    PointExtensions,
    Track,
    TrackPoint,
    TrackSegment,
)
from ridelog.services.errors import ParseError


logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag.split(":")[-1]


def read_extensions(elements: Iterable[ElementTree.Element]) -> PointExtensions:
    """
    Collect extension fields from a point's <extensions> children.

    Fields may sit directly under <extensions> or one level down inside a
    vendor container element. The first occurrence of a field wins.
    """
    values: dict[str, str] = {}

    def visit(element: ElementTree.Element, depth: int) -> None:
        name = _local_name(element.tag)
        if name in EXTENSION_FIELDS and len(element) == 0:
            values.setdefault(name, (element.text or "").strip())
            return
        if depth < 1:
            for child in element:
                visit(child, depth + 1)

    for element in elements:
        visit(element, 0)

    return PointExtensions(**values)


_SNIFF_CHUNK = 4096


def _root_name(content: str) -> Optional[str]:
    """
    Local name of the document element, read from the first start event.

    gpxpy accepts any well-formed root, so the element name is checked up
    front without building a tree.
    """
    parser = ElementTree.XMLPullParser(events=("start",))
    try:
        for offset in range(0, len(content), _SNIFF_CHUNK):
            parser.feed(content[offset:offset + _SNIFF_CHUNK])
            for _, element in parser.read_events():
                return _local_name(element.tag)
    except ElementTree.ParseError as e:
        raise ParseError(f"Malformed XML: {e}") from e
    return None


def _convert_point(point: gpxpy.gpx.GPXTrackPoint) -> TrackPoint:
    return TrackPoint(
        latitude=point.latitude,
        longitude=point.longitude,
        elevation=point.elevation,
        time=point.time,
        extensions=read_extensions(point.extensions),
    )


def _convert_track(track: gpxpy.gpx.GPXTrack) -> Track:
    return Track(
        name=track.name,
        segments=[
            TrackSegment(points=[_convert_point(p) for p in segment.points])
            for segment in track.segments
        ],
    )


def parse_gpx(content: Union[str, bytes]) -> GpxDocument:
    """
    Parse GPX text (or UTF-8 bytes) into a GpxDocument.

    Raises:
        ParseError: on malformed XML or a document that is not GPX
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"GPX is not valid UTF-8: {e}") from e

    content = content.lstrip("\ufeff").lstrip()
    if not content:
        raise ParseError("GPX is empty")

    root = _root_name(content)
    if root is not None and root != "gpx":
        raise ParseError(f"Document root is <{root}>, expected <gpx>")

    try:
        gpx = gpxpy.parse(content)
    except gpxpy.gpx.GPXXMLSyntaxException as e:
        raise ParseError(f"Malformed XML: {e}") from e
    except (gpxpy.gpx.GPXException, ValueError) as e:
        raise ParseError(f"Invalid GPX: {e}") from e

    document = GpxDocument(
        creator=gpx.creator,
        name=gpx.name,
        tracks=[_convert_track(t) for t in gpx.tracks],
    )
    logger.debug(
        f"Parsed GPX with {len(document.tracks)} tracks, "
        f"{len(document.first_track.points) if document.first_track else 0} points in first segment"
    )
    return document
