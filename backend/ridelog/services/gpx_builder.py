"""
Telemetry -> GPX conversion.

Builds one track with one segment and one point per telemetry row. Board
telemetry rides along in a per-point vendor extension element whose child
names match EXTENSION_FIELDS, so the metadata reducer can read it back.
"""

import logging
from typing import Union
from xml.etree import ElementTree

import gpxpy.gpx

from ridelog.models.raw import RawTelemetry, TelemetryRow
from ridelog.services.csv_parser import parse_telemetry_csv


logger = logging.getLogger(__name__)


EXTENSION_PREFIX = "ride"
EXTENSION_NAMESPACE = "http://www.ridelog.app/xmlschemas/RideExtension/v1"
EXTENSION_ELEMENT = "RideExtension"
GPX_CREATOR = "ridelog"


def _qname(local: str) -> str:
    return f"{{{EXTENSION_NAMESPACE}}}{local}"


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def build_extension(row: TelemetryRow) -> ElementTree.Element:
    """Build the vendor extension element for a single row."""
    element = ElementTree.Element(_qname(EXTENSION_ELEMENT))
    for name, value in row.extension_values().items():
        child = ElementTree.SubElement(element, _qname(name))
        child.text = _format_number(value)
    return element


def build_track_point(row: TelemetryRow) -> gpxpy.gpx.GPXTrackPoint:
    point = gpxpy.gpx.GPXTrackPoint(
        latitude=row.latitude,
        longitude=row.longitude,
        elevation=row.altitude,
        time=row.time,
    )
    point.extensions.append(build_extension(row))
    return point


def telemetry_to_gpx(raw: RawTelemetry) -> gpxpy.gpx.GPX:
    """
    Convert raw telemetry into a GPX object.

    A new GPX object is built on every call; nothing is shared between
    conversions.
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = GPX_CREATOR
    gpx.nsmap[EXTENSION_PREFIX] = EXTENSION_NAMESPACE

    track = gpxpy.gpx.GPXTrack(name=raw.name)
    gpx.tracks.append(track)

    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for row in raw.rows():
        segment.points.append(build_track_point(row))

    logger.debug(f"Built GPX track '{raw.name}' with {len(segment.points)} points")
    return gpx


def convert_csv_to_gpx(content: Union[str, bytes], name: str = "ride") -> str:
    """
    Convert recorder CSV text into serialized GPX XML.

    Raises:
        ParseError: on malformed CSV
    """
    raw = parse_telemetry_csv(content, name)
    return telemetry_to_gpx(raw).to_xml(version="1.1")
