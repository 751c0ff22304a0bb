"""
Tests for ride metadata reduction.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ridelog.models.track import GpxDocument, PointExtensions, Track, TrackPoint, TrackSegment
from ridelog.services.errors import EmptyTrackError, MetadataError
from ridelog.services.gpx_builder import convert_csv_to_gpx
from ridelog.services.gpx_parser import parse_gpx
from ridelog.services.metadata import compute_ride_metadata, reduce_points
from ridelog.utils.coordinates import haversine_distance


T0 = datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc)


def make_point(seconds=0, lat=52.5, lon=13.4, time=True, **extensions):
    return TrackPoint(
        latitude=lat,
        longitude=lon,
        time=T0 + timedelta(seconds=seconds) if time else None,
        extensions=PointExtensions(**{k: str(v) for k, v in extensions.items()}),
    )


def make_track(points):
    return Track(name="test", segments=[TrackSegment(points=points)])


class TestScenario:
    """Two-point ride converted from CSV and reduced."""

    @pytest.fixture
    def metadata(self, scenario_csv):
        return compute_ride_metadata(parse_gpx(convert_csv_to_gpx(scenario_csv)))

    def test_maxima(self, metadata):
        assert metadata.max_speed == 15
        assert metadata.max_current == 20

    def test_cumulative_fields_from_last_point(self, metadata):
        assert metadata.trip_distance == 50
        assert metadata.trip_used_energy == 2

    def test_trip_time_milliseconds(self, metadata):
        assert metadata.trip_time == 10000
        assert metadata.start == datetime(1970, 1, 1, 0, 16, 40, tzinfo=timezone.utc)
        assert metadata.end == datetime(1970, 1, 1, 0, 16, 50, tzinfo=timezone.utc)

    def test_averages(self, metadata):
        assert metadata.average_speed == pytest.approx(10)
        assert metadata.average_speed_when_moving == pytest.approx(10)
        assert metadata.point_count == 2


class TestReducePoints:
    """Tests for reduce_points."""

    def test_constant_speed(self):
        points = [make_point(i, speed=7.5) for i in range(5)]

        metadata = reduce_points(points)

        assert metadata.max_speed == 7.5
        assert metadata.average_speed == pytest.approx(7.5)
        assert metadata.average_speed_when_moving == pytest.approx(7.5)

    def test_moving_average_excludes_slow_points(self):
        points = [
            make_point(0, speed=0),
            make_point(1, speed=1),
            make_point(2, speed=10),
            make_point(3, speed=20),
        ]

        metadata = reduce_points(points)

        assert metadata.average_speed == pytest.approx(7.75)
        assert metadata.average_speed_when_moving == pytest.approx(15)

    def test_no_moving_points(self):
        points = [make_point(0, speed=0), make_point(5, speed=0.5)]

        metadata = reduce_points(points)

        assert metadata.average_speed == pytest.approx(0.25)
        assert metadata.average_speed_when_moving is None

    def test_missing_speed_excluded(self):
        points = [
            make_point(0, speed=4),
            make_point(1),
            make_point(2, speed="n/a"),
            make_point(3, speed=8),
        ]

        metadata = reduce_points(points)

        assert metadata.max_speed == 8
        assert metadata.average_speed == pytest.approx(6)

    def test_no_speed_or_current_at_all(self):
        metadata = reduce_points([make_point(0), make_point(1)])

        assert metadata.max_speed is None
        assert metadata.max_current is None
        assert metadata.average_speed is None
        assert metadata.average_speed_when_moving is None

    def test_negative_current_max(self):
        points = [make_point(0, current=-4), make_point(1, current=-2)]

        assert reduce_points(points).max_current == -2

    def test_single_point(self):
        metadata = reduce_points([make_point(0, speed=3, trip_distance=0, used_energy=0)])

        assert metadata.trip_time == 0
        assert metadata.point_count == 1
        assert metadata.trip_distance == 0
        assert metadata.max_speed == 3

    def test_sub_second_trip_time(self):
        first = make_point(0)
        last = make_point(0)
        last.time = first.time + timedelta(milliseconds=1250)

        assert reduce_points([first, last]).trip_time == 1250

    def test_naive_times_treated_as_utc(self):
        first = make_point(0)
        first.time = datetime(2024, 5, 1, 18, 0)
        last = make_point(60)

        metadata = reduce_points([first, last])

        assert metadata.trip_time == 60000
        assert metadata.start.tzinfo is not None

    def test_distance_falls_back_to_track_length(self):
        points = [make_point(0, lat=0, lon=0), make_point(1, lat=0, lon=0.01), make_point(2, lat=0.01, lon=0.01)]

        metadata = reduce_points(points)

        expected = haversine_distance(0, 0, 0, 0.01) + haversine_distance(0, 0.01, 0.01, 0.01)
        assert metadata.trip_distance == pytest.approx(expected)
        assert metadata.trip_used_energy is None

    def test_cumulative_only_read_from_last_point(self):
        points = [make_point(0, trip_distance=99, used_energy=9), make_point(1, trip_distance=12, used_energy=1)]

        metadata = reduce_points(points)

        assert metadata.trip_distance == 12
        assert metadata.trip_used_energy == 1


class TestPrefixMonotonicity:
    """Extending a ride never lowers its maxima or trip time."""

    SPEEDS = [0, 3, 12, 9, 25, 4, 18, 0]
    CURRENTS = [1, 5, 14, -3, 22, 2, 11, 0]

    def test_maxima_and_trip_time_never_decrease(self):
        points = [
            make_point(i * 2, speed=s, current=c)
            for i, (s, c) in enumerate(zip(self.SPEEDS, self.CURRENTS))
        ]

        previous = None
        for end in range(1, len(points) + 1):
            metadata = reduce_points(points[:end])
            if previous is not None:
                assert metadata.max_speed >= previous.max_speed
                assert metadata.max_current >= previous.max_current
                assert metadata.trip_time >= previous.trip_time
            previous = metadata

        assert previous.max_speed == 25
        assert previous.max_current == 22


class TestMetadataErrors:
    """Reduction failures."""

    def test_empty_track(self):
        with pytest.raises(EmptyTrackError):
            compute_ride_metadata(make_track([]))

    def test_track_without_segments(self):
        with pytest.raises(EmptyTrackError):
            compute_ride_metadata(Track(name="none"))

    def test_document_without_tracks(self):
        with pytest.raises(EmptyTrackError):
            compute_ride_metadata(GpxDocument())

    def test_header_only_csv(self):
        document = parse_gpx(convert_csv_to_gpx("latitude,longitude,timestamp\n"))

        with pytest.raises(EmptyTrackError):
            compute_ride_metadata(document)

    def test_first_point_without_time(self):
        with pytest.raises(MetadataError, match="First"):
            reduce_points([make_point(time=False), make_point(5)])

    def test_last_point_without_time(self):
        with pytest.raises(MetadataError, match="Last"):
            reduce_points([make_point(0), make_point(5, time=False)])

    def test_middle_point_without_time_is_fine(self):
        points = [make_point(0), make_point(time=False), make_point(10)]

        assert reduce_points(points).trip_time == 10000

    def test_malformed_trip_distance(self):
        with pytest.raises(MetadataError, match="trip_distance"):
            reduce_points([make_point(0), make_point(1, trip_distance="far")])

    def test_malformed_used_energy(self):
        with pytest.raises(MetadataError, match="used_energy"):
            reduce_points([make_point(0), make_point(1, used_energy="")])


class TestRideMetadataDict:

    def test_round_trip(self, scenario_csv):
        metadata = compute_ride_metadata(parse_gpx(convert_csv_to_gpx(scenario_csv)))

        data = metadata.to_dict()
        restored = type(metadata).from_dict(data)

        assert data["start"] == "1970-01-01T00:16:40+00:00"
        assert restored == metadata
