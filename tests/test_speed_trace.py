"""
Unit tests for reference-lap selection and the speed/distance trace.
"""
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from conftest import FakeOpenF1Client, iso
from paddock.errors import NoValidData, NoValidLapError, UpstreamMalformed
from paddock.ingest_openf1.records import CarDataPoint, LapRecord, LocationPoint
from paddock.telemetry.speed_trace import (
    build_speed_trace,
    cumulative_distance,
    join_nearest_location,
    select_reference_lap,
)

BASE = datetime(2024, 3, 2, 15, 0, 0, tzinfo=timezone.utc)


def _lap(number: int, duration: float | None, start: datetime | None) -> LapRecord:
    return LapRecord(lap_number=number, driver_number=1, lap_duration=duration, date_start=start)


def _loc(ms: int, x: float, y: float, z: float = 0.0) -> LocationPoint:
    return LocationPoint(date=BASE + timedelta(milliseconds=ms), x=x, y=y, z=z)


def _car(ms: int, speed: float) -> CarDataPoint:
    return CarDataPoint(date=BASE + timedelta(milliseconds=ms), driver_number=1, speed=speed)


class TestSelectReferenceLap:
    def test_excludes_slow_laps(self):
        laps = [
            _lap(1, 65.0, BASE),
            _lap(2, 150.0, BASE + timedelta(seconds=65)),
            _lap(3, 58.2, BASE + timedelta(seconds=215)),
        ]
        assert select_reference_lap(laps).lap_duration == 58.2

    def test_slow_lap_never_chosen_even_if_most_recent(self):
        laps = [
            _lap(1, 65.0, BASE),
            _lap(2, 58.2, BASE + timedelta(seconds=65)),
            _lap(3, 150.0, BASE + timedelta(seconds=124)),
        ]
        assert select_reference_lap(laps).lap_duration == 58.2

    def test_picks_most_recent_valid_lap(self):
        laps = [
            _lap(2, 91.0, BASE + timedelta(seconds=90)),
            _lap(1, 90.0, BASE),
        ]
        assert select_reference_lap(laps).lap_number == 2

    def test_requires_start_time(self):
        laps = [_lap(1, 80.0, None), _lap(2, 85.0, BASE)]
        assert select_reference_lap(laps).lap_number == 2

    def test_no_valid_lap_raises(self):
        laps = [_lap(1, 150.0, BASE), _lap(2, None, BASE), _lap(3, 80.0, None)]
        with pytest.raises(NoValidLapError):
            select_reference_lap(laps)

    def test_empty_raises(self):
        with pytest.raises(NoValidLapError):
            select_reference_lap([])

    def test_threshold_is_exclusive(self):
        with pytest.raises(NoValidLapError):
            select_reference_lap([_lap(1, 120.0, BASE)])


class TestCumulativeDistance:
    def test_3d_euclidean_running_sum(self):
        locs = [_loc(0, 0, 0, 0), _loc(1, 3, 4, 0), _loc(2, 3, 4, 12)]
        np.testing.assert_allclose(cumulative_distance(locs), [0.0, 5.0, 17.0])

    def test_single_point_is_zero(self):
        np.testing.assert_allclose(cumulative_distance([_loc(0, 7, 7, 7)]), [0.0])

    def test_empty(self):
        assert len(cumulative_distance([])) == 0


class TestJoinNearestLocation:
    def _locations(self) -> list[LocationPoint]:
        # Cumulative distances: 0, 50, 150
        return [_loc(0, 0, 0), _loc(100, 30, 40), _loc(200, 130, 40)]

    def test_nearest_timestamp_and_scaling(self):
        car = [_car(10, 100.0), _car(60, 150.0), _car(260, 250.0)]
        samples = join_nearest_location(car, self._locations())
        assert [s.distance for s in samples] == pytest.approx([0.0, 5.0, 15.0])
        assert [s.speed for s in samples] == [100.0, 150.0, 250.0]

    def test_tie_goes_to_earlier_location(self):
        samples = join_nearest_location([_car(150, 200.0)], self._locations())
        assert samples[0].distance == pytest.approx(5.0)
        assert (samples[0].x, samples[0].y) == (30.0, 40.0)

    def test_inputs_are_sorted_first(self):
        car = [_car(260, 250.0), _car(10, 100.0)]
        locations = list(reversed(self._locations()))
        samples = join_nearest_location(car, locations)
        assert [s.speed for s in samples] == [100.0, 250.0]
        assert [s.distance for s in samples] == pytest.approx([0.0, 15.0])

    def test_no_car_data_gives_empty_trace(self):
        assert join_nearest_location([], self._locations()) == []

    def test_no_locations_raises(self):
        with pytest.raises(NoValidData):
            join_nearest_location([_car(0, 100.0)], [])


class TestBuildSpeedTrace:
    def _client(self) -> FakeOpenF1Client:
        lap_start = BASE + timedelta(seconds=65)
        return FakeOpenF1Client({
            "/laps": [
                {"lap_number": 1, "driver_number": 1, "date_start": iso(BASE), "lap_duration": 65.0},
                {"lap_number": 2, "driver_number": 1, "date_start": iso(lap_start), "lap_duration": 58.2},
                {"lap_number": 3, "driver_number": 1, "date_start": None, "lap_duration": 57.0},
            ],
            "/location": [
                {"date": iso(lap_start), "x": 0, "y": 0, "z": 0},
                {"date": iso(lap_start + timedelta(seconds=1)), "x": 300, "y": 400, "z": 0},
            ],
            "/car_data": [
                {"date": iso(lap_start + timedelta(milliseconds=900)), "driver_number": 1, "speed": 280},
                {"date": iso(lap_start + timedelta(milliseconds=100)), "driver_number": 1, "speed": 250},
            ],
        })

    def test_trace_from_reference_lap_window(self):
        client = self._client()
        trace = build_speed_trace(client, session_key=9161, driver_number=1)

        assert [(p.speed, p.distance) for p in trace] == [(250.0, 0.0), (280.0, pytest.approx(50.0))]

        (_, params, filters), = client.calls_to("/location")
        assert params == {"session_key": 9161, "driver_number": 1}
        assert filters == [
            ("date", ">", "2024-03-02T15:01:05.000"),
            ("date", "<", "2024-03-02T15:02:03.200"),
        ]
        assert client.calls_to("/car_data")[0][2] == filters

    def test_no_valid_lap_skips_telemetry_fetches(self):
        client = FakeOpenF1Client({
            "/laps": [{"lap_number": 1, "driver_number": 1, "date_start": iso(BASE), "lap_duration": 130.0}],
        })
        with pytest.raises(NoValidLapError):
            build_speed_trace(client, session_key=9161, driver_number=1)
        assert client.calls_to("/location") == []

    def test_malformed_rows_raise(self):
        client = FakeOpenF1Client({"/laps": [{"lap_number": "first", "driver_number": 1}]})
        with pytest.raises(UpstreamMalformed):
            build_speed_trace(client, session_key=9161, driver_number=1)
