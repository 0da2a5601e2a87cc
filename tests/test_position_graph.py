"""
Unit tests for the lap/position merge-join.
"""
from datetime import datetime, timedelta, timezone

from conftest import FakeOpenF1Client
from paddock.ingest_openf1.records import LapRecord, PositionRecord
from paddock.telemetry.position_graph import (
    build_position_graphs,
    fetch_position_graphs,
    sweep_lap_positions,
)

BASE = datetime(2024, 3, 2, 15, 0, 0, tzinfo=timezone.utc)


def _t(seconds: float) -> datetime:
    return BASE + timedelta(seconds=seconds)


def _lap(driver: int, number: int, start: datetime | None) -> LapRecord:
    return LapRecord(lap_number=number, driver_number=driver, date_start=start)


def _pos(driver: int, position: int, at: datetime) -> PositionRecord:
    return PositionRecord(position=position, driver_number=driver, date=at)


class TestSweepLapPositions:
    def test_position_in_effect_at_each_lap_start(self):
        laps = [_lap(1, 1, _t(10)), _lap(1, 2, _t(20)), _lap(1, 3, _t(30))]
        positions = [_pos(1, 1, _t(0)), _pos(1, 2, _t(15)), _pos(1, 3, _t(25))]
        data = sweep_lap_positions(laps, positions)
        assert [(p.lap, p.position) for p in data] == [(1, 1), (2, 2), (3, 3)]

    def test_change_at_exact_lap_start_applies(self):
        laps = [_lap(1, 1, _t(10)), _lap(1, 2, _t(20))]
        positions = [_pos(1, 4, _t(0)), _pos(1, 3, _t(20))]
        data = sweep_lap_positions(laps, positions)
        assert [p.position for p in data] == [4, 3]

    def test_laps_before_first_record_use_first_position(self):
        laps = [_lap(1, 1, _t(0)), _lap(1, 2, _t(10))]
        positions = [_pos(1, 5, _t(5))]
        data = sweep_lap_positions(laps, positions)
        assert [p.position for p in data] == [5, 5]

    def test_several_changes_within_one_lap_keep_the_last(self):
        laps = [_lap(1, 1, _t(0)), _lap(1, 2, _t(100))]
        positions = [_pos(1, 8, _t(0)), _pos(1, 7, _t(30)), _pos(1, 6, _t(60)), _pos(1, 5, _t(90))]
        data = sweep_lap_positions(laps, positions)
        assert [p.position for p in data] == [8, 5]

    def test_no_positions(self):
        assert sweep_lap_positions([_lap(1, 1, _t(0))], []) == []


class TestBuildPositionGraphs:
    def test_groups_by_driver_and_sorts_inputs(self):
        laps = [
            _lap(16, 2, _t(20)), _lap(1, 2, _t(20)),
            _lap(16, 1, _t(10)), _lap(1, 1, _t(10)),
        ]
        positions = [
            _pos(1, 1, _t(15)), _pos(16, 2, _t(15)),
            _pos(1, 2, _t(0)), _pos(16, 1, _t(0)),
        ]
        graphs = build_position_graphs(laps, positions)
        by_driver = {g.driver_number: [(p.lap, p.position) for p in g.data] for g in graphs}
        assert by_driver[1] == [(1, 2), (2, 1)]
        assert by_driver[16] == [(1, 1), (2, 2)]

    def test_sorted_by_final_position(self):
        laps = [_lap(d, 1, _t(10)) for d in (44, 1, 16)]
        positions = [
            _pos(44, 1, _t(0)), _pos(1, 2, _t(0)), _pos(16, 3, _t(0)),
            _pos(44, 3, _t(50)), _pos(16, 1, _t(50)),
        ]
        graphs = build_position_graphs(laps, positions)
        assert [g.driver_number for g in graphs] == [16, 1, 44]

    def test_drivers_without_positions_are_skipped(self):
        laps = [_lap(1, 1, _t(10)), _lap(99, 1, _t(10))]
        positions = [_pos(1, 1, _t(0))]
        graphs = build_position_graphs(laps, positions)
        assert [g.driver_number for g in graphs] == [1]

    def test_laps_without_start_are_ignored(self):
        laps = [_lap(1, 1, None), _lap(1, 2, _t(10))]
        positions = [_pos(1, 3, _t(0))]
        (graph,) = build_position_graphs(laps, positions)
        assert [p.lap for p in graph.data] == [2]


class TestFetchPositionGraphs:
    def test_one_call_per_endpoint(self, session_laps, session_positions):
        client = FakeOpenF1Client({"/laps": session_laps, "/position": session_positions})
        graphs = fetch_position_graphs(client, session_key=9161)

        assert len(client.calls_to("/laps")) == 1
        assert len(client.calls_to("/position")) == 1
        assert client.calls_to("/laps")[0][1] == {"session_key": 9161}

        # Driver 1 takes the lead 100s in, so leads the final order
        assert [g.driver_number for g in graphs] == [1, 16]
        assert [p.position for p in graphs[0].data] == [2, 2, 1]
        assert [p.position for p in graphs[1].data] == [1, 1, 2]
