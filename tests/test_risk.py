"""Tests for launch risk evaluation."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from ascentwatch.core.ascent import LaunchRequest, simulate_trajectory
from ascentwatch.core.catalog import Catalog, TrackedObject
from ascentwatch.core.risk import (
    RiskEvent,
    RiskReport,
    evaluate_risk,
    risk_instants,
    scan_proximity,
)
from ascentwatch.core.tle import TLE

ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"
HST_LINE1 = "1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994"
HST_LINE2 = "2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912"

EPOCH = datetime(2024, 2, 14, 13, 10, 30, tzinfo=timezone.utc)
FAR_AWAY_KM = np.array([1.0e6, 1.0e6, 1.0e6])


@pytest.fixture
def launch() -> LaunchRequest:
    return LaunchRequest(latitude_deg=28.5, longitude_deg=-80.6, epoch=EPOCH)


@pytest.fixture
def synthetic_catalog() -> Catalog:
    tle = TLE.from_lines(ISS_LINE1, ISS_LINE2, "SYNTHETIC")
    return Catalog([TrackedObject(tle=tle, name="SYNTHETIC", source="Test", color=(1.0, 0.0, 0.0))])


@pytest.fixture
def real_catalog() -> Catalog:
    return Catalog([
        TrackedObject(TLE.from_lines(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)"), "ISS (ZARYA)", "Active Sats", (0.0, 1.0, 0.0)),
        TrackedObject(TLE.from_lines(HST_LINE1, HST_LINE2, "HST"), "HST", "Active Sats", (0.0, 1.0, 0.0)),
    ])


def _vehicle_positions(launch: LaunchRequest) -> dict[datetime, np.ndarray]:
    return {s.epoch: s.position_eci_km for s in simulate_trajectory(launch)}


def _fake_propagator(placement, valid_value: bool = True):
    """Propagator placing every member at ``placement(epoch)``."""
    def propagator(catalog, times):
        n, m = len(catalog), len(times)
        positions = np.empty((n, m, 3))
        for j, t in enumerate(times):
            positions[:, j, :] = placement(t)
        return positions, np.full((n, m), valid_value)
    return propagator


class TestRiskInstants:
    def test_every_fifth_second(self, launch):
        checked = risk_instants(simulate_trajectory(launch), 5)
        assert len(checked) == 241
        assert all(s.offset_s % 5 == 0 for s in checked)

    def test_cadence_must_be_positive(self, launch):
        with pytest.raises(ValueError, match="cadence"):
            risk_instants(simulate_trajectory(launch), 0)


class TestEvaluateRisk:
    def test_empty_catalog(self, launch):
        report = evaluate_risk(Catalog(), launch)
        assert report.events == []
        assert report.is_clear
        assert report.closest is None
        assert len(report.trajectory) == 1201
        assert report.trajectory[0].altitude_km < 0.01

    def test_forced_coincidence_at_500s(self, launch, synthetic_catalog):
        vehicle = _vehicle_positions(launch)
        target = EPOCH + timedelta(seconds=500)
        propagator = _fake_propagator(lambda t: vehicle[t] if t == target else FAR_AWAY_KM)

        report = evaluate_risk(synthetic_catalog, launch, propagator=propagator)

        assert len(report.events) == 1
        event = report.events[0]
        assert event.offset_s == 500
        assert event.distance_km == pytest.approx(0.0, abs=1e-9)
        assert event.object_name == "SYNTHETIC"
        assert event.object_id == "25544"
        np.testing.assert_array_equal(event.vehicle_position_km, vehicle[target])
        np.testing.assert_array_equal(event.object_position_km, vehicle[target])

    def test_closest_approach_logged(self, launch, synthetic_catalog, caplog):
        vehicle = _vehicle_positions(launch)
        target = EPOCH + timedelta(seconds=500)
        propagator = _fake_propagator(lambda t: vehicle[t] if t == target else FAR_AWAY_KM)

        with caplog.at_level(logging.WARNING, logger="ascentwatch.core.risk"):
            evaluate_risk(synthetic_catalog, launch, propagator=propagator)

        assert "1 objects endangered; closest SYNTHETIC (25544) at 0.00 km, T+500 s" in caplog.text

    def test_clear_launch_not_warned(self, launch, synthetic_catalog, caplog):
        propagator = _fake_propagator(lambda t: FAR_AWAY_KM)
        with caplog.at_level(logging.WARNING, logger="ascentwatch.core.risk"):
            report = evaluate_risk(synthetic_catalog, launch, propagator=propagator)
        assert report.is_clear
        assert "endangered" not in caplog.text

    def test_events_only_on_cadence(self, launch, synthetic_catalog):
        vehicle = _vehicle_positions(launch)
        report = evaluate_risk(synthetic_catalog, launch, propagator=_fake_propagator(lambda t: vehicle[t]))
        assert len(report.events) == 241
        assert all(e.offset_s % 5 == 0 for e in report.events)

    def test_custom_cadence(self, launch, synthetic_catalog):
        vehicle = _vehicle_positions(launch)
        report = evaluate_risk(
            synthetic_catalog, launch, cadence_s=60, propagator=_fake_propagator(lambda t: vehicle[t])
        )
        assert [e.offset_s for e in report.events] == list(range(0, 1201, 60))
        assert len(report.trajectory) == 1201

    def test_invalid_positions_excluded(self, launch, synthetic_catalog):
        vehicle = _vehicle_positions(launch)
        propagator = _fake_propagator(lambda t: vehicle[t], valid_value=False)
        report = evaluate_risk(synthetic_catalog, launch, propagator=propagator)
        assert report.is_clear

    def test_threshold_configurable(self, launch, synthetic_catalog):
        vehicle = _vehicle_positions(launch)
        offset = np.array([30.0, 0.0, 0.0])
        propagator = _fake_propagator(lambda t: vehicle[t] + offset)

        wide = evaluate_risk(synthetic_catalog, launch, threshold_km=50.0, propagator=propagator)
        narrow = evaluate_risk(synthetic_catalog, launch, threshold_km=20.0, propagator=propagator)

        assert len(wide.events) == 241
        assert all(e.distance_km == pytest.approx(30.0) for e in wide.events)
        assert narrow.is_clear

    def test_idempotent(self, launch, real_catalog):
        first = evaluate_risk(real_catalog, launch, threshold_km=5000.0)
        second = evaluate_risk(real_catalog, launch, threshold_km=5000.0)

        np.testing.assert_array_equal(
            [s.position_eci_km for s in first.trajectory],
            [s.position_eci_km for s in second.trajectory],
        )
        assert [(e.offset_s, e.object_id, e.distance_km) for e in first.events] == [
            (e.offset_s, e.object_id, e.distance_km) for e in second.events
        ]

    def test_real_catalog_events_within_threshold(self, launch, real_catalog):
        report = evaluate_risk(real_catalog, launch, threshold_km=5000.0)
        for event in report.events:
            assert event.distance_km < 5000.0
            assert event.offset_s % 5 == 0
            assert event.object_id in {"25544", "20580"}
            distance = np.linalg.norm(event.object_position_km - event.vehicle_position_km)
            assert distance == pytest.approx(event.distance_km)


class TestScanProximity:
    def test_events_in_catalog_order(self, launch):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        catalog = Catalog([
            TrackedObject(tle, f"OBJ {k}", "Test", (1.0, 0.0, 0.0)) for k in range(3)
        ])
        sample = simulate_trajectory(launch)[100]

        def propagator(cat, times):
            positions = np.array([[sample.position_eci_km + [d, 0.0, 0.0]] for d in (10.0, 500.0, 1.0)])
            return positions, np.ones((3, 1), dtype=bool)

        events = scan_proximity(catalog, [sample], 50.0, propagator)
        assert [e.object_name for e in events] == ["OBJ 0", "OBJ 2"]
        assert [round(e.distance_km, 6) for e in events] == [10.0, 1.0]

    def test_no_samples(self, synthetic_catalog):
        assert scan_proximity(synthetic_catalog, []) == []


class TestRiskReport:
    def _event(self, offset: int, distance: float, object_id: str) -> RiskEvent:
        return RiskEvent(
            offset_s=offset,
            distance_km=distance,
            object_name=f"OBJ {object_id}",
            object_id=object_id,
            vehicle_position_km=np.zeros(3),
            object_position_km=np.zeros(3),
        )

    def test_closest_and_ids(self):
        report = RiskReport(
            trajectory=[],
            events=[self._event(5, 40.0, "1"), self._event(10, 12.5, "2"), self._event(15, 30.0, "1")],
        )
        assert not report.is_clear
        assert report.closest.distance_km == 12.5
        assert report.endangered_ids == {"1", "2"}
