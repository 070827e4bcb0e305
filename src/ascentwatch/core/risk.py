"""Launch risk evaluation: close approaches between an ascending vehicle and the catalog."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from ascentwatch.core.ascent import (
    DEFAULT_PROFILE,
    AscentProfile,
    LaunchRequest,
    TrajectorySample,
    simulate_trajectory,
)
from ascentwatch.core.catalog import Catalog
from ascentwatch.core.propagation import propagate_many
from ascentwatch.utils.constants import DEFAULT_RISK_CADENCE_S, DEFAULT_RISK_THRESHOLD_KM

logger = logging.getLogger(__name__)

Propagator = Callable[[Catalog, Sequence[datetime]], tuple[NDArray[np.float64], NDArray[np.bool_]]]


@dataclass
class RiskEvent:
    """A cataloged object found too close to the vehicle at a checked instant.

    Attributes:
        offset_s: Seconds after liftoff.
        distance_km: Vehicle-to-object distance in km.
        object_name: Name of the endangered object.
        object_id: Catalog number of the endangered object.
        vehicle_position_km: Vehicle ECI position.
        object_position_km: Object ECI position at the same instant.
    """

    offset_s: int
    distance_km: float
    object_name: str
    object_id: str
    vehicle_position_km: NDArray[np.float64]
    object_position_km: NDArray[np.float64]


@dataclass
class RiskReport:
    """Flight path of one simulated launch and the close approaches found on it."""

    trajectory: list[TrajectorySample]
    events: list[RiskEvent] = field(default_factory=list)

    @property
    def is_clear(self) -> bool:
        return not self.events

    @property
    def closest(self) -> RiskEvent | None:
        if not self.events:
            return None
        return min(self.events, key=lambda e: e.distance_km)

    @property
    def endangered_ids(self) -> set[str]:
        return {e.object_id for e in self.events}


def risk_instants(
    trajectory: Sequence[TrajectorySample], cadence_s: int = DEFAULT_RISK_CADENCE_S
) -> list[TrajectorySample]:
    """Samples whose offset is an exact multiple of ``cadence_s``."""
    if cadence_s <= 0:
        raise ValueError(f"Risk cadence must be positive: {cadence_s}")
    return [s for s in trajectory if s.offset_s % cadence_s == 0]


def scan_proximity(
    catalog: Catalog,
    samples: Sequence[TrajectorySample],
    threshold_km: float = DEFAULT_RISK_THRESHOLD_KM,
    propagator: Propagator = propagate_many,
) -> list[RiskEvent]:
    """Check each sample against the positions of every catalog member.

    Members are propagated to all sample instants in one batch. At each
    instant the valid member positions are indexed in a KD-tree and queried
    for neighbors of the vehicle within ``threshold_km``. Members with no
    position at an instant are left out of that instant.

    Args:
        catalog: Objects to check against.
        samples: Vehicle samples to check.
        threshold_km: Distance below which a risk event is raised.
        propagator: Batch propagator returning (n, m, 3) positions and an
            (n, m) validity mask for n members and m instants.

    Returns:
        Risk events in sample order, then catalog order.
    """
    if len(catalog) == 0 or not samples:
        return []

    positions, valid = propagator(catalog, [s.epoch for s in samples])

    events: list[RiskEvent] = []
    for j, sample in enumerate(samples):
        idx_map = np.where(valid[:, j])[0]
        if len(idx_map) == 0:
            continue

        tree = cKDTree(positions[idx_map, j, :])
        vehicle = sample.position_eci_km
        for k in sorted(tree.query_ball_point(vehicle, threshold_km)):
            i = int(idx_map[k])
            obj_pos = positions[i, j, :]
            distance = float(np.linalg.norm(obj_pos - vehicle))
            if distance >= threshold_km:
                continue
            obj = catalog[i]
            events.append(RiskEvent(
                offset_s=sample.offset_s,
                distance_km=distance,
                object_name=obj.name,
                object_id=obj.catalog_number,
                vehicle_position_km=vehicle.copy(),
                object_position_km=obj_pos.copy(),
            ))

    logger.debug("Scanned %d instants against %d objects", len(samples), len(catalog))
    return events


def evaluate_risk(
    catalog: Catalog,
    launch: LaunchRequest,
    threshold_km: float = DEFAULT_RISK_THRESHOLD_KM,
    cadence_s: int = DEFAULT_RISK_CADENCE_S,
    profile: AscentProfile = DEFAULT_PROFILE,
    propagator: Propagator = propagate_many,
) -> RiskReport:
    """Simulate a launch and flag every close approach with the catalog.

    The trajectory is integrated on the profile's step for the whole
    mission; the catalog is only checked at offsets that are multiples of
    ``cadence_s``. The full trajectory is returned either way.

    Args:
        catalog: Catalog snapshot to check against.
        launch: Pad location and liftoff time.
        threshold_km: Risk distance threshold in km.
        cadence_s: Spacing of checked instants in seconds.
        profile: Ascent model parameters.
        propagator: Batch propagator, see :func:`scan_proximity`.

    Returns:
        RiskReport with the trajectory and risk events.
    """
    trajectory = simulate_trajectory(launch, profile)
    checked = risk_instants(trajectory, cadence_s)
    report = RiskReport(trajectory=trajectory, events=scan_proximity(catalog, checked, threshold_km, propagator))

    logger.info(
        "Launch at (%.3f, %.3f) %s: %d risk events against %d objects (%d instants, %.1f km threshold)",
        launch.latitude_deg, launch.longitude_deg, launch.epoch.isoformat(),
        len(report.events), len(catalog), len(checked), threshold_km,
    )
    if not report.is_clear:
        closest = report.closest
        logger.warning(
            "%d objects endangered; closest %s (%s) at %.2f km, T+%d s",
            len(report.endangered_ids), closest.object_name, closest.object_id,
            closest.distance_km, closest.offset_s,
        )
    return report
