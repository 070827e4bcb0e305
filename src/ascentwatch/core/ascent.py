"""Staged rocket ascent simulation.

The vehicle is reduced to scalar speed, altitude and downrange distance,
steered by a flight-path angle (90° straight up, 0° horizontal). Two powered
stages with linearly ramping thrust-to-weight ratio are followed by an
unpowered coast. The integrator is first-order forward Euler; each step
applies acceleration, then speed, then splits the speed into vertical and
horizontal parts and accumulates altitude and downrange, in that order.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np
from numpy.typing import NDArray

from ascentwatch.core.frames import datetime_from_ms, ecf_to_eci, geodetic_to_ecf, sidereal_angle
from ascentwatch.utils.constants import (
    INTEGRATION_STEP_S,
    METERS_PER_DEG_LON_EQUATOR,
    MISSION_DURATION_S,
    ORBITAL_VELOCITY_CEILING_M_S,
    STANDARD_GRAVITY_M_S2,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaunchRequest:
    """Where and when the vehicle lifts off.

    Attributes:
        latitude_deg: Geodetic latitude of the pad, strictly inside (-90, 90).
        longitude_deg: Longitude of the pad in [-180, 180].
        epoch: Liftoff time (UTC).
    """

    latitude_deg: float
    longitude_deg: float
    epoch: datetime

    def __post_init__(self) -> None:
        if not math.isfinite(self.latitude_deg) or not -90.0 < self.latitude_deg < 90.0:
            raise ValueError(f"Launch latitude must be inside (-90, 90): {self.latitude_deg}")
        if not math.isfinite(self.longitude_deg) or not -180.0 <= self.longitude_deg <= 180.0:
            raise ValueError(f"Launch longitude must be within [-180, 180]: {self.longitude_deg}")
        try:
            self.epoch + timedelta(seconds=MISSION_DURATION_S)
        except OverflowError as exc:
            raise ValueError(f"Launch epoch leaves no room for the mission: {self.epoch}") from exc

    @classmethod
    def from_epoch_ms(cls, latitude_deg: float, longitude_deg: float, epoch_ms: float) -> LaunchRequest:
        epoch = datetime_from_ms(epoch_ms)
        return cls(latitude_deg=float(latitude_deg), longitude_deg=float(longitude_deg), epoch=epoch)


@dataclass(frozen=True)
class AscentProfile:
    """Parameters of the two-stage ascent model.

    Attributes:
        stage1_end_s: End of the first-stage burn.
        stage2_end_s: End of the second-stage burn; coast follows.
        stage1_twr: Thrust-to-weight ratio at ignition and burnout of stage 1.
        stage2_twr: Thrust-to-weight ratio at ignition and burnout of stage 2.
        vertical_rise_m: Altitude the vehicle climbs straight up before pitching over.
        stage1_pitch_deg: Flight-path angle at the start and end of the stage-1 pitch program.
        stage2_pitch_deg: Flight-path angle at the start and end of stage 2.
        velocity_ceiling_m_s: Speed at which thrust stops being applied.
        duration_s: Simulated mission length.
        step_s: Integration step.
        g: Gravitational acceleration the thrust-to-weight ratios refer to.
    """

    stage1_end_s: float = 180.0
    stage2_end_s: float = 900.0
    stage1_twr: tuple[float, float] = (1.2, 3.5)
    stage2_twr: tuple[float, float] = (0.8, 4.0)
    vertical_rise_m: float = 500.0
    stage1_pitch_deg: tuple[float, float] = (90.0, 30.0)
    stage2_pitch_deg: tuple[float, float] = (30.0, 0.0)
    velocity_ceiling_m_s: float = ORBITAL_VELOCITY_CEILING_M_S
    duration_s: int = MISSION_DURATION_S
    step_s: int = INTEGRATION_STEP_S
    g: float = STANDARD_GRAVITY_M_S2

    def guidance(self, t: float, altitude_m: float) -> tuple[float, float]:
        """Commanded acceleration (m/s²) and flight-path angle (deg) at ``t``.

        ``altitude_m`` is the altitude reached so far; it only matters for the
        vertical-rise hold of stage 1.
        """
        if t < self.stage1_end_s:
            progress = t / self.stage1_end_s
            twr = _lerp(self.stage1_twr, progress)
            acceleration = twr * self.g - self.g
            if altitude_m > self.vertical_rise_m:
                pitch = _lerp(self.stage1_pitch_deg, progress)
            else:
                pitch = self.stage1_pitch_deg[0]
        elif t < self.stage2_end_s:
            progress = (t - self.stage1_end_s) / (self.stage2_end_s - self.stage1_end_s)
            # Vacuum stage: thrust along the flight path, no gravity loss.
            acceleration = _lerp(self.stage2_twr, progress) * self.g
            pitch = _lerp(self.stage2_pitch_deg, progress)
        else:
            acceleration = 0.0
            pitch = 0.0
        return acceleration, pitch


DEFAULT_PROFILE = AscentProfile()


@dataclass(frozen=True)
class AscentState:
    """Integrator state after the step ending at ``offset_s``."""

    offset_s: int
    speed_m_s: float
    altitude_m: float
    downrange_m: float
    pitch_deg: float
    acceleration_m_s2: float


@dataclass(frozen=True)
class TrajectorySample:
    """One point of the simulated flight path.

    Attributes:
        offset_s: Seconds after liftoff.
        epoch: Absolute time of the sample.
        latitude_deg: Geodetic latitude.
        longitude_deg: Longitude, not wrapped to [-180, 180].
        altitude_km: Height above the ellipsoid.
        position_eci_km: Vehicle position in the inertial frame.
        state: Integrator state the sample was projected from.
    """

    offset_s: int
    epoch: datetime
    latitude_deg: float
    longitude_deg: float
    altitude_km: float
    position_eci_km: NDArray[np.float64]
    state: AscentState


def _lerp(bounds: tuple[float, float], progress: float) -> float:
    start, end = bounds
    return start + (end - start) * progress


def integrate_ascent(profile: AscentProfile = DEFAULT_PROFILE) -> list[AscentState]:
    """Integrate the ascent over the whole mission.

    Returns one state per step for offsets ``0, step, ..., duration``; each
    state is the vehicle after the step at that offset has been applied.
    """
    dt = profile.step_s
    speed = 0.0
    altitude = 0.0
    downrange = 0.0
    coasting = False
    states: list[AscentState] = []

    for t in range(0, profile.duration_s + 1, dt):
        acceleration, pitch = profile.guidance(t, altitude)

        if speed >= profile.velocity_ceiling_m_s:
            coasting = True
        if coasting:
            acceleration = 0.0

        speed = min(speed + acceleration * dt, profile.velocity_ceiling_m_s)

        pitch_rad = math.radians(pitch)
        vertical = speed * math.sin(pitch_rad)
        horizontal = speed * math.cos(pitch_rad)

        altitude += vertical * dt
        downrange += horizontal * dt

        states.append(AscentState(
            offset_s=t,
            speed_m_s=speed,
            altitude_m=altitude,
            downrange_m=downrange,
            pitch_deg=pitch,
            acceleration_m_s2=acceleration,
        ))

    logger.debug(
        "Integrated %d ascent steps: final speed %.1f m/s, altitude %.1f km",
        len(states), speed, altitude / 1000.0,
    )
    return states


def project_trajectory(launch: LaunchRequest, states: list[AscentState]) -> list[TrajectorySample]:
    """Place integrator states over the Earth and express them in ECI.

    Latitude stays at the pad's; longitude advances eastward by downrange
    distance over a flat-Earth meters-per-degree factor at that latitude.
    """
    lat_rad = math.radians(launch.latitude_deg)
    meters_per_deg_lon = METERS_PER_DEG_LON_EQUATOR * math.cos(lat_rad)

    samples: list[TrajectorySample] = []
    for state in states:
        epoch = launch.epoch + timedelta(seconds=state.offset_s)
        longitude_deg = launch.longitude_deg + state.downrange_m / meters_per_deg_lon
        altitude_km = state.altitude_m / 1000.0

        position_ecf = geodetic_to_ecf(lat_rad, math.radians(longitude_deg), altitude_km)
        position_eci = ecf_to_eci(position_ecf, sidereal_angle(epoch))

        samples.append(TrajectorySample(
            offset_s=state.offset_s,
            epoch=epoch,
            latitude_deg=launch.latitude_deg,
            longitude_deg=longitude_deg,
            altitude_km=altitude_km,
            position_eci_km=position_eci,
            state=state,
        ))
    return samples


def simulate_trajectory(
    launch: LaunchRequest, profile: AscentProfile = DEFAULT_PROFILE
) -> list[TrajectorySample]:
    """Integrate the ascent and project it for a given launch."""
    return project_trajectory(launch, integrate_ascent(profile))
