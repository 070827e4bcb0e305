"""Time and reference-frame conversions.

Geodetic coordinates are converted to Earth-centered fixed (ECF) on the WGS-84
ellipsoid, and ECF is rotated into the inertial frame the SGP4 propagator
reports in using Greenwich mean sidereal time.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray
from sgp4.api import jday
from sgp4.propagation import gstime

from ascentwatch.utils.constants import EARTH_ECCENTRICITY_SQ, EARTH_RADIUS_KM


def julian_date(t: datetime) -> tuple[float, float]:
    """Split Julian date (whole, fraction) of a UTC datetime, as sgp4 expects."""
    if t.tzinfo is not None:
        t = t.astimezone(timezone.utc)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def datetime_from_ms(epoch_ms: float) -> datetime:
    """UTC datetime of a Unix epoch in milliseconds.

    Raises:
        ValueError: If ``epoch_ms`` is not finite or falls outside the
            range a datetime can hold.
    """
    try:
        return datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Epoch out of range: {epoch_ms!r} ms") from exc


def sidereal_angle(t: datetime) -> float:
    """Greenwich mean sidereal time at ``t``, in radians within [0, 2π)."""
    jd, fr = julian_date(t)
    return gstime(jd + fr)


def geodetic_to_ecf(latitude_rad: float, longitude_rad: float, height_km: float) -> NDArray[np.float64]:
    """Convert a geodetic point on the WGS-84 ellipsoid to ECF km."""
    sin_lat = math.sin(latitude_rad)
    cos_lat = math.cos(latitude_rad)
    normal = EARTH_RADIUS_KM / math.sqrt(1.0 - EARTH_ECCENTRICITY_SQ * sin_lat * sin_lat)
    return np.array([
        (normal + height_km) * cos_lat * math.cos(longitude_rad),
        (normal + height_km) * cos_lat * math.sin(longitude_rad),
        (normal * (1.0 - EARTH_ECCENTRICITY_SQ) + height_km) * sin_lat,
    ], dtype=np.float64)


def ecf_to_eci(position_ecf: NDArray[np.float64], gmst: float) -> NDArray[np.float64]:
    """Rotate an ECF position into ECI by the sidereal angle ``gmst``."""
    c = math.cos(gmst)
    s = math.sin(gmst)
    x, y, z = position_ecf
    return np.array([c * x - s * y, s * x + c * y, z], dtype=np.float64)
