from __future__ import annotations

"""Physical constants and default parameters for ascent risk evaluation.

All values in SI units unless otherwise noted.
"""

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_POLAR_RADIUS_KM: float = 6356.7523142
"""Polar radius of Earth in km."""

EARTH_FLATTENING: float = (EARTH_RADIUS_KM - EARTH_POLAR_RADIUS_KM) / EARTH_RADIUS_KM
"""Ellipsoid flattening (dimensionless)."""

EARTH_ECCENTRICITY_SQ: float = 2 * EARTH_FLATTENING - EARTH_FLATTENING ** 2
"""Square of the first eccentricity of the ellipsoid."""

STANDARD_GRAVITY_M_S2: float = 9.81
"""Standard gravitational acceleration in m/s²."""

METERS_PER_DEG_LON_EQUATOR: float = 111319.0
"""Length of one degree of longitude at the equator in meters."""

# --- Ascent simulation ---
MISSION_DURATION_S: int = 1200
"""Simulated ascent duration in seconds."""

INTEGRATION_STEP_S: int = 1
"""Ascent integrator time step in seconds."""

ORBITAL_VELOCITY_CEILING_M_S: float = 7800.0
"""Speed above which thrust is no longer applied, in m/s."""

# --- Risk screening ---
DEFAULT_RISK_THRESHOLD_KM: float = 50.0
"""Vehicle-to-object distance below which a risk event is raised, in km."""

DEFAULT_RISK_CADENCE_S: int = 5
"""Spacing of the instants checked against the catalog, in seconds."""

# --- Wire format ---
NO_DATA_POSITION_KM: float = 99999.0
"""Coordinate reported to hosts for objects that failed to propagate."""
