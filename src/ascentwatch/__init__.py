"""
ascentwatch: launch ascent collision-risk screening for Python.

Propagates a catalog of tracked satellites and debris with SGP4 and checks
a simulated two-stage rocket ascent against it for close approaches.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from ascentwatch.core.tle import TLE
from ascentwatch.core.catalog import Catalog, CatalogStore, LoadResult, TrackedObject, build_catalog
from ascentwatch.core.propagation import propagate_all, propagate_many, PropagationResult
from ascentwatch.core.ascent import AscentProfile, LaunchRequest, TrajectorySample, simulate_trajectory
from ascentwatch.core.risk import RiskEvent, RiskReport, evaluate_risk
from ascentwatch.data.celestrak import CatalogLoadError, CatalogSource, CelesTrakClient, DEFAULT_SOURCES
from ascentwatch.api.engine import Engine, RequestType

__all__ = [
    "__version__",
    "TLE",
    "Catalog",
    "CatalogStore",
    "LoadResult",
    "TrackedObject",
    "build_catalog",
    "propagate_all",
    "propagate_many",
    "PropagationResult",
    "AscentProfile",
    "LaunchRequest",
    "TrajectorySample",
    "simulate_trajectory",
    "RiskEvent",
    "RiskReport",
    "evaluate_risk",
    "CatalogLoadError",
    "CatalogSource",
    "CelesTrakClient",
    "DEFAULT_SOURCES",
    "Engine",
    "RequestType",
]
