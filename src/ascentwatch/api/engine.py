"""Request/response surface of the propagation and risk engine.

A host talks to the engine with plain dict messages, one response per
request:

* ``{"type": "REFRESH_CATALOG"}`` -> ``READY`` with count, color buffer and metadata
* ``{"type": "PROPAGATE", "instant": ...}`` -> ``POSITIONS`` with a position
  buffer and the sidereal angle
* ``{"type": "EVALUATE_RISK", "launchLatitudeDeg": ..., "launchLongitudeDeg": ...,
  "launchEpochMs": ...}`` -> ``RISK_RESULT`` with risk events and the trajectory

Anything the engine cannot serve is answered with an ``ERROR`` message.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ascentwatch.core.ascent import LaunchRequest
from ascentwatch.core.catalog import Catalog, CatalogStore
from ascentwatch.core.frames import datetime_from_ms
from ascentwatch.core.propagation import PropagationResult, propagate_all
from ascentwatch.core.risk import RiskEvent, RiskReport, evaluate_risk
from ascentwatch.data.celestrak import (
    DEFAULT_SOURCES,
    CatalogLoadError,
    CatalogSource,
    CelesTrakClient,
)
from ascentwatch.utils.constants import (
    DEFAULT_RISK_CADENCE_S,
    DEFAULT_RISK_THRESHOLD_KM,
    NO_DATA_POSITION_KM,
)

logger = logging.getLogger(__name__)


class RequestType(str, Enum):
    """Requests a host may send."""

    REFRESH_CATALOG = "REFRESH_CATALOG"
    PROPAGATE = "PROPAGATE"
    EVALUATE_RISK = "EVALUATE_RISK"


def position_buffer(result: PropagationResult) -> NDArray[np.float32]:
    """Flatten propagated positions, writing the no-data marker into failed slots."""
    positions = np.array(result.positions_km, dtype=np.float32).reshape(-1, 3)
    positions[~result.valid] = NO_DATA_POSITION_KM
    return positions.ravel()


def _instant(value: Any) -> datetime:
    """Accept a datetime, an ISO-8601 string or epoch milliseconds."""
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime_from_ms(value)
    raise ValueError(f"Unsupported instant: {value!r}")


def _event_to_wire(event: RiskEvent) -> dict[str, Any]:
    return {
        "timeOffsetSec": event.offset_s,
        "distanceKm": event.distance_km,
        "objectName": event.object_name,
        "objectId": event.object_id,
        "vehiclePositionEci": event.vehicle_position_km.tolist(),
        "objectPositionEci": event.object_position_km.tolist(),
    }


def report_to_wire(report: RiskReport) -> dict[str, Any]:
    return {
        "type": "RISK_RESULT",
        "riskEvents": [_event_to_wire(e) for e in report.events],
        "trajectory": [s.position_eci_km.tolist() for s in report.trajectory],
    }


def _error(message: str) -> dict[str, Any]:
    return {"type": "ERROR", "message": message}


@dataclass
class Engine:
    """Owns the catalog and serves host requests against it.

    Attributes:
        sources: Catalog sources fetched on refresh, in catalog order.
        client: HTTP client used to fetch the sources.
        threshold_km: Risk distance threshold.
        cadence_s: Spacing of the instants checked for risk.
        store: Holder of the current catalog snapshot.
    """

    sources: tuple[CatalogSource, ...] = DEFAULT_SOURCES
    client: CelesTrakClient = field(default_factory=CelesTrakClient)
    threshold_km: float = DEFAULT_RISK_THRESHOLD_KM
    cadence_s: int = DEFAULT_RISK_CADENCE_S
    store: CatalogStore = field(default_factory=CatalogStore)

    @property
    def catalog(self) -> Catalog:
        return self.store.snapshot()

    def refresh_catalog(self) -> dict[str, Any]:
        """Fetch every source and replace the catalog.

        Raises:
            CatalogLoadError: If any source fails. The old catalog stays.
        """
        result = self.store.refresh(self.client, self.sources)
        return {"type": "READY", **result.summary()}

    def propagate(self, instant: datetime) -> dict[str, Any]:
        result = propagate_all(self.catalog, instant)
        return {
            "type": "POSITIONS",
            "positionBuffer": position_buffer(result),
            "siderealAngle": result.sidereal_angle,
        }

    def evaluate_risk(self, latitude_deg: float, longitude_deg: float, epoch_ms: float) -> dict[str, Any]:
        launch = LaunchRequest.from_epoch_ms(latitude_deg, longitude_deg, epoch_ms)
        report = evaluate_risk(
            self.catalog, launch, threshold_km=self.threshold_km, cadence_s=self.cadence_s
        )
        return report_to_wire(report)

    def handle(self, message: dict[str, Any]) -> dict[str, Any]:
        """Serve one request message and build its response message."""
        kind = message.get("type")
        try:
            request = RequestType(kind)
        except ValueError:
            logger.warning("Unrecognized request type: %r", kind)
            return _error(f"Unrecognized request type: {kind!r}")

        try:
            if request is RequestType.REFRESH_CATALOG:
                return self.refresh_catalog()
            if request is RequestType.PROPAGATE:
                return self.propagate(_instant(message.get("instant")))
            return self.evaluate_risk(
                message["launchLatitudeDeg"],
                message["launchLongitudeDeg"],
                message["launchEpochMs"],
            )
        except CatalogLoadError as exc:
            logger.error("Catalog refresh failed: %s", exc)
            return _error(f"Catalog refresh failed: {exc}")
        except KeyError as exc:
            logger.warning("%s request missing field %s", request.value, exc)
            return _error(f"{request.value} request missing field {exc}")
        except (TypeError, ValueError) as exc:
            logger.warning("Bad %s request: %s", request.value, exc)
            return _error(f"Bad {request.value} request: {exc}")

    def serve(self, inbox: queue.Queue, outbox: queue.Queue) -> None:
        """Answer requests from ``inbox`` into ``outbox`` until ``None`` arrives."""
        while True:
            message = inbox.get()
            if message is None:
                break
            outbox.put(self.handle(message))
        logger.debug("Engine loop stopped")
