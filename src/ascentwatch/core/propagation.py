"""Orbital propagation via SGP4."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import NDArray
from sgp4.api import SatrecArray

from ascentwatch.core.catalog import Catalog
from ascentwatch.core.frames import julian_date, sidereal_angle


@dataclass
class PropagationResult:
    """Positions of a whole catalog at one instant.

    Attributes:
        positions_km: Array of shape (n, 3), aligned with catalog order.
            Rows where ``valid`` is False carry no data.
        valid: Boolean array of shape (n,).
        sidereal_angle: Greenwich mean sidereal time at the instant, radians.
        epoch: The instant propagated to.
    """

    positions_km: NDArray[np.float64]
    valid: NDArray[np.bool_]
    sidereal_angle: float
    epoch: datetime

    def __len__(self) -> int:
        return len(self.valid)


def propagate_many(
    catalog: Catalog, times: Sequence[datetime]
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Propagate every catalog member to every requested time.

    Uses SatrecArray for C-level batch propagation across members.

    Args:
        catalog: Objects to propagate.
        times: UTC datetimes to propagate to.

    Returns:
        Tuple of:
            - positions: Array of shape (n, m, 3) in km
            - valid_mask: Boolean array of shape (n, m) indicating which
              propagations succeeded
    """
    n, m = len(catalog), len(times)
    if n == 0 or m == 0:
        return np.empty((n, m, 3), dtype=np.float64), np.empty((n, m), dtype=np.bool_)

    satrec_array = SatrecArray([obj.tle.satrec for obj in catalog])

    jd = np.empty(m, dtype=np.float64)
    fr = np.empty(m, dtype=np.float64)
    for j, t in enumerate(times):
        jd[j], fr[j] = julian_date(t)

    # errors (n, m), positions (n, m, 3), velocities (n, m, 3)
    errors, positions, _ = satrec_array.sgp4(jd, fr)

    valid_mask = (errors == 0) & np.all(np.isfinite(positions), axis=2)

    failed = int(np.count_nonzero(~valid_mask))
    if failed:
        logger.debug("%d of %d propagations returned no position", failed, n * m)
    return positions, valid_mask


def propagate_all(catalog: Catalog, time: datetime) -> PropagationResult:
    """Propagate a whole catalog to a single instant.

    Members that fail to propagate keep their slot with ``valid`` False, so
    the result stays aligned with catalog order.

    Args:
        catalog: Objects to propagate.
        time: UTC datetime to propagate all objects to.

    Returns:
        A PropagationResult with one row per catalog member.
    """
    positions, valid = propagate_many(catalog, [time])
    result = PropagationResult(
        positions_km=positions[:, 0, :],
        valid=valid[:, 0],
        sidereal_angle=sidereal_angle(time),
        epoch=time,
    )
    logger.debug("Propagated %d objects to %s", len(catalog), time.isoformat())
    return result
