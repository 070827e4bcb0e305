"""TLE (Two-Line Element) parsing.

This module wraps the sgp4 library's element-set parser with a small
immutable record that the catalog and propagation layers share.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sgp4.api import Satrec, WGS72

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


@dataclass(frozen=True)
class TLE:
    """A parsed Two-Line Element set.

    Attributes:
        name: Object name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        catalog_number: Catalog number as written on line 2. Kept as text,
            since it may be zero-padded or use the alpha-5 scheme.
        epoch: Epoch as a UTC datetime.
        satrec: Underlying sgp4 Satrec object for propagation.
    """

    name: str
    line1: str
    line2: str
    catalog_number: str
    epoch: datetime
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> TLE:
        """Parse a TLE from two (or three) lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional object name (line 0).

        Returns:
            A parsed TLE object.

        Raises:
            ValueError: If the TLE lines are malformed or sgp4 rejects them.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != TLE_LINE_LENGTH or not line1.startswith("1"):
            logger.debug("Invalid TLE line 1: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != TLE_LINE_LENGTH or not line2.startswith("2"):
            logger.debug("Invalid TLE line 2: %r", line2)
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        sat = Satrec.twoline2rv(line1, line2, WGS72)
        if sat.error != 0:
            raise ValueError(f"sgp4 rejected element set (error code {sat.error}): {line2!r}")

        try:
            year = int(line1[18:20])
            day_of_year = float(line1[20:32])
        except ValueError as exc:
            raise ValueError(f"Invalid TLE epoch: {line1[18:32]!r}") from exc
        year = year + 2000 if year < 57 else year + 1900
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=day_of_year - 1
        )

        # Second whitespace token of line 2, taken verbatim.
        tokens = line2.split()
        if len(tokens) < 2:
            raise ValueError(f"Missing catalog number on TLE line 2: {line2!r}")
        catalog_number = tokens[1]

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            catalog_number=catalog_number,
            epoch=epoch,
            satrec=sat,
        )
