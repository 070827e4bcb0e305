"""CelesTrak catalog client.

Fetches the raw two-line element text of every configured catalog source.
Sources are fetched concurrently and joined before anything is parsed; a
single unreachable source aborts the whole fetch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import requests

logger = logging.getLogger(__name__)


class CatalogLoadError(RuntimeError):
    """Raised when a catalog source cannot be fetched.

    Attributes:
        source_name: Name of the source that failed.
    """

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name


@dataclass(frozen=True)
class CatalogSource:
    """A named TLE catalog and how to display its members.

    Attributes:
        name: Source-category label shown to the host (e.g. "Active Sats").
        url: Location of the TLE text.
        color: RGB display color, each channel in [0, 1].
    """

    name: str
    url: str
    color: tuple[float, float, float]


_GP_URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP={group}&FORMAT=tle"

DEFAULT_SOURCES: tuple[CatalogSource, ...] = (
    CatalogSource("Active Sats", _GP_URL.format(group="active"), (0.0, 1.0, 0.0)),
    CatalogSource("Fengyun 1C Debris", _GP_URL.format(group="1999-025"), (1.0, 0.0, 0.0)),
    CatalogSource("Iridium 33 Debris", _GP_URL.format(group="iridium-33"), (1.0, 0.0, 0.0)),
    CatalogSource("Cosmos 2251 Debris", _GP_URL.format(group="cosmos-2251-debris"), (1.0, 0.0, 0.0)),
)


@dataclass
class CelesTrakClient:
    """Client for CelesTrak GP element-set downloads.

    Attributes:
        timeout_s: Per-request timeout in seconds.
        max_workers: Upper bound on concurrent downloads.
    """

    timeout_s: float = 30.0
    max_workers: int = 4
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    def fetch_source(self, source: CatalogSource) -> str:
        """Download the raw TLE text of one source.

        Args:
            source: The catalog source to fetch.

        Returns:
            Response text.

        Raises:
            CatalogLoadError: If the request fails or returns an error status.
        """
        try:
            response = self._session.get(source.url, timeout=self.timeout_s)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Fetching %s from %s failed: %s", source.name, source.url, exc)
            raise CatalogLoadError(source.name, str(exc)) from exc

        logger.debug("Fetched %s (%d bytes)", source.name, len(response.text))
        return response.text

    def fetch_all(
        self, sources: tuple[CatalogSource, ...] | list[CatalogSource] = DEFAULT_SOURCES
    ) -> list[tuple[CatalogSource, str]]:
        """Fetch every source concurrently.

        Args:
            sources: Sources to fetch, in catalog order.

        Returns:
            List of (source, text) pairs in the order of ``sources``.

        Raises:
            CatalogLoadError: If any source fails. No partial result is returned.
        """
        if not sources:
            return []

        workers = max(1, min(self.max_workers, len(sources)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            texts = list(pool.map(self.fetch_source, sources))

        logger.info("Fetched %d catalog sources", len(texts))
        return list(zip(sources, texts))
