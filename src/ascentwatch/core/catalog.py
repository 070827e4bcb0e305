"""Catalog of tracked objects.

A catalog is built once from the raw text of every source and never mutated
afterwards. Its ordering is significant: every buffer handed to the host is
aligned with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator

import numpy as np
from numpy.typing import NDArray

from ascentwatch.core.tle import TLE

if TYPE_CHECKING:
    from ascentwatch.data.celestrak import CatalogSource, CelesTrakClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedObject:
    """A cataloged satellite or debris fragment.

    Attributes:
        tle: Parsed element set, consumed by the propagator.
        name: Display name.
        source: Source-category label (e.g. "Fengyun 1C Debris").
        color: RGB display color.
    """

    tle: TLE
    name: str
    source: str
    color: tuple[float, float, float]

    @property
    def catalog_number(self) -> str:
        return self.tle.catalog_number


@dataclass(frozen=True)
class RejectedRecord:
    """A source record that did not make it into the catalog."""

    source: str
    index: int  # position of the name line among the source's non-blank lines
    name: str
    reason: str


class Catalog:
    """Ordered, immutable sequence of tracked objects."""

    __slots__ = ("_objects",)

    def __init__(self, objects: Iterable[TrackedObject] = ()) -> None:
        self._objects: tuple[TrackedObject, ...] = tuple(objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[TrackedObject]:
        return iter(self._objects)

    def __getitem__(self, index: int) -> TrackedObject:
        return self._objects[index]

    def __repr__(self) -> str:
        return f"Catalog({len(self._objects)} objects)"

    def metadata(self) -> list[dict[str, str]]:
        """Per-object ``{name, type, id}`` records in catalog order."""
        return [
            {"name": obj.name, "type": obj.source, "id": obj.catalog_number}
            for obj in self._objects
        ]

    def color_buffer(self) -> NDArray[np.float32]:
        """Flat RGB buffer, three floats per object in catalog order."""
        if not self._objects:
            return np.empty(0, dtype=np.float32)
        return np.array([obj.color for obj in self._objects], dtype=np.float32).ravel()


@dataclass(frozen=True)
class LoadResult:
    """Outcome of building a catalog: what was kept and what was dropped."""

    catalog: Catalog
    rejected: tuple[RejectedRecord, ...] = field(default=())

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    def summary(self) -> dict:
        """Host-facing description of the loaded catalog."""
        return {
            "count": len(self.catalog),
            "colorBuffer": self.catalog.color_buffer(),
            "metadata": self.catalog.metadata(),
            "rejected": self.rejected_count,
        }


def parse_source(
    text: str, source: str, color: tuple[float, float, float]
) -> tuple[list[TrackedObject], list[RejectedRecord]]:
    """Parse one source's raw TLE text into tracked objects.

    Non-blank lines are taken three at a time (name, line 1, line 2) from the
    first line on. Trailing lines that do not fill a group are ignored. Groups
    whose element lines do not parse are skipped and reported as rejected.

    Args:
        text: Raw TLE text.
        source: Source-category label given to every object.
        color: Display color given to every object.

    Returns:
        Tuple of (parsed objects in text order, rejected records).
    """
    lines = [l.rstrip() for l in text.splitlines() if l.strip()]
    objects: list[TrackedObject] = []
    rejected: list[RejectedRecord] = []

    for i in range(0, len(lines) - 2, 3):
        name = lines[i].strip()
        try:
            tle = TLE.from_lines(lines[i + 1], lines[i + 2], name=name)
        except ValueError as exc:
            rejected.append(RejectedRecord(source=source, index=i, name=name, reason=str(exc)))
            continue
        objects.append(TrackedObject(tle=tle, name=name, source=source, color=tuple(color)))

    logger.debug("Parsed %d objects from %s (%d rejected)", len(objects), source, len(rejected))
    return objects, rejected


def build_catalog(fetched: Iterable[tuple[CatalogSource, str]]) -> LoadResult:
    """Build a catalog from the raw text of several sources.

    Objects keep their source order, then their order within the source. A
    catalog number seen earlier wins; later duplicates are rejected.

    Args:
        fetched: (source, raw text) pairs, in catalog order.

    Returns:
        A LoadResult with the new catalog and every rejected record.
    """
    objects: list[TrackedObject] = []
    rejected: list[RejectedRecord] = []
    seen: set[str] = set()

    for source, text in fetched:
        parsed, dropped = parse_source(text, source.name, source.color)
        rejected.extend(dropped)
        for obj in parsed:
            if obj.catalog_number in seen:
                rejected.append(
                    RejectedRecord(
                        source=source.name,
                        index=-1,
                        name=obj.name,
                        reason=f"duplicate catalog number {obj.catalog_number}",
                    )
                )
                continue
            seen.add(obj.catalog_number)
            objects.append(obj)

    if rejected:
        logger.warning("Dropped %d malformed or duplicate element sets", len(rejected))
    logger.info("Built catalog with %d objects", len(objects))
    return LoadResult(catalog=Catalog(objects), rejected=tuple(rejected))


class CatalogStore:
    """Owner of the current catalog snapshot.

    Readers take :meth:`snapshot` once per request and work on that value;
    a refresh swaps in a whole new catalog with a single reference
    assignment, so a reader sees either the old or the new catalog.
    """

    def __init__(self, catalog: Catalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else Catalog()

    def snapshot(self) -> Catalog:
        return self._catalog

    def replace(self, catalog: Catalog) -> None:
        self._catalog = catalog

    def refresh(
        self, client: CelesTrakClient, sources: Iterable[CatalogSource]
    ) -> LoadResult:
        """Fetch all sources, rebuild the catalog and swap it in.

        Raises:
            CatalogLoadError: If any source fails; the current catalog is kept.
        """
        fetched = client.fetch_all(list(sources))
        result = build_catalog(fetched)
        self.replace(result.catalog)
        return result
