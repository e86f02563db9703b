"""
spatial_index.py — Bounding-box tree over indexed polygons.

The tree is a Shapely STRtree (sort-tile-recursive R-tree) packed once from
the full entry list. Each entry is represented in the tree by the box of its
envelope, so the tree answers "which envelopes touch this point?" and the
exact polygon test is left to the caller.
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, Sequence

from shapely.geometry import Point, box
from shapely.strtree import STRtree

from polygon_lookup.geometry import IndexedPolygon

logger = logging.getLogger(__name__)


class SpatialIndex:
    """
    Immutable envelope index over a fixed collection of IndexedPolygons.

    Build it with :meth:`build`; there is no insert or remove.
    """

    __slots__ = ("_entries", "_tree")

    def __init__(self, entries: Sequence[IndexedPolygon], tree: STRtree) -> None:
        self._entries = tuple(entries)
        self._tree = tree

    @classmethod
    def build(cls, entries: Sequence[IndexedPolygon]) -> SpatialIndex:
        """
        Bulk-load the tree from the complete entry list.

        Args:
            entries: All polygons to index, in insertion order.

        Returns:
            A SpatialIndex over ``entries``.
        """
        entries = tuple(entries)
        tree = STRtree([box(*entry.envelope.bounds) for entry in entries])
        logger.debug("Packed STRtree with %d envelopes.", len(entries))
        return cls(entries, tree)

    def query_at_point(self, x: float, y: float) -> Iterator[IndexedPolygon]:
        """
        Yield every entry whose envelope contains or touches (x, y).

        This is a pre-filter: entries whose polygon does not contain the
        point may be yielded. Entries come out in insertion order.
        Non-finite coordinates match nothing.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            return
        hits = self._tree.query(Point(x, y))
        for idx in sorted(int(i) for i in hits):
            entry = self._entries[idx]
            if entry.envelope.contains_point(x, y):
                yield entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IndexedPolygon]:
        return iter(self._entries)
