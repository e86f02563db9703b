"""
geometry.py — Polygon assembly and envelopes for the spatial index.

Responsible for:
    - Modelling rings, polygons (exterior + holes) and their bounding boxes.
    - Assembling the ordered rings of one shapefile shape into polygons,
      attaching each hole to the outer ring that precedes it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from polygon_lookup.raycast import Coordinate, point_in_polygon

logger = logging.getLogger(__name__)

AttributeRecord = dict[str, Any]


class EmptyRingError(ValueError):
    """Raised when a polygon is built from an exterior ring with no vertices."""


class RingKind(enum.Enum):
    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True)
class Ring:
    """One closed loop of a shape boundary, tagged as outer or inner (hole)."""
    kind:   RingKind
    coords: tuple[Coordinate, ...]

    @classmethod
    def outer(cls, coords: Iterable[Sequence[float]]) -> Ring:
        return cls(RingKind.OUTER, _as_coords(coords))

    @classmethod
    def inner(cls, coords: Iterable[Sequence[float]]) -> Ring:
        return cls(RingKind.INNER, _as_coords(coords))


def _as_coords(points: Iterable[Sequence[float]]) -> tuple[Coordinate, ...]:
    # Z/M ordinates, if any, are dropped
    return tuple((float(pt[0]), float(pt[1])) for pt in points)


# ── Envelope ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Envelope:
    """Axis-aligned bounding box with inclusive bounds."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def of(cls, coords: Sequence[Coordinate]) -> Envelope:
        """
        Compute the bounding box of a coordinate sequence.

        Raises:
            EmptyRingError: If ``coords`` is empty (no box is definable).
        """
        if not coords:
            raise EmptyRingError("Cannot compute an envelope for a ring with no vertices.")
        xs = [x for x, _ in coords]
        ys = [y for _, y in coords]
        return cls(min(xs), min(ys), max(xs), max(ys))

    def contains_point(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


# ── Polygon ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Polygon:
    """
    A simple polygon: one exterior ring plus zero or more holes.

    The envelope is derived from the exterior ring while the polygon is
    constructed, so every Polygon instance has one. Hole coordinates do not
    contribute to it.

    Attributes:
        exterior: Coordinates of the exterior ring.
        holes:    Coordinates of each interior ring.
        envelope: Bounding box of the exterior ring.

    Raises:
        EmptyRingError: If the exterior ring has no vertices.
    """
    exterior: tuple[Coordinate, ...]
    holes:    tuple[tuple[Coordinate, ...], ...] = ()
    envelope: Envelope = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "envelope", Envelope.of(self.exterior))

    def contains(self, x: float, y: float) -> bool:
        """Exact containment test; holes and boundaries are outside."""
        return point_in_polygon(x, y, self.exterior, self.holes)


@dataclass(frozen=True)
class IndexedPolygon:
    """
    The unit stored in the spatial index.

    ``properties`` is shared by reference between every IndexedPolygon
    assembled from the same source shape.
    """
    polygon:    Polygon
    properties: AttributeRecord = field(compare=False)

    @property
    def envelope(self) -> Envelope:
        return self.polygon.envelope


# ── Assembly ─────────────────────────────────────────────────────────────────

def assemble_polygons(
    rings: Iterable[Ring],
    properties: AttributeRecord,
) -> list[IndexedPolygon]:
    """
    Split the ordered rings of one shape into simple polygons.

    An outer ring starts a new polygon; each inner ring becomes a hole of the
    most recent outer ring. An inner ring seen before any outer ring cannot
    be attributed to a polygon and is discarded with a warning.

    Args:
        rings:      Rings of a single shape, in file order.
        properties: Attribute record shared by all resulting polygons.

    Returns:
        One IndexedPolygon per outer ring, in ring order.

    Raises:
        EmptyRingError: If an outer ring has no vertices.
    """
    polygons: list[IndexedPolygon] = []
    exterior: tuple[Coordinate, ...] | None = None
    holes: list[tuple[Coordinate, ...]] = []

    def finalize() -> None:
        polygon = Polygon(exterior=exterior, holes=tuple(holes))
        polygons.append(IndexedPolygon(polygon=polygon, properties=properties))

    for ring in rings:
        if ring.kind is RingKind.OUTER:
            if exterior is not None:
                finalize()
            exterior = ring.coords
            holes = []
        elif exterior is not None:
            holes.append(ring.coords)
        else:
            logger.warning(
                "Discarding inner ring with %d vertices: no outer ring precedes it.",
                len(ring.coords),
            )

    if exterior is not None:
        finalize()

    return polygons
