"""
raycast.py — Exact point-in-polygon test for indexed boundary polygons.

Uses the ray-casting method: cast a horizontal ray from the test point
eastward to infinity, counting boundary crossings. An odd count means the
point is inside the ring.

Boundary policy: a point lying exactly on an edge or vertex of the exterior
ring or of any hole is treated as OUTSIDE the polygon. Edge membership is
decided with an exact cross-product test before ray casting, so boundary
points never depend on the crossing rule's tie-break.

Reference:
    W. Randolph Franklin, "PNPOLY – Point Inclusion in Polygon Test"
    https://wrfranklin.org/Research/Short_Notes/pnpoly.html
"""

from __future__ import annotations

from typing import Iterable, Sequence

Coordinate = tuple[float, float]


def _is_point_in_ring(x: float, y: float, ring: Sequence[Coordinate]) -> bool:
    """
    Run the ray-casting test for a single ring.

    The ring is implicitly closed: the edge from the last coordinate back to
    the first is always tested, so a repeated closing coordinate is optional.

    Args:
        x:    Longitude (x-axis) of the test point.
        y:    Latitude  (y-axis) of the test point.
        ring: Sequence of (x, y) coordinate pairs forming the ring.

    Returns:
        True if the ray crosses the ring an odd number of times.
    """
    inside = False
    n = len(ring)

    # Iterate over each edge (ring[i], ring[j])
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def _is_point_on_segment(
    x: float, y: float, start: Coordinate, end: Coordinate
) -> bool:
    """Exact test for (x, y) lying on the closed segment start→end."""
    x1, y1 = start
    x2, y2 = end

    if (x2 - x1) * (y - y1) - (y2 - y1) * (x - x1) != 0:
        return False

    return min(x1, x2) <= x <= max(x1, x2) and min(y1, y2) <= y <= max(y1, y2)


def _is_point_on_ring(x: float, y: float, ring: Sequence[Coordinate]) -> bool:
    """Return True if (x, y) lies on any edge of the implicitly closed ring."""
    n = len(ring)
    j = n - 1
    for i in range(n):
        if _is_point_on_segment(x, y, ring[j], ring[i]):
            return True
        j = i
    return False


def point_in_polygon(
    x: float,
    y: float,
    exterior: Sequence[Coordinate],
    holes: Iterable[Sequence[Coordinate]] = (),
) -> bool:
    """
    Test whether a point falls strictly inside a polygon with holes.

    The point must be inside the exterior ring and NOT inside any hole.
    Points on the boundary of the exterior or of a hole are outside.

    Args:
        x:        Longitude of the test point.
        y:        Latitude  of the test point.
        exterior: Coordinates of the exterior ring.
        holes:    Coordinates of each interior ring.

    Returns:
        True if the point is in the polygon's interior, False otherwise.
    """
    if not exterior:
        return False

    if _is_point_on_ring(x, y, exterior) or not _is_point_in_ring(x, y, exterior):
        return False

    # If inside the exterior, check holes — point must be clear of all of them
    for hole in holes:
        if _is_point_on_ring(x, y, hole) or _is_point_in_ring(x, y, hole):
            return False

    return True
