"""
conftest.py — Shared pytest fixtures for the Polygon Lookup test suite.

Provides:
    - Ring and polygon fixtures built in memory, so unit tests never touch
      the filesystem.
    - A prebuilt AppState holding one 10×10 square named "A".
    - A helper for writing small shapefiles into tmp_path with pyshp.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import shapefile

from polygon_lookup.geometry import IndexedPolygon, Polygon, Ring, assemble_polygons
from polygon_lookup.loader import AppState
from polygon_lookup.spatial_index import SpatialIndex

# Shapefile winding: outer rings clockwise, holes counter-clockwise
SQUARE_CW = [[0.0, 0.0], [0.0, 10.0], [10.0, 10.0], [10.0, 0.0], [0.0, 0.0]]
HOLE_CCW  = [[4.0, 4.0], [6.0, 4.0], [6.0, 6.0], [4.0, 6.0], [4.0, 4.0]]


# ── Geometry fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def square_ring() -> Ring:
    """Outer ring of the 10×10 square with a corner at the origin."""
    return Ring.outer(SQUARE_CW)


@pytest.fixture
def hole_ring() -> Ring:
    """2×2 hole centred on (5, 5)."""
    return Ring.inner(HOLE_CCW)


@pytest.fixture
def square_polygon(square_ring) -> Polygon:
    return Polygon(exterior=square_ring.coords)


@pytest.fixture
def polygon_with_hole(square_ring, hole_ring) -> Polygon:
    """
    The 10×10 square with the 2×2 hole cut out.
    Points tested:
        - (1, 1) inside exterior, outside hole → contained
        - (5, 5) inside hole                   → not contained
    """
    return Polygon(exterior=square_ring.coords, holes=(hole_ring.coords,))


# ── State fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def square_entries(square_ring) -> list[IndexedPolygon]:
    return assemble_polygons([square_ring], {"name": "A"})


@pytest.fixture
def fake_state(square_entries) -> AppState:
    """AppState with exactly one polygon: the square named "A"."""
    return AppState(index=SpatialIndex.build(square_entries), source=Path("square.shp"))


# ── Shapefile fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def write_polygon_shapefile(tmp_path):
    """
    Factory writing a POLYGON shapefile with a single text field "name".

    Each entry is (name, parts); parts=None writes a NULL shape.
    Returns the path of the .shp file.
    """
    def _write(shapes, filename: str = "boundaries") -> Path:
        target = tmp_path / filename
        with shapefile.Writer(str(target), shapeType=shapefile.POLYGON) as writer:
            writer.field("name", "C", size=20)
            for name, parts in shapes:
                if parts is None:
                    writer.null()
                else:
                    writer.poly(parts)
                writer.record(name)
        return target.with_suffix(".shp")

    return _write
