"""
loader.py — Boundary data loading for the Polygon Lookup service.

Responsible for:
    - Reading shapes and their attribute records from an ESRI shapefile.
    - Splitting each polygon shape into outer rings and holes, and converting
      its dBase record into a JSON-ready attribute dict.
    - Building the spatial index and exposing it through an AppState.
"""

from __future__ import annotations

import datetime
import itertools
import logging
import math
import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Sequence

import shapefile

from polygon_lookup.geometry import (
    AttributeRecord,
    EmptyRingError,
    IndexedPolygon,
    Ring,
    assemble_polygons,
)
from polygon_lookup.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
DEFAULT_DATA_PATH = Path("data.shp")
DATA_PATH_ENV     = "POLYGON_LOOKUP_FILE"

_POLYGON_TYPES = frozenset({shapefile.POLYGON, shapefile.POLYGONZ, shapefile.POLYGONM})


class ShapefileLoadError(RuntimeError):
    """Raised when the boundary file cannot be read or is structurally corrupt."""


# ── AppState ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class AppState:
    """
    Read-only state shared by every request handler.

    Attributes:
        index:  Spatial index over all loaded polygons.
        source: Path of the shapefile the index was built from.
    """
    index:  SpatialIndex
    source: Path

    @property
    def polygon_count(self) -> int:
        return len(self.index)


def configured_data_path() -> Path:
    """Return the boundary file path from the environment, or the default."""
    return Path(os.environ.get(DATA_PATH_ENV) or DEFAULT_DATA_PATH)


# ── Attribute records ─────────────────────────────────────────────────────────

def field_value_to_json(value: Any) -> Any:
    """
    Convert one dBase field value into a JSON-compatible value.

    Text, numbers and logicals pass through, dates become ISO-8601 strings.
    Anything else (unparsed bytes, non-finite numbers) becomes None.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, datetime.date):
        return value.isoformat()
    return None


def record_to_properties(record: shapefile._Record) -> AttributeRecord:
    """Build an ordered attribute dict from a pyshp record."""
    return {name: field_value_to_json(value) for name, value in record.as_dict().items()}


# ── Rings ─────────────────────────────────────────────────────────────────────

def _signed_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace area; negative for clockwise rings."""
    total = 0.0
    for (x1, y1, *_), (x2, y2, *_) in zip(points, itertools.chain(points[1:], points[:1])):
        total += x1 * y2 - x2 * y1
    return total / 2.0


def shape_rings(shape: shapefile.Shape) -> Iterator[Ring]:
    """
    Yield the rings of a polygon shape in file order.

    Shapefiles store outer rings clockwise and holes counter-clockwise;
    degenerate (zero-area) rings are treated as outer.
    """
    starts = list(shape.parts)
    ends = starts[1:] + [len(shape.points)]
    for start, end in zip(starts, ends):
        points = shape.points[start:end]
        if _signed_area(points) <= 0:
            yield Ring.outer(points)
        else:
            yield Ring.inner(points)


# ── Loaders ───────────────────────────────────────────────────────────────────

def _iter_shape_records(reader: shapefile.Reader) -> Iterator[tuple[int, Any, Any]]:
    """
    Pair each shape with the record at the same position.

    Records are fetched by index rather than streamed, because pyshp's record
    iterator drops deleted records and would shift later shapes onto the wrong
    attributes. A deleted record is yielded as None.
    """
    record_count = len(reader)
    number = -1
    for number, shape in enumerate(reader.iterShapes()):
        if number >= record_count:
            raise ShapefileLoadError(
                f"Shape #{number} cannot be paired with an attribute record."
            )
        yield number, shape, reader.record(number)

    if number + 1 < record_count:
        raise ShapefileLoadError(
            f"{record_count - number - 1} attribute record(s) have no matching shape."
        )


def load_polygons(path: Path) -> list[IndexedPolygon]:
    """
    Read every polygon shape in a shapefile as IndexedPolygon entries.

    Non-polygon shapes are skipped with a log message naming their type.

    Args:
        path: Path to the .shp file (the .shx/.dbf siblings must exist).

    Returns:
        All assembled polygons, in record order.

    Raises:
        ShapefileLoadError: If the file is missing, unreadable or corrupt, or
            a shape has no matching record.
        EmptyRingError: If a polygon's outer ring has no vertices.
    """
    polygons: list[IndexedPolygon] = []
    skipped = 0

    try:
        with shapefile.Reader(str(path), encodingErrors="replace") as reader:
            for number, shape, record in _iter_shape_records(reader):
                if record is None:
                    logger.info("Skipping shape #%d: its attribute record is deleted", number)
                    skipped += 1
                    continue
                if shape.shapeType not in _POLYGON_TYPES:
                    type_name = shapefile.SHAPETYPE_LOOKUP.get(shape.shapeType, shape.shapeType)
                    logger.info("Skipping shape #%d: unsupported geometry %s", number, type_name)
                    skipped += 1
                    continue
                properties = record_to_properties(record)
                polygons.extend(assemble_polygons(shape_rings(shape), properties))
    except (ShapefileLoadError, EmptyRingError):
        raise
    except (shapefile.ShapefileException, OSError, struct.error, ValueError) as exc:
        raise ShapefileLoadError(f"Failed to read shapefile {path}: {exc}") from exc

    logger.info("Loaded %d polygons from %s (%d shapes skipped)", len(polygons), path.name, skipped)
    return polygons


def load_state(path: Path | None = None) -> AppState:
    """
    Load the boundary file and build the shared application state.

    This should be called exactly once at application startup.

    Args:
        path: Shapefile to load; defaults to :func:`configured_data_path`.

    Returns:
        AppState wrapping the bulk-built spatial index.
    """
    path = Path(path) if path is not None else configured_data_path()
    index = SpatialIndex.build(load_polygons(path))
    return AppState(index=index, source=path)
