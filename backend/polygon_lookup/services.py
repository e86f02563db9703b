"""
services.py — Query resolution for the Polygon Lookup service.

Responsibilities:
    - Pruning indexed polygons to those whose envelope touches the query
      point (delegated to spatial_index.py).
    - Running the exact containment test on the surviving candidates and
      returning the attribute record of the first match.
"""

from __future__ import annotations

import logging
from typing import Optional

from polygon_lookup.geometry import AttributeRecord
from polygon_lookup.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


# ── Public API ────────────────────────────────────────────────────────────────

def resolve(lat: float, lon: float, index: SpatialIndex) -> Optional[AttributeRecord]:
    """
    Find the attribute record of the polygon containing a coordinate.

    Steps:
        1. Build the query point as (x=lon, y=lat).
        2. Ask the spatial index for envelope candidates.
        3. Run the exact point-in-polygon test on each candidate, in the
           order the index yields them, stopping at the first match.

    Args:
        lat:   Latitude  of the query point.
        lon:   Longitude of the query point.
        index: The built spatial index.

    Returns:
        The matched polygon's properties, or None if no polygon contains
        the point.
    """
    checked = 0
    for candidate in index.query_at_point(lon, lat):
        checked += 1
        if candidate.polygon.contains(lon, lat):
            logger.debug("Point (%.6f, %.6f) matched after %d candidate(s).", lat, lon, checked)
            return candidate.properties

    logger.debug("Point (%.6f, %.6f) matched none of %d candidate(s).", lat, lon, checked)
    return None
