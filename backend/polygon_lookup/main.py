"""
main.py — FastAPI application entry point for Polygon Lookup.

Exposes:
    GET /            — health check (root)
    GET /health      — loaded polygon count and source file
    GET /query       — attribute record of the polygon containing lat/lon

Run with the ``polygon-lookup`` console script, or point any ASGI server at
``polygon_lookup.main:app`` and set POLYGON_LOOKUP_FILE.
"""

from __future__ import annotations

import argparse
import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query

from polygon_lookup.loader import DATA_PATH_ENV, DEFAULT_DATA_PATH, AppState, load_state
from polygon_lookup.services import resolve

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

# Decimal or exponent notation, or inf/infinity/nan; no whitespace or digit separators
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE | re.ASCII,
)

# ── Application-level state (built once at startup, read-only afterwards) ─────
app_state: AppState | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the boundary file and build the spatial index before accepting requests."""
    global app_state
    app_state = load_state()
    logger.info("Indexed %d polygons from %s", app_state.polygon_count, app_state.source)
    yield
    logger.info("Shutting down — releasing spatial index.")


# ── FastAPI app ───────────────────────────────────────────────────────────────
app = FastAPI(
    title="Polygon Lookup API",
    description="Return the attributes of the boundary polygon containing a coordinate.",
    version="0.1.0",
    lifespan=lifespan,
)


def _parse_coordinate(raw: Optional[str]) -> float:
    """Parse a query parameter as a float, falling back to 0.0."""
    if raw is None or not _FLOAT_PATTERN.fullmatch(raw):
        return 0.0
    return float(raw)


# ── Routes ────────────────────────────────────────────────────────────────────

@app.get("/", tags=["health"])
def root():
    """Root health-check endpoint."""
    return {"status": "ok", "message": "Polygon Lookup API is running."}


@app.get("/health", tags=["health"])
def health():
    """Detailed health check: returns the indexed polygon count."""
    if app_state is None:
        raise HTTPException(status_code=503, detail="Data not yet loaded.")
    return {
        "status": "ok",
        "polygons_loaded": app_state.polygon_count,
        "source": str(app_state.source),
    }


@app.get("/query", tags=["lookup"])
def query_polygon(
    lat: Optional[str] = Query(None, description="Latitude (y); 0.0 if absent or invalid"),
    lon: Optional[str] = Query(None, description="Longitude (x); 0.0 if absent or invalid"),
):
    """
    Return the attribute record of the polygon containing (lat, lon).

    Candidates are pruned with the spatial index and confirmed with an exact
    point-in-polygon test. A point outside every polygon is not an error:
    the response is JSON ``null`` with status 200.

    Raises:
        HTTPException 503: If the spatial index has not been built.
    """
    if app_state is None:
        raise HTTPException(status_code=503, detail="Spatial index not initialised.")

    lat_value = _parse_coordinate(lat)
    lon_value = _parse_coordinate(lon)
    properties = resolve(lat=lat_value, lon=lon_value, index=app_state.index)

    if properties is None:
        logger.debug("No polygon contains (%.6f, %.6f)", lat_value, lon_value)
    return properties


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polygon-lookup",
        description="Serve point-in-polygon lookups over a shapefile.",
    )
    parser.add_argument(
        "-f", "--file",
        help=f"Path to the .shp boundary file (default: {DEFAULT_DATA_PATH})",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default: {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Bind port (default: {DEFAULT_PORT})")
    return parser


def run_server(argv: Optional[list[str]] = None) -> None:
    """Parse command-line options and run the API server."""
    args = build_parser().parse_args(argv)

    if args.file:
        logger.info("Using boundary file: %s", args.file)
        os.environ[DATA_PATH_ENV] = args.file
    else:
        logger.info("No boundary file given; using %s", DEFAULT_DATA_PATH)
        os.environ.pop(DATA_PATH_ENV, None)

    logger.info("Starting server on http://%s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    run_server()
