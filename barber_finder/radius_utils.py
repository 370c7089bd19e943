# File: barber_finder/radius_utils.py

import math
import time
import logging

from .config import Settings
from .models import GridPoint
from .pagination import fetch_tile_pages

logger = logging.getLogger(__name__)

# --- Constants ---
METERS_PER_DEGREE_LAT = 111320 # Approximate, good enough for tiling
DEFAULT_RADIUS_METERS = 40000 # Used when geocoding gives no viewport
MIN_CELL_RADIUS_METERS = 5000
MAX_CELL_RADIUS_METERS = 40000
CELL_RADIUS_FACTOR = 0.75 # Overlap between neighbouring circles
LARGE_CITY_SPAN_DEGREES = 0.35
SMALL_GRID_SIZE = 3
LARGE_GRID_SIZE = 4
MAX_GRID_POINTS = 16


# --- Helper Functions for Degree/Meter Conversion ---
def meters_per_degree_lng(lat_deg):
    """Meters covered by one degree of longitude at the given latitude."""
    return METERS_PER_DEGREE_LAT * math.cos(math.radians(lat_deg))


def _normalize_lng(lng):
    return ((lng + 180.0) % 360.0) - 180.0


def _clamp(value, low, high):
    return max(low, min(high, value))


# --- Grid Generation Function ---
def generate_grid_points(center, viewport=None):
    """
    Splits a geocoded area into overlapping search circles.

    Without a viewport the center is searched once with DEFAULT_RADIUS_METERS.
    Otherwise the viewport is cut into a 3x3 grid, or 4x4 when either span is
    over LARGE_CITY_SPAN_DEGREES. Points are emitted row by row from the north
    edge, west to east within a row.

    Args:
        center (LatLng): Geocoded center.
        viewport (Viewport, optional): Geocoded bounding box.

    Returns:
        list[GridPoint]: At most MAX_GRID_POINTS points.
    """
    if viewport is None:
        logger.info("No viewport available. Using a single search circle at the center.")
        return [GridPoint(lat=center.lat, lng=center.lng, radius_meters=DEFAULT_RADIUS_METERS)]

    ne, sw = viewport.northeast, viewport.southwest
    lat_span = ne.lat - sw.lat
    lng_span = ne.lng - sw.lng
    if lng_span < 0:
        lng_span += 360.0 # Viewport crosses the antimeridian

    grid_size = LARGE_GRID_SIZE if (lat_span > LARGE_CITY_SPAN_DEGREES or lng_span > LARGE_CITY_SPAN_DEGREES) else SMALL_GRID_SIZE
    cell_lat = lat_span / grid_size
    cell_lng = lng_span / grid_size

    avg_lat = (ne.lat + sw.lat) / 2
    cell_lat_meters = cell_lat * METERS_PER_DEGREE_LAT
    cell_lng_meters = cell_lng * meters_per_degree_lng(avg_lat)
    radius = _clamp(
        max(cell_lat_meters, cell_lng_meters) * CELL_RADIUS_FACTOR,
        MIN_CELL_RADIUS_METERS,
        MAX_CELL_RADIUS_METERS,
    )

    grid_points = []
    for row in range(grid_size):
        lat = ne.lat - cell_lat * (row + 0.5)
        for col in range(grid_size):
            lng = _normalize_lng(sw.lng + cell_lng * (col + 0.5))
            grid_points.append(GridPoint(lat=lat, lng=lng, radius_meters=radius))

    grid_points = grid_points[:MAX_GRID_POINTS]
    logger.info(
        f"Generated {len(grid_points)} grid points ({grid_size}x{grid_size}) for span "
        f"{lat_span:.3f} x {lng_span:.3f} degrees, cell radius {radius:.0f}m."
    )
    return grid_points


# --- Grid Search Execution Function ---
def perform_grid_search(query, grid_points, api_key, aggregator, settings=None, sleep=time.sleep):
    """
    Runs a paginated text search at every grid point, sequentially.

    MODIFIES aggregator by folding every page into it; the aggregator also
    counts the pages. Stops issuing requests as soon as it is full.
    """
    settings = settings or Settings()
    total_points = len(grid_points)

    if not grid_points:
        logger.warning("perform_grid_search called with no grid points.")
        return

    logger.info(f"--- Starting Grid Search Execution across {total_points} points ---")

    for i, point in enumerate(grid_points):
        if aggregator.is_full:
            logger.info(f"Result limit reached. Skipping remaining {total_points - i} grid points.")
            break

        point_num = i + 1
        logger.info(f"--- Grid Point {point_num}/{total_points}: ({point.lat:.5f}, {point.lng:.5f}) r={point.radius_meters:.0f}m ---")

        added_this_point = 0
        for page in fetch_tile_pages(
            query,
            point,
            api_key,
            page_token_delay=settings.page_token_delay_seconds,
            empty_retry_delay=settings.empty_page_retry_delay_seconds,
            max_empty_attempts=settings.max_empty_page_attempts,
            timeout=settings.request_timeout_seconds,
            sleep=sleep,
        ):
            added_this_point += aggregator.add_hits(page.hits)
            if aggregator.is_full:
                break

        logger.info(f"  Grid Point {point_num}: Added {added_this_point} new unique places (total {len(aggregator)}).")

    logger.info(f"--- Grid Search Execution Finished. {len(aggregator)} unique places from {aggregator.pages_seen} pages. ---")
