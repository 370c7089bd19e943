# File: barber_finder/search.py

import time
import logging
from collections.abc import Mapping

from .aggregator import ResultAggregator
from .config import Settings
from .details import MAX_DETAIL_LOOKUPS, enrich_with_details
from .errors import ConfigError, UpstreamError
from .google_utils import geocode_city
from .models import SearchOutcome
from .radius_utils import generate_grid_points, perform_grid_search

logger = logging.getLogger(__name__)

SEARCH_STRATEGY = "grid"
QUERY_TEMPLATE = "barber shop in {city}"
DETAILS_LIMIT_WARNING = "Place details fetched only for the first 50 places to stay within quota."
QUOTA_WARNING = "Results may be limited due to API quota or rate limits."


def search_barber_shops(city, api_key, include_details=False, settings=None, sleep=time.sleep):
    """
    Finds barber shops across a city with a grid of biased text searches.

    Geocodes the city, tiles its viewport into search circles, pages through
    each circle's results into one deduplicated set, then optionally looks up
    phone/website for the first places found.

    Args:
        city (str): Free-text city name, already trimmed.
        api_key (str): Google Maps Platform key.
        include_details (bool): Whether to run the place details post-pass.
        settings (Settings, optional): Delays, retry budget and timeout.
        sleep (callable): Blocking sleep used between page requests.

    Returns:
        SearchOutcome: Results, pages fetched, grid size and warnings.

    Raises:
        UpstreamError: Any failed Google call. Its 'partial' attribute holds a
                       SearchOutcome with what was aggregated before the failure.
    """
    settings = settings or Settings(api_key=api_key)
    aggregator = ResultAggregator()
    grid_points = []
    query = QUERY_TEMPLATE.format(city=city)

    def snapshot():
        return SearchOutcome(
            results=aggregator.results,
            pages_fetched=aggregator.pages_seen,
            grid_point_count=len(grid_points),
            warnings=list(aggregator.warnings),
        )

    logger.info(f"=== Searching '{query}' (details: {'Yes' if include_details else 'No'}) ===")
    try:
        geo = geocode_city(city, api_key, timeout=settings.request_timeout_seconds)
        grid_points = generate_grid_points(geo.center, geo.viewport)
        perform_grid_search(query, grid_points, api_key, aggregator, settings=settings, sleep=sleep)
        warnings = []
        results = aggregator.results
        if include_details and results:
            enrich_with_details(results, api_key, timeout=settings.request_timeout_seconds)
            if len(results) > MAX_DETAIL_LOOKUPS:
                warnings.append(DETAILS_LIMIT_WARNING)
    except UpstreamError as e:
        e.partial = snapshot()
        logger.error(f"Search for '{city}' failed after {len(aggregator)} places: {e.message} (status: {e.status})")
        raise

    outcome = SearchOutcome(
        results=results,
        pages_fetched=aggregator.pages_seen,
        grid_point_count=len(grid_points),
        warnings=list(aggregator.warnings) + warnings,
    )
    logger.info(
        f"Search for '{city}' finished: {len(outcome.results)} places, "
        f"{outcome.pages_fetched} pages, {outcome.grid_point_count} grid points."
    )
    return outcome


def _success_payload(outcome, extra_warnings=()):
    return {
        "results": [place.to_dict() for place in outcome.results],
        "meta": {
            "total": len(outcome.results),
            "pages": outcome.pages_fetched,
            "strategy": SEARCH_STRATEGY,
            "gridPoints": outcome.grid_point_count,
            "warnings": list(outcome.warnings) + list(extra_warnings),
        },
    }


def handle_search_request(body, api_key=None, settings=None, sleep=time.sleep):
    """
    Answers one search request the way an HTTP endpoint would.

    Args:
        body (dict): Decoded request body: {"city": str, "includeDetails": bool}.
        api_key (str, optional): Overrides settings.api_key.
        settings (Settings, optional): Loaded configuration.

    Returns:
        tuple: (http_status, payload dict).
    """
    settings = settings or Settings(api_key=api_key)
    try:
        key = api_key or settings.require_api_key()
    except ConfigError as e:
        logger.error(str(e))
        return 500, {"error": str(e)}

    if not isinstance(body, Mapping):
        return 400, {"error": "Invalid JSON body"}

    city = body.get("city")
    city = city.strip() if isinstance(city, str) else ""
    include_details = bool(body.get("includeDetails"))
    if not city:
        return 400, {"error": "City is required"}

    try:
        outcome = search_barber_shops(city, key, include_details=include_details, settings=settings, sleep=sleep)
    except UpstreamError as e:
        code = e.status_code
        payload = {"error": e.message, "status": e.status}
        if e.status == "OVER_QUERY_LIMIT" and e.partial is not None and e.partial.results:
            logger.warning(f"Quota exceeded; returning {len(e.partial.results)} partial results.")
            payload.update(_success_payload(e.partial, extra_warnings=[QUOTA_WARNING]))
        return code, payload
    except Exception:
        logger.exception(f"Unexpected error while searching '{city}'")
        return 500, {"error": "Unexpected server error"}

    return 200, _success_payload(outcome)
