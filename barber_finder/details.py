# File: barber_finder/details.py

import logging

from .api_utils import request_place_details
from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

MAX_DETAIL_LOOKUPS = 50 # Quota guard, deliberately not configurable


def enrich_with_details(results, api_key, timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS,
                        fetch_details=request_place_details):
    """
    Adds phone number and website to the first MAX_DETAIL_LOOKUPS records, in place.

    The international number is preferred over the national one. A failing
    lookup raises UpstreamError and stops the remaining lookups.

    Returns:
        int: Number of records looked up.
    """
    limit = min(len(results), MAX_DETAIL_LOOKUPS)
    if len(results) > limit:
        logger.info(f"Fetching details for the first {limit} of {len(results)} places only.")

    for place in results[:limit]:
        details = fetch_details(place.place_id, api_key, timeout=timeout)
        if not details:
            continue
        phone = details.get("internationalPhoneNumber") or details.get("nationalPhoneNumber")
        if phone:
            place.formatted_phone_number = phone
        if details.get("websiteUri"):
            place.website = details["websiteUri"]

    logger.info(f"Fetched details for {limit} places.")
    return limit
