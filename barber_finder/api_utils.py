# File: barber_finder/api_utils.py

import logging

import requests

from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from .errors import UpstreamError, map_new_api_status

logger = logging.getLogger(__name__)

# --- Constants ---
GEOCODING_API_ENDPOINT = "https://maps.googleapis.com/maps/api/geocode/json"
PLACES_API_ENDPOINT_TEXT_SEARCH = "https://places.googleapis.com/v1/places:searchText"
PLACES_API_ENDPOINT_DETAILS = "https://places.googleapis.com/v1/places"

TEXT_SEARCH_FIELD_MASK = ",".join([
    "places.id",
    "places.displayName",
    "places.formattedAddress",
    "places.location",
    "places.rating",
    "places.userRatingCount",
    "places.types",
    "nextPageToken",
])
DETAILS_FIELD_MASK = ",".join([
    "internationalPhoneNumber",
    "nationalPhoneNumber",
    "websiteUri",
])

# Shared across requests; the key is passed per call, never stored here.
_session = requests.Session()


def parse_new_api_error(response):
    """
    Builds an UpstreamError from a failed Places API (New) response.

    The body normally looks like {"error": {"status": "...", "message": "..."}}.
    Unparseable bodies yield a generic message and no status token.
    """
    fallback = f"Places request failed with {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return UpstreamError(fallback, http_status=response.status_code)

    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        error = {}
    return UpstreamError(
        error.get("message") or fallback,
        status=map_new_api_status(error.get("status")),
        http_status=response.status_code,
    )


def _send(method, url, timeout, **kwargs):
    """Issue one HTTP call, turning transport failures into UpstreamError."""
    try:
        return _session.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.Timeout as e:
        logger.error(f"Request to {url} timed out after {timeout}s: {e}")
        raise UpstreamError(f"Request to Google timed out after {timeout}s") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Network error during API request to {url}: {e}")
        raise UpstreamError(f"Network error contacting Google: {e}") from e


def request_geocode(address, api_key, timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS):
    """
    Calls the Geocoding API for a free-text address.

    Returns:
        dict: The decoded JSON body. Status inspection is left to the caller,
              since the Geocoding API reports failures with HTTP 200.
    """
    params = {"address": address, "key": api_key}
    response = _send("GET", GEOCODING_API_ENDPOINT, timeout, params=params)
    if not response.ok:
        logger.error(f"Geocode request failed with HTTP {response.status_code} for '{address}'")
        raise UpstreamError(
            f"Geocode request failed with {response.status_code}",
            http_status=response.status_code,
        )
    return response.json()


def request_text_search(query, api_key, page_token=None, location_bias=None,
                        timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS):
    """
    Fetches one page of Places API (New) text search results.

    Args:
        query (str): Free-text query, e.g. "barber shop in Springfield".
        api_key (str): Google Maps Platform key.
        page_token (str, optional): Continuation token from the previous page.
        location_bias (GridPoint, optional): Circle used to bias results.

    Returns:
        dict: JSON body with optional 'places' and 'nextPageToken'.
    """
    body = {"textQuery": query}
    if page_token:
        body["pageToken"] = page_token
    if location_bias is not None:
        body["locationBias"] = {
            "circle": {
                "center": {
                    "latitude": location_bias.lat,
                    "longitude": location_bias.lng,
                },
                "radius": location_bias.radius_meters,
            }
        }

    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": TEXT_SEARCH_FIELD_MASK,
    }
    response = _send("POST", PLACES_API_ENDPOINT_TEXT_SEARCH, timeout, json=body, headers=headers)
    if not response.ok:
        error = parse_new_api_error(response)
        logger.error(f"Text search failed (HTTP {response.status_code}, status {error.status}): {error.message}")
        raise error
    return response.json()


def request_place_details(place_id, api_key, timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS):
    """Fetches phone numbers and website for a single place."""
    headers = {
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": DETAILS_FIELD_MASK,
    }
    url = f"{PLACES_API_ENDPOINT_DETAILS}/{place_id}"
    response = _send("GET", url, timeout, headers=headers)
    if not response.ok:
        error = parse_new_api_error(response)
        logger.error(f"Place details failed for {place_id} (HTTP {response.status_code}): {error.message}")
        raise error
    return response.json()
