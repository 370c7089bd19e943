import logging

from .api_utils import request_geocode
from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from .errors import UpstreamError
from .models import GeoResult, LatLng, Viewport


def _to_latlng(raw):
    """LatLng from a {"lat", "lng"} dict, or None when either value is missing."""
    if not isinstance(raw, dict) or raw.get("lat") is None or raw.get("lng") is None:
        return None
    return LatLng(lat=float(raw["lat"]), lng=float(raw["lng"]))


def geocode_city(city, api_key, timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS):
    """
    Uses the Google Geocoding API to convert a city name into a center and viewport.

    Args:
        city (str): The city (or any address) to geocode.
        api_key (str): Your Google API key.

    Returns:
        GeoResult: Center coordinate plus the viewport when Google provides one.

    Raises:
        UpstreamError: Non-OK status, zero results, or a top result without coordinates.
    """
    data = request_geocode(city, api_key, timeout=timeout)
    status = data.get("status")
    results = data.get("results") or []

    if status != "OK" or not results:
        logging.error(f"Geocoding failed for '{city}'. Status: {status}")
        raise UpstreamError(data.get("error_message") or f"Geocode status: {status}", status=status)

    geometry = results[0].get("geometry") or {}
    center = _to_latlng(geometry.get("location"))
    if center is None:
        logging.error(f"Geocoding result for '{city}' has no coordinates.")
        raise UpstreamError("Geocode response missing coordinates")

    viewport = None
    raw_viewport = geometry.get("viewport") or {}
    northeast = _to_latlng(raw_viewport.get("northeast"))
    southwest = _to_latlng(raw_viewport.get("southwest"))
    if northeast is not None and southwest is not None:
        viewport = Viewport(northeast=northeast, southwest=southwest)
    elif raw_viewport:
        logging.warning(f"Ignoring incomplete viewport for '{city}'; searching a single circle.")

    geo = GeoResult(center=center, viewport=viewport)
    logging.info(f"Geocoded '{city}' to ({geo.center.lat:.5f}, {geo.center.lng:.5f}), viewport: {'Yes' if viewport else 'No'}")
    return geo
