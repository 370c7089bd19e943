# File: barber_finder/csv_utils.py

import csv
import io
import re

from .models import build_google_maps_url

CSV_HEADERS = [
    "name",
    "formatted_address",
    "lat",
    "lng",
    "place_id",
    "rating",
    "user_ratings_total",
    "types",
    "google_maps_url",
    "formatted_phone_number",
    "website",
]


def _format_value(value):
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def place_to_row(place):
    """Flattens a PlaceRecord into CSV_HEADERS order."""
    return [
        _format_value(place.name),
        _format_value(place.formatted_address),
        _format_value(place.lat),
        _format_value(place.lng),
        _format_value(place.place_id),
        _format_value(place.rating),
        _format_value(place.user_ratings_total),
        ";".join(place.types) if place.types else "",
        build_google_maps_url(place.place_id),
        _format_value(place.formatted_phone_number),
        _format_value(place.website),
    ]


def places_to_csv(places):
    """
    Serializes places as CSV text, header first, rows joined with '\\n'.

    Fields containing a comma, a double quote or a newline are quoted with
    inner quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for place in places:
        writer.writerow(place_to_row(place))
    return buffer.getvalue().rstrip("\n")


def csv_filename(city):
    """Download name for a city's export, e.g. 'barber-shops-Ribeirao Preto.csv'."""
    cleaned = re.sub(r'[\\/:*?"<>|]+', "", (city or "").strip())
    return f"barber-shops-{cleaned or 'city'}.csv"
