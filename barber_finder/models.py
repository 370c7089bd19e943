# File: barber_finder/models.py

from dataclasses import dataclass, field
from typing import List, Optional

GOOGLE_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


def build_google_maps_url(place_id):
    """Deterministic Google Maps link for a place_id."""
    return GOOGLE_MAPS_PLACE_URL.format(place_id=place_id)


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class Viewport:
    northeast: LatLng
    southwest: LatLng


@dataclass(frozen=True)
class GeoResult:
    center: LatLng
    viewport: Optional[Viewport] = None


@dataclass(frozen=True)
class GridPoint:
    lat: float
    lng: float
    radius_meters: float


@dataclass
class PlaceRecord:
    name: str
    formatted_address: str
    lat: float
    lng: float
    place_id: str
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    types: Optional[List[str]] = None
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def from_api_place(cls, place):
        """
        Builds a record from one Places API (New) text search hit.

        The caller is expected to have checked that the hit carries an 'id'.
        """
        location = place.get("location") or {}
        display_name = place.get("displayName") or {}
        return cls(
            name=display_name.get("text") or "Unknown",
            formatted_address=place.get("formattedAddress") or "",
            lat=location.get("latitude", 0) or 0,
            lng=location.get("longitude", 0) or 0,
            place_id=place["id"],
            rating=place.get("rating"),
            user_ratings_total=place.get("userRatingCount"),
            types=place.get("types"),
        )

    @property
    def google_maps_url(self):
        return build_google_maps_url(self.place_id)

    def to_dict(self):
        return {
            "name": self.name,
            "formatted_address": self.formatted_address,
            "lat": self.lat,
            "lng": self.lng,
            "place_id": self.place_id,
            "rating": self.rating,
            "user_ratings_total": self.user_ratings_total,
            "types": list(self.types) if self.types is not None else None,
            "formatted_phone_number": self.formatted_phone_number,
            "website": self.website,
            "google_maps_url": self.google_maps_url,
        }


@dataclass(frozen=True)
class SearchOutcome:
    results: List[PlaceRecord] = field(default_factory=list)
    pages_fetched: int = 0
    grid_point_count: int = 0
    warnings: List[str] = field(default_factory=list)
