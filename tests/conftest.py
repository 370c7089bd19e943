import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the repo root is on sys.path for direct pytest runs
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Geocode body for a small city: the viewport spans 0.1 degrees, so a 3x3 grid
SPRINGFIELD = {
    "status": "OK",
    "results": [{
        "geometry": {
            "location": {"lat": 39.78, "lng": -89.65},
            "viewport": {
                "northeast": {"lat": 39.83, "lng": -89.60},
                "southwest": {"lat": 39.73, "lng": -89.70},
            },
        }
    }],
}


def make_hit(place_id, name="Barber", rating=4.5, lat=39.78, lng=-89.65):
    return {
        "id": place_id,
        "displayName": {"text": name},
        "formattedAddress": f"{name} St, Springfield, IL",
        "location": {"latitude": lat, "longitude": lng},
        "rating": rating,
        "userRatingCount": 12,
        "types": ["barber_shop", "point_of_interest"],
    }


def make_response(status_code=200, payload=None, json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload if payload is not None else {}
    return resp


@pytest.fixture
def sleeps():
    """Records requested delays instead of sleeping."""
    calls = []
    return calls


@pytest.fixture
def fake_sleep(sleeps):
    def _sleep(seconds):
        sleeps.append(seconds)
    return _sleep
