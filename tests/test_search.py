import itertools
from unittest.mock import MagicMock, patch

import pytest

from barber_finder.config import Settings
from barber_finder.errors import UpstreamError
from barber_finder.search import (
    DETAILS_LIMIT_WARNING,
    QUOTA_WARNING,
    handle_search_request,
    search_barber_shops,
)
from conftest import SPRINGFIELD, make_hit, make_response

SETTINGS = Settings(api_key="secret")


def _no_sleep(seconds):
    pass


class FakeGoogle:
    """Routes session.request calls to canned geocode / search / details bodies."""

    def __init__(self, geocode=SPRINGFIELD, search_pages=None, details=None, hits_per_page=2):
        self.geocode = geocode
        self.search_pages = search_pages
        self.details = details or {}
        self.hits_per_page = hits_per_page
        self._ids = itertools.count()
        self.calls = []

    def __call__(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        if "geocode" in url:
            return make_response(200, self.geocode)
        if url.endswith("places:searchText"):
            if self.search_pages is not None:
                item = self.search_pages.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
            hits = [make_hit(f"place-{next(self._ids)}") for _ in range(self.hits_per_page)]
            return make_response(200, {"places": hits})
        return make_response(200, self.details)

    def count(self, fragment):
        return sum(1 for _, url, _ in self.calls if fragment in url)


@patch("barber_finder.api_utils._session.request")
def test_springfield_end_to_end(mock_request):
    google = FakeGoogle()
    mock_request.side_effect = google

    status, payload = handle_search_request({"city": "  Springfield  "}, settings=SETTINGS, sleep=_no_sleep)

    assert status == 200
    assert payload["meta"] == {
        "total": 18,
        "pages": 9,
        "strategy": "grid",
        "gridPoints": 9,
        "warnings": [],
    }
    assert len(payload["results"]) == 18
    first = payload["results"][0]
    assert first["google_maps_url"] == f"https://www.google.com/maps/place/?q=place_id:{first['place_id']}"
    assert google.count("searchText") == 9
    assert google.count("places/") == 0
    search_bodies = [kw["json"] for _, url, kw in google.calls if url.endswith("searchText")]
    assert all(body["textQuery"] == "barber shop in Springfield" for body in search_bodies)
    assert all(body["locationBias"]["circle"]["radius"] == 5000 for body in search_bodies)


@patch("barber_finder.api_utils._session.request")
def test_duplicates_across_tiles_are_merged(mock_request):
    page = make_response(200, {"places": [make_hit("same-1"), make_hit("same-2")]})
    google = FakeGoogle(search_pages=[page] * 9)
    mock_request.side_effect = google

    outcome = search_barber_shops("Springfield", "secret", settings=SETTINGS, sleep=_no_sleep)

    assert [r.place_id for r in outcome.results] == ["same-1", "same-2"]
    assert outcome.pages_fetched == 9
    assert outcome.grid_point_count == 9


@patch("barber_finder.api_utils._session.request")
def test_pages_count_includes_follow_up_pages(mock_request):
    with_token = make_response(200, {"places": [make_hit("a")], "nextPageToken": "tok"})
    follow_up = make_response(200, {"places": [make_hit("b")]})
    plain = make_response(200, {"places": [make_hit("c")]})
    google = FakeGoogle(search_pages=[with_token, follow_up] + [plain] * 8)
    mock_request.side_effect = google

    outcome = search_barber_shops("Springfield", "secret", settings=SETTINGS, sleep=_no_sleep)

    assert google.count("searchText") == 10
    assert outcome.pages_fetched == 10
    assert [r.place_id for r in outcome.results] == ["a", "b", "c"]


@patch("barber_finder.api_utils._session.request")
def test_incomplete_viewport_searches_single_circle(mock_request):
    geocode = {
        "status": "OK",
        "results": [{"geometry": {
            "location": {"lat": 39.78, "lng": -89.65},
            "viewport": {"northeast": {"lat": 39.83, "lng": None}, "southwest": {"lat": 39.73, "lng": -89.70}},
        }}],
    }
    google = FakeGoogle(geocode=geocode)
    mock_request.side_effect = google

    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS, sleep=_no_sleep)

    assert status == 200
    assert payload["meta"]["gridPoints"] == 1
    assert payload["meta"]["pages"] == 1
    body = next(kw["json"] for _, url, kw in google.calls if url.endswith("searchText"))
    assert body["locationBias"]["circle"]["radius"] == 40000


@patch("barber_finder.api_utils._session.request")
def test_resource_exhausted_maps_to_over_query_limit(mock_request):
    exhausted = make_response(429, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}})
    google = FakeGoogle(search_pages=[exhausted])
    mock_request.side_effect = google

    with pytest.raises(UpstreamError) as excinfo:
        search_barber_shops("Springfield", "secret", settings=SETTINGS, sleep=_no_sleep)
    assert excinfo.value.status == "OVER_QUERY_LIMIT"

    google = FakeGoogle(search_pages=[exhausted])
    mock_request.side_effect = google
    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS, sleep=_no_sleep)
    assert status == 429
    assert payload["status"] == "OVER_QUERY_LIMIT"
    assert payload["error"] == "Quota exceeded"
    assert "results" not in payload


@patch("barber_finder.api_utils._session.request")
def test_quota_failure_mid_search_returns_partial_results(mock_request):
    exhausted = make_response(429, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}})
    first_tile = make_response(200, {"places": [make_hit("a"), make_hit("b")]})
    google = FakeGoogle(search_pages=[first_tile, exhausted])
    mock_request.side_effect = google

    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS, sleep=_no_sleep)

    assert status == 429
    assert [r["place_id"] for r in payload["results"]] == ["a", "b"]
    assert payload["meta"]["pages"] == 1
    assert payload["meta"]["warnings"] == [QUOTA_WARNING]


@patch("barber_finder.api_utils._session.request")
def test_other_upstream_errors_map_to_http_codes(mock_request):
    denied = make_response(403, {"error": {"status": "PERMISSION_DENIED", "message": "Denied"}})
    mock_request.side_effect = FakeGoogle(search_pages=[denied])
    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS, sleep=_no_sleep)
    assert (status, payload["status"]) == (403, "REQUEST_DENIED")

    broken = make_response(500, json_error=ValueError("html"))
    mock_request.side_effect = FakeGoogle(search_pages=[broken])
    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS, sleep=_no_sleep)
    assert status == 500
    assert payload == {"error": "Places request failed with 500", "status": None}


@patch("barber_finder.api_utils._session.request")
def test_include_details_enriches_results(mock_request):
    google = FakeGoogle(details={"nationalPhoneNumber": "(217) 555-0100", "websiteUri": "https://cuts.example"})
    mock_request.side_effect = google

    status, payload = handle_search_request(
        {"city": "Springfield", "includeDetails": True}, settings=SETTINGS, sleep=_no_sleep
    )

    assert status == 200
    assert google.count("places/") == 18
    assert all(r["formatted_phone_number"] == "(217) 555-0100" for r in payload["results"])
    assert all(r["website"] == "https://cuts.example" for r in payload["results"])
    assert payload["meta"]["warnings"] == []


@patch("barber_finder.api_utils._session.request")
def test_details_capped_with_warning(mock_request):
    google = FakeGoogle(hits_per_page=7, details={"websiteUri": "https://cuts.example"})
    mock_request.side_effect = google

    outcome = search_barber_shops("Springfield", "secret", include_details=True, settings=SETTINGS, sleep=_no_sleep)

    assert len(outcome.results) == 63
    assert google.count("places/") == 50
    assert outcome.results[49].website == "https://cuts.example"
    assert outcome.results[50].website is None
    assert outcome.warnings == [DETAILS_LIMIT_WARNING]


@patch("barber_finder.api_utils._session.request")
def test_details_failure_fails_whole_request(mock_request):
    google = FakeGoogle()

    def route(method, url, timeout=None, **kwargs):
        if url.startswith("https://places.googleapis.com/v1/places/"):
            return make_response(403, {"error": {"status": "PERMISSION_DENIED", "message": "Details denied"}})
        return google(method, url, timeout=timeout, **kwargs)

    mock_request.side_effect = route
    status, payload = handle_search_request(
        {"city": "Springfield", "includeDetails": True}, settings=SETTINGS, sleep=_no_sleep
    )
    assert status == 403
    assert payload == {"error": "Details denied", "status": "REQUEST_DENIED"}


@patch("barber_finder.api_utils._session.request")
def test_search_stops_requesting_once_cap_is_reached(mock_request):
    google = FakeGoogle(hits_per_page=20)
    mock_request.side_effect = google

    with patch("barber_finder.search.ResultAggregator") as aggregator_cls:
        from barber_finder.aggregator import ResultAggregator
        aggregator_cls.return_value = ResultAggregator(max_results=50)
        outcome = search_barber_shops("Springfield", "secret", settings=SETTINGS, sleep=_no_sleep)

    assert len(outcome.results) == 50
    assert google.count("searchText") == 3
    assert len(outcome.warnings) == 1


@patch("barber_finder.api_utils._session.request")
def test_missing_api_key_fails_before_network(mock_request):
    status, payload = handle_search_request({"city": "Springfield"}, settings=Settings(api_key=None))
    assert status == 500
    assert payload == {"error": "Missing GOOGLE_MAPS_API_KEY"}
    mock_request.assert_not_called()


@pytest.mark.parametrize("body", [{}, {"city": ""}, {"city": "   "}, {"city": None}])
@patch("barber_finder.api_utils._session.request")
def test_blank_city_is_rejected(mock_request, body):
    status, payload = handle_search_request(body, settings=SETTINGS)
    assert status == 400
    assert payload == {"error": "City is required"}
    mock_request.assert_not_called()


def test_non_object_body_is_rejected():
    status, payload = handle_search_request(["Springfield"], settings=SETTINGS)
    assert status == 400
    assert payload == {"error": "Invalid JSON body"}


@patch("barber_finder.search.search_barber_shops")
def test_unexpected_error_is_reported_generically(mock_search):
    mock_search.side_effect = RuntimeError("boom")
    status, payload = handle_search_request({"city": "Springfield"}, settings=SETTINGS)
    assert status == 500
    assert payload == {"error": "Unexpected server error"}


@patch("barber_finder.search.search_barber_shops")
def test_include_details_is_coerced_to_bool(mock_search):
    mock_search.return_value = MagicMock(results=[], pages_fetched=0, grid_point_count=1, warnings=[])
    handle_search_request({"city": "Springfield", "includeDetails": "yes"}, settings=SETTINGS)
    assert mock_search.call_args.kwargs["include_details"] is True
