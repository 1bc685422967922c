import pytest
import requests

from src.geocode import nominatim
from src.geocode.nominatim import NominatimConfig, Place, parse_results, search_places


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


RESULTS = [
    {"lat": "52.5251", "lon": "13.3694", "display_name": "Berlin Hauptbahnhof, Berlin"},
    {"lat": "bad", "lon": "13.0", "display_name": "broken"},
    {"lon": "13.0"},
    {"lat": "52.5", "lon": "13.4"},
]


def test_parse_results_skips_unusable_entries():
    places = parse_results(RESULTS)
    assert places == [
        Place(52.5251, 13.3694, "Berlin Hauptbahnhof, Berlin"),
        Place(52.5, 13.4, ""),
    ]
    assert parse_results({"error": "nope"}) == []


def test_search_sends_query_and_user_agent(monkeypatch):
    calls = []

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append((url, params, headers, timeout))
        return FakeResponse(RESULTS[:1])

    monkeypatch.setattr(nominatim.requests, "get", fake_get)
    cfg = NominatimConfig(base_url="https://geo.example/search", user_agent="test-agent", limit=3, timeout_s=2.0)
    places = search_places("  Berlin Hbf ", cfg)

    assert places == [Place(52.5251, 13.3694, "Berlin Hauptbahnhof, Berlin")]
    url, params, headers, timeout = calls[0]
    assert url == "https://geo.example/search"
    assert params == {"format": "json", "q": "Berlin Hbf", "limit": 3}
    assert headers["User-Agent"] == "test-agent"
    assert timeout == 2.0


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_makes_no_request(monkeypatch, query):
    def fail_get(*a, **k):
        raise AssertionError("should not be called")

    monkeypatch.setattr(nominatim.requests, "get", fail_get)
    assert search_places(query) == []


@pytest.mark.parametrize(
    "behavior",
    [
        requests.ConnectionError("offline"),
        FakeResponse([], status=503),
        FakeResponse(ValueError("not json")),
    ],
)
def test_failures_return_empty_list(monkeypatch, caplog, behavior):
    def fake_get(*a, **k):
        if isinstance(behavior, Exception):
            raise behavior
        return behavior

    monkeypatch.setattr(nominatim.requests, "get", fake_get)
    assert search_places("Alexanderplatz") == []
    assert "destination search failed" in caplog.text


def test_config_from_mapping_keeps_defaults():
    cfg = NominatimConfig.from_mapping({"limit": 2})
    assert cfg.limit == 2
    assert cfg.base_url == NominatimConfig.base_url
