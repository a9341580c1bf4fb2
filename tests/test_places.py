import httpx
import pytest

from app import deps
from config.settings import settings
from favorites.errors import NotFound
from models.favorites import FavoriteStore, SharedStore
from places.google_places_client import PlaceLookupFailed, PlacesClient
from places.venue import merge_over_snapshot, place_details, venue_from_place

BASE = "https://places.test/api"

PLACE = {
    "place_id": "ChIJ123",
    "name": "Cafe Wufu",
    "formatted_address": "1 Wufu 1st Rd",
    "geometry": {"location": {"lat": 22.63, "lng": 120.31}},
    "rating": 4.4,
    "user_ratings_total": 120,
    "photos": [{"photo_reference": "ref-a"}, {"photo_reference": "ref-b"}],
    "opening_hours": {"open_now": True, "weekday_text": ["星期一: 08:00–17:00"]},
    "types": ["cafe"],
    "website": "https://cafe.test",
    "formatted_phone_number": "07 123 4567",
}


def _client(handler):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return PlacesClient(api_key="k", base_url=BASE, http=http, language="zh-TW", timeout=1.0)


def _photo(ref, w, h):
    return f"https://photos.test/{ref}?w={w}&h={h}"


def test_get_details_ok():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"status": "OK", "result": PLACE})

    result = _client(handler).get_details("ChIJ123")
    assert result["name"] == "Cafe Wufu"
    assert seen["url"].path == "/api/details/json"
    assert seen["url"].params["place_id"] == "ChIJ123"
    assert seen["url"].params["language"] == "zh-TW"
    assert "geometry/location" in seen["url"].params["fields"]


@pytest.mark.parametrize("status", ["NOT_FOUND", "ZERO_RESULTS", "INVALID_REQUEST"])
def test_get_details_unknown_place_is_not_found(status):
    client = _client(lambda request: httpx.Response(200, json={"status": status}))
    with pytest.raises(NotFound):
        client.get_details("gone")


def test_get_details_other_status_is_lookup_failure():
    client = _client(lambda request: httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"}))
    with pytest.raises(PlaceLookupFailed) as exc:
        client.get_details("x")
    assert exc.value.status_code == 502
    assert exc.value.context["status"] == "OVER_QUERY_LIMIT"


def test_get_details_http_error_is_lookup_failure():
    client = _client(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(PlaceLookupFailed):
        client.get_details("x")


def test_client_requires_api_key(monkeypatch):
    monkeypatch.setattr("places.google_places_client.settings.GOOGLE_MAPS_API_KEY", "")
    with pytest.raises(RuntimeError):
        PlacesClient(api_key="")


def test_photo_url_carries_size_and_reference():
    url = _client(lambda request: httpx.Response(200)).photo_url("ref-a", 400, 300)
    parsed = httpx.URL(url)
    assert parsed.path == "/api/photo"
    assert parsed.params["photo_reference"] == "ref-a"
    assert parsed.params["maxwidth"] == "400"
    assert parsed.params["maxheight"] == "300"


def test_venue_from_place_keeps_allow_listed_fields():
    venue = venue_from_place(PLACE, _photo, 400, 300)
    assert venue.google_place_id == "ChIJ123"
    assert (venue.lat, venue.lng) == (22.63, 120.31)
    assert venue.main_photo_url == "https://photos.test/ref-a?w=400&h=300"
    assert venue.opening_hours_text == ["星期一: 08:00–17:00"]
    assert venue.is_renderable()

    doc = FavoriteStore.from_venue(venue).to_document()
    assert "website" not in doc and "types" not in doc


def test_venue_from_sparse_place():
    venue = venue_from_place({"place_id": "p", "name": "Bare"}, _photo)
    assert venue.main_photo_url is None
    assert venue.opening_hours_text is None
    assert not venue.is_renderable()


def test_place_details_resolves_every_photo():
    details = place_details(PLACE, _photo)
    assert details.photo_urls == [_photo("ref-a", 300, 200), _photo("ref-b", 300, 200)]
    assert details.open_now is True
    assert details.phone_number == "07 123 4567"


def test_merge_without_live_details_uses_snapshot():
    snap = SharedStore(name="Cafe", address="a", google_place_id="p1", lat=1.0, lng=2.0, main_photo_url="https://m")
    merged = merge_over_snapshot(snap, None)
    assert not merged.live
    assert merged.name == "Cafe"
    assert merged.photo_urls == ["https://m"]


def test_merge_prefers_live_and_fills_gaps_from_snapshot():
    snap = SharedStore(name="Old", address="a", google_place_id="p1", lat=1.0, lng=2.0, main_photo_url="https://m")
    live = place_details({"place_id": "p1", "name": "New", "rating": 4.9}, _photo)
    merged = merge_over_snapshot(snap, live)
    assert merged.live
    assert merged.name == "New"
    assert merged.rating == 4.9
    assert (merged.lat, merged.lng) == (1.0, 2.0)
    assert merged.photo_urls == ["https://m"]


def test_places_dependency_closes_its_client(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "k")
    gen = deps.get_places_client()
    client = next(gen)
    assert not client.http.is_closed
    gen.close()
    assert client.http.is_closed


def test_places_dependency_without_key_yields_none(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")
    assert list(deps.get_places_client()) == [None]


def test_close_leaves_injected_http_client_open():
    http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    PlacesClient(api_key="k", base_url=BASE, http=http).close()
    assert not http.is_closed
    http.close()
