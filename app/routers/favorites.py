from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.deps import get_favorites_adapter, get_in_flight, get_places_client
from config.settings import settings
from favorites.adapter import FavoritesStoreAdapter
from favorites.errors import ValidationFailure
from favorites.guards import KIND_ADD, KIND_REMOVE, InFlightGuard
from favorites.subscription import FavoritesSubscription, SubscriptionClosed
from models.favorites import FavoriteStore, User, Venue
from places.google_places_client import PlacesClient
from places.venue import venue_from_place
from utils.auth import CurrentUser

router = APIRouter()


def store_json(store: FavoriteStore) -> Dict[str, Any]:
    return store.model_dump(mode="json", exclude_none=True)


def _sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def _lookup_venue(places: Optional[PlacesClient], google_place_id: str) -> Venue:
    if places is None:
        raise ValidationFailure("店家資訊不完整，無法加入最愛。", field="venue")
    place = places.get_details(google_place_id)
    return venue_from_place({**place, "place_id": place.get("place_id") or google_place_id}, places.photo_url)


@router.get("/favorites/{station_id}")
def list_favorites(
    station_id: str,
    user: User = CurrentUser,
    adapter: FavoritesStoreAdapter = Depends(get_favorites_adapter),
):
    stores = adapter.list(user.uid, station_id)
    return {
        "ok": True,
        "station_id": station_id,
        "count": len(stores),
        "limit": adapter.max_items,
        "items": [store_json(s) for s in stores],
    }


@router.post("/favorites/{station_id}", status_code=201)
def add_favorite(
    station_id: str,
    venue: Venue,
    user: User = CurrentUser,
    adapter: FavoritesStoreAdapter = Depends(get_favorites_adapter),
    places: Optional[PlacesClient] = Depends(get_places_client),
    guard: InFlightGuard = Depends(get_in_flight),
):
    adapter.check_scope(user.uid, station_id)
    with guard.hold(KIND_ADD, user.uid):
        if not venue.is_renderable():
            venue = _lookup_venue(places, venue.google_place_id)
        store = adapter.add(user.uid, station_id, venue)
    return {"ok": True, "item": store_json(store), "message": f"已將「{store.name}」加入最愛！"}


@router.delete("/favorites/{station_id}/{favorite_id}")
def remove_favorite(
    station_id: str,
    favorite_id: str,
    user: User = CurrentUser,
    adapter: FavoritesStoreAdapter = Depends(get_favorites_adapter),
    guard: InFlightGuard = Depends(get_in_flight),
):
    with guard.hold(KIND_REMOVE, user.uid):
        adapter.remove(user.uid, station_id, favorite_id)
    return {"ok": True, "removed": favorite_id, "message": "已從最愛移除。"}


def event_stream(
    adapter: FavoritesStoreAdapter,
    sub: FavoritesSubscription,
    keepalive_s: float,
) -> Iterator[str]:
    """Server-sent events: one ``favorites`` event per full list.

    A failed subscription emits one ``error`` event, then the empty list, and
    the stream ends.
    """
    try:
        while True:
            try:
                event = sub.get(timeout=keepalive_s)
            except SubscriptionClosed:
                return
            if event is None:
                yield ": keepalive\n\n"
                continue
            if event.error is not None:
                yield _sse("error", {"detail": event.error.code, "message": event.error.message})
            yield _sse("favorites", {
                "station_id": sub.station_id,
                "count": len(event.stores),
                "items": [store_json(s) for s in event.stores],
            })
            if event.error is not None:
                return
    finally:
        adapter.unsubscribe()


@router.get("/favorites/{station_id}/stream")
def stream_favorites(
    station_id: str,
    user: User = CurrentUser,
    adapter: FavoritesStoreAdapter = Depends(get_favorites_adapter),
):
    sub = adapter.subscribe(user.uid, station_id)
    return StreamingResponse(
        event_stream(adapter, sub, settings.STREAM_KEEPALIVE_S),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
