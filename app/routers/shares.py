from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.deps import get_in_flight, get_places_client, get_publisher, get_resolver
from favorites.errors import FavoritesError, NotFound
from favorites.guards import KIND_PUBLISH, InFlightGuard
from models.favorites import SharedStore, User
from places.google_places_client import PlacesClient
from places.venue import merge_over_snapshot, place_details
from sharing.publisher import SnapshotPublisher
from sharing.resolver import SharedViewResolver
from utils.auth import CurrentUser

log = logging.getLogger("metrofav.api.shares")

router = APIRouter()
public_router = APIRouter()


@router.post("/shares/station/{station_id}", status_code=201)
def publish_single_station(
    station_id: str,
    user: User = CurrentUser,
    publisher: SnapshotPublisher = Depends(get_publisher),
    guard: InFlightGuard = Depends(get_in_flight),
):
    with guard.hold(KIND_PUBLISH, user.uid):
        link = publisher.publish_single_station(user, station_id)
    return {"ok": True, "id": link.id, "url": link.url, "message": "單站分享連結已生成！"}


@router.post("/shares/map", status_code=201)
def publish_full_map(
    user: User = CurrentUser,
    publisher: SnapshotPublisher = Depends(get_publisher),
    guard: InFlightGuard = Depends(get_in_flight),
):
    with guard.hold(KIND_PUBLISH, user.uid):
        link = publisher.publish_full_map(user)
    return {"ok": True, "id": link.id, "url": link.url, "message": "全站收藏分享連結已生成！"}


# Anonymous, read-only share viewers.

@public_router.get("/share/{share_id}")
def view_single_station_share(share_id: str, resolver: SharedViewResolver = Depends(get_resolver)):
    view = resolver.resolve_single_station(share_id)
    return {"ok": True, "share": view.model_dump(mode="json", exclude_none=True)}


@public_router.get("/sharemap/{share_id}")
def view_full_map_share(share_id: str, resolver: SharedViewResolver = Depends(get_resolver)):
    view = resolver.resolve_full_map(share_id)
    return {"ok": True, "share": view.model_dump(mode="json", exclude_none=True), "total_stores": view.total_stores}


@public_router.get("/sharemap/{share_id}/stations/{station_id}")
def view_full_map_station(share_id: str, station_id: str, resolver: SharedViewResolver = Depends(get_resolver)):
    view = resolver.resolve_full_map(share_id)
    stores = view.stores_for(station_id)
    return {
        "ok": True,
        "station_id": station_id,
        "count": len(stores),
        "items": [s.model_dump(mode="json", exclude_none=True) for s in stores],
    }


def _store_details(store: SharedStore, places: Optional[PlacesClient]):
    live = None
    if places is not None:
        try:
            live = place_details(places.get_details(store.google_place_id), places.photo_url)
        except FavoritesError as e:
            # The snapshot is still shown when live details are unavailable.
            log.warning(
                "shared_store_live_details_unavailable",
                extra={"extra": {"google_place_id": store.google_place_id, "code": e.code}},
            )
    return merge_over_snapshot(store, live).model_dump(mode="json", exclude_none=True)


def _find_store(stores, google_place_id: str) -> SharedStore:
    for s in stores:
        if s.google_place_id == google_place_id:
            return s
    raise NotFound("此分享中沒有這家店。", google_place_id=google_place_id)


@public_router.get("/share/{share_id}/stores/{google_place_id}")
def single_station_store_details(
    share_id: str,
    google_place_id: str,
    resolver: SharedViewResolver = Depends(get_resolver),
    places: Optional[PlacesClient] = Depends(get_places_client),
):
    view = resolver.resolve_single_station(share_id)
    store = _find_store(view.stores, google_place_id)
    return {"ok": True, "place": _store_details(store, places)}


@public_router.get("/sharemap/{share_id}/stores/{google_place_id}")
def full_map_store_details(
    share_id: str,
    google_place_id: str,
    resolver: SharedViewResolver = Depends(get_resolver),
    places: Optional[PlacesClient] = Depends(get_places_client),
):
    view = resolver.resolve_full_map(share_id)
    stores = [s for group in view.all_stations_favorites.values() for s in group]
    store = _find_store(stores, google_place_id)
    return {"ok": True, "place": _store_details(store, places)}
