from __future__ import annotations

from typing import Iterator, Optional

from config.settings import settings
from favorites.adapter import FavoritesStoreAdapter
from favorites.guards import InFlightGuard, in_flight
from places.google_places_client import PlacesClient
from sharing.publisher import SnapshotPublisher
from sharing.resolver import SharedViewResolver


def get_favorites_adapter() -> FavoritesStoreAdapter:
    # One adapter per request / stream, so one live subscription per surface.
    return FavoritesStoreAdapter()


def get_publisher() -> SnapshotPublisher:
    return SnapshotPublisher()


def get_resolver() -> SharedViewResolver:
    return SharedViewResolver()


def get_places_client() -> Iterator[Optional[PlacesClient]]:
    if not settings.GOOGLE_MAPS_API_KEY:
        yield None
        return
    client = PlacesClient()
    try:
        yield client
    finally:
        client.close()


def get_in_flight() -> InFlightGuard:
    return in_flight
