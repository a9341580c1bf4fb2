from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from config.settings import settings
from models.favorites import SharedStore, Venue

PhotoUrlFn = Callable[[str, int, int], str]


class PlaceDetails(BaseModel):
    """Live venue details shown when a shared or saved store is opened."""

    google_place_id: str
    name: str = ""
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    photo_urls: List[str] = Field(default_factory=list)
    open_now: Optional[bool] = None
    weekday_text: Optional[List[str]] = None
    types: List[str] = Field(default_factory=list)
    website: Optional[str] = None
    phone_number: Optional[str] = None
    live: bool = True


def _location(place: Dict[str, Any]) -> Dict[str, Any]:
    return ((place.get("geometry") or {}).get("location")) or {}


def _photo_refs(place: Dict[str, Any]) -> List[str]:
    return [p["photo_reference"] for p in place.get("photos") or [] if p.get("photo_reference")]


def venue_from_place(
    place: Dict[str, Any],
    photo_url: PhotoUrlFn,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> Venue:
    """Map a Places Details result onto the favorites allow-list.

    Only the first photo is resolved; opening hours keep the weekly text.
    """
    loc = _location(place)
    refs = _photo_refs(place)
    main_photo = None
    if refs:
        main_photo = photo_url(
            refs[0],
            max_width or settings.MAIN_PHOTO_MAX_WIDTH,
            max_height or settings.MAIN_PHOTO_MAX_HEIGHT,
        )
    hours = (place.get("opening_hours") or {}).get("weekday_text")
    return Venue(
        google_place_id=place.get("place_id") or "",
        name=place.get("name") or "",
        address=place.get("formatted_address") or "",
        lat=loc.get("lat"),
        lng=loc.get("lng"),
        rating=place.get("rating"),
        user_ratings_total=place.get("user_ratings_total"),
        main_photo_url=main_photo,
        opening_hours_text=list(hours) if hours else None,
    )


def place_details(place: Dict[str, Any], photo_url: PhotoUrlFn, max_width: int = 300, max_height: int = 200) -> PlaceDetails:
    loc = _location(place)
    hours = place.get("opening_hours") or {}
    open_now = hours.get("open_now")
    return PlaceDetails(
        google_place_id=place.get("place_id") or "",
        name=place.get("name") or "",
        address=place.get("formatted_address") or "",
        lat=loc.get("lat"),
        lng=loc.get("lng"),
        rating=place.get("rating"),
        user_ratings_total=place.get("user_ratings_total"),
        photo_urls=[photo_url(ref, max_width, max_height) for ref in _photo_refs(place)],
        open_now=open_now if isinstance(open_now, bool) else None,
        weekday_text=list(hours["weekday_text"]) if hours.get("weekday_text") else None,
        types=list(place.get("types") or []),
        website=place.get("website"),
        phone_number=place.get("formatted_phone_number"),
    )


def merge_over_snapshot(store: SharedStore, live: Optional[PlaceDetails]) -> PlaceDetails:
    """Live details win; the shared snapshot fills whatever the lookup lacks.

    With no live details the snapshot alone is returned, flagged ``live=False``.
    """
    if live is None:
        return PlaceDetails(
            google_place_id=store.google_place_id,
            name=store.name,
            address=store.address,
            lat=store.lat,
            lng=store.lng,
            rating=store.rating,
            photo_urls=[store.main_photo_url] if store.main_photo_url else [],
            live=False,
        )
    return live.model_copy(update={
        "google_place_id": live.google_place_id or store.google_place_id,
        "name": live.name or store.name,
        "address": live.address or store.address,
        "lat": live.lat if live.lat is not None else store.lat,
        "lng": live.lng if live.lng is not None else store.lng,
        "photo_urls": live.photo_urls or ([store.main_photo_url] if store.main_photo_url else []),
    })
