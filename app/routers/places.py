from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.deps import get_places_client
from models.favorites import User
from places.google_places_client import PlacesClient
from places.venue import place_details, venue_from_place
from utils.auth import CurrentUser

router = APIRouter()


@router.get("/places/{place_id}")
def get_place(
    place_id: str,
    user: User = CurrentUser,
    places: Optional[PlacesClient] = Depends(get_places_client),
):
    if places is None:
        raise HTTPException(status_code=503, detail="places_not_configured")
    place = places.get_details(place_id)
    place = {**place, "place_id": place.get("place_id") or place_id}
    return {
        "ok": True,
        "place": place_details(place, places.photo_url).model_dump(mode="json", exclude_none=True),
        # What would be saved if this place were added to favorites.
        "venue": venue_from_place(place, places.photo_url).model_dump(mode="json", exclude_none=True),
    }
