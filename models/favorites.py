"""Pydantic models for favorites and public share documents.

Attribute names are snake_case; the camelCase aliases are the Firestore
document keys shared with the web client.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from models.station import Station


class _Doc(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class User(BaseModel):
    uid: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    email: Optional[str] = None

    def label(self, fallback: str) -> str:
        return self.display_name or self.email or fallback


class Venue(_Doc):
    """A venue as returned by the places lookup. Unknown keys are dropped."""

    google_place_id: str = Field(..., alias="googlePlaceId", min_length=1)
    name: str = ""
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = Field(default=None, alias="userRatingsTotal")
    main_photo_url: Optional[str] = Field(default=None, alias="mainPhotoUrl")
    opening_hours_text: Optional[List[str]] = Field(default=None, alias="openingHoursText")

    def is_renderable(self) -> bool:
        return bool(self.name) and self.lat is not None and self.lng is not None


class FavoriteStore(_Doc):
    # Fields copied from a Venue at save time; everything else is discarded.
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "address", "google_place_id", "lat", "lng")
    OPTIONAL_FIELDS: ClassVar[Tuple[str, ...]] = ("rating", "user_ratings_total", "main_photo_url", "opening_hours_text")

    id: str = ""
    google_place_id: str = Field(..., alias="googlePlaceId")
    name: str
    address: str = ""
    lat: float
    lng: float
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = Field(default=None, alias="userRatingsTotal")
    main_photo_url: Optional[str] = Field(default=None, alias="mainPhotoUrl")
    opening_hours_text: Optional[List[str]] = Field(default=None, alias="openingHoursText")
    added_at: Optional[datetime] = Field(default=None, alias="addedAt")

    @classmethod
    def allow_list(cls) -> Tuple[str, ...]:
        return cls.REQUIRED_FIELDS + cls.OPTIONAL_FIELDS

    @classmethod
    def from_venue(cls, venue: Venue) -> "FavoriteStore":
        return cls(**{f: getattr(venue, f) for f in cls.allow_list()})

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "FavoriteStore":
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> Dict[str, Any]:
        # Optional fields are written only when present; id is the doc name.
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id", "added_at"})

    def to_shared(self) -> "SharedStore":
        return SharedStore(
            name=self.name,
            address=self.address,
            google_place_id=self.google_place_id,
            lat=self.lat,
            lng=self.lng,
            rating=self.rating,
            main_photo_url=self.main_photo_url,
        )


class SharedStore(_Doc):
    """Denormalized venue as embedded in a public share document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = ""
    address: str = ""
    google_place_id: str = Field(..., alias="googlePlaceId")
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating: Optional[float] = None
    main_photo_url: Optional[str] = Field(default=None, alias="mainPhotoUrl")


class SingleStationShare(_Doc):
    original_user_id: str = Field(..., alias="originalUserId")
    original_user_name: str = Field(..., alias="originalUserName")
    original_station_id: str = Field(..., alias="originalStationId")
    original_station_name: str = Field(..., alias="originalStationName")
    stores: List[SharedStore] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class FullMapShare(_Doc):
    original_user_id: str = Field(..., alias="originalUserId")
    original_user_name: str = Field(..., alias="originalUserName")
    all_stations_favorites: Dict[str, List[SharedStore]] = Field(
        default_factory=dict, alias="allStationsFavorites"
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @property
    def total_stores(self) -> int:
        return sum(len(v) for v in self.all_stations_favorites.values())


class ShareLink(BaseModel):
    id: str
    url: str


class SingleStationShareView(BaseModel):
    """Read-only view of a published single-station share."""

    model_config = ConfigDict(frozen=True)

    id: str
    original_user_id: str
    original_user_name: str
    original_station_id: str
    original_station_name: str
    stores: Tuple[SharedStore, ...] = ()
    created_at: Optional[datetime] = None
    station: Optional[Station] = None
    has_map_placement: bool = False


class FullMapShareView(BaseModel):
    """Read-only view of a published full-map share."""

    model_config = ConfigDict(frozen=True)

    id: str
    original_user_id: str
    original_user_name: str
    all_stations_favorites: Dict[str, Tuple[SharedStore, ...]] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    unplaced_station_ids: Tuple[str, ...] = ()

    def stores_for(self, station_id: str) -> List[SharedStore]:
        return list(self.all_stations_favorites.get(station_id, ()))

    @property
    def total_stores(self) -> int:
        return sum(len(v) for v in self.all_stations_favorites.values())
