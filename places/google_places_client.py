from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from config.settings import settings
from favorites.errors import NotFound, ReadFailure

log = logging.getLogger("metrofav.places")

DETAIL_FIELDS = (
    "name",
    "formatted_address",
    "geometry/location",
    "place_id",
    "rating",
    "user_ratings_total",
    "photos",
    "opening_hours",
    "types",
    "website",
    "formatted_phone_number",
)

# Places API statuses meaning "no such place" rather than a service problem.
_NOT_FOUND_STATUSES = {"NOT_FOUND", "ZERO_RESULTS", "INVALID_REQUEST"}


class PlaceLookupFailed(ReadFailure):
    code = "place_lookup_failed"
    status_code = 502
    default_message = "無法取得店家的詳細資訊。"


class PlacesClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.GOOGLE_MAPS_API_KEY
        if not self.api_key:
            raise RuntimeError("GOOGLE_MAPS_API_KEY not configured")
        self.base_url = (base_url or settings.PLACES_API_BASE_URL).rstrip("/")
        self.language = language or settings.PLACES_LANGUAGE
        self.timeout = timeout or settings.PLACES_TIMEOUT_S
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        # A caller-supplied client is left to its owner.
        if self._owns_http:
            self.http.close()

    def get_details(self, place_id: str) -> Dict[str, Any]:
        if not place_id:
            raise NotFound("找不到店家。", place_id=place_id)
        params = {
            "place_id": place_id,
            "fields": ",".join(DETAIL_FIELDS),
            "language": self.language,
            "key": self.api_key,
        }
        try:
            r = self.http.get(f"{self.base_url}/details/json", params=params, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(
                "place_details_failed",
                extra={"extra": {"place_id": place_id, "error_type": type(e).__name__}},
            )
            raise PlaceLookupFailed(error_type=type(e).__name__) from e

        status = data.get("status") or ""
        if status in _NOT_FOUND_STATUSES:
            raise NotFound("找不到店家。", place_id=place_id, status=status)
        if status != "OK":
            log.warning("place_details_status", extra={"extra": {"place_id": place_id, "status": status}})
            raise PlaceLookupFailed(status=status)
        return data.get("result") or {}

    def photo_url(self, photo_reference: str, max_width: int, max_height: int) -> str:
        """Resolve a photo reference to an image URL. Safe to call again later."""
        params = {
            "maxwidth": max_width,
            "maxheight": max_height,
            "photo_reference": photo_reference,
            "key": self.api_key,
        }
        return f"{self.base_url}/photo?{urlencode(params)}"
