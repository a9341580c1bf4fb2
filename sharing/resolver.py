from __future__ import annotations

import logging
from typing import Callable, Optional

from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from data.stations import get_station
from favorites.errors import NotFound, ReadFailure
from models.favorites import FullMapShareView, SingleStationShareView
from models.station import Station
from repos.share_repo import ShareRepository

log = logging.getLogger("metrofav.sharing.resolver")


def _valid_share_id(share_id: str) -> bool:
    return bool(share_id) and "/" not in share_id


class SharedViewResolver:
    """Resolves public share ids into read-only views. Never writes."""

    def __init__(
        self,
        shares: Optional[ShareRepository] = None,
        station_lookup: Callable[[str], Optional[Station]] = get_station,
    ):
        self.shares = shares or ShareRepository()
        self.station_lookup = station_lookup

    def _placeable(self, station_id: str) -> bool:
        station = self.station_lookup(station_id)
        return bool(station and station.has_map_placement)

    def resolve_single_station(self, share_id: str) -> SingleStationShareView:
        if not _valid_share_id(share_id):
            raise NotFound("無效的分享連結參數。", share_id=share_id)
        try:
            share = self.shares.get_single_station(share_id)
        except (GoogleAPIError, ValidationError) as e:
            log.error(
                "share_resolve_failed",
                extra={"extra": {"kind": "single_station", "share_id": share_id, "error_type": type(e).__name__}},
            )
            raise ReadFailure("讀取分享內容時發生錯誤。", error_type=type(e).__name__) from e
        if share is None:
            raise NotFound("找不到這個分享連結的內容，可能已被刪除或連結錯誤。", share_id=share_id)

        station = self.station_lookup(share.original_station_id)
        if station is None:
            log.warning(
                "share_unknown_station",
                extra={"extra": {"share_id": share_id, "station_id": share.original_station_id}},
            )
        return SingleStationShareView(
            id=share_id,
            original_user_id=share.original_user_id,
            original_user_name=share.original_user_name,
            original_station_id=share.original_station_id,
            original_station_name=share.original_station_name,
            stores=tuple(share.stores),
            created_at=share.created_at,
            station=station,
            has_map_placement=bool(station and station.has_map_placement),
        )

    def resolve_full_map(self, share_id: str) -> FullMapShareView:
        if not _valid_share_id(share_id):
            raise NotFound("無效的分享連結參數。", share_id=share_id)
        try:
            share = self.shares.get_full_map(share_id)
        except (GoogleAPIError, ValidationError) as e:
            log.error(
                "share_resolve_failed",
                extra={"extra": {"kind": "full_map", "share_id": share_id, "error_type": type(e).__name__}},
            )
            raise ReadFailure("讀取分享的地圖時發生錯誤。", error_type=type(e).__name__) from e
        if share is None:
            raise NotFound("找不到這個分享的地圖，可能連結已失效或錯誤。", share_id=share_id)

        unplaced = tuple(sid for sid in share.all_stations_favorites if not self._placeable(sid))
        return FullMapShareView(
            id=share_id,
            original_user_id=share.original_user_id,
            original_user_name=share.original_user_name,
            all_stations_favorites={k: tuple(v) for k, v in share.all_stations_favorites.items()},
            created_at=share.created_at,
            unplaced_station_ids=unplaced,
        )
