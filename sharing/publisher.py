from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from config.settings import settings
from data.stations import all_stations, get_station
from favorites.errors import EmptyCollection, ReadFailure, ValidationFailure, WriteFailure
from models.favorites import FavoriteStore, FullMapShare, SharedStore, ShareLink, SingleStationShare, User
from models.schema import SHARE_PATH_FULL_MAP, SHARE_PATH_SINGLE
from models.station import Station
from ops.metrics import Timer, timed
from repos.favorites_repo import FavoritesRepository
from repos.share_repo import ShareRepository
from sharing.fanout import SKIP, fan_out

log = logging.getLogger("metrofav.sharing.publisher")

SINGLE_STATION_FALLBACK_NAME = "一位使用者"
FULL_MAP_FALLBACK_NAME = "一位熱心的分享者"


def share_url(prefix: str, share_id: str, base_url: Optional[str] = None) -> str:
    origin = (base_url if base_url is not None else settings.APP_BASE_URL).rstrip("/")
    return f"{origin}/{prefix}/{share_id}"


class SnapshotPublisher:
    """Copies favorites into public, immutable share documents.

    Shares are denormalized copies: later edits to the owner's favorites do
    not reach an already published share.
    """

    def __init__(
        self,
        shares: Optional[ShareRepository] = None,
        favorites: Optional[FavoritesRepository] = None,
        stations: Optional[Sequence[Station]] = None,
        base_url: Optional[str] = None,
        max_items: Optional[int] = None,
        concurrency: Optional[int] = None,
        link_sink: Optional[Callable[[str], None]] = None,
    ):
        self.shares = shares or ShareRepository()
        self.favorites = favorites or FavoritesRepository()
        self.stations = list(stations) if stations is not None else all_stations()
        self.base_url = base_url
        self.max_items = settings.MAX_FAVORITES_PER_STATION if max_items is None else max_items
        self.concurrency = settings.FULLMAP_READ_CONCURRENCY if concurrency is None else concurrency
        self.link_sink = link_sink

    def _emit_link(self, url: str) -> None:
        # Best effort: a failing sink never fails the publish.
        if self.link_sink is None:
            return
        try:
            self.link_sink(url)
        except Exception as e:
            log.warning("share_link_sink_failed", extra={"extra": {"error_type": type(e).__name__, "message": str(e)}})

    def _find_station(self, station_id: str) -> Optional[Station]:
        for s in self.stations:
            if s.id == station_id:
                return s
        return get_station(station_id)

    def publish_single_station(
        self,
        user: Optional[User],
        station_id: str,
        favorites: Optional[Sequence[FavoriteStore]] = None,
    ) -> ShareLink:
        if user is None or not user.uid:
            raise ValidationFailure("需要登入才能分享。", field="user")
        station = self._find_station(station_id) if station_id else None
        if station is None:
            raise ValidationFailure("需要先選擇捷運站才能分享。", field="station_id", station_id=station_id)

        if favorites is None:
            try:
                favorites = self.favorites.list(user.uid, station.id, limit=self.max_items)
            except (GoogleAPIError, ValidationError) as e:
                raise ReadFailure(error_type=type(e).__name__) from e
        if not favorites:
            raise ValidationFailure("需要先有收藏店家才能分享。", field="favorites")

        share = SingleStationShare(
            original_user_id=user.uid,
            original_user_name=user.label(SINGLE_STATION_FALLBACK_NAME),
            original_station_id=station.id,
            original_station_name=station.name,
            stores=[f.to_shared() for f in favorites],
        )
        try:
            share_id = self.shares.create_single_station(share)
        except GoogleAPIError as e:
            log.error(
                "share_publish_failed",
                extra={"extra": {"kind": "single_station", "user_id": user.uid, "station_id": station.id,
                                 "error_type": type(e).__name__}},
            )
            raise WriteFailure("生成單站分享連結失敗。", error_type=type(e).__name__) from e

        link = ShareLink(id=share_id, url=share_url(SHARE_PATH_SINGLE, share_id, self.base_url))
        log.info(
            "share_published",
            extra={"extra": {"kind": "single_station", "share_id": share_id, "user_id": user.uid,
                             "station_id": station.id, "stores": len(share.stores)}},
        )
        self._emit_link(link.url)
        return link

    def collect_all_favorites(self, user_id: str) -> Dict[str, List[SharedStore]]:
        """Per-station shared favorites in station-list order, empty stations skipped.

        A station whose read fails counts as having no favorites.
        """
        station_ids = [s.id for s in self.stations if s.id]
        with timed(log, "fullmap_collected", user_id=user_id, stations=len(station_ids)):
            result = fan_out(
                station_ids,
                lambda sid: self.favorites.list(user_id, sid, limit=self.max_items),
                max_workers=self.concurrency,
                on_error=SKIP,
                label="fullmap_station_read",
            )
        if result.failed and len(result.failed) == len(station_ids):
            raise ReadFailure(failed_stations=result.failed)

        collected: Dict[str, List[SharedStore]] = {}
        for sid in station_ids:
            stores = result.values.get(sid) or []
            if stores:
                collected[sid] = [f.to_shared() for f in stores]
        return collected

    def publish_full_map(self, user: Optional[User]) -> ShareLink:
        if user is None or not user.uid:
            raise ValidationFailure("需要登入才能分享您的所有收藏。", field="user")

        t = Timer()
        collected = self.collect_all_favorites(user.uid)
        share = FullMapShare(
            original_user_id=user.uid,
            original_user_name=user.label(FULL_MAP_FALLBACK_NAME),
            all_stations_favorites=collected,
        )
        if share.total_stores == 0:
            log.info("share_nothing_to_publish", extra={"extra": {"kind": "full_map", "user_id": user.uid}})
            raise EmptyCollection()

        try:
            share_id = self.shares.create_full_map(share)
        except GoogleAPIError as e:
            log.error(
                "share_publish_failed",
                extra={"extra": {"kind": "full_map", "user_id": user.uid, "error_type": type(e).__name__}},
            )
            raise WriteFailure("生成全站收藏分享連結失敗。", error_type=type(e).__name__) from e

        link = ShareLink(id=share_id, url=share_url(SHARE_PATH_FULL_MAP, share_id, self.base_url))
        log.info(
            "share_published",
            extra={"extra": {"kind": "full_map", "share_id": share_id, "user_id": user.uid,
                             "stations": len(collected), "stores": share.total_stores,
                             "duration_ms": t.ms()}},
        )
        self._emit_link(link.url)
        return link
