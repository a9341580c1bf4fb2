from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from config.settings import settings
from data.stations import is_known_station
from favorites.errors import CapacityExceeded, Duplicate, NotFound, ReadFailure, ValidationFailure, WriteFailure
from favorites.subscription import FavoritesSubscription
from models.favorites import FavoriteStore, Venue
from repos.favorites_repo import FavoritesRepository

log = logging.getLogger("metrofav.favorites")


class FavoritesStoreAdapter:
    """Live view and mutations of one user's favorites under one station.

    The capacity and duplicate checks in ``add`` are read-then-write and not
    atomic with the insert, so concurrent adds can overshoot both. This is a
    soft limit; overshoot is logged as ``favorites_soft_limit_exceeded``.
    """

    def __init__(
        self,
        repo: Optional[FavoritesRepository] = None,
        max_items: Optional[int] = None,
        subscribe_attempts: Optional[int] = None,
        backoff_base_s: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repo = repo or FavoritesRepository()
        self.max_items = settings.MAX_FAVORITES_PER_STATION if max_items is None else max_items
        self.subscribe_attempts = max(1, settings.SUBSCRIBE_MAX_ATTEMPTS if subscribe_attempts is None else subscribe_attempts)
        self.backoff_base_s = settings.SUBSCRIBE_BACKOFF_BASE_S if backoff_base_s is None else backoff_base_s
        self._sleep = sleep
        self._lock = threading.Lock()
        self._subscription: Optional[FavoritesSubscription] = None

    @staticmethod
    def check_scope(user_id: str, station_id: str) -> None:
        if not user_id:
            raise ValidationFailure("請先登入。", field="user_id")
        if not station_id or not is_known_station(station_id):
            raise ValidationFailure("請先選擇捷運站。", field="station_id", station_id=station_id)

    # -- live view -----------------------------------------------------------

    @property
    def subscription(self) -> Optional[FavoritesSubscription]:
        return self._subscription

    def subscribe(self, user_id: str, station_id: str) -> FavoritesSubscription:
        self.check_scope(user_id, station_id)
        self.unsubscribe()

        sub = FavoritesSubscription(user_id, station_id)
        with self._lock:
            self._subscription = sub
        self._open_listener(sub)
        return sub

    def unsubscribe(self) -> None:
        with self._lock:
            previous, self._subscription = self._subscription, None
        if previous is not None:
            previous.cancel()

    def _open_listener(self, sub: FavoritesSubscription) -> None:
        delay = self.backoff_base_s
        last_error: Optional[Exception] = None

        def _on_error(exc: Exception) -> None:
            sub.fail(ReadFailure(error_type=type(exc).__name__))

        for attempt in range(1, self.subscribe_attempts + 1):
            if not sub.active:
                return
            try:
                watch = self.repo.watch(sub.user_id, sub.station_id, sub.deliver, _on_error)
            except GoogleAPIError as e:
                last_error = e
                log.warning(
                    "favorites_listen_failed",
                    extra={"extra": {
                        "user_id": sub.user_id,
                        "station_id": sub.station_id,
                        "attempt": attempt,
                        "error_type": type(e).__name__,
                        "message": str(e),
                    }},
                )
                if attempt < self.subscribe_attempts:
                    self._sleep(delay)
                    delay *= 2
                continue
            sub.attach(watch)
            log.info(
                "favorites_subscribed",
                extra={"extra": {"user_id": sub.user_id, "station_id": sub.station_id, "attempt": attempt}},
            )
            return

        sub.fail(ReadFailure(error_type=type(last_error).__name__ if last_error else ""))

    # -- reads ---------------------------------------------------------------

    def list(self, user_id: str, station_id: str, limit: Optional[int] = None) -> List[FavoriteStore]:
        self.check_scope(user_id, station_id)
        try:
            return self.repo.list(user_id, station_id, limit=limit)
        except (GoogleAPIError, ValidationError) as e:
            raise ReadFailure(error_type=type(e).__name__) from e

    # -- mutations -----------------------------------------------------------

    def add(self, user_id: str, station_id: str, venue: Optional[Venue]) -> FavoriteStore:
        self.check_scope(user_id, station_id)
        if venue is None or not venue.google_place_id:
            raise ValidationFailure("請先選擇店家。", field="venue")
        if not venue.is_renderable():
            raise ValidationFailure("店家資訊不完整，無法加入最愛。", field="venue")

        try:
            current = self.repo.count(user_id, station_id)
            if current >= self.max_items:
                raise CapacityExceeded(
                    f"每個捷運站最多只能收藏 {self.max_items} 家店。", limit=self.max_items, count=current
                )
            if self.repo.find_by_place_id(user_id, station_id, venue.google_place_id) is not None:
                raise Duplicate(f"「{venue.name}」已經在最愛清單中了。", google_place_id=venue.google_place_id)
        except (GoogleAPIError, ValidationError) as e:
            raise ReadFailure(error_type=type(e).__name__) from e

        store = FavoriteStore.from_venue(venue)
        try:
            doc_id = self.repo.insert(user_id, station_id, store)
        except GoogleAPIError as e:
            log.error(
                "favorite_add_failed",
                extra={"extra": {"user_id": user_id, "station_id": station_id, "error_type": type(e).__name__}},
            )
            raise WriteFailure(error_type=type(e).__name__) from e

        log.info(
            "favorite_added",
            extra={"extra": {
                "user_id": user_id,
                "station_id": station_id,
                "favorite_id": doc_id,
                "google_place_id": store.google_place_id,
                "count_before": current,
            }},
        )
        self._check_soft_limit(user_id, station_id)
        return store.model_copy(update={"id": doc_id})

    def _check_soft_limit(self, user_id: str, station_id: str) -> None:
        try:
            after = self.repo.count(user_id, station_id)
        except GoogleAPIError as e:
            log.warning(
                "favorites_post_add_count_failed",
                extra={"extra": {"user_id": user_id, "station_id": station_id, "error_type": type(e).__name__}},
            )
            return
        if after > self.max_items:
            log.warning(
                "favorites_soft_limit_exceeded",
                extra={"extra": {"user_id": user_id, "station_id": station_id, "count": after, "limit": self.max_items}},
            )

    def remove(self, user_id: str, station_id: str, favorite_id: str) -> None:
        self.check_scope(user_id, station_id)
        if not favorite_id or "/" in favorite_id:
            raise ValidationFailure("請先選擇要移除的店家。", field="favorite_id")

        try:
            exists = self.repo.exists(user_id, station_id, favorite_id)
        except GoogleAPIError as e:
            raise ReadFailure(error_type=type(e).__name__) from e
        if not exists:
            raise NotFound("這家店已不在最愛清單中。", favorite_id=favorite_id)

        try:
            self.repo.delete(user_id, station_id, favorite_id)
        except GoogleAPIError as e:
            log.error(
                "favorite_remove_failed",
                extra={"extra": {"user_id": user_id, "station_id": station_id, "favorite_id": favorite_id}},
            )
            raise WriteFailure(error_type=type(e).__name__) from e

        log.info(
            "favorite_removed",
            extra={"extra": {"user_id": user_id, "station_id": station_id, "favorite_id": favorite_id}},
        )
