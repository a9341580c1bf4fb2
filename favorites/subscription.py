from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from favorites.errors import ReadFailure
from models.favorites import FavoriteStore

log = logging.getLogger("metrofav.favorites.subscription")


class SubscriptionClosed(Exception):
    pass


@dataclass(frozen=True)
class FavoritesEvent:
    """One delivery: the complete current list, or a failure with an empty list."""

    stores: List[FavoriteStore] = field(default_factory=list)
    error: Optional[ReadFailure] = None


class FavoritesSubscription:
    """Cancellable channel of full-list snapshots for one (user, station) scope.

    Deliveries arrive from the store listener thread and are queued; consumers
    read them with ``get()`` or by iterating. After ``cancel()`` nothing more
    is delivered, including events already queued before the cancel.
    """

    def __init__(self, user_id: str, station_id: str):
        self.user_id = user_id
        self.station_id = station_id
        self.latest: List[FavoriteStore] = []
        self._events: "queue.Queue[Optional[FavoritesEvent]]" = queue.Queue()
        self._lock = threading.Lock()
        self._active = True
        self._failed = False
        self._watch = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def failed(self) -> bool:
        return self._failed

    def attach(self, watch) -> None:
        with self._lock:
            if self._active:
                self._watch = watch
                return
        # Cancelled while the listener was being opened.
        watch.unsubscribe()

    def deliver(self, stores: List[FavoriteStore]) -> None:
        with self._lock:
            if not self._active:
                return
            self.latest = list(stores)
            self._events.put(FavoritesEvent(stores=list(stores)))

    def fail(self, error: ReadFailure) -> None:
        with self._lock:
            if not self._active or self._failed:
                return
            self._failed = True
            self.latest = []
            self._events.put(FavoritesEvent(stores=[], error=error))
        log.warning(
            "favorites_subscription_failed",
            extra={"extra": {"user_id": self.user_id, "station_id": self.station_id, "code": error.code}},
        )

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            watch, self._watch = self._watch, None
        # Wake up a blocked consumer.
        self._events.put(None)
        if watch is not None:
            watch.unsubscribe()
        log.info(
            "favorites_subscription_cancelled",
            extra={"extra": {"user_id": self.user_id, "station_id": self.station_id}},
        )

    def check_listener(self) -> None:
        """Surface a listener that stopped without reporting an error.

        Firestore closes a watch on unrecoverable RPC errors and only flips
        ``is_active``; no callback fires.
        """
        with self._lock:
            watch = self._watch
        if watch is not None and not watch.is_active:
            self.fail(ReadFailure("即時同步已中斷，請重新整理。", reason="listener_closed"))

    def get(self, timeout: Optional[float] = None) -> Optional[FavoritesEvent]:
        """Next event, or None when ``timeout`` elapses first.

        Raises SubscriptionClosed once the subscription has been cancelled.
        """
        if not self._active:
            raise SubscriptionClosed()
        self.check_listener()
        try:
            event = self._events.get(timeout=timeout)
        except queue.Empty:
            return None
        if event is None or not self._active:
            raise SubscriptionClosed()
        return event

    def __iter__(self) -> Iterator[FavoritesEvent]:
        while True:
            try:
                yield self.get()
            except SubscriptionClosed:
                return

    def __enter__(self) -> "FavoritesSubscription":
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()
