from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Set, Tuple

from favorites.errors import OperationInProgress

KIND_ADD = "add"
KIND_REMOVE = "remove"
KIND_PUBLISH = "publish"


class InFlightGuard:
    """At most one outstanding operation per (kind, user).

    A second request of the same kind is rejected instead of queued.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._held: Set[Tuple[str, str]] = set()

    def is_held(self, kind: str, user_id: str) -> bool:
        with self._lock:
            return (kind, user_id) in self._held

    @contextmanager
    def hold(self, kind: str, user_id: str) -> Iterator[None]:
        key = (kind, user_id)
        with self._lock:
            if key in self._held:
                raise OperationInProgress(kind=kind)
            self._held.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._held.discard(key)


in_flight = InFlightGuard()
