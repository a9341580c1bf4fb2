from __future__ import annotations

from typing import Any, Callable, List, Optional

from google.cloud import firestore
from google.cloud.firestore import Client
from pydantic import ValidationError

from models.favorites import FavoriteStore
from models.schema import favorites_path
from storage.firestore_client import get_firestore_client

ORDER_FIELD = "addedAt"


class FavoritesRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def _stores_col(self, user_id: str, station_id: str):
        return self.db.collection(favorites_path(user_id, station_id))

    def _ordered(self, user_id: str, station_id: str):
        return self._stores_col(user_id, station_id).order_by(ORDER_FIELD)

    def list(self, user_id: str, station_id: str, limit: Optional[int] = None) -> List[FavoriteStore]:
        q = self._ordered(user_id, station_id)
        if limit is not None:
            q = q.limit(limit)
        return [FavoriteStore.from_document(d.id, d.to_dict() or {}) for d in q.stream()]

    def count(self, user_id: str, station_id: str) -> int:
        # Scopes hold at most a handful of documents; streaming is fine.
        return sum(1 for _ in self._stores_col(user_id, station_id).stream())

    def find_by_place_id(self, user_id: str, station_id: str, google_place_id: str) -> Optional[FavoriteStore]:
        query = (
            self._stores_col(user_id, station_id)
            .where("googlePlaceId", "==", google_place_id)
            .limit(1)
        )
        snaps = list(query.stream())
        if not snaps:
            return None
        return FavoriteStore.from_document(snaps[0].id, snaps[0].to_dict() or {})

    def insert(self, user_id: str, station_id: str, store: FavoriteStore) -> str:
        _, ref = self._stores_col(user_id, station_id).add(
            {**store.to_document(), ORDER_FIELD: firestore.SERVER_TIMESTAMP}
        )
        return ref.id

    def exists(self, user_id: str, station_id: str, doc_id: str) -> bool:
        return self._stores_col(user_id, station_id).document(doc_id).get().exists

    def delete(self, user_id: str, station_id: str, doc_id: str) -> None:
        self._stores_col(user_id, station_id).document(doc_id).delete()

    def watch(
        self,
        user_id: str,
        station_id: str,
        on_change: Callable[[List[FavoriteStore]], Any],
        on_error: Callable[[Exception], Any],
    ):
        """Listen to the scope; ``on_change`` gets the full ordered list on every change.

        Documents that no longer parse are reported through ``on_error``.
        Returns the Firestore ``Watch``; call ``unsubscribe()`` to stop it.
        """

        def _on_snapshot(docs, changes, read_time):
            try:
                stores = [FavoriteStore.from_document(d.id, d.to_dict() or {}) for d in docs]
            except ValidationError as e:
                on_error(e)
                return
            on_change(stores)

        return self._ordered(user_id, station_id).on_snapshot(_on_snapshot)
