from __future__ import annotations

from typing import Any, Dict, Optional

from google.cloud import firestore
from google.cloud.firestore import Client

from models.favorites import FullMapShare, SingleStationShare
from models.schema import COL_PUBLIC_SHARED_FULL_MAPS, COL_PUBLIC_SHARED_VIEWS
from storage.firestore_client import get_firestore_client


class ShareRepository:
    """Public, append-only share snapshots. Documents are never updated."""

    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def _create(self, collection: str, data: Dict[str, Any]) -> str:
        _, ref = self.db.collection(collection).add({**data, "createdAt": firestore.SERVER_TIMESTAMP})
        return ref.id

    def _get(self, collection: str, share_id: str) -> Optional[Dict[str, Any]]:
        snap = self.db.collection(collection).document(share_id).get()
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    def create_single_station(self, share: SingleStationShare) -> str:
        return self._create(COL_PUBLIC_SHARED_VIEWS, share.to_document())

    def create_full_map(self, share: FullMapShare) -> str:
        return self._create(COL_PUBLIC_SHARED_FULL_MAPS, share.to_document())

    def get_single_station(self, share_id: str) -> Optional[SingleStationShare]:
        d = self._get(COL_PUBLIC_SHARED_VIEWS, share_id)
        return SingleStationShare.model_validate(d) if d is not None else None

    def get_full_map(self, share_id: str) -> Optional[FullMapShare]:
        d = self._get(COL_PUBLIC_SHARED_FULL_MAPS, share_id)
        return FullMapShare.model_validate(d) if d is not None else None
