from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter

from config.settings import settings
from data.stations import all_stations
from models.schema import COL_SYSTEM, DOC_HEALTHZ

router = APIRouter()


def _firestore_probe(timeout_s: float = 0.20) -> Dict[str, Any]:
    """
    Read-only, bounded-time Firestore connectivity probe.
    - No PII
    - No writes
    - Uses a fixed doc path.
    """
    try:
        from google.cloud import firestore  # type: ignore
    except Exception as e:
        return {"ok": False, "error_type": type(e).__name__, "message": str(e)}

    try:
        t0 = time.time()
        db = firestore.Client(project=settings.FIRESTORE_PROJECT_ID or None)
        db.collection(COL_SYSTEM).document(DOC_HEALTHZ).get(timeout=timeout_s)
        dt_ms = int((time.time() - t0) * 1000)
        return {"ok": True, "latency_ms": dt_ms}
    except Exception as e:
        return {"ok": False, "error_type": type(e).__name__, "message": str(e)}


@router.get("/health")
def health():
    rev = os.getenv("K_REVISION") or ""
    svc = os.getenv("K_SERVICE") or "metrofav-api"

    fs = _firestore_probe()

    return {
        "ok": bool(fs.get("ok", False)),
        "service": "metrofav-api",
        "cloudrun_service": svc,
        "revision": rev,
        "environment": settings.ENVIRONMENT,
        "places_configured": bool(settings.GOOGLE_MAPS_API_KEY),
        "stations": len(all_stations()),
        "firestore_ok": bool(fs.get("ok", False)),
        "firestore": fs,
        "time_unix": time.time(),
    }
