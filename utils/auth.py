from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from config.settings import settings
from models.favorites import User

log = logging.getLogger("metrofav.auth")


def parse_bearer_token(request: Request) -> str:
    h = request.headers.get("Authorization", "").strip()
    if not h:
        raise HTTPException(status_code=401, detail="missing_auth")
    parts = h.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail="invalid_auth_header")
    return parts[1].strip()


def verify_firebase_user(token: str) -> User:
    """Verify a Firebase Auth ID token and return the signed-in user."""
    audience = settings.FIREBASE_PROJECT_ID
    if not audience:
        # Fail closed: require explicit audience to be configured
        raise HTTPException(status_code=500, detail="firebase_project_not_configured")

    try:
        claims = id_token.verify_firebase_token(token, google_requests.Request(), audience=audience)
    except Exception as e:
        log.warning("firebase_token_verify_failed", extra={"extra": {"error": str(e)}})
        raise HTTPException(status_code=401, detail="invalid_token")

    uid = (claims or {}).get("user_id") or (claims or {}).get("sub") or ""
    if not uid:
        raise HTTPException(status_code=401, detail="invalid_token")
    return User(uid=uid, display_name=claims.get("name") or None, email=claims.get("email") or None)


def require_user(request: Request) -> User:
    return verify_firebase_user(parse_bearer_token(request))


CurrentUser = Depends(require_user)
