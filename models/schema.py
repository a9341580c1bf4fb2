# Centralized collection names to prevent drift.

COL_USERS = "users"
COL_FAVORITES_BY_STATION = "favoriteStoresByStation"
COL_STORES = "stores"  # users/{uid}/favoriteStoresByStation/{station_id}/stores/{doc_id}

# Public, append-only share snapshots
COL_PUBLIC_SHARED_VIEWS = "publicSharedViews"  # publicSharedViews/{share_id}
COL_PUBLIC_SHARED_FULL_MAPS = "publicSharedFullMaps"  # publicSharedFullMaps/{share_id}

# Used by the health probe only.
COL_SYSTEM = "system"
DOC_HEALTHZ = "healthz"

# Share URL path prefixes: {origin}/share/{id}, {origin}/sharemap/{id}
SHARE_PATH_SINGLE = "share"
SHARE_PATH_FULL_MAP = "sharemap"


def favorites_path(user_id: str, station_id: str) -> str:
    return f"{COL_USERS}/{user_id}/{COL_FAVORITES_BY_STATION}/{station_id}/{COL_STORES}"
