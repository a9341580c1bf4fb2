from __future__ import annotations


class FavoritesError(Exception):
    """Base outcome for favorites and sharing operations.

    ``code`` is the stable machine-readable outcome, ``message`` the short
    status text shown to the user.
    """

    code = "favorites_error"
    status_code = 500
    default_message = "發生錯誤，請稍後再試。"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.code)


class ValidationFailure(FavoritesError):
    code = "validation_failure"
    status_code = 400
    default_message = "缺少必要的資訊。"


class CapacityExceeded(FavoritesError):
    code = "favorites_limit_reached"
    status_code = 403
    default_message = "此捷運站的最愛清單已滿。"


class Duplicate(FavoritesError):
    code = "duplicate_favorite"
    status_code = 409
    default_message = "這家店已經在最愛清單中了。"


class NotFound(FavoritesError):
    code = "not_found"
    status_code = 404
    default_message = "找不到指定的內容，可能已被刪除或連結錯誤。"


class EmptyCollection(FavoritesError):
    code = "nothing_to_share"
    status_code = 409
    default_message = "您目前沒有任何捷運站收藏可以分享。"


class OperationInProgress(FavoritesError):
    code = "operation_in_progress"
    status_code = 409
    default_message = "操作進行中，請稍候。"


class ReadFailure(FavoritesError):
    code = "read_failure"
    status_code = 503
    default_message = "讀取資料時發生錯誤。"


class WriteFailure(FavoritesError):
    code = "write_failure"
    status_code = 503
    default_message = "儲存資料時發生錯誤。"
