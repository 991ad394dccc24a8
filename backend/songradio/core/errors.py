from __future__ import annotations

from typing import Any, Dict, Optional


class ApiError(Exception):
    """Error rendered to clients as ``{error, message[, suggestion]}``."""

    status_code = 500
    error = "Internal error"

    def __init__(self, message: str, *, suggestion: Optional[str] = None, status_code: Optional[int] = None, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        if status_code is not None:
            self.status_code = status_code
        if error is not None:
            self.error = error

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


class BadRequest(ApiError):
    status_code = 400
    error = "Bad request"


class SongNotFound(ApiError):
    status_code = 404
    error = "Song not found"


class NoSuggestions(ApiError):
    status_code = 404
    error = "No suggestions found"


class NoSearchResults(ApiError):
    status_code = 404
    error = "No songs found"
