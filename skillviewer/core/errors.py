"""Error hierarchy shared by the API client, the view-models and the routers.

Three failure families reach the user: a missing bearer token, a non-OK
response from the remote API, and a transport failure (network error or a body
that is not JSON). Client-side form validation failures are raised before any
request is made.
"""

from __future__ import annotations

from typing import Any


class SkillViewerError(Exception):
    """Base exception for all skillviewer errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class MissingTokenError(SkillViewerError):
    """Raised when an authenticated call is attempted without a token."""

    def __init__(self, message: str = "トークンがありません") -> None:
        super().__init__(message)


class FormValidationError(SkillViewerError):
    """Raised when form input is rejected before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class ApiError(SkillViewerError):
    """Base exception for failures talking to the remote API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ) -> None:
        super().__init__(message, details={"status_code": status_code} if status_code else None)
        self.status_code = status_code
        self.response_data = response_data


class ApiResponseError(ApiError):
    """The remote API answered with a non-OK status."""


class ApiTransportError(ApiError):
    """The request never produced a usable response (network, timeout, bad JSON)."""


def server_message(response_data: Any, fallback: str) -> str:
    """Pick the user-facing message out of an error body.

    The remote API reports failures as ``{"error": "..."}`` and occasionally
    ``{"message": "..."}``; anything else falls back to the caller's text.
    """
    if isinstance(response_data, dict):
        error = response_data.get("error")
        if isinstance(error, str) and error:
            return error
        message = response_data.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback
