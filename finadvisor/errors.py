from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Request-scoped failure rendered as ``{success: false, message, error?}``."""

    def __init__(self, status_code: int, message: str, error: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class UpstreamFetchError(Exception):
    def __init__(self, outcome) -> None:
        super().__init__(outcome.message or outcome.status)
        self.outcome = outcome


def status_code_from_error(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    if isinstance(code, int):
        return code
    return None
