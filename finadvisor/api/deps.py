from __future__ import annotations

from fastapi import Header, Request

from finadvisor.errors import ApiError
from finadvisor.schemas.auth import UserIdentity
from finadvisor.services.auth import AuthError

AUTH_MISCONFIGURED = "Server error during authentication."


def require_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> UserIdentity:
    authenticator = getattr(request.app.state, "authenticator", None)
    if authenticator is None:
        print("[AUTH][misconfigured] reason=missing_jwt_secret", flush=True)
        raise ApiError(500, AUTH_MISCONFIGURED)
    try:
        return authenticator.authenticate(authorization)
    except AuthError as exc:
        print(f"[AUTH][reject] reason={exc.reason} path={request.url.path}", flush=True)
        raise ApiError(401, exc.message) from exc


def current_settings(request: Request):
    return request.app.state.get_settings()
