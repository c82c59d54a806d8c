from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Protocol

import jwt

from finadvisor.schemas.auth import UserIdentity

MISSING_TOKEN = "No token provided. Authorization denied."
INVALID_TOKEN = "Invalid token."
EXPIRED_TOKEN = "Token has expired."
USER_NOT_FOUND = "Token is not valid. User not found."


class AuthError(Exception):
    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class UserDirectory(Protocol):
    def get_user(self, user_id: str) -> UserIdentity | None: ...


class InMemoryUserDirectory:
    """User lookup owned by the application lifespan and shared by requests."""

    def __init__(self, users: Iterable[UserIdentity] = ()) -> None:
        self._users: dict[str, UserIdentity] = {}
        for user in users:
            self.add(user)

    def add(self, user: UserIdentity) -> None:
        self._users[user.id] = user

    def get_user(self, user_id: str) -> UserIdentity | None:
        return self._users.get(str(user_id))

    def __len__(self) -> int:
        return len(self._users)

    @classmethod
    def from_file(cls, path: str | Path | None) -> "InMemoryUserDirectory":
        if not path:
            return cls()
        rows = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(rows, list):
            raise ValueError("user directory file must contain a JSON list")
        return cls(UserIdentity.model_validate({**row, "id": str(row["id"])}) for row in rows)


def extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw.startswith("Bearer "):
        raise AuthError("missing_token", MISSING_TOKEN)
    token = raw.split(" ", 1)[1].strip()
    if not token:
        raise AuthError("missing_token", MISSING_TOKEN)
    return token


class BearerAuthenticator:
    def __init__(
        self,
        *,
        secret: str,
        users: UserDirectory,
        algorithms: tuple[str, ...] = ("HS256",),
    ) -> None:
        self.secret = secret
        self.users = users
        self.algorithms = list(algorithms)

    def authenticate(self, authorization: str | None) -> UserIdentity:
        token = extract_bearer_token(authorization)
        try:
            claims = jwt.decode(token, self.secret, algorithms=self.algorithms)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("expired_token", EXPIRED_TOKEN) from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid_token", INVALID_TOKEN) from exc

        user_id = claims.get("userId")
        user = self.users.get_user(str(user_id)) if user_id is not None else None
        if user is None:
            raise AuthError("user_not_found", USER_NOT_FOUND)
        return user
