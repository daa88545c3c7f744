"""The user signed in through IAP on App Engine."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

USER_ID_KEY = "X-Appengine-User-Id"
USER_EMAIL_KEY = "X-Appengine-User-Email"
USER_NICKNAME_KEY = "X-Appengine-User-Nickname"
USER_IS_ADMIN_KEY = "X-Appengine-User-Is-Admin"


@dataclass(frozen=True)
class AppEngineUser:
    """A user signed in on App Engine."""

    id: str
    email: str
    nickname: str
    admin: bool


_current_user: ContextVar[AppEngineUser | None] = ContextVar(
    "appengine_user", default=None
)


def _header_value(headers: Mapping[str, Any], key: str) -> str:
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else ""
            return value
    return ""


def current_user_with_context(headers: Mapping[str, Any]) -> AppEngineUser | None:
    """Read the App Engine user from request headers and store it in the context.

    Returns None, leaving the context alone, when no user ID is present.
    """
    user_id = _header_value(headers, USER_ID_KEY)
    if not user_id:
        return None
    user = AppEngineUser(
        id=user_id,
        email=_header_value(headers, USER_EMAIL_KEY),
        nickname=_header_value(headers, USER_NICKNAME_KEY),
        admin=_header_value(headers, USER_IS_ADMIN_KEY) == "1",
    )
    _current_user.set(user)
    return user


def current_user() -> AppEngineUser | None:
    """Return the user stored by current_user_with_context, if any."""
    return _current_user.get()