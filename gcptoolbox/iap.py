"""The user signed in through Identity-Aware Proxy."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

AUTHENTICATED_USER_ID_KEY = "X-Goog-Authenticated-User-Id"
AUTHENTICATED_USER_EMAIL_KEY = "X-Goog-Authenticated-User-Email"


@dataclass(frozen=True)
class IapUser:
    """A user signed in through IAP."""

    id: str
    email: str


_current_user: ContextVar[IapUser | None] = ContextVar("iap_user", default=None)


def _header_value(headers: Mapping[str, Any], key: str) -> str:
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else ""
            return value
    return ""


def current_user_with_context(headers: Mapping[str, Any]) -> IapUser | None:
    """Read the IAP user from request headers and store it in the current context.

    The headers hold 'accounts.google.com:<value>'; the part after the
    prefix is kept. Returns None, leaving the context alone, when absent.
    """
    user_id = _header_value(headers, AUTHENTICATED_USER_ID_KEY)
    email = _header_value(headers, AUTHENTICATED_USER_EMAIL_KEY)
    if not user_id:
        return None
    id_parts = user_id.split(":")
    if len(id_parts) < 2:
        return None
    email_parts = email.split(":")
    if len(email_parts) < 2:
        return None
    user = IapUser(id=id_parts[1], email=email_parts[1])
    _current_user.set(user)
    return user


def current_user() -> IapUser | None:
    """Return the user stored by current_user_with_context, if any."""
    return _current_user.get()