"""Error types raised when reading runtime metadata."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _format_kv(kv: Mapping[str, Any]) -> str:
    items = " ".join(f"{key}:{kv[key]}" for key in sorted(kv))
    return f"map[{items}]"


class MetadataError(Exception):
    """Base error carrying a code, a message and extra attributes."""

    code = ""
    default_message = ""

    def __init__(
        self,
        message: str | None = None,
        kv: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.message = self.default_message if message is None else message
        self.kv: dict[str, Any] = dict(kv or {})
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if not self.kv:
            return f"{self.code}: {self.message}"
        return f"{self.code}: {self.message}: attribute:{_format_kv(self.kv)}"


class NotFoundError(MetadataError):
    """Raised when a metadata value cannot be found."""

    code = "NotFound"
    default_message = "not found"


class InvalidArgumentError(MetadataError):
    """Raised when an argument has an unexpected form."""

    code = "InvalidArgument"
    default_message = "invalid argument"