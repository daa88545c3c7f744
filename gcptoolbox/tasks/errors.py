"""Error types raised while creating and receiving Cloud Tasks."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any


def _format_kv(kv: Mapping[str, Any]) -> str:
    items = " ".join(f"{key}:{kv[key]}" for key in sorted(kv, key=str))
    return f"map[{items}]"


class TaskError(Exception):
    """Base error carrying a code, a message, extra attributes and a cause."""

    code = ""

    def __init__(
        self,
        message: str | None = None,
        kv: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.message = self.code if message is None else message
        self.kv: dict[str, Any] = dict(kv or {})
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        cause = "<nil>" if self.cause is None else str(self.cause)
        if not self.kv:
            return f"{self.code}: {self.message}: {cause}"
        return f"{self.code}: {self.message}: attribute:{_format_kv(self.kv)} :{cause}"


class InvalidHeaderError(TaskError):
    """Raised when a task request header is missing or malformed."""

    code = "InvalidHeader"


class InvalidArgumentError(TaskError):
    """Raised when an argument is invalid."""

    code = "InvalidArgument"


class AlreadyExistsError(TaskError):
    """Raised when a task with the same name already exists."""

    code = "AlreadyExists"


class CreateMultiTaskError(TaskError):
    """Collected in a MultiError when one task of a batch fails."""

    code = "FailedCreateMultiTask"


class MultiError(Exception):
    """Several task errors gathered from one batch operation."""

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self.errors: list[TaskError] = []

    def __str__(self) -> str:
        return "".join(f"{err}\n" for err in self.errors)

    def append(self, err: TaskError) -> None:
        """Add an error; safe to call from several threads."""
        with self._lock:
            self.errors.append(err)

    def raise_if_any(self) -> None:
        """Raise this error if it holds at least one error."""
        if self.errors:
            raise self