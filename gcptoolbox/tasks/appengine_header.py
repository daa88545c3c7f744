"""Headers that Cloud Tasks attaches to App Engine task requests."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

APPENGINE_TASK_NAME = "X-AppEngine-TaskName"
APPENGINE_QUEUE_NAME = "X-AppEngine-QueueName"
APPENGINE_TASK_RETRY_COUNT = "X-AppEngine-TaskRetryCount"
APPENGINE_TASK_EXECUTION_COUNT = "X-AppEngine-TaskExecutionCount"
APPENGINE_TASK_ETA = "X-AppEngine-TaskETA"
APPENGINE_TASK_PREVIOUS_RESPONSE = "X-AppEngine-TaskPreviousResponse"
APPENGINE_TASK_RETRY_REASON = "X-AppEngine-TaskRetryReason"
APPENGINE_FAIL_FAST = "X-AppEngine-FailFast"
GOOGLE_INTERNAL_SKIP_ADMIN_CHECK = "X-Google-Internal-Skipadmincheck"

_INT = re.compile(r"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TaskHeaderNotFoundError(Exception):
    """Raised when a request carries no Cloud Tasks headers."""

    def __init__(self, message: str = "not found cloudtasks header") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class AppEngineTaskHeader:
    """Cloud Tasks metadata of one App Engine task request."""

    queue_name: str = ""
    task_name: str = ""
    task_retry_count: int = 0
    task_execution_count: int = 0
    task_eta: datetime | None = None
    task_previous_response: str = ""
    task_retry_reason: str = ""
    fail_fast: bool = False


def _header_value(headers: Mapping[str, Any], key: str) -> str:
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else ""
            return value
    return ""


def _parse_int(key: str, value: str) -> int:
    if not _INT.fullmatch(value):
        raise ValueError(f"invalid {key}. v={value}")
    return int(value)


def _parse_eta(value: str) -> datetime:
    parts = value.split(".")
    if len(parts) < 2:
        raise ValueError(f"invalid {APPENGINE_TASK_ETA}. v={value}")
    seconds = _parse_int(APPENGINE_TASK_ETA, parts[0])
    micros = _parse_int(APPENGINE_TASK_ETA, parts[1])
    try:
        return _EPOCH + timedelta(seconds=seconds, microseconds=micros)
    except OverflowError as err:
        raise ValueError(f"invalid {APPENGINE_TASK_ETA}. v={value}") from err


def get_appengine_header(headers: Mapping[str, Any]) -> AppEngineTaskHeader:
    """Read the App Engine task headers of a request.

    Raises TaskHeaderNotFoundError unless the request comes from App Engine
    internals, and ValueError on a malformed number or ETA.
    """
    if _header_value(headers, GOOGLE_INTERNAL_SKIP_ADMIN_CHECK) != "true":
        raise TaskHeaderNotFoundError()

    retry_count = 0
    value = _header_value(headers, APPENGINE_TASK_RETRY_COUNT)
    if value:
        retry_count = _parse_int(APPENGINE_TASK_RETRY_COUNT, value)

    execution_count = 0
    value = _header_value(headers, APPENGINE_TASK_EXECUTION_COUNT)
    if value:
        execution_count = _parse_int(APPENGINE_TASK_EXECUTION_COUNT, value)

    eta = None
    value = _header_value(headers, APPENGINE_TASK_ETA)
    if value:
        eta = _parse_eta(value)

    return AppEngineTaskHeader(
        queue_name=_header_value(headers, APPENGINE_QUEUE_NAME),
        task_name=_header_value(headers, APPENGINE_TASK_NAME),
        task_retry_count=retry_count,
        task_execution_count=execution_count,
        task_eta=eta,
        task_previous_response=_header_value(headers, APPENGINE_TASK_PREVIOUS_RESPONSE),
        task_retry_reason=_header_value(headers, APPENGINE_TASK_RETRY_REASON),
        fail_fast=bool(_header_value(headers, APPENGINE_FAIL_FAST)),
    )