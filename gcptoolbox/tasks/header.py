"""Headers that Cloud Tasks attaches to HTTP target task requests."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from gcptoolbox.tasks.errors import InvalidHeaderError

QUEUE_NAME = "X-CloudTasks-QueueName"
TASK_NAME = "X-CloudTasks-TaskName"
RETRY_COUNT = "X-CloudTasks-TaskRetryCount"
EXECUTION_COUNT = "X-CloudTasks-TaskExecutionCount"
ETA = "X-CloudTasks-TaskETA"
PREVIOUS_RESPONSE = "X-CloudTasks-TaskPreviousResponse"
RETRY_REASON = "X-CloudTasks-TaskRetryReason"

_INT = re.compile(r"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TaskHeader:
    """Cloud Tasks metadata of one task request."""

    queue_name: str
    task_name: str
    retry_count: int
    execution_count: int
    eta: datetime
    previous_response: str = ""
    retry_reason: str = ""


def _header_value(headers: Mapping[str, Any], key: str) -> str:
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else ""
            return value
    return ""


def _parse_int(value: str) -> int:
    if not _INT.fullmatch(value):
        raise ValueError(f'parsing "{value}": invalid syntax')
    return int(value)


def _parse_count(headers: Mapping[str, Any], key: str, label: str) -> int:
    value = _header_value(headers, key)
    if not value:
        raise InvalidHeaderError(f"{label} not found", {}, None)
    try:
        return _parse_int(value)
    except ValueError as err:
        raise InvalidHeaderError(f"{label} invalid format", {label: value}, err) from err


def _parse_eta(value: str) -> datetime:
    parts = value.split(".")
    if len(parts) < 2:
        raise InvalidHeaderError("ETA invalid format", {"ETA": value}, None)
    try:
        seconds = _parse_int(parts[0])
        micros = _parse_int(parts[1])
        return _EPOCH + timedelta(seconds=seconds, microseconds=micros)
    except (ValueError, OverflowError) as err:
        raise InvalidHeaderError("ETA invalid format", {"ETA": value}, err) from err


def get_header(headers: Mapping[str, Any]) -> TaskHeader:
    """Read the Cloud Tasks headers of a request; keys match case-insensitively."""
    queue_name = _header_value(headers, QUEUE_NAME)
    if not queue_name:
        raise InvalidHeaderError("QueueName not found", {}, None)
    task_name = _header_value(headers, TASK_NAME)
    if not task_name:
        raise InvalidHeaderError("TaskName not found", {}, None)
    retry_count = _parse_count(headers, RETRY_COUNT, "RetryCount")
    execution_count = _parse_count(headers, EXECUTION_COUNT, "ExecutionCount")
    eta_value = _header_value(headers, ETA)
    if not eta_value:
        raise InvalidHeaderError("ETA not found", {}, None)
    eta = _parse_eta(eta_value)
    return TaskHeader(
        queue_name=queue_name,
        task_name=task_name,
        retry_count=retry_count,
        execution_count=execution_count,
        eta=eta,
        previous_response=_header_value(headers, PREVIOUS_RESPONSE),
        retry_reason=_header_value(headers, RETRY_REASON),
    )