from datetime import datetime, timezone

import pytest

from gcptoolbox.tasks.errors import InvalidHeaderError
from gcptoolbox.tasks.header import get_header


def _sample_headers():
    return {
        "X-Cloudtasks-Queuename": "gcpboxtest",
        "X-Cloudtasks-Tasketa": "1602727873.950779",
        "X-Cloudtasks-Taskexecutioncount": "1",
        "X-Cloudtasks-Taskname": "85770091340881016951",
        "X-Cloudtasks-Taskpreviousresponse": "0",
        "X-Cloudtasks-Taskretrycount": "25",
        "X-Goog-Authenticated-User-Email": "accounts.google.com:user@example.com",
        "X-Goog-Authenticated-User-Id": "accounts.google.com:11111",
    }


def test_get_header():
    th = get_header(_sample_headers())
    assert th.queue_name == "gcpboxtest"
    assert th.task_name == "85770091340881016951"
    assert th.retry_count == 25
    assert th.execution_count == 1
    assert th.eta == datetime(2020, 10, 15, 2, 11, 13, 950779, tzinfo=timezone.utc)
    assert th.previous_response == "0"
    assert th.retry_reason == ""


def test_retry_reason_read():
    headers = _sample_headers()
    headers["X-CloudTasks-TaskRetryReason"] = "timeout"
    assert get_header(headers).retry_reason == "timeout"


@pytest.mark.parametrize(
    "missing, message",
    [
        ("X-Cloudtasks-Queuename", "QueueName not found"),
        ("X-Cloudtasks-Taskname", "TaskName not found"),
        ("X-Cloudtasks-Taskretrycount", "RetryCount not found"),
        ("X-Cloudtasks-Taskexecutioncount", "ExecutionCount not found"),
        ("X-Cloudtasks-Tasketa", "ETA not found"),
    ],
)
def test_missing_header(missing, message):
    headers = _sample_headers()
    del headers[missing]
    with pytest.raises(InvalidHeaderError) as info:
        get_header(headers)
    assert info.value.message == message


@pytest.mark.parametrize(
    "key, value, message",
    [
        ("X-Cloudtasks-Taskretrycount", "abc", "RetryCount invalid format"),
        ("X-Cloudtasks-Taskexecutioncount", "1.5", "ExecutionCount invalid format"),
        ("X-Cloudtasks-Tasketa", "1602727873", "ETA invalid format"),
        ("X-Cloudtasks-Tasketa", "abc.123", "ETA invalid format"),
        ("X-Cloudtasks-Tasketa", "123.x", "ETA invalid format"),
    ],
)
def test_invalid_format(key, value, message):
    headers = _sample_headers()
    headers[key] = value
    with pytest.raises(InvalidHeaderError) as info:
        get_header(headers)
    assert info.value.message == message
    assert value in info.value.kv.values()