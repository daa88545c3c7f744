"""Creation of Cloud Tasks that target App Engine handlers."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from gcptoolbox.tasks.errors import (
    AlreadyExistsError,
    CreateMultiTaskError,
    InvalidArgumentError,
    MultiError,
)

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class HttpMethod(str, enum.Enum):
    """HTTP methods an App Engine task may use."""

    POST = "POST"
    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Queue:
    """A Cloud Tasks queue."""

    project_id: str
    region: str
    name: str

    def parent(self) -> str:
        """Return the queue's resource name."""
        return f"projects/{self.project_id}/locations/{self.region}/queues/{self.name}"


@dataclass(frozen=True)
class Routing:
    """App Engine service and version a task is delivered to."""

    service: str = ""
    version: str = ""


@dataclass(frozen=True)
class AppEngineHttpRequest:
    """The HTTP request a task sends to App Engine."""

    http_method: HttpMethod
    relative_uri: str
    headers: dict[str, str] | None = None
    body: bytes | None = None
    app_engine_routing: Routing | None = None


@dataclass(frozen=True)
class CreateTaskRequest:
    """A request to create one task in a queue."""

    parent: str
    app_engine_http_request: AppEngineHttpRequest
    name: str = ""
    schedule_time: datetime | None = None
    dispatch_deadline: timedelta | None = None


class TaskClient(Protocol):
    """Client that sends a create request and returns the full task name."""

    def create_task(self, request: CreateTaskRequest) -> str: ...


@dataclass
class Task:
    """An App Engine task.

    ``name`` is the short task ID; ``method`` must be one of HttpMethod.
    Without ``schedule_time`` the task runs at once; without
    ``dispatch_deadline`` the instance class default applies.
    """

    name: str = ""
    routing: Routing | None = None
    headers: dict[str, str] | None = None
    method: str = ""
    relative_uri: str = ""
    body: bytes | None = None
    schedule_time: datetime | None = None
    dispatch_deadline: timedelta | None = None

    def to_create_task_request(self, queue: Queue | None) -> CreateTaskRequest:
        """Build the request that creates this task in ``queue``."""
        if queue is None:
            raise InvalidArgumentError("queue is required", {}, None)
        try:
            method = HttpMethod(self.method)
        except ValueError as err:
            raise ValueError(f"unsupported HttpMethod : {self.method}") from err

        http_request = AppEngineHttpRequest(
            http_method=method,
            relative_uri=self.relative_uri,
            headers=self.headers,
            body=self.body,
            app_engine_routing=(
                Routing(self.routing.service, self.routing.version)
                if self.routing is not None
                else None
            ),
        )
        name = f"{queue.parent()}/tasks/{self.name}" if self.name else ""
        deadline = self.dispatch_deadline if self.dispatch_deadline else None
        return CreateTaskRequest(
            parent=queue.parent(),
            app_engine_http_request=http_request,
            name=name,
            schedule_time=self.schedule_time,
            dispatch_deadline=deadline,
        )


def _to_json(value: Any) -> bytes:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in _JSON_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


@dataclass
class JsonPostTask:
    """A POST task whose body is ``body`` serialised as JSON."""

    name: str = ""
    routing: Routing | None = None
    headers: dict[str, str] | None = None
    relative_uri: str = ""
    body: Any = None
    schedule_time: datetime | None = None
    dispatch_deadline: timedelta | None = None

    def to_task(self) -> Task:
        """Convert to a Task with a JSON body and Content-Type header."""
        try:
            body = _to_json(self.body)
        except (TypeError, ValueError) as err:
            raise TypeError(f"failed json.Marshal(). task={self!r} : {err}") from err
        headers = dict(self.headers) if self.headers is not None else {}
        headers["Content-Type"] = "application/json"
        return Task(
            name=self.name,
            routing=self.routing,
            headers=headers,
            method=HttpMethod.POST.value,
            relative_uri=self.relative_uri,
            body=body,
            schedule_time=self.schedule_time,
            dispatch_deadline=self.dispatch_deadline,
        )


@dataclass
class GetTask:
    """A GET task."""

    name: str = ""
    routing: Routing | None = None
    headers: dict[str, str] | None = None
    relative_uri: str = ""
    schedule_time: datetime | None = None
    dispatch_deadline: timedelta | None = None

    def to_task(self) -> Task:
        """Convert to a Task without body."""
        return Task(
            name=self.name,
            routing=self.routing,
            headers=self.headers,
            method=HttpMethod.GET.value,
            relative_uri=self.relative_uri,
            body=None,
            schedule_time=self.schedule_time,
            dispatch_deadline=self.dispatch_deadline,
        )


def _is_already_exists(err: BaseException) -> bool:
    if isinstance(err, AlreadyExistsError):
        return True
    code = getattr(err, "grpc_status_code", None)
    return getattr(code, "name", code) == "ALREADY_EXISTS"


class TaskService:
    """Creates App Engine tasks through a task client."""

    def __init__(self, task_client: TaskClient) -> None:
        self._client = task_client

    def create_task(
        self, queue: Queue | None, task: Task, ignore_already_exists: bool = False
    ) -> str:
        """Create ``task`` in ``queue`` and return its full name.

        An existing task of the same name raises AlreadyExistsError, or is
        accepted when ``ignore_already_exists`` is set.
        """
        request = task.to_create_task_request(queue)
        try:
            return self._client.create_task(request)
        except Exception as err:
            if not _is_already_exists(err):
                raise
            if ignore_already_exists:
                return request.name
            raise AlreadyExistsError(
                f"{task.name} is already exists.", {"taskName": task.name}, err
            ) from err

    def _create_multi(
        self,
        tasks: Sequence[Any],
        create: Any,
        failure_message: str,
    ) -> list[str]:
        results = [""] * len(tasks)
        errors = MultiError()

        def run(index: int, task: Any) -> None:
            try:
                results[index] = create(task)
            except AlreadyExistsError as err:
                err.kv["index"] = index
                errors.append(err)
            except Exception as err:
                errors.append(
                    CreateMultiTaskError(
                        failure_message,
                        {"index": index, "taskName": getattr(task, "name", "")},
                        err,
                    )
                )

        if tasks:
            with ThreadPoolExecutor(max_workers=min(32, len(tasks))) as pool:
                list(pool.map(run, range(len(tasks)), tasks))
        errors.raise_if_any()
        return results

    def create_task_multi(
        self, queue: Queue | None, tasks: Sequence[Task], ignore_already_exists: bool = False
    ) -> list[str]:
        """Create several tasks concurrently; raise MultiError if any fail."""
        return self._create_multi(
            tasks,
            lambda task: self.create_task(queue, task, ignore_already_exists),
            "failed CreateTask",
        )

    def create_json_post_task(
        self,
        queue: Queue | None,
        task: JsonPostTask | None,
        ignore_already_exists: bool = False,
    ) -> str:
        """Create a JSON POST task and return its full name."""
        if task is None:
            raise ValueError("failed CreateJsonPostTask. task is nil")
        return self.create_task(queue, task.to_task(), ignore_already_exists)

    def create_json_post_task_multi(
        self,
        queue: Queue | None,
        tasks: Sequence[JsonPostTask],
        ignore_already_exists: bool = False,
    ) -> list[str]:
        """Create several JSON POST tasks; raise MultiError if any fail."""
        return self._create_multi(
            tasks,
            lambda task: self.create_json_post_task(queue, task, ignore_already_exists),
            "failed CreateJsonPostTask",
        )

    def create_get_task(
        self,
        queue: Queue | None,
        task: GetTask | None,
        ignore_already_exists: bool = False,
    ) -> str:
        """Create a GET task and return its full name."""
        if task is None:
            raise ValueError("failed CreateGetTask. task is nil")
        return self.create_task(queue, task.to_task(), ignore_already_exists)

    def create_get_task_multi(
        self,
        queue: Queue | None,
        tasks: Sequence[GetTask],
        ignore_already_exists: bool = False,
    ) -> list[str]:
        """Create several GET tasks; raise MultiError if any fail."""
        return self._create_multi(
            tasks,
            lambda task: self.create_get_task(queue, task, ignore_already_exists),
            "failed CreateGetTask",
        )


def _headers_of(mapping: Mapping[str, str] | None) -> dict[str, str]:
    return dict(mapping or {})