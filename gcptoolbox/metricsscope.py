"""Managing the projects monitored by a Cloud Monitoring metrics scope."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

_SCOPE_PREFIX = "locations/global/metricsScopes"


def _field(message: Any, key: str, default: Any = None) -> Any:
    if isinstance(message, Mapping):
        return message.get(key, default)
    return getattr(message, key, default)


class _Operation(Protocol):
    def result(self) -> Any: ...


class MetricsScopesClient(Protocol):
    """Client of the metrics scopes API."""

    def list_metrics_scopes_by_monitored_project(
        self, *, monitored_resource_container: str
    ) -> Any: ...

    def get_metrics_scope(self, *, name: str) -> Any: ...

    def create_monitored_project(
        self, *, parent: str, monitored_project: Mapping[str, str]
    ) -> _Operation: ...

    def delete_monitored_project(self, *, name: str) -> _Operation: ...


@dataclass(frozen=True)
class MonitoredProject:
    """A project added to a metrics scope.

    ``name`` has the form
    'locations/global/metricsScopes/<scoping project>/projects/<monitored project>'.
    """

    name: str
    create_time: datetime | None = None

    @classmethod
    def from_message(cls, message: Any) -> MonitoredProject:
        """Build from an API message or mapping."""
        return cls(
            name=_field(message, "name", "") or "",
            create_time=_field(message, "create_time"),
        )

    def _name_part(self, index: int) -> str:
        if not self.name:
            raise ValueError("MonitoredProjectResourceName is empty")
        parts = self.name.split("/")
        if len(parts) != 6:
            raise ValueError("invalid format MonitoredProjectResourceName")
        return parts[index]

    def scoping_project_id_or_number(self) -> str:
        """Return the scoping project part of the name, usually a number."""
        return self._name_part(3)

    def monitored_project_id_or_number(self) -> str:
        """Return the monitored project part of the name, usually a number."""
        return self._name_part(5)


@dataclass(frozen=True)
class MetricsScope:
    """A metrics scope and the projects it monitors.

    ``name`` has the form 'locations/global/metricsScopes/<scoping project>'.
    """

    name: str
    create_time: datetime | None = None
    update_time: datetime | None = None
    monitored_projects: list[MonitoredProject] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: Any) -> MetricsScope:
        """Build from an API message or mapping."""
        projects = _field(message, "monitored_projects") or []
        return cls(
            name=_field(message, "name", "") or "",
            create_time=_field(message, "create_time"),
            update_time=_field(message, "update_time"),
            monitored_projects=[MonitoredProject.from_message(p) for p in projects],
        )

    def scoping_project_id_or_number(self) -> str:
        """Return the scoping project part of the name, usually a number."""
        if not self.name:
            raise ValueError("MetricsScopeName is empty")
        parts = self.name.split("/")
        if len(parts) != 4:
            raise ValueError("invalid format MetricsScopeName")
        return parts[3]


class MetricsScopeService:
    """Reads and changes metrics scopes through a metrics scopes client."""

    def __init__(self, client: MetricsScopesClient) -> None:
        self._client = client

    def list_metrics_scopes_by_monitored_project(self, project: str) -> list[MetricsScope]:
        """Return the metrics scopes that monitor ``project`` (ID or number)."""
        response = self._client.list_metrics_scopes_by_monitored_project(
            monitored_resource_container=f"projects/{project}"
        )
        scopes = _field(response, "metrics_scopes") or []
        return [MetricsScope.from_message(scope) for scope in scopes]

    def get_metrics_scope(self, project: str) -> MetricsScope:
        """Return the metrics scope of the scoping ``project`` (ID or number)."""
        message = self._client.get_metrics_scope(name=f"{_SCOPE_PREFIX}/{project}")
        return MetricsScope.from_message(message)

    def create_monitored_project(
        self, scoping_project: str, monitored_project: str
    ) -> MonitoredProject:
        """Add ``monitored_project`` to the metrics scope of ``scoping_project``."""
        operation = self._client.create_monitored_project(
            parent=f"{_SCOPE_PREFIX}/{scoping_project}",
            monitored_project={
                "name": f"{_SCOPE_PREFIX}/{scoping_project}/projects/{monitored_project}"
            },
        )
        return MonitoredProject.from_message(operation.result())

    def delete_monitored_project(self, scoping_project: str, monitored_project: str) -> None:
        """Remove ``monitored_project`` from the metrics scope of ``scoping_project``."""
        self.delete_monitored_project_by_monitored_project_name(
            f"{_SCOPE_PREFIX}/{scoping_project}/projects/{monitored_project}"
        )

    def delete_monitored_project_by_monitored_project_name(
        self, monitored_project_name: str
    ) -> None:
        """Remove the monitored project with the given full resource name."""
        operation = self._client.delete_monitored_project(name=monitored_project_name)
        operation.result()