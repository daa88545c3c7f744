from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from gcptoolbox.metricsscope import (
    MetricsScope,
    MetricsScopeService,
    MonitoredProject,
)

SCOPING_NUMBER = "111111111111"
MONITORED_NUMBER = "401580979819"


class _Done:
    def __init__(self, value=None):
        self.value = value

    def result(self):
        return self.value


class _AlreadyExists(Exception):
    pass


class FakeClient:
    def __init__(self):
        self.scopes = {
            SCOPING_NUMBER: [
                f"locations/global/metricsScopes/{SCOPING_NUMBER}/projects/{SCOPING_NUMBER}",
                f"locations/global/metricsScopes/{SCOPING_NUMBER}/projects/{MONITORED_NUMBER}",
            ]
        }
        self.calls = []

    def _scope(self, project):
        return {
            "name": f"locations/global/metricsScopes/{project}",
            "create_time": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "monitored_projects": [{"name": n} for n in self.scopes.get(project, [])],
        }

    def list_metrics_scopes_by_monitored_project(self, *, monitored_resource_container):
        self.calls.append(("list", monitored_resource_container))
        project = monitored_resource_container.split("/")[1]
        scopes = [
            self._scope(scoping)
            for scoping, names in self.scopes.items()
            if any(n.endswith(f"/projects/{project}") for n in names)
        ]
        return SimpleNamespace(metrics_scopes=scopes)

    def get_metrics_scope(self, *, name):
        self.calls.append(("get", name))
        return self._scope(name.split("/")[-1])

    def create_monitored_project(self, *, parent, monitored_project):
        self.calls.append(("create", parent, monitored_project["name"]))
        scoping = parent.split("/")[-1]
        names = self.scopes.setdefault(scoping, [])
        if monitored_project["name"] in names:
            raise _AlreadyExists(monitored_project["name"])
        names.append(monitored_project["name"])
        return _Done(SimpleNamespace(name=monitored_project["name"], create_time=None))

    def delete_monitored_project(self, *, name):
        self.calls.append(("delete", name))
        scoping = name.split("/")[3]
        self.scopes[scoping].remove(name)
        return _Done()


def test_metrics_scope_scoping_project():
    scope = MetricsScope(name=f"locations/global/metricsScopes/{SCOPING_NUMBER}")
    assert scope.scoping_project_id_or_number() == SCOPING_NUMBER


@pytest.mark.parametrize(
    "name, message",
    [("", "MetricsScopeName is empty"), ("a/b/c", "invalid format MetricsScopeName")],
)
def test_metrics_scope_invalid_name(name, message):
    with pytest.raises(ValueError, match=message):
        MetricsScope(name=name).scoping_project_id_or_number()


def test_monitored_project_parts():
    project = MonitoredProject(
        name=f"locations/global/metricsScopes/{SCOPING_NUMBER}/projects/{MONITORED_NUMBER}"
    )
    assert project.scoping_project_id_or_number() == SCOPING_NUMBER
    assert project.monitored_project_id_or_number() == MONITORED_NUMBER


@pytest.mark.parametrize(
    "name, message",
    [
        ("", "MonitoredProjectResourceName is empty"),
        ("locations/global/metricsScopes/1", "invalid format MonitoredProjectResourceName"),
    ],
)
def test_monitored_project_invalid_name(name, message):
    with pytest.raises(ValueError, match=message):
        MonitoredProject(name=name).monitored_project_id_or_number()


def test_list_metrics_scopes_by_monitored_project():
    client = FakeClient()
    scopes = MetricsScopeService(client).list_metrics_scopes_by_monitored_project(
        MONITORED_NUMBER
    )
    assert client.calls[0] == ("list", f"projects/{MONITORED_NUMBER}")
    assert len(scopes) == 1
    assert scopes[0].scoping_project_id_or_number() == SCOPING_NUMBER


def test_get_metrics_scope():
    client = FakeClient()
    scope = MetricsScopeService(client).get_metrics_scope(SCOPING_NUMBER)
    assert client.calls[0] == ("get", f"locations/global/metricsScopes/{SCOPING_NUMBER}")
    assert scope.scoping_project_id_or_number() == SCOPING_NUMBER
    assert scope.create_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
    monitored = [p.monitored_project_id_or_number() for p in scope.monitored_projects]
    assert monitored == [SCOPING_NUMBER, MONITORED_NUMBER]


def test_create_then_already_exists_then_delete():
    client = FakeClient()
    service = MetricsScopeService(client)
    created = service.create_monitored_project(SCOPING_NUMBER, "sinmetal")
    assert created.name == f"locations/global/metricsScopes/{SCOPING_NUMBER}/projects/sinmetal"
    assert client.calls[0] == (
        "create",
        f"locations/global/metricsScopes/{SCOPING_NUMBER}",
        created.name,
    )
    with pytest.raises(_AlreadyExists):
        service.create_monitored_project(SCOPING_NUMBER, "sinmetal")
    service.delete_monitored_project(SCOPING_NUMBER, "sinmetal")
    assert client.calls[-1] == ("delete", created.name)
    scope = service.get_metrics_scope(SCOPING_NUMBER)
    assert created.name not in [p.name for p in scope.monitored_projects]


def test_delete_by_name():
    client = FakeClient()
    name = f"locations/global/metricsScopes/{SCOPING_NUMBER}/projects/{MONITORED_NUMBER}"
    MetricsScopeService(client).delete_monitored_project_by_monitored_project_name(name)
    assert client.calls == [("delete", name)]
    assert name not in client.scopes[SCOPING_NUMBER]