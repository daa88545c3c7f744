import pytest

from gcptoolbox import cloudrun_metadata as run
from gcptoolbox.errors import InvalidArgumentError, NotFoundError

_KEYS = [
    run.SERVICE_KEY,
    run.REVISION_KEY,
    run.CONFIGURATION_KEY,
    "GCE_METADATA_HOST",
    "GOOGLE_CLOUD_PROJECT",
    "GCLOUD_PROJECT",
    "GCLOUD_SERVICE_ACCOUNT",
    "INSTANCE_REGION",
    "INSTANCE_ID",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_on_cloud_run_real_is_false(clean_env):
    assert run.on_cloud_run_real() is False


def test_cloud_run_service_not_found(clean_env):
    with pytest.raises(NotFoundError):
        run.service()


def test_on_cloud_run_with_service(clean_env):
    clean_env.setenv(run.SERVICE_KEY, "gcpboxtest")
    assert run.on_cloud_run() is True
    assert run.service() == "gcpboxtest"


def test_revision_and_configuration(clean_env):
    clean_env.setenv(run.REVISION_KEY, "gcpboxtest-00009-xiz")
    clean_env.setenv(run.CONFIGURATION_KEY, "gcpboxtest")
    assert run.revision() == "gcpboxtest-00009-xiz"
    assert run.configuration() == "gcpboxtest"


def test_revision_missing(clean_env):
    with pytest.raises(NotFoundError):
        run.revision()


def test_service_account_values(clean_env):
    clean_env.setenv("GOOGLE_CLOUD_PROJECT", "gcpboxtest")
    clean_env.setenv("GCLOUD_SERVICE_ACCOUNT", "runner@example.com")
    assert run.service_account_name() == "runner"
    assert run.service_account_id() == "projects/gcpboxtest/serviceAccounts/runner@example.com"


def test_service_account_name_invalid(clean_env):
    with pytest.raises(ValueError):
        run.service_account_name()


def test_region_without_env_is_invalid(clean_env):
    with pytest.raises(InvalidArgumentError):
        run.region()


def test_instance_id_from_env(clean_env):
    clean_env.setenv("INSTANCE_ID", "worker-1")
    assert run.instance_id() == "worker-1"