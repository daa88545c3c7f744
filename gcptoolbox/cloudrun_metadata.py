"""Cloud Run specific metadata read from the runtime environment."""

from __future__ import annotations

import os

from gcptoolbox import metadata
from gcptoolbox.errors import NotFoundError

SERVICE_KEY = "K_SERVICE"
REVISION_KEY = "K_REVISION"
CONFIGURATION_KEY = "K_CONFIGURATION"


def _require(key: str) -> str:
    value = os.environ.get(key)
    if value:
        return value
    raise NotFoundError(
        f"CloudRun Service id environment valiable is not found. plz set ${key}"
    )


def on_cloud_run() -> bool:
    """Return whether the Cloud Run environment variables are present."""
    try:
        service()
    except NotFoundError:
        return False
    return True


def on_cloud_run_real() -> bool:
    """Return whether the process really runs on Cloud Run."""
    return on_cloud_run() and metadata.on_gcp()


def service() -> str:
    """Return the Cloud Run service name."""
    return _require(SERVICE_KEY)


def revision() -> str:
    """Return the Cloud Run revision name."""
    return _require(REVISION_KEY)


def configuration() -> str:
    """Return the configuration that created the revision."""
    return _require(CONFIGURATION_KEY)


def project_id() -> str:
    """Return the current project ID."""
    return metadata.project_id()


def numeric_project_id() -> str:
    """Return the current project number."""
    return metadata.numeric_project_id()


def region() -> str:
    """Return the region Cloud Run runs in."""
    return metadata.extraction_region(metadata.region())


def instance_id() -> str:
    """Return the ID of the worker instance."""
    return metadata.instance_id()


def service_accounts_default_token() -> str:
    """Return the access token of the default service account."""
    return metadata.service_account_default_token()


def service_account_email() -> str:
    """Return the e-mail address of the default service account."""
    return metadata.service_account_email()


def service_account_name() -> str:
    """Return the part of the service account e-mail before the '@'."""
    email = service_account_email()
    parts = email.split("@")
    if len(parts) != 2:
        raise ValueError(f"invalid ServiceAccountEmail. email={email}")
    return parts[0]


def service_account_id() -> str:
    """Return 'projects/<project>/serviceAccounts/<email>'."""
    email = service_account_email()
    return f"projects/{project_id()}/serviceAccounts/{email}"