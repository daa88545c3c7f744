"""App Engine specific metadata read from the runtime environment."""

from __future__ import annotations

import os

from gcptoolbox import metadata
from gcptoolbox.errors import NotFoundError

SERVICE_KEY = "GAE_SERVICE"
VERSION_KEY = "GAE_VERSION"
INSTANCE_KEY = "GAE_INSTANCE"
RUNTIME_KEY = "GAE_RUNTIME"
MEMORY_MB_KEY = "GAE_MEMORY_MB"
DEPLOYMENT_ID_KEY = "GAE_DEPLOYMENT_ID"
ENV_KEY = "GAE_ENV"


def _require(key: str, label: str) -> str:
    value = os.environ.get(key)
    if value:
        return value
    raise NotFoundError(
        f"AppEngine {label} id environment valiable is not found. plz set ${key}"
    )


def on_gae() -> bool:
    """Return whether the App Engine environment variables are present."""
    try:
        service()
    except NotFoundError:
        return False
    return True


def on_gae_real() -> bool:
    """Return whether the process really runs on App Engine."""
    return on_gae() and metadata.on_gcp()


def service() -> str:
    """Return the service name."""
    return _require(SERVICE_KEY, "Service")


def version() -> str:
    """Return the version label of the service."""
    return _require(VERSION_KEY, "Version")


def instance() -> str:
    """Return the ID of the running instance."""
    return _require(INSTANCE_KEY, "Instance")


def runtime() -> str:
    """Return the runtime named in app.yaml."""
    return _require(RUNTIME_KEY, "Runtime")


def memory_mb() -> str:
    """Return the memory available to the process, in MB."""
    return _require(MEMORY_MB_KEY, "MemoryMB")


def deployment_id() -> str:
    """Return the ID of the current deployment."""
    return _require(DEPLOYMENT_ID_KEY, "Deployment")


def env() -> str:
    """Return the App Engine environment name."""
    return _require(ENV_KEY, "Deployment")