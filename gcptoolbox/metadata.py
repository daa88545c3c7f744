"""Runtime metadata of the current Google Cloud environment.

On Google Cloud the values come from the metadata server; elsewhere they are
read from environment variables.
"""

from __future__ import annotations

import functools
import os
import socket
import urllib.error
import urllib.request
from pathlib import Path

from gcptoolbox.errors import InvalidArgumentError, NotFoundError

TOKYO_REGION = "asia-northeast1"
OSAKA_REGION = "asia-northeast2"
TAIWAN_REGION = "asia-east1"
IOWA_REGION = "us-central1"

_HOST_ENV = "GCE_METADATA_HOST"
_DEFAULT_HOST = "metadata.google.internal"
_METADATA_IP = "169.254.169.254"
_FLAVOR_HEADER = "Metadata-Flavor"
_FLAVOR = "Google"
_TIMEOUT = 5.0
_PROBE_TIMEOUT = 1.0
_ZONE_FORMAT = "required format : projects/[NUMERIC_PROJECT_ID]/zones/[ZONE]"


@functools.lru_cache(maxsize=None)
def _probe_metadata_server() -> bool:
    try:
        product = Path("/sys/class/dmi/id/product_name").read_text().strip()
    except OSError:
        product = ""
    if product in ("Google", "Google Compute Engine"):
        return True

    request = urllib.request.Request(
        f"http://{_METADATA_IP}", headers={_FLAVOR_HEADER: _FLAVOR}
    )
    flavor = None
    try:
        with urllib.request.urlopen(request, timeout=_PROBE_TIMEOUT) as response:
            flavor = response.headers.get(_FLAVOR_HEADER)
    except urllib.error.HTTPError as err:
        flavor = err.headers.get(_FLAVOR_HEADER) if err.headers else None
    except (OSError, ValueError):
        flavor = None
    if flavor == _FLAVOR:
        return True

    try:
        socket.getaddrinfo(f"{_DEFAULT_HOST}.", 80)
    except OSError:
        return False
    return True


def on_gcp() -> bool:
    """Return whether the process runs on Google Cloud."""
    if os.environ.get(_HOST_ENV):
        return True
    return _probe_metadata_server()


def _fetch(path: str) -> str:
    host = os.environ.get(_HOST_ENV) or _DEFAULT_HOST
    request = urllib.request.Request(
        f"http://{host}/computeMetadata/v1/{path}",
        headers={_FLAVOR_HEADER: _FLAVOR},
    )
    try:
        with urllib.request.urlopen(request, timeout=_TIMEOUT) as response:
            return response.read().decode()
    except urllib.error.HTTPError as err:
        body = err.read().decode(errors="replace")
        err.close()
        if err.code == 404:
            raise NotFoundError(
                f"metadata {path} is not defined", {"path": path}, err
            ) from err
        raise OSError(f"metadata server response is {err.code}:{body}") from err
    except urllib.error.URLError as err:
        raise OSError(f"failed request to metadata server. path={path} : {err}") from err


def project_id() -> str:
    """Return the current project ID."""
    if not on_gcp():
        value = os.environ.get("GOOGLE_CLOUD_PROJECT") or os.environ.get("GCLOUD_PROJECT")
        if value:
            return value
        raise NotFoundError(
            "project id environment valiable is not found. plz set $GOOGLE_CLOUD_PROJECT"
        )
    value = _fetch("project/project-id").strip()
    if not value:
        raise NotFoundError("project id is not found")
    return value


def numeric_project_id() -> str:
    """Return the current project number."""
    if not on_gcp():
        value = os.environ.get("NUMERIC_GOOGLE_CLOUD_PROJECT")
        if value:
            return value
        raise NotFoundError(
            "numeric project id environment valiable is not found. "
            "plz set $NUMERIC_GOOGLE_CLOUD_PROJECT"
        )
    return _fetch("project/numeric-project-id").strip()


def service_account_email() -> str:
    """Return the e-mail address of the default service account."""
    if not on_gcp():
        return os.environ.get("GCLOUD_SERVICE_ACCOUNT", "")
    return _fetch("instance/service-accounts/default/email")


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


def region() -> str:
    """Return the region the process runs in."""
    if not on_gcp():
        return os.environ.get("INSTANCE_REGION", "")
    return extraction_region(_fetch("instance/zone"))


def zone() -> str:
    """Return the zone the process runs in."""
    if not on_gcp():
        return os.environ.get("INSTANCE_ZONE", "")
    return extraction_zone(_fetch("instance/zone"))


def extraction_region(meta_zone: str) -> str:
    """Extract the region from 'projects/<number>/zones/<zone>'."""
    last = meta_zone.split("/")[-1]
    if len(last) < 3:
        raise InvalidArgumentError(_ZONE_FORMAT, {"input_argument": meta_zone})
    return last[:-2]


def extraction_zone(meta_zone: str) -> str:
    """Extract the zone from 'projects/<number>/zones/<zone>'."""
    return meta_zone.split("/")[-1]


def instance_id() -> str:
    """Return the numeric ID of the running instance."""
    if not on_gcp():
        return os.environ.get("INSTANCE_ID", "")
    return _fetch("instance/id")


def instance_name() -> str:
    """Return the name given to the running instance."""
    if not on_gcp():
        return os.environ.get("INSTANCE_NAME", "")
    return _fetch("instance/name")


def hostname() -> str:
    """Return the host name of the running instance."""
    if not on_gcp():
        return os.environ.get("HOSTNAME", "")
    return _fetch("instance/hostname")


def service_account_default_token() -> str:
    """Return the access token of the default service account."""
    if not on_gcp():
        return os.environ.get("SERVICE_ACCOUNTS_DEFAULT_TOKEN", "")
    return _fetch("instance/service-accounts/default/token")


def get_instance_attribute(key: str) -> str:
    """Return an instance attribute, or $INSTANCE_<key> off Google Cloud."""
    if not on_gcp():
        return os.environ.get(f"INSTANCE_{key}", "")
    return _fetch(f"instance/attributes/{key}")


def get_project_attribute(key: str) -> str:
    """Return a project attribute, or $PROJECT_<key> off Google Cloud."""
    if not on_gcp():
        return os.environ.get(f"PROJECT_{key}", "")
    return _fetch(f"project/attributes/{key}")