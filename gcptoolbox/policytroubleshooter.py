"""Checking whether a principal holds a permission on a resource."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol


class AccessState(enum.IntEnum):
    """Whether a principal has a permission on a resource."""

    ACCESS_STATE_UNSPECIFIED = 0
    GRANTED = 1
    NOT_GRANTED = 2
    UNKNOWN_CONDITIONAL = 3
    UNKNOWN_INFO_DENIED = 4


@dataclass(frozen=True)
class AccessTuple:
    """Principal, full resource name and permission to troubleshoot."""

    principal: str
    full_resource_name: str
    permission: str


@dataclass(frozen=True)
class TroubleshootResult:
    """Outcome of a troubleshoot call, with the client's raw response."""

    access: AccessState
    response: Any = None


class IamCheckerClient(Protocol):
    """Client of the policy troubleshooter API."""

    def troubleshoot_iam_policy(self, access_tuple: AccessTuple) -> Any: ...

    def close(self) -> None: ...


def _to_access_state(value: Any) -> AccessState:
    if isinstance(value, str):
        return AccessState[value]
    if value is None:
        return AccessState.ACCESS_STATE_UNSPECIFIED
    return AccessState(int(value))


class PolicyTroubleshooterService:
    """Answers permission questions through an IAM checker client."""

    def __init__(self, iam_checker_client: IamCheckerClient) -> None:
        self._client = iam_checker_client

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()

    def __enter__(self) -> PolicyTroubleshooterService:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def has_permission(
        self, principal: str, full_resource_name: str, permission: str
    ) -> bool:
        """Return whether ``principal`` holds ``permission`` on the resource."""
        result = self.troubleshoot_iam_policy(principal, full_resource_name, permission)
        return result.access is AccessState.GRANTED

    def troubleshoot_iam_policy(
        self, principal: str, full_resource_name: str, permission: str
    ) -> TroubleshootResult:
        """Troubleshoot the access of ``principal`` to the resource."""
        response = self._client.troubleshoot_iam_policy(
            AccessTuple(
                principal=principal,
                full_resource_name=full_resource_name,
                permission=permission,
            )
        )
        if isinstance(response, Mapping):
            access = response.get("access")
        else:
            access = getattr(response, "access", None)
        return TroubleshootResult(access=_to_access_state(access), response=response)