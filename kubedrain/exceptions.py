from __future__ import annotations

from typing import Any, Dict, List, Optional

from kubernetes.client import V1Pod
from kubernetes.client.exceptions import ApiException


class KubeDrainError(Exception):
    """Base class for errors raised by the adapter itself.

    Errors coming from the Kubernetes API are never wrapped in this type; they
    reach the caller as the client library raised them.
    """

    def __init__(self, message: str, *, code: str = "KUBEDRAIN_ERROR", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ClientConfigError(KubeDrainError):
    """The Kubernetes client could not be configured."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CLIENT_CONFIG_ERROR", details=details)


class WaitTimeoutError(KubeDrainError):
    """A polling condition was not met before its deadline."""

    def __init__(self, message: str = "timed out waiting for the condition", *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="WAIT_TIMEOUT", details=details)


class PodDeletionTimeout(WaitTimeoutError):
    """Pods were still present when the removal wait ran out of time."""

    def __init__(self, pending_pods: List[V1Pod], timeout: float) -> None:
        names = [f"{p.metadata.namespace}/{p.metadata.name}" for p in pending_pods]
        super().__init__(
            f"timed out after {timeout}s waiting for {len(pending_pods)} pod(s) to go away",
            details={"pods": names, "timeout": timeout},
        )
        self.pending_pods = pending_pods
        self.timeout = timeout


def is_not_found(exc: BaseException) -> bool:
    """Return True when ``exc`` is the API server's 404 for a missing object."""
    return isinstance(exc, ApiException) and exc.status == 404
