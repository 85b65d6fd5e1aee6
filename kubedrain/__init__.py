"""
kubedrain: the cluster operations a node drain needs, on top of the
Kubernetes Python client.
"""
from .config import Settings, get_settings
from .exceptions import (
    ClientConfigError,
    KubeDrainError,
    PodDeletionTimeout,
    WaitTimeoutError,
    is_not_found,
)
from .services import Client, KubernetesClient, PodDeletionWaiter

__all__ = [
    "Settings",
    "get_settings",
    "ClientConfigError",
    "KubeDrainError",
    "PodDeletionTimeout",
    "WaitTimeoutError",
    "is_not_found",
    "Client",
    "KubernetesClient",
    "PodDeletionWaiter",
]
