from .base import Client
from .kube_client import KubernetesClient
from .waiter import PodDeletionWaiter

__all__ = ["Client", "KubernetesClient", "PodDeletionWaiter"]
