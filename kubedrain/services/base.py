from __future__ import annotations

from typing import Any, Protocol

import structlog
from kubernetes.client import (
    V1ClusterRole,
    V1DaemonSet,
    V1Deployment,
    V1Node,
    V1NodeList,
    V1Pod,
    V1PodList,
    V1ServiceAccount,
    V1ServiceAccountList,
)


class Client(Protocol):
    """Cluster operations a node drain needs.

    ``KubernetesClient`` talks to a live API server and
    ``kubedrain.testing.InMemoryClient`` keeps everything in memory.
    """

    def list_pods(self, node: V1Node) -> V1PodList:
        ...

    def list_all_pods(self) -> V1PodList:
        ...

    def list_nodes(self) -> V1NodeList:
        ...

    def list_nodes_by_options(self, **options: Any) -> V1NodeList:
        ...

    def get_node(self, name: str) -> V1Node:
        ...

    def update_node(self, node: V1Node) -> V1Node:
        ...

    def delete_node(self, name: str) -> None:
        ...

    def list_service_accounts(self, namespace: str) -> V1ServiceAccountList:
        ...

    def delete_service_account(self, sa: V1ServiceAccount) -> None:
        ...

    def delete_cluster_role(self, role: V1ClusterRole) -> None:
        ...

    def delete_daemon_set(self, daemonset: V1DaemonSet) -> None:
        ...

    def delete_deployment(self, deployment: V1Deployment) -> None:
        ...

    def get_daemon_set(self, namespace: str, name: str) -> V1DaemonSet:
        ...

    def get_deployment(self, namespace: str, name: str) -> V1Deployment:
        ...

    def update_deployment(self, namespace: str, deployment: V1Deployment) -> V1Deployment:
        ...

    def get_pod(self, namespace: str, name: str) -> V1Pod:
        ...

    def delete_pod(self, pod: V1Pod) -> None:
        ...

    def evict_pod(self, pod: V1Pod, policy_group_version: str) -> None:
        ...

    def probe_eviction(self) -> str:
        ...

    def wait_for_delete(
        self,
        pods: list[V1Pod],
        using_eviction: bool,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> list[V1Pod]:
        ...
