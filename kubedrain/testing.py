"""
In-memory stand-in for ``KubernetesClient``.

Objects are kept in dictionaries keyed by ``(namespace, name)`` and missing
objects raise the same 404 ``ApiException`` the API server produces, so code
written against ``kubedrain.services.Client`` can be exercised without a
cluster.
"""
from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Tuple

import structlog
from kubernetes.client import (
    V1ClusterRole,
    V1DaemonSet,
    V1Deployment,
    V1ListMeta,
    V1Node,
    V1NodeList,
    V1Pod,
    V1PodList,
    V1ServiceAccount,
    V1ServiceAccountList,
)
from kubernetes.client.exceptions import ApiException

from .services.waiter import PodDeletionWaiter

Key = Tuple[str, str]


def _not_found(kind: str, name: str) -> ApiException:
    return ApiException(status=404, reason=f'{kind} "{name}" not found')


def _key(obj: Any) -> Key:
    return (obj.metadata.namespace or "", obj.metadata.name)


class InMemoryClient:
    """Dictionary-backed implementation of the drain client operations.

    ``policy_group_version`` is what ``probe_eviction`` reports; leave it empty
    to simulate a server without the eviction subresource. Evicting or deleting
    a pod removes it immediately unless ``keep_deleted_pods`` is set, which lets
    tests model pods that linger past a wait.
    """

    def __init__(
        self,
        *,
        interval: float = 1.0,
        timeout: float = 120.0,
        policy_group_version: str = "",
        keep_deleted_pods: bool = False,
    ) -> None:
        self.interval = interval
        self.timeout = timeout
        self.policy_group_version = policy_group_version
        self.keep_deleted_pods = keep_deleted_pods
        self.nodes: Dict[str, V1Node] = {}
        self.pods: Dict[Key, V1Pod] = {}
        self.service_accounts: Dict[Key, V1ServiceAccount] = {}
        self.cluster_roles: Dict[str, V1ClusterRole] = {}
        self.daemon_sets: Dict[Key, V1DaemonSet] = {}
        self.deployments: Dict[Key, V1Deployment] = {}
        self.evictions: List[Tuple[Key, str]] = []

    # Seeding helpers

    def add(self, *objs: Any) -> None:
        for obj in objs:
            obj = copy.deepcopy(obj)
            if obj.metadata.uid is None:
                obj.metadata.uid = str(uuid.uuid4())
            if isinstance(obj, V1Node):
                self.nodes[obj.metadata.name] = obj
            elif isinstance(obj, V1Pod):
                self.pods[_key(obj)] = obj
            elif isinstance(obj, V1ServiceAccount):
                self.service_accounts[_key(obj)] = obj
            elif isinstance(obj, V1ClusterRole):
                self.cluster_roles[obj.metadata.name] = obj
            elif isinstance(obj, V1DaemonSet):
                self.daemon_sets[_key(obj)] = obj
            elif isinstance(obj, V1Deployment):
                self.deployments[_key(obj)] = obj
            else:
                raise TypeError(f"unsupported object type: {type(obj).__name__}")

    # Pods

    def list_pods(self, node: V1Node) -> V1PodList:
        items = [p for p in self.pods.values() if p.spec is not None and p.spec.node_name == node.metadata.name]
        return V1PodList(items=copy.deepcopy(items), metadata=V1ListMeta())

    def list_all_pods(self) -> V1PodList:
        return V1PodList(items=copy.deepcopy(list(self.pods.values())), metadata=V1ListMeta())

    def get_pod(self, namespace: str, name: str) -> V1Pod:
        try:
            return copy.deepcopy(self.pods[(namespace, name)])
        except KeyError:
            raise _not_found("pods", name) from None

    def delete_pod(self, pod: V1Pod) -> None:
        key = _key(pod)
        if key not in self.pods:
            raise _not_found("pods", pod.metadata.name)
        if not self.keep_deleted_pods:
            del self.pods[key]

    def evict_pod(self, pod: V1Pod, policy_group_version: str) -> None:
        self.delete_pod(pod)
        self.evictions.append((_key(pod), policy_group_version))

    # Nodes

    def list_nodes(self) -> V1NodeList:
        return self.list_nodes_by_options()

    def list_nodes_by_options(self, **options: Any) -> V1NodeList:
        items = list(self.nodes.values())
        selector = options.get("label_selector")
        if selector:
            wanted = dict(part.split("=", 1) for part in selector.split(","))
            items = [n for n in items if wanted.items() <= (n.metadata.labels or {}).items()]
        return V1NodeList(items=copy.deepcopy(items), metadata=V1ListMeta())

    def get_node(self, name: str) -> V1Node:
        try:
            return copy.deepcopy(self.nodes[name])
        except KeyError:
            raise _not_found("nodes", name) from None

    def update_node(self, node: V1Node) -> V1Node:
        if node.metadata.name not in self.nodes:
            raise _not_found("nodes", node.metadata.name)
        self.nodes[node.metadata.name] = copy.deepcopy(node)
        return copy.deepcopy(node)

    def delete_node(self, name: str) -> None:
        if self.nodes.pop(name, None) is None:
            raise _not_found("nodes", name)

    # Service accounts and RBAC

    def list_service_accounts(self, namespace: str) -> V1ServiceAccountList:
        items = [sa for (ns, _), sa in self.service_accounts.items() if ns == namespace]
        return V1ServiceAccountList(items=copy.deepcopy(items), metadata=V1ListMeta())

    def delete_service_account(self, sa: V1ServiceAccount) -> None:
        if self.service_accounts.pop(_key(sa), None) is None:
            raise _not_found("serviceaccounts", sa.metadata.name)

    def delete_cluster_role(self, role: V1ClusterRole) -> None:
        if self.cluster_roles.pop(role.metadata.name, None) is None:
            raise _not_found("clusterroles.rbac.authorization.k8s.io", role.metadata.name)

    # Workloads

    def get_daemon_set(self, namespace: str, name: str) -> V1DaemonSet:
        try:
            return copy.deepcopy(self.daemon_sets[(namespace, name)])
        except KeyError:
            raise _not_found("daemonsets.apps", name) from None

    def delete_daemon_set(self, daemonset: V1DaemonSet) -> None:
        if self.daemon_sets.pop(_key(daemonset), None) is None:
            raise _not_found("daemonsets.apps", daemonset.metadata.name)

    def get_deployment(self, namespace: str, name: str) -> V1Deployment:
        try:
            return copy.deepcopy(self.deployments[(namespace, name)])
        except KeyError:
            raise _not_found("deployments.apps", name) from None

    def update_deployment(self, namespace: str, deployment: V1Deployment) -> V1Deployment:
        key = (namespace, deployment.metadata.name)
        if key not in self.deployments:
            raise _not_found("deployments.apps", deployment.metadata.name)
        self.deployments[key] = copy.deepcopy(deployment)
        return copy.deepcopy(deployment)

    def delete_deployment(self, deployment: V1Deployment) -> None:
        if self.deployments.pop(_key(deployment), None) is None:
            raise _not_found("deployments.apps", deployment.metadata.name)

    # Eviction support and removal waits

    def probe_eviction(self) -> str:
        return self.policy_group_version

    def wait_for_delete(
        self,
        pods: List[V1Pod],
        using_eviction: bool,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> List[V1Pod]:
        waiter = PodDeletionWaiter(
            self.get_pod,
            pods,
            interval=self.interval,
            timeout=self.timeout,
            using_eviction=using_eviction,
            log=logger,
        )
        return waiter.wait()
