from __future__ import annotations

from typing import Any

import structlog
import yaml
from kubernetes import client, config
from kubernetes.client import ApiClient
from kubernetes.config.config_exception import ConfigException

from kubedrain.config import Settings, get_settings
from kubedrain.exceptions import ClientConfigError
from kubedrain.services.waiter import PodDeletionWaiter

logger = structlog.get_logger(__name__)

EVICTION_KIND = "Eviction"
EVICTION_SUBRESOURCE = "pods/eviction"
POLICY_GROUP = "policy"


class KubernetesClient:
    """Thin wrapper around the Kubernetes Python client for node draining.

    Every operation except ``probe_eviction`` and ``wait_for_delete`` is a single
    call into the client library. Results are returned and ``ApiException``
    errors raised exactly as the library produces them.
    """

    def __init__(self, api_client: ApiClient, *, interval: float, timeout: float) -> None:
        self._api_client = api_client
        self._core_v1 = client.CoreV1Api(api_client)
        self._apps_v1 = client.AppsV1Api(api_client)
        self._rbac_v1 = client.RbacAuthorizationV1Api(api_client)
        self._apis = client.ApisApi(api_client)
        self.interval = interval
        self.timeout = timeout

    @classmethod
    def from_kubeconfig(
        cls,
        api_server_url: str | None,
        kubeconfig: str,
        interval: float,
        timeout: float,
        context: str | None = None,
    ) -> KubernetesClient:
        """Build a client from kubeconfig text, optionally overriding its server URL."""
        try:
            data = yaml.safe_load(kubeconfig)
        except yaml.YAMLError as exc:
            raise ClientConfigError(f"Invalid kubeconfig: {exc}") from exc
        if not isinstance(data, dict):
            raise ClientConfigError("kubeconfig must be a mapping")

        configuration = client.Configuration()
        try:
            config.load_kube_config_from_dict(
                data,
                context=context,
                client_configuration=configuration,
                persist_config=False,
            )
        except ConfigException as exc:
            raise ClientConfigError(f"Unusable kubeconfig: {exc}") from exc

        if api_server_url:
            configuration.host = api_server_url
        return cls(ApiClient(configuration), interval=interval, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> KubernetesClient:
        """Build a client from a kubeconfig file or the in-cluster service account."""
        settings = settings or get_settings()
        configuration = client.Configuration()
        try:
            if settings.in_cluster:
                config.load_incluster_config(client_configuration=configuration)
            else:
                config.load_kube_config(
                    config_file=settings.kube_config_path,
                    context=settings.kube_context,
                    client_configuration=configuration,
                    persist_config=False,
                )
        except ConfigException as exc:
            logger.warning("kubernetes.config_missing", error=str(exc))
            raise ClientConfigError(str(exc), details={"in_cluster": settings.in_cluster}) from exc

        if settings.api_server_url:
            configuration.host = settings.api_server_url
        return cls(
            ApiClient(configuration),
            interval=settings.poll_interval_seconds,
            timeout=settings.poll_timeout_seconds,
        )

    # Pods

    def list_pods(self, node: client.V1Node) -> client.V1PodList:
        """Pods bound to ``node`` across all namespaces."""
        return self._core_v1.list_pod_for_all_namespaces(field_selector=f"spec.nodeName={node.metadata.name}")

    def list_all_pods(self) -> client.V1PodList:
        return self._core_v1.list_pod_for_all_namespaces()

    def get_pod(self, namespace: str, name: str) -> client.V1Pod:
        return self._core_v1.read_namespaced_pod(name=name, namespace=namespace)

    def delete_pod(self, pod: client.V1Pod) -> None:
        self._core_v1.delete_namespaced_pod(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace,
            body=client.V1DeleteOptions(),
        )

    def evict_pod(self, pod: client.V1Pod, policy_group_version: str) -> None:
        """Post an Eviction for ``pod`` using the version from ``probe_eviction``."""
        eviction = client.V1Eviction(
            api_version=policy_group_version,
            kind=EVICTION_KIND,
            metadata=client.V1ObjectMeta(name=pod.metadata.name, namespace=pod.metadata.namespace),
        )
        self._core_v1.create_namespaced_pod_eviction(
            name=eviction.metadata.name,
            namespace=eviction.metadata.namespace,
            body=eviction,
        )

    # Nodes

    def list_nodes(self) -> client.V1NodeList:
        return self.list_nodes_by_options()

    def list_nodes_by_options(self, **options: Any) -> client.V1NodeList:
        """List nodes, passing list options such as ``label_selector`` straight through."""
        return self._core_v1.list_node(**options)

    def get_node(self, name: str) -> client.V1Node:
        return self._core_v1.read_node(name=name)

    def update_node(self, node: client.V1Node) -> client.V1Node:
        return self._core_v1.replace_node(name=node.metadata.name, body=node)

    def delete_node(self, name: str) -> None:
        self._core_v1.delete_node(name=name, body=client.V1DeleteOptions())

    # Service accounts and RBAC

    def list_service_accounts(self, namespace: str) -> client.V1ServiceAccountList:
        return self._core_v1.list_namespaced_service_account(namespace=namespace)

    def delete_service_account(self, sa: client.V1ServiceAccount) -> None:
        self._core_v1.delete_namespaced_service_account(
            name=sa.metadata.name,
            namespace=sa.metadata.namespace,
            body=client.V1DeleteOptions(),
        )

    def delete_cluster_role(self, role: client.V1ClusterRole) -> None:
        self._rbac_v1.delete_cluster_role(name=role.metadata.name, body=client.V1DeleteOptions())

    # Workloads

    def get_daemon_set(self, namespace: str, name: str) -> client.V1DaemonSet:
        return self._apps_v1.read_namespaced_daemon_set(name=name, namespace=namespace)

    def delete_daemon_set(self, daemonset: client.V1DaemonSet) -> None:
        self._apps_v1.delete_namespaced_daemon_set(
            name=daemonset.metadata.name,
            namespace=daemonset.metadata.namespace,
            body=client.V1DeleteOptions(),
        )

    def get_deployment(self, namespace: str, name: str) -> client.V1Deployment:
        return self._apps_v1.read_namespaced_deployment(name=name, namespace=namespace)

    def update_deployment(self, namespace: str, deployment: client.V1Deployment) -> client.V1Deployment:
        return self._apps_v1.replace_namespaced_deployment(
            name=deployment.metadata.name,
            namespace=namespace,
            body=deployment,
        )

    def delete_deployment(self, deployment: client.V1Deployment) -> None:
        self._apps_v1.delete_namespaced_deployment(
            name=deployment.metadata.name,
            namespace=deployment.metadata.namespace,
            body=client.V1DeleteOptions(),
        )

    # Eviction support and removal waits

    def probe_eviction(self) -> str:
        """Return the policy group version to evict with, or "" when eviction is unsupported.

        The eviction resource is looked up under the core "v1" resource list,
        whatever the preferred policy version is.
        """
        groups = self._apis.get_api_versions()
        policy_group_version = None
        for group in groups.groups or []:
            if group.name == POLICY_GROUP:
                preferred = group.preferred_version
                policy_group_version = (preferred.group_version if preferred else None) or ""
                break
        if policy_group_version is None:
            return ""

        resources = self._core_v1.get_api_resources()
        for resource in resources.resources or []:
            if resource.name == EVICTION_SUBRESOURCE and resource.kind == EVICTION_KIND:
                return policy_group_version
        return ""

    def wait_for_delete(
        self,
        pods: list[client.V1Pod],
        using_eviction: bool,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> list[client.V1Pod]:
        """Block until every pod in ``pods`` is gone.

        Returns an empty list on success. Raises ``PodDeletionTimeout`` with the
        pods still present once ``self.timeout`` has passed; any API error other
        than 404 is raised unchanged, with the pods still pending at that cycle
        attached as its ``pending_pods`` attribute.
        """
        waiter = PodDeletionWaiter(
            self.get_pod,
            pods,
            interval=self.interval,
            timeout=self.timeout,
            using_eviction=using_eviction,
            log=logger,
        )
        return waiter.wait()
