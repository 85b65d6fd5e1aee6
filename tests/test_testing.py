"""Tests for the in-memory client."""

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from conftest import make_daemon_set, make_deployment, make_pod
from kubedrain.exceptions import PodDeletionTimeout, is_not_found
from kubedrain.testing import InMemoryClient


def node(name, **labels):
    return client.V1Node(metadata=client.V1ObjectMeta(name=name, labels=labels or None))


@pytest.fixture
def cluster():
    cluster = InMemoryClient(interval=0.05, timeout=0.2, policy_group_version="policy/v1")
    cluster.add(
        node("worker-1", role="agent"),
        node("worker-2", role="master"),
        make_pod("web-1", "u1", node="worker-1"),
        make_pod("web-2", "u2", node="worker-2"),
        make_pod("dns", "u3", namespace="kube-system", node="worker-1"),
    )
    return cluster


class TestInMemoryClient:
    def test_list_pods_filters_by_node(self, cluster):
        pods = cluster.list_pods(node("worker-1")).items
        assert sorted(p.metadata.name for p in pods) == ["dns", "web-1"]
        assert len(cluster.list_all_pods().items) == 3

    def test_list_nodes_by_label(self, cluster):
        assert [n.metadata.name for n in cluster.list_nodes_by_options(label_selector="role=agent").items] == ["worker-1"]
        assert len(cluster.list_nodes().items) == 2

    def test_missing_objects_raise_not_found(self, cluster):
        with pytest.raises(ApiException) as excinfo:
            cluster.get_node("nope")
        assert is_not_found(excinfo.value)

        with pytest.raises(ApiException) as excinfo:
            cluster.get_deployment("shop", "nope")
        assert is_not_found(excinfo.value)

    def test_update_node_round_trips(self, cluster):
        worker = cluster.get_node("worker-1")
        worker.spec = client.V1NodeSpec(unschedulable=True)

        cluster.update_node(worker)

        assert cluster.get_node("worker-1").spec.unschedulable is True

    def test_returned_objects_are_copies(self, cluster):
        pod = cluster.get_pod("default", "web-1")
        pod.metadata.labels = {"changed": "yes"}
        assert cluster.get_pod("default", "web-1").metadata.labels is None

    def test_workloads_and_rbac(self, cluster):
        deployment = make_deployment("web", "shop")
        daemonset = make_daemon_set("agent", "kube-system")
        sa = client.V1ServiceAccount(metadata=client.V1ObjectMeta(name="builder", namespace="ci"))
        role = client.V1ClusterRole(metadata=client.V1ObjectMeta(name="drainer"))
        cluster.add(deployment, daemonset, sa, role)

        deployment.spec.replicas = 0
        assert cluster.update_deployment("shop", deployment).spec.replicas == 0
        assert cluster.get_deployment("shop", "web").spec.replicas == 0
        assert cluster.get_daemon_set("kube-system", "agent").metadata.name == "agent"
        assert [s.metadata.name for s in cluster.list_service_accounts("ci").items] == ["builder"]

        cluster.delete_deployment(deployment)
        cluster.delete_daemon_set(daemonset)
        cluster.delete_service_account(sa)
        cluster.delete_cluster_role(role)

        assert not cluster.deployments
        assert not cluster.daemon_sets
        assert not cluster.service_accounts
        assert not cluster.cluster_roles

    def test_add_rejects_unknown_types(self, cluster):
        with pytest.raises(TypeError):
            cluster.add(client.V1ConfigMap(metadata=client.V1ObjectMeta(name="cm")))

    def test_add_leaves_callers_object_untouched(self, cluster):
        pod = client.V1Pod(metadata=client.V1ObjectMeta(name="fresh", namespace="default"))

        cluster.add(pod)

        assert pod.metadata.uid is None
        assert cluster.get_pod("default", "fresh").metadata.uid is not None

    def test_evict_then_wait(self, cluster, clock):
        pods = cluster.list_pods(node("worker-1")).items
        version = cluster.probe_eviction()

        for pod in pods:
            cluster.evict_pod(pod, version)

        assert cluster.wait_for_delete(pods, using_eviction=True) == []
        assert {key for key, _ in cluster.evictions} == {("default", "web-1"), ("kube-system", "dns")}
        assert clock.sleeps == []

    def test_lingering_pods_time_out(self, clock):
        cluster = InMemoryClient(interval=0.05, timeout=0.2, keep_deleted_pods=True)
        pod = make_pod("web-1", "u1")
        cluster.add(pod)

        cluster.delete_pod(pod)
        with pytest.raises(PodDeletionTimeout) as excinfo:
            cluster.wait_for_delete([pod], using_eviction=False)

        assert [p.metadata.name for p in excinfo.value.pending_pods] == ["web-1"]

    def test_recreated_pod_is_not_waited_on(self, cluster, clock):
        old = cluster.get_pod("default", "web-1")
        cluster.delete_pod(old)
        cluster.add(make_pod("web-1", "new-uid", node="worker-2"))

        assert cluster.wait_for_delete([old], using_eviction=False) == []

    def test_probe_without_eviction_support(self):
        assert InMemoryClient().probe_eviction() == ""
