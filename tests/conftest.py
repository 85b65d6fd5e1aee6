from types import SimpleNamespace
from unittest.mock import MagicMock, create_autospec

import pytest
from kubernetes import client
from kubernetes.client import ApiClient

from kubedrain.services.kube_client import KubernetesClient
from kubedrain.utils import wait as wait_module


def make_pod(name, uid, namespace="default", node=None):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, uid=uid),
        spec=client.V1PodSpec(containers=[client.V1Container(name="app")], node_name=node) if node else None,
    )


def _selector_and_template(app):
    return dict(
        selector=client.V1LabelSelector(match_labels={"app": app}),
        template=client.V1PodTemplateSpec(),
    )


def make_deployment(name, namespace, replicas=1):
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1DeploymentSpec(replicas=replicas, **_selector_and_template(name)),
    )


def make_daemon_set(name, namespace):
    return client.V1DaemonSet(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1DaemonSetSpec(**_selector_and_template(name)),
    )


class FakeClock:
    """Stands in for the ``time`` module inside the polling helper."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(wait_module, "time", fake)
    return fake


@pytest.fixture
def apis():
    return SimpleNamespace(
        core=create_autospec(client.CoreV1Api, instance=True),
        apps=create_autospec(client.AppsV1Api, instance=True),
        rbac=create_autospec(client.RbacAuthorizationV1Api, instance=True),
        discovery=create_autospec(client.ApisApi, instance=True),
    )


@pytest.fixture
def kube(apis):
    kube = KubernetesClient(MagicMock(spec=ApiClient), interval=0.05, timeout=0.2)
    kube._core_v1 = apis.core
    kube._apps_v1 = apis.apps
    kube._rbac_v1 = apis.rbac
    kube._apis = apis.discovery
    return kube
