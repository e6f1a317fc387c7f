from typing import Optional
from unittest.mock import patch

import pytest

from kube_waste.core.abstract.loaders import (
    BaseMetricsSource,
    BaseWorkloadLister,
    ContainerRequests,
    ContainerUsage,
    WorkloadSpec,
    WorkloadUsage,
)
from kube_waste.core.exceptions import SourceUnavailable
from kube_waste.core.integrations.kubernetes import KubernetesMetricsSource, KubernetesWorkloadLister
from kube_waste.core.models.config import Config
from kube_waste.core.models.objects import ContainerResources, PodResources

# Two pods in "default":
#   mock-pod-idle uses 20% of its memory and 2% of its CPU
#   mock-pod-busy uses 80% of its memory and 90% of its CPU
# and one in "kube-system" that requests nothing at all.
TEST_SPECS = [
    WorkloadSpec(
        name="mock-pod-idle",
        namespace="default",
        containers=[
            ContainerRequests(name="mock-container-1", requested_cpu="500m", requested_mem="0.5"),
            ContainerRequests(name="mock-container-2", requested_cpu="500m", requested_mem="0.5"),
            ContainerRequests(name="mock-container-unbound"),
        ],
    ),
    WorkloadSpec(
        name="mock-pod-busy",
        namespace="default",
        containers=[ContainerRequests(name="mock-container-1", requested_cpu="100m", requested_mem="100Mi")],
    ),
    WorkloadSpec(
        name="mock-pod-unbound",
        namespace="kube-system",
        containers=[ContainerRequests(name="mock-container-1")],
    ),
]

TEST_USAGES = [
    WorkloadUsage(
        name="mock-pod-idle",
        namespace="default",
        containers=[
            ContainerUsage(name="mock-container-1", used_cpu="10m", used_mem="100m"),
            ContainerUsage(name="mock-container-2", used_cpu="10m", used_mem="100m"),
            ContainerUsage(name="mock-container-unbound", used_cpu="10m", used_mem="100m"),
        ],
    ),
    WorkloadUsage(
        name="mock-pod-busy",
        namespace="default",
        containers=[ContainerUsage(name="mock-container-1", used_cpu="90m", used_mem="80Mi")],
    ),
    WorkloadUsage(
        name="mock-pod-unbound",
        namespace="kube-system",
        containers=[ContainerUsage(name="mock-container-1", used_cpu="1", used_mem="1Gi")],
    ),
]


def _in_namespace(items: list, namespace: Optional[str]) -> list:
    return [item for item in items if namespace is None or item.namespace == namespace]


class FakeWorkloadLister(BaseWorkloadLister):
    def __init__(self, specs: Optional[list[WorkloadSpec]] = None, error: Optional[Exception] = None) -> None:
        self.specs = TEST_SPECS if specs is None else specs
        self.error = error
        self.calls: list[Optional[str]] = []

    def list(self, namespace: Optional[str] = None) -> list[WorkloadSpec]:
        self.calls.append(namespace)
        if self.error is not None:
            raise self.error
        return _in_namespace(self.specs, namespace)


class FakeMetricsSource(BaseMetricsSource):
    def __init__(self, usages: Optional[list[WorkloadUsage]] = None, error: Optional[Exception] = None) -> None:
        self.usages = TEST_USAGES if usages is None else usages
        self.error = error
        self.calls: list[Optional[str]] = []

    def list(self, namespace: Optional[str] = None) -> list[WorkloadUsage]:
        self.calls.append(namespace)
        if self.error is not None:
            raise self.error
        return _in_namespace(self.usages, namespace)


def build_pod(name: str, namespace: str = "default", **containers: dict[str, str]) -> PodResources:
    pod = PodResources(name=name, namespace=namespace)
    for container_name, resources in containers.items():
        pod.add_container(ContainerResources(name=container_name, **resources))
    return pod


@pytest.fixture
def make_pod():
    """Build a pod from keyword arguments, one per container, e.g. `c1={"requested_cpu": "1", "used_cpu": "10m"}`."""
    return build_pod


@pytest.fixture
def lister() -> FakeWorkloadLister:
    return FakeWorkloadLister()


@pytest.fixture
def metrics_source() -> FakeMetricsSource:
    return FakeMetricsSource()


@pytest.fixture
def unavailable_lister() -> FakeWorkloadLister:
    return FakeWorkloadLister(error=SourceUnavailable("Error 403 listing pods in all namespaces: Forbidden"))


@pytest.fixture(autouse=True)
def reset_config():
    Config.set_config(Config())
    yield
    Config.set_config(Config())


@pytest.fixture
def mock_kubernetes_sources():
    with patch.object(Config, "load_kubeconfig", return_value=None):
        with patch.object(
            KubernetesWorkloadLister, "list", new=lambda self, namespace=None: FakeWorkloadLister().list(namespace)
        ):
            with patch.object(
                KubernetesMetricsSource, "list", new=lambda self, namespace=None: FakeMetricsSource().list(namespace)
            ):
                yield


@pytest.fixture
def fake_sources() -> tuple[type[FakeWorkloadLister], type[FakeMetricsSource]]:
    return FakeWorkloadLister, FakeMetricsSource
