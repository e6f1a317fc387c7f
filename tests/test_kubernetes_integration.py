from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException
from kubernetes.client.models import (
    V1Container,
    V1ObjectMeta,
    V1Pod,
    V1PodList,
    V1PodSpec,
    V1ResourceRequirements,
)
from urllib3.exceptions import MaxRetryError

from kube_waste.core.exceptions import ParseError, SourceUnavailable
from kube_waste.core.integrations.kubernetes import (
    METRICS_GROUP,
    METRICS_PLURAL,
    METRICS_VERSION,
    RUNNING_PODS_SELECTOR,
    KubernetesMetricsSource,
    KubernetesWorkloadLister,
)

POD_LIST = V1PodList(
    items=[
        V1Pod(
            metadata=V1ObjectMeta(name="mock-pod-1", namespace="default"),
            spec=V1PodSpec(
                containers=[
                    V1Container(
                        name="mock-container-1",
                        resources=V1ResourceRequirements(requests={"cpu": "500m", "memory": "128Mi"}),
                    ),
                    V1Container(name="mock-container-2", resources=V1ResourceRequirements()),
                    V1Container(name="mock-container-3"),
                ]
            ),
        )
    ]
)

POD_METRICS = {
    "kind": "PodMetricsList",
    "apiVersion": "metrics.k8s.io/v1beta1",
    "items": [
        {
            "metadata": {"name": "mock-pod-1", "namespace": "default"},
            "timestamp": "2024-01-01T00:00:00Z",
            "window": "30s",
            "containers": [
                {"name": "mock-container-1", "usage": {"cpu": "1234567n", "memory": "65536Ki"}},
                {"name": "mock-container-2", "usage": {}},
            ],
        }
    ],
}


@pytest.fixture
def core_api():
    with patch("kube_waste.core.integrations.kubernetes.client.CoreV1Api") as core_api_class:
        core_api = MagicMock()
        core_api_class.return_value = core_api
        yield core_api


@pytest.fixture
def custom_objects_api():
    with patch("kube_waste.core.integrations.kubernetes.client.CustomObjectsApi") as custom_objects_api_class:
        custom_objects_api = MagicMock()
        custom_objects_api_class.return_value = custom_objects_api
        yield custom_objects_api


def test_list_pods_in_all_namespaces(core_api):
    core_api.list_pod_for_all_namespaces.return_value = POD_LIST

    specs = KubernetesWorkloadLister().list()

    core_api.list_pod_for_all_namespaces.assert_called_once_with(field_selector=RUNNING_PODS_SELECTOR)
    assert len(specs) == 1
    spec = specs[0]
    assert (spec.namespace, spec.name) == ("default", "mock-pod-1")
    assert [container.name for container in spec.containers] == [
        "mock-container-1",
        "mock-container-2",
        "mock-container-3",
    ]
    assert str(spec.containers[0].requested_cpu) == "500m"
    assert str(spec.containers[0].requested_mem) == "128Mi"
    assert spec.containers[1].requested_cpu.is_zero
    assert spec.containers[2].requested_mem.is_zero


def test_list_pods_in_namespace(core_api):
    core_api.list_namespaced_pod.return_value = V1PodList(items=[])

    assert KubernetesWorkloadLister().list("default") == []

    core_api.list_namespaced_pod.assert_called_once_with(namespace="default", field_selector=RUNNING_PODS_SELECTOR)
    core_api.list_pod_for_all_namespaces.assert_not_called()


def test_list_pods_api_error(core_api):
    core_api.list_pod_for_all_namespaces.side_effect = ApiException(status=403, reason="Forbidden")

    with pytest.raises(SourceUnavailable, match="403"):
        KubernetesWorkloadLister().list()


def test_list_pods_transport_error(core_api):
    core_api.list_namespaced_pod.side_effect = MaxRetryError(None, "/api/v1/namespaces/default/pods")

    with pytest.raises(SourceUnavailable):
        KubernetesWorkloadLister().list("default")


def test_list_pods_malformed_request(core_api):
    pod = POD_LIST.items[0]
    broken = V1Pod(
        metadata=pod.metadata,
        spec=V1PodSpec(
            containers=[V1Container(name="c", resources=V1ResourceRequirements(requests={"cpu": "lots"}))]
        ),
    )
    core_api.list_pod_for_all_namespaces.return_value = V1PodList(items=[broken])

    with pytest.raises(ParseError):
        KubernetesWorkloadLister().list()


def test_list_metrics_in_all_namespaces(custom_objects_api):
    custom_objects_api.list_cluster_custom_object.return_value = POD_METRICS

    usages = KubernetesMetricsSource().list()

    custom_objects_api.list_cluster_custom_object.assert_called_once_with(
        group=METRICS_GROUP, version=METRICS_VERSION, plural=METRICS_PLURAL
    )
    assert len(usages) == 1
    usage = usages[0]
    assert (usage.namespace, usage.name) == ("default", "mock-pod-1")
    assert usage.containers[0].used_cpu.milli_value == 2
    assert str(usage.containers[0].used_mem) == "64Mi"
    assert usage.containers[1].used_cpu.is_zero


def test_list_metrics_in_namespace(custom_objects_api):
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": []}

    assert KubernetesMetricsSource().list("default") == []

    custom_objects_api.list_namespaced_custom_object.assert_called_once_with(
        group=METRICS_GROUP, version=METRICS_VERSION, namespace="default", plural=METRICS_PLURAL
    )


def test_list_metrics_api_unavailable(custom_objects_api):
    custom_objects_api.list_cluster_custom_object.side_effect = ApiException(status=404, reason="Not Found")

    with pytest.raises(SourceUnavailable, match="pod metrics"):
        KubernetesMetricsSource().list()
