from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

from kubernetes import client  # type: ignore
from kubernetes.client import ApiClient, ApiException  # type: ignore
from kubernetes.client.models import V1Container, V1Pod  # type: ignore
from kubernetes.config.config_exception import ConfigException  # type: ignore
from urllib3.exceptions import HTTPError

from kube_waste.core.abstract.loaders import (
    BaseMetricsSource,
    BaseWorkloadLister,
    ContainerRequests,
    ContainerUsage,
    WorkloadSpec,
    WorkloadUsage,
)
from kube_waste.core.exceptions import SourceUnavailable

logger = logging.getLogger("kube-waste")

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"
METRICS_PLURAL = "pods"

RUNNING_PODS_SELECTOR = "status.phase=Running"

T = TypeVar("T")


def _call_api(description: str, request: Callable[[], T]) -> T:
    try:
        return request()
    except ApiException as e:
        raise SourceUnavailable(f"Error {e.status} listing {description}: {e.reason}") from e
    except (HTTPError, ConfigException) as e:
        raise SourceUnavailable(f"Could not list {description}: {e}") from e


def _describe(kind: str, namespace: Optional[str]) -> str:
    return f"{kind} in namespace {namespace}" if namespace else f"{kind} in all namespaces"


class KubernetesWorkloadLister(BaseWorkloadLister):
    """Lists the resource requests of the running pods through the core Kubernetes API."""

    def __init__(self, api_client: Optional[ApiClient] = None) -> None:
        self.core = client.CoreV1Api(api_client=api_client)

    def list(self, namespace: Optional[str] = None) -> list[WorkloadSpec]:
        description = _describe("pods", namespace)
        logger.debug(f"Listing {description}")

        if namespace is None:
            ret = _call_api(
                description,
                lambda: self.core.list_pod_for_all_namespaces(field_selector=RUNNING_PODS_SELECTOR),
            )
        else:
            ret = _call_api(
                description,
                lambda: self.core.list_namespaced_pod(namespace=namespace, field_selector=RUNNING_PODS_SELECTOR),
            )

        return [self._build_workload_spec(pod) for pod in ret.items]

    @staticmethod
    def _container_requests(container: V1Container) -> ContainerRequests:
        requests = container.resources.requests if container.resources and container.resources.requests else {}
        return ContainerRequests(
            name=container.name,
            requested_cpu=requests.get("cpu"),
            requested_mem=requests.get("memory"),
        )

    def _build_workload_spec(self, pod: V1Pod) -> WorkloadSpec:
        return WorkloadSpec(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace,
            containers=[self._container_requests(container) for container in pod.spec.containers or []],
        )


class KubernetesMetricsSource(BaseMetricsSource):
    """Lists the current usage of the pods from the resource metrics API (metrics.k8s.io)."""

    def __init__(self, api_client: Optional[ApiClient] = None) -> None:
        self.custom_objects = client.CustomObjectsApi(api_client=api_client)

    def list(self, namespace: Optional[str] = None) -> list[WorkloadUsage]:
        description = _describe("pod metrics", namespace)
        logger.debug(f"Listing {description}")

        if namespace is None:
            ret = _call_api(
                description,
                lambda: self.custom_objects.list_cluster_custom_object(
                    group=METRICS_GROUP, version=METRICS_VERSION, plural=METRICS_PLURAL
                ),
            )
        else:
            ret = _call_api(
                description,
                lambda: self.custom_objects.list_namespaced_custom_object(
                    group=METRICS_GROUP, version=METRICS_VERSION, namespace=namespace, plural=METRICS_PLURAL
                ),
            )

        return [self._build_workload_usage(item) for item in ret.get("items", [])]

    @staticmethod
    def _build_workload_usage(item: dict[str, Any]) -> WorkloadUsage:
        return WorkloadUsage(
            name=item["metadata"]["name"],
            namespace=item["metadata"]["namespace"],
            containers=[
                ContainerUsage(
                    name=container["name"],
                    used_cpu=container.get("usage", {}).get("cpu"),
                    used_mem=container.get("usage", {}).get("memory"),
                )
                for container in item.get("containers") or []
            ],
        )
