import logging
from typing import Iterable

from kube_waste.core.abstract.loaders import WorkloadSpec, WorkloadUsage
from kube_waste.core.models.objects import ContainerResources, PodKey, PodResources

logger = logging.getLogger("kube-waste")


def collect_pods_requests(workload_specs: Iterable[WorkloadSpec]) -> dict[PodKey, PodResources]:
    """Build the pod records from the declared requests. Usage is left at zero."""

    pods_by_key: dict[PodKey, PodResources] = {}
    for spec in workload_specs:
        pod = PodResources(name=spec.name, namespace=spec.namespace)
        for container in spec.containers:
            pod.add_container(
                ContainerResources(
                    name=container.name,
                    requested_cpu=container.requested_cpu,
                    requested_mem=container.requested_mem,
                )
            )
        pods_by_key[pod.key] = pod

    return pods_by_key


def collect_pods_metrics(
    pods_by_key: dict[PodKey, PodResources], workload_usages: Iterable[WorkloadUsage]
) -> dict[PodKey, PodResources]:
    """Fill in the usage of the pods, in place.

    Only the pods that have metrics are returned. Mismatches between the two listings are not errors:
    metrics of a pod that was not listed are skipped, and a container that is missing from the pod spec
    is added without requests, which keeps it out of every utilization ratio.
    """

    found_pods: dict[PodKey, PodResources] = {}
    for usage in workload_usages:
        key = (usage.namespace, usage.name)
        pod = pods_by_key.get(key)
        if pod is None:
            logger.debug(f"Skipping metrics of {usage.namespace}/{usage.name}: pod is not running or was deleted")
            continue

        for container_usage in usage.containers:
            container = pod.containers.get(container_usage.name)
            if container is None:
                logger.debug(f"Container {container_usage.name} of {pod} has metrics but no spec, treating it as unbound")
                container = pod.add_container(ContainerResources(name=container_usage.name))

            container.used_cpu = container_usage.used_cpu
            container.used_mem = container_usage.used_mem

        found_pods[key] = pod

    return found_pods


def join(workload_specs: Iterable[WorkloadSpec], workload_usages: Iterable[WorkloadUsage]) -> dict[PodKey, PodResources]:
    """Join the declared requests with the observed usage, keyed by (namespace, name).

    Never raises because of a mismatch between the two listings.
    """

    pods_by_key = collect_pods_requests(workload_specs)
    found_pods = collect_pods_metrics(pods_by_key, workload_usages)

    missing = len(pods_by_key) - len(found_pods)
    if missing > 0:
        logger.debug(f"{missing} running pod(s) have no metrics yet and were left out")

    return found_pods
