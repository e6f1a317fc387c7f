import logging
from typing import Optional

from kube_waste.core.abstract.loaders import BaseMetricsSource, BaseWorkloadLister
from kube_waste.core.aggregation import join
from kube_waste.core.models.objects import PodResources
from kube_waste.core.selection import DEFAULT_UTILIZATION_THRESHOLD, select_wasteful_pods

logger = logging.getLogger("kube-waste")


def find_wasteful_pods(
    lister: BaseWorkloadLister,
    metrics_source: BaseMetricsSource,
    namespace: Optional[str] = None,
    threshold: float = DEFAULT_UTILIZATION_THRESHOLD,
) -> list[PodResources]:
    """Find the pods that use less than `threshold` percent of the resources they request.

    Args:
        lister: Lists the declared requests of the running pods.
        metrics_source: Lists the current usage of the pods.
        namespace: The namespace to look at. None means all namespaces.
        threshold: Utilization percentage under which a pod is considered wasteful.

    Returns:
        The wasteful pods, least utilized first.

    Raises:
        SourceUnavailable: If either listing fails. Nothing is returned in that case.
        ParseError: If a quantity from either listing cannot be interpreted.
    """

    scope = f"namespace {namespace}" if namespace else "all namespaces"

    logger.info(f"Listing pods in {scope}")
    workload_specs = lister.list(namespace)
    logger.debug(f"Found {len(workload_specs)} running pod(s)")

    logger.info(f"Listing pod metrics in {scope}")
    workload_usages = metrics_source.list(namespace)
    logger.debug(f"Found metrics for {len(workload_usages)} pod(s)")

    pods = join(workload_specs, workload_usages)
    return select_wasteful_pods(pods.values(), threshold)
