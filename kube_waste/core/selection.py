import functools
import logging
from typing import Iterable

from kube_waste.core.models.objects import PodResources

logger = logging.getLogger("kube-waste")

DEFAULT_UTILIZATION_THRESHOLD = 50.0  # in percents


def has_less_cpu_utilization(this: PodResources, another: PodResources) -> bool:
    if this.is_cpu_bound and another.is_cpu_bound:
        return this.cpu_utilization_pct < another.cpu_utilization_pct  # type: ignore[operator]
    return this.is_cpu_bound


def has_less_mem_utilization(this: PodResources, another: PodResources) -> bool:
    if this.is_mem_bound and another.is_mem_bound:
        return this.mem_utilization_pct < another.mem_utilization_pct  # type: ignore[operator]
    return this.is_mem_bound


def less(this: PodResources, another: PodResources) -> bool:
    """Check if `this` should be listed before `another`.

    CPU bound pods are compared by CPU utilization and go before the pods that request no CPU.
    Memory is only looked at when `this` is not CPU bound.
    """

    # NOTE: For a mix of CPU-only and memory-only pods this is not a strict weak ordering,
    # e.g. less(a, b) and less(b, a) are both true for a CPU-only `a` and a memory-only `b`.
    if this.is_cpu_bound:
        return has_less_cpu_utilization(this, another)
    return has_less_mem_utilization(this, another)


def compare(this: PodResources, another: PodResources) -> int:
    if less(this, another):
        return -1
    if less(another, this):
        return 1
    return 0


def sort_by_utilization(pods: Iterable[PodResources]) -> list[PodResources]:
    """Sort the pods, least utilized first.

    The pods are put in (namespace, name) order before the stable sort,
    so the output does not depend on the order the API listed them in.
    """

    return sorted(sorted(pods, key=lambda pod: pod.key), key=functools.cmp_to_key(compare))


def select_wasteful_pods(
    pods: Iterable[PodResources], threshold: float = DEFAULT_UTILIZATION_THRESHOLD
) -> list[PodResources]:
    """Keep the pods that request resources and use less than `threshold` percent of them, least utilized first."""

    pods = list(pods)
    bound_pods = [pod for pod in pods if pod.is_resource_bound]
    logger.debug(f"{len(bound_pods)} of {len(pods)} pod(s) request CPU or memory")

    wasteful_pods = [pod for pod in bound_pods if pod.has_low_utilization(threshold)]
    logger.debug(f"{len(wasteful_pods)} pod(s) use less than {threshold}% of their requests")

    return sort_by_utilization(wasteful_pods)
