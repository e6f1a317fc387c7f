from __future__ import annotations

from typing import Optional

import pydantic as pd

from kube_waste.core.models.quantity import CpuQuantity, MemoryQuantity, Quantity, ResourceType

PodKey = tuple[str, str]


def _percentage(used_milli: int, requested_milli: int) -> float:
    # NOTE: Multiplying before dividing keeps exact ratios exact (100m of 500m is 20.0, not 20.000000000000004)
    return used_milli * 100 / requested_milli


class ContainerResources(pd.BaseModel):
    """Requested and used resources of a single container.

    A container is bound on a resource when it requests a non-zero amount of it.
    Utilization is only defined for bound resources and is None otherwise.
    """

    model_config = pd.ConfigDict(validate_assignment=True)

    name: str
    requested_cpu: CpuQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.CPU))
    requested_mem: MemoryQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.Memory))
    used_cpu: CpuQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.CPU))
    used_mem: MemoryQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.Memory))

    @pd.computed_field  # type: ignore[misc]
    @property
    def is_cpu_bound(self) -> bool:
        return self.requested_cpu != 0

    @pd.computed_field  # type: ignore[misc]
    @property
    def is_mem_bound(self) -> bool:
        return self.requested_mem != 0

    @pd.computed_field  # type: ignore[misc]
    @property
    def cpu_utilization_pct(self) -> Optional[float]:
        if not self.is_cpu_bound:
            return None
        return _percentage(self.used_cpu.milli_value, self.requested_cpu.milli_value)

    @pd.computed_field  # type: ignore[misc]
    @property
    def mem_utilization_pct(self) -> Optional[float]:
        if not self.is_mem_bound:
            return None
        return _percentage(self.used_mem.milli_value, self.requested_mem.milli_value)

    def __str__(self) -> str:
        return self.name


class PodResources(pd.BaseModel):
    """Resources of a pod, rolled up from its containers.

    Pod level totals and utilization only take the containers that are bound on the given resource into account,
    so a container without a CPU request never changes the CPU utilization of its pod.
    Containers are always visited in name order, so sums and output are the same on every run.
    """

    name: str
    namespace: str
    containers: dict[str, ContainerResources] = {}

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def key(self) -> PodKey:
        return self.namespace, self.name

    @property
    def sorted_containers(self) -> list[ContainerResources]:
        return [self.containers[name] for name in sorted(self.containers)]

    def add_container(self, container: ContainerResources) -> ContainerResources:
        self.containers[container.name] = container
        return container

    @pd.computed_field  # type: ignore[misc]
    @property
    def is_cpu_bound(self) -> bool:
        """True if at least one container is CPU bound"""
        return any(container.is_cpu_bound for container in self.containers.values())

    @pd.computed_field  # type: ignore[misc]
    @property
    def is_mem_bound(self) -> bool:
        """True if at least one container is memory bound"""
        return any(container.is_mem_bound for container in self.containers.values())

    @pd.computed_field  # type: ignore[misc]
    @property
    def is_resource_bound(self) -> bool:
        return self.is_cpu_bound or self.is_mem_bound

    @pd.computed_field  # type: ignore[misc]
    @property
    def total_requested_cpu(self) -> Quantity:
        total = Quantity.zero(ResourceType.CPU)
        for container in self.sorted_containers:
            if container.is_cpu_bound:
                total = total + container.requested_cpu
        return total

    @pd.computed_field  # type: ignore[misc]
    @property
    def total_requested_mem(self) -> Quantity:
        total = Quantity.zero(ResourceType.Memory)
        for container in self.sorted_containers:
            if container.is_mem_bound:
                total = total + container.requested_mem
        return total

    @pd.computed_field  # type: ignore[misc]
    @property
    def cpu_utilization_pct(self) -> Optional[float]:
        bound = [container for container in self.sorted_containers if container.is_cpu_bound]
        if not bound:
            return None

        used = sum(container.used_cpu.milli_value for container in bound)
        requested = sum(container.requested_cpu.milli_value for container in bound)
        return _percentage(used, requested)

    @pd.computed_field  # type: ignore[misc]
    @property
    def mem_utilization_pct(self) -> Optional[float]:
        bound = [container for container in self.sorted_containers if container.is_mem_bound]
        if not bound:
            return None

        used = sum(container.used_mem.milli_value for container in bound)
        requested = sum(container.requested_mem.milli_value for container in bound)
        return _percentage(used, requested)

    def has_low_utilization(self, threshold: float) -> bool:
        """Check if the pod uses less than `threshold` percent of the memory or of the CPU it requests."""

        if self.is_mem_bound and self.mem_utilization_pct < threshold:  # type: ignore[operator]
            return True
        if self.is_cpu_bound and self.cpu_utilization_pct < threshold:  # type: ignore[operator]
            return True
        return False
