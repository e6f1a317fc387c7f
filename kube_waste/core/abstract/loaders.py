from __future__ import annotations

import abc
from typing import Optional

import pydantic as pd

from kube_waste.core.models.quantity import CpuQuantity, MemoryQuantity, Quantity, ResourceType


class ContainerRequests(pd.BaseModel):
    name: str
    requested_cpu: CpuQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.CPU))
    requested_mem: MemoryQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.Memory))


class WorkloadSpec(pd.BaseModel):
    """Declared resource requests of one running pod."""

    name: str
    namespace: str
    containers: list[ContainerRequests] = []


class ContainerUsage(pd.BaseModel):
    name: str
    used_cpu: CpuQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.CPU))
    used_mem: MemoryQuantity = pd.Field(default_factory=lambda: Quantity.zero(ResourceType.Memory))


class WorkloadUsage(pd.BaseModel):
    """Observed resource usage of one pod, as reported by the metrics API."""

    name: str
    namespace: str
    containers: list[ContainerUsage] = []


class BaseWorkloadLister(abc.ABC):
    """A read-only source of the resources declared by running pods."""

    @abc.abstractmethod
    def list(self, namespace: Optional[str] = None) -> list[WorkloadSpec]:
        """List the declared requests of the running pods.

        Args:
            namespace: The namespace to list. None means all namespaces.

        Raises:
            SourceUnavailable: If the pods cannot be listed.
            ParseError: If a declared quantity cannot be interpreted.
        """


class BaseMetricsSource(abc.ABC):
    """A read-only source of the current resource usage of pods."""

    @abc.abstractmethod
    def list(self, namespace: Optional[str] = None) -> list[WorkloadUsage]:
        """List the current usage of the pods, per container.

        Args:
            namespace: The namespace to list. None means all namespaces.

        Raises:
            SourceUnavailable: If the metrics cannot be listed.
            ParseError: If a reported quantity cannot be interpreted.
        """
