from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

import pydantic as pd

from kube_waste.core.models.objects import PodResources
from kube_waste.core.selection import DEFAULT_UTILIZATION_THRESHOLD

if TYPE_CHECKING:
    from kube_waste.core.abstract.formatters import FormatterFunc


class Result(pd.BaseModel):
    pods: list[PodResources]
    threshold: float = DEFAULT_UTILIZATION_THRESHOLD
    namespace: Optional[str] = None
    description: Optional[str] = None

    @property
    def scope(self) -> str:
        return f"namespace {self.namespace}" if self.namespace else "all namespaces"

    def format(self, formatter: Union[FormatterFunc, str]) -> Any:
        """Format the result.

        Args:
            formatter: The formatter to use.

        Returns:
            The formatted result.
        """

        from kube_waste.core.abstract import formatters

        formatter = formatters.find(formatter) if isinstance(formatter, str) else formatter
        return formatter(self)
