from typing import Optional

from rich.markup import escape
from rich.table import Table

from kube_waste.core.abstract import formatters
from kube_waste.core.models.objects import ContainerResources, PodResources
from kube_waste.core.models.quantity import Quantity
from kube_waste.core.models.result import Result

NOT_BOUND_LITERAL = "-"


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return NOT_BOUND_LITERAL
    return f"{value:.0f}%"


def format_requested(value: Quantity, bound: bool) -> str:
    return str(value) if bound else NOT_BOUND_LITERAL


def _utilization_color(value: Optional[float], threshold: float) -> str:
    if value is None:
        return "dim"
    return "red" if value < threshold / 2 else "yellow" if value < threshold else "green"


def _format_pct_cell(value: Optional[float], threshold: float) -> str:
    color = _utilization_color(value, threshold)
    return f"[{color}]{format_percentage(value)}[/{color}]"


def _pod_cells(pod: PodResources, threshold: float) -> list[str]:
    return [
        escape(pod.namespace),
        escape(pod.name),
        format_requested(pod.total_requested_mem, pod.is_mem_bound),
        _format_pct_cell(pod.mem_utilization_pct, threshold),
        format_requested(pod.total_requested_cpu, pod.is_cpu_bound),
        _format_pct_cell(pod.cpu_utilization_pct, threshold),
    ]


def _container_cells(container: ContainerResources, threshold: float) -> list[str]:
    return [
        "",
        f"  \\_{escape(container.name)}",
        str(container.requested_mem),
        _format_pct_cell(container.mem_utilization_pct, threshold),
        str(container.requested_cpu),
        _format_pct_cell(container.cpu_utilization_pct, threshold),
    ]


@formatters.register(rich_console=True)
def table(result: Result) -> Table:
    """Format the result as a rich table, one row per pod followed by a row per container."""

    table = Table(
        show_header=True,
        header_style="bold magenta",
        title=f"\n{result.description}\n" if result.description else None,
        title_justify="left",
        title_style="",
        caption=f"{len(result.pods)} pod(s) under {result.threshold:g}% utilization in {result.scope}",
    )

    table.add_column("Namespace", style="cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Mem Requested", justify="right")
    table.add_column("Mem Utilization %", justify="right")
    table.add_column("CPU Requested", justify="right")
    table.add_column("CPU Utilization %", justify="right")

    for pod in result.pods:
        containers = pod.sorted_containers
        table.add_row(*_pod_cells(pod, result.threshold), end_section=not containers)
        for i, container in enumerate(containers):
            table.add_row(*_container_cells(container, result.threshold), end_section=i == len(containers) - 1)

    return table
