import csv
import io
from typing import Any, Optional

from kube_waste.core.abstract import formatters
from kube_waste.core.models.result import Result

NAMESPACE_HEADER = "Namespace"
NAME_HEADER = "Name"
CONTAINER_HEADER = "Container"
MEM_REQUESTED_HEADER = "Mem Requested"
MEM_UTILIZATION_HEADER = "Mem Utilization %"
CPU_REQUESTED_HEADER = "CPU Requested"
CPU_UTILIZATION_HEADER = "CPU Utilization %"

CSV_COLUMNS = [
    NAMESPACE_HEADER,
    NAME_HEADER,
    CONTAINER_HEADER,
    MEM_REQUESTED_HEADER,
    MEM_UTILIZATION_HEADER,
    CPU_REQUESTED_HEADER,
    CPU_UTILIZATION_HEADER,
]


def _format_pct(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


@formatters.register("csv")
def csv_exporter(result: Result) -> str:
    # A row with an empty Container column holds the pod totals, the rows after it hold its containers
    output = io.StringIO()
    csv_writer = csv.DictWriter(output, CSV_COLUMNS)
    csv_writer.writeheader()

    for pod in result.pods:
        pod_row: dict[str, Any] = {
            NAMESPACE_HEADER: pod.namespace,
            NAME_HEADER: pod.name,
            CONTAINER_HEADER: "",
            MEM_REQUESTED_HEADER: str(pod.total_requested_mem) if pod.is_mem_bound else "",
            MEM_UTILIZATION_HEADER: _format_pct(pod.mem_utilization_pct),
            CPU_REQUESTED_HEADER: str(pod.total_requested_cpu) if pod.is_cpu_bound else "",
            CPU_UTILIZATION_HEADER: _format_pct(pod.cpu_utilization_pct),
        }
        csv_writer.writerow(pod_row)

        for container in pod.sorted_containers:
            csv_writer.writerow(
                {
                    NAMESPACE_HEADER: pod.namespace,
                    NAME_HEADER: pod.name,
                    CONTAINER_HEADER: container.name,
                    MEM_REQUESTED_HEADER: str(container.requested_mem),
                    MEM_UTILIZATION_HEADER: _format_pct(container.mem_utilization_pct),
                    CPU_REQUESTED_HEADER: str(container.requested_cpu),
                    CPU_UTILIZATION_HEADER: _format_pct(container.cpu_utilization_pct),
                }
            )

    return output.getvalue()
