import csv
import io
import json
from typing import Any

import pytest

from kube_waste.core.models.result import Result
from kube_waste.formatters.csv import csv_exporter

RESULT = """
{
    "pods": [
        {
            "name": "mock-pod-1",
            "namespace": "default",
            "containers": {
                "mock-container-2": {
                    "name": "mock-container-2",
                    "requested_cpu": "500m",
                    "requested_mem": "0.5",
                    "used_cpu": "10m",
                    "used_mem": "100m"
                },
                "mock-container-1": {
                    "name": "mock-container-1",
                    "requested_cpu": "500m",
                    "requested_mem": "0.5",
                    "used_cpu": "10m",
                    "used_mem": "100m"
                },
                "mock-container-unbound": {
                    "name": "mock-container-unbound",
                    "used_cpu": "10m",
                    "used_mem": "100m"
                }
            }
        },
        {
            "name": "mock-pod-2",
            "namespace": "default",
            "containers": {
                "mock-container-1": {
                    "name": "mock-container-1",
                    "requested_mem": "128Mi",
                    "used_cpu": "1",
                    "used_mem": "32Mi"
                }
            }
        }
    ],
    "threshold": 50.0,
    "namespace": "default"
}
"""


def _load_result() -> Result:
    return Result(**json.loads(RESULT))


def _rows() -> list[dict[str, Any]]:
    output = csv_exporter(_load_result())
    return list(csv.DictReader(io.StringIO(output)))


def test_csv_headers() -> None:
    output = csv_exporter(_load_result())
    reader = csv.DictReader(io.StringIO(output))

    assert reader.fieldnames == [
        "Namespace",
        "Name",
        "Container",
        "Mem Requested",
        "Mem Utilization %",
        "CPU Requested",
        "CPU Utilization %",
    ]


def test_csv_row_count() -> None:
    # one row per pod and one per container
    assert len(_rows()) == 2 + 3 + 1


@pytest.mark.parametrize(
    "index, expected_row",
    [
        (
            0,
            {
                "Namespace": "default",
                "Name": "mock-pod-1",
                "Container": "",
                "Mem Requested": "1",
                "Mem Utilization %": "20.00",
                "CPU Requested": "1",
                "CPU Utilization %": "2.00",
            },
        ),
        (
            1,
            {
                "Namespace": "default",
                "Name": "mock-pod-1",
                "Container": "mock-container-1",
                "Mem Requested": "500m",
                "Mem Utilization %": "20.00",
                "CPU Requested": "500m",
                "CPU Utilization %": "2.00",
            },
        ),
        (
            3,
            {
                "Namespace": "default",
                "Name": "mock-pod-1",
                "Container": "mock-container-unbound",
                "Mem Requested": "0",
                "Mem Utilization %": "",
                "CPU Requested": "0",
                "CPU Utilization %": "",
            },
        ),
        (
            4,
            {
                "Namespace": "default",
                "Name": "mock-pod-2",
                "Container": "",
                "Mem Requested": "128Mi",
                "Mem Utilization %": "25.00",
                "CPU Requested": "",
                "CPU Utilization %": "",
            },
        ),
    ],
)
def test_csv_row_value(index: int, expected_row: dict[str, Any]) -> None:
    assert _rows()[index] == expected_row


def test_csv_of_empty_result() -> None:
    output = csv_exporter(Result(pods=[]))
    assert list(csv.DictReader(io.StringIO(output))) == []
