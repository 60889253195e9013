#!/usr/bin/env python3
"""
Smoke check for a running scheduler extender.

Posts one request to every callback endpoint and checks the envelope that
comes back. Usage:

    python tools/extender_smoke_check.py http://127.0.0.1:80
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

SAMPLE_POD = {
    "metadata": {"name": "smoke-check", "namespace": "default", "uid": "00000000-0000-0000-0000-000000000000"},
    "spec": {"containers": [{"name": "main", "resources": {"requests": {"cpu": "100m", "memory": "64Mi"}}}]},
    "status": {"phase": "Pending"},
}

SAMPLE_NODES = {
    "items": [
        {
            "metadata": {"name": "smoke-plain", "labels": {}},
            "status": {"capacity": {"cpu": "4", "memory": "8Gi"}},
        },
        {
            "metadata": {"name": "smoke-scale", "labels": {"group": "Scale"}},
            "status": {"capacity": {"cpu": "4", "memory": "8Gi"}},
        },
    ]
}


@dataclass
class EndpointCheck:
    method: str
    path: str
    name: str
    payload: Optional[Dict] = None
    expected_status: int = 200
    validate_func: Optional[Callable[[Any], bool]] = None


def _scores_match_nodes(data: Any) -> bool:
    hosts = [item.get("host") for item in data] if isinstance(data, list) else []
    return hosts == [n["metadata"]["name"] for n in SAMPLE_NODES["items"]]


def checks() -> List[EndpointCheck]:
    return [
        EndpointCheck(method="GET", path="/version", name="Version"),
        EndpointCheck(
            method="POST",
            path="/scheduler/predicates/always_true",
            name="Predicate always_true",
            payload={"pod": SAMPLE_POD, "nodes": SAMPLE_NODES},
            validate_func=lambda d: len(d.get("nodes", {}).get("items", [])) == len(SAMPLE_NODES["items"]),
        ),
        EndpointCheck(
            method="POST",
            path="/scheduler/priorities/group_score",
            name="Priority group_score",
            payload={"pod": SAMPLE_POD, "nodes": SAMPLE_NODES},
            validate_func=_scores_match_nodes,
        ),
        EndpointCheck(
            method="POST",
            path="/scheduler/bind",
            name="Bind is refused",
            payload={"podName": "smoke-check", "podNamespace": "default", "podUID": "0", "node": "smoke-plain"},
            validate_func=lambda d: bool(d.get("error")),
        ),
    ]


def run_check(base_url: str, check: EndpointCheck) -> List[str]:
    """Return the problems found for one endpoint (empty when it is healthy)."""
    url = f"{base_url}{check.path}"
    try:
        if check.method == "GET":
            response = requests.get(url, timeout=10)
        else:
            response = requests.post(url, json=check.payload, timeout=10)
    except requests.exceptions.Timeout:
        return ["Request timeout"]
    except requests.exceptions.ConnectionError:
        return ["Connection error - extender not accessible"]

    if response.status_code != check.expected_status:
        return [f"Expected status {check.expected_status}, got {response.status_code}"]
    if check.validate_func is None:
        return []
    try:
        data = response.json()
    except ValueError:
        return ["Response is not valid JSON"]
    if not check.validate_func(data):
        return [f"Unexpected response: {data}"]
    return []


def main() -> None:
    base_url = (sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:80").rstrip('/')
    print(f"Checking scheduler extender at {base_url}")
    failed = 0
    for check in checks():
        print(f"{check.method} {check.path} ({check.name})...", end=" ", flush=True)
        problems = run_check(base_url, check)
        if problems:
            failed += 1
            print(f"✗ {', '.join(problems)}")
        else:
            print("✓")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
