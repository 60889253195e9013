import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from extender.index import PodNodeIndex
from extender.models import Container, Pod


def make_pod(name, node="", phase="Running", namespace="default", requests=(), uid=None):
    containers = tuple(
        Container(name=f"c{i}", cpu_request=cpu, memory_request=mem)
        for i, (cpu, mem) in enumerate(requests)
    )
    return Pod(
        namespace=namespace,
        name=name,
        uid=uid or f"uid-{namespace}-{name}",
        node_name=node,
        phase=phase,
        containers=containers,
    )


def node_dict(name, labels=None, cpu="4", memory="8Gi"):
    return {
        "metadata": {"name": name, "labels": dict(labels or {})},
        "status": {"capacity": {"cpu": cpu, "memory": memory}},
    }


def pod_dict(name, namespace="default", node="", phase="Pending", requests=()):
    return {
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}"},
        "spec": {
            "nodeName": node,
            "containers": [
                {"name": f"c{i}", "resources": {"requests": {"cpu": cpu, "memory": mem}}}
                for i, (cpu, mem) in enumerate(requests)
            ],
        },
        "status": {"phase": phase},
    }


@pytest.fixture
def index():
    idx = PodNodeIndex()
    idx.replace([])
    return idx
