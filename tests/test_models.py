import pytest
from kubernetes.client import (
    V1Container,
    V1ObjectMeta,
    V1Pod,
    V1PodSpec,
    V1PodStatus,
    V1ResourceRequirements,
)

from conftest import node_dict, pod_dict
from extender.errors import NodeDecodeError, PodDecodeError
from extender.models import Node, Pod


def test_pod_from_dict():
    pod = Pod.from_dict(pod_dict("web", namespace="shop", node="n1", phase="Running", requests=[("1", "1Gi")]))

    assert pod.key == "shop/web"
    assert pod.uid == "uid-web"
    assert pod.node_name == "n1"
    assert pod.is_active
    assert pod.containers[0].cpu_request == "1"
    assert pod.containers[0].memory_request == "1Gi"


def test_pod_activity_rules():
    assert not Pod(namespace="d", name="p").is_active
    assert Pod(namespace="d", name="p", node_name="n1", phase="Unknown").is_active
    assert not Pod(namespace="d", name="p", node_name="n1", phase="Succeeded").is_active
    assert not Pod(namespace="d", name="p", node_name="n1", phase="Failed").is_active


def test_pod_from_k8s_object():
    obj = V1Pod(
        metadata=V1ObjectMeta(name="api", namespace="prod", uid="1234"),
        spec=V1PodSpec(
            node_name="n2",
            containers=[
                V1Container(name="main", resources=V1ResourceRequirements(requests={"cpu": "250m", "memory": "64Mi"})),
                V1Container(name="sidecar"),
            ],
        ),
        status=V1PodStatus(phase="Running"),
    )

    pod = Pod.from_k8s(obj)

    assert pod.key == "prod/api"
    assert pod.node_name == "n2"
    assert pod.phase == "Running"
    assert pod.containers[0].cpu_request == "250m"
    assert pod.containers[1].cpu_request is None


@pytest.mark.parametrize("bad", [None, "pod", {"metadata": {}}, {"metadata": "x"}])
def test_undecodable_pods(bad):
    with pytest.raises(PodDecodeError):
        Pod.from_k8s(bad)


def test_node_from_dict_reads_labels_and_capacity():
    node = Node.from_dict(node_dict("n1", labels={"group": "Scale"}, cpu="4", memory="8Gi"))

    assert node.name == "n1"
    assert node.labels == {"group": "Scale"}
    assert node.cpu_capacity == "4"
    assert node.memory_capacity == "8Gi"


def test_node_capacity_falls_back_to_allocatable():
    node = Node.from_dict({
        "metadata": {"name": "n1"},
        "status": {"allocatable": {"cpu": "3", "memory": "6Gi"}},
    })

    assert node.cpu_capacity == "3"
    assert node.memory_capacity == "6Gi"


def test_node_without_name_is_rejected():
    with pytest.raises(NodeDecodeError):
        Node.from_dict({"metadata": {}})
