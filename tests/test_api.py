import pytest

from conftest import make_pod, node_dict, pod_dict
from extender.api import create_app
from extender.models import Node, Pod
from extender.policies import Predicate, PolicyRegistry, default_registry


class ZoneAPredicate(Predicate):
    name = "zone_a"
    failure_reason = "node is not in zone a"

    def evaluate(self, pod: Pod, node: Node) -> bool:
        if "zone" not in node.labels:
            raise ValueError(f"node {node.name} has no zone label")
        return node.labels["zone"] == "a"


@pytest.fixture
def client(index):
    index.upsert(make_pod("a", node="n1", requests=[("1", "1Gi")]))
    index.upsert(make_pod("b", node="n1", requests=[("1", "1Gi")]))
    registry = default_registry(index)
    registry.add_predicate(ZoneAPredicate())
    app = create_app(registry, version="v1.2.3")
    return app.test_client()


def extender_args(*nodes):
    return {"pod": pod_dict("incoming"), "nodes": {"items": list(nodes)}}


def test_version(client):
    resp = client.get("/version")

    assert resp.status_code == 200
    assert resp.mimetype == "text/plain"
    assert resp.get_data(as_text=True) == "v1.2.3"


def test_group_score_end_to_end(client):
    payload = extender_args(node_dict("n1", labels={"group": "Scale"}, cpu="4", memory="8Gi"))

    resp = client.post("/scheduler/priorities/group_score", json=payload)

    assert resp.status_code == 200
    assert resp.get_json() == [{"host": "n1", "score": 75}]


def test_group_score_keeps_node_order(client):
    payload = extender_args(
        node_dict("plain"),
        node_dict("n1", labels={"group": "Scale"}),
        node_dict("idle", labels={"group": "Scale"}),
    )

    resp = client.post("/scheduler/priorities/group_score", json=payload)

    assert resp.get_json() == [
        {"host": "plain", "score": 1000},
        {"host": "n1", "score": 75},
        {"host": "idle", "score": 0},
    ]


def test_always_true_keeps_every_node(client):
    nodes = [node_dict("n1"), node_dict("unknown-to-index")]

    resp = client.post("/scheduler/predicates/always_true", json=extender_args(*nodes))

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["nodes"]["items"] == nodes
    assert "failedNodes" not in data
    assert "error" not in data


def test_predicate_with_node_names_only(client):
    payload = {"pod": pod_dict("incoming"), "nodenames": ["n1", "n2"]}

    resp = client.post("/scheduler/predicates/always_true", json=payload)

    assert resp.get_json() == {"nodenames": ["n1", "n2"]}


def test_predicate_rejections_and_errors_are_per_node(client):
    nodes = [
        node_dict("in-a", labels={"zone": "a"}),
        node_dict("in-b", labels={"zone": "b"}),
        node_dict("no-zone"),
    ]

    resp = client.post("/scheduler/predicates/zone_a", json=extender_args(*nodes))

    assert resp.status_code == 200
    data = resp.get_json()
    assert [n["metadata"]["name"] for n in data["nodes"]["items"]] == ["in-a"]
    assert data["failedNodes"] == {
        "in-b": "node is not in zone a",
        "no-zone": "node no-zone has no zone label",
    }


def test_malformed_predicate_request_is_reported_in_envelope(client):
    resp = client.post("/scheduler/predicates/always_true", data="not json", content_type="application/json")

    assert resp.status_code == 200
    assert resp.get_json()["error"]


@pytest.mark.parametrize("field", ["capacity", "allocatable"])
def test_node_with_non_object_resources_is_reported_in_envelope(client, field):
    node = {"metadata": {"name": "n1"}, "status": {field: ["4"]}}

    resp = client.post("/scheduler/predicates/always_true", json=extender_args(node))

    assert resp.status_code == 200
    assert "n1" in resp.get_json()["error"]


def test_pod_with_scalar_containers_is_reported_in_envelope(client):
    pod = pod_dict("incoming")
    pod["spec"]["containers"] = 5

    resp = client.post("/scheduler/predicates/always_true", json={"pod": pod, "nodes": {"items": [node_dict("n1")]}})

    assert resp.status_code == 200
    assert "containers" in resp.get_json()["error"]


def test_node_with_non_object_capacity_is_bad_priority_request(client):
    node = {"metadata": {"name": "n1"}, "status": {"capacity": "4"}}

    resp = client.post("/scheduler/priorities/group_score", json=extender_args(node))

    assert resp.status_code == 400


def test_malformed_priority_request_is_bad_request(client):
    resp = client.post("/scheduler/priorities/group_score", json={"nodes": {"items": []}})

    assert resp.status_code == 400
    assert "pod" in resp.get_json()["error"]


def test_unknown_policy_names_are_not_found(client):
    payload = extender_args(node_dict("n1"))

    assert client.post("/scheduler/predicates/nope", json=payload).status_code == 404
    assert client.post("/scheduler/priorities/nope", json=payload).status_code == 404


def test_bind_is_always_refused(client, index):
    payload = {"podName": "incoming", "podNamespace": "default", "podUID": "uid-1", "node": "n1"}

    resp = client.post("/scheduler/bind", json=payload)

    assert resp.status_code == 200
    assert "BindVerb" in resp.get_json()["error"]
    assert len(index) == 2


def test_preemption_is_reserved(client):
    resp = client.post("/scheduler/preemption", json={})

    assert resp.status_code == 501
    assert resp.get_json()["error"]


def test_empty_registry_serves_nothing():
    app = create_app(PolicyRegistry())
    client = app.test_client()

    resp = client.post("/scheduler/priorities/group_score", json=extender_args(node_dict("n1")))

    assert resp.status_code == 404
