"""Scheduler-extender request and response envelopes (extender v1 wire format)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from extender.errors import EnvelopeError, NodeDecodeError, PodDecodeError
from extender.models import Node, Pod


@dataclass
class ExtenderArgs:
    """Body of predicate and priority callbacks."""
    pod: Pod
    nodes: List[Node]
    # request node objects, echoed back verbatim for nodes that pass a filter
    raw_nodes: List[Dict[str, Any]] = field(default_factory=list)
    # True when the scheduler sent only node names (nodeCacheCapable extenders)
    names_only: bool = False

    @classmethod
    def from_dict(cls, body: Any) -> "ExtenderArgs":
        if not isinstance(body, Mapping):
            raise EnvelopeError("request body must be a JSON object")
        if body.get("pod") is None:
            raise EnvelopeError("request has no pod")
        try:
            pod = Pod.from_dict(body["pod"])
        except PodDecodeError as e:
            raise EnvelopeError(f"invalid pod: {e}") from e

        node_list = body.get("nodes")
        if node_list is not None:
            if not isinstance(node_list, Mapping):
                raise EnvelopeError("nodes must be a node list object")
            items = node_list.get("items") or []
            if not isinstance(items, list):
                raise EnvelopeError("nodes.items must be a list")
            try:
                nodes = [Node.from_dict(item) for item in items]
            except NodeDecodeError as e:
                raise EnvelopeError(f"invalid node: {e}") from e
            return cls(pod=pod, nodes=nodes, raw_nodes=list(items))

        names = body.get("nodenames")
        if names is None:
            raise EnvelopeError("request has neither nodes nor nodenames")
        if not isinstance(names, list) or not all(isinstance(n, str) and n for n in names):
            raise EnvelopeError("nodenames must be a list of node names")
        return cls(pod=pod, nodes=[Node.named(n) for n in names], names_only=True)


@dataclass
class ExtenderFilterResult:
    node_names: List[str] = field(default_factory=list)
    raw_nodes: List[Dict[str, Any]] = field(default_factory=list)
    names_only: bool = False
    failed_nodes: Dict[str, str] = field(default_factory=dict)
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.error:
            out["error"] = self.error
            return out
        if self.names_only:
            out["nodenames"] = list(self.node_names)
        else:
            out["nodes"] = {"items": list(self.raw_nodes)}
        if self.failed_nodes:
            out["failedNodes"] = dict(self.failed_nodes)
        return out


@dataclass
class HostPriority:
    host: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "score": self.score}


@dataclass
class ExtenderBindingArgs:
    pod_name: str
    pod_namespace: str
    pod_uid: str
    node: str

    @classmethod
    def from_dict(cls, body: Any) -> "ExtenderBindingArgs":
        if not isinstance(body, Mapping):
            raise EnvelopeError("request body must be a JSON object")
        values = {}
        for key in ("podName", "podNamespace", "podUID", "node"):
            value = body.get(key, "")
            if not isinstance(value, str):
                raise EnvelopeError(f"{key} must be a string")
            values[key] = value
        return cls(
            pod_name=values["podName"],
            pod_namespace=values["podNamespace"],
            pod_uid=values["podUID"],
            node=values["node"],
        )


@dataclass
class ExtenderBindingResult:
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error} if self.error else {}
