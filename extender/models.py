"""Pod and node views used by the index and the scheduling policies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from extender.errors import NodeDecodeError, PodDecodeError

PHASE_PENDING = "Pending"
PHASE_RUNNING = "Running"
PHASE_SUCCEEDED = "Succeeded"
PHASE_FAILED = "Failed"
PHASE_UNKNOWN = "Unknown"

TERMINAL_PHASES = frozenset({PHASE_SUCCEEDED, PHASE_FAILED})


def pod_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"


@dataclass(frozen=True)
class Container:
    name: str
    cpu_request: Optional[str] = None     # e.g. "250m", "2"
    memory_request: Optional[str] = None  # e.g. "512Mi", "1Gi"


@dataclass(frozen=True)
class Pod:
    namespace: str
    name: str
    uid: str = ""
    node_name: str = ""
    phase: str = PHASE_PENDING
    containers: Tuple[Container, ...] = ()

    @property
    def key(self) -> str:
        return pod_key(self.namespace, self.name)

    @property
    def is_active(self) -> bool:
        """Scheduled onto a node and not yet terminated."""
        return bool(self.node_name) and self.phase not in TERMINAL_PHASES

    @classmethod
    def from_dict(cls, data: Any) -> "Pod":
        """Decode the orchestrator's JSON representation of a pod."""
        if not isinstance(data, Mapping):
            raise PodDecodeError(f"expected a pod object, got {type(data).__name__}")
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        if not isinstance(metadata, Mapping) or not isinstance(spec, Mapping) or not isinstance(status, Mapping):
            raise PodDecodeError("pod metadata, spec and status must be objects")
        name = metadata.get("name")
        if not name:
            raise PodDecodeError("pod has no metadata.name")

        containers = []
        container_list = spec.get("containers") or []
        if not isinstance(container_list, list):
            raise PodDecodeError(f"pod {name}: spec.containers must be a list")
        for item in container_list:
            if not isinstance(item, Mapping):
                raise PodDecodeError(f"pod {name}: container entry is not an object")
            resources = item.get("resources") or {}
            requests = (resources.get("requests") or {}) if isinstance(resources, Mapping) else None
            if not isinstance(requests, Mapping):
                raise PodDecodeError(f"pod {name}: container resources are malformed")
            containers.append(
                Container(
                    name=item.get("name", ""),
                    cpu_request=_quantity_str(requests.get("cpu")),
                    memory_request=_quantity_str(requests.get("memory")),
                )
            )

        return cls(
            namespace=metadata.get("namespace") or "default",
            name=name,
            uid=metadata.get("uid") or "",
            node_name=spec.get("nodeName") or "",
            phase=status.get("phase") or PHASE_PENDING,
            containers=tuple(containers),
        )

    @classmethod
    def from_k8s(cls, obj: Any) -> "Pod":
        """Decode a kubernetes client ``V1Pod`` (or a raw dict) into a Pod."""
        if isinstance(obj, Mapping):
            return cls.from_dict(obj)
        try:
            return cls._from_object(obj)
        except (AttributeError, TypeError) as e:
            raise PodDecodeError(f"malformed {type(obj).__name__}: {e}") from e

    @classmethod
    def _from_object(cls, obj: Any) -> "Pod":
        metadata = getattr(obj, "metadata", None)
        spec = getattr(obj, "spec", None)
        if metadata is None or spec is None or not getattr(metadata, "name", None):
            raise PodDecodeError(f"object of type {type(obj).__name__} is not a pod")
        status = getattr(obj, "status", None)

        containers = []
        for c in getattr(spec, "containers", None) or []:
            resources = getattr(c, "resources", None)
            requests = (getattr(resources, "requests", None) or {}) if resources else {}
            containers.append(
                Container(
                    name=getattr(c, "name", "") or "",
                    cpu_request=_quantity_str(requests.get("cpu")),
                    memory_request=_quantity_str(requests.get("memory")),
                )
            )

        return cls(
            namespace=metadata.namespace or "default",
            name=metadata.name,
            uid=metadata.uid or "",
            node_name=getattr(spec, "node_name", None) or "",
            phase=(getattr(status, "phase", None) if status else None) or PHASE_PENDING,
            containers=tuple(containers),
        )


@dataclass(frozen=True)
class Node:
    """Read-only node snapshot taken from a scheduler callback payload."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    cpu_capacity: Optional[str] = None
    memory_capacity: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Node":
        if not isinstance(data, Mapping):
            raise NodeDecodeError(f"expected a node object, got {type(data).__name__}")
        metadata = data.get("metadata") or {}
        status = data.get("status") or {}
        name = metadata.get("name") if isinstance(metadata, Mapping) else None
        if not name:
            raise NodeDecodeError("node has no metadata.name")
        if not isinstance(status, Mapping):
            raise NodeDecodeError(f"node {name}: status must be an object")
        labels = metadata.get("labels") or {}
        if not isinstance(labels, Mapping):
            raise NodeDecodeError(f"node {name}: labels must be an object")
        # capacity is what the scoring formula divides by; allocatable only fills gaps
        capacity = status.get("capacity") or {}
        allocatable = status.get("allocatable") or {}
        if not isinstance(capacity, Mapping) or not isinstance(allocatable, Mapping):
            raise NodeDecodeError(f"node {name}: capacity and allocatable must be objects")
        return cls(
            name=name,
            labels={str(k): str(v) for k, v in labels.items()},
            cpu_capacity=_quantity_str(capacity.get("cpu") or allocatable.get("cpu")),
            memory_capacity=_quantity_str(capacity.get("memory") or allocatable.get("memory")),
        )

    @classmethod
    def named(cls, name: str) -> "Node":
        """Node known only by name (node-cache-capable requests)."""
        return cls(name=name)


def _quantity_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
