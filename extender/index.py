"""Node-indexed cache of active pods, fed by the pod watcher."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from extender.errors import IndexLookupError
from extender.models import Pod

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class PodNodeIndex:
    """Mapping of node name to the active pods believed to be on it.

    Writes come from a single consumer (the watcher) and are applied
    atomically per event; readers get copies and never see a half-applied
    event. The index is a cache and can be rebuilt with ``replace``.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._by_node: Dict[str, Dict[str, Pod]] = {}
        self._node_of: Dict[str, str] = {}  # pod key -> node name
        self._synced = threading.Event()

    # -------- writes --------

    def upsert(self, pod: Pod) -> None:
        """Place an active pod under its node, or drop an inactive one."""
        with self._lock.write():
            self._remove_locked(pod.key)
            if pod.is_active:
                self._by_node.setdefault(pod.node_name, {})[pod.key] = pod
                self._node_of[pod.key] = pod.node_name

    def delete(self, pod: Pod) -> None:
        with self._lock.write():
            self._remove_locked(pod.key)

    def replace(self, pods: Iterable[Pod]) -> None:
        """Swap in a full listing and open the readiness gate."""
        by_node: Dict[str, Dict[str, Pod]] = {}
        node_of: Dict[str, str] = {}
        for pod in pods:
            if not pod.is_active:
                continue
            previous = node_of.get(pod.key)
            if previous is not None:
                del by_node[previous][pod.key]
            by_node.setdefault(pod.node_name, {})[pod.key] = pod
            node_of[pod.key] = pod.node_name
        with self._lock.write():
            self._by_node = {node: pods for node, pods in by_node.items() if pods}
            self._node_of = node_of
        if not self._synced.is_set():
            logger.info(f"Initial pod listing applied: {len(node_of)} active pods on {len(by_node)} nodes")
            self._synced.set()

    def _remove_locked(self, key: str) -> None:
        node = self._node_of.pop(key, None)
        if node is None:
            return
        pods = self._by_node.get(node)
        if pods is not None:
            pods.pop(key, None)
            if not pods:
                del self._by_node[node]

    # -------- reads --------

    def pods_on_node(self, node_name: str) -> List[Pod]:
        """Snapshot of the active pods on a node (empty if none are indexed)."""
        if not isinstance(node_name, str) or not node_name:
            raise IndexLookupError(f"invalid node name: {node_name!r}")
        with self._lock.read():
            return list(self._by_node.get(node_name, {}).values())

    def get(self, key: str) -> Optional[Pod]:
        with self._lock.read():
            node = self._node_of.get(key)
            if node is None:
                return None
            return self._by_node[node].get(key)

    def node_names(self) -> List[str]:
        with self._lock.read():
            return sorted(self._by_node)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._node_of)

    # -------- readiness --------

    def has_synced(self) -> bool:
        return self._synced.is_set()

    def await_initial_sync(self, timeout: Optional[float] = None) -> bool:
        """Block until the first full listing is applied; False on timeout."""
        return self._synced.wait(timeout)
