"""Filter, scoring and bind policies served to the cluster scheduler."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List

from extender.errors import BindNotSupportedError, IndexLookupError, QuantityError
from extender.index import PodNodeIndex
from extender.models import Node, Pod
from extender.protocol import ExtenderBindingArgs, HostPriority
from extender.resources import sum_requests, to_bytes, to_millicores

logger = logging.getLogger(__name__)

MAX_PRIORITY = 1000
GROUP_LABEL = "group"
SCALE_GROUP = "Scale"


class Predicate(ABC):
	"""Decides whether a pod may run on a node.

	Return False to reject a node by policy; raise only when the node cannot
	be evaluated at all.
	"""

	name: str = ""
	failure_reason: str = "rejected by predicate"

	@abstractmethod
	def evaluate(self, pod: Pod, node: Node) -> bool:
		raise NotImplementedError


class Priority(ABC):
	name: str = ""

	@abstractmethod
	def prioritize(self, pod: Pod, nodes: List[Node]) -> List[HostPriority]:
		"""One score per node, in input order."""
		raise NotImplementedError


class Binder(ABC):
	@abstractmethod
	def bind(self, args: ExtenderBindingArgs) -> None:
		raise NotImplementedError


class AlwaysTruePredicate(Predicate):
	name = "always_true"

	def evaluate(self, pod: Pod, node: Node) -> bool:
		return True


class GroupScorePriority(Priority):
	"""Utilization score for nodes in the ``group=Scale`` node group.

	Unlabeled nodes get MAX_PRIORITY. Labeled nodes get
	``int((cpu_requested/cpu_capacity + mem_requested/mem_capacity) * 100)``
	from the pods indexed on them. The sum is deliberately not averaged.
	"""

	name = "group_score"

	def __init__(self, index: PodNodeIndex, max_score: int = MAX_PRIORITY) -> None:
		self.index = index
		self.max_score = max_score

	def prioritize(self, pod: Pod, nodes: List[Node]) -> List[HostPriority]:
		priorities: List[HostPriority] = []
		for node in nodes:
			score = self.max_score
			if node.labels.get(GROUP_LABEL) == SCALE_GROUP:
				try:
					score = self.utilization_score(node)
				except (IndexLookupError, QuantityError) as e:
					logger.error(f"Scoring node {node.name} for {pod.key} failed, using 0: {e}")
					score = 0
			logger.debug(f"score for {node.name} {score}")
			priorities.append(HostPriority(host=node.name, score=score))
		return priorities

	def utilization_score(self, node: Node) -> int:
		cpu_requested, mem_requested = sum_requests(self.index.pods_on_node(node.name))
		cpu_capacity = to_millicores(node.cpu_capacity)
		mem_capacity = to_bytes(node.memory_capacity)
		score = (_ratio(cpu_requested, cpu_capacity) + _ratio(mem_requested, mem_capacity)) * 100.0
		return max(0, min(self.max_score, int(score)))


def _ratio(requested: int, capacity: int) -> float:
	# a resource with no declared capacity does not contribute
	if capacity <= 0:
		return 0.0
	return float(requested) / float(capacity)


class NoBind(Binder):
	"""Refuses every bind; the scheduler must be configured not to send them."""

	def bind(self, args: ExtenderBindingArgs) -> None:
		raise BindNotSupportedError(
			"This extender doesn't support Bind.  Please make 'BindVerb' be empty in your ExtenderConfig."
		)


@dataclass
class PolicyRegistry:
	"""Policies by name, built once at startup and handed to the API."""
	predicates: Dict[str, Predicate] = field(default_factory=dict)
	priorities: Dict[str, Priority] = field(default_factory=dict)
	binder: Binder = field(default_factory=NoBind)

	def add_predicate(self, predicate: Predicate) -> None:
		self.predicates[predicate.name] = predicate

	def add_priority(self, priority: Priority) -> None:
		self.priorities[priority.name] = priority


def default_registry(index: PodNodeIndex) -> PolicyRegistry:
	registry = PolicyRegistry(binder=NoBind())
	registry.add_predicate(AlwaysTruePredicate())
	registry.add_priority(GroupScorePriority(index))
	return registry
