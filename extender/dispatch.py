"""Run a named policy over a decoded extender request."""

from __future__ import annotations

import logging
from typing import List

from extender.policies import Binder, Predicate, Priority
from extender.protocol import (
    ExtenderArgs,
    ExtenderBindingArgs,
    ExtenderBindingResult,
    ExtenderFilterResult,
    HostPriority,
)

logger = logging.getLogger(__name__)


def filter_nodes(predicate: Predicate, args: ExtenderArgs) -> ExtenderFilterResult:
    """Evaluate the predicate once per candidate node."""
    result = ExtenderFilterResult(names_only=args.names_only)
    for i, node in enumerate(args.nodes):
        try:
            ok = predicate.evaluate(args.pod, node)
        except Exception as e:
            logger.warning(f"Predicate {predicate.name} could not evaluate {args.pod.key} on {node.name}: {e}")
            result.failed_nodes[node.name] = str(e)
            continue
        if not ok:
            result.failed_nodes[node.name] = predicate.failure_reason
            continue
        result.node_names.append(node.name)
        if not args.names_only:
            result.raw_nodes.append(args.raw_nodes[i])
    logger.debug(
        f"{predicate.name}: {args.pod.key} fits {len(result.node_names)}/{len(args.nodes)} nodes"
    )
    return result


def prioritize_nodes(priority: Priority, args: ExtenderArgs) -> List[HostPriority]:
    """Score every candidate node; a failing policy scores them all 0."""
    try:
        scores = priority.prioritize(args.pod, args.nodes)
    except Exception as e:
        logger.error(f"Priority {priority.name} failed for {args.pod.key}: {e}")
        return [HostPriority(host=node.name, score=0) for node in args.nodes]
    if [s.host for s in scores] != [n.name for n in args.nodes]:
        logger.error(f"Priority {priority.name} returned scores that do not match the candidate nodes")
        return [HostPriority(host=node.name, score=0) for node in args.nodes]
    return scores


def bind_pod(binder: Binder, args: ExtenderBindingArgs) -> ExtenderBindingResult:
    try:
        binder.bind(args)
    except Exception as e:
        logger.warning(f"Bind of {args.pod_namespace}/{args.pod_name} to {args.node} refused: {e}")
        return ExtenderBindingResult(error=str(e))
    return ExtenderBindingResult()
