"""Resource request accounting for indexed pods."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Tuple

from kubernetes.utils import parse_quantity

from extender.errors import QuantityError
from extender.models import Pod


def parse(quantity: Optional[str]) -> Decimal:
    """Parse a resource quantity ("250m", "1Gi", "4") into a Decimal."""
    if quantity is None:
        return Decimal(0)
    try:
        value = parse_quantity(quantity)
    except (ValueError, TypeError, InvalidOperation) as e:
        raise QuantityError(f"invalid quantity {quantity!r}: {e}") from e
    if not value.is_finite():
        raise QuantityError(f"invalid quantity {quantity!r}: not a finite number")
    return value


def to_millicores(quantity: Optional[str]) -> int:
    """CPU quantity as integer millicores; sub-millicore remainders round up."""
    return int(math.ceil(parse(quantity) * 1000))


def to_bytes(quantity: Optional[str]) -> int:
    """Memory quantity as integer bytes; fractional bytes round up."""
    return int(math.ceil(parse(quantity)))


def sum_requests(pods: Iterable[Pod]) -> Tuple[int, int]:
    """Sum explicit container requests across pods.

    Returns (cpu millicores, memory bytes). Containers without a request
    contribute nothing; limits are never consulted.
    """
    cpu = 0
    mem = 0
    for pod in pods:
        for container in pod.containers:
            cpu += to_millicores(container.cpu_request)
            mem += to_bytes(container.memory_request)
    return cpu, mem
