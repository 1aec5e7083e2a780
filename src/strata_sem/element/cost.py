"""Element cost measurement for load balancing.

Elements with the same cost signature do the same amount of work, so only
one representative per signature is timed and its cost is shared with the
rest of the group.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .base import Element

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostTable:
    """Measured element costs.

    Attributes:
        costs: (n_elements,) seconds per stiffness call for each element
        signatures: Signature -> seconds per call, one entry per group
        group_sizes: Signature -> number of elements in the group
    """

    costs: NDArray[np.float64]
    signatures: dict[str, float]
    group_sizes: dict[str, int]

    @property
    def total(self) -> float:
        """Total seconds per stiffness evaluation of all elements."""
        return float(self.costs.sum())


def group_by_signature(elements: Sequence[Element]) -> dict[str, list[int]]:
    """Element indices grouped by cost signature, in first-seen order."""
    groups: dict[str, list[int]] = {}
    for index, element in enumerate(elements):
        groups.setdefault(element.cost_signature(), []).append(index)
    return groups


def measure_element_costs(elements: Sequence[Element], count: int = 10) -> CostTable:
    """Measure the stiffness cost of every element.

    Args:
        elements: Elements to measure
        count: Stiffness calls per measurement

    Returns:
        CostTable with per-element and per-signature costs
    """
    groups = group_by_signature(elements)
    costs = np.zeros(len(elements))
    signatures = {}
    for signature, indices in groups.items():
        cost = elements[indices[0]].measure(count)
        costs[indices] = cost
        signatures[signature] = cost
        logger.debug("Signature %s: %d element(s), %.3e s", signature, len(indices), cost)

    logger.info(
        "Measured %d element(s) in %d cost group(s)", len(elements), len(signatures)
    )
    return CostTable(
        costs=costs,
        signatures=signatures,
        group_sizes={signature: len(indices) for signature, indices in groups.items()},
    )
