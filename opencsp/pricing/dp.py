"""
Dynamic programming knapsack solver.

Solves the pricing knapsack exactly without a MIP engine and returns a
ranked list of candidate patterns, best first. The generator walks the
list and takes the first pattern that is not a duplicate, so alternate
optima are available without re-solving.

Algorithm:
---------
1. Pick the coarsest grid 10^-k (k = 0..max_decimals) that holds every
   priced width exactly. Widths map to integers and the capacity rounds
   down, which keeps the grid problem identical to the real one. Data
   with more decimals than max_decimals is rejected.
2. Build the suffix table best[i][c] = max value using items i..n-1 with
   capacity c (bounded knapsack, vectorized over c with numpy).
3. Best-first enumeration: partial assignments of items 0..i-1 are ordered
   by value + best[i][remaining], an exact upper bound, so complete
   assignments come off the heap in non-increasing value order.
"""

import heapq
import logging
import math
from typing import Optional

import numpy as np

from opencsp.core.pattern import Pattern
from opencsp.pricing.base import (
    FormulationError,
    KnapsackSolver,
    KnapsackSubproblem,
    PricingStrategy,
)

logger = logging.getLogger(__name__)

# Relative distance to the nearest grid point treated as exact
GRID_TOLERANCE = 1e-9


def _on_grid(value: float, resolution: float) -> bool:
    q = value / resolution
    return abs(q - round(q)) <= GRID_TOLERANCE * max(1.0, abs(q))


def _to_grid(value: float, resolution: float) -> int:
    """Map a real value onto the integer grid, rounding down off the grid."""
    if _on_grid(value, resolution):
        return int(round(value / resolution))
    return int(math.floor(value / resolution))


class DPKnapsackSolver(KnapsackSolver):
    """
    Exact bounded knapsack by dynamic programming.

    Example:
        >>> solver = DPKnapsackSolver(max_candidates=10)
        >>> candidates = solver.solve(build_subproblem(orders, 100.0))
        >>> best = candidates[0] if candidates else None

    Attributes:
        max_candidates: Maximum number of ranked patterns returned
        max_decimals: Finest grid tried is 10^-max_decimals
    """

    strategy = PricingStrategy.DP

    def __init__(self, max_candidates: int = 50, max_decimals: int = 4):
        if max_candidates < 1:
            raise ValueError("max_candidates must be at least 1")
        if max_decimals < 0:
            raise ValueError("max_decimals must be non-negative")
        self.max_candidates = max_candidates
        self.max_decimals = max_decimals

    def _grid_resolution(self, subproblem: KnapsackSubproblem, iteration: int) -> float:
        """
        Coarsest 10^-k grid holding every width with a positive dual.

        Raises:
            FormulationError: If no grid up to max_decimals holds the widths
        """
        widths = [item.width for item in subproblem.items if item.dual > 0]
        for decimals in range(self.max_decimals + 1):
            resolution = 10.0 ** -decimals
            if all(_on_grid(w, resolution) for w in widths):
                return resolution
        raise FormulationError(
            f"DP iteration {iteration}: widths need more than {self.max_decimals} "
            "decimals; raise dp_max_decimals or use the ip strategy"
        )

    def _solve_impl(
        self,
        subproblem: KnapsackSubproblem,
        iteration: int,
    ) -> list[Pattern]:
        resolution = self._grid_resolution(subproblem, iteration)
        capacity = _to_grid(subproblem.capacity, resolution)

        n = subproblem.num_items
        # Unpriced widths may be off the grid; they only need a positive placeholder
        widths = [max(1, _to_grid(item.width, resolution)) for item in subproblem.items]
        duals = [item.dual for item in subproblem.items]
        max_counts = [
            capacity // w if (dual > 0 and 0 < w <= capacity) else 0
            for w, dual in zip(widths, duals)
        ]

        if capacity <= 0 or not any(max_counts):
            logger.debug("DP iteration %d: no item with positive dual fits", iteration)
            return []

        best = self._build_table(widths, duals, max_counts, capacity)
        solutions = self._enumerate(best, widths, duals, max_counts, capacity)

        patterns = []
        for counts, value in solutions:
            entries = tuple(
                (subproblem.items[i].row_index, count)
                for i, count in enumerate(counts) if count > 0
            )
            patterns.append(Pattern(entries=entries))

        logger.debug(
            "DP iteration %d: %d candidates, best value %.6f (grid %g, capacity %d)",
            iteration, len(patterns), solutions[0][1] if solutions else 0.0,
            resolution, capacity,
        )
        return patterns

    def _build_table(
        self,
        widths: list[int],
        duals: list[float],
        max_counts: list[int],
        capacity: int,
    ) -> list[np.ndarray]:
        """Suffix table: best[i][c] for i in 0..n."""
        n = len(widths)
        best: list[Optional[np.ndarray]] = [None] * (n + 1)
        best[n] = np.zeros(capacity + 1)

        for i in range(n - 1, -1, -1):
            nxt = best[i + 1]
            cur = nxt.copy()
            for k in range(1, max_counts[i] + 1):
                shift = k * widths[i]
                cur[shift:] = np.maximum(cur[shift:], nxt[:capacity + 1 - shift] + k * duals[i])
            best[i] = cur

        return best

    def _enumerate(
        self,
        best: list[np.ndarray],
        widths: list[int],
        duals: list[float],
        max_counts: list[int],
        capacity: int,
    ) -> list[tuple[tuple[int, ...], float]]:
        """Complete assignments in non-increasing value order."""
        n = len(widths)
        results: list[tuple[tuple[int, ...], float]] = []

        # (-bound, sequence, value, item, remaining, counts)
        seq = 0
        pq = [(-float(best[0][capacity]), seq, 0.0, 0, capacity, ())]

        while pq and len(results) < self.max_candidates:
            _, _, value, i, remaining, counts = heapq.heappop(pq)

            if i == n:
                if any(counts):
                    results.append((counts, value))
                continue

            limit = min(max_counts[i], remaining // widths[i])
            for k in range(limit, -1, -1):
                new_value = value + k * duals[i]
                new_remaining = remaining - k * widths[i]
                bound = new_value + float(best[i + 1][new_remaining])
                seq += 1
                heapq.heappush(pq, (-bound, seq, new_value, i + 1, new_remaining, counts + (k,)))

        return results
