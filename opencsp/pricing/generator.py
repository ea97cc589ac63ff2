"""
Pattern generator - pricing orchestration for column generation.

The generator is called once per column generation iteration with the
current duals stored on the order widths. It returns one new pattern, or
None when no new pattern can be produced. None is the signal that column
generation at the current branch-and-bound node is exhausted.

Strategies:
----------
- DP: the knapsack is solved once and yields a ranked candidate list; the
  first candidate that is not already registered is returned.
- IP: the knapsack is solved once with HiGHS. If the optimum is a
  duplicate and the workaround is enabled, it is solved once more with
  capacity max_pattern_width + 0.5 and a perturbed tolerance, which
  pushes the solver towards an alternate optimal pattern.

The generator never registers patterns; the caller registers the pattern
it accepts before the next call.
"""

import logging
from typing import Optional, Union

from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern, PatternRegistry
from opencsp.pricing.base import (
    KnapsackSolver,
    PricingStrategy,
    build_subproblem,
)
from opencsp.pricing.dp import DPKnapsackSolver
from opencsp.pricing.ip import IPKnapsackSolver

logger = logging.getLogger(__name__)


class PatternGenerator:
    """
    Produces new, non-duplicate cutting patterns from current duals.

    Example:
        >>> registry = PatternRegistry()
        >>> generator = PatternGenerator(registry, max_pattern_width=100)
        >>> orders.set_dual_values(master.get_dual_values())
        >>> pattern = generator.generate_pattern(orders, iteration_count=1)
        >>> if pattern is not None:
        ...     registry.register(pattern)
        ...     master.add_pattern(pattern)

    Attributes:
        registry: Accepted patterns used for duplicate checks
        max_pattern_width: Roll width
        strategy: DP or IP
        workaround: Resolve with the alternate capacity on IP duplicates
    """

    def __init__(
        self,
        registry: PatternRegistry,
        max_pattern_width: float,
        strategy: Union[PricingStrategy, str] = PricingStrategy.DP,
        workaround: bool = True,
        solver: Optional[KnapsackSolver] = None,
    ):
        """
        Initialize the generator.

        Args:
            registry: Pattern registry shared with the master
            max_pattern_width: Roll width
            strategy: Pricing strategy ("dp" or "ip")
            workaround: Enable the degeneracy-breaking resolve (IP only).
                Requires integral order widths.
            solver: Custom solver for the chosen strategy
        """
        self._registry = registry
        self._max_pattern_width = max_pattern_width
        self._strategy = PricingStrategy(strategy)
        self._workaround = workaround

        if solver is not None:
            self._solver = solver
        elif self._strategy == PricingStrategy.DP:
            self._solver = DPKnapsackSolver()
        else:
            self._solver = IPKnapsackSolver()

        # Statistics
        self.num_calls = 0
        self.num_duplicates = 0
        self.num_workaround_solves = 0

    @classmethod
    def from_config(
        cls,
        registry: PatternRegistry,
        max_pattern_width: float,
        config,
    ) -> 'PatternGenerator':
        """Create a generator from an OpenCSPConfig."""
        strategy = PricingStrategy(config.pricing_strategy)
        if strategy == PricingStrategy.DP:
            solver = DPKnapsackSolver(
                max_candidates=config.dp_max_candidates,
                max_decimals=config.dp_max_decimals,
            )
        else:
            solver = IPKnapsackSolver(
                optimality_tol=config.get_tolerance("optimality"),
                integrality_tol=config.get_tolerance("integrality"),
            )
        return cls(
            registry,
            max_pattern_width,
            strategy=strategy,
            workaround=config.workaround,
            solver=solver,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    @property
    def strategy(self) -> PricingStrategy:
        return self._strategy

    @property
    def workaround(self) -> bool:
        return self._workaround

    # =========================================================================
    # Public API
    # =========================================================================

    def is_duplicate(self, pattern: Optional[Pattern]) -> bool:
        """Check a pattern against every registered pattern."""
        return self._registry.is_duplicate(pattern)

    def generate_pattern(
        self,
        order_widths: OrderWidthRegistry,
        iteration_count: int,
    ) -> Optional[Pattern]:
        """
        Generate the best new pattern for the current duals.

        Args:
            order_widths: Order widths carrying the current dual values
            iteration_count: Column generation iteration (diagnostics)

        Returns:
            A pattern not yet in the registry, or None if pricing is exhausted

        Raises:
            FormulationError: If the subproblem cannot be built
            PricingError: If a knapsack solve is not proven optimal
        """
        self.num_calls += 1
        if self._strategy == PricingStrategy.DP:
            return self._generate_dp(order_widths, iteration_count)
        return self._generate_ip(order_widths, iteration_count)

    # =========================================================================
    # Strategies
    # =========================================================================

    def _generate_dp(
        self,
        order_widths: OrderWidthRegistry,
        iteration_count: int,
    ) -> Optional[Pattern]:
        subproblem = build_subproblem(order_widths, self._max_pattern_width)
        candidates = self._solver.solve(subproblem, iteration_count)

        for pattern in candidates:
            if not self.is_duplicate(pattern):
                logger.debug("Iteration %d: %s", iteration_count, pattern.describe())
                return pattern
            self.num_duplicates += 1

        logger.debug(
            "Iteration %d: all %d DP candidates are duplicates",
            iteration_count, len(candidates),
        )
        return None

    def _generate_ip(
        self,
        order_widths: OrderWidthRegistry,
        iteration_count: int,
    ) -> Optional[Pattern]:
        pattern = self._solve_once(order_widths, iteration_count, alternate=False)

        if self.is_duplicate(pattern):
            self.num_duplicates += 1
            if self._workaround:
                logger.warning("Got duplicate pattern. Looking for alternate.")
                self.num_workaround_solves += 1
                pattern = self._solve_once(order_widths, iteration_count, alternate=True)

        if pattern is None or self.is_duplicate(pattern):
            return None

        logger.debug("Iteration %d: %s", iteration_count, pattern.describe())
        return pattern

    def _solve_once(
        self,
        order_widths: OrderWidthRegistry,
        iteration_count: int,
        alternate: bool,
    ) -> Optional[Pattern]:
        subproblem = build_subproblem(order_widths, self._max_pattern_width, alternate)
        patterns = self._solver.solve(subproblem, iteration_count)
        return patterns[0] if patterns else None

    def __repr__(self) -> str:
        return (
            f"PatternGenerator(strategy={self._strategy.value}, "
            f"workaround={self._workaround}, patterns={self._registry.size})"
        )
