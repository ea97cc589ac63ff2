"""
Pricing subproblem base definitions.

The pricing subproblem of the cutting stock master is a bounded knapsack:

    max  sum_i pi_i * y_i             (dual value of the pattern)
    s.t. sum_i w_i * y_i <= W         (roll width)
         y_i >= 0, integer

where pi_i is the dual of order width i, w_i its width and W the max
pattern width. Its optimum is a pattern; the pattern improves the master
relaxation when its value exceeds the roll cost.

This module provides:
- KnapsackSubproblem: One built instance of the knapsack
- build_subproblem: Formulation from an OrderWidthRegistry
- KnapsackSolver: Abstract base class for solution strategies
- PricingStrategy: The available strategies
- FormulationError, PricingError: Fatal pricing failures
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern

# Extra capacity of the degeneracy-breaking subproblem. With integral
# widths no pattern can use the extra half unit.
ALTERNATE_CAPACITY_SLACK = 0.5


class PricingStrategy(Enum):
    """Knapsack solution strategy used for pricing."""
    DP = "dp"   # Dynamic programming with ranked candidates
    IP = "ip"   # Generic integer program on HiGHS


class FormulationError(ValueError):
    """The subproblem could not be built from the given data."""


class PricingError(RuntimeError):
    """
    The pricing subproblem did not reach a proven optimum.

    Attributes:
        iteration: Column generation iteration of the failed call
        strategy: Strategy that was active
        status: Solver status text
    """

    def __init__(
        self,
        message: str,
        iteration: Optional[int] = None,
        strategy: Optional[PricingStrategy] = None,
        status: Optional[str] = None,
    ):
        self.iteration = iteration
        self.strategy = strategy
        self.status = status
        context = []
        if iteration is not None:
            context.append(f"iteration={iteration}")
        if strategy is not None:
            context.append(f"strategy={strategy.value}")
        if status is not None:
            context.append(f"status={status}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


@dataclass(frozen=True)
class KnapsackItem:
    """One decision variable of the subproblem."""
    row_index: int   # master row of the order width
    width: float
    dual: float


@dataclass
class KnapsackSubproblem:
    """
    A built knapsack instance.

    The column_of mapping (master row -> subproblem column) is created
    fresh by every build and is only valid for this instance.

    Attributes:
        items: Decision variables in registry order
        capacity: Right-hand side of the width constraint
        max_pattern_width: Roll width the capacity was derived from
        alternate: Built with the degeneracy-breaking capacity
        column_of: Mapping master_row_index -> subproblem column
    """
    items: list[KnapsackItem]
    capacity: float
    max_pattern_width: float
    alternate: bool = False
    column_of: dict[int, int] = field(default_factory=dict)

    @property
    def num_items(self) -> int:
        return len(self.items)

    def objective(self, pattern: Pattern) -> float:
        """Subproblem objective value of a pattern."""
        duals = {item.row_index: item.dual for item in self.items}
        return sum(duals[row] * count for row, count in pattern.entries)

    def used_width(self, pattern: Pattern) -> float:
        widths = {item.row_index: item.width for item in self.items}
        return sum(widths[row] * count for row, count in pattern.entries)


def build_subproblem(
    orders: OrderWidthRegistry,
    max_pattern_width: float,
    alternate: bool = False,
) -> KnapsackSubproblem:
    """
    Formulate the pricing knapsack.

    Every order width gets a subproblem column, written both to the
    returned mapping and to OrderWidth.subproblem_index.

    Args:
        orders: Order widths with current dual values
        max_pattern_width: Roll width
        alternate: Use capacity max_pattern_width + 0.5. Only valid when
            every width and the roll width are integral.

    Returns:
        The subproblem

    Raises:
        FormulationError: On missing data, non-positive widths or an
            alternate build with fractional data
    """
    if orders is None:
        raise FormulationError("No order widths given")
    if len(orders) == 0:
        raise FormulationError("Order width registry is empty")
    if max_pattern_width is None or max_pattern_width <= 0:
        raise FormulationError(f"Max pattern width must be positive, got {max_pattern_width}")

    if alternate:
        if not orders.widths_are_integral() or not float(max_pattern_width).is_integer():
            raise FormulationError(
                "Alternate capacity requires integral order widths and roll width; "
                "disable the workaround for fractional data"
            )
        capacity = max_pattern_width + ALTERNATE_CAPACITY_SLACK
    else:
        capacity = max_pattern_width

    items = []
    column_of = {}
    for col, order in enumerate(orders):
        if order.width <= 0:
            raise FormulationError(f"Order width must be positive, got {order.width}")
        items.append(KnapsackItem(
            row_index=order.master_row_index,
            width=float(order.width),
            dual=float(order.dual_value),
        ))
        column_of[order.master_row_index] = col
        order.set_subproblem_index(col)

    return KnapsackSubproblem(
        items=items,
        capacity=float(capacity),
        max_pattern_width=float(max_pattern_width),
        alternate=alternate,
        column_of=column_of,
    )


class KnapsackSolver(ABC):
    """
    Abstract base class for knapsack pricing strategies.

    Subclasses implement _solve_impl, returning candidate patterns ordered
    from best to worst. An empty list means no non-empty pattern exists.
    """

    strategy: PricingStrategy

    def solve(
        self,
        subproblem: KnapsackSubproblem,
        iteration: int = 0,
    ) -> list[Pattern]:
        """
        Solve a built subproblem.

        Args:
            subproblem: The knapsack instance
            iteration: Column generation iteration (for diagnostics)

        Returns:
            Candidate patterns, best first
        """
        patterns = self._solve_impl(subproblem, iteration)
        for pattern in patterns:
            pattern.pricing_value = subproblem.objective(pattern)
            pattern.alternate = subproblem.alternate
        return patterns

    @abstractmethod
    def _solve_impl(
        self,
        subproblem: KnapsackSubproblem,
        iteration: int,
    ) -> list[Pattern]:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
