"""
Cutting stock instance definition.

A CuttingStockInstance is the raw problem data: a roll width and a list of
(width, demand) orders. It builds the OrderWidthRegistry used by the
master and the pricing subproblem.
"""

import math
from dataclasses import dataclass
from typing import Optional

from opencsp.core.order import OrderWidthRegistry


@dataclass
class CuttingStockInstance:
    """
    A Cutting Stock Problem instance.

    Attributes:
        roll_width: Width of each roll (max pattern width)
        item_sizes: Width of each order
        item_demands: Number of pieces of each order
        name: Optional instance name

    Example:
        >>> instance = CuttingStockInstance(
        ...     roll_width=100,
        ...     item_sizes=[45, 36, 31, 14],
        ...     item_demands=[97, 610, 395, 211],
        ... )
        >>> orders = instance.build_orders()
    """
    roll_width: float
    item_sizes: list[float]
    item_demands: list[int]
    name: Optional[str] = None

    def __post_init__(self):
        if len(self.item_sizes) != len(self.item_demands):
            raise ValueError("item_sizes and item_demands must have same length")
        if self.roll_width <= 0:
            raise ValueError(f"roll_width must be positive, got {self.roll_width}")
        for size in self.item_sizes:
            if size <= 0 or size > self.roll_width:
                raise ValueError(f"Item size {size} must be in (0, {self.roll_width}]")

    @property
    def num_items(self) -> int:
        """Number of order lines."""
        return len(self.item_sizes)

    @property
    def total_demand(self) -> int:
        return sum(self.item_demands)

    @property
    def is_integral(self) -> bool:
        """True if the roll width and every item size are integers."""
        return float(self.roll_width).is_integer() and all(
            float(s).is_integer() for s in self.item_sizes
        )

    def max_copies(self, item_idx: int) -> int:
        """Maximum copies of an item that fit in one roll."""
        return int(self.roll_width // self.item_sizes[item_idx])

    def l2_lower_bound(self) -> int:
        """ceil(total piece width / roll width)."""
        total = sum(s * d for s, d in zip(self.item_sizes, self.item_demands))
        return math.ceil(total / self.roll_width - 1e-9)

    def build_orders(self) -> OrderWidthRegistry:
        """Registry of distinct widths; repeated widths merge their demand."""
        return OrderWidthRegistry.from_lists(
            self.item_sizes, self.item_demands, max_pattern_width=self.roll_width
        )
