"""
Order-width module - the demanded widths of a cutting stock instance.

Each distinct width a customer orders becomes one OrderWidth. The
OrderWidthRegistry keeps them in a fixed, stable order: the same order is
used for master rows, subproblem columns and pattern entries, so patterns
built from the registry are always emitted in one canonical ordering.

Ownership:
---------
- The registry assigns master_row_index once, when a width is added
- The master writes dual_value before every pricing call
- The pricing subproblem writes subproblem_index on every build; it is
  only meaningful until the next build
"""

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Sequence, Union

# Widths closer than this are treated as the same order width
WIDTH_TOLERANCE = 1e-9


@dataclass
class OrderWidth:
    """
    One distinct demanded width.

    Attributes:
        width: Width of the piece to cut
        demand: Number of pieces of this width to cut
        master_row_index: Row of this width in the master problem
        dual_value: Current dual value from the master relaxation
        subproblem_index: Column of this width in the last built subproblem
    """
    width: float
    demand: int
    master_row_index: int
    dual_value: float = 0.0
    subproblem_index: Optional[int] = None

    def get_width(self) -> float:
        return self.width

    def get_dual_value(self) -> float:
        return self.dual_value

    def set_subproblem_index(self, index: int) -> None:
        self.subproblem_index = index

    def get_subproblem_index(self) -> Optional[int]:
        return self.subproblem_index

    def get_master_row_index(self) -> int:
        return self.master_row_index

    @property
    def is_integral(self) -> bool:
        """Check if the width is an integer value."""
        return float(self.width).is_integer()

    def __repr__(self) -> str:
        return (
            f"OrderWidth(width={self.width:g}, demand={self.demand}, "
            f"row={self.master_row_index}, dual={self.dual_value:.4f})"
        )


class OrderWidthRegistry:
    """
    Ordered collection of the distinct widths of an instance.

    Iteration order is insertion order and never changes, so it can be
    used as the canonical ordering of pattern entries.

    Example:
        >>> orders = OrderWidthRegistry(max_pattern_width=100)
        >>> orders.add(45, 97)
        >>> orders.add(36, 610)
        >>> orders.set_dual_values([0.5, 0.33])
        >>> [ow.width for ow in orders]
        [45, 36]
    """

    def __init__(self, max_pattern_width: Optional[float] = None):
        """
        Create an empty registry.

        Args:
            max_pattern_width: Roll width; when given, wider orders are rejected
        """
        self._orders: list[OrderWidth] = []
        self._max_pattern_width = max_pattern_width

    @classmethod
    def from_lists(
        cls,
        widths: Sequence[float],
        demands: Sequence[int],
        max_pattern_width: Optional[float] = None,
    ) -> 'OrderWidthRegistry':
        """Build a registry from parallel width and demand lists."""
        if len(widths) != len(demands):
            raise ValueError("widths and demands must have same length")
        registry = cls(max_pattern_width)
        for width, demand in zip(widths, demands):
            registry.add(width, demand)
        return registry

    @property
    def max_pattern_width(self) -> Optional[float]:
        return self._max_pattern_width

    def add(self, width: float, demand: int = 1) -> OrderWidth:
        """
        Add a demanded width.

        A width already present accumulates the demand instead of creating
        a second row.

        Args:
            width: Piece width
            demand: Number of pieces

        Returns:
            The OrderWidth holding this width
        """
        if width <= 0:
            raise ValueError(f"Order width must be positive, got {width}")
        if demand <= 0:
            raise ValueError(f"Order demand must be positive, got {demand}")
        if self._max_pattern_width is not None and width > self._max_pattern_width:
            raise ValueError(
                f"Order width {width} exceeds max pattern width {self._max_pattern_width}"
            )

        existing = self.find_by_width(width)
        if existing is not None:
            existing.demand += demand
            return existing

        order = OrderWidth(
            width=width,
            demand=demand,
            master_row_index=len(self._orders),
        )
        self._orders.append(order)
        return order

    def find_by_width(self, width: float) -> Optional[OrderWidth]:
        for order in self._orders:
            if abs(order.width - width) <= WIDTH_TOLERANCE:
                return order
        return None

    def find_by_row(self, row_index: int) -> OrderWidth:
        """
        Get the order width bound to a master row.

        Raises:
            KeyError: If no order width owns the row
        """
        if 0 <= row_index < len(self._orders):
            order = self._orders[row_index]
            if order.master_row_index == row_index:
                return order
        for order in self._orders:
            if order.master_row_index == row_index:
                return order
        raise KeyError(f"No order width for master row {row_index}")

    def set_dual_values(self, duals: Union[Mapping[int, float], Sequence[float]]) -> None:
        """
        Store dual values from the master relaxation.

        Args:
            duals: Mapping master_row_index -> dual, or a sequence indexed by row
        """
        if isinstance(duals, Mapping):
            for order in self._orders:
                order.dual_value = float(duals.get(order.master_row_index, 0.0))
        else:
            if len(duals) != len(self._orders):
                raise ValueError(
                    f"Expected {len(self._orders)} dual values, got {len(duals)}"
                )
            for order in self._orders:
                order.dual_value = float(duals[order.master_row_index])

    def dual_values(self) -> dict[int, float]:
        return {order.master_row_index: order.dual_value for order in self._orders}

    def widths_are_integral(self) -> bool:
        """Check if every order width is an integer value."""
        return all(order.is_integral for order in self._orders)

    @property
    def total_demand(self) -> int:
        return sum(order.demand for order in self._orders)

    def __iter__(self) -> Iterator[OrderWidth]:
        return iter(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __getitem__(self, index: int) -> OrderWidth:
        return self._orders[index]

    def __repr__(self) -> str:
        return f"OrderWidthRegistry(orders={len(self._orders)}, max_width={self._max_pattern_width})"
