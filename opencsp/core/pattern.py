"""
Pattern module - cutting patterns and the registry of accepted patterns.

A Pattern says how many pieces of each order width are cut from one roll.
Patterns are produced by the pricing subproblem, checked against every
pattern accepted so far, and become columns of the master problem.

This module provides:
- Pattern: One cutting pattern plus its master-side state
- VarStatus: Role of the pattern variable in the master solution
- PatternRegistry: Ordered list of accepted patterns with duplicate checks,
  solution extraction and the solution report

Pattern Lifecycle:
-----------------
1. Created by the PatternGenerator from a solved knapsack subproblem
2. Checked with PatternRegistry.is_duplicate
3. Registered exactly once, then added to the master as a column
4. Status/fixed flag updated by the master, int_solution by extraction
5. Released by PatternRegistry.clean_up at the end of the solve
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Mapping, Optional

from opencsp.core.order import OrderWidthRegistry

# Report cut-off for activity levels and integrality tolerance for counts
EPSILON = 1e-6


def _as_int(value, what: str) -> int:
    """Integer value of a pattern field; non-integral values are rejected."""
    nearest = round(value)
    if abs(value - nearest) > EPSILON:
        raise ValueError(f"Pattern {what} must be integral, got {value}")
    return int(nearest)


class VarStatus(Enum):
    """Status of a pattern variable in the current master solution."""
    FRACTIONAL = auto()  # Fractional (or not yet solved)
    INTEGER = auto()     # Integral value in the current LP solution
    FIXED = auto()       # Bound fixed by branching


@dataclass(eq=False)
class Pattern:
    """
    A cutting pattern.

    Entries are (master_row_index, count) pairs with count > 0, stored in
    the order of the OrderWidthRegistry that produced them.

    Attributes:
        entries: Tuple of (master_row_index, count) pairs
        var_status: Status of the column in the master solution
        fixed: Whether branching fixed this column's bounds at the current node
        int_solution: Activity level in the best integer solution
        master_col_index: Column of this pattern in the master (None until added)
        pricing_value: Objective value of the subproblem that produced it
        alternate: Generated under the relaxed degeneracy-breaking capacity

    Example:
        >>> pattern = Pattern(entries=((0, 2), (2, 1)))
        >>> pattern.nzcnt
        2
        >>> pattern.count_for(0)
        2
    """
    entries: tuple[tuple[int, int], ...]
    var_status: VarStatus = VarStatus.FRACTIONAL
    fixed: bool = False
    int_solution: float = 0.0
    master_col_index: Optional[int] = None
    pricing_value: Optional[float] = None
    alternate: bool = False
    _counts: dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        entries = tuple(
            (_as_int(row, "row"), _as_int(count, "count")) for row, count in self.entries
        )
        for row, count in entries:
            if count <= 0:
                raise ValueError(f"Pattern count must be positive, got {count} for row {row}")
        self.entries = entries
        self._counts = dict(entries)
        if len(self._counts) != len(entries):
            raise ValueError("Pattern has more than one entry for the same row")

    @classmethod
    def from_counts(
        cls,
        orders: OrderWidthRegistry,
        counts: Mapping[int, int],
        **kwargs,
    ) -> Optional['Pattern']:
        """
        Build a pattern in canonical order.

        Args:
            orders: Registry giving the canonical row order
            counts: Mapping master_row_index -> count (zero counts are dropped)

        Returns:
            The pattern, or None if every count is zero
        """
        entries = []
        for order in orders:
            count = counts.get(order.master_row_index, 0)
            if count:
                entries.append((order.master_row_index, count))
        if not entries:
            return None
        return cls(entries=tuple(entries), **kwargs)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def nzcnt(self) -> int:
        """Number of order widths used."""
        return len(self.entries)

    @property
    def num_pieces(self) -> int:
        return sum(count for _, count in self.entries)

    # =========================================================================
    # Methods
    # =========================================================================

    def count_for(self, row_index: int) -> int:
        return self._counts.get(row_index, 0)

    def total_width(self, orders: OrderWidthRegistry) -> float:
        """Sum of count x width over the entries."""
        return sum(orders.find_by_row(row).width * count for row, count in self.entries)

    def value(self, orders: OrderWidthRegistry) -> float:
        """Sum of count x dual value under the current duals."""
        return sum(orders.find_by_row(row).dual_value * count for row, count in self.entries)

    def same_entries(self, other: 'Pattern') -> bool:
        return patterns_equal(self, other)

    def describe(self) -> str:
        """Entry listing in the form used by the debug log."""
        body = ", ".join(f"({row} {count})" for row, count in self.entries)
        return f"# Pattern (nzcnt = {self.nzcnt}). {{{body}}}"

    def __repr__(self) -> str:
        col_str = f", col={self.master_col_index}" if self.master_col_index is not None else ""
        alt_str = ", alternate" if self.alternate else ""
        return f"Pattern({list(self.entries)}{col_str}{alt_str})"


def patterns_equal(lhs: Pattern, rhs: Pattern) -> bool:
    """
    Compare two patterns entry by entry.

    Patterns are equal when they have the same number of entries and the
    same (row, count) pair at every position. Counts are compared exactly.
    """
    if lhs.nzcnt != rhs.nzcnt:
        return False
    for left, right in zip(lhs.entries, rhs.entries):
        if left != right:
            return False
    return True


class PatternRegistry:
    """
    Ordered list of every pattern accepted during a solve.

    The registry only grows until clean_up() is called at the end of the
    solve. Every pattern in it is distinct from every other.

    Example:
        >>> registry = PatternRegistry()
        >>> p = Pattern(entries=((0, 2),))
        >>> registry.is_duplicate(p)
        False
        >>> registry.register(p)
        >>> registry.is_duplicate(Pattern(entries=((0, 2),)))
        True
    """

    def __init__(self):
        self._patterns: list[Pattern] = []

    @property
    def size(self) -> int:
        return len(self._patterns)

    def is_duplicate(self, pattern: Optional[Pattern]) -> bool:
        """
        Check if an identical pattern was already accepted.

        Args:
            pattern: Candidate pattern (None is never a duplicate)

        Returns:
            True if some registered pattern has the same entries
        """
        if pattern is None:
            return False
        for existing in self._patterns:
            if patterns_equal(existing, pattern):
                return True
        return False

    def register(self, pattern: Pattern) -> None:
        """
        Accept a pattern.

        Raises:
            ValueError: If the pattern duplicates a registered one
        """
        if self.is_duplicate(pattern):
            raise ValueError(f"Duplicate pattern cannot be registered: {pattern!r}")
        self._patterns.append(pattern)

    def get_by_column(self, col_index: int) -> Optional[Pattern]:
        for pattern in self._patterns:
            if pattern.master_col_index == col_index:
                return pattern
        return None

    def all_patterns(self) -> list[Pattern]:
        return self._patterns.copy()

    def clean_up(self) -> None:
        """Release every pattern. Only called at solve start and teardown."""
        self._patterns.clear()

    # =========================================================================
    # Solution extraction and reporting
    # =========================================================================

    def extract_solution(self, master) -> None:
        """
        Store the incumbent activity level of every pattern.

        Precondition: the master currently holds the incumbent integer
        solution.

        Args:
            master: Object providing get_column_value(col_index)
        """
        for pattern in self._patterns:
            if pattern.master_col_index is None:
                raise ValueError(f"Pattern has no master column: {pattern!r}")
            pattern.int_solution = master.get_column_value(pattern.master_col_index)

    def active_patterns(self, epsilon: float = EPSILON) -> list[Pattern]:
        """Patterns whose stored activity level is not negligible."""
        return [p for p in self._patterns if abs(p.int_solution) > epsilon]

    def report(
        self,
        orders: OrderWidthRegistry,
        best_objective: Optional[float] = None,
        epsilon: float = EPSILON,
    ) -> str:
        """
        Human-readable solution report.

        Precondition: extract_solution() was called for the incumbent.

        Args:
            orders: Registry used to translate rows back to widths
            best_objective: Best integer objective value
            epsilon: Activity levels at or below this are skipped

        Returns:
            Report text
        """
        lines = ["", " # Solution Report # ", ""]
        if best_objective is not None:
            lines.append(f"Best integer obj. func. value = {best_objective:g}")

        for pattern in self.active_patterns(epsilon):
            parts = []
            for row, count in pattern.entries:
                width = orders.find_by_row(row).width
                parts.append(f"{width:>5g} x {count:>2d}, ")
            lines.append(f"Pattern count = {pattern.int_solution:>4g}: " + "".join(parts))

        return "\n".join(lines)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __repr__(self) -> str:
        return f"PatternRegistry(size={self.size})"
