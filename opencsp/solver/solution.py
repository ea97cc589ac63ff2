"""
Branch-and-price solution module.

This module defines the data structures for representing the results of
the cutting stock branch-and-price solve.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from opencsp.core.pattern import Pattern


class BPStatus(Enum):
    """Status of the branch-and-price solution."""
    OPTIMAL = auto()       # Tree exhausted with an incumbent
    FEASIBLE = auto()      # Incumbent found, tree not exhausted
    INFEASIBLE = auto()    # No integer solution exists
    TIME_LIMIT = auto()    # Time limit without incumbent
    NODE_LIMIT = auto()    # Node limit without incumbent
    NOT_SOLVED = auto()


@dataclass
class CGIteration:
    """
    Information about a single column generation iteration.

    Attributes:
        node: Branch-and-bound node id
        iteration: Iteration number (global across nodes)
        master_objective: Master LP objective value
        pricing_value: Value of the generated pattern (None if exhausted)
        pattern_added: Whether a new pattern was added
        total_patterns: Registry size after this iteration
    """
    node: int
    iteration: int
    master_objective: float
    pricing_value: Optional[float]
    pattern_added: bool
    total_patterns: int


@dataclass
class BPSolution:
    """
    Result of the cutting stock branch-and-price solve.

    Attributes:
        status: Solution status
        objective: Best integer number of rolls (inf if none found)
        lower_bound: Best proven lower bound
        root_lp_objective: LP bound of the root node
        patterns: (pattern, count) pairs of the incumbent
        total_patterns: Patterns generated over the whole solve
        iterations: Column generation iterations over all nodes
        nodes_explored: Branch-and-bound nodes processed
        nodes_pruned: Nodes pruned by bound or infeasibility
        max_depth: Deepest node processed
        total_time: Wall time in seconds
        pricing_time: Time spent in pattern generation
        report: Text solution report
        iteration_history: Per-iteration records
    """
    status: BPStatus = BPStatus.NOT_SOLVED
    objective: float = float("inf")
    lower_bound: float = float("-inf")
    root_lp_objective: Optional[float] = None
    patterns: list[tuple[Pattern, int]] = field(default_factory=list)
    total_patterns: int = 0
    iterations: int = 0
    nodes_explored: int = 0
    nodes_pruned: int = 0
    max_depth: int = 0
    total_time: float = 0.0
    pricing_time: float = 0.0
    report: str = ""
    iteration_history: list[CGIteration] = field(default_factory=list)

    @property
    def is_optimal(self) -> bool:
        """Check if solution is proven optimal."""
        return self.status == BPStatus.OPTIMAL

    @property
    def is_feasible(self) -> bool:
        """Check if a feasible solution was found."""
        return self.status in (BPStatus.OPTIMAL, BPStatus.FEASIBLE)

    @property
    def num_rolls(self) -> Optional[int]:
        if not self.is_feasible:
            return None
        return int(round(self.objective))

    @property
    def gap(self) -> Optional[float]:
        if not self.is_feasible or self.objective <= 0:
            return None
        return max(0.0, (self.objective - self.lower_bound) / self.objective)

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "Branch-and-Price Solution:",
            f"  Status: {self.status.name}",
        ]

        if self.is_feasible:
            lines.append(f"  Rolls: {self.num_rolls}")
        if self.root_lp_objective is not None:
            lines.append(f"  Root LP: {self.root_lp_objective:.6f}")
        if self.gap is not None:
            lines.append(f"  Gap: {self.gap:.4%}")

        lines.extend([
            "",
            f"  Nodes: {self.nodes_explored} explored, {self.nodes_pruned} pruned, depth {self.max_depth}",
            f"  Iterations: {self.iterations}",
            f"  Patterns: {self.total_patterns}",
            f"  Total time: {self.total_time:.3f}s",
            f"  Pricing time: {self.pricing_time:.3f}s ({100*self.pricing_time/max(self.total_time, 1e-6):.1f}%)",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", rolls={self.num_rolls}" if self.is_feasible else ""
        return f"BPSolution({self.status.name}{obj_str}, nodes={self.nodes_explored})"
