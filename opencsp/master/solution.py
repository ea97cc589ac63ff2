"""
Master problem solution module.

This module defines the data structures for representing solutions
from the master problem solver.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional


class SolutionStatus(Enum):
    """
    Status of an LP/MIP solve.

    Shared by the master problem and the IP knapsack solver.
    """
    OPTIMAL = auto()           # Optimal solution found
    INFEASIBLE = auto()        # Problem is infeasible
    UNBOUNDED = auto()         # Problem is unbounded
    INF_OR_UNBOUNDED = auto()  # Infeasible or unbounded (solver couldn't determine)
    TIME_LIMIT = auto()        # Time limit reached (may have feasible solution)
    ITERATION_LIMIT = auto()   # Iteration limit reached
    NOT_SOLVED = auto()        # Solve not called yet
    ERROR = auto()             # Solver error occurred


@dataclass
class MasterSolution:
    """
    Result of solving the master problem.

    Attributes:
        status: Solution status (OPTIMAL, INFEASIBLE, etc.)
        objective_value: Objective function value (None if not solved/infeasible)
        column_values: Mapping from master column index to its value
        dual_values: Mapping from master row index to dual value (pi)
        artificial_value: Total value of the artificial columns
        solve_time: Time spent solving in seconds
        iterations: Number of simplex iterations
        num_columns: Number of columns in the model when solved

    Example:
        >>> solution = master.solve_lp()
        >>> if solution.is_optimal:
        ...     print(f"Objective: {solution.objective_value}")
    """
    status: SolutionStatus = SolutionStatus.NOT_SOLVED
    objective_value: Optional[float] = None
    column_values: dict[int, float] = field(default_factory=dict)
    dual_values: dict[int, float] = field(default_factory=dict)
    artificial_value: float = 0.0
    solve_time: float = 0.0
    iterations: int = 0
    num_columns: int = 0

    # =========================================================================
    # Convenience Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if solution is optimal."""
        return self.status == SolutionStatus.OPTIMAL

    @property
    def is_infeasible(self) -> bool:
        """Check if problem is infeasible."""
        return self.status == SolutionStatus.INFEASIBLE

    def uses_artificials(self, tol: float = 1e-6) -> bool:
        """Check if any demand is covered by an artificial column."""
        return self.artificial_value > tol

    def is_integer(self, tol: float = 1e-6) -> bool:
        """Check if all column values are (nearly) integer."""
        for value in self.column_values.values():
            if abs(value - round(value)) > tol:
                return False
        return True

    # =========================================================================
    # Methods
    # =========================================================================

    def get_active_columns(self, tol: float = 1e-6) -> list[int]:
        """Column indices with value > tol."""
        return [
            col for col, value in self.column_values.items()
            if value > tol
        ]

    def get_fractional_columns(self, tol: float = 1e-6) -> list[int]:
        """Column indices with fractional value, used for branching."""
        fractional = []
        for col, value in self.column_values.items():
            if value > tol and abs(value - round(value)) > tol:
                fractional.append(col)
        return fractional

    def summary(self) -> str:
        """Return a human-readable summary of the solution."""
        lines = [
            "MasterSolution:",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        active = self.get_active_columns()
        lines.append(f"  Active columns: {len(active)} / {self.num_columns}")

        if not self.is_integer():
            lines.append(f"  Fractional columns: {len(self.get_fractional_columns())}")
        else:
            lines.append("  Solution is integer")

        lines.extend([
            f"  Solve time: {self.solve_time:.3f}s",
            f"  Iterations: {self.iterations}",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"MasterSolution({self.status.name}{obj_str})"
