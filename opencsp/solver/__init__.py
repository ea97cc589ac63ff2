"""
Solver module - branch-and-price for cutting stock.

This module provides:
- BranchAndPrice: Column generation inside best-first branch-and-bound
- BPConfig: Solver configuration
- BPSolution, BPStatus, CGIteration: Result data structures
- solve_cutting_stock: One-call convenience wrapper

Usage:
------
    >>> from opencsp.solver import BranchAndPrice, BPConfig
    >>> with BranchAndPrice(instance, BPConfig(max_nodes=500)) as bp:
    ...     solution = bp.solve()
"""

from opencsp.solver.branch_and_price import (
    BPConfig,
    BranchAndPrice,
    ffd_patterns,
    homogeneous_patterns,
    solve_cutting_stock,
)
from opencsp.solver.solution import BPSolution, BPStatus, CGIteration

__all__ = [
    "BPConfig",
    "BranchAndPrice",
    "BPSolution",
    "BPStatus",
    "CGIteration",
    "ffd_patterns",
    "homogeneous_patterns",
    "solve_cutting_stock",
]
