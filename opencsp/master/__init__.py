"""
Master problem module - the cutting stock set-covering LP.

This module provides:
- CuttingStockMaster: HiGHS master LP/IP over pattern columns
- MasterSolution: Solution data structure
- SolutionStatus: Enum for solution status
- map_highs_status: HiGHS model status translation

Usage:
------
    >>> from opencsp.master import CuttingStockMaster
    >>> master = CuttingStockMaster(orders)
    >>> master.add_pattern(pattern)
    >>> solution = master.solve_lp()
    >>> master.push_duals(orders)
"""

from opencsp.master.highs import HIGHS_AVAILABLE, CuttingStockMaster, map_highs_status
from opencsp.master.solution import MasterSolution, SolutionStatus

__all__ = [
    "CuttingStockMaster",
    "MasterSolution",
    "SolutionStatus",
    "map_highs_status",
    "HIGHS_AVAILABLE",
]
