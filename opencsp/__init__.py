"""
OpenCSP: Pattern generation and branch-and-price for cutting stock

Column generation for the one-dimensional cutting stock problem, with
knapsack pricing solved by dynamic programming or a HiGHS integer program,
duplicate-pattern avoidance and a solution report.
"""

__version__ = "0.1.0"

from opencsp.config import config, get_data_path, set_data_path
from opencsp.core import (
    CuttingStockInstance,
    OrderWidth,
    OrderWidthRegistry,
    Pattern,
    PatternRegistry,
    VarStatus,
    patterns_equal,
)
from opencsp.master import (
    HIGHS_AVAILABLE,
    CuttingStockMaster,
    MasterSolution,
    SolutionStatus,
)
from opencsp.parsers import BPPLIBParser
from opencsp.pricing import (
    DPKnapsackSolver,
    FormulationError,
    IPKnapsackSolver,
    PatternGenerator,
    PricingError,
    PricingStrategy,
    build_subproblem,
)
from opencsp.solver import (
    BPConfig,
    BPSolution,
    BPStatus,
    BranchAndPrice,
    solve_cutting_stock,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "get_data_path",
    "set_data_path",
    # Core classes
    "CuttingStockInstance",
    "OrderWidth",
    "OrderWidthRegistry",
    "Pattern",
    "PatternRegistry",
    "VarStatus",
    "patterns_equal",
    # Master problem
    "CuttingStockMaster",
    "MasterSolution",
    "SolutionStatus",
    "HIGHS_AVAILABLE",
    # Pricing
    "build_subproblem",
    "DPKnapsackSolver",
    "IPKnapsackSolver",
    "PatternGenerator",
    "PricingStrategy",
    "FormulationError",
    "PricingError",
    # Solver
    "BPConfig",
    "BPSolution",
    "BPStatus",
    "BranchAndPrice",
    "solve_cutting_stock",
    # Parsers
    "BPPLIBParser",
]
