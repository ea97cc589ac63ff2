"""
Pricing subproblem module - knapsack pattern generation.

The pricing problem of the cutting stock master is a bounded knapsack
whose profits are the dual values of the order widths. This module
provides:
- build_subproblem, KnapsackSubproblem: Formulation
- DPKnapsackSolver: Dynamic programming with ranked candidates
- IPKnapsackSolver: Generic integer program on HiGHS
- PatternGenerator: Orchestration, duplicate avoidance and the
  degeneracy workaround

Usage:
------
    >>> from opencsp.pricing import PatternGenerator
    >>> generator = PatternGenerator(registry, max_pattern_width=100, strategy="dp")
    >>> pattern = generator.generate_pattern(orders, iteration_count=1)
"""

from opencsp.pricing.base import (
    ALTERNATE_CAPACITY_SLACK,
    FormulationError,
    KnapsackItem,
    KnapsackSolver,
    KnapsackSubproblem,
    PricingError,
    PricingStrategy,
    build_subproblem,
)
from opencsp.pricing.dp import DPKnapsackSolver
from opencsp.pricing.generator import PatternGenerator
from opencsp.pricing.ip import IPKnapsackSolver

__all__ = [
    "ALTERNATE_CAPACITY_SLACK",
    "FormulationError",
    "PricingError",
    "PricingStrategy",
    "KnapsackItem",
    "KnapsackSubproblem",
    "KnapsackSolver",
    "build_subproblem",
    "DPKnapsackSolver",
    "IPKnapsackSolver",
    "PatternGenerator",
]
