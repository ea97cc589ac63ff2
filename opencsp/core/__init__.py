"""
Core data structures for OpenCSP.

This module contains the fundamental building blocks:
- OrderWidth, OrderWidthRegistry: Demanded widths and their master rows
- Pattern, PatternRegistry: Cutting patterns and the accepted-pattern list
- CuttingStockInstance: Problem data (roll width, sizes, demands)
"""

from opencsp.core.instance import CuttingStockInstance
from opencsp.core.order import OrderWidth, OrderWidthRegistry
from opencsp.core.pattern import (
    EPSILON,
    Pattern,
    PatternRegistry,
    VarStatus,
    patterns_equal,
)

__all__ = [
    "CuttingStockInstance",
    "OrderWidth",
    "OrderWidthRegistry",
    "Pattern",
    "PatternRegistry",
    "VarStatus",
    "patterns_equal",
    "EPSILON",
]
