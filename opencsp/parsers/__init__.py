"""
Parsers module - instance file readers.

Available Parsers:
-----------------
- BPPLIBParser: Cutting stock instances in BPPLIB text format

Usage:
------
>>> from opencsp.parsers import BPPLIBParser
>>> instance = BPPLIBParser().parse("path/to/instance.txt")
"""

from opencsp.parsers.bpplib import BPPLIBParser

__all__ = [
    "BPPLIBParser",
]
