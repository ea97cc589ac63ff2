"""
BPPLIB parser.

BPPLIB format (for CSP):
    Line 1: Number of item types
    Line 2: Roll/bin capacity
    Lines 3+: size<whitespace>demand for each item type

Blank lines are ignored and '#' starts a comment.
"""

import logging
from pathlib import Path
from typing import Union

from opencsp.core.instance import CuttingStockInstance

logger = logging.getLogger(__name__)


def _parse_number(token: str) -> Union[int, float]:
    value = float(token)
    return int(value) if value.is_integer() else value


class BPPLIBParser:
    """
    Reads cutting stock instances in BPPLIB format.

    Example:
        >>> parser = BPPLIBParser()
        >>> instance = parser.parse("data/bpplib/Scholl_1/N1C1W1_A.txt")
    """

    def parse(self, path: Union[str, Path]) -> CuttingStockInstance:
        """
        Parse an instance file.

        Raises:
            FileNotFoundError: If path doesn't exist
            ValueError: If the file is malformed
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Instance file not found: {path}")

        instance = self.parse_text(path.read_text(), name=path.stem)
        logger.info(
            "Loaded %s: %d item types, roll width %g, total demand %d",
            instance.name, instance.num_items, instance.roll_width, instance.total_demand,
        )
        return instance

    def parse_text(self, text: str, name: str = "instance") -> CuttingStockInstance:
        """Parse instance text."""
        lines = []
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if line:
                lines.append(line)

        if len(lines) < 2:
            raise ValueError(f"{name}: expected item count and capacity lines")

        try:
            num_types = int(lines[0])
            capacity = _parse_number(lines[1])
        except ValueError as e:
            raise ValueError(f"{name}: malformed header: {e}") from e

        if len(lines) < 2 + num_types:
            raise ValueError(
                f"{name}: expected {num_types} item lines, found {len(lines) - 2}"
            )

        sizes = []
        demands = []
        for lineno, line in enumerate(lines[2:2 + num_types], start=3):
            parts = line.split()
            if len(parts) < 2:
                raise ValueError(f"{name}: item line {lineno} needs size and demand: {line!r}")
            sizes.append(_parse_number(parts[0]))
            demands.append(int(parts[1]))

        return CuttingStockInstance(
            roll_width=capacity,
            item_sizes=sizes,
            item_demands=demands,
            name=name,
        )

    def can_parse(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        return path.is_file() and path.suffix in (".txt", ".bpp", ".csp")

    def get_format_name(self) -> str:
        return "BPPLIB"
