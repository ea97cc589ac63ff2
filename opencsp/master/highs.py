"""
HiGHS implementation of the cutting stock master problem.

Master Problem (Set Covering):
    min  sum_p x_p + M * sum_i s_i    (number of rolls)
    s.t. sum_p a_ip * x_p + s_i >= d_i  (demand of order width i)
         x_p >= 0                     (integer in the final solution)
         s_i >= 0                     (artificial, cost M)

Where a_ip is the count of order width i in pattern p. Rows follow the
master_row_index of the OrderWidthRegistry. The artificial columns keep
every node LP feasible under branching bounds; a converged node that
still uses them has no integer solution. Pattern columns are appended as
patterns are accepted and never removed during a solve.

Usage:
    >>> master = CuttingStockMaster(orders)
    >>> for pattern in registry:
    ...     master.add_pattern(pattern)
    >>> solution = master.solve_lp()
    >>> master.push_duals(orders)
"""

import logging
import time
from typing import Optional

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern, VarStatus
from opencsp.master.solution import MasterSolution, SolutionStatus

logger = logging.getLogger(__name__)

# HiGHS reports a feasible primal solution with this status value
_SOLUTION_STATUS_FEASIBLE = 2


def map_highs_status(status) -> SolutionStatus:
    """Map HiGHS model status to our SolutionStatus."""
    if not HIGHS_AVAILABLE:
        return SolutionStatus.ERROR

    status_map = {
        highspy.HighsModelStatus.kNotset: SolutionStatus.NOT_SOLVED,
        highspy.HighsModelStatus.kLoadError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPresolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kSolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPostsolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelEmpty: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kOptimal: SolutionStatus.OPTIMAL,
        highspy.HighsModelStatus.kInfeasible: SolutionStatus.INFEASIBLE,
        highspy.HighsModelStatus.kUnbounded: SolutionStatus.UNBOUNDED,
        highspy.HighsModelStatus.kUnboundedOrInfeasible: SolutionStatus.INF_OR_UNBOUNDED,
        highspy.HighsModelStatus.kTimeLimit: SolutionStatus.TIME_LIMIT,
        highspy.HighsModelStatus.kIterationLimit: SolutionStatus.ITERATION_LIMIT,
    }

    return status_map.get(status, SolutionStatus.ERROR)


class CuttingStockMaster:
    """
    Master LP of the cutting stock problem, solved with HiGHS.

    Every pattern column costs one roll. Column bounds carry the branching
    decisions of the current branch-and-bound node.

    Attributes:
        num_columns: Number of pattern columns
        num_rows: Number of order width rows
        big_m: Cost of the artificial columns
    """

    def __init__(
        self,
        orders: OrderWidthRegistry,
        big_m: float = 1e6,
        verbosity: int = 0,
    ):
        """
        Initialize the master with one demand row per order width.

        Args:
            orders: Order widths (row i is the order with master_row_index i)
            big_m: Cost of the artificial column of each row
            verbosity: HiGHS output level (0 = silent)

        Raises:
            ImportError: If highspy is not installed
        """
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )

        self.big_m = big_m
        self._highs = highspy.Highs()
        self._highs.setOptionValue('output_flag', verbosity > 0)
        self._highs.setOptionValue('log_to_console', verbosity > 0)
        self._highs.changeObjectiveSense(highspy.ObjSense.kMinimize)

        self._num_rows = len(orders)
        for order in sorted(orders, key=lambda o: o.master_row_index):
            self._highs.addRow(float(order.demand), highspy.kHighsInf, 0, [], [])

        # Artificial columns occupy solver columns 0..num_rows-1
        self._artificial_cols: list[int] = []
        for row in range(self._num_rows):
            self._highs.addCol(big_m, 0.0, highspy.kHighsInf, 1, [row], [1.0])
            self._artificial_cols.append(self._highs.getNumCol() - 1)

        self._patterns: list[Pattern] = []
        self._col_to_pattern: dict[int, Pattern] = {}
        self._bounds: dict[int, tuple[float, float]] = {}
        self._col_values: list[float] = []
        self._row_duals: list[float] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def num_columns(self) -> int:
        return len(self._patterns)

    @property
    def num_rows(self) -> int:
        return self._num_rows

    @property
    def patterns(self) -> list[Pattern]:
        return self._patterns.copy()

    def pattern_at(self, col_index: int) -> Pattern:
        return self._col_to_pattern[col_index]

    # =========================================================================
    # Columns and bounds
    # =========================================================================

    def add_pattern(self, pattern: Pattern) -> int:
        """
        Add a pattern column (cost 1, bounds [0, inf)).

        Sets pattern.master_col_index.

        Returns:
            The master column index
        """
        if pattern.master_col_index is not None:
            raise ValueError(f"Pattern already has master column {pattern.master_col_index}")

        indices = []
        values = []
        for row, count in pattern.entries:
            if not 0 <= row < self._num_rows:
                raise ValueError(f"Pattern row {row} outside master rows")
            indices.append(row)
            values.append(float(count))

        self._highs.addCol(1.0, 0.0, highspy.kHighsInf, len(indices), indices, values)

        col_index = self._highs.getNumCol() - 1
        pattern.master_col_index = col_index
        self._patterns.append(pattern)
        self._col_to_pattern[col_index] = pattern
        return col_index

    def set_pattern_bounds(self, bounds: dict[int, tuple[float, Optional[float]]]) -> None:
        """
        Replace all branching bounds.

        Every pattern column is reset to [0, inf) and unfixed, then the
        given bounds are applied and those patterns marked fixed.

        Args:
            bounds: master column index -> (lower, upper); upper None = inf
        """
        for col in list(self._bounds):
            self._highs.changeColBounds(col, 0.0, highspy.kHighsInf)
        self._bounds.clear()
        for pattern in self._patterns:
            pattern.fixed = False

        for col, (lower, upper) in bounds.items():
            if col not in self._col_to_pattern:
                raise ValueError(f"Column {col} is not a pattern column")
            upper = highspy.kHighsInf if upper is None else float(upper)
            self._highs.changeColBounds(col, float(lower), upper)
            self._bounds[col] = (float(lower), upper)
            self._col_to_pattern[col].fixed = True

    # =========================================================================
    # Solving
    # =========================================================================

    def solve_lp(self) -> MasterSolution:
        """Solve the LP relaxation under the current bounds."""
        start_time = time.time()
        self._highs.run()
        solve_time = time.time() - start_time

        status = map_highs_status(self._highs.getModelStatus())
        solution = MasterSolution(
            status=status,
            solve_time=solve_time,
            iterations=self._highs.getInfo().simplex_iteration_count,
            num_columns=self.num_columns,
        )

        if status == SolutionStatus.OPTIMAL:
            self._store_solution(solution, with_duals=True)
        else:
            self._col_values = []
            self._row_duals = []

        return solution

    def solve_ip(self, time_limit: Optional[float] = None) -> MasterSolution:
        """
        Solve the master restricted to the current columns as an IP.

        Columns are switched back to continuous afterwards; the integer
        values stay available through get_column_value().

        Args:
            time_limit: Maximum solve time in seconds (None = no limit)
        """
        for col in self._col_to_pattern:
            self._highs.changeColIntegrality(col, highspy.HighsVarType.kInteger)
        if time_limit is not None:
            self._highs.setOptionValue('time_limit', float(time_limit))

        start_time = time.time()
        self._highs.run()
        solve_time = time.time() - start_time

        status = map_highs_status(self._highs.getModelStatus())
        solution = MasterSolution(
            status=status,
            solve_time=solve_time,
            num_columns=self.num_columns,
        )

        info = self._highs.getInfo()
        has_incumbent = status == SolutionStatus.OPTIMAL or (
            status == SolutionStatus.TIME_LIMIT
            and info.primal_solution_status == _SOLUTION_STATUS_FEASIBLE
        )
        if has_incumbent:
            self._store_solution(solution, with_duals=False)
        else:
            self._col_values = []

        for col in self._col_to_pattern:
            self._highs.changeColIntegrality(col, highspy.HighsVarType.kContinuous)
        if time_limit is not None:
            self._highs.setOptionValue('time_limit', highspy.kHighsInf)

        return solution

    def _store_solution(self, solution: MasterSolution, with_duals: bool) -> None:
        solution.objective_value = self._highs.getInfo().objective_function_value
        sol = self._highs.getSolution()
        self._col_values = list(sol.col_value)

        for col in self._col_to_pattern:
            value = self._col_values[col]
            if abs(value) > 1e-10:
                solution.column_values[col] = value
        solution.artificial_value = sum(self._col_values[col] for col in self._artificial_cols)

        if with_duals:
            self._row_duals = list(sol.row_dual)
            solution.dual_values = self.get_dual_values()

    # =========================================================================
    # Solution access
    # =========================================================================

    def get_dual_values(self) -> dict[int, float]:
        """Row duals of the last LP solve (row index -> pi)."""
        if not self._row_duals:
            return {}
        return {row: self._row_duals[row] for row in range(self._num_rows)}

    def push_duals(self, orders: OrderWidthRegistry) -> None:
        """Store the last LP duals on the order widths."""
        orders.set_dual_values(self.get_dual_values())

    def get_column_value(self, col_index: int) -> float:
        """Primal value of a column in the last stored solution."""
        if not 0 <= col_index < len(self._col_values):
            raise IndexError(f"No solution value for master column {col_index}")
        return self._col_values[col_index]

    def update_statuses(self, tol: float = 1e-6) -> None:
        """Set var_status of every pattern from the last stored solution."""
        for pattern in self._patterns:
            if pattern.fixed:
                pattern.var_status = VarStatus.FIXED
                continue
            value = self._col_values[pattern.master_col_index] if self._col_values else 0.0
            if abs(value - round(value)) <= tol:
                pattern.var_status = VarStatus.INTEGER
            else:
                pattern.var_status = VarStatus.FRACTIONAL

    def get_model_stats(self) -> dict[str, int]:
        return {
            'num_columns': self._highs.getNumCol(),
            'num_rows': self._highs.getNumRow(),
            'num_nonzeros': self._highs.getNumNz(),
        }

    def write_model(self, path: str) -> None:
        """Write the current model to a file (format from the extension)."""
        self._highs.writeModel(path)

    def __repr__(self) -> str:
        return f"CuttingStockMaster(rows={self._num_rows}, cols={self.num_columns})"
