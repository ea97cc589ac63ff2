"""
Generic integer programming knapsack solver (HiGHS).

Formulates the pricing knapsack as a small MIP and solves it with HiGHS:
first the continuous relaxation, then the integer program. Anything other
than a proven optimum is fatal, since an inexact price breaks the bound
guarantee of column generation.

For the degeneracy-breaking resolve, the acceptance tolerance is
perturbed. HiGHS only accepts non-negative gaps, so both MIP gaps are set
to zero and the solver runs with a fixed non-default seed, which makes the
branch-and-bound more likely to stop at a different optimal vertex. This is
a nudge, not a guarantee of a distinct pattern.
"""

import logging

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from opencsp.core.pattern import Pattern
from opencsp.master.highs import map_highs_status
from opencsp.master.solution import SolutionStatus
from opencsp.pricing.base import (
    KnapsackSolver,
    KnapsackSubproblem,
    PricingError,
    PricingStrategy,
)

logger = logging.getLogger(__name__)

# HiGHS defaults to seed 0; the alternate solve uses another fixed seed
ALTERNATE_RANDOM_SEED = 1


class IPKnapsackSolver(KnapsackSolver):
    """
    Knapsack pricing through the HiGHS MIP solver.

    Returns at most one pattern: the optimum reported by HiGHS, or an
    empty list when the optimum cuts nothing.

    Attributes:
        optimality_tol: Absolute MIP gap accepted as optimal
        integrality_tol: Max distance of a column value from an integer
        verbosity: HiGHS output level (0 = silent)
    """

    strategy = PricingStrategy.IP

    def __init__(
        self,
        optimality_tol: float = 1e-7,
        integrality_tol: float = 1e-6,
        verbosity: int = 0,
    ):
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )
        self.optimality_tol = optimality_tol
        self.integrality_tol = integrality_tol
        self.verbosity = verbosity

    def _create_model(self, subproblem: KnapsackSubproblem) -> 'highspy.Highs':
        """Build the HiGHS model: one integer column per item, one width row."""
        h = highspy.Highs()
        h.setOptionValue('output_flag', self.verbosity > 0)
        h.setOptionValue('log_to_console', self.verbosity > 0)
        h.changeObjectiveSense(highspy.ObjSense.kMaximize)

        for item in subproblem.items:
            h.addCol(item.dual, 0.0, highspy.kHighsInf, 0, [], [])

        indices = [subproblem.column_of[item.row_index] for item in subproblem.items]
        values = [item.width for item in subproblem.items]
        h.addRow(-highspy.kHighsInf, subproblem.capacity, len(indices), indices, values)

        return h

    def _set_tolerances(self, h: 'highspy.Highs', perturb: bool) -> None:
        if perturb:
            h.setOptionValue('mip_rel_gap', 0.0)
            h.setOptionValue('mip_abs_gap', 0.0)
            h.setOptionValue('random_seed', ALTERNATE_RANDOM_SEED)
        else:
            h.setOptionValue('mip_rel_gap', 0.0)
            h.setOptionValue('mip_abs_gap', self.optimality_tol)

    def _solve_impl(
        self,
        subproblem: KnapsackSubproblem,
        iteration: int,
    ) -> list[Pattern]:
        h = self._create_model(subproblem)

        # Continuous relaxation
        h.run()
        status = map_highs_status(h.getModelStatus())
        if status != SolutionStatus.OPTIMAL:
            raise PricingError(
                "Knapsack relaxation not solved to optimality",
                iteration=iteration, strategy=self.strategy, status=status.name,
            )

        for col in range(subproblem.num_items):
            h.changeColIntegrality(col, highspy.HighsVarType.kInteger)
        self._set_tolerances(h, perturb=subproblem.alternate)

        h.run()
        status = map_highs_status(h.getModelStatus())
        if status != SolutionStatus.OPTIMAL:
            raise PricingError(
                "Knapsack integer program not solved to optimality",
                iteration=iteration, strategy=self.strategy, status=status.name,
            )

        col_values = h.getSolution().col_value
        entries = []
        for item in subproblem.items:
            value = col_values[subproblem.column_of[item.row_index]]
            count = int(round(value))
            if abs(value - count) > self.integrality_tol or count < 0:
                raise PricingError(
                    f"Non-integral knapsack value {value} for row {item.row_index}",
                    iteration=iteration, strategy=self.strategy, status=status.name,
                )
            if count != 0:
                entries.append((item.row_index, count))

        logger.debug(
            "IP iteration %d: objective %.6f, %d entries%s",
            iteration, h.getInfo().objective_function_value, len(entries),
            " (alternate)" if subproblem.alternate else "",
        )

        if not entries:
            return []
        return [Pattern(entries=tuple(entries))]
