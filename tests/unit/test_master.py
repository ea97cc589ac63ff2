"""
Tests for the master problem module.

This module tests:
- MasterSolution dataclass
- CuttingStockMaster (HiGHS): columns, duals, bounds, integer solve
"""

import pytest

from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern, VarStatus
from opencsp.master import (
    HIGHS_AVAILABLE,
    CuttingStockMaster,
    MasterSolution,
    SolutionStatus,
)


# =============================================================================
# MasterSolution Tests
# =============================================================================


class TestMasterSolution:
    """Tests for MasterSolution dataclass."""

    def test_default_solution(self):
        sol = MasterSolution()
        assert sol.status == SolutionStatus.NOT_SOLVED
        assert sol.objective_value is None
        assert sol.column_values == {}
        assert not sol.is_optimal

    def test_integer_check(self):
        assert MasterSolution(column_values={0: 1.0, 1: 2.0}).is_integer()
        assert not MasterSolution(column_values={0: 1.5}).is_integer()

    def test_fractional_columns(self):
        sol = MasterSolution(column_values={3: 1.0, 4: 0.5, 5: 2.25})
        assert sorted(sol.get_fractional_columns()) == [4, 5]
        assert sorted(sol.get_active_columns()) == [3, 4, 5]

    def test_artificials(self):
        assert MasterSolution(artificial_value=1.0).uses_artificials()
        assert not MasterSolution(artificial_value=1e-9).uses_artificials()

    def test_summary(self):
        sol = MasterSolution(status=SolutionStatus.OPTIMAL, objective_value=3.5, num_columns=4)
        text = sol.summary()
        assert "OPTIMAL" in text
        assert "3.5" in text


# =============================================================================
# CuttingStockMaster Tests
# =============================================================================


def make_master(widths, demands, roll_width):
    orders = OrderWidthRegistry.from_lists(widths, demands, max_pattern_width=roll_width)
    return orders, CuttingStockMaster(orders)


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestCuttingStockMaster:
    """Tests for the HiGHS master."""

    def test_add_pattern_assigns_column(self):
        orders, master = make_master([5, 3], [4, 2], 10)
        pattern = Pattern(entries=((0, 2),))

        col = master.add_pattern(pattern)

        assert pattern.master_col_index == col
        assert master.num_columns == 1
        assert master.num_rows == 2
        assert master.pattern_at(col) is pattern

    def test_add_pattern_twice_rejected(self):
        orders, master = make_master([5], [4], 10)
        pattern = Pattern(entries=((0, 2),))
        master.add_pattern(pattern)
        with pytest.raises(ValueError):
            master.add_pattern(pattern)

    def test_add_pattern_bad_row(self):
        orders, master = make_master([5], [4], 10)
        with pytest.raises(ValueError):
            master.add_pattern(Pattern(entries=((3, 1),)))

    def test_solve_lp_and_duals(self):
        orders, master = make_master([5, 3], [4, 3], 10)
        a = Pattern(entries=((0, 2),))
        b = Pattern(entries=((1, 3),))
        master.add_pattern(a)
        master.add_pattern(b)

        sol = master.solve_lp()

        assert sol.is_optimal
        assert sol.objective_value == pytest.approx(3.0)
        assert sol.column_values[a.master_col_index] == pytest.approx(2.0)
        assert sol.column_values[b.master_col_index] == pytest.approx(1.0)
        assert not sol.uses_artificials()

        master.push_duals(orders)
        assert orders[0].dual_value == pytest.approx(0.5)
        assert orders[1].dual_value == pytest.approx(1.0 / 3.0)

    def test_uncovered_demand_uses_artificials(self):
        orders, master = make_master([5, 3], [4, 3], 10)
        master.add_pattern(Pattern(entries=((0, 2),)))

        sol = master.solve_lp()

        assert sol.is_optimal
        assert sol.uses_artificials()

    def test_branching_bounds(self):
        orders, master = make_master([5, 3], [4, 3], 10)
        a = Pattern(entries=((0, 2),))
        b = Pattern(entries=((0, 1), (1, 1)))
        c = Pattern(entries=((1, 3),))
        for p in (a, b, c):
            master.add_pattern(p)

        master.set_pattern_bounds({a.master_col_index: (0.0, 0.0)})
        sol = master.solve_lp()
        assert sol.is_optimal
        assert sol.column_values.get(a.master_col_index, 0.0) == pytest.approx(0.0)
        assert a.fixed and not b.fixed

        master.update_statuses()
        assert a.var_status == VarStatus.FIXED

        master.set_pattern_bounds({})
        assert not a.fixed

    def test_bounds_on_unknown_column(self):
        orders, master = make_master([5], [4], 10)
        with pytest.raises(ValueError):
            master.set_pattern_bounds({0: (1.0, None)})

    def test_solve_ip(self):
        orders, master = make_master([5, 3], [3, 3], 10)
        a = Pattern(entries=((0, 2),))
        b = Pattern(entries=((0, 1), (1, 1)))
        c = Pattern(entries=((1, 3),))
        for p in (a, b, c):
            master.add_pattern(p)

        sol = master.solve_ip(time_limit=10.0)

        assert sol.is_optimal
        assert sol.is_integer()
        assert sol.objective_value == pytest.approx(3.0)
        for p in (a, b, c):
            value = master.get_column_value(p.master_col_index)
            assert value == pytest.approx(round(value))

        # Columns are continuous again
        assert master.solve_lp().is_optimal

    def test_get_column_value_without_solution(self):
        orders, master = make_master([5], [4], 10)
        with pytest.raises(IndexError):
            master.get_column_value(0)

    def test_model_stats(self):
        orders, master = make_master([5, 3], [4, 3], 10)
        master.add_pattern(Pattern(entries=((0, 1), (1, 1))))

        stats = master.get_model_stats()

        assert stats['num_rows'] == 2
        # Two artificial columns plus the pattern
        assert stats['num_columns'] == 3
        assert stats['num_nonzeros'] == 4
