"""
Tests for order widths and the instance definition.
"""

import pytest

from opencsp.core.instance import CuttingStockInstance
from opencsp.core.order import OrderWidth, OrderWidthRegistry


class TestOrderWidth:

    def test_accessors(self):
        order = OrderWidth(width=45, demand=97, master_row_index=0, dual_value=0.5)

        assert order.get_width() == 45
        assert order.get_dual_value() == 0.5
        assert order.get_master_row_index() == 0
        assert order.get_subproblem_index() is None

        order.set_subproblem_index(3)
        assert order.get_subproblem_index() == 3

    def test_is_integral(self):
        assert OrderWidth(width=45.0, demand=1, master_row_index=0).is_integral
        assert not OrderWidth(width=4.5, demand=1, master_row_index=0).is_integral


class TestOrderWidthRegistry:

    def test_rows_follow_insertion(self):
        orders = OrderWidthRegistry.from_lists([45, 36, 31], [1, 2, 3])

        assert [o.master_row_index for o in orders] == [0, 1, 2]
        assert [o.width for o in orders] == [45, 36, 31]
        assert orders.total_demand == 6

    def test_same_width_merges(self):
        orders = OrderWidthRegistry()
        orders.add(45, 2)
        orders.add(45, 3)

        assert len(orders) == 1
        assert orders[0].demand == 5

    @pytest.mark.parametrize("width,demand", [(0, 1), (-1, 1), (10, 0)])
    def test_rejects_non_positive(self, width, demand):
        with pytest.raises(ValueError):
            OrderWidthRegistry().add(width, demand)

    def test_rejects_too_wide(self):
        with pytest.raises(ValueError):
            OrderWidthRegistry(max_pattern_width=10).add(11, 1)

    def test_find_by_row(self):
        orders = OrderWidthRegistry.from_lists([5, 7], [1, 1])
        assert orders.find_by_row(1).width == 7
        with pytest.raises(KeyError):
            orders.find_by_row(5)

    def test_set_dual_values(self):
        orders = OrderWidthRegistry.from_lists([5, 7, 3], [1, 1, 1])

        orders.set_dual_values([2.0, 3.0, 1.0])
        assert orders.dual_values() == {0: 2.0, 1: 3.0, 2: 1.0}

        orders.set_dual_values({1: 0.5})
        assert orders.dual_values() == {0: 0.0, 1: 0.5, 2: 0.0}

        with pytest.raises(ValueError):
            orders.set_dual_values([1.0])

    def test_widths_are_integral(self):
        assert OrderWidthRegistry.from_lists([5, 7], [1, 1]).widths_are_integral()
        assert not OrderWidthRegistry.from_lists([5, 7.5], [1, 1]).widths_are_integral()


class TestCuttingStockInstance:

    def test_basic(self, simple_csp_instance):
        assert simple_csp_instance.num_items == 4
        assert simple_csp_instance.total_demand == 40
        assert simple_csp_instance.is_integral
        assert simple_csp_instance.max_copies(3) == 7

    def test_l2_lower_bound(self):
        instance = CuttingStockInstance(roll_width=10, item_sizes=[5, 3], item_demands=[3, 2])
        assert instance.l2_lower_bound() == 3

    def test_validation(self):
        with pytest.raises(ValueError):
            CuttingStockInstance(roll_width=10, item_sizes=[5], item_demands=[1, 2])
        with pytest.raises(ValueError):
            CuttingStockInstance(roll_width=0, item_sizes=[5], item_demands=[1])
        with pytest.raises(ValueError):
            CuttingStockInstance(roll_width=10, item_sizes=[11], item_demands=[1])

    def test_build_orders(self):
        instance = CuttingStockInstance(roll_width=10, item_sizes=[5, 3, 5], item_demands=[1, 2, 3])
        orders = instance.build_orders()

        assert len(orders) == 2
        assert orders.find_by_width(5).demand == 4
        assert orders.max_pattern_width == 10
