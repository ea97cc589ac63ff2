"""
Tests for the PatternGenerator.

This module tests:
- Duplicate avoidance with ranked DP candidates
- The degeneracy workaround of the IP strategy
- Exhaustion (None) and its idempotence
- Determinism
"""

import logging

import pytest

from opencsp.config import OpenCSPConfig
from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern, PatternRegistry
from opencsp.master import HIGHS_AVAILABLE
from opencsp.pricing import (
    FormulationError,
    KnapsackSolver,
    PatternGenerator,
    PricingStrategy,
)


class FixedSolver(KnapsackSolver):
    """Returns the same candidate list on every call and records the calls."""

    strategy = PricingStrategy.IP

    def __init__(self, entries_list):
        self.entries_list = entries_list
        self.calls = []

    def _solve_impl(self, subproblem, iteration):
        self.calls.append((subproblem.capacity, subproblem.alternate, iteration))
        return [Pattern(entries=entries) for entries in self.entries_list]


# =============================================================================
# DP strategy
# =============================================================================


class TestDPGeneration:
    """Tests for the DP strategy."""

    def test_returns_best_pattern(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="dp")
        pattern = generator.generate_pattern(three_widths, iteration_count=1)

        assert pattern is not None
        assert pattern.pricing_value == pytest.approx(4.0)
        assert not generator.is_duplicate(pattern)

    def test_does_not_register(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="dp")
        generator.generate_pattern(three_widths, iteration_count=1)
        assert registry.size == 0

    def test_skips_registered_optimum(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="dp")

        first = generator.generate_pattern(three_widths, 1)
        registry.register(first)
        second = generator.generate_pattern(three_widths, 2)

        assert second is not None
        assert not registry.is_duplicate(second)
        assert second.pricing_value == pytest.approx(4.0)
        assert {first.entries, second.entries} == {((0, 2),), ((1, 1), (2, 1))}

    def test_capacity_invariant(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="dp")
        for iteration in range(1, 6):
            pattern = generator.generate_pattern(three_widths, iteration)
            assert pattern.total_width(three_widths) <= 10
            assert all(isinstance(count, int) and count > 0 for _, count in pattern.entries)
            registry.register(pattern)

    def test_exhaustion_is_idempotent(self, registry):
        orders = OrderWidthRegistry.from_lists([10], [3], max_pattern_width=10)
        orders.set_dual_values([1.0])
        generator = PatternGenerator(registry, 10, strategy="dp")

        registry.register(generator.generate_pattern(orders, 1))
        assert generator.generate_pattern(orders, 2) is None
        assert generator.generate_pattern(orders, 3) is None
        assert registry.size == 1

    def test_deterministic(self, three_widths):
        first = PatternGenerator(PatternRegistry(), 10, strategy="dp").generate_pattern(three_widths, 1)
        second = PatternGenerator(PatternRegistry(), 10, strategy="dp").generate_pattern(three_widths, 1)
        assert first.entries == second.entries

    def test_fractional_widths_without_workaround_use(self, registry):
        # The workaround only applies to the IP strategy
        orders = OrderWidthRegistry.from_lists([2.5, 3.3], [1, 1], max_pattern_width=10)
        orders.set_dual_values([1.0, 1.4])
        generator = PatternGenerator(registry, 10, strategy="dp", workaround=True)

        assert generator.generate_pattern(orders, 1).entries == ((1, 3),)


# =============================================================================
# IP strategy and the workaround
# =============================================================================


class TestWorkaround:
    """Tests for the duplicate resolve, using a stub solver."""

    def test_resolves_once_on_duplicate(self, three_widths, registry):
        registry.register(Pattern(entries=((0, 2),)))
        solver = FixedSolver([((0, 2),)])
        generator = PatternGenerator(registry, 10, strategy="ip", solver=solver)

        assert generator.generate_pattern(three_widths, 5) is None
        assert solver.calls == [(10.0, False, 5), (10.5, True, 5)]
        assert generator.num_workaround_solves == 1

    def test_returns_alternate_pattern(self, three_widths, registry):
        registry.register(Pattern(entries=((0, 2),)))

        class Alternating(FixedSolver):
            def _solve_impl(self, subproblem, iteration):
                super()._solve_impl(subproblem, iteration)
                entries = ((1, 1), (2, 1)) if subproblem.alternate else ((0, 2),)
                return [Pattern(entries=entries)]

        generator = PatternGenerator(registry, 10, strategy="ip", solver=Alternating([]))
        pattern = generator.generate_pattern(three_widths, 1)

        assert pattern.entries == ((1, 1), (2, 1))
        assert pattern.alternate

    def test_workaround_disabled(self, three_widths, registry):
        registry.register(Pattern(entries=((0, 2),)))
        solver = FixedSolver([((0, 2),)])
        generator = PatternGenerator(registry, 10, strategy="ip", workaround=False, solver=solver)

        assert generator.generate_pattern(three_widths, 1) is None
        assert len(solver.calls) == 1

    def test_no_resolve_for_new_pattern(self, three_widths, registry):
        solver = FixedSolver([((1, 1), (2, 1))])
        generator = PatternGenerator(registry, 10, strategy="ip", solver=solver)

        assert generator.generate_pattern(three_widths, 1).entries == ((1, 1), (2, 1))
        assert len(solver.calls) == 1

    def test_all_zero_optimum(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="ip", solver=FixedSolver([]))
        assert generator.generate_pattern(three_widths, 1) is None

    def test_warning_logged(self, three_widths, registry, caplog):
        registry.register(Pattern(entries=((0, 2),)))
        generator = PatternGenerator(registry, 10, strategy="ip", solver=FixedSolver([((0, 2),)]))

        with caplog.at_level(logging.WARNING, logger="opencsp.pricing.generator"):
            generator.generate_pattern(three_widths, 1)

        assert "Got duplicate pattern. Looking for alternate." in caplog.text

    def test_fractional_widths_rejected_on_resolve(self, registry):
        orders = OrderWidthRegistry.from_lists([2.5, 3], [1, 1], max_pattern_width=10)
        orders.set_dual_values([1.0, 1.0])
        registry.register(Pattern(entries=((0, 4),)))
        generator = PatternGenerator(registry, 10, strategy="ip", solver=FixedSolver([((0, 4),)]))

        with pytest.raises(FormulationError):
            generator.generate_pattern(orders, 1)


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestIPGeneration:
    """Tests for the IP strategy on HiGHS."""

    def test_returns_optimum(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="ip")
        pattern = generator.generate_pattern(three_widths, 1)

        assert pattern.pricing_value == pytest.approx(4.0)
        assert pattern.total_width(three_widths) <= 10

    def test_duplicate_never_returned(self, three_widths, registry):
        generator = PatternGenerator(registry, 10, strategy="ip")
        first = generator.generate_pattern(three_widths, 1)
        registry.register(first)

        second = generator.generate_pattern(three_widths, 2)
        assert second is None or not registry.is_duplicate(second)

    def test_deterministic(self, three_widths):
        first = PatternGenerator(PatternRegistry(), 10, strategy="ip").generate_pattern(three_widths, 1)
        second = PatternGenerator(PatternRegistry(), 10, strategy="ip").generate_pattern(three_widths, 9)
        assert first.entries == second.entries

    def test_alternate_resolve_deterministic(self, three_widths):
        results = []
        for _ in range(2):
            registry = PatternRegistry()
            generator = PatternGenerator(registry, 10, strategy="ip")
            registry.register(generator.generate_pattern(three_widths, 1))
            second = generator.generate_pattern(three_widths, 2)
            results.append(None if second is None else second.entries)
        assert results[0] == results[1]

    def test_exhaustion_is_idempotent(self, registry):
        orders = OrderWidthRegistry.from_lists([10], [3], max_pattern_width=10)
        orders.set_dual_values([1.0])
        generator = PatternGenerator(registry, 10, strategy="ip")

        registry.register(generator.generate_pattern(orders, 1))
        assert generator.generate_pattern(orders, 2) is None
        assert generator.generate_pattern(orders, 3) is None
        assert registry.size == 1


class TestFromConfig:

    def test_dp(self, registry):
        settings = OpenCSPConfig(pricing_strategy="dp", dp_max_candidates=7)
        generator = PatternGenerator.from_config(registry, 10, settings)

        assert generator.strategy == PricingStrategy.DP
        assert generator.workaround

    @pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
    def test_ip(self, registry):
        settings = OpenCSPConfig(pricing_strategy="ip", workaround=False)
        generator = PatternGenerator.from_config(registry, 10, settings)

        assert generator.strategy == PricingStrategy.IP
        assert not generator.workaround
