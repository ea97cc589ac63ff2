"""
Branch-and-price for the one-dimensional cutting stock problem.

Column generation runs at every node of a branch-and-bound tree:

1. Solve the master LP under the node's column bounds
2. Push the duals onto the order widths
3. Ask the PatternGenerator for a new pattern
4. If it returns None, or the pattern does not price out (value <= 1),
   the node LP is optimal; otherwise register the pattern, add it to the
   master and go to 1

A node whose rounded-up LP bound cannot beat the incumbent is pruned. An
integral node LP is a new incumbent; its pattern activities are stored on
the patterns through PatternRegistry.extract_solution. Otherwise the most
fractional pattern column is branched on (x <= floor, x >= ceil).

Patterns accepted at any node persist for the whole solve and stay in the
master; nodes only differ by column bounds.

Usage:
    >>> instance = CuttingStockInstance(roll_width=100, item_sizes=[45, 36], item_demands=[4, 3])
    >>> with BranchAndPrice(instance) as bp:
    ...     solution = bp.solve()
    ...     print(solution.report)
"""

import heapq
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional

from opencsp.config import OpenCSPConfig
from opencsp.config import config as global_config
from opencsp.core.instance import CuttingStockInstance
from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import Pattern, PatternRegistry
from opencsp.master.highs import CuttingStockMaster
from opencsp.master.solution import MasterSolution
from opencsp.pricing.generator import PatternGenerator
from opencsp.solver.solution import BPSolution, BPStatus, CGIteration

logger = logging.getLogger(__name__)


@dataclass
class BPConfig:
    """
    Configuration for cutting stock branch-and-price.

    Attributes:
        max_time: Maximum total time in seconds (0 = unlimited)
        max_nodes: Maximum nodes to process (0 = unlimited)
        cg_max_iterations: Maximum column generation iterations per node
        use_ffd_init: Add First Fit Decreasing patterns to the initial columns
        root_heuristic: Solve the integer master after root column generation
        heuristic_time_limit: Time limit of the root heuristic IP
        big_m: Cost of the artificial master columns
        best_model_path: Write the master model here on each new incumbent
        verbosity: HiGHS output level
    """
    max_time: float = 3600.0
    max_nodes: int = 0
    cg_max_iterations: int = 1000
    use_ffd_init: bool = True
    root_heuristic: bool = True
    heuristic_time_limit: float = 60.0
    big_m: float = 1e6
    best_model_path: Optional[str] = None
    verbosity: int = 0


@dataclass(order=True)
class _Node:
    """Open branch-and-bound node, ordered by LP bound then id."""
    bound: float
    node_id: int
    depth: int = field(compare=False)
    bounds: dict[int, tuple[float, Optional[float]]] = field(compare=False, default_factory=dict)


def homogeneous_patterns(
    orders: OrderWidthRegistry,
    max_pattern_width: float,
) -> list[Pattern]:
    """One pattern per order width, cut as many times as it fits."""
    patterns = []
    for order in orders:
        count = int(math.floor(max_pattern_width / order.width + 1e-9))
        if count > 0:
            patterns.append(Pattern.from_counts(orders, {order.master_row_index: count}))
    return patterns


def ffd_patterns(
    orders: OrderWidthRegistry,
    max_pattern_width: float,
) -> list[Pattern]:
    """
    Patterns of a First Fit Decreasing packing of the full demand.

    FFD sorts pieces by width (decreasing) and puts each piece into the
    first roll with room for it. Equal rolls yield equal patterns.
    """
    pieces = []
    for order in orders:
        pieces.extend([(order.width, order.master_row_index)] * order.demand)
    pieces.sort(key=lambda p: (-p[0], p[1]))

    rolls: list[tuple[float, dict[int, int]]] = []
    for width, row in pieces:
        for i, (used, counts) in enumerate(rolls):
            if used + width <= max_pattern_width + 1e-9:
                counts[row] = counts.get(row, 0) + 1
                rolls[i] = (used + width, counts)
                break
        else:
            rolls.append((width, {row: 1}))

    return [Pattern.from_counts(orders, counts) for _, counts in rolls]


class BranchAndPrice:
    """
    Branch-and-price solver for a cutting stock instance.

    The pattern registry is initialized at the start of solve() and torn
    down by close() (or on leaving a with-block); patterns, the report and
    the incumbent stay readable until then.

    Example:
        >>> bp = BranchAndPrice(instance, BPConfig(max_nodes=100))
        >>> solution = bp.solve()
        >>> print(solution.num_rolls)
        >>> bp.close()

    Attributes:
        instance: The problem instance
        config: Branch-and-price configuration
        settings: Library settings (pricing strategy, tolerances)
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        config: Optional[BPConfig] = None,
        settings: Optional[OpenCSPConfig] = None,
    ):
        self._instance = instance
        self._config = config or BPConfig()
        self._settings = settings or global_config

        self._orders: OrderWidthRegistry = instance.build_orders()
        self._registry = PatternRegistry()
        self._master: Optional[CuttingStockMaster] = None
        self._generator: Optional[PatternGenerator] = None

        self._iteration = 0
        self._pricing_time = 0.0
        self._history: list[CGIteration] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def config(self) -> BPConfig:
        return self._config

    @property
    def orders(self) -> OrderWidthRegistry:
        return self._orders

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    @property
    def master(self) -> Optional[CuttingStockMaster]:
        return self._master

    @property
    def generator(self) -> Optional[PatternGenerator]:
        return self._generator

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Tear down the pattern registry and the master."""
        self._registry.clean_up()
        self._master = None
        self._generator = None

    def __enter__(self) -> 'BranchAndPrice':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _initialize(self) -> None:
        self._registry.clean_up()
        self._orders = self._instance.build_orders()
        self._master = CuttingStockMaster(
            self._orders,
            big_m=self._config.big_m,
            verbosity=self._config.verbosity,
        )
        self._generator = PatternGenerator.from_config(
            self._registry, self._instance.roll_width, self._settings
        )
        self._iteration = 0
        self._pricing_time = 0.0
        self._history = []

        initial = homogeneous_patterns(self._orders, self._instance.roll_width)
        if self._config.use_ffd_init:
            initial.extend(ffd_patterns(self._orders, self._instance.roll_width))

        for pattern in initial:
            if not self._registry.is_duplicate(pattern):
                self._accept(pattern)

        logger.info(
            "Initialized %d order widths, %d initial patterns, %s pricing",
            len(self._orders), self._registry.size, self._generator.strategy.value,
        )

    def _accept(self, pattern: Pattern) -> None:
        self._registry.register(pattern)
        self._master.add_pattern(pattern)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> BPSolution:
        """
        Run branch-and-price.

        Returns:
            BPSolution with the incumbent, bounds and statistics

        Raises:
            RuntimeError: If the root LP cannot be solved
            PricingError: If a pricing subproblem is not solved to optimality
        """
        start_time = time.time()
        self._initialize()

        int_tol = self._settings.get_tolerance("integrality")
        incumbent = float("inf")
        root_lp: Optional[float] = None
        nodes_explored = 0
        nodes_pruned = 0
        max_depth = 0
        next_node_id = 1
        limit_status: Optional[BPStatus] = None

        queue: list[_Node] = [_Node(bound=float("-inf"), node_id=0, depth=0)]

        while queue:
            if self._config.max_time > 0 and time.time() - start_time >= self._config.max_time:
                limit_status = BPStatus.TIME_LIMIT
                logger.info("Time limit reached after %d nodes", nodes_explored)
                break
            if self._config.max_nodes > 0 and nodes_explored >= self._config.max_nodes:
                limit_status = BPStatus.NODE_LIMIT
                logger.info("Node limit reached (%d)", nodes_explored)
                break

            node = heapq.heappop(queue)
            if self._rounded_bound(node.bound) >= incumbent:
                nodes_pruned += 1
                continue

            nodes_explored += 1
            max_depth = max(max_depth, node.depth)

            lp = self._solve_node(node)
            if node.node_id == 0:
                root_lp = lp.objective_value if lp.is_optimal else None

            if not lp.is_optimal or lp.uses_artificials(int_tol):
                logger.debug("Node %d: infeasible", node.node_id)
                nodes_pruned += 1
                continue

            node_bound = self._rounded_bound(lp.objective_value)
            if node_bound >= incumbent:
                logger.debug(
                    "Node %d: pruned, bound %d >= incumbent %g",
                    node.node_id, node_bound, incumbent,
                )
                nodes_pruned += 1
                continue

            if lp.is_integer(int_tol):
                incumbent = float(round(lp.objective_value))
                self._store_incumbent(incumbent, "node %d" % node.node_id)
                continue

            # The heuristic overwrites the master's stored values; lp keeps the LP ones
            if node.node_id == 0 and self._config.root_heuristic:
                incumbent = self._run_root_heuristic(incumbent)
                if node_bound >= incumbent:
                    nodes_pruned += 1
                    continue

            col = self._select_branching_column(lp, int_tol)
            value = lp.column_values[col]
            lower, upper = node.bounds.get(col, (0.0, None))

            left = dict(node.bounds)
            left[col] = (lower, float(math.floor(value)))
            right = dict(node.bounds)
            right[col] = (float(math.ceil(value)), upper)

            logger.debug(
                "Node %d: LP %.4f, branching on column %d = %.4f",
                node.node_id, lp.objective_value, col, value,
            )
            for bounds in (left, right):
                heapq.heappush(queue, _Node(
                    bound=lp.objective_value,
                    node_id=next_node_id,
                    depth=node.depth + 1,
                    bounds=bounds,
                ))
                next_node_id += 1

        return self._build_solution(
            incumbent=incumbent,
            root_lp=root_lp,
            queue=queue,
            limit_status=limit_status,
            nodes_explored=nodes_explored,
            nodes_pruned=nodes_pruned,
            max_depth=max_depth,
            total_time=time.time() - start_time,
        )

    def _solve_node(self, node: _Node) -> MasterSolution:
        """Column generation under the node's bounds."""
        self._master.set_pattern_bounds(node.bounds)
        rc_tol = self._settings.get_tolerance("reduced_cost")
        is_root = node.node_id == 0

        lp = self._master.solve_lp()
        for _ in range(self._config.cg_max_iterations):
            if not lp.is_optimal:
                if is_root:
                    raise RuntimeError(f"Root master LP not solved: {lp.status.name}")
                return lp

            self._master.push_duals(self._orders)
            self._iteration += 1

            pricing_start = time.time()
            pattern = self._generator.generate_pattern(self._orders, self._iteration)
            self._pricing_time += time.time() - pricing_start

            improving = pattern is not None and pattern.pricing_value > 1.0 + rc_tol
            if improving:
                self._accept(pattern)

            self._history.append(CGIteration(
                node=node.node_id,
                iteration=self._iteration,
                master_objective=lp.objective_value,
                pricing_value=pattern.pricing_value if pattern is not None else None,
                pattern_added=improving,
                total_patterns=self._registry.size,
            ))

            if not improving:
                break

            lp = self._master.solve_lp()
        else:
            logger.warning(
                "Node %d: column generation stopped after %d iterations",
                node.node_id, self._config.cg_max_iterations,
            )

        if lp.is_optimal:
            self._master.update_statuses(self._settings.get_tolerance("integrality"))
            logger.debug(
                "Node %d: LP %.6f with %d patterns",
                node.node_id, lp.objective_value, self._registry.size,
            )
        return lp

    def _run_root_heuristic(self, incumbent: float) -> float:
        """Integer master over the root patterns (price-and-branch)."""
        ip = self._master.solve_ip(time_limit=self._config.heuristic_time_limit)
        if ip.objective_value is None or ip.uses_artificials(self._settings.get_tolerance("integrality")):
            return incumbent

        value = float(round(ip.objective_value))
        if value < incumbent:
            self._store_incumbent(value, "root heuristic")
            return value
        return incumbent

    def _store_incumbent(self, value: float, source: str) -> None:
        self._registry.extract_solution(self._master)
        logger.info("New incumbent %g rolls from %s", value, source)
        if self._config.best_model_path:
            self._master.write_model(self._config.best_model_path)

    @staticmethod
    def _select_branching_column(lp: MasterSolution, tol: float) -> int:
        """Most fractional pattern column, lowest index on ties."""
        best_col = -1
        best_frac = 0.0
        for col in sorted(lp.get_fractional_columns(tol)):
            value = lp.column_values[col]
            frac = min(value - math.floor(value), math.ceil(value) - value)
            if frac > best_frac:
                best_frac = frac
                best_col = col
        return best_col

    def _rounded_bound(self, value: float) -> float:
        """Roll counts are integral, so LP bounds round up."""
        if value == float("-inf"):
            return value
        return float(math.ceil(value - self._settings.get_tolerance("integrality")))

    def _build_solution(
        self,
        incumbent: float,
        root_lp: Optional[float],
        queue: list[_Node],
        limit_status: Optional[BPStatus],
        nodes_explored: int,
        nodes_pruned: int,
        max_depth: int,
        total_time: float,
    ) -> BPSolution:
        has_incumbent = incumbent < float("inf")

        # Open nodes carry the LP value of their parent
        if queue:
            lower_bound = min(self._rounded_bound(n.bound) for n in queue)
        elif has_incumbent:
            lower_bound = incumbent
        else:
            lower_bound = float("-inf")
        if has_incumbent:
            lower_bound = min(lower_bound, incumbent)

        if has_incumbent:
            status = BPStatus.OPTIMAL if not queue else BPStatus.FEASIBLE
        elif limit_status is not None:
            status = limit_status
        else:
            status = BPStatus.INFEASIBLE

        patterns: list[tuple[Pattern, int]] = []
        report = ""
        if has_incumbent:
            epsilon = self._settings.get_tolerance("report_epsilon")
            patterns = [
                (p, int(round(p.int_solution)))
                for p in self._registry.active_patterns(epsilon)
            ]
            report = self._registry.report(self._orders, incumbent, epsilon)

        solution = BPSolution(
            status=status,
            objective=incumbent,
            lower_bound=lower_bound,
            root_lp_objective=root_lp,
            patterns=patterns,
            total_patterns=self._registry.size,
            iterations=self._iteration,
            nodes_explored=nodes_explored,
            nodes_pruned=nodes_pruned,
            max_depth=max_depth,
            total_time=total_time,
            pricing_time=self._pricing_time,
            report=report,
            iteration_history=self._history,
        )
        logger.info(
            "Branch-and-price finished: %s, %d nodes, %d patterns, %.2fs",
            status.name, nodes_explored, self._registry.size, total_time,
        )
        return solution


def solve_cutting_stock(
    instance: CuttingStockInstance,
    config: Optional[BPConfig] = None,
    settings: Optional[OpenCSPConfig] = None,
) -> BPSolution:
    """
    Solve a cutting stock instance with branch-and-price.

    The pattern registry is torn down before returning; the solution keeps
    the incumbent patterns and the text report.
    """
    with BranchAndPrice(instance, config, settings) as bp:
        return bp.solve()
