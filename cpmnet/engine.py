from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional, Set

from .config import SchedulerConfig
from .errors import CPMError, CycleDetectedError
from .graph import build_graph
from .models import Activity, Graph, ScheduledActivity, ScheduleResult

logger = logging.getLogger(__name__)


class CalculationState(str, Enum):
    PENDING = "pending"
    BUILT = "built"
    FORWARD_DONE = "forward_done"
    BACKWARD_DONE = "backward_done"
    EVALUATED = "evaluated"
    FAILED = "failed"


class CPMScheduler:
    """
    Critical Path Method scheduler for activity-on-node networks.

    Every call to `calculate` builds a fresh graph and runs
    forward pass -> backward pass -> float evaluation once.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        self.config = config or SchedulerConfig()
        self.calculation_log: List[str] = []
        self.state = CalculationState.PENDING
        self.failure: Optional[CPMError] = None
        self.project_duration: int = 0

    def calculate(self, activities: Iterable[Activity]) -> ScheduleResult:
        """
        Perform the full CPM calculation.

        Raises:
            ValidationError: the activity list cannot form a graph
            CycleDetectedError: realised dependencies are circular
        """
        self.calculation_log = []
        self.state = CalculationState.PENDING
        self.failure = None
        self.project_duration = 0

        self._log("=" * 70)
        self._log("CPM CALCULATION")
        self._log("Critical Path Method (Activity-on-Node)")
        self._log("=" * 70)

        try:
            graph, warnings = build_graph(activities, self.config)
            self.state = CalculationState.BUILT
            for warning in warnings:
                self._log(f"WARNING: {warning.message}")

            if not graph.nodes:
                logger.warning("Activity list is empty. Skipping CPM calculations.")
                self._log("No activities defined. Nothing to schedule.")
                self.state = CalculationState.EVALUATED
                return ScheduleResult(warnings=warnings, calculation_log=list(self.calculation_log))

            logger.info("Starting CPM calculations for %d activities.", len(graph))

            self._forward_pass(graph)
            self.state = CalculationState.FORWARD_DONE

            self.project_duration = self._backward_pass(graph)
            self.state = CalculationState.BACKWARD_DONE

            self._calculate_floats(graph)
            critical_paths: List[List[str]] = []
            if self.config.build_critical_paths:
                critical_paths = self._build_critical_paths(graph)
            self.state = CalculationState.EVALUATED
        except CPMError as exc:
            self.state = CalculationState.FAILED
            self.failure = exc
            self._log(f"ERROR: {exc.message}")
            logger.error("CPM calculation failed: %s", exc.message)
            raise

        self._log("")
        self._log("=" * 70)
        self._log("CALCULATION COMPLETE")
        self._log(f"Project Duration: {self.project_duration}")
        if critical_paths:
            self._log(f"Critical Paths: {len(critical_paths)}")
            for idx, path in enumerate(critical_paths, start=1):
                self._log(f"  {idx}. {' -> '.join(path)}")
        self._log("=" * 70)
        logger.info("CPM calculations completed. Project finish: %d.", self.project_duration)

        return ScheduleResult(
            activities=[ScheduledActivity.from_node(node) for node in graph.nodes],
            project_finish=self.project_duration,
            warnings=warnings,
            critical_paths=critical_paths,
            calculation_log=list(self.calculation_log),
        )

    def _log(self, message: str) -> None:
        self.calculation_log.append(message)

    def _forward_pass(self, graph: Graph) -> None:
        """
        Forward pass calculation to determine Early Start (ES) and Early Finish (EF).

        Kahn's algorithm over the successor lists: a node is dequeued only after
        all of its predecessors, so its ES is the running maximum of their EFs.
        """
        self._log("")
        self._log("FORWARD PASS (Calculating ES and EF)")
        self._log("-" * 50)

        for node in graph.nodes:
            node.reset_calculations()
            node.ef = node.duration

        in_degree = [0] * len(graph)
        for succ_list in graph.successors:
            for succ in succ_list:
                in_degree[succ] += 1

        queue: Deque[int] = deque()
        for node in graph.nodes:
            if in_degree[node.index] == 0:
                queue.append(node.index)
                self._log(f"{node.id} (no predecessors): ES = 0, EF = 0 + {node.duration} = {node.ef}")

        processed = 0
        while queue:
            current = graph.nodes[queue.popleft()]
            processed += 1
            logger.debug("Forward pass: processing %s (EF=%d)", current.id, current.ef)

            for succ_idx in graph.successors[current.index]:
                succ = graph.nodes[succ_idx]
                candidate = max(succ.es, current.ef)
                if candidate > succ.es:
                    succ.es = candidate
                    succ.ef = succ.es + succ.duration
                    self._log(
                        f"{succ.id}: ES >= EF({current.id}) = {current.ef} -> "
                        f"ES = {succ.es}, EF = {succ.es} + {succ.duration} = {succ.ef}"
                    )

                in_degree[succ_idx] -= 1
                if in_degree[succ_idx] == 0:
                    queue.append(succ_idx)

        if processed != len(graph):
            stuck = [node.index for node in graph.nodes if in_degree[node.index] > 0]
            logger.error(
                "Forward pass processed %d of %d activities. Cycle detected.", processed, len(graph)
            )
            raise CycleDetectedError(
                [graph.nodes[i].id for i in stuck],
                cycle=self._find_cycle(graph, set(stuck)),
                stage="forward",
            )

    def _backward_pass(self, graph: Graph) -> int:
        """
        Backward pass calculation to determine Late Start (LS) and Late Finish (LF).

        Returns:
            Project finish, the maximum EF over all activities
        """
        project_finish = max(node.ef for node in graph.nodes)

        self._log("")
        self._log("BACKWARD PASS (Calculating LS and LF)")
        self._log("-" * 50)
        self._log(f"Project Finish = max(all EF values) = {project_finish}")

        for node in graph.nodes:
            node.lf = project_finish
            node.ls = project_finish - node.duration

        graph.predecessors = [[] for _ in graph.nodes]
        for pred_idx, succ_list in enumerate(graph.successors):
            for succ_idx in succ_list:
                graph.predecessors[succ_idx].append(pred_idx)
        out_degree = [len(succ_list) for succ_list in graph.successors]

        queue: Deque[int] = deque()
        for node in graph.nodes:
            if out_degree[node.index] == 0:
                queue.append(node.index)
                self._log(
                    f"{node.id} (no successors): LF = {node.lf}, "
                    f"LS = {node.lf} - {node.duration} = {node.ls}"
                )

        processed = 0
        while queue:
            current = graph.nodes[queue.popleft()]
            processed += 1
            logger.debug("Backward pass: processing %s (LS=%d)", current.id, current.ls)

            for pred_idx in graph.predecessors[current.index]:
                pred = graph.nodes[pred_idx]
                candidate = min(pred.lf, current.ls)
                if candidate < pred.lf:
                    pred.lf = candidate
                    pred.ls = pred.lf - pred.duration
                    self._log(
                        f"{pred.id}: LF <= LS({current.id}) = {current.ls} -> "
                        f"LF = {pred.lf}, LS = {pred.lf} - {pred.duration} = {pred.ls}"
                    )

                out_degree[pred_idx] -= 1
                if out_degree[pred_idx] == 0:
                    queue.append(pred_idx)

        if processed != len(graph):
            stuck = [node.index for node in graph.nodes if out_degree[node.index] > 0]
            logger.error(
                "Backward pass processed %d of %d activities. Cycle detected.", processed, len(graph)
            )
            raise CycleDetectedError(
                [graph.nodes[i].id for i in stuck],
                cycle=self._find_cycle(graph, set(stuck)),
                stage="backward",
            )

        return project_finish

    def _calculate_floats(self, graph: Graph) -> None:
        """
        Calculate Total Float (TF), Free Float (FF) and the critical flag.
        """
        self._log("")
        self._log("FLOAT CALCULATIONS")
        self._log("-" * 50)

        for node in graph.nodes:
            node.total_float = node.ls - node.es

            succ_list = graph.successors[node.index]
            if succ_list:
                next_start = min(graph.nodes[s].es for s in succ_list)
                source = "min(ES of successors)"
            else:
                # A sink is bounded only by the project finish, so FF equals TF.
                next_start = node.lf
                source = "LF (no successors)"
            node.free_float = max(0, next_start - node.ef)
            node.is_critical = node.total_float == 0

            self._log(
                f"{node.id}: TF = LS - ES = {node.ls} - {node.es} = {node.total_float}; "
                f"FF = {source} - EF = {next_start} - {node.ef} -> {node.free_float}"
                + (" -> CRITICAL" if node.is_critical else "")
            )
            logger.debug(
                "Activity %s: TF=%d, FF=%d, Critical=%s",
                node.id,
                node.total_float,
                node.free_float,
                node.is_critical,
            )

    def _build_critical_paths(self, graph: Graph) -> List[List[str]]:
        """Build sequential representations of the critical paths."""
        critical = {node.index for node in graph.nodes if node.is_critical}
        if not critical:
            return []

        def order_key(idx: int):
            return graph.nodes[idx].es, graph.nodes[idx].id

        links: Dict[int, List[int]] = {}
        incoming: Set[int] = set()
        for pred_idx in critical:
            pred = graph.nodes[pred_idx]
            succ_list = [
                s for s in graph.successors[pred_idx]
                if s in critical and graph.nodes[s].es == pred.ef
            ]
            links[pred_idx] = sorted(succ_list, key=order_key)
            incoming.update(succ_list)

        start_nodes = sorted((idx for idx in critical if idx not in incoming), key=order_key)
        limit = self.config.max_critical_paths
        paths: List[List[str]] = []

        stack = [(start, [start]) for start in reversed(start_nodes)]
        while stack and len(paths) < limit:
            node_idx, path = stack.pop()
            successors = links.get(node_idx, [])
            if not successors:
                paths.append([graph.nodes[i].id for i in path])
                continue
            for succ_idx in reversed(successors):
                stack.append((succ_idx, path + [succ_idx]))

        if stack:
            logger.warning("Critical path enumeration stopped after %d paths.", limit)
            self._log(f"Critical path listing truncated at {limit} paths.")
        return paths

    @staticmethod
    def _find_cycle(graph: Graph, candidates: Set[int]) -> List[str]:
        """Find one closed loop among the nodes a pass could not process."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color = {idx: WHITE for idx in candidates}

        for start in sorted(candidates):
            if color[start] != WHITE:
                continue
            path: List[int] = [start]
            iters = [iter(graph.successors[start])]
            color[start] = GRAY
            while iters:
                for succ in iters[-1]:
                    if succ not in candidates:
                        continue
                    if color[succ] == GRAY:
                        loop = path[path.index(succ):] + [succ]
                        return [graph.nodes[i].id for i in loop]
                    if color[succ] == WHITE:
                        color[succ] = GRAY
                        path.append(succ)
                        iters.append(iter(graph.successors[succ]))
                        break
                else:
                    color[path.pop()] = BLACK
                    iters.pop()
        return []


def calculate_schedule(
    activities: Iterable[Activity], config: Optional[SchedulerConfig] = None
) -> ScheduleResult:
    """Run one calculation request with a throwaway scheduler."""
    return CPMScheduler(config).calculate(activities)
