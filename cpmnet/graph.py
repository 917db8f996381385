from __future__ import annotations

import logging
import numbers
from typing import Dict, Iterable, List, Optional, Tuple

from .config import DuplicatePolicy, SchedulerConfig, UnknownPredecessorPolicy
from .errors import (
    DuplicateActivityError,
    DuplicateActivityWarning,
    NegativeDurationError,
    UnknownPredecessorError,
    UnknownPredecessorWarning,
    ValidationError,
)
from .models import Activity, Graph, Node, ScheduleWarning

logger = logging.getLogger(__name__)


def _validate_activity(activity: Activity) -> int:
    """Check the static fields of one record and return its duration as int."""
    if not isinstance(activity.id, str) or not activity.id.strip():
        raise ValidationError(
            f"Activity ID must be a non-empty string, got {activity.id!r}.", [str(activity.id or "")]
        )

    duration = activity.duration
    if isinstance(duration, bool) or not isinstance(duration, numbers.Integral):
        raise ValidationError(
            f"Activity '{activity.id}' has non-integer duration {duration!r}.", [activity.id]
        )
    if duration < 0:
        raise NegativeDurationError(activity.id, int(duration))
    return int(duration)


def build_graph(
    activities: Iterable[Activity], config: Optional[SchedulerConfig] = None
) -> Tuple[Graph, List[ScheduleWarning]]:
    """
    Validate activity records and construct the dependency graph.

    Every activity gets a dense index in input order. An edge is realised only
    when both endpoints exist; dangling references are reported according to
    `config.unknown_predecessors`.

    Returns:
        Tuple of (graph, non-fatal warnings)

    Raises:
        ValidationError: duplicate ids (under DuplicatePolicy.ERROR), negative or
            non-integer durations, empty ids, or dangling references under
            UnknownPredecessorPolicy.ERROR.
    """
    config = config or SchedulerConfig()
    warnings: List[ScheduleWarning] = []
    records: List[Tuple[Activity, int]] = []
    positions: Dict[str, int] = {}

    for activity in activities:
        duration = _validate_activity(activity)
        position = positions.get(activity.id)
        if position is None:
            positions[activity.id] = len(records)
            records.append((activity, duration))
            continue
        if config.duplicate_ids == DuplicatePolicy.ERROR:
            raise DuplicateActivityError(activity.id)
        logger.warning("Activity %s defined more than once; keeping the last definition.", activity.id)
        warnings.append(DuplicateActivityWarning(activity.id))
        records[position] = (activity, duration)

    graph = Graph(index=positions)
    for node_index, (activity, duration) in enumerate(records):
        graph.nodes.append(
            Node(
                index=node_index,
                id=activity.id,
                description=activity.description or "",
                duration=duration,
                predecessor_ids=tuple(activity.predecessor_ids or ()),
            )
        )
    graph.successors = [[] for _ in graph.nodes]

    for node in graph.nodes:
        for pred_id in dict.fromkeys(node.predecessor_ids):
            pred_index = graph.index.get(pred_id)
            if pred_index is None:
                if config.unknown_predecessors == UnknownPredecessorPolicy.ERROR:
                    raise UnknownPredecessorError(node.id, pred_id)
                logger.warning(
                    "Activity %s lists non-existent predecessor ID %s. Ignoring this dependency.",
                    node.id,
                    pred_id,
                )
                warnings.append(UnknownPredecessorWarning(node.id, pred_id))
                continue
            graph.successors[pred_index].append(node.index)

    logger.debug(
        "Built graph with %d nodes and %d edges.",
        len(graph.nodes),
        sum(len(succ) for succ in graph.successors),
    )
    return graph, warnings
