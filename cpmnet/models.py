from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

from .errors import DuplicateActivityWarning, UnknownPredecessorWarning

UNBOUNDED = sys.maxsize  # Latest times before the backward pass seeds them


@dataclass
class Activity:
    """Represents a project activity as supplied by the caller."""

    id: str
    description: str
    duration: int
    predecessor_ids: List[str] = field(default_factory=list)


@dataclass
class Node:
    """Engine-side copy of an activity, addressed by its dense index."""

    index: int
    id: str
    description: str
    duration: int
    predecessor_ids: Tuple[str, ...] = ()

    # Forward pass results
    es: int = 0  # Early Start
    ef: int = 0  # Early Finish

    # Backward pass results
    ls: int = UNBOUNDED  # Late Start
    lf: int = UNBOUNDED  # Late Finish

    # Float calculations
    total_float: int = 0
    free_float: int = 0

    is_critical: bool = False

    def reset_calculations(self) -> None:
        """Reset all calculated values."""
        self.es = 0
        self.ef = 0
        self.ls = UNBOUNDED
        self.lf = UNBOUNDED
        self.total_float = 0
        self.free_float = 0
        self.is_critical = False


@dataclass
class Graph:
    """
    Arena of nodes plus integer adjacency.

    `successors[i]` lists the indices of the nodes that depend on node `i`.
    `predecessors` stays empty until the backward pass derives it.
    """

    nodes: List[Node] = field(default_factory=list)
    index: Dict[str, int] = field(default_factory=dict)
    successors: List[List[int]] = field(default_factory=list)
    predecessors: List[List[int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, activity_id: str) -> Node:
        return self.nodes[self.index[activity_id]]

    def successor_ids(self, activity_id: str) -> List[str]:
        return [self.nodes[s].id for s in self.successors[self.index[activity_id]]]

    def predecessor_ids(self, activity_id: str) -> List[str]:
        if not self.predecessors:
            return []
        return [self.nodes[p].id for p in self.predecessors[self.index[activity_id]]]

    def edges(self) -> Iterator[Tuple[str, str]]:
        for pred_idx, succ_list in enumerate(self.successors):
            for succ_idx in succ_list:
                yield self.nodes[pred_idx].id, self.nodes[succ_idx].id


@dataclass(frozen=True)
class ScheduledActivity:
    """An activity annotated with its CPM results."""

    id: str
    description: str
    duration: int
    predecessor_ids: Tuple[str, ...]
    es: int
    ef: int
    ls: int
    lf: int
    total_float: int
    free_float: int
    is_critical: bool

    @classmethod
    def from_node(cls, node: Node) -> "ScheduledActivity":
        return cls(
            id=node.id,
            description=node.description,
            duration=node.duration,
            predecessor_ids=tuple(node.predecessor_ids),
            es=node.es,
            ef=node.ef,
            ls=node.ls,
            lf=node.lf,
            total_float=node.total_float,
            free_float=node.free_float,
            is_critical=node.is_critical,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "duration": self.duration,
            "predecessorIds": list(self.predecessor_ids),
            "earliestStart": self.es,
            "earliestFinish": self.ef,
            "latestStart": self.ls,
            "latestFinish": self.lf,
            "totalFloat": self.total_float,
            "freeFloat": self.free_float,
            "isCritical": self.is_critical,
        }


ScheduleWarning = Union[UnknownPredecessorWarning, DuplicateActivityWarning]


@dataclass
class ScheduleResult:
    """Outcome of one successful calculation request."""

    activities: List[ScheduledActivity] = field(default_factory=list)
    project_finish: int = 0
    warnings: List[ScheduleWarning] = field(default_factory=list)
    critical_paths: List[List[str]] = field(default_factory=list)
    calculation_log: List[str] = field(default_factory=list)

    def get(self, activity_id: str) -> Optional[ScheduledActivity]:
        for act in self.activities:
            if act.id == activity_id:
                return act
        return None

    def critical_activity_ids(self) -> List[str]:
        return [act.id for act in self.activities if act.is_critical]

    def realised_edges(self) -> List[Tuple[str, str]]:
        """Dependency edges between activities that are both in the result."""
        known = {act.id for act in self.activities}
        edges: List[Tuple[str, str]] = []
        for act in self.activities:
            for pred_id in dict.fromkeys(act.predecessor_ids):
                if pred_id in known:
                    edges.append((pred_id, act.id))
        return edges

    def critical_edges(self) -> List[Tuple[str, str]]:
        """
        Realised edges that drive a critical path: both ends critical and the
        successor starts exactly when the predecessor finishes.
        """
        by_id = {act.id: act for act in self.activities}
        return [
            (pred_id, succ_id)
            for pred_id, succ_id in self.realised_edges()
            if by_id[pred_id].is_critical
            and by_id[succ_id].is_critical
            and by_id[succ_id].es == by_id[pred_id].ef
        ]

    def to_records(self) -> List[Dict[str, Any]]:
        return [act.to_record() for act in self.activities]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activities": [asdict(act) for act in self.activities],
            "project_finish": self.project_finish,
            "warnings": [w.to_dict() for w in self.warnings],
            "critical_paths": [list(path) for path in self.critical_paths],
            "calculation_log": list(self.calculation_log),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleResult":
        activities = []
        for raw in data.get("activities", []):
            values = dict(raw)
            values["predecessor_ids"] = tuple(values.get("predecessor_ids", ()))
            activities.append(ScheduledActivity(**values))

        warnings: List[ScheduleWarning] = []
        for raw in data.get("warnings", []):
            if raw.get("kind") == "duplicate_activity":
                warnings.append(DuplicateActivityWarning(raw["activity_id"]))
            else:
                warnings.append(UnknownPredecessorWarning(raw["activity_id"], raw["predecessor_id"]))

        return cls(
            activities=activities,
            project_finish=int(data.get("project_finish", 0)),
            warnings=warnings,
            critical_paths=[list(path) for path in data.get("critical_paths", [])],
            calculation_log=list(data.get("calculation_log", [])),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Get calculation results as a pandas DataFrame."""
        data = []
        for act in self.activities:
            data.append(
                {
                    "ID": act.id,
                    "Description": act.description,
                    "Duration": act.duration,
                    "Predecessors": ";".join(act.predecessor_ids),
                    "ES": act.es,
                    "EF": act.ef,
                    "LS": act.ls,
                    "LF": act.lf,
                    "TF": act.total_float,
                    "FF": act.free_float,
                    "Critical": "Yes" if act.is_critical else "No",
                }
            )
        return pd.DataFrame(
            data,
            columns=["ID", "Description", "Duration", "Predecessors", "ES", "EF", "LS", "LF", "TF", "FF", "Critical"],
        )
