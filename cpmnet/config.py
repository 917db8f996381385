from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping


class DuplicatePolicy(str, Enum):
    """What to do when two input records share an identifier."""

    ERROR = "error"
    LAST_WINS = "last_wins"


class UnknownPredecessorPolicy(str, Enum):
    """What to do with a predecessor reference to an id missing from the input."""

    WARN = "warn"
    ERROR = "error"


@dataclass
class SchedulerConfig:
    duplicate_ids: DuplicatePolicy = DuplicatePolicy.ERROR
    unknown_predecessors: UnknownPredecessorPolicy = UnknownPredecessorPolicy.WARN
    build_critical_paths: bool = True
    max_critical_paths: int = 100

    def __post_init__(self) -> None:
        self.duplicate_ids = DuplicatePolicy(self.duplicate_ids)
        self.unknown_predecessors = UnknownPredecessorPolicy(self.unknown_predecessors)
        if int(self.max_critical_paths) < 1:
            raise ValueError("max_critical_paths must be at least 1.")
        self.max_critical_paths = int(self.max_critical_paths)
        self.build_critical_paths = bool(self.build_critical_paths)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SchedulerConfig":
        """
        Build a config from plain values, e.g. parsed from JSON or widget state.

        Enum fields accept their string values. Unknown keys raise ValueError.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown scheduler option(s): {', '.join(unknown)}")
        return cls(**dict(data))
