"""Errors raised by the scheduling engine and the non-fatal notices it collects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional


class CPMError(Exception):
    """Base exception for all scheduling errors."""

    kind = "cpm_error"

    def __init__(self, message: str, activity_ids: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.message = message
        self.activity_ids: List[str] = list(activity_ids or [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "activity_ids": list(self.activity_ids),
        }


class ValidationError(CPMError):
    """Raised when the activity list cannot be turned into a graph."""

    kind = "validation_error"


class DuplicateActivityError(ValidationError):
    """Raised when two activities share an identifier."""

    kind = "duplicate_activity"

    def __init__(self, activity_id: str):
        super().__init__(f"Activity '{activity_id}' is defined more than once.", [activity_id])


class NegativeDurationError(ValidationError):
    """Raised when an activity has a duration below zero."""

    kind = "negative_duration"

    def __init__(self, activity_id: str, duration: int):
        super().__init__(
            f"Activity '{activity_id}' has negative duration {duration}.", [activity_id]
        )
        self.duration = duration


class UnknownPredecessorError(ValidationError):
    """Raised for a dangling predecessor reference when those are configured to be fatal."""

    kind = "unknown_predecessor"

    def __init__(self, activity_id: str, predecessor_id: str):
        super().__init__(
            f"Activity '{activity_id}' references undefined predecessor '{predecessor_id}'.",
            [activity_id],
        )
        self.predecessor_id = predecessor_id


class CycleDetectedError(CPMError):
    """Raised when the realised dependencies contain a circular chain."""

    kind = "cycle_detected"

    def __init__(self, activity_ids: Iterable[str], cycle: Optional[List[str]] = None, stage: str = "forward"):
        activity_ids = list(activity_ids)
        self.cycle: List[str] = list(cycle or [])
        self.stage = stage
        if self.cycle:
            detail = " -> ".join(self.cycle)
        else:
            detail = ", ".join(activity_ids)
        super().__init__(f"Circular dependency detected: {detail}", activity_ids)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["cycle"] = list(self.cycle)
        data["stage"] = self.stage
        return data


@dataclass(frozen=True)
class UnknownPredecessorWarning:
    """A predecessor reference that was dropped because its target does not exist."""

    activity_id: str
    predecessor_id: str

    @property
    def message(self) -> str:
        return (
            f"Activity '{self.activity_id}' lists non-existent predecessor "
            f"'{self.predecessor_id}'. Ignoring this dependency."
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "unknown_predecessor",
            "activity_id": self.activity_id,
            "predecessor_id": self.predecessor_id,
            "message": self.message,
        }


@dataclass(frozen=True)
class DuplicateActivityWarning:
    """An activity record that replaced an earlier one with the same identifier."""

    activity_id: str

    @property
    def message(self) -> str:
        return f"Activity '{self.activity_id}' is defined more than once. The last definition wins."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "duplicate_activity",
            "activity_id": self.activity_id,
            "message": self.message,
        }
