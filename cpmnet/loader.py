from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd

from .models import Activity

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

CSV_COLUMNS = ["ID", "Description", "Duration", "Predecessors"]


def _is_missing(value: object) -> bool:
    try:
        return value is None or bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _safe_str(value: object) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def _to_int(value: object, activity_id: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Activity '{activity_id}': duration must be an integer, got {value!r}.")
    if isinstance(value, int):
        return value
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValueError(f"Activity '{activity_id}': duration must be an integer, got {value!r}.") from None
    if not number.is_integer():
        raise ValueError(f"Activity '{activity_id}': duration must be an integer, got {value!r}.")
    return int(number)


def split_predecessors(value: object) -> List[str]:
    """Split a 'A;B,C' style cell into ids, dropping blanks and '-' placeholders."""
    if _is_missing(value):
        return []
    parts = [p.strip() for p in re.split(r"[;,]", str(value))]
    return [p for p in parts if p and p not in {"-", "—"}]


def activity_from_record(record: Mapping[str, Any]) -> Activity:
    """
    Build an Activity from one object of the reference input schema.

    Accepts `predecessorIds` (reference schema) or `predecessor_ids`.
    """
    if not isinstance(record, Mapping):
        raise ValueError(f"Activity record must be an object, got {record!r}")
    if "id" not in record or _is_missing(record["id"]):
        raise ValueError(f"Activity record is missing 'id': {dict(record)!r}")
    activity_id = str(record["id"])
    if "duration" not in record or _is_missing(record["duration"]):
        raise ValueError(f"Activity '{activity_id}' is missing 'duration'.")

    predecessors = record.get("predecessorIds", record.get("predecessor_ids"))
    if predecessors is None:
        predecessor_ids: List[str] = []
    elif isinstance(predecessors, str):
        predecessor_ids = split_predecessors(predecessors)
    else:
        predecessor_ids = [str(p) for p in predecessors]

    return Activity(
        id=activity_id,
        description=_safe_str(record.get("description")),
        duration=_to_int(record["duration"], activity_id),
        predecessor_ids=predecessor_ids,
    )


def activities_from_records(records: Iterable[Mapping[str, Any]]) -> List[Activity]:
    return [activity_from_record(record) for record in records]


def load_activities_json(path: PathLike) -> List[Activity]:
    """Load activities from a JSON file holding an array of activity objects."""
    path = Path(path)
    logger.info("Loading activities from %s", path)
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of activities.")
    activities = activities_from_records(data)
    logger.info("Loaded %d activities from %s", len(activities), path)
    return activities


def activities_from_dataframe(df: pd.DataFrame) -> List[Activity]:
    """
    Convert a table with ID / Description / Duration / Predecessors columns.

    Column names are matched case-insensitively; rows with a blank ID are skipped.
    """
    columns: Dict[str, str] = {str(col).strip().lower(): col for col in df.columns}
    missing = [c for c in ("id", "duration") if c not in columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")

    activities: List[Activity] = []
    for _, row in df.iterrows():
        activity_id = _safe_str(row[columns["id"]])
        if not activity_id:
            continue
        duration = row[columns["duration"]]
        if _is_missing(duration):
            raise ValueError(f"Activity '{activity_id}' is missing 'duration'.")
        description = row[columns["description"]] if "description" in columns else ""
        predecessors = row[columns["predecessors"]] if "predecessors" in columns else ""
        activities.append(
            Activity(
                id=activity_id,
                description=_safe_str(description),
                duration=_to_int(duration, activity_id),
                predecessor_ids=split_predecessors(predecessors),
            )
        )
    return activities


def load_activities_csv(path: PathLike) -> List[Activity]:
    path = Path(path)
    logger.info("Loading activities from %s", path)
    df = pd.read_csv(path, dtype=str)
    return activities_from_dataframe(df)


def load_activities(path: PathLike) -> List[Activity]:
    """Load a JSON or CSV file, chosen by extension."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return load_activities_json(path)
    if suffix == ".csv":
        return load_activities_csv(path)
    raise ValueError(f"Unsupported activity file type: '{suffix or path}'. Use .json or .csv.")


def activities_to_dataframe(activities: Iterable[Activity]) -> pd.DataFrame:
    """Get activities list as a pandas DataFrame."""
    data = [
        {
            "ID": act.id,
            "Description": act.description,
            "Duration": act.duration,
            "Predecessors": ";".join(act.predecessor_ids),
        }
        for act in activities
    ]
    return pd.DataFrame(data, columns=CSV_COLUMNS)
