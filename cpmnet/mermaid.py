from __future__ import annotations

import logging
from typing import Dict, List

from .models import ScheduleResult

logger = logging.getLogger(__name__)

CRITICAL_NODE_STYLE = "fill:#f9f,stroke:#333,stroke-width:2px,color:#fff"
CRITICAL_LINK_STYLE = "stroke:#ff0000,stroke-width:4px"


def escape_label(text: str) -> str:
    return (text or "").replace('"', "#quot;").replace("\n", " ")


def node_keys(result: ScheduleResult) -> Dict[str, str]:
    """Map activity ids to positional Mermaid node ids (n0, n1, ...)."""
    return {act.id: f"n{index}" for index, act in enumerate(result.activities)}


def generate_mermaid_syntax(result: ScheduleResult) -> str:
    """
    Generate a Mermaid.js flowchart for a calculated schedule.

    Each node shows the activity id, description, ES/EF, LS/LF, duration and
    both floats. Critical nodes and the edges driving a critical path are
    highlighted.
    """
    if not result.activities:
        return ""

    keys = node_keys(result)
    lines: List[str] = ["graph TD;"]
    for act in result.activities:
        label = (
            f"{escape_label(act.description)}<br>--------------------<br>"
            f"ES:{act.es}  EF:{act.ef}<br>LS:{act.ls}  LF:{act.lf}<br>--------------------<br>"
            f"D:{act.duration} | TF:{act.total_float} | FF:{act.free_float}"
        )
        lines.append(f'    {keys[act.id]}["{escape_label(act.id)}<br>{label}"];')
        if act.is_critical:
            lines.append(f"    style {keys[act.id]} {CRITICAL_NODE_STYLE};")
    lines.append("")

    critical_edges = set(result.critical_edges())
    links: List[str] = []
    link_styles: List[str] = []
    for link_index, edge in enumerate(result.realised_edges()):
        pred_id, succ_id = edge
        links.append(f"    {keys[pred_id]} --> {keys[succ_id]};")
        if edge in critical_edges:
            link_styles.append(f"    linkStyle {link_index} {CRITICAL_LINK_STYLE};")

    syntax = "\n".join(lines + links + link_styles) + "\n"
    logger.debug("Generated Mermaid syntax:\n%s", syntax)
    return syntax
