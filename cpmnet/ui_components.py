import html
from typing import Dict, Any, List

import pandas as pd
import streamlit as st
import matplotlib.pyplot as plt

from .errors import CPMError, CycleDetectedError
from .models import ScheduleResult
from .visualizations import create_network_diagram, create_gantt_chart, fig_to_base64

SAMPLE_PROJECT = [
    {"id": "A", "description": "Project Planning", "duration": 3, "predecessorIds": []},
    {"id": "B", "description": "Requirements Analysis", "duration": 5, "predecessorIds": ["A"]},
    {"id": "C", "description": "Design", "duration": 4, "predecessorIds": ["B"]},
    {"id": "D", "description": "Development Phase 1", "duration": 8, "predecessorIds": ["C"]},
    {"id": "E", "description": "Development Phase 2", "duration": 6, "predecessorIds": ["C"]},
    {"id": "F", "description": "Testing", "duration": 5, "predecessorIds": ["D", "E"]},
    {"id": "G", "description": "Documentation", "duration": 3, "predecessorIds": ["D"]},
    {"id": "H", "description": "Deployment", "duration": 2, "predecessorIds": ["F", "G"]},
]


def describe_failure(exc: CPMError) -> str:
    """One-line diagnostic for a failed calculation."""
    if isinstance(exc, CycleDetectedError):
        involved = exc.cycle or exc.activity_ids
        return f"Cycle involving activities {', '.join(dict.fromkeys(involved))}. No schedule was computed."
    return exc.message


def render_failure(exc: CPMError) -> None:
    st.error(describe_failure(exc))
    with st.expander("Error details"):
        st.json(exc.to_dict())


def render_warnings(result: ScheduleResult) -> None:
    if not result.warnings:
        return
    with st.expander(f"⚠ {len(result.warnings)} warning(s)", expanded=True):
        for warning in result.warnings:
            st.warning(warning.message)


def highlight_critical(theme: Dict[str, Any]):
    def _style(row: pd.Series) -> List[str]:
        if row['Critical'] == 'Yes':
            return [f"background-color: {theme['critical_soft']}"] * len(row)
        return [''] * len(row)
    return _style


def build_report_html(result: ScheduleResult, theme: Dict[str, Any], project_name: str = "Project") -> str:
    """
    Build a self-contained HTML report for a calculated schedule.
    """
    schedule_data = result.to_dict()
    net_fig = create_network_diagram(schedule_data, theme)
    gantt_fig = create_gantt_chart(schedule_data, theme)

    net_b64 = fig_to_base64(net_fig)
    gantt_b64 = fig_to_base64(gantt_fig)

    plt.close(net_fig)
    plt.close(gantt_fig)

    rows_html = ""
    for act in result.activities:
        style = f"background-color: {theme['critical_soft']}; font-weight: bold;" if act.is_critical else ""
        rows_html += f"""
        <tr style="{style}">
            <td>{html.escape(act.id)}</td>
            <td>{html.escape(act.description)}</td>
            <td>{act.duration}</td>
            <td>{act.es}</td>
            <td>{act.ef}</td>
            <td>{act.ls}</td>
            <td>{act.lf}</td>
            <td>{act.total_float}</td>
            <td>{act.free_float}</td>
            <td>{'Yes' if act.is_critical else 'No'}</td>
        </tr>
        """

    critical_paths_html = "".join(
        f"<li>{' &rarr; '.join(html.escape(a) for a in path)}</li>" for path in result.critical_paths
    )
    warnings_html = "".join(f"<li>{html.escape(w.message)}</li>" for w in result.warnings)
    warnings_section = f"<h2>Warnings</h2><ul>{warnings_html}</ul>" if warnings_html else ""
    title = html.escape(project_name)

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>CPM Report - {title}</title>
        <style>
            body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; color: {theme['ink']}; background: {theme['bg']}; line-height: 1.6; }}
            .container {{ max-width: 1000px; margin: 0 auto; padding: 40px; background: white; }}
            h1 {{ color: {theme['accent']}; border-bottom: 2px solid {theme['accent']}; padding-bottom: 10px; }}
            h2 {{ color: {theme['accent2']}; margin-top: 30px; }}
            table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
            th, td {{ padding: 8px; border: 1px solid #ddd; text-align: left; }}
            th {{ background-color: #f8f9fa; }}
            .img-container {{ text-align: center; margin: 30px 0; }}
            .img-container img {{ max-width: 100%; height: auto; border: 1px solid #ddd; }}
            .summary-box {{ display: flex; gap: 20px; margin: 20px 0; }}
            .summary-item {{ flex: 1; padding: 20px; background: #f8f9fa; border-radius: 8px; text-align: center; }}
            .summary-value {{ font-size: 24px; font-weight: bold; color: {theme['accent']}; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>Schedule Report: {title}</h1>

            <div class="summary-box">
                <div class="summary-item">
                    <div>Project Finish</div>
                    <div class="summary-value">{result.project_finish}</div>
                </div>
                <div class="summary-item">
                    <div>Activities</div>
                    <div class="summary-value">{len(result.activities)}</div>
                </div>
                <div class="summary-item">
                    <div>Critical Activities</div>
                    <div class="summary-value">{len(result.critical_activity_ids())}</div>
                </div>
            </div>

            <h2>Schedule Table</h2>
            <table>
                <thead>
                    <tr>
                        <th>ID</th><th>Description</th><th>Dur</th><th>ES</th><th>EF</th><th>LS</th><th>LF</th><th>TF</th><th>FF</th><th>Crit</th>
                    </tr>
                </thead>
                <tbody>{rows_html}</tbody>
            </table>

            <h2>Critical Path Analysis</h2>
            <ul>{critical_paths_html}</ul>
            {warnings_section}

            <h2>Gantt Chart</h2>
            <div class="img-container">
                <img src="data:image/png;base64,{gantt_b64}" alt="Gantt Chart">
            </div>

            <h2>Network Diagram</h2>
            <div class="img-container">
                <img src="data:image/png;base64,{net_b64}" alt="Network Diagram">
            </div>

            <p style="font-size: 12px; color: #888; margin-top: 40px; text-align: center;">
                Generated {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M')}
            </p>
        </div>
    </body>
    </html>
    """
