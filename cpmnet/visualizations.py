import io
import base64
from typing import Dict, Any

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import networkx as nx
import pandas as pd
import numpy as np
import plotly.express as px
import plotly.graph_objects as go

import streamlit as st
from .models import ScheduleResult


def _empty_figure(message: str, figsize=(10, 6)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize)
    ax.text(0.5, 0.5, message, ha='center', va='center', fontsize=14)
    ax.axis('off')
    return fig


def build_networkx_graph(result: ScheduleResult) -> nx.DiGraph:
    G = nx.DiGraph()
    for act in result.activities:
        G.add_node(act.id, activity=act)
    for pred_id, succ_id in result.realised_edges():
        G.add_edge(pred_id, succ_id)
    return G


def _layered_positions(result: ScheduleResult, G: nx.DiGraph) -> Dict[str, Any]:
    """Place nodes left to right by ES, spreading ties vertically."""
    try:
        return nx.nx_agraph.graphviz_layout(G, prog='dot', args='-Grankdir=LR')
    except ImportError:
        pass

    columns: Dict[int, list] = {}
    for act in sorted(result.activities, key=lambda a: (a.es, a.id)):
        columns.setdefault(act.es, []).append(act.id)

    pos = {}
    for es, ids in columns.items():
        offset = (len(ids) - 1) / 2
        for row, act_id in enumerate(ids):
            pos[act_id] = (es * 3, (offset - row) * 2)
    return pos


@st.cache_resource(show_spinner="Generating Network Diagram...")
def create_network_diagram(schedule_data: Dict[str, Any], theme: Dict[str, Any]) -> plt.Figure:
    """
    Create a network diagram visualization using NetworkX and Matplotlib.
    Expects schedule_data from ScheduleResult.to_dict() for caching compatibility.
    """
    result = ScheduleResult.from_dict(schedule_data)

    if not result.activities:
        return _empty_figure('No activities to display')

    G = build_networkx_graph(result)

    num_nodes = len(G.nodes())
    dynamic_width = max(14, int(num_nodes * 0.8))
    dynamic_height = max(10, int(num_nodes * 0.5))

    fig, ax = plt.subplots(figsize=(dynamic_width, dynamic_height))
    pos = _layered_positions(result, G)
    activities = {act.id: act for act in result.activities}

    critical_edges = result.critical_edges()
    other_edges = [e for e in G.edges() if e not in critical_edges]

    nx.draw_networkx_edges(G, pos, edgelist=other_edges, edge_color=theme["graph_edge"],
                           arrows=True, arrowsize=20, connectionstyle="arc3,rad=0.1",
                           ax=ax, width=2)
    nx.draw_networkx_edges(G, pos, edgelist=critical_edges, edge_color=theme["critical"],
                           arrows=True, arrowsize=20, connectionstyle="arc3,rad=0.1",
                           ax=ax, width=3)

    critical_nodes = [n for n in G.nodes() if activities[n].is_critical]
    non_critical_nodes = [n for n in G.nodes() if not activities[n].is_critical]

    nx.draw_networkx_nodes(G, pos, nodelist=non_critical_nodes,
                           node_color=theme["node_noncrit"], node_size=3000,
                           node_shape='s', ax=ax)
    nx.draw_networkx_nodes(G, pos, nodelist=critical_nodes,
                           node_color=theme["node_crit"], node_size=3000,
                           node_shape='s', ax=ax, edgecolors=theme["critical"], linewidths=3)

    labels = {}
    for node in G.nodes():
        act = activities[node]
        labels[node] = (
            f"{node}\nD:{act.duration}\nES:{act.es} EF:{act.ef}\n"
            f"LS:{act.ls} LF:{act.lf}\nTF:{act.total_float} FF:{act.free_float}"
        )
    nx.draw_networkx_labels(G, pos, labels, font_size=7, ax=ax)

    legend_elements = [
        mpatches.Patch(facecolor=theme["node_crit"], edgecolor=theme["critical"], linewidth=2, label='Critical Activity'),
        mpatches.Patch(color=theme["node_noncrit"], label='Non-Critical Activity'),
        plt.Line2D([0], [0], color=theme["critical"], linewidth=3, label='Critical Dependency'),
        plt.Line2D([0], [0], color=theme["graph_edge"], linewidth=2, label='Dependency'),
    ]
    ax.legend(handles=legend_elements, loc='upper left', bbox_to_anchor=(1.02, 1), fontsize=8, facecolor='white', frameon=True)
    ax.set_title('Project Network Diagram (Activity on Node)', fontsize=14, fontweight='bold')
    ax.axis('off')
    plt.tight_layout()
    return fig


@st.cache_resource(show_spinner="Generating Static Gantt...")
def create_gantt_chart(schedule_data: Dict[str, Any], theme: Dict[str, Any], scale: str = "Day") -> plt.Figure:
    """
    Create a Gantt chart visualization using Matplotlib.
    """
    result = ScheduleResult.from_dict(schedule_data)
    if not result.activities:
        return _empty_figure('No activities to display', figsize=(12, 6))

    sorted_activities = sorted(result.activities, key=lambda x: (x.es, x.id), reverse=True)

    fig, ax = plt.subplots(figsize=(14, max(6, len(sorted_activities) * 0.5)))
    y_positions = range(len(sorted_activities))

    for i, act in enumerate(sorted_activities):
        bar_color = theme["critical"] if act.is_critical else theme["noncritical"]
        ax.barh(i, act.duration, left=act.es, height=0.6,
                color=bar_color, edgecolor=bar_color, linewidth=2)

        bar_center = act.es + act.duration / 2
        ax.text(bar_center, i, f"{act.id} ({act.duration})",
                ha='center', va='center', color='white', fontweight='bold', fontsize=9)

        if act.total_float > 0:
            ax.barh(i, act.total_float, left=act.ef, height=0.3,
                    color='lightgray', edgecolor='gray', linewidth=1, alpha=0.7)
            ax.text(act.ef + act.total_float / 2, i, f'TF:{act.total_float}',
                    ha='center', va='center', fontsize=7, color='gray')

    ax.set_yticks(list(y_positions))
    ax.set_yticklabels([f"{act.id}: {act.description[:20]}..."
                        if len(act.description) > 20 else f"{act.id}: {act.description}"
                        for act in sorted_activities])

    ax.set_xlabel(f'Time ({scale}s)', fontsize=12)
    ax.set_ylabel('Activities', fontsize=12)
    ax.set_title('Project Gantt Chart', fontsize=14, fontweight='bold')

    max_days = result.project_finish + 1

    if scale == "Week":
        major_ticks = np.arange(0, max_days + 1, 7)
        ax.set_xticks(major_ticks)
        ax.set_xticklabels([f"W{int(t / 7)}" for t in major_ticks])
    elif scale == "Month":
        major_ticks = np.arange(0, max_days + 1, 30)
        ax.set_xticks(major_ticks)
        ax.set_xticklabels([f"M{int(t / 30)}" for t in major_ticks])
    else:
        major_ticks = np.arange(0, max_days + 1, max(1, int(max_days / 20)))
        ax.set_xticks(major_ticks)

    ax.set_xlim(-0.5, max_days)
    ax.grid(axis='x', linestyle='--', alpha=0.7)
    ax.set_axisbelow(True)

    legend_elements = [
        mpatches.Patch(color=theme["critical"], label='Critical Activity'),
        mpatches.Patch(color=theme["noncritical"], label='Non-Critical Activity'),
        mpatches.Patch(color='lightgray', label='Total Float'),
    ]
    ax.legend(handles=legend_elements, loc='upper right')

    ax.axvline(x=result.project_finish, color=theme["critical"], linestyle='--', linewidth=2)
    ax.text(result.project_finish, -0.5, f'Finish {result.project_finish}',
            ha='center', va='top', color=theme["critical"], fontweight='bold')

    plt.tight_layout()
    return fig


@st.cache_data(show_spinner="Generating Interactive Gantt...")
def create_plotly_gantt(schedule_data: Dict[str, Any], theme: Dict[str, Any], start_date: str = "2026-01-05") -> go.Figure:
    """
    Create an interactive Gantt chart using Plotly, one time unit per calendar day.
    """
    result = ScheduleResult.from_dict(schedule_data)
    if not result.activities:
        fig = go.Figure()
        fig.add_annotation(text="No activities to display", x=0.5, y=0.5, showarrow=False)
        fig.update_layout(height=400)
        return fig

    base_date = pd.Timestamp(start_date)
    df = pd.DataFrame(
        [
            {
                "Task": f"{act.id} - {act.description}",
                "Start": base_date + pd.Timedelta(days=int(act.es)),
                "Finish": base_date + pd.Timedelta(days=int(act.ef)),
                "Critical": "Yes" if act.is_critical else "No",
                "ID": act.id,
                "Duration": act.duration,
                "ES": act.es,
                "EF": act.ef,
                "LS": act.ls,
                "LF": act.lf,
                "TF": act.total_float,
                "FF": act.free_float,
            }
            for act in result.activities
        ]
    )

    fig = px.timeline(
        df,
        x_start="Start",
        x_end="Finish",
        y="Task",
        color="Critical",
        color_discrete_map={"Yes": theme["critical"], "No": theme["noncritical"]},
        hover_data=["ID", "Duration", "ES", "EF", "LS", "LF", "TF", "FF"],
    )
    fig.update_yaxes(autorange="reversed")
    fig.update_layout(
        height=max(450, len(df) * 32),
        margin=dict(l=10, r=10, t=30, b=10),
        title="Interactive Gantt Timeline",
        xaxis_title="Calendar Timeline",
        yaxis_title="Activities",
        legend_title="Critical",
        template="plotly_white",
        paper_bgcolor=theme["surface"],
        plot_bgcolor=theme["surface"],
        font=dict(color=theme["ink"], family="Space Grotesk"),
    )
    fig.update_xaxes(gridcolor=theme["border"], tickformat="%b %d", tickangle=-45)
    fig.update_yaxes(gridcolor=theme["border"])
    return fig


def fig_to_base64(fig: plt.Figure) -> str:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=180, bbox_inches="tight")
    buffer.seek(0)
    encoded = base64.b64encode(buffer.read()).decode("utf-8")
    buffer.close()
    return encoded
