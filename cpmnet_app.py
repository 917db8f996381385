"""
CPM Network Scheduler
=====================
Streamlit front end for the cpmnet engine: load or edit an activity list,
compute earliest/latest times, floats and the critical path, and inspect the
result as a table, network diagram, Gantt chart, Mermaid source or report.
"""

import io
import json

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from cpmnet.config import DuplicatePolicy, SchedulerConfig, UnknownPredecessorPolicy
from cpmnet.engine import CPMScheduler
from cpmnet.errors import CPMError
from cpmnet.loader import (
    CSV_COLUMNS,
    activities_from_dataframe,
    activities_from_records,
    activities_to_dataframe,
)
from cpmnet.mermaid import generate_mermaid_syntax
from cpmnet.ui_components import (
    SAMPLE_PROJECT,
    build_report_html,
    highlight_critical,
    render_failure,
    render_warnings,
)
from cpmnet.ui_styles import THEMES, get_active_theme, get_theme_css
from cpmnet.visualizations import create_gantt_chart, create_network_diagram, create_plotly_gantt


def _load_upload(upload) -> pd.DataFrame:
    if upload.name.lower().endswith(".json"):
        records = json.load(io.TextIOWrapper(upload, encoding="utf-8"))
        return activities_to_dataframe(activities_from_records(records))
    return activities_to_dataframe(activities_from_dataframe(pd.read_csv(upload, dtype=str)))


def main():
    """Main Streamlit application."""

    st.set_page_config(
        page_title="CPM Network Scheduler",
        page_icon="📊",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    if 'activities_df' not in st.session_state:
        st.session_state.activities_df = pd.DataFrame(columns=CSV_COLUMNS)
    if 'result' not in st.session_state:
        st.session_state.result = None
    if 'failure' not in st.session_state:
        st.session_state.failure = None

    with st.sidebar:
        st.header("Appearance")
        theme_name = st.selectbox("Theme", options=list(THEMES.keys()))
        theme = get_active_theme(theme_name)

        st.divider()
        st.header("Load Activities")
        upload = st.file_uploader("JSON or CSV file", type=["json", "csv"])
        if upload is not None and st.button("Import File", use_container_width=True):
            try:
                st.session_state.activities_df = _load_upload(upload)
                st.session_state.result = None
                st.session_state.failure = None
                st.success(f"Loaded {len(st.session_state.activities_df)} activities.")
            except (ValueError, json.JSONDecodeError) as exc:
                st.error(f"Could not read {upload.name}: {exc}")

        if st.button("Load Sample Project", use_container_width=True):
            st.session_state.activities_df = activities_to_dataframe(activities_from_records(SAMPLE_PROJECT))
            st.session_state.result = None
            st.session_state.failure = None
            st.rerun()

        if st.button("Clear All Activities", use_container_width=True, type="secondary"):
            st.session_state.activities_df = pd.DataFrame(columns=CSV_COLUMNS)
            st.session_state.result = None
            st.session_state.failure = None
            st.rerun()

        st.divider()
        st.header("Validation Policy")
        duplicate_policy = st.radio(
            "Duplicate IDs",
            options=[p.value for p in DuplicatePolicy],
            format_func=lambda v: "Reject" if v == "error" else "Last definition wins",
        )
        unknown_policy = st.radio(
            "Unknown predecessors",
            options=[p.value for p in UnknownPredecessorPolicy],
            format_func=lambda v: "Warn and ignore" if v == "warn" else "Reject",
        )

    st.markdown(get_theme_css(theme), unsafe_allow_html=True)
    st.title("📊 CPM Network Scheduler")
    st.markdown("**Critical Path Method - Activity on Node**")

    st.header("Activities")
    st.caption("Predecessors: activity IDs separated by `;` (e.g. `A;B`).")
    edited_df = st.data_editor(
        st.session_state.activities_df,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key="activities_editor",
    )

    if st.button("🔢 Calculate Critical Path & Floats", type="primary", disabled=edited_df.empty):
        config = SchedulerConfig.from_dict(
            {"duplicate_ids": duplicate_policy, "unknown_predecessors": unknown_policy}
        )
        st.session_state.activities_df = edited_df
        try:
            activities = activities_from_dataframe(edited_df)
            st.session_state.result = CPMScheduler(config).calculate(activities)
            st.session_state.failure = None
        except ValueError as exc:
            st.session_state.result = None
            st.session_state.failure = None
            st.error(str(exc))
        except CPMError as exc:
            st.session_state.result = None
            st.session_state.failure = exc

    if st.session_state.failure is not None:
        render_failure(st.session_state.failure)

    result = st.session_state.result
    if result is None or not result.activities:
        st.divider()
        st.caption("CPM Network Scheduler | Activity-on-Node")
        return

    st.divider()
    st.header("📈 Calculation Results")
    render_warnings(result)

    col1, col2, col3 = st.columns(3)
    col1.metric("Project Finish", result.project_finish)
    col2.metric("Activities", len(result.activities))
    col3.metric("Critical Activities", len(result.critical_activity_ids()))

    results_df = result.to_dataframe()
    st.dataframe(results_df.style.apply(highlight_critical(theme), axis=1), use_container_width=True, hide_index=True)

    st.subheader("Critical Path")
    for path in result.critical_paths:
        st.markdown(f"**{' → '.join(path)}**")

    schedule_data = result.to_dict()
    tab1, tab2, tab3, tab4, tab5 = st.tabs(
        ["📊 Network Diagram", "📅 Gantt Chart", "🧜 Mermaid", "📝 Calculation Details", "⬇ Export"]
    )

    with tab1:
        fig = create_network_diagram(schedule_data, theme)
        st.pyplot(fig)
        st.caption("Highlighted nodes and arrows lie on a critical path.")

    with tab2:
        scale = st.radio("Scale", options=["Day", "Week", "Month"], horizontal=True)
        fig = create_gantt_chart(schedule_data, theme, scale)
        st.pyplot(fig)
        st.plotly_chart(create_plotly_gantt(schedule_data, theme), use_container_width=True)
        st.caption("Gray extensions show Total Float available for non-critical activities.")

    with tab3:
        st.code(generate_mermaid_syntax(result), language="mermaid")

    with tab4:
        st.text_area("Calculation Steps", value="\n".join(result.calculation_log), height=500, disabled=True)

    with tab5:
        project_name = st.text_input("Project name", value="Project")
        st.download_button(
            "Download JSON",
            data=json.dumps(result.to_records(), indent=2),
            file_name="schedule.json",
            mime="application/json",
        )
        st.download_button(
            "Download CSV",
            data=results_df.to_csv(index=False),
            file_name="schedule.csv",
            mime="text/csv",
        )
        if st.button("Build HTML Report"):
            report = build_report_html(result, theme, project_name)
            st.download_button("Download Report", data=report, file_name="schedule_report.html", mime="text/html")

    plt.close("all")
    st.divider()
    st.caption("CPM Network Scheduler | Activity-on-Node")


if __name__ == "__main__":
    main()
