from typing import Dict

Theme = Dict[str, str]

THEMES: Dict[str, Theme] = {
    "Daylight": {
        "bg": "#f6f4ef",
        "surface": "#ffffff",
        "ink": "#22262b",
        "muted": "#667080",
        "accent": "#d9534f",
        "accent2": "#3d7f8c",
        "border": "#e0dbd2",
        "critical": "#d9534f",
        "noncritical": "#3d7f8c",
        "node_crit": "#f7c6c4",
        "critical_soft": "#fbe1df",
        "node_noncrit": "#d3ebef",
        "graph_edge": "#bdb5a8",
    },
    "Blueprint": {
        "bg": "#eef3fa",
        "surface": "#ffffff",
        "ink": "#17213a",
        "muted": "#56657d",
        "accent": "#2563eb",
        "accent2": "#1d6f89",
        "border": "#d2ddef",
        "critical": "#ea580c",
        "noncritical": "#1d6f89",
        "node_crit": "#fdd5bd",
        "critical_soft": "#fee6d6",
        "node_noncrit": "#d4e7fb",
        "graph_edge": "#b9c8df",
    },
}

DEFAULT_THEME = "Daylight"

# CSS variables emitted into :root, keyed by theme token.
CSS_VARIABLES = ("bg", "surface", "ink", "muted", "accent", "border")

APP_CSS = """
.stApp { background: var(--cpm-bg); }
[data-testid="stAppViewContainer"] h1,
[data-testid="stAppViewContainer"] h2,
[data-testid="stAppViewContainer"] h3 { color: var(--cpm-ink); }
[data-testid="stMetricLabel"] { color: var(--cpm-muted); }
[data-testid="stSidebar"] { border-right: 1px solid var(--cpm-border); }
[data-testid="stDataFrame"] {
    background: var(--cpm-surface);
    border: 1px solid var(--cpm-border);
    border-radius: 8px;
}
.stButton > button[kind="primary"] { background: var(--cpm-accent); border-color: var(--cpm-accent); }
"""


def get_active_theme(theme_name: str) -> Theme:
    return THEMES.get(theme_name, THEMES[DEFAULT_THEME])


def get_theme_css(theme: Theme) -> str:
    """Page stylesheet with the theme's colours bound to --cpm-* variables."""
    variables = "\n".join(f"    --cpm-{key}: {theme[key]};" for key in CSS_VARIABLES)
    return f"<style>\n:root {{\n{variables}\n}}\n{APP_CSS}</style>\n"
