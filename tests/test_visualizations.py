import unittest

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from cpmnet.engine import calculate_schedule  # noqa: E402
from cpmnet.errors import CycleDetectedError, DuplicateActivityError  # noqa: E402
from cpmnet.models import Activity  # noqa: E402
from cpmnet.ui_components import build_report_html, describe_failure, highlight_critical  # noqa: E402
from cpmnet.ui_styles import DEFAULT_THEME, THEMES, get_active_theme, get_theme_css  # noqa: E402
from cpmnet.visualizations import (  # noqa: E402
    build_networkx_graph,
    create_gantt_chart,
    create_network_diagram,
    fig_to_base64,
)


class TestVisualizations(unittest.TestCase):
    def setUp(self):
        self.result = calculate_schedule(
            [Activity("A", "Dig", 2), Activity("B", "Pour", 3, ["A"]), Activity("C", "Order", 1, ["A", "ghost"])]
        )
        self.theme = get_active_theme(DEFAULT_THEME)

    def tearDown(self):
        plt.close("all")

    def test_networkx_graph_uses_realised_edges(self):
        G = build_networkx_graph(self.result)
        self.assertEqual(sorted(G.nodes()), ["A", "B", "C"])
        self.assertEqual(sorted(G.edges()), [("A", "B"), ("A", "C")])

    def test_figures_render(self):
        data = self.result.to_dict()
        for fig in (create_network_diagram(data, self.theme), create_gantt_chart(data, self.theme, "Week")):
            self.assertIsInstance(fig, plt.Figure)
            self.assertTrue(fig_to_base64(fig))

    def test_theme_css_binds_palette_variables(self):
        css = get_theme_css(get_active_theme("unknown"))
        self.assertIn("--cpm-accent: #d9534f;", css)
        self.assertTrue(css.startswith("<style>") and css.rstrip().endswith("</style>"))

    def test_report_and_row_styles_for_every_theme(self):
        df = self.result.to_dataframe()
        for name, theme in THEMES.items():
            with self.subTest(theme=name):
                report = build_report_html(self.result, theme, "Site <works>")
                self.assertIn("Site &lt;works&gt;", report)
                self.assertIn(theme["accent2"], report)
                styles = highlight_critical(theme)(df.iloc[0])
                self.assertEqual(styles[0], f"background-color: {theme['critical_soft']}")

    def test_failure_descriptions(self):
        message = describe_failure(CycleDetectedError(["A", "B", "C"], cycle=["A", "B", "A"]))
        self.assertEqual(message, "Cycle involving activities A, B. No schedule was computed.")
        self.assertIn("more than once", describe_failure(DuplicateActivityError("A")))


if __name__ == "__main__":
    unittest.main()
