import unittest

from cpmnet.config import DuplicatePolicy, SchedulerConfig
from cpmnet.engine import CalculationState, CPMScheduler, calculate_schedule
from cpmnet.errors import CycleDetectedError, DuplicateActivityError, UnknownPredecessorWarning
from cpmnet.models import Activity


def make(act_id, duration, preds=(), description=""):
    return Activity(act_id, description or act_id, duration, list(preds))


SAMPLE = [
    make("A", 3),
    make("B", 5, ["A"]),
    make("C", 4, ["B"]),
    make("D", 8, ["C"]),
    make("E", 6, ["C"]),
    make("F", 5, ["D", "E"]),
    make("G", 3, ["D"]),
    make("H", 2, ["F", "G"]),
]


class TestCPMScheduler(unittest.TestCase):
    def test_single_activity(self):
        result = calculate_schedule([make("A", 4)])
        a = result.get("A")

        self.assertEqual((a.es, a.ef, a.ls, a.lf), (0, 4, 0, 4))
        self.assertEqual(a.total_float, 0)
        self.assertEqual(a.free_float, 0)
        self.assertTrue(a.is_critical)
        self.assertEqual(result.project_finish, 4)

    def test_simple_chain(self):
        result = calculate_schedule([make("A", 3), make("B", 2, ["A"]), make("C", 4, ["B"])])
        self.assertEqual(result.project_finish, 9)

        expected = {"A": (0, 3, 0, 3), "B": (3, 5, 3, 5), "C": (5, 9, 5, 9)}
        for act_id, times in expected.items():
            act = result.get(act_id)
            self.assertEqual((act.es, act.ef, act.ls, act.lf), times)
            self.assertEqual(act.total_float, 0)
            self.assertEqual(act.free_float, 0)
            self.assertTrue(act.is_critical)

        self.assertEqual(result.critical_paths, [["A", "B", "C"]])

    def test_diverge_converge(self):
        result = calculate_schedule(
            [make("A", 2), make("B", 3, ["A"]), make("C", 1, ["A"]), make("D", 2, ["B", "C"])]
        )
        self.assertEqual(result.project_finish, 7)

        expected = {
            "A": (0, 2, 0, 2, 0, 0),
            "B": (2, 5, 2, 5, 0, 0),
            "C": (2, 3, 4, 5, 2, 2),
            "D": (5, 7, 5, 7, 0, 0),
        }
        for act_id, values in expected.items():
            act = result.get(act_id)
            self.assertEqual(
                (act.es, act.ef, act.ls, act.lf, act.total_float, act.free_float), values, act_id
            )

        self.assertEqual(result.critical_activity_ids(), ["A", "B", "D"])
        self.assertEqual(result.critical_paths, [["A", "B", "D"]])

    def test_cycle_is_fatal(self):
        scheduler = CPMScheduler()
        with self.assertRaises(CycleDetectedError) as ctx:
            scheduler.calculate([make("A", 1, ["B"]), make("B", 1, ["A"])])

        self.assertEqual(ctx.exception.activity_ids, ["A", "B"])
        self.assertEqual(ctx.exception.cycle, ["A", "B", "A"])
        self.assertEqual(ctx.exception.stage, "forward")
        self.assertEqual(scheduler.state, CalculationState.FAILED)
        self.assertIs(scheduler.failure, ctx.exception)

    def test_cycle_reports_blocked_downstream_activities(self):
        with self.assertRaises(CycleDetectedError) as ctx:
            calculate_schedule(
                [make("S", 1), make("A", 1, ["S", "B"]), make("B", 1, ["A"]), make("C", 1, ["B"])]
            )

        self.assertEqual(ctx.exception.activity_ids, ["A", "B", "C"])
        self.assertEqual(ctx.exception.cycle, ["A", "B", "A"])
        self.assertIn("A -> B -> A", str(ctx.exception))

    def test_self_reference_is_a_cycle(self):
        with self.assertRaises(CycleDetectedError) as ctx:
            calculate_schedule([make("A", 2, ["A"])])
        self.assertEqual(ctx.exception.cycle, ["A", "A"])

    def test_dangling_predecessor_is_a_warning(self):
        result = calculate_schedule([make("B", 3, ["ghost"])])

        self.assertEqual(result.warnings, [UnknownPredecessorWarning("B", "ghost")])
        b = result.get("B")
        self.assertEqual((b.es, b.ef), (0, 3))
        self.assertEqual(b.predecessor_ids, ("ghost",))
        self.assertTrue(any("ghost" in line for line in result.calculation_log))

    def test_duplicate_ids_are_fatal_before_propagation(self):
        scheduler = CPMScheduler()
        with self.assertRaises(DuplicateActivityError) as ctx:
            scheduler.calculate([make("A", 1), make("A", 2)])

        self.assertEqual(ctx.exception.activity_ids, ["A"])
        self.assertEqual(scheduler.state, CalculationState.FAILED)
        self.assertFalse(any("FORWARD PASS" in line for line in scheduler.calculation_log))

    def test_duplicate_ids_last_wins(self):
        config = SchedulerConfig(duplicate_ids=DuplicatePolicy.LAST_WINS)
        result = calculate_schedule([make("A", 3), make("B", 2, ["A"]), make("A", 5)], config)

        self.assertEqual([act.id for act in result.activities], ["A", "B"])
        self.assertEqual(result.get("A").duration, 5)
        self.assertEqual(result.get("B").es, 5)
        self.assertEqual(len(result.warnings), 1)

    def test_invariants_on_sample_network(self):
        result = calculate_schedule(SAMPLE)
        self.assertEqual(result.project_finish, 27)

        for act in result.activities:
            self.assertEqual(act.ef, act.es + act.duration, act.id)
            self.assertEqual(act.lf, act.ls + act.duration, act.id)
            self.assertEqual(act.lf - act.ef, act.ls - act.es, act.id)
            self.assertEqual(act.total_float, act.ls - act.es, act.id)
            self.assertGreaterEqual(act.free_float, 0, act.id)
            self.assertLessEqual(act.free_float, act.total_float, act.id)
            self.assertEqual(act.is_critical, act.total_float == 0, act.id)

        self.assertEqual((result.get("E").total_float, result.get("E").free_float), (2, 2))
        self.assertEqual((result.get("G").total_float, result.get("G").free_float), (2, 2))
        self.assertEqual(result.critical_paths, [["A", "B", "C", "D", "F", "H"]])

    def test_free_float_smaller_than_total_float(self):
        # X feeds Y, which has slack of its own towards the finish.
        result = calculate_schedule([make("L", 10), make("X", 2), make("Y", 3, ["X"])])
        x, y = result.get("X"), result.get("Y")

        self.assertEqual(x.total_float, 5)
        self.assertEqual(x.free_float, 0)
        self.assertEqual(y.total_float, 5)
        self.assertEqual(y.free_float, 5)

    def test_zero_duration_milestone(self):
        result = calculate_schedule([make("A", 3), make("M", 0, ["A"]), make("B", 0)])
        m = result.get("M")
        self.assertEqual(m.es, m.ef)
        self.assertEqual((m.es, m.ls), (3, 3))
        self.assertEqual(result.get("B").ef, 0)

    def test_zero_duration_predecessor_does_not_break_finish(self):
        result = calculate_schedule([make("S", 0), make("A", 4, ["S"])])
        self.assertEqual((result.get("A").es, result.get("A").ef), (0, 4))
        self.assertEqual(result.project_finish, 4)

    def test_multiple_critical_paths(self):
        result = calculate_schedule(
            [make("A", 2), make("B", 2), make("C", 2, ["A"]), make("D", 2, ["B"]), make("E", 2, ["C", "D"])]
        )

        paths = {tuple(p) for p in result.critical_paths}
        self.assertEqual(paths, {("A", "C", "E"), ("B", "D", "E")})

    def test_critical_path_listing_is_capped(self):
        activities = [make("A", 1), make("B", 1), make("C", 1, ["A", "B"]), make("D", 1, ["A", "B"])]
        result = calculate_schedule(activities, SchedulerConfig(max_critical_paths=2))
        self.assertEqual(len(result.critical_paths), 2)

        result = calculate_schedule(activities, SchedulerConfig(build_critical_paths=False))
        self.assertEqual(result.critical_paths, [])
        self.assertTrue(all(act.is_critical for act in result.activities))

    def test_recalculation_is_deterministic(self):
        scheduler = CPMScheduler()
        first = scheduler.calculate(SAMPLE)
        second = scheduler.calculate(list(reversed(SAMPLE)))
        third = calculate_schedule(SAMPLE)

        self.assertEqual(first.activities, third.activities)
        self.assertEqual(
            {act.id: act for act in first.activities},
            {act.id: act for act in second.activities},
        )

    def test_results_keep_input_order(self):
        result = calculate_schedule(list(reversed(SAMPLE)))
        self.assertEqual([act.id for act in result.activities], list("HGFEDCBA"))

    def test_state_progression(self):
        scheduler = CPMScheduler()
        self.assertEqual(scheduler.state, CalculationState.PENDING)
        scheduler.calculate(SAMPLE)
        self.assertEqual(scheduler.state, CalculationState.EVALUATED)
        self.assertIsNone(scheduler.failure)

    def test_empty_input(self):
        scheduler = CPMScheduler()
        result = scheduler.calculate([])
        self.assertEqual(result.activities, [])
        self.assertEqual(result.project_finish, 0)
        self.assertEqual(scheduler.state, CalculationState.EVALUATED)

    def test_calculation_log_covers_all_passes(self):
        result = calculate_schedule(SAMPLE)
        log = "\n".join(result.calculation_log)
        self.assertIn("FORWARD PASS", log)
        self.assertIn("BACKWARD PASS", log)
        self.assertIn("FLOAT CALCULATIONS", log)
        self.assertIn("Project Finish = max(all EF values) = 27", log)


if __name__ == "__main__":
    unittest.main()
