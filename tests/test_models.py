import json
import unittest

from cpmnet.config import DuplicatePolicy, SchedulerConfig, UnknownPredecessorPolicy
from cpmnet.engine import calculate_schedule
from cpmnet.errors import CycleDetectedError, DuplicateActivityWarning, NegativeDurationError
from cpmnet.models import Activity, ScheduleResult


class TestScheduleResult(unittest.TestCase):
    def setUp(self):
        self.result = calculate_schedule(
            [Activity("A", "Dig", 2), Activity("B", "Pour", 3, ["A"]), Activity("C", "Order", 1, ["A", "ghost"])]
        )

    def test_records_follow_reference_schema(self):
        record = self.result.to_records()[2]
        self.assertEqual(
            record,
            {
                "id": "C",
                "description": "Order",
                "duration": 1,
                "predecessorIds": ["A", "ghost"],
                "earliestStart": 2,
                "earliestFinish": 3,
                "latestStart": 4,
                "latestFinish": 5,
                "totalFloat": 2,
                "freeFloat": 2,
                "isCritical": False,
            },
        )

    def test_dict_payload_survives_json(self):
        payload = json.loads(json.dumps(self.result.to_dict()))
        restored = ScheduleResult.from_dict(payload)

        self.assertEqual(restored.activities, self.result.activities)
        self.assertEqual(restored.warnings, self.result.warnings)
        self.assertEqual(restored.critical_paths, self.result.critical_paths)
        self.assertEqual(restored.project_finish, 5)

    def test_dataframe(self):
        df = self.result.to_dataframe()
        self.assertEqual(list(df["ID"]), ["A", "B", "C"])
        self.assertEqual(list(df["Critical"]), ["Yes", "Yes", "No"])
        self.assertEqual(df.loc[2, "Predecessors"], "A;ghost")

    def test_realised_edges_skip_missing_ids(self):
        self.assertEqual(self.result.realised_edges(), [("A", "B"), ("A", "C")])

    def test_critical_edges_require_driving_link(self):
        result = calculate_schedule(
            [Activity("A", "", 2), Activity("B", "", 3, ["A"]), Activity("D", "", 1, ["A", "B"])]
        )
        self.assertEqual(result.critical_activity_ids(), ["A", "B", "D"])
        self.assertEqual(result.critical_edges(), [("A", "B"), ("B", "D")])


class TestErrorsAndConfig(unittest.TestCase):
    def test_error_payloads(self):
        cycle = CycleDetectedError(["A", "B"], cycle=["A", "B", "A"])
        self.assertEqual(
            cycle.to_dict(),
            {
                "error": "cycle_detected",
                "message": "Circular dependency detected: A -> B -> A",
                "activity_ids": ["A", "B"],
                "cycle": ["A", "B", "A"],
                "stage": "forward",
            },
        )
        self.assertEqual(NegativeDurationError("X", -2).to_dict()["error"], "negative_duration")
        self.assertEqual(DuplicateActivityWarning("A").to_dict()["kind"], "duplicate_activity")

    def test_config_from_dict(self):
        config = SchedulerConfig.from_dict({"duplicate_ids": "last_wins", "unknown_predecessors": "error"})
        self.assertEqual(config.duplicate_ids, DuplicatePolicy.LAST_WINS)
        self.assertEqual(config.unknown_predecessors, UnknownPredecessorPolicy.ERROR)
        self.assertTrue(config.build_critical_paths)

    def test_config_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            SchedulerConfig.from_dict({"duplicates": "error"})
        with self.assertRaises(ValueError):
            SchedulerConfig.from_dict({"duplicate_ids": "merge"})
        with self.assertRaises(ValueError):
            SchedulerConfig(max_critical_paths=0)


if __name__ == "__main__":
    unittest.main()
