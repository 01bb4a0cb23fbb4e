#!/usr/bin/env python3
"""
Tests for the JSON state document: field mapping, timestamp validation, load fallbacks,
atomic save, backup import/export.
"""

import json
import os
import sys
import tempfile
import unittest
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import AppState, BankrollConfig, CapitalAdjustment, DailySession, Round
from storage import (
    LOAD_CORRUPTED,
    LOAD_MISSING,
    LOAD_OK,
    ImportValidationError,
    backup_filename,
    export_state,
    import_state,
    load_state,
    save_state,
)

LEGACY_DOC = {
    "config": {
        "initialCapital": 100,
        "currentCapital": 112.5,
        "betPercentage": 1.5,
        "stopLossPercentage": 15,
        "stopWinPercentage": 7.5,
        "dailyGoalPercentage": 5,
    },
    "sessions": [
        {
            "id": "abc",
            "date": "2024-05-10T15:00:00.000Z",
            "startBalance": 100,
            "endBalance": 112.5,
            "profit": 12.5,
            "durationSeconds": 600,
            "rounds": 1,
            "status": "WIN",
            "roundsDetail": [
                {"id": "r1", "timestamp": 1715353200000, "betAmount": 12.5, "multiplier": 2,
                 "win": True, "profit": 12.5, "strategy": "SAQUE_PRECOCE"}
            ],
        }
    ],
    "currentSessionRounds": [],
    "isSessionActive": False,
    "sessionStartTime": None,
    "hasCompletedOnboarding": True,
}


INFINITE_START_DOC = '{"config": {}, "sessions": [], "sessionStartTime": Infinity}'


def _rich_state():
    rnd = Round("r1", 1715353200000, 10.0, 2.0, True, 10.0, "DUAS_APOSTAS")
    sess = DailySession("s1", "2024-05-10T15:00:00+00:00", 100.0, 110.0, 10.0, 300, 1, "WIN", [rnd])
    state = AppState(
        config=BankrollConfig(initial_capital=100.0, current_capital=160.0),
        sessions=[sess],
        has_completed_onboarding=True,
        adjustments=[CapitalAdjustment("a1", 1715356800000, 50.0, "DEPOSIT", 110.0, 160.0)],
        day_opening={"dayKey": "2024-05-10", "balance": 100.0},
    )
    return state


class TestDocumentMapping(unittest.TestCase):

    def test_keys_are_camel_case(self):
        doc = _rich_state().to_dict()
        self.assertIn("currentCapital", doc["config"])
        self.assertIn("roundsDetail", doc["sessions"][0])
        self.assertIn("betAmount", doc["sessions"][0]["roundsDetail"][0])
        self.assertIn("hasCompletedOnboarding", doc)
        self.assertEqual(doc["dayOpening"], {"dayKey": "2024-05-10", "balance": 100.0})
        self.assertEqual(doc["adjustments"][0]["kind"], "DEPOSIT")

    def test_document_survives_reparse(self):
        state = _rich_state()
        again = AppState.from_dict(json.loads(json.dumps(state.to_dict())))
        self.assertEqual(again, state)

    def test_legacy_document_imports(self):
        state = import_state(json.dumps(LEGACY_DOC))
        self.assertAlmostEqual(state.config.current_capital, 112.5)
        self.assertEqual(len(state.sessions), 1)
        self.assertEqual(state.sessions[0].rounds_detail[0].strategy, "SAQUE_PRECOCE")
        self.assertEqual(state.adjustments, [])
        self.assertIsNone(state.day_opening)
        self.assertIsNone(state.session_start_balance)
        self.assertIsNone(state.config.strategy_defaults)

    def test_bad_status_is_recomputed(self):
        doc = json.loads(json.dumps(LEGACY_DOC))
        doc["sessions"][0]["status"] = "GREAT"
        state = import_state(json.dumps(doc))
        self.assertEqual(state.sessions[0].status, "WIN")


class TestConfigRanges(unittest.TestCase):

    def test_defaults_are_editable(self):
        self.assertEqual(BankrollConfig().out_of_range(), {})
        self.assertEqual(BankrollConfig.onboarding_defaults().out_of_range(), {})

    def test_imported_values_outside_ranges_are_reported(self):
        doc = json.loads(json.dumps(LEGACY_DOC))
        doc["config"]["stopLossPercentage"] = 3
        doc["config"]["dailyGoalPercentage"] = 0
        cfg = import_state(json.dumps(doc)).config
        self.assertEqual(cfg.out_of_range(), {"stop_loss_percentage": 3.0, "daily_goal_percentage": 0.0})
        # the stored values stay as imported
        self.assertEqual(cfg.stop_loss_percentage, 3.0)


class TestImportValidation(unittest.TestCase):

    def test_empty(self):
        with self.assertRaises(ImportValidationError):
            import_state("")

    def test_not_json(self):
        with self.assertRaises(ImportValidationError):
            import_state("{not json")

    def test_not_an_object(self):
        with self.assertRaises(ImportValidationError):
            import_state("[1, 2, 3]")

    def test_missing_sessions(self):
        with self.assertRaises(ImportValidationError):
            import_state(json.dumps({"config": {}}))

    def test_missing_config(self):
        with self.assertRaises(ImportValidationError):
            import_state(json.dumps({"sessions": []}))

    def test_bytes_with_bom(self):
        raw = b"\xef\xbb\xbf" + json.dumps(LEGACY_DOC).encode("utf-8")
        self.assertEqual(len(import_state(raw).sessions), 1)

    def test_infinite_start_time(self):
        with self.assertRaises(ImportValidationError):
            import_state(INFINITE_START_DOC)

    def test_round_timestamp_out_of_range(self):
        doc = json.loads(json.dumps(LEGACY_DOC))
        doc["sessions"][0]["roundsDetail"][0]["timestamp"] = 1e20
        with self.assertRaises(ImportValidationError):
            import_state(json.dumps(doc))

    def test_negative_adjustment_timestamp(self):
        doc = json.loads(json.dumps(LEGACY_DOC))
        doc["adjustments"] = [{"id": "a1", "timestamp": -5, "amount": 10, "kind": "DEPOSIT"}]
        with self.assertRaises(ImportValidationError):
            import_state(json.dumps(doc))

    def test_missing_round_timestamp_defaults_to_epoch(self):
        doc = json.loads(json.dumps(LEGACY_DOC))
        del doc["sessions"][0]["roundsDetail"][0]["timestamp"]
        self.assertEqual(import_state(json.dumps(doc)).sessions[0].rounds_detail[0].timestamp, 0)

    def test_error_is_value_error(self):
        self.assertTrue(issubclass(ImportValidationError, ValueError))


class TestStateFile(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "nested", "state.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file(self):
        res = load_state(self.path)
        self.assertEqual(res.status, LOAD_MISSING)
        self.assertFalse(res.state.has_completed_onboarding)
        self.assertFalse(res.corrupted)

    def test_save_then_load(self):
        state = _rich_state()
        self.assertTrue(save_state(state, self.path))
        res = load_state(self.path)
        self.assertEqual(res.status, LOAD_OK)
        self.assertEqual(res.state, state)

    def test_save_leaves_no_temp_files(self):
        save_state(_rich_state(), self.path)
        save_state(_rich_state(), self.path)
        self.assertEqual(os.listdir(os.path.dirname(self.path)), ["state.json"])

    def test_corrupted_file_is_quarantined(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write('{"config": {"currentCapital": 1')
        res = load_state(self.path)
        self.assertEqual(res.status, LOAD_CORRUPTED)
        self.assertTrue(res.corrupted)
        self.assertTrue(res.error)
        self.assertFalse(res.state.has_completed_onboarding)
        self.assertIsNotNone(res.quarantined_path)
        self.assertTrue(os.path.exists(res.quarantined_path))
        # corrupted file left in place
        self.assertTrue(os.path.exists(self.path))

    def test_infinite_start_time_falls_back(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(INFINITE_START_DOC)
        res = load_state(self.path)
        self.assertEqual(res.status, LOAD_CORRUPTED)
        self.assertFalse(res.state.has_completed_onboarding)

    def test_save_without_path_fails(self):
        self.assertFalse(save_state(_rich_state(), ""))


class TestBackup(unittest.TestCase):

    def test_filename(self):
        self.assertEqual(backup_filename(date(2024, 5, 10)), "bankroll_backup_2024-05-10.json")

    def test_export_is_importable(self):
        state = _rich_state()
        name, payload = export_state(state, date(2024, 5, 10))
        self.assertEqual(name, "bankroll_backup_2024-05-10.json")
        self.assertIsInstance(payload, bytes)
        self.assertEqual(import_state(payload), state)


if __name__ == "__main__":
    unittest.main(verbosity=2)
