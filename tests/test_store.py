#!/usr/bin/env python3
"""
Tests for BankrollStore: onboarding, session flow, capital adjustments, daily lock,
persistence on every mutation and backup restore.
"""

import json
import os
import sys
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from engine import InvalidAmountError, SessionStateError
from models import BankrollConfig, StrategyType
from storage import LOAD_CORRUPTED, ImportValidationError
from store import BankrollStore

UTC = timezone.utc


class Clock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kw):
        self.now = self.now + timedelta(**kw)


def _config(capital=100.0):
    return BankrollConfig(initial_capital=capital, current_capital=capital, bet_percentage=2.0,
                          stop_loss_percentage=15.0, daily_goal_percentage=5.0)


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "state.json")
        self.clock = Clock(datetime(2024, 5, 10, 9, 0, tzinfo=UTC))
        self.store = BankrollStore(self.path, UTC, clock=self.clock)

    def tearDown(self):
        self._tmp.cleanup()

    def reopen(self):
        return BankrollStore(self.path, UTC, clock=self.clock)

    def onboard(self, capital=100.0):
        self.store.complete_onboarding(_config(capital))


class TestOnboarding(StoreTestCase):

    def test_fresh_install_needs_onboarding(self):
        self.assertFalse(self.store.state.has_completed_onboarding)
        self.assertEqual(self.store.load_result.status, "missing")
        self.assertFalse(os.path.exists(self.path))

    def test_onboarding_persists_and_sets_day_opening(self):
        self.onboard(250.0)
        again = self.reopen()
        self.assertTrue(again.state.has_completed_onboarding)
        self.assertAlmostEqual(again.config.current_capital, 250.0)
        self.assertEqual(again.state.day_opening, {"dayKey": "2024-05-10", "balance": 250.0})


class TestSessionFlow(StoreTestCase):

    def test_full_session(self):
        self.onboard()
        self.store.start_session()
        self.clock.advance(seconds=30)
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.clock.advance(seconds=30)
        self.store.add_round(2, 0, False, StrategyType.EARLY_CASHOUT)
        self.clock.advance(seconds=30)
        session = self.store.end_session()

        self.assertAlmostEqual(session.profit, 4.0)
        self.assertEqual(session.duration_seconds, 90)
        self.assertAlmostEqual(session.start_balance, 100.0)
        self.assertAlmostEqual(session.end_balance, 104.0)
        self.assertAlmostEqual(self.store.config.current_capital, 104.0)
        self.assertIs(self.store.last_session(), session)

    def test_every_mutation_is_saved(self):
        self.onboard()
        self.store.start_session()
        self.assertTrue(self.reopen().state.is_session_active)
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.assertEqual(len(self.reopen().state.current_session_rounds), 1)
        self.store.end_session()
        again = self.reopen()
        self.assertFalse(again.state.is_session_active)
        self.assertEqual(len(again.state.sessions), 1)

    def test_double_start_rejected(self):
        self.onboard()
        self.store.start_session()
        with self.assertRaises(SessionStateError):
            self.store.start_session()

    def test_round_without_session_rejected(self):
        self.onboard()
        with self.assertRaises(SessionStateError):
            self.store.add_round(4, 2.0, True, StrategyType.MANUAL)

    def test_bad_bet_leaves_state_untouched(self):
        self.onboard()
        self.store.start_session()
        with self.assertRaises(InvalidAmountError):
            self.store.add_round(0, 2.0, True, StrategyType.MANUAL)
        self.assertEqual(self.store.state.current_session_rounds, [])
        self.assertAlmostEqual(self.store.config.current_capital, 100.0)

    def test_end_without_session_is_noop(self):
        self.onboard()
        self.assertIsNone(self.store.end_session())
        self.assertEqual(self.store.state.sessions, [])

    def test_active_session_survives_restart(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        again = self.reopen()
        self.assertAlmostEqual(again.engine.session_profit, 6.0)
        again.add_round(1, 0, False, StrategyType.MANUAL)
        self.assertAlmostEqual(again.end_session().profit, 5.0)


class TestDailyLock(StoreTestCase):

    def test_goal_locks_day_until_midnight(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.store.end_session()
        self.assertEqual(self.store.lock_status().status, "WIN")

        self.clock.now = datetime(2024, 5, 11, 0, 0, 1, tzinfo=UTC)
        self.assertIsNone(self.store.lock_status().status)

    def test_stop_loss_locks_day(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(15, 0, False, StrategyType.MANUAL)
        self.store.end_session()
        self.assertEqual(self.store.lock_status().status, "LOSS")

    def test_deposit_does_not_unlock_or_count_as_profit(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(15, 0, False, StrategyType.MANUAL)
        self.store.end_session()
        self.store.deposit(100)
        lock = self.store.lock_status()
        self.assertEqual(lock.status, "LOSS")
        self.assertAlmostEqual(lock.start_of_day_capital, 100.0)
        self.assertAlmostEqual(lock.daily_profit, -15.0)

    def test_next_day_opening_recorded_on_load(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.store.end_session()
        self.clock.now = datetime(2024, 5, 11, 8, 0, tzinfo=UTC)
        again = self.reopen()
        self.assertEqual(again.state.day_opening, {"dayKey": "2024-05-11", "balance": 106.0})


class TestCapitalAdjustments(StoreTestCase):

    def test_deposit(self):
        self.onboard()
        adj = self.store.deposit("50")
        self.assertEqual(adj.kind, "DEPOSIT")
        self.assertAlmostEqual(adj.balance_before, 100.0)
        self.assertAlmostEqual(adj.balance_after, 150.0)
        self.assertAlmostEqual(self.store.config.current_capital, 150.0)
        self.assertEqual(len(self.reopen().state.adjustments), 1)

    def test_deposit_must_be_positive(self):
        self.onboard()
        for bad in (0, -5, "x", None):
            with self.assertRaises(InvalidAmountError):
                self.store.deposit(bad)
        self.assertEqual(self.store.state.adjustments, [])

    def test_capital_edit_logged_as_override(self):
        self.onboard()
        cfg = self.store.update_config(current_capital=80.0)
        self.assertAlmostEqual(cfg.current_capital, 80.0)
        adj = self.store.state.adjustments[-1]
        self.assertEqual(adj.kind, "MANUAL_OVERRIDE")
        self.assertAlmostEqual(adj.amount, -20.0)

    def test_non_capital_edit_not_logged(self):
        self.onboard()
        self.store.update_config(bet_percentage=3.0)
        self.assertEqual(self.store.state.adjustments, [])
        self.assertAlmostEqual(self.reopen().config.bet_percentage, 3.0)

    def test_unknown_field_rejected(self):
        self.onboard()
        with self.assertRaises(KeyError):
            self.store.update_config(lucky_number=7)

    def test_capital_edit_mid_session_keeps_profit_honest(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.clock.advance(seconds=10)
        self.store.update_config(current_capital=206.0)
        self.clock.advance(seconds=10)
        session = self.store.end_session()
        self.assertAlmostEqual(session.profit, 6.0)
        self.assertAlmostEqual(session.start_balance, 200.0)
        self.assertAlmostEqual(session.end_balance, 206.0)


class TestCareer(StoreTestCase):

    def test_rank_from_lifetime_profit(self):
        self.onboard(1000.0)
        self.store.start_session()
        self.store.add_round(100, 2.0, True, StrategyType.MANUAL)
        self.store.end_session()
        self.assertAlmostEqual(self.store.lifetime_profit(), 100.0)
        self.assertEqual(self.store.rank().rank.id, "apprentice")

    def test_clear_history(self):
        self.onboard()
        self.store.start_session()
        self.store.add_round(4, 2.5, True, StrategyType.EARLY_CASHOUT)
        self.store.end_session()
        self.store.clear_history()
        self.assertEqual(self.reopen().state.sessions, [])
        self.assertAlmostEqual(self.reopen().config.current_capital, 106.0)


class TestBackupRestore(StoreTestCase):

    def test_export_import_round_trip(self):
        self.onboard()
        self.store.deposit(10)
        name, payload = self.store.export_backup()
        self.assertEqual(name, "bankroll_backup_2024-05-10.json")

        other = BankrollStore(os.path.join(self._tmp.name, "other.json"), UTC, clock=self.clock)
        other.import_backup(payload)
        self.assertEqual(other.state.to_dict(), self.store.state.to_dict())

    def test_invalid_backup_leaves_state_untouched(self):
        self.onboard()
        before = self.store.state.to_dict()
        with self.assertRaises(ImportValidationError):
            self.store.import_backup(b'{"config": {}}')
        self.assertEqual(self.store.state.to_dict(), before)

    def test_infinite_start_time_backup_rejected(self):
        self.onboard()
        before = self.store.state.to_dict()
        with self.assertRaises(ImportValidationError):
            self.store.import_backup(b'{"config": {}, "sessions": [], "sessionStartTime": Infinity}')
        self.assertEqual(self.store.state.to_dict(), before)

    def test_untimed_active_session_can_be_closed(self):
        self.onboard()
        doc = self.store.state.to_dict()
        doc["isSessionActive"] = True
        doc["sessionStartTime"] = None
        self.store.import_backup(json.dumps(doc))
        self.assertTrue(self.store.state.is_session_active)

        self.assertIsNone(self.store.end_session())
        self.assertFalse(self.store.state.is_session_active)
        self.assertEqual(self.store.state.sessions, [])
        self.assertFalse(self.reopen().state.is_session_active)

        self.store.start_session()
        self.assertTrue(self.store.state.is_session_active)

    def test_get_state_is_a_copy(self):
        self.onboard()
        snap = self.store.get_state()
        snap.config.current_capital = 1.0
        self.assertAlmostEqual(self.store.config.current_capital, 100.0)


class TestCorruptedLoad(unittest.TestCase):

    def test_corrupted_file_starts_fresh(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "state.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("garbage")
            store = BankrollStore(path, UTC)
            self.assertEqual(store.load_result.status, LOAD_CORRUPTED)
            self.assertFalse(store.state.has_completed_onboarding)
            # the broken file is not overwritten until the user acts
            with open(path, encoding="utf-8") as f:
                self.assertEqual(f.read(), "garbage")

    def test_state_only_store(self):
        from models import AppState
        store = BankrollStore(state=AppState(), autosave=False)
        store.complete_onboarding(_config())
        self.assertTrue(store.state.has_completed_onboarding)
        self.assertEqual(json.loads(json.dumps(store.state.to_dict()))["config"]["currentCapital"], 100.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
