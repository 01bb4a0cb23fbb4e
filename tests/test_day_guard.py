#!/usr/bin/env python3
"""
Tests for the daily lock: calendar-day window, start-of-day capital, WIN/LOSS closure.
"""

import os
import sys
import unittest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from day_guard import (
    LOCK_LOSS,
    LOCK_WIN,
    day_bounds,
    day_key,
    evaluate_lock,
    format_countdown,
    parse_iso,
    roll_day_opening,
    seconds_until_reset,
    sessions_on_day,
    start_of_day_capital,
)
from models import AppState, BankrollConfig, CapitalAdjustment, DailySession, status_for_profit

UTC = timezone.utc
NOW = datetime(2024, 5, 10, 15, 0, 0, tzinfo=UTC)


def _ms(dt):
    return int(dt.timestamp() * 1000)


def _session(profit, when, start=100.0):
    return DailySession(
        id=f"s-{when.isoformat()}",
        date=when.isoformat(),
        start_balance=start,
        end_balance=start + profit,
        profit=profit,
        duration_seconds=600,
        rounds=1,
        status=status_for_profit(profit),
    )


def _state(current, sessions=(), goal=5.0, stop=15.0):
    cfg = BankrollConfig(
        initial_capital=100.0,
        current_capital=current,
        daily_goal_percentage=goal,
        stop_loss_percentage=stop,
    )
    return AppState(config=cfg, sessions=list(sessions), has_completed_onboarding=True)


class TestDayWindow(unittest.TestCase):

    def test_bounds_are_local_midnights(self):
        start, end = day_bounds(NOW, UTC)
        self.assertEqual(start, datetime(2024, 5, 10, tzinfo=UTC))
        self.assertEqual(end, datetime(2024, 5, 11, tzinfo=UTC))

    def test_day_key_follows_zone(self):
        brt = timezone(timedelta(hours=-3))
        late = datetime(2024, 5, 11, 1, 0, tzinfo=UTC)
        self.assertEqual(day_key(late, UTC), "2024-05-11")
        self.assertEqual(day_key(late, brt), "2024-05-10")

    def test_sessions_outside_today_are_ignored(self):
        sessions = [
            _session(3.0, datetime(2024, 5, 9, 23, 59, tzinfo=UTC)),
            _session(2.0, datetime(2024, 5, 10, 0, 0, tzinfo=UTC)),
            _session(1.0, datetime(2024, 5, 11, 0, 0, tzinfo=UTC)),
        ]
        today = sessions_on_day(sessions, NOW, UTC)
        self.assertEqual([s.profit for s in today], [2.0])

    def test_sessions_bucketed_in_configured_zone(self):
        brt = timezone(timedelta(hours=-3))
        # 02:00 UTC on the 10th is still the 9th in UTC-3
        sessions = [_session(3.0, datetime(2024, 5, 10, 2, 0, tzinfo=UTC))]
        self.assertEqual(sessions_on_day(sessions, NOW, brt), [])
        self.assertEqual(len(sessions_on_day(sessions, NOW, UTC)), 1)

    def test_parse_iso_accepts_z_suffix_and_naive(self):
        self.assertEqual(parse_iso("2024-05-10T12:00:00.000Z"), datetime(2024, 5, 10, 12, tzinfo=UTC))
        self.assertEqual(parse_iso("2024-05-10T12:00:00"), datetime(2024, 5, 10, 12, tzinfo=UTC))
        self.assertIsNone(parse_iso("yesterday"))
        self.assertIsNone(parse_iso(""))

    def test_countdown(self):
        self.assertEqual(seconds_until_reset(NOW, UTC), 9 * 3600)
        self.assertEqual(format_countdown(3725), "1h 2m 5s")
        self.assertEqual(format_countdown(-1), "0h 0m 0s")

    def test_countdown_on_dst_change(self):
        ny = ZoneInfo("America/New_York")
        # clocks jump from 02:00 to 03:00 local on 2024-03-10
        now = datetime(2024, 3, 10, 0, 30, tzinfo=ny)
        self.assertEqual(seconds_until_reset(now, ny), 22 * 3600 + 30 * 60)


class TestLockEvaluation(unittest.TestCase):

    def test_goal_reached_over_several_sessions_locks_win(self):
        when = [datetime(2024, 5, 10, h, 0, tzinfo=UTC) for h in (9, 11, 13)]
        sessions = [_session(2.0, when[0]), _session(2.0, when[1]), _session(1.5, when[2])]
        lock = evaluate_lock(_state(105.5, sessions), NOW, UTC)
        self.assertAlmostEqual(lock.start_of_day_capital, 100.0)
        self.assertAlmostEqual(lock.daily_goal, 5.0)
        self.assertAlmostEqual(lock.daily_profit, 5.5)
        self.assertEqual(lock.status, LOCK_WIN)
        self.assertTrue(lock.locked)
        self.assertEqual(lock.sessions_today, 3)

    def test_below_goal_stays_open(self):
        sessions = [_session(4.0, datetime(2024, 5, 10, 9, tzinfo=UTC))]
        lock = evaluate_lock(_state(104.0, sessions), NOW, UTC)
        self.assertIsNone(lock.status)
        self.assertFalse(lock.locked)

    def test_stop_loss_locks_loss(self):
        sessions = [_session(-15.0, datetime(2024, 5, 10, 9, tzinfo=UTC))]
        lock = evaluate_lock(_state(85.0, sessions), NOW, UTC)
        self.assertAlmostEqual(lock.daily_stop_loss, -15.0)
        self.assertEqual(lock.status, LOCK_LOSS)

    def test_yesterdays_loss_does_not_lock_today(self):
        sessions = [_session(-30.0, datetime(2024, 5, 9, 20, tzinfo=UTC))]
        lock = evaluate_lock(_state(70.0, sessions), NOW, UTC)
        self.assertIsNone(lock.status)
        self.assertEqual(lock.daily_profit, 0)

    def test_no_sessions_is_open(self):
        lock = evaluate_lock(_state(100.0), NOW, UTC)
        self.assertIsNone(lock.status)
        self.assertEqual(lock.sessions_today, 0)

    def test_win_overrides_loss_when_both_hold(self):
        # negative goal and zero stop make both conditions true at once
        sessions = [_session(-0.5, datetime(2024, 5, 10, 9, tzinfo=UTC))]
        lock = evaluate_lock(_state(99.5, sessions, goal=-1.0, stop=0.0), NOW, UTC)
        self.assertEqual(lock.status, LOCK_WIN)

    def test_deposit_today_is_not_counted_as_start_capital_shift(self):
        sessions = [_session(5.5, datetime(2024, 5, 10, 9, tzinfo=UTC))]
        state = _state(155.5, sessions)
        state.adjustments.append(
            CapitalAdjustment("d1", _ms(datetime(2024, 5, 10, 12, tzinfo=UTC)), 50.0, "DEPOSIT", 105.5, 155.5)
        )
        self.assertAlmostEqual(start_of_day_capital(state, 5.5, NOW, UTC), 100.0)
        self.assertEqual(evaluate_lock(state, NOW, UTC).status, LOCK_WIN)

    def test_stored_day_opening_wins_over_back_out(self):
        sessions = [_session(5.5, datetime(2024, 5, 10, 9, tzinfo=UTC))]
        state = _state(105.5, sessions)
        state.day_opening = {"dayKey": "2024-05-10", "balance": 200.0}
        lock = evaluate_lock(state, NOW, UTC)
        self.assertAlmostEqual(lock.start_of_day_capital, 200.0)
        self.assertAlmostEqual(lock.daily_goal, 10.0)
        self.assertIsNone(lock.status)

    def test_stale_day_opening_is_ignored(self):
        state = _state(105.5, [_session(5.5, datetime(2024, 5, 10, 9, tzinfo=UTC))])
        state.day_opening = {"dayKey": "2024-05-09", "balance": 200.0}
        self.assertAlmostEqual(evaluate_lock(state, NOW, UTC).start_of_day_capital, 100.0)



class TestLockBoundaries(unittest.TestCase):
    """Both thresholds are inclusive; anything strictly between leaves the day open."""

    def _state_with_profit(self, profit):
        state = _state(200.0 + profit, [_session(profit, NOW - timedelta(hours=1), start=200.0)],
                       goal=5.0, stop=10.0)
        state.day_opening = {"dayKey": "2024-05-10", "balance": 200.0}
        return state

    def setUp(self):
        open_lock = evaluate_lock(self._state_with_profit(0.0), NOW, UTC)
        self.goal = open_lock.daily_goal
        self.stop = open_lock.daily_stop_loss
        self.assertAlmostEqual(self.goal, 10.0)
        self.assertAlmostEqual(self.stop, -20.0)

    def test_exact_goal_locks_win(self):
        self.assertEqual(evaluate_lock(self._state_with_profit(self.goal), NOW, UTC).status, LOCK_WIN)

    def test_exact_stop_loss_locks_loss(self):
        self.assertEqual(evaluate_lock(self._state_with_profit(self.stop), NOW, UTC).status, LOCK_LOSS)

    def test_between_thresholds_is_open(self):
        for profit in (self.goal - 0.01, 0.0, self.stop + 0.01):
            lock = evaluate_lock(self._state_with_profit(profit), NOW, UTC)
            self.assertIsNone(lock.status, profit)
            self.assertFalse(lock.locked)

class TestRollDayOpening(unittest.TestCase):

    def test_records_once_per_day(self):
        state = _state(105.5, [_session(5.5, datetime(2024, 5, 10, 9, tzinfo=UTC))])
        self.assertTrue(roll_day_opening(state, NOW, UTC))
        self.assertEqual(state.day_opening, {"dayKey": "2024-05-10", "balance": 100.0})
        self.assertFalse(roll_day_opening(state, NOW + timedelta(hours=2), UTC))

    def test_new_day_replaces_opening(self):
        state = _state(120.0)
        state.day_opening = {"dayKey": "2024-05-09", "balance": 100.0}
        self.assertTrue(roll_day_opening(state, NOW, UTC))
        self.assertEqual(state.day_opening["balance"], 120.0)

    def test_live_session_profit_is_excluded(self):
        from engine import SessionEngine, build_round
        state = _state(100.0)
        eng = SessionEngine(state)
        eng.start(_ms(NOW))
        eng.add_round(build_round(10, 1.5, True, ts_ms=_ms(NOW)))
        state.day_opening = None
        roll_day_opening(state, NOW, UTC)
        self.assertAlmostEqual(state.day_opening["balance"], 100.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
