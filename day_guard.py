# day_guard.py — calendar-day window, start-of-day capital and the WIN/LOSS day lock
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple

from models import AppState, DailySession

# ----------------------------- Tunables -----------------------------

DEFAULT_GOAL_PCT = 5.0

LOCK_WIN = "WIN"
LOCK_LOSS = "LOSS"


# ----------------------------- Day window -----------------------------

def parse_iso(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def day_bounds(now: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """[local midnight, next local midnight) containing `now`, as aware datetimes."""
    local = now.astimezone(tz)
    start = datetime.combine(local.date(), time(0, 0), tzinfo=tz)
    end = datetime.combine(local.date() + timedelta(days=1), time(0, 0), tzinfo=tz)
    return start, end


def day_key(now: datetime, tz: tzinfo) -> str:
    return now.astimezone(tz).date().isoformat()


def sessions_on_day(sessions: List[DailySession], now: datetime, tz: tzinfo) -> List[DailySession]:
    start, end = day_bounds(now, tz)
    out = []
    for s in sessions:
        ts = parse_iso(s.date)
        if ts is not None and start <= ts < end:
            out.append(s)
    return out


def adjustments_on_day(state: AppState, now: datetime, tz: tzinfo) -> float:
    start, end = day_bounds(now, tz)
    lo = int(start.timestamp() * 1000)
    hi = int(end.timestamp() * 1000)
    return sum(a.amount for a in state.adjustments if lo <= a.timestamp < hi)


def seconds_until_reset(now: datetime, tz: tzinfo) -> int:
    _, end = day_bounds(now, tz)
    # elapsed time, not wall-clock difference, across DST changes
    remaining = end.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return max(0, int(remaining.total_seconds()))


def format_countdown(seconds: int) -> str:
    seconds = max(0, int(seconds))
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    return f"{h}h {m}m {s}s"


# ----------------------------- Lock -----------------------------


@dataclass
class DayLock:
    status: Optional[str]  # "WIN" | "LOSS" | None
    day_key: str
    daily_profit: float
    start_of_day_capital: float
    daily_goal: float
    daily_stop_loss: float
    sessions_today: int

    @property
    def locked(self) -> bool:
        return self.status is not None


def start_of_day_capital(state: AppState, daily_profit: float, now: datetime, tz: tzinfo) -> float:
    """
    Opening balance of the day. Uses the stored day opening when it belongs to
    today; otherwise backs it out of the live balance, excluding today's manual
    capital edits so they are never counted as profit.
    """
    key = day_key(now, tz)
    opening = state.day_opening or {}
    if opening.get("dayKey") == key:
        try:
            return float(opening.get("balance"))
        except (TypeError, ValueError):
            pass
    return float(state.config.current_capital) - daily_profit - adjustments_on_day(state, now, tz)


def evaluate_lock(state: AppState, now: datetime, tz: tzinfo) -> DayLock:
    """
    Pure lock evaluation, recomputed on every render.

    CLOSURE ORDER:
    1. Stop-loss (daily_profit <= -start * stop%)
    2. Daily goal (daily_profit >= start * goal%), overrides a simultaneous stop-loss
    """
    cfg = state.config
    today = sessions_on_day(state.sessions, now, tz)
    daily_profit = sum(s.profit for s in today)
    start = start_of_day_capital(state, daily_profit, now, tz)

    daily_stop_loss = -(start * (float(cfg.stop_loss_percentage) / 100.0))
    daily_goal = start * (float(cfg.daily_goal_percentage or DEFAULT_GOAL_PCT) / 100.0)

    status: Optional[str] = None
    if daily_profit <= daily_stop_loss:
        status = LOCK_LOSS
    if daily_profit >= daily_goal:
        status = LOCK_WIN

    return DayLock(
        status=status,
        day_key=day_key(now, tz),
        daily_profit=daily_profit,
        start_of_day_capital=start,
        daily_goal=daily_goal,
        daily_stop_loss=daily_stop_loss,
        sessions_today=len(today),
    )


def roll_day_opening(state: AppState, now: datetime, tz: tzinfo) -> bool:
    """
    Record the opening balance the first time we see a new calendar day.
    Returns True when the state changed.
    """
    key = day_key(now, tz)
    opening = state.day_opening or {}
    if opening.get("dayKey") == key:
        return False

    today = sessions_on_day(state.sessions, now, tz)
    daily_profit = sum(s.profit for s in today)
    live = sum(r.profit for r in state.current_session_rounds) if state.is_session_active else 0.0
    balance = (
        float(state.config.current_capital)
        - daily_profit
        - live
        - adjustments_on_day(state, now, tz)
    )
    state.day_opening = {"dayKey": key, "balance": balance}
    return True
