# analytics.py — projections, evolution series, pattern radar buckets and debrief stats
#
# Everything here is a pure function over the session history. The pandas
# helpers at the bottom only reshape results for the altair charts.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from statistics import mean
from typing import Any, Dict, List, Optional

import pandas as pd

from models import DailySession, Round

DEPOSIT_NOISE_THRESHOLD = 1.00   # currency units
MIN_ROUNDS_FOR_RATE = 2
REALISTIC_HORIZON_DAYS = 30
MILESTONE_DAYS = (7, 30, 90, 365)

ALL_IN_ABS_TOLERANCE = 0.5
ALL_IN_REL_TOLERANCE = 0.99

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _safe_float(x, default: float = 0.0) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


# ---------- Compound projection (simulator) ----------

@dataclass
class Projection:
    final_balance: float
    total_profit: float
    rows: List[Dict[str, float]] = field(default_factory=list)


def compound_projection(capital: float, percent: float, days: int) -> Projection:
    """
    Day-by-day geometric growth: balance[i] = balance[i-1] * (1 + percent/100).
    Each row carries the day's opening balance, the day's profit and the close.
    """
    start = _safe_float(capital)
    rate = _safe_float(percent) / 100.0
    balance = start
    rows: List[Dict[str, float]] = []

    for day in range(1, max(0, int(days)) + 1):
        profit = balance * rate
        opening = balance
        balance = balance + profit
        rows.append({"day": day, "start": opening, "profit": profit, "total": balance})

    return Projection(final_balance=balance, total_profit=balance - start, rows=rows)


def future_value(capital: float, percent: float, days: int) -> float:
    return _safe_float(capital) * math.pow(1 + _safe_float(percent) / 100.0, int(days))


def milestones(capital: float, percent: float, days=MILESTONE_DAYS) -> List[Dict[str, float]]:
    return [{"days": d, "balance": future_value(capital, percent, d)} for d in days]


# ---------- Real vs projected evolution ----------

def evolution_series(
    sessions: List[DailySession],
    initial_capital: float,
    sim_capital: float,
    sim_percent: float,
    sim_days: int,
) -> List[Dict[str, Any]]:
    """
    One row per index 0..max(len(sessions), sim_days).

      real   : initial capital at 0, then each session's end balance (None past history)
      ideal  : simulated balance rounded to whole units (None past sim_days)
      deposit: capital injected before the session at this index (0.0 when none)

    A deposit is flagged when a session opens more than DEPOSIT_NOISE_THRESHOLD
    above where the previous point closed.
    """
    sim_days = max(0, int(sim_days))
    rate = _safe_float(sim_percent) / 100.0
    simulated = _safe_float(sim_capital)
    rows: List[Dict[str, Any]] = []

    prev_end = _safe_float(initial_capital)
    for i in range(0, max(len(sessions), sim_days) + 1):
        real: Optional[float] = None
        deposit = 0.0
        if i == 0:
            real = _safe_float(initial_capital)
        elif i - 1 < len(sessions):
            s = sessions[i - 1]
            gap = s.start_balance - prev_end
            if gap > DEPOSIT_NOISE_THRESHOLD:
                deposit = gap
            real = s.end_balance
            prev_end = s.end_balance

        ideal: Optional[float] = None
        if i <= sim_days:
            ideal = float(round(simulated))

        rows.append({"day": i, "real": real, "ideal": ideal, "deposit": deposit})

        if i < sim_days:
            simulated = simulated * (1 + rate)

    return rows


def detected_deposits(sessions: List[DailySession], initial_capital: float) -> float:
    rows = evolution_series(sessions, initial_capital, 0.0, 0.0, 0)
    return sum(r["deposit"] for r in rows)


# ---------- Temporal pattern radar ----------

def _bucket(label: str, key: int) -> Dict[str, Any]:
    return {"label": label, "key": key, "profit": 0.0, "wins": 0, "total": 0, "rate": 0.0}


def _add(bucket: Dict[str, Any], r: Round) -> None:
    bucket["profit"] += r.profit
    bucket["total"] += 1
    if r.win:
        bucket["wins"] += 1


def _finish(buckets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for b in buckets:
        b["rate"] = (b["wins"] / b["total"]) * 100.0 if b["total"] > 0 else 0.0
    return buckets


def all_rounds(sessions: List[DailySession]) -> List[Round]:
    return [r for s in sessions for r in (s.rounds_detail or [])]


def temporal_patterns(sessions: List[DailySession], tz: tzinfo = timezone.utc) -> Dict[str, Any]:
    """
    Partition every recorded round by hour of day, 5-minute slot of the hour,
    weekday and day of month (all in `tz`).
    """
    hours = [_bucket(f"{h}h", h) for h in range(24)]
    slots = [_bucket(f":{m * 5:02d}", m) for m in range(12)]
    weekdays = [_bucket(WEEKDAY_LABELS[d], d) for d in range(7)]
    month_days = [_bucket(str(d + 1), d + 1) for d in range(31)]

    rounds = all_rounds(sessions)
    for r in rounds:
        ts = datetime.fromtimestamp(r.timestamp / 1000.0, tz=timezone.utc).astimezone(tz)
        _add(hours[ts.hour], r)
        _add(slots[ts.minute // 5], r)
        _add(weekdays[ts.weekday()], r)
        _add(month_days[ts.day - 1], r)

    return {
        "hours": _finish(hours),
        "slots": _finish(slots),
        "weekdays": _finish(weekdays),
        "month_days": _finish(month_days),
        "total_rounds": len(rounds),
    }


def best_bucket(buckets: List[Dict[str, Any]], metric: str = "profit") -> Optional[Dict[str, Any]]:
    """
    Top bucket by `profit` or `rate`. Rate ranking only considers buckets with
    at least MIN_ROUNDS_FOR_RATE rounds; with none eligible the first bucket is returned.
    """
    if not buckets:
        return None
    if metric == "rate":
        eligible = [b for b in buckets if b["total"] >= MIN_ROUNDS_FOR_RATE]
        if not eligible:
            return buckets[0]
        return sorted(eligible, key=lambda b: b["rate"], reverse=True)[0]
    return sorted(buckets, key=lambda b: b["profit"], reverse=True)[0]


def worst_bucket(buckets: List[Dict[str, Any]], metric: str = "profit") -> Optional[Dict[str, Any]]:
    if not buckets:
        return None
    if metric == "rate":
        eligible = [b for b in buckets if b["total"] >= MIN_ROUNDS_FOR_RATE]
        if not eligible:
            return buckets[0]
        return sorted(eligible, key=lambda b: b["rate"])[0]
    return sorted(buckets, key=lambda b: b["profit"])[0]


# ---------- Session debrief ----------

def profit_factor(rounds: List[Round]) -> float:
    gross_profit = sum(r.profit for r in rounds if r.profit > 0)
    gross_loss = abs(sum(r.profit for r in rounds if r.profit < 0))
    if gross_loss == 0:
        return gross_profit
    return gross_profit / gross_loss


def streaks(rounds: List[Round]) -> Dict[str, int]:
    max_win = max_loss = cur_win = cur_loss = 0
    for r in rounds:
        if r.win:
            cur_win += 1
            cur_loss = 0
        else:
            cur_loss += 1
            cur_win = 0
        max_win = max(max_win, cur_win)
        max_loss = max(max_loss, cur_loss)
    return {"max_win_streak": max_win, "max_loss_streak": max_loss}


def session_debrief(rounds: List[Round]) -> Dict[str, Any]:
    wins = sum(1 for r in rounds if r.win)
    total = len(rounds)
    best = max(rounds, key=lambda r: r.profit) if rounds else None
    worst = min(rounds, key=lambda r: r.profit) if rounds else None
    top_mult = max((r.multiplier for r in rounds if r.win), default=0.0)

    out = {
        "rounds": total,
        "wins": wins,
        "losses": total - wins,
        "win_rate": (wins / total) * 100.0 if total else 0.0,
        "gross_profit": sum(r.profit for r in rounds if r.profit > 0),
        "gross_loss": sum(r.profit for r in rounds if r.profit < 0),
        "net_profit": sum(r.profit for r in rounds),
        "profit_factor": profit_factor(rounds),
        "best_round": best.profit if best else 0.0,
        "worst_round": worst.profit if worst else 0.0,
        "top_multiplier": top_mult,
    }
    out.update(streaks(rounds))
    return out


# ---------- Realistic long-run projection ----------

def average_session_yield(sessions: List[DailySession]) -> float:
    yields = [s.profit / s.start_balance for s in sessions if s.start_balance > 0]
    return mean(yields) if yields else 0.0


def realistic_projection(
    sessions: List[DailySession],
    current_capital: float,
    days: int = REALISTIC_HORIZON_DAYS,
) -> Dict[str, Any]:
    """Compounds the empirical per-session yield forward from the live balance."""
    avg = average_session_yield(sessions)
    proj = compound_projection(current_capital, avg * 100.0, days)
    return {
        "avg_yield_pct": avg * 100.0,
        "final_balance": proj.final_balance,
        "total_profit": proj.total_profit,
        "rows": proj.rows,
        "sample_size": sum(1 for s in sessions if s.start_balance > 0),
    }


# ---------- History helpers ----------

def round_ledger(session: DailySession) -> List[Dict[str, Any]]:
    """Per-round running balance; all-in = stake (nearly) equal to the balance at risk."""
    running = session.start_balance
    rows = []
    for r in session.rounds_detail or []:
        all_in = abs(r.bet_amount - running) < ALL_IN_ABS_TOLERANCE or r.bet_amount >= running * ALL_IN_REL_TOLERANCE
        rows.append({
            "id": r.id,
            "timestamp": r.timestamp,
            "bet": r.bet_amount,
            "multiplier": r.multiplier,
            "win": r.win,
            "profit": r.profit,
            "strategy": r.strategy,
            "balance_before": running,
            "all_in": bool(all_in),
        })
        running += r.profit
    return rows


def lifetime_profit(sessions: List[DailySession]) -> float:
    return sum(s.profit for s in sessions)


def summary_stats(sessions: List[DailySession]) -> Dict[str, float]:
    n = len(sessions)
    wins = sum(1 for s in sessions if s.profit > 0)
    return {
        "sessions": n,
        "profit": lifetime_profit(sessions),
        "win_pct": (wins / n) * 100.0 if n else 0.0,
        "avg_duration_min": (sum(s.duration_seconds for s in sessions) / n / 60.0) if n else 0.0,
        "rounds": sum(s.rounds for s in sessions),
    }


# ---------- DataFrames for charts ----------

def sessions_frame(sessions: List[DailySession]) -> pd.DataFrame:
    data = []
    for s in sessions:
        data.append({
            "Date": s.date,
            "Start": s.start_balance,
            "End": s.end_balance,
            "Profit": s.profit,
            "Rounds": s.rounds,
            "Minutes": s.duration_seconds // 60,
            "Status": s.status,
        })
    return pd.DataFrame(data, columns=["Date", "Start", "End", "Profit", "Rounds", "Minutes", "Status"])


def buckets_frame(buckets: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(buckets, columns=["label", "key", "profit", "wins", "total", "rate"])


def projection_frame(projection: Projection) -> pd.DataFrame:
    return pd.DataFrame(projection.rows, columns=["day", "start", "profit", "total"])


def evolution_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Long format (day, series, balance) for a two-line chart; gaps dropped."""
    df = pd.DataFrame(rows, columns=["day", "real", "ideal", "deposit"])
    long = df.melt(id_vars=["day"], value_vars=["real", "ideal"], var_name="series", value_name="balance")
    long["series"] = long["series"].map({"real": "Real bankroll", "ideal": "Target path"})
    return long.dropna(subset=["balance"])
