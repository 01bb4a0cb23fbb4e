# engine.py — session state machine + round/bet arithmetic
#
# States: IDLE -> ACTIVE -> (end) -> IDLE
# - start(): IDLE only; a second start while ACTIVE is rejected
# - add_round(): ACTIVE only; profit hits current capital immediately
# - end(): folds the round buffer into one DailySession and appends it to history
#
# TWO BETS payout: 60% of the stake rides the cover multiplier, 40% the target.

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models import (
    AppState,
    BankrollConfig,
    DailySession,
    Round,
    StrategyType,
    new_id,
    status_for_profit,
)


class SessionStateError(RuntimeError):
    pass


class InvalidAmountError(ValueError):
    pass


# ============================================================
#  SESSION BOUNDARIES
# ============================================================
OVERTIME_SECONDS: int = 1800          # fatigue alert after 30 minutes
DEFAULT_GOAL_PCT: float = 5.0         # used when daily_goal_percentage is unset/zero

TWO_BETS_COVER_SHARE: float = 0.60
TWO_BETS_TARGET_SHARE: float = 0.40
DEFAULT_COVER_MULT: float = 1.20
DEFAULT_TWO_BETS_TARGET: float = 2.00

FLIGHT_PLAN_MULTS = (("conservative", 1.20), ("moderate", 1.50), ("aggressive", 2.00))
MINUTES_PER_ROUND: float = 1.5

RECOVERY_HIGH_RISK_PCT: float = 10.0
RECOVERY_EXTREME_RISK_PCT: float = 30.0

QUICK_MULTIPLIERS = (1.10, 1.20, 1.30, 1.50, 2.00)


def now_ms() -> int:
    return int(time.time() * 1000)


def positive_amount(value: Any, what: str = "amount") -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidAmountError(f"{what} must be a number") from None
    if not math.isfinite(v) or v <= 0:
        raise InvalidAmountError(f"{what} must be greater than zero")
    return v


def goal_percentage(config: BankrollConfig) -> float:
    return float(config.daily_goal_percentage or DEFAULT_GOAL_PCT)


def recommended_bet(config: BankrollConfig) -> float:
    return float(config.current_capital) * (float(config.bet_percentage) / 100.0)


def cover_multiplier(config: BankrollConfig) -> float:
    return config.strategy_default(StrategyType.TWO_BETS_COVER, DEFAULT_COVER_MULT)


def win_profit(bet: float, multiplier: float, strategy: str, cover: float = DEFAULT_COVER_MULT) -> float:
    """Net profit of a winning round."""
    if strategy == StrategyType.TWO_BETS:
        gain_cover = bet * TWO_BETS_COVER_SHARE * cover
        gain_target = bet * TWO_BETS_TARGET_SHARE * multiplier
        return (gain_cover + gain_target) - bet
    return bet * multiplier - bet


def build_round(
    bet: Any,
    multiplier: Any,
    win: bool,
    strategy: str = StrategyType.MANUAL,
    config: Optional[BankrollConfig] = None,
    ts_ms: Optional[int] = None,
) -> Round:
    """
    Validate user input and produce an immutable Round.

    Raises InvalidAmountError for a non-positive bet. A win needs a multiplier;
    a loss ignores it for the profit (stake is lost either way).
    """
    bet_v = positive_amount(bet, "bet amount")
    try:
        mult_v = float(multiplier or 0.0)
    except (TypeError, ValueError):
        raise InvalidAmountError("multiplier must be a number") from None
    if not math.isfinite(mult_v) or mult_v < 0:
        raise InvalidAmountError("multiplier must be zero or positive")

    if strategy not in StrategyType.ALL:
        strategy = StrategyType.MANUAL

    if win:
        cover = cover_multiplier(config) if config is not None else DEFAULT_COVER_MULT
        profit = win_profit(bet_v, mult_v, strategy, cover)
    else:
        profit = -bet_v

    return Round(
        id=new_id(),
        timestamp=int(ts_ms if ts_ms is not None else now_ms()),
        bet_amount=bet_v,
        multiplier=mult_v,
        win=bool(win),
        profit=float(profit),
        strategy=strategy,
    )


# ============================================================
#  STATE MACHINE
# ============================================================

class SessionEngine:
    """
    Drives the active-session part of an AppState.

    The engine does not own the state; the store hands it the AppState and
    persists whatever the engine mutated.
    """

    def __init__(self, state: AppState):
        self.state = state

    @property
    def is_active(self) -> bool:
        return bool(self.state.is_session_active)

    @property
    def session_profit(self) -> float:
        return sum(r.profit for r in self.state.current_session_rounds)

    def opening_balance(self) -> float:
        s = self.state
        if s.session_start_balance is not None:
            return float(s.session_start_balance)
        return float(s.config.current_capital) - self.session_profit

    def start(self, ts_ms: Optional[int] = None) -> None:
        if self.state.is_session_active:
            raise SessionStateError("A session is already active; end it before starting another.")
        s = self.state
        s.is_session_active = True
        s.session_start_time = int(ts_ms if ts_ms is not None else now_ms())
        s.current_session_rounds = []
        s.session_start_balance = float(s.config.current_capital)

    def add_round(self, rnd: Round) -> None:
        if not self.state.is_session_active:
            raise SessionStateError("Start a session before recording rounds.")
        s = self.state
        s.current_session_rounds.append(rnd)
        s.config.current_capital = float(s.config.current_capital) + float(rnd.profit)

    def end(self, ts_ms: Optional[int] = None) -> Optional[DailySession]:
        """
        Close the session. Returns the booked DailySession, or None when no
        start time was recorded: an active session without one is closed
        without booking anything.
        """
        s = self.state
        if s.session_start_time is None:
            if s.is_session_active:
                self._reset()
            return None

        end_ms = int(ts_ms if ts_ms is not None else now_ms())
        rounds = list(s.current_session_rounds)
        profit = sum(r.profit for r in rounds)

        if s.session_start_balance is not None:
            # manual capital edits during the session move the opening balance, not the profit
            start_balance = float(s.session_start_balance) + self._adjustments_since(s.session_start_time)
        else:
            start_balance = float(s.config.current_capital) - profit

        session = DailySession(
            id=new_id(),
            date=datetime.fromtimestamp(end_ms / 1000.0, tz=timezone.utc).isoformat(),
            start_balance=start_balance,
            end_balance=start_balance + profit,
            profit=profit,
            duration_seconds=max(0, (end_ms - int(s.session_start_time)) // 1000),
            rounds=len(rounds),
            status=status_for_profit(profit),
            rounds_detail=rounds,
        )

        s.sessions.append(session)
        self._reset()
        return session

    def _reset(self) -> None:
        s = self.state
        s.is_session_active = False
        s.session_start_time = None
        s.session_start_balance = None
        s.current_session_rounds = []

    def _adjustments_since(self, start_ms: int) -> float:
        return sum(a.amount for a in self.state.adjustments if a.timestamp >= int(start_ms))


# ============================================================
#  LIVE SESSION HELPERS (targets, planning, recovery)
# ============================================================

@dataclass
class SessionTargets:
    opening_capital: float
    session_profit: float
    stop_loss_value: float
    goal_value: float
    remaining_goal: float
    hit_stop_loss: bool
    hit_daily_goal: bool


def session_targets(config: BankrollConfig, rounds: List[Round], opening_capital: Optional[float] = None) -> SessionTargets:
    """Goal/stop fixed on the capital the session opened with (not the live balance)."""
    profit = sum(r.profit for r in rounds)
    opening = float(opening_capital) if opening_capital is not None else float(config.current_capital) - profit
    stop_loss_value = -(opening * (float(config.stop_loss_percentage) / 100.0))
    goal_value = opening * (goal_percentage(config) / 100.0)
    return SessionTargets(
        opening_capital=opening,
        session_profit=profit,
        stop_loss_value=stop_loss_value,
        goal_value=goal_value,
        remaining_goal=max(0.0, goal_value - profit),
        hit_stop_loss=profit <= stop_loss_value,
        hit_daily_goal=profit >= goal_value,
    )


def rounds_needed(
    remaining_goal: float,
    bet: float,
    target_mult: float,
    strategy: str = StrategyType.EARLY_CASHOUT,
    cover: float = DEFAULT_COVER_MULT,
) -> int:
    """Winning rounds still needed at this bet/multiplier to close the remaining goal."""
    if target_mult <= 1 or bet <= 0:
        return 0
    per_win = win_profit(bet, target_mult, strategy, cover)
    if per_win <= 0 or remaining_goal <= 0:
        return 0
    return int(math.ceil(remaining_goal / per_win))


def flight_plan(goal_value: float, bet: float) -> List[Dict[str, Any]]:
    plan = []
    for name, mult in FLIGHT_PLAN_MULTS:
        wins = rounds_needed(goal_value, bet, mult)
        plan.append({
            "name": name,
            "multiplier": mult,
            "wins_needed": wins,
            "est_minutes": round(wins * MINUTES_PER_ROUND),
        })
    return plan


def recovery_bet(loss_amount: float, target_mult: float, bankroll: float) -> Dict[str, Any]:
    """
    Stake that wins back `loss_amount` at `target_mult`: loss / (mult - 1).
    Risk level is judged against the current bankroll.
    """
    loss = max(0.0, float(loss_amount or 0.0))
    mult = float(target_mult or 0.0)
    bet = loss / (mult - 1) if mult > 1 else 0.0
    risk_pct = (bet / bankroll) * 100.0 if bankroll > 0 else 0.0

    if risk_pct > RECOVERY_EXTREME_RISK_PCT:
        level = "extreme"
    elif risk_pct > RECOVERY_HIGH_RISK_PCT:
        level = "high"
    else:
        level = "controlled"

    return {"bet": round(bet, 2), "risk_pct": risk_pct, "level": level}


def elapsed_seconds(start_ms: Optional[int], ts_ms: Optional[int] = None) -> int:
    if not start_ms:
        return 0
    cur = int(ts_ms if ts_ms is not None else now_ms())
    return max(0, (cur - int(start_ms)) // 1000)


def is_overtime(seconds: int) -> bool:
    return seconds >= OVERTIME_SECONDS


def format_clock(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
