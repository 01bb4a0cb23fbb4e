# models.py — plain records for config, rounds, sessions and the app-wide state
#
# Field names are snake_case in Python; to_dict()/from_dict() read and write the
# camelCase keys of the persisted JSON document so old backups keep importing.

from __future__ import annotations

import copy
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

SessionStatus = Literal["WIN", "LOSS", "BREAK_EVEN"]
AdjustmentKind = Literal["DEPOSIT", "MANUAL_OVERRIDE"]


class StrategyType:
    EARLY_CASHOUT = "SAQUE_PRECOCE"
    TWO_BETS = "DUAS_APOSTAS"
    MANUAL = "MANUAL"

    # only used as a key inside strategy_defaults
    TWO_BETS_COVER = "DUAS_APOSTAS_COVER"

    ALL = (EARLY_CASHOUT, TWO_BETS, MANUAL)


STRATEGIES: List[Dict[str, Any]] = [
    {
        "id": StrategyType.EARLY_CASHOUT,
        "name": "Early Cashout (1.10x - 1.30x)",
        "description": "High hit rate. Small, safe profits.",
        "min_mult": 1.10,
        "max_mult": 1.30,
    },
    {
        "id": StrategyType.TWO_BETS,
        "name": "Two Bets (Cover)",
        "description": "60% of the stake on the 1.20x cover, 40% chasing 2.00x+.",
        "min_mult": 1.20,
        "max_mult": 2.00,
    },
    {
        "id": StrategyType.MANUAL,
        "name": "Manual / Other",
        "description": "Free-form play (watch your discipline).",
        "min_mult": 0.0,
        "max_mult": 0.0,
    },
]

STRATEGY_NAMES: Dict[str, str] = {s["id"]: s["name"] for s in STRATEGIES}


def _f(data: Dict[str, Any], key: str, default: float = 0.0) -> float:
    try:
        v = float(data.get(key, default))
    except (TypeError, ValueError):
        return float(default)
    return v if math.isfinite(v) else float(default)


def _opt_f(data: Dict[str, Any], key: str) -> Optional[float]:
    v = data.get(key)
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


# 9999-01-01T00:00:00Z; later instants overflow datetime once shifted to a local zone
MAX_EPOCH_MS = 253_370_764_800_000


def _epoch_ms(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """
    Epoch milliseconds, or `default` when the value is absent or not a number.
    Raises ValueError for an instant datetime cannot represent.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(v) or not 0 <= v <= MAX_EPOCH_MS:
        raise ValueError(f"timestamp out of range: {value!r}")
    return int(v)


def new_id() -> str:
    return uuid.uuid4().hex


def default_strategy_defaults() -> Dict[str, float]:
    return {
        StrategyType.EARLY_CASHOUT: 1.20,
        StrategyType.TWO_BETS: 2.00,
        StrategyType.TWO_BETS_COVER: 1.20,
        StrategyType.MANUAL: 0.0,
    }


# ============================================================
#  CONFIG
# ============================================================

# editable range of each percentage setting
PERCENT_RANGES: Dict[str, Tuple[float, float]] = {
    "bet_percentage": (0.5, 10.0),
    "daily_goal_percentage": (1.0, 20.0),
    "stop_win_percentage": (1.0, 20.0),
    "stop_loss_percentage": (5.0, 50.0),
}


@dataclass
class BankrollConfig:
    initial_capital: float = 100.0
    current_capital: float = 100.0
    bet_percentage: float = 1.5
    stop_loss_percentage: float = 15.0
    stop_win_percentage: float = 7.5
    daily_goal_percentage: float = 5.0
    default_target_multiplier: Optional[float] = 1.20
    strategy_defaults: Optional[Dict[str, float]] = field(default_factory=default_strategy_defaults)

    @classmethod
    def onboarding_defaults(cls) -> "BankrollConfig":
        """Starting point offered by the first-run wizard."""
        sd = default_strategy_defaults()
        sd[StrategyType.EARLY_CASHOUT] = 2.00
        return cls(
            initial_capital=100.0,
            current_capital=100.0,
            bet_percentage=3.5,
            stop_loss_percentage=15.0,
            stop_win_percentage=5.0,
            daily_goal_percentage=5.0,
            default_target_multiplier=2.00,
            strategy_defaults=sd,
        )

    def out_of_range(self) -> Dict[str, float]:
        """Stored percentages outside what the Settings page can edit, by field name."""
        out: Dict[str, float] = {}
        for name, (lo, hi) in PERCENT_RANGES.items():
            v = getattr(self, name)
            if v is None:
                continue
            if not lo <= float(v) <= hi:
                out[name] = float(v)
        return out

    def strategy_default(self, key: str, fallback: float) -> float:
        v = (self.strategy_defaults or {}).get(key)
        try:
            v = float(v)
        except (TypeError, ValueError):
            return fallback
        return v if v > 0 else fallback

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "initialCapital": self.initial_capital,
            "currentCapital": self.current_capital,
            "betPercentage": self.bet_percentage,
            "stopLossPercentage": self.stop_loss_percentage,
            "stopWinPercentage": self.stop_win_percentage,
            "dailyGoalPercentage": self.daily_goal_percentage,
        }
        if self.default_target_multiplier is not None:
            out["defaultTargetMultiplier"] = self.default_target_multiplier
        if self.strategy_defaults is not None:
            out["strategyDefaults"] = dict(self.strategy_defaults)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BankrollConfig":
        base = cls()
        sd = data.get("strategyDefaults")
        strategy_defaults: Optional[Dict[str, float]] = None
        if isinstance(sd, dict):
            strategy_defaults = {}
            for k, v in sd.items():
                try:
                    strategy_defaults[str(k)] = float(v)
                except (TypeError, ValueError):
                    continue
        return cls(
            initial_capital=_f(data, "initialCapital", base.initial_capital),
            current_capital=_f(data, "currentCapital", base.current_capital),
            bet_percentage=_f(data, "betPercentage", base.bet_percentage),
            stop_loss_percentage=_f(data, "stopLossPercentage", base.stop_loss_percentage),
            stop_win_percentage=_f(data, "stopWinPercentage", base.stop_win_percentage),
            daily_goal_percentage=_f(data, "dailyGoalPercentage", base.daily_goal_percentage),
            default_target_multiplier=_opt_f(data, "defaultTargetMultiplier"),
            strategy_defaults=strategy_defaults,
        )


# ============================================================
#  ROUND / SESSION
# ============================================================

@dataclass(frozen=True)
class Round:
    """One resolved bet. Immutable once recorded."""
    id: str
    timestamp: int  # epoch ms
    bet_amount: float
    multiplier: float
    win: bool
    profit: float
    strategy: str = StrategyType.MANUAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "betAmount": self.bet_amount,
            "multiplier": self.multiplier,
            "win": self.win,
            "profit": self.profit,
            "strategy": self.strategy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Round":
        return cls(
            id=str(data.get("id") or new_id()),
            timestamp=_epoch_ms(data.get("timestamp")),
            bet_amount=_f(data, "betAmount"),
            multiplier=_f(data, "multiplier"),
            win=bool(data.get("win", False)),
            profit=_f(data, "profit"),
            strategy=str(data.get("strategy") or StrategyType.MANUAL),
        )


def status_for_profit(profit: float) -> SessionStatus:
    if profit > 0:
        return "WIN"
    if profit < 0:
        return "LOSS"
    return "BREAK_EVEN"


@dataclass
class DailySession:
    id: str
    date: str  # ISO-8601 timestamp of session end
    start_balance: float
    end_balance: float
    profit: float
    duration_seconds: int
    rounds: int
    status: SessionStatus
    rounds_detail: List[Round] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "startBalance": self.start_balance,
            "endBalance": self.end_balance,
            "profit": self.profit,
            "durationSeconds": self.duration_seconds,
            "rounds": self.rounds,
            "status": self.status,
            "roundsDetail": [r.to_dict() for r in self.rounds_detail],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailySession":
        detail = data.get("roundsDetail") or []
        rounds_detail = [Round.from_dict(r) for r in detail if isinstance(r, dict)]
        profit = _f(data, "profit")
        status = str(data.get("status") or "")
        if status not in ("WIN", "LOSS", "BREAK_EVEN"):
            status = status_for_profit(profit)
        return cls(
            id=str(data.get("id") or new_id()),
            date=str(data.get("date") or ""),
            start_balance=_f(data, "startBalance"),
            end_balance=_f(data, "endBalance"),
            profit=profit,
            duration_seconds=int(_f(data, "durationSeconds", 0)),
            rounds=int(_f(data, "rounds", len(rounds_detail))),
            status=status,  # type: ignore[arg-type]
            rounds_detail=rounds_detail,
        )


@dataclass(frozen=True)
class CapitalAdjustment:
    """A manual change of current capital, kept apart from gambling profit."""
    id: str
    timestamp: int  # epoch ms
    amount: float
    kind: AdjustmentKind
    balance_before: float
    balance_after: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "amount": self.amount,
            "kind": self.kind,
            "balanceBefore": self.balance_before,
            "balanceAfter": self.balance_after,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapitalAdjustment":
        kind = str(data.get("kind") or "MANUAL_OVERRIDE")
        if kind not in ("DEPOSIT", "MANUAL_OVERRIDE"):
            kind = "MANUAL_OVERRIDE"
        return cls(
            id=str(data.get("id") or new_id()),
            timestamp=_epoch_ms(data.get("timestamp")),
            amount=_f(data, "amount"),
            kind=kind,  # type: ignore[arg-type]
            balance_before=_f(data, "balanceBefore"),
            balance_after=_f(data, "balanceAfter"),
        )


# ============================================================
#  APP STATE
# ============================================================

@dataclass
class AppState:
    config: BankrollConfig = field(default_factory=BankrollConfig)
    sessions: List[DailySession] = field(default_factory=list)
    current_session_rounds: List[Round] = field(default_factory=list)
    is_session_active: bool = False
    session_start_time: Optional[int] = None  # epoch ms
    has_completed_onboarding: bool = False

    # opening balance stored when the session starts
    session_start_balance: Optional[float] = None
    adjustments: List[CapitalAdjustment] = field(default_factory=list)
    # {"dayKey": "YYYY-MM-DD", "balance": float}
    day_opening: Optional[Dict[str, Any]] = None

    def copy(self) -> "AppState":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "config": self.config.to_dict(),
            "sessions": [s.to_dict() for s in self.sessions],
            "currentSessionRounds": [r.to_dict() for r in self.current_session_rounds],
            "isSessionActive": self.is_session_active,
            "sessionStartTime": self.session_start_time,
            "hasCompletedOnboarding": self.has_completed_onboarding,
            "sessionStartBalance": self.session_start_balance,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "dayOpening": dict(self.day_opening) if self.day_opening else None,
        }
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppState":
        cfg = data.get("config")
        sessions = data.get("sessions") or []
        rounds = data.get("currentSessionRounds") or []
        adjustments = data.get("adjustments") or []

        start_time = _epoch_ms(data.get("sessionStartTime"), None)

        day_opening = data.get("dayOpening")
        if not (isinstance(day_opening, dict) and "dayKey" in day_opening):
            day_opening = None

        return cls(
            config=BankrollConfig.from_dict(cfg) if isinstance(cfg, dict) else BankrollConfig(),
            sessions=[DailySession.from_dict(s) for s in sessions if isinstance(s, dict)],
            current_session_rounds=[Round.from_dict(r) for r in rounds if isinstance(r, dict)],
            is_session_active=bool(data.get("isSessionActive", False)),
            session_start_time=start_time,
            has_completed_onboarding=bool(data.get("hasCompletedOnboarding", False)),
            session_start_balance=_opt_f(data, "sessionStartBalance"),
            adjustments=[CapitalAdjustment.from_dict(a) for a in adjustments if isinstance(a, dict)],
            day_opening=dict(day_opening) if day_opening else None,
        )


def initial_state() -> AppState:
    return AppState()


# ============================================================
#  CAREER RANKS
# ============================================================

@dataclass(frozen=True)
class CareerRank:
    id: str
    name: str
    min_profit: float
    color: str
    icon: str = ""


CAREER_RANKS: List[CareerRank] = [
    CareerRank("rookie", "Rookie", 0, "#94a3b8", "🎖️"),
    CareerRank("apprentice", "Apprentice", 100, "#60a5fa", "🛡️"),
    CareerRank("pro", "Professional", 500, "#34d399", "🎯"),
    CareerRank("elite", "Elite Sniper", 2000, "#c084fc", "⚡"),
    CareerRank("master", "Bankroll Master", 5000, "#ef4444", "👑"),
    CareerRank("baron", "Crash Baron", 10000, "#f59e0b", "💎"),
]
