# store.py — single state container: owns the AppState, runs the engine, persists on change
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Optional, Union

import analytics
from day_guard import DayLock, evaluate_lock, roll_day_opening
from engine import SessionEngine, build_round, positive_amount
from models import AppState, BankrollConfig, CapitalAdjustment, DailySession, Round, new_id
from ranks import RankProgress, current_rank
from storage import LOAD_MISSING, LOAD_OK, LoadResult, export_state, import_state, load_state, save_state

_CONFIG_FIELDS = (
    "initial_capital",
    "current_capital",
    "bet_percentage",
    "stop_loss_percentage",
    "stop_win_percentage",
    "daily_goal_percentage",
    "default_target_multiplier",
    "strategy_defaults",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BankrollStore:
    """
    Owns the one AppState of this install.

    Every mutating call goes through _commit(), which writes the whole
    document back to `path`. Pages never touch the state fields directly;
    they read `store.state` and call the methods below.

    This object is *pure logic*, no Streamlit.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        tz: tzinfo = timezone.utc,
        state: Optional[AppState] = None,
        clock: Callable[[], datetime] = _utc_now,
        autosave: bool = True,
    ):
        self.path = path
        self.tz = tz
        self._clock = clock
        self.autosave = bool(autosave)
        self.last_save_ok: bool = True

        if state is not None:
            self.load_result = LoadResult(state=state, status=LOAD_OK)
        elif path:
            self.load_result = load_state(path)
        else:
            self.load_result = LoadResult(state=AppState(), status=LOAD_MISSING)

        self._state: AppState = self.load_result.state
        if roll_day_opening(self._state, self.now(), self.tz) and self._state.has_completed_onboarding:
            self._save()

    # ---- Read side ----
    @property
    def state(self) -> AppState:
        return self._state

    def get_state(self) -> AppState:
        """Deep copy for callers that want a stable snapshot."""
        return self._state.copy()

    def now(self) -> datetime:
        return self._clock()

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)

    @property
    def config(self) -> BankrollConfig:
        return self._state.config

    @property
    def engine(self) -> SessionEngine:
        return SessionEngine(self._state)

    def lock_status(self) -> DayLock:
        return evaluate_lock(self._state, self.now(), self.tz)

    def last_session(self) -> Optional[DailySession]:
        return self._state.sessions[-1] if self._state.sessions else None

    def lifetime_profit(self) -> float:
        return analytics.lifetime_profit(self._state.sessions)

    def rank(self) -> RankProgress:
        return current_rank(self.lifetime_profit())

    # ---- Persistence ----
    def _save(self) -> bool:
        if not self.autosave or not self.path:
            return True
        self.last_save_ok = save_state(self._state, self.path)
        return self.last_save_ok

    def _commit(self) -> None:
        self._save()

    def _roll_day(self) -> None:
        roll_day_opening(self._state, self.now(), self.tz)

    # ---- Config ----
    def complete_onboarding(self, config: BankrollConfig) -> None:
        self._state.config = config
        self._state.has_completed_onboarding = True
        self._state.day_opening = {
            "dayKey": self.now().astimezone(self.tz).date().isoformat(),
            "balance": float(config.current_capital),
        }
        self._commit()

    def update_config(self, config: Optional[BankrollConfig] = None, **fields: Any) -> BankrollConfig:
        """
        Replace the config (or patch single fields). A change of current_capital
        is logged as a MANUAL_OVERRIDE adjustment so it never counts as profit.
        """
        self._roll_day()
        cfg = self._state.config
        new_cfg = BankrollConfig(**{k: getattr(config or cfg, k) for k in _CONFIG_FIELDS})
        if new_cfg.strategy_defaults is not None:
            new_cfg.strategy_defaults = dict(new_cfg.strategy_defaults)
        for k, v in fields.items():
            if k not in _CONFIG_FIELDS:
                raise KeyError(f"unknown config field: {k}")
            setattr(new_cfg, k, v)

        before = float(cfg.current_capital)
        after = float(new_cfg.current_capital)
        if abs(after - before) > 1e-9:
            self._log_adjustment(after - before, "MANUAL_OVERRIDE", before, after)

        self._state.config = new_cfg
        self._commit()
        return new_cfg

    def deposit(self, amount: Any) -> CapitalAdjustment:
        value = positive_amount(amount, "deposit amount")
        self._roll_day()
        before = float(self._state.config.current_capital)
        after = before + value
        adj = self._log_adjustment(value, "DEPOSIT", before, after)
        self._state.config.current_capital = after
        self._commit()
        return adj

    def _log_adjustment(self, amount: float, kind: str, before: float, after: float) -> CapitalAdjustment:
        adj = CapitalAdjustment(
            id=new_id(),
            timestamp=self.now_ms(),
            amount=float(amount),
            kind=kind,  # type: ignore[arg-type]
            balance_before=before,
            balance_after=after,
        )
        self._state.adjustments.append(adj)
        return adj

    # ---- Session lifecycle ----
    def start_session(self) -> None:
        self._roll_day()
        self.engine.start(self.now_ms())
        self._commit()

    def record_round(self, rnd: Round) -> Round:
        self._roll_day()
        self.engine.add_round(rnd)
        self._commit()
        return rnd

    def add_round(self, bet: Any, multiplier: Any, win: bool, strategy: str) -> Round:
        """Validate input, build the round and apply it to the live balance."""
        rnd = build_round(bet, multiplier, win, strategy, self._state.config, self.now_ms())
        return self.record_round(rnd)

    def end_session(self) -> Optional[DailySession]:
        self._roll_day()
        was_active = self.engine.is_active
        session = self.engine.end(self.now_ms())
        if session is not None or was_active:
            self._commit()
        return session

    def clear_history(self) -> None:
        self._roll_day()
        self._state.sessions = []
        self._commit()

    # ---- Backup ----
    def export_backup(self):
        """(filename, bytes) of the full document."""
        return export_state(self._state, self.now().astimezone(self.tz).date())

    def import_backup(self, raw: Union[str, bytes]) -> AppState:
        """
        Wholesale replace from a backup. Raises ImportValidationError and leaves
        the current state untouched when the file is not a valid backup.
        """
        new_state = import_state(raw)
        self._state = new_state
        self._roll_day()
        self._commit()
        return new_state

