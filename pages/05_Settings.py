# 05_Settings.py — Settings
# Bankroll config, strategy defaults, deposits, backup export/import

import streamlit as st

st.set_page_config(
    page_title="Settings | Bankroll Coach",
    page_icon="⚙️",
    layout="wide",
)

from cache import invalidate_store_cache
from engine import InvalidAmountError, recommended_bet
from models import PERCENT_RANGES, STRATEGY_NAMES, StrategyType
from settings import currency, money, state_path
from sidebar import clamp, get_store, inject_css, render_sidebar, require_onboarding, show_load_notice
from storage import ImportValidationError

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

cfg = store.config

FIELD_LABELS = {
    "bet_percentage": "Bet size",
    "daily_goal_percentage": "Daily goal",
    "stop_win_percentage": "Stop-win",
    "stop_loss_percentage": "Stop-loss",
}


def pct_slider(label: str, name: str, value, step: float) -> float:
    lo, hi = PERCENT_RANGES[name]
    return st.slider(label, lo, hi, clamp(value, lo, hi), step)


st.title("⚙️ Settings")

# =================== Bankroll config ===================
st.markdown("### 💰 Bankroll")
outside = cfg.out_of_range()
if outside:
    lines = ", ".join(
        f"{FIELD_LABELS[name]} {value:g}% (allowed {PERCENT_RANGES[name][0]:g}-{PERCENT_RANGES[name][1]:g}%)"
        for name, value in outside.items()
    )
    st.warning(f"Some saved values are outside the editable range: {lines}. "
               "The sliders show the nearest allowed value, and saving will store it.", icon="⚠️")
with st.form("config_form"):
    c1, c2 = st.columns(2)
    with c1:
        initial = st.number_input(f"Initial capital ({currency()})", min_value=0.0,
                                  value=float(cfg.initial_capital), step=10.0)
        current = st.number_input(f"Current capital ({currency()})", min_value=0.0,
                                  value=float(cfg.current_capital), step=10.0,
                                  help="Editing this is logged as a manual correction, never as profit.")
        bet_pct = pct_slider("Bet size (% of bankroll)", "bet_percentage", cfg.bet_percentage, 0.5)
    with c2:
        goal_pct = pct_slider("Daily goal (%)", "daily_goal_percentage", cfg.daily_goal_percentage or 5.0, 0.5)
        stop_win = pct_slider("Stop-win (%)", "stop_win_percentage", cfg.stop_win_percentage, 0.5)
        stop_loss = pct_slider("Stop-loss (%)", "stop_loss_percentage", cfg.stop_loss_percentage, 1.0)
        target = st.number_input("Default target multiplier", min_value=1.01,
                                 value=float(cfg.default_target_multiplier or 1.20), step=0.05, format="%.2f")

    st.markdown("**Strategy defaults**")
    sd = dict(cfg.strategy_defaults or {})
    s1, s2, s3 = st.columns(3)
    with s1:
        early = st.number_input(STRATEGY_NAMES[StrategyType.EARLY_CASHOUT], min_value=1.01,
                                value=float(cfg.strategy_default(StrategyType.EARLY_CASHOUT, 1.20)),
                                step=0.05, format="%.2f")
    with s2:
        two_target = st.number_input("Two Bets: target leg", min_value=1.01,
                                     value=float(cfg.strategy_default(StrategyType.TWO_BETS, 2.00)),
                                     step=0.1, format="%.2f")
    with s3:
        two_cover = st.number_input("Two Bets: cover leg", min_value=1.01,
                                    value=float(cfg.strategy_default(StrategyType.TWO_BETS_COVER, 1.20)),
                                    step=0.05, format="%.2f")

    saved = st.form_submit_button("Save settings", type="primary")

if saved:
    sd[StrategyType.EARLY_CASHOUT] = float(early)
    sd[StrategyType.TWO_BETS] = float(two_target)
    sd[StrategyType.TWO_BETS_COVER] = float(two_cover)
    if store.state.is_session_active and abs(float(current) - float(cfg.current_capital)) > 1e-9:
        st.info("Capital changed during a live session. The session's opening balance moves with it.")
    new_cfg = store.update_config(
        initial_capital=float(initial),
        current_capital=float(current),
        bet_percentage=float(bet_pct),
        daily_goal_percentage=float(goal_pct),
        stop_win_percentage=float(stop_win),
        stop_loss_percentage=float(stop_loss),
        default_target_multiplier=float(target),
        strategy_defaults=sd,
    )
    st.success(f"Saved. Next stake: {money(recommended_bet(new_cfg))}.")

# =================== Deposit ===================
st.markdown("---")
st.markdown("### ➕ Deposit")
d1, d2 = st.columns([3, 1])
with d1:
    amount = st.number_input(f"Amount ({currency()})", min_value=0.0, value=0.0, step=10.0, key="settings_deposit")
with d2:
    st.write("")
    if st.button("Add funds", use_container_width=True):
        try:
            adj = store.deposit(amount)
            st.success(f"Deposited {money(adj.amount)}. Balance: {money(adj.balance_after)}.")
        except InvalidAmountError as e:
            st.error(str(e))

adjustments = store.state.adjustments
if adjustments:
    with st.expander(f"Capital adjustments ({len(adjustments)})"):
        for a in reversed(adjustments[-20:]):
            label = "Deposit" if a.kind == "DEPOSIT" else "Manual correction"
            st.markdown(f"{label}: {money(a.amount, signed=True)} ({money(a.balance_before)} → {money(a.balance_after)})")

# =================== Backup ===================
st.markdown("---")
st.markdown("### 💾 Backup")
filename, payload = store.export_backup()
st.download_button("⬇️ Export backup", data=payload, file_name=filename, mime="application/json")

uploaded = st.file_uploader("Restore from backup", type=["json"])
if uploaded is not None:
    st.warning("Restoring replaces everything: settings, history and the current session.")
    if st.button("Restore this backup", type="primary"):
        try:
            store.import_backup(uploaded.getvalue())
            if store.last_save_ok:
                invalidate_store_cache()
            st.success("Backup restored.")
            st.rerun()
        except ImportValidationError as e:
            st.error(f"Invalid backup: {e}")

st.caption(f"Data file: `{state_path()}`")
