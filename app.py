# app.py — home dashboard: first-run onboarding wizard, bankroll cards, lock status, quick links

import streamlit as st

from settings import app_env, currency, money

# ---- Page meta (run first) ----
env_suffix = " (DEV)" if app_env() == "dev" else ""
st.set_page_config(
    page_title=f"Bankroll Coach{env_suffix}",
    page_icon="🚀",
    layout="wide",
    initial_sidebar_state="expanded",
)

from coach import lock_message, random_commandment
from day_guard import format_countdown, seconds_until_reset
from engine import InvalidAmountError, recommended_bet
from models import BankrollConfig
from ranks import TOP_RANK_MESSAGE
from sidebar import card, get_store, inject_css, pl_class, render_sidebar, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)


# ---------- Onboarding wizard ----------
def _onboarding() -> None:
    st.title("🚀 Welcome to Bankroll Coach")
    st.write("Three numbers and you are ready: how much you have, how much you risk, when you stop.")

    base = BankrollConfig.onboarding_defaults()
    st.session_state.setdefault("onb_step", 1)
    step = int(st.session_state["onb_step"])
    st.progress(step / 3.0, text=f"Step {step} of 3")

    if step == 1:
        st.subheader("1 · Your bankroll")
        cap = st.number_input(
            f"Starting capital ({currency()})",
            min_value=1.0, value=float(st.session_state.get("onb_capital", base.initial_capital)), step=10.0,
        )
        if st.button("Next →", type="primary"):
            st.session_state["onb_capital"] = float(cap)
            st.session_state["onb_step"] = 2
            st.rerun()

    elif step == 2:
        st.subheader("2 · Risk per round")
        bet = st.slider("Bet size (% of bankroll)", 0.5, 10.0,
                        float(st.session_state.get("onb_bet", base.bet_percentage)), 0.5)
        cap = float(st.session_state.get("onb_capital", base.initial_capital))
        st.caption(f"Recommended stake: **{money(cap * bet / 100.0)}** per round.")
        if bet > 5.0:
            st.warning("More than 5% per round makes a losing streak very expensive.")
        c1, c2 = st.columns(2)
        if c1.button("← Back"):
            st.session_state["onb_step"] = 1
            st.rerun()
        if c2.button("Next →", type="primary"):
            st.session_state["onb_bet"] = float(bet)
            st.session_state["onb_step"] = 3
            st.rerun()

    else:
        st.subheader("3 · Daily limits")
        goal = st.slider("Daily goal (%)", 1.0, 20.0, float(base.daily_goal_percentage), 0.5)
        stop = st.slider("Stop-loss (%)", 5.0, 50.0, float(base.stop_loss_percentage), 1.0)
        c1, c2 = st.columns(2)
        if c1.button("← Back"):
            st.session_state["onb_step"] = 2
            st.rerun()
        if c2.button("Start my journey", type="primary"):
            cap = float(st.session_state.get("onb_capital", base.initial_capital))
            cfg = base
            cfg.initial_capital = cap
            cfg.current_capital = cap
            cfg.bet_percentage = float(st.session_state.get("onb_bet", base.bet_percentage))
            cfg.daily_goal_percentage = float(goal)
            cfg.stop_win_percentage = float(goal)
            cfg.stop_loss_percentage = float(stop)
            store.complete_onboarding(cfg)
            for k in ("onb_step", "onb_capital", "onb_bet"):
                st.session_state.pop(k, None)
            st.toast("Bankroll configured. Play with discipline.", icon="✅")
            st.rerun()

    st.markdown("---")
    st.caption("Already have a backup? Restore it from Settings after finishing the setup.")


if not store.state.has_completed_onboarding:
    _onboarding()
    st.stop()

# ---- Shared sidebar ----
render_sidebar(store)

state = store.state
cfg = state.config
lock = store.lock_status()
rank = store.rank()
growth = cfg.current_capital - cfg.initial_capital

st.title("🚀 Bankroll Coach")
st.write("Your command center: bankroll, today's limits and your career so far.")

c1, c2, c3, c4 = st.columns(4)
with c1:
    card("Bankroll", money(cfg.current_capital), f"Started at {money(cfg.initial_capital)}")
with c2:
    card("Growth", money(growth, signed=True),
         f"{(growth / cfg.initial_capital * 100.0) if cfg.initial_capital else 0.0:+.1f}% all time",
         pl_class(growth))
with c3:
    card("Today", money(lock.daily_profit, signed=True),
         f"Goal {money(lock.daily_goal)} · Stop {money(lock.daily_stop_loss)}",
         pl_class(lock.daily_profit))
with c4:
    card("Next stake", money(recommended_bet(cfg)), f"{cfg.bet_percentage:.1f}% of bankroll")

# ---------- Lock banner ----------
if lock.locked:
    msg = lock_message(lock.status)
    countdown = format_countdown(seconds_until_reset(store.now(), store.tz))
    if lock.status == "WIN":
        st.success(f"**{msg['title']}** {msg['message']} Reset in {countdown}.", icon="🏆")
    else:
        st.error(f"**{msg['title']}** {msg['message']} Reset in {countdown}.", icon="🛑")
elif state.is_session_active:
    st.info("A session is running.", icon="⏱️")
    st.page_link("pages/01_Play_Session.py", label="→ Back to the session", icon="🎯")
else:
    st.page_link("pages/01_Play_Session.py", label="→ Start a session", icon="🎯")

st.markdown("---")

# ---------- Career ----------
st.subheader(f"{rank.rank.icon} Career rank: {rank.rank.name}")
if rank.is_top:
    st.success(TOP_RANK_MESSAGE)
else:
    remaining = rank.next_rank.min_profit - store.lifetime_profit()
    st.progress(int(rank.progress), text=f"{rank.progress:.1f}% to {rank.next_rank.name}")
    st.caption(f"{money(max(0.0, remaining))} of lifetime profit to go.")

# ---------- Deposit quick action ----------
with st.expander("➕ Add funds (deposit)"):
    amt = st.number_input(f"Amount ({currency()})", min_value=0.0, value=0.0, step=10.0, key="home_deposit")
    if st.button("Confirm deposit"):
        try:
            store.deposit(amt)
            st.toast("Deposit recorded. It will not count as profit.", icon="💰")
            st.rerun()
        except InvalidAmountError as e:
            st.error(str(e))

st.markdown("---")

st.markdown(f"> 📜 *{random_commandment()}*")

qc1, qc2, qc3, qc4 = st.columns(4)
with qc1:
    st.page_link("pages/01_Play_Session.py", label="Play Session", icon="🎯")
with qc2:
    st.page_link("pages/03_Analytics.py", label="Analytics", icon="📈")
with qc3:
    st.page_link("pages/04_Mindset.py", label="Mindset", icon="🧠")
with qc4:
    st.page_link("pages/06_Study_Center.py", label="Study Center", icon="📚")

st.caption(f"Environment: **{app_env()}**")
