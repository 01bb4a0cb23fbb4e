# 01_Play_Session.py — Play Session Page
# Start/record/end a session, live targets + flight plan, recovery calculator, locked screen

import streamlit as st

st.set_page_config(
    page_title="Play Session | Bankroll Coach",
    page_icon="🎯",
    layout="wide",
)

from analytics import session_debrief
from coach import coach_message, lock_message
from day_guard import format_countdown, seconds_until_reset
from engine import (
    QUICK_MULTIPLIERS,
    InvalidAmountError,
    SessionStateError,
    elapsed_seconds,
    flight_plan,
    format_clock,
    is_overtime,
    recommended_bet,
    recovery_bet,
    rounds_needed,
    session_targets,
    cover_multiplier,
)
from models import STRATEGIES, STRATEGY_NAMES, StrategyType
from settings import currency, money
from sidebar import card, get_store, inject_css, pl_class, render_sidebar, require_onboarding, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

st.session_state.setdefault("session_mode", "play")
st.session_state.setdefault("last_booked_session", None)


# =============================================================================
# LOCKED SCREEN
# =============================================================================

def render_locked(lock):
    msg = lock_message(lock.status)
    icon = "🏆" if lock.status == "WIN" else "🛑"
    countdown = format_countdown(seconds_until_reset(store.now(), store.tz))
    st.markdown(
        f"<div class='lock-card'><div style='font-size:3rem'>{icon}</div>"
        f"<div class='hero-value'>{msg['title']}</div>"
        f"<div class='kicker' style='font-size:1rem'>{msg['message']}</div>"
        f"<div class='hero-value {pl_class(lock.daily_profit)}' style='margin-top:14px'>"
        f"{money(lock.daily_profit, signed=True)}</div>"
        f"<div class='kicker'>Unlocks in {countdown}</div></div>",
        unsafe_allow_html=True,
    )
    st.caption("The lock is lifted at local midnight. Use the time to review your history.")
    st.page_link("pages/02_Session_History.py", label="Review history", icon="📜")


# =============================================================================
# IDLE (setup)
# =============================================================================

def render_setup():
    cfg = store.config
    st.markdown("### Ready to play?")
    c1, c2, c3 = st.columns(3)
    with c1:
        card("Bankroll", money(cfg.current_capital))
    with c2:
        card("Stake per round", money(recommended_bet(cfg)), f"{cfg.bet_percentage:.1f}% of bankroll")
    with c3:
        t = session_targets(cfg, [], cfg.current_capital)
        card("Session goal", money(t.goal_value), f"Stop at {money(t.stop_loss_value)}")

    st.caption("Sessions longer than 30 minutes trigger a fatigue alert.")
    if st.button("▶️ Start Session", type="primary", use_container_width=True):
        try:
            store.start_session()
            st.session_state.session_mode = "play"
            st.session_state.last_booked_session = None
            st.rerun()
        except SessionStateError as e:
            st.warning(str(e))


# =============================================================================
# ACTIVE SESSION
# =============================================================================

def _strategy_mult(strategy: str) -> float:
    cfg = store.config
    fallback = cfg.default_target_multiplier or 1.20
    return cfg.strategy_default(strategy, fallback)


def render_round_entry():
    cfg = store.config
    st.markdown("#### Record a round")

    strategy = st.radio(
        "Strategy",
        options=[s["id"] for s in STRATEGIES],
        format_func=lambda k: STRATEGY_NAMES.get(k, k),
        horizontal=True,
        key="round_strategy",
    )
    desc = next((s["description"] for s in STRATEGIES if s["id"] == strategy), "")
    if desc:
        st.caption(desc)
    if strategy == StrategyType.TWO_BETS:
        st.caption(f"Cover leg cashes at {cover_multiplier(cfg):.2f}x.")

    c1, c2 = st.columns(2)
    with c1:
        bet = st.number_input(
            f"Bet ({currency()})", min_value=0.0, value=round(recommended_bet(cfg), 2), step=0.5, key="round_bet",
        )
    with c2:
        mult = st.number_input(
            "Cashout multiplier", min_value=0.0, value=float(_strategy_mult(strategy)), step=0.05,
            format="%.2f", key="round_mult",
        )

    qcols = st.columns(len(QUICK_MULTIPLIERS))
    for col, q in zip(qcols, QUICK_MULTIPLIERS):
        with col:
            if st.button(f"✅ {q:.2f}x", use_container_width=True, key=f"quick_{q}"):
                _record(bet, q, True, strategy)

    w, l = st.columns(2)
    with w:
        if st.button("✅ WIN", type="primary", use_container_width=True, key="btn_win"):
            _record(bet, mult, True, strategy)
    with l:
        if st.button("❌ LOSS", use_container_width=True, key="btn_loss"):
            _record(bet, mult, False, strategy)


def _record(bet, mult, win, strategy):
    try:
        store.add_round(bet, mult, win, strategy)
        st.rerun()
    except InvalidAmountError as e:
        st.error(str(e))
    except SessionStateError as e:
        st.warning(str(e))


def render_targets():
    state = store.state
    cfg = state.config
    t = session_targets(cfg, state.current_session_rounds, state.session_start_balance)
    secs = elapsed_seconds(state.session_start_time, store.now_ms())

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        card("Session P/L", money(t.session_profit, signed=True), f"{len(state.current_session_rounds)} rounds",
             pl_class(t.session_profit))
    with c2:
        card("Goal", money(t.goal_value), f"{money(t.remaining_goal)} to go")
    with c3:
        card("Stop-loss", money(t.stop_loss_value), f"Opened at {money(t.opening_capital)}")
    with c4:
        card("Clock", format_clock(secs), "Fatigue alert at 30:00", "neg" if is_overtime(secs) else "")

    if t.hit_daily_goal:
        st.success("Goal reached. End the session and bank it.", icon="🏆")
    elif t.hit_stop_loss:
        st.error("Stop-loss reached. End the session now.", icon="🛑")
    if is_overtime(secs):
        st.warning("30 minutes of play. Fatigue makes decisions expensive. Wrap it up.", icon="⏰")

    if t.remaining_goal > 0:
        bet = recommended_bet(cfg)
        with st.expander("🧭 Flight plan", expanded=False):
            for row in flight_plan(t.remaining_goal, bet):
                st.markdown(
                    f"**{row['name'].title()}** @ {row['multiplier']:.2f}x: "
                    f"{row['wins_needed']} wins (~{row['est_minutes']} min)"
                )
            target = cfg.default_target_multiplier or 1.20
            st.caption(
                f"At your default {target:.2f}x: "
                f"{rounds_needed(t.remaining_goal, bet, target)} winning rounds."
            )


def render_recovery():
    with st.expander("🩹 Recovery calculator", expanded=False):
        profit = store.engine.session_profit
        c1, c2 = st.columns(2)
        with c1:
            loss = st.number_input(
                f"Loss to recover ({currency()})", min_value=0.0, value=float(max(0.0, -profit)), step=1.0,
                key="rec_loss",
            )
        with c2:
            mult = st.number_input("Target multiplier", min_value=1.01, value=2.0, step=0.1, key="rec_mult")
        res = recovery_bet(loss, mult, store.config.current_capital)
        msg = f"Stake {money(res['bet'])} ({res['risk_pct']:.1f}% of bankroll)."
        if res["level"] == "extreme":
            st.error(f"{msg} Extreme risk. Accept the loss instead.")
        elif res["level"] == "high":
            st.warning(f"{msg} High risk.")
        else:
            st.info(f"{msg} Controlled risk.")


def render_round_log():
    rounds = store.state.current_session_rounds
    if not rounds:
        st.caption("No rounds yet.")
        return
    st.markdown("#### This session")
    for r in reversed(rounds[-15:]):
        icon = "✅" if r.win else "❌"
        color = "green" if r.profit >= 0 else "red"
        st.markdown(
            f"{icon} {money(r.bet_amount)} @ {r.multiplier:.2f}x · "
            f":{color}[{money(r.profit, signed=True)}] · {STRATEGY_NAMES.get(r.strategy, r.strategy)}"
        )


def render_play():
    render_targets()
    st.markdown("---")
    left, right = st.columns([3, 2])
    with left:
        render_round_entry()
        render_recovery()
    with right:
        render_round_log()
    st.markdown("---")
    if st.button("🏁 End Session", use_container_width=True):
        st.session_state.session_mode = "end"
        st.rerun()


# =============================================================================
# END SESSION
# =============================================================================

def render_end_session():
    """Summary + confirmation before booking the session."""
    state = store.state
    rounds = state.current_session_rounds
    d = session_debrief(rounds)
    secs = elapsed_seconds(state.session_start_time, store.now_ms())

    st.markdown("### 🏁 End Session")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        card("Duration", format_clock(secs))
    with c2:
        card("Rounds", str(d["rounds"]), f"{d['wins']} wins · {d['losses']} losses")
    with c3:
        card("Result", money(d["net_profit"], signed=True), f"Win rate {d['win_rate']:.0f}%",
             pl_class(d["net_profit"]))
    with c4:
        card("Best round", money(d["best_round"], signed=True), f"Top {d['top_multiplier']:.2f}x")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Confirm & End", type="primary", use_container_width=True, key="confirm_end"):
            session = store.end_session()
            st.session_state.last_booked_session = session.id if session else None
            st.session_state.session_mode = "play"
            st.rerun()
    with col2:
        if st.button("← Back to Session", use_container_width=True, key="back_to_session"):
            st.session_state.session_mode = "play"
            st.rerun()


def render_booked():
    last = store.last_session()
    if not last or last.id != st.session_state.get("last_booked_session"):
        return
    msg = coach_message(last)
    if msg["tone"] == "win":
        st.success(f"**{msg['title']}** {msg['message']}")
    elif msg["tone"] == "loss":
        st.error(f"**{msg['title']}** {msg['message']}")
    else:
        st.info(f"**{msg['title']}** {msg['message']}")


# =============================================================================
# MAIN
# =============================================================================

def main():
    st.title("🎯 Play Session")
    state = store.state
    lock = store.lock_status()

    if state.is_session_active:
        if st.session_state.session_mode == "end":
            render_end_session()
        else:
            render_play()
        return

    render_booked()
    if lock.locked:
        render_locked(lock)
    else:
        render_setup()


main()
