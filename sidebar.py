# sidebar.py — Navigation Sidebar for Bankroll Coach

import streamlit as st

from cache import get_cached_store, load_notice_pending, mark_load_notice_shown
from day_guard import format_countdown, seconds_until_reset
from engine import elapsed_seconds, format_clock, is_overtime
from settings import app_tz, money, state_path
from store import BankrollStore

CARD_CSS = """
<style>
.hero-card{background:#0f172a;border:1px solid #1f2937;border-radius:12px;padding:14px 16px;margin-bottom:8px}
.hero-title{color:#9ca3af;font-size:0.8rem;text-transform:uppercase;letter-spacing:.04em}
.hero-value{color:#f9fafb;font-size:1.45rem;font-weight:700;margin-top:2px}
.kicker{color:#9ca3af;font-size:0.82rem;margin-top:4px}
.pos{color:#22c55e}.neg{color:#ef4444}
.badge{display:inline-block;padding:2px 10px;border-radius:999px;font-size:0.8rem;font-weight:600}
.lock-card{background:#111827;border:2px solid #374151;border-radius:16px;padding:28px;text-align:center}
</style>
"""


def get_store() -> BankrollStore:
    """The single store of this browser session, loaded from the configured path."""
    return get_cached_store(lambda: BankrollStore(path=state_path(), tz=app_tz()))


def inject_css() -> None:
    st.markdown(CARD_CSS, unsafe_allow_html=True)


def card(title: str, value: str, kicker: str = "", value_cls: str = "") -> None:
    st.markdown(
        f"<div class='hero-card'><div class='hero-title'>{title}</div>"
        f"<div class='hero-value {value_cls}'>{value}</div>"
        f"<div class='kicker'>{kicker}</div></div>",
        unsafe_allow_html=True,
    )


def pl_class(value: float) -> str:
    return "pos" if value >= 0 else "neg"


def clamp(value, lo: float, hi: float) -> float:
    """Keep a stored value inside a widget's range."""
    return min(hi, max(lo, float(value)))


def show_load_notice(store: BankrollStore) -> None:
    """Warn once per browser session when the saved file could not be read."""
    res = store.load_result
    if not res.corrupted or not load_notice_pending():
        return
    where = f" A copy was kept at `{res.quarantined_path}`." if res.quarantined_path else ""
    st.error(
        "Your saved data could not be read, so the app started fresh."
        f"{where} You can restore a backup from Settings.",
        icon="⚠️",
    )
    mark_load_notice_shown()


def require_onboarding(store: BankrollStore) -> None:
    """Pages other than Home need a configured bankroll."""
    if not store.state.has_completed_onboarding:
        st.info("Set up your bankroll on the Home page first.")
        st.page_link("app.py", label="Go to Home", icon="🏠")
        st.stop()


def render_sidebar(store: BankrollStore):
    """
    Render the sidebar with bankroll, rank, today's result, active session and navigation.

    Call this at the top of every page after st.set_page_config().
    """
    state = store.state
    lock = store.lock_status()
    rank = store.rank()

    with st.sidebar:
        # ---------- Branding ----------
        st.markdown("## 🚀 Bankroll Coach")

        # ---------- Bankroll + Rank ----------
        st.markdown("### 💰 Bankroll")
        st.markdown(f"**{money(state.config.current_capital)}**")
        st.markdown(
            f"<span class='badge' style='background:{rank.rank.color};color:#0b0f19'>"
            f"{rank.rank.icon} {rank.rank.name}</span>",
            unsafe_allow_html=True,
        )
        if not rank.is_top:
            st.progress(int(rank.progress), text=f"{rank.progress:.0f}% to {rank.next_rank.name}")

        st.markdown("---")

        # ---------- Active Session Status ----------
        if state.is_session_active:
            st.markdown("### 📍 Active Session")
            secs = elapsed_seconds(state.session_start_time, store.now_ms())
            profit = store.engine.session_profit
            st.markdown(f"**Duration:** {format_clock(secs)}")
            if is_overtime(secs):
                st.warning("30 minutes passed. Take a break.", icon="⏰")
            color = "green" if profit >= 0 else "red"
            st.markdown(f"**Session P/L:** :{color}[{money(profit, signed=True)}]")

            if st.button("← Back to Session", use_container_width=True):
                st.switch_page("pages/01_Play_Session.py")

            st.markdown("---")

        # ---------- Today ----------
        st.markdown("### 📊 Today")
        col1, col2 = st.columns(2)
        with col1:
            st.metric("P/L", money(lock.daily_profit, signed=True))
        with col2:
            st.metric("Sessions", lock.sessions_today)

        if lock.status == "WIN":
            st.success("Goal hit. Day locked.", icon="🏆")
        elif lock.status == "LOSS":
            st.error("Stop-loss hit. Day locked.", icon="🛑")
        if lock.locked:
            st.caption(f"Reset in {format_countdown(seconds_until_reset(store.now(), store.tz))}")

        st.markdown("---")

        # ---------- Navigation ----------
        st.markdown("### Navigation")

        if st.button("🏠 Home", use_container_width=True):
            st.switch_page("app.py")

        if st.button("🎯 Play Session", use_container_width=True):
            st.switch_page("pages/01_Play_Session.py")

        if st.button("📜 Session History", use_container_width=True):
            st.switch_page("pages/02_Session_History.py")

        if st.button("📈 Analytics", use_container_width=True):
            st.switch_page("pages/03_Analytics.py")

        with st.expander("More", expanded=False):
            if st.button("🧠 Mindset", use_container_width=True):
                st.switch_page("pages/04_Mindset.py")

            if st.button("⚙️ Settings", use_container_width=True):
                st.switch_page("pages/05_Settings.py")

            if st.button("📚 Study Center", use_container_width=True):
                st.switch_page("pages/06_Study_Center.py")

        if not store.last_save_ok:
            st.markdown("---")
            st.warning("Last save failed. Export a backup from Settings.", icon="💾")
