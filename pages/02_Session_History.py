# 02_Session_History.py — Session History
# Summary metrics, filters, per-session round ledger (all-in flags), CSV download, clear history

import streamlit as st

st.set_page_config(
    page_title="Session History | Bankroll Coach",
    page_icon="📜",
    layout="wide",
)

from datetime import datetime, timezone

from analytics import round_ledger, sessions_frame, summary_stats
from day_guard import parse_iso
from engine import format_clock
from models import STRATEGY_NAMES
from settings import money
from sidebar import get_store, inject_css, render_sidebar, require_onboarding, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

st.title("📜 Session History")

sessions = store.state.sessions
if not sessions:
    st.info("No sessions yet. Finish your first session to see it here.")
    st.page_link("pages/01_Play_Session.py", label="Play Session", icon="🎯")
    st.stop()


def _local(iso: str):
    ts = parse_iso(iso)
    return ts.astimezone(store.tz) if ts else None


# ---------- Summary ----------
stats = summary_stats(sessions)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Sessions", int(stats["sessions"]))
c2.metric("Net result", money(stats["profit"], signed=True))
c3.metric("Winning sessions", f"{stats['win_pct']:.0f}%")
c4.metric("Avg duration", f"{stats['avg_duration_min']:.0f} min")

st.markdown("---")

# ---------- Filters ----------
f1, f2 = st.columns(2)
with f1:
    status_filter = st.multiselect("Result", ["WIN", "LOSS", "BREAK_EVEN"], default=["WIN", "LOSS", "BREAK_EVEN"])
with f2:
    dates = [d for d in (_local(s.date) for s in sessions) if d]
    lo = min(dates).date() if dates else datetime.now(timezone.utc).date()
    hi = max(dates).date() if dates else lo
    picked = st.date_input("Date range", value=(lo, hi), min_value=lo, max_value=hi)

if isinstance(picked, (list, tuple)) and len(picked) == 2:
    d_from, d_to = picked
else:
    d_from = d_to = picked if not isinstance(picked, (list, tuple)) else lo

visible = []
for s in sessions:
    local = _local(s.date)
    if s.status not in status_filter:
        continue
    if local and not (d_from <= local.date() <= d_to):
        continue
    visible.append(s)

st.caption(f"Showing {len(visible)} of {len(sessions)} sessions.")

frame = sessions_frame(visible)
st.download_button(
    "⬇️ Download CSV",
    data=frame.to_csv(index=False).encode("utf-8"),
    file_name="sessions.csv",
    mime="text/csv",
)

# ---------- Ledger ----------
for s in reversed(visible):
    local = _local(s.date)
    when = local.strftime("%Y-%m-%d %H:%M") if local else s.date
    icon = {"WIN": "🟢", "LOSS": "🔴"}.get(s.status, "⚪")
    with st.expander(f"{icon} {when} · {money(s.profit, signed=True)} · {s.rounds} rounds · {format_clock(s.duration_seconds)}"):
        st.markdown(f"Opened at **{money(s.start_balance)}**, closed at **{money(s.end_balance)}**.")
        ledger = round_ledger(s)
        if not ledger:
            st.caption("No round detail stored for this session.")
            continue
        if any(r["all_in"] for r in ledger):
            st.warning("This session contains all-in rounds (stake ≈ whole balance).", icon="⚠️")
        rows = []
        for r in ledger:
            ts = datetime.fromtimestamp(r["timestamp"] / 1000.0, tz=timezone.utc).astimezone(store.tz)
            rows.append({
                "Time": ts.strftime("%H:%M:%S"),
                "Strategy": STRATEGY_NAMES.get(r["strategy"], r["strategy"]),
                "Bet": round(r["bet"], 2),
                "Mult": round(r["multiplier"], 2),
                "Result": "WIN" if r["win"] else "LOSS",
                "Profit": round(r["profit"], 2),
                "Balance before": round(r["balance_before"], 2),
                "All-in": "⚠️" if r["all_in"] else "",
            })
        st.dataframe(rows, use_container_width=True, hide_index=True)

st.markdown("---")

# ---------- Clear ----------
with st.expander("🗑️ Clear history"):
    st.warning("This deletes every saved session. Your bankroll and settings stay. Export a backup first.")
    confirm = st.checkbox("I understand this cannot be undone", key="confirm_clear")
    if st.button("Delete all sessions", disabled=not confirm):
        store.clear_history()
        st.toast("History cleared.", icon="🗑️")
        st.rerun()
