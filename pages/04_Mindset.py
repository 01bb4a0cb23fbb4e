# 04_Mindset.py — Mindset
# Coach message on the last session, its debrief numbers, and the ten rules

import streamlit as st

st.set_page_config(
    page_title="Mindset | Bankroll Coach",
    page_icon="🧠",
    layout="wide",
)

from analytics import session_debrief
from coach import COMMANDMENTS, coach_message, random_commandment
from settings import money
from sidebar import card, get_store, inject_css, pl_class, render_sidebar, require_onboarding, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

st.title("🧠 Mindset")

last = store.last_session()
msg = coach_message(last)
border = {"win": "#22c55e", "loss": "#ef4444"}.get(msg["tone"], "#60a5fa")
st.markdown(
    f"<div class='lock-card' style='border-color:{border};text-align:left'>"
    f"<div class='hero-title'>Coach</div>"
    f"<div class='hero-value'>{msg['title']}</div>"
    f"<div class='kicker' style='font-size:1rem'>{msg['message']}</div></div>",
    unsafe_allow_html=True,
)

if last is not None:
    st.markdown("### Last session debrief")
    d = session_debrief(last.rounds_detail)
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        card("Result", money(last.profit, signed=True), f"{last.rounds} rounds", pl_class(last.profit))
    with c2:
        card("Hit rate", f"{d['win_rate']:.0f}%", f"{d['wins']} W · {d['losses']} L")
    with c3:
        card("Profit factor", f"{d['profit_factor']:.2f}", f"Top {d['top_multiplier']:.2f}x")
    with c4:
        card("Streaks", f"{d['max_win_streak']} / {d['max_loss_streak']}", "longest win / loss run")
    if d["max_loss_streak"] >= 3:
        st.warning("Three or more losses in a row. Next time, pause after the second one.")

st.markdown("---")
st.markdown("### 📜 The Ten Commandments")
st.info(f"Today's rule: **{random_commandment()}**")
for i, rule in enumerate(COMMANDMENTS, start=1):
    st.markdown(f"**{i}.** {rule}")
