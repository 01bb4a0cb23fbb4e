# 06_Study_Center.py — Study Center: a random feed of short lessons

import streamlit as st

st.set_page_config(
    page_title="Study Center | Bankroll Coach",
    page_icon="📚",
    layout="wide",
)

from coach import KNOWLEDGE_BASE, daily_feed
from sidebar import get_store, inject_css, render_sidebar, require_onboarding, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

st.title("📚 Study Center")
st.write("Four short lessons at a time. Shuffle for a new set.")

if "study_feed" not in st.session_state:
    st.session_state["study_feed"] = daily_feed(4)

if st.button("🔀 Shuffle"):
    st.session_state["study_feed"] = daily_feed(4)

cols = st.columns(2)
for i, item in enumerate(st.session_state["study_feed"]):
    with cols[i % 2]:
        st.markdown(
            f"<div class='hero-card'><div class='hero-title'>{item['category']}</div>"
            f"<div class='hero-value' style='font-size:1.1rem'>{item['title']}</div>"
            f"<div class='kicker' style='font-size:0.95rem'>{item['content']}</div></div>",
            unsafe_allow_html=True,
        )

st.markdown("---")
with st.expander(f"All lessons ({len(KNOWLEDGE_BASE)})"):
    for item in KNOWLEDGE_BASE:
        st.markdown(f"**{item['title']}** · _{item['category']}_  \n{item['content']}")
