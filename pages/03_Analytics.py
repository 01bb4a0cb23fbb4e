# 03_Analytics.py — Analytics
# Compound simulator, real vs target evolution, temporal pattern radar, realistic projection

import streamlit as st

st.set_page_config(
    page_title="Analytics | Bankroll Coach",
    page_icon="📈",
    layout="wide",
)

import altair as alt

from analytics import (
    MIN_ROUNDS_FOR_RATE,
    REALISTIC_HORIZON_DAYS,
    best_bucket,
    buckets_frame,
    compound_projection,
    detected_deposits,
    evolution_frame,
    evolution_series,
    milestones,
    projection_frame,
    realistic_projection,
    temporal_patterns,
    worst_bucket,
)
from settings import currency, money
from sidebar import card, clamp, get_store, inject_css, pl_class, render_sidebar, require_onboarding, show_load_notice

store = get_store()
inject_css()
show_load_notice(store)
require_onboarding(store)
render_sidebar(store)

state = store.state
cfg = state.config

st.title("📈 Analytics")

tab_sim, tab_evo, tab_radar, tab_real = st.tabs(["Simulator", "Evolution", "Pattern radar", "Realistic projection"])

AXIS = dict(labelColor="#a1a1aa", titleColor="#a1a1aa", gridColor="#2b2b2b")

# =================== Simulator ===================
with tab_sim:
    c1, c2, c3 = st.columns(3)
    with c1:
        sim_capital = st.number_input(f"Capital ({currency()})", min_value=1.0,
                                      value=max(1.0, float(cfg.current_capital)), step=10.0, key="sim_capital")
    with c2:
        sim_percent = st.slider("Daily gain (%)", 0.5, 20.0, clamp(cfg.daily_goal_percentage or 5.0, 0.5, 20.0), 0.5,
                                key="sim_percent")
    with c3:
        sim_days = st.slider("Days", 1, 365, 30, key="sim_days")

    proj = compound_projection(sim_capital, sim_percent, sim_days)
    m1, m2 = st.columns(2)
    with m1:
        card("Final balance", money(proj.final_balance), f"after {sim_days} days")
    with m2:
        card("Total profit", money(proj.total_profit, signed=True), f"{sim_percent:.1f}% compounded daily", "pos")

    df = projection_frame(proj)
    chart = (
        alt.Chart(df)
        .mark_area(line=True, opacity=0.35, color="#22c55e")
        .encode(
            x=alt.X("day:Q", title="Day"),
            y=alt.Y("total:Q", title=f"Balance ({currency()})"),
            tooltip=[
                alt.Tooltip("day:Q", title="Day"),
                alt.Tooltip("start:Q", title="Opening", format=",.2f"),
                alt.Tooltip("profit:Q", title="Profit", format=",.2f"),
                alt.Tooltip("total:Q", title="Close", format=",.2f"),
            ],
        )
        .properties(height=280)
        .configure_axis(**AXIS)
        .configure_view(strokeWidth=0)
    )
    st.altair_chart(chart, use_container_width=True)

    ms = milestones(sim_capital, sim_percent)
    cols = st.columns(len(ms))
    for col, m in zip(cols, ms):
        col.metric(f"{m['days']} days", money(m["balance"]))
    with st.expander("Day-by-day table"):
        st.dataframe(df.round(2), use_container_width=True, hide_index=True)
    st.caption("A simulation is not a promise. Losing days are not modelled.")

# =================== Evolution ===================
with tab_evo:
    if not state.sessions:
        st.info("Finish a few sessions to compare your real bankroll with the target path.")
    else:
        # target line follows the simulator inputs
        rows = evolution_series(state.sessions, cfg.initial_capital, sim_capital, sim_percent, sim_days)
        long = evolution_frame(rows)
        line = (
            alt.Chart(long)
            .mark_line(point=True)
            .encode(
                x=alt.X("day:Q", title="Session"),
                y=alt.Y("balance:Q", title=f"Balance ({currency()})"),
                color=alt.Color("series:N", legend=alt.Legend(title=None),
                                scale=alt.Scale(range=["#60a5fa", "#a1a1aa"])),
                tooltip=["series:N", "day:Q", alt.Tooltip("balance:Q", format=",.2f")],
            )
            .properties(height=300)
            .configure_axis(**AXIS)
            .configure_view(strokeWidth=0)
        )
        st.altair_chart(line, use_container_width=True)
        st.caption(f"Target path: {money(sim_capital)} at {sim_percent:.1f}% a day for {sim_days} days, "
                   "as set in the Simulator tab.")

        deposits = detected_deposits(state.sessions, cfg.initial_capital)
        if deposits > 0:
            st.info(f"Detected {money(deposits)} of deposits between sessions. They are not counted as profit.",
                    icon="💰")

# =================== Pattern radar ===================
with tab_radar:
    patterns = temporal_patterns(state.sessions, store.tz)
    if patterns["total_rounds"] == 0:
        st.info("The radar needs recorded rounds. Play a session first.")
    else:
        st.caption(f"Based on {patterns['total_rounds']} rounds. Rates only rank buckets with "
                   f"{MIN_ROUNDS_FOR_RATE}+ rounds.")
        dim = st.radio("Group by", ["Hour", "5-minute slot", "Weekday", "Day of month"], horizontal=True)
        key = {"Hour": "hours", "5-minute slot": "slots", "Weekday": "weekdays", "Day of month": "month_days"}[dim]
        buckets = patterns[key]

        best_p, worst_p = best_bucket(buckets, "profit"), worst_bucket(buckets, "profit")
        best_r = best_bucket(buckets, "rate")
        b1, b2, b3 = st.columns(3)
        with b1:
            card("Best by profit", best_p["label"], money(best_p["profit"], signed=True), pl_class(best_p["profit"]))
        with b2:
            card("Worst by profit", worst_p["label"], money(worst_p["profit"], signed=True), pl_class(worst_p["profit"]))
        with b3:
            card("Best hit rate", best_r["label"], f"{best_r['rate']:.0f}% of {best_r['total']} rounds")

        bdf = buckets_frame(buckets)
        bdf["sign"] = bdf["profit"].apply(lambda v: "gain" if v >= 0 else "loss")
        bars = (
            alt.Chart(bdf)
            .mark_bar(cornerRadiusEnd=3)
            .encode(
                x=alt.X("label:N", sort=list(bdf["label"]), title=None),
                y=alt.Y("profit:Q", title=f"Profit ({currency()})"),
                color=alt.Color("sign:N", scale=alt.Scale(domain=["gain", "loss"], range=["#22c55e", "#ef4444"]),
                                legend=None),
                tooltip=[
                    alt.Tooltip("label:N", title="Bucket"),
                    alt.Tooltip("profit:Q", title="Profit", format=",.2f"),
                    alt.Tooltip("rate:Q", title="Hit rate %", format=".0f"),
                    alt.Tooltip("total:Q", title="Rounds"),
                ],
            )
            .properties(height=280)
            .configure_axis(**AXIS)
            .configure_view(strokeWidth=0)
        )
        st.altair_chart(bars, use_container_width=True)

# =================== Realistic projection ===================
with tab_real:
    real = realistic_projection(state.sessions, cfg.current_capital, REALISTIC_HORIZON_DAYS)
    if real["sample_size"] == 0:
        st.info("No sessions yet, so there is no real yield to project.")
    else:
        r1, r2, r3 = st.columns(3)
        with r1:
            card("Avg session yield", f"{real['avg_yield_pct']:+.2f}%", f"{real['sample_size']} sessions",
                 pl_class(real["avg_yield_pct"]))
        with r2:
            card(f"In {REALISTIC_HORIZON_DAYS} days", money(real["final_balance"]), "one session per day")
        with r3:
            card("Projected result", money(real["total_profit"], signed=True), "", pl_class(real["total_profit"]))
        if real["avg_yield_pct"] < 0:
            st.error("At your current pace the bankroll shrinks. Tighten the stop-loss or lower the stake.")
        st.caption("Built from your own history, compounded from the live balance.")
