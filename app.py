import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import streamlit as st

from eudigital.chart_bubble import compute_bubble
from eudigital.chart_choropleth import compute_choropleth
from eudigital.chart_diverging import compute_diverging
from eudigital.chart_pyramid import compute_pyramid
from eudigital.chart_radar import compute_radar
from eudigital.chart_revenue import compute_revenue
from eudigital.chart_sankey import compute_sankey
from eudigital.charts import STATUS_EMPTY, STATUS_ERROR
from eudigital.config import animation_interval, configure_logging, resolve_data_dir
from eudigital.selection import DrillDown, YearAnimator

configure_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .section-kicker {color: #888888;font-size: 0.75rem;font-weight: 600;text-transform: uppercase;
                         letter-spacing: 0.08em;margin-bottom: 4px;}
        .section-title {font-size: 1.8rem;font-weight: 700;margin-bottom: 6px;}
        .section-lead {color: #6b7280;font-size: 1.0rem;margin-bottom: 12px;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def section(kicker: str, title: str, lead: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="section-kicker">{kicker}</div>
        <div class="section-title">{title}</div>
        <div class="section-lead">{lead}</div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    st.markdown("---")


def render_status(payload: Dict[str, Any]) -> bool:
    """Show the error/empty placeholder for a payload; True when there is a chart to draw."""
    if payload.get("status") == STATUS_ERROR:
        st.error(payload.get("message") or "Data could not be loaded.")
        return False
    if payload.get("status") == STATUS_EMPTY:
        st.info(payload.get("message") or "No data to display.")
        return False
    return True


def year_index(years: List[int], year: Optional[int]) -> int:
    return years.index(year) if year in years else max(len(years) - 1, 0)


def session_object(key: str, factory):
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


# ---------- UI setup ----------
st.set_page_config(page_title="Digital Europe: Eurostat Insights", layout="wide")
inject_base_styles()
st.title("Digital Europe")
st.caption("Interactive views of Eurostat digitalisation indicators: internet access, usage and e-commerce.")

with st.sidebar:
    st.markdown("### Sections")
    st.markdown(
        "- Internet access map\n- Usage by gender and age\n- E-commerce revenue\n"
        "- Commerce correlations\n- Non-usage patterns\n- Activity flows\n- Activity profiles"
    )
    st.markdown("---")
    st.caption(f"Data directory: `{resolve_data_dir()}`")
    if st.button("Reload data"):
        from eudigital.data import clear_caches

        clear_caches()
        st.rerun()


# ---------- Sections ----------
def render_choropleth_section():
    with section(
        "Data Insights",
        "Internet Access Level - Households",
        "Share of households with internet access across European countries.",
    ):
        year = st.session_state.get("choropleth_year")
        payload = compute_choropleth({"year": year})
        years = payload.get("years") or []
        if years:
            st.selectbox("Select Year", years, index=year_index(years, payload["selection"]["year"]), key="choropleth_year")
        if not render_status(payload):
            return
        st.vega_lite_chart(payload["charts"]["map"], use_container_width=True)
        summary = payload.get("summary") or {}
        st.caption(f"{summary.get('regions_with_data', 0)} of {summary.get('regions', 0)} regions with data. Grey regions: no data available.")


def render_pyramid_section():
    with section(
        "Demographic Analysis",
        "Daily Internet Usage by Gender and Age Groups",
        "Daily internet usage across age groups and genders; press Play to step through the years.",
    ):
        animator: YearAnimator = session_object("pyramid_animator", lambda: YearAnimator([], interval=animation_interval()))
        if not animator.playing and "pyramid_year" in st.session_state:
            animator.select(st.session_state["pyramid_year"])
        payload = compute_pyramid({"country": st.session_state.get("pyramid_country"), "year": animator.current})
        if payload.get("status") == STATUS_ERROR:
            render_status(payload)
            return

        animator.set_years(payload.get("years_with_data") or [])
        if payload["selection"]["year"] is not None:
            animator.select(payload["selection"]["year"])
        st.session_state["pyramid_year"] = animator.current

        countries = payload.get("countries") or []
        c1, c2, c3 = st.columns([5, 1, 2])
        with c1:
            if countries:
                current = payload["selection"]["country"]
                st.selectbox("Country", countries, index=countries.index(current) if current in countries else 0, key="pyramid_country")
        with c2:
            st.button("Pause" if animator.playing else "Play", on_click=animator.toggle, disabled=not animator.years)
        with c3:
            if animator.years:
                st.selectbox("Year", animator.years, key="pyramid_year", disabled=animator.playing)
        if render_status(payload):
            st.vega_lite_chart(payload["charts"]["pyramid"], use_container_width=True)


def render_revenue_section():
    with section(
        "Revenue Analysis",
        "Enterprise E-commerce Revenue Evolution",
        "Share of enterprises' turnover from e-commerce. Click bars to compare countries over time.",
    ):
        drill: DrillDown = session_object("revenue_drill", DrillDown)
        chart_rev = st.session_state.setdefault("revenue_chart_rev", 0)
        last_picked = st.session_state.setdefault("revenue_picked", [])
        payload = compute_revenue({"year": st.session_state.get("revenue_year"), "focus": drill.focus})
        years = payload.get("years") or []
        if len(years) > 1:
            st.select_slider("Year", options=years, value=payload["selection"]["year"] or years[-1], key="revenue_year")
        if not render_status(payload):
            return

        if drill.focus:
            if st.button("Back to all countries"):
                drill.reset()
                st.session_state["revenue_chart_rev"] = chart_rev + 1
                st.session_state["revenue_picked"] = []
                st.rerun()
            left, right = st.columns(2)
        else:
            left, right = st.container(), None

        with left:
            event = st.vega_lite_chart(
                payload["charts"]["bars"],
                use_container_width=True,
                on_select="rerun",
                selection_mode="focus",
                key=f"revenue_chart_{chart_rev}",
            )
        if right is not None and "history" in payload["charts"]:
            with right:
                st.vega_lite_chart(payload["charts"]["history"], use_container_width=True)

        # Clicking empty space clears the chart selection, which leaves focused mode.
        points = ((event or {}).get("selection") or {}).get("focus") or []
        picked = [p["country"] for p in points if isinstance(p, dict) and p.get("country")]
        if picked != last_picked:
            st.session_state["revenue_picked"] = picked
            if picked:
                drill.focus = picked
            else:
                drill.reset()
            st.rerun()


def render_bubble_section():
    with section(
        "Correlation Analysis",
        "Digital Commerce Ecosystem Correlations",
        "Online buyers against enterprises receiving online orders; bubble size shows e-commerce turnover.",
    ):
        focus = st.session_state.get("bubble_focus")
        payload = compute_bubble({"year": st.session_state.get("bubble_year"), "focus": [focus] if focus else []})
        years = payload.get("years") or []
        c1, c2 = st.columns([1, 3])
        with c1:
            if years:
                st.selectbox("Year", years, index=year_index(years, payload["selection"]["year"]), key="bubble_year")
        with c2:
            options = ["(none)"] + (payload.get("countries") or [])
            st.selectbox("Focus country", options, key="bubble_focus_choice", on_change=_apply_bubble_focus)
        if not render_status(payload):
            return
        st.vega_lite_chart(payload["charts"]["bubbles"], use_container_width=True)
        if "focus" in payload["charts"]:
            st.vega_lite_chart(payload["charts"]["focus"], use_container_width=True)


def _apply_bubble_focus():
    choice = st.session_state.get("bubble_focus_choice")
    st.session_state["bubble_focus"] = None if choice in (None, "(none)") else choice


def render_diverging_section():
    with section(
        "Digital Exclusion Analysis",
        "Digital Exclusion: Internet Non-Usage Patterns",
        "Each country's share of people who never used the internet, relative to the average across countries.",
    ):
        payload = compute_diverging({"year": st.session_state.get("diverging_year")})
        years = payload.get("years") or []
        if years:
            st.selectbox("Year", years, index=year_index(years, payload["selection"]["year"]), key="diverging_year")
        if not render_status(payload):
            return
        st.metric("Average across countries", f"{payload['average']:.1f}%")
        st.vega_lite_chart(payload["charts"]["diverging"], use_container_width=True)


def render_sankey_section():
    with section(
        "Flow Analysis",
        "Digital Activity Flow by Age Group",
        "How each age group spreads across common online activities.",
    ):
        payload = compute_sankey()
        if not render_status(payload):
            return
        st.plotly_chart(payload["charts"]["sankey"], use_container_width=True)


def render_radar_section():
    with section(
        "Activity Profiles",
        "Internet Activities by Age Group",
        "One profile per age group for the selected country.",
    ):
        payload = compute_radar({"country": st.session_state.get("radar_country")})
        countries = payload.get("countries") or []
        if countries:
            current = payload["selection"]["country"]
            st.selectbox("Country", countries, index=countries.index(current) if current in countries else 0, key="radar_country")
        if not render_status(payload):
            return
        st.vega_lite_chart(payload["charts"]["radar"])


def advance_animations():
    animator: Optional[YearAnimator] = st.session_state.get("pyramid_animator")
    if animator is None or not animator.playing:
        return
    time.sleep(animator.interval)
    animator.tick()
    st.rerun()


render_choropleth_section()
render_pyramid_section()
render_revenue_section()
render_bubble_section()
render_diverging_section()
render_sankey_section()
render_radar_section()
st.caption("Source: Eurostat. Add or replace exports in the data directory and press Reload data.")
advance_animations()
