import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.controller import SelectionController
from core.data import load_dashboard_data
from core.filters import ALL_COUNTRIES, GENDERS, STROKE_STYLES, Selection
from core.metrics_debug import compute_debug
from core.metrics_map import compute_map
from core.metrics_medals import compute_medals
from core.metrics_rankings import compute_rankings
from core.metrics_stages import compute_stages


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_selection_summary(selection: Selection) -> str:
    chips = [
        f"Gender: {selection.gender}",
        f"Style: {selection.stroke_style}",
        f"Country: {selection.country or 'All'}",
        f"Event: {selection.event}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_chart(payload: Dict[str, Any], key: str, empty_message: str):
    if payload.get("error"):
        st.warning(payload["error"])
        return
    spec = payload.get("charts", {}).get(key)
    if not spec:
        st.info(empty_message)
        return
    st.vega_lite_chart(spec, use_container_width=True)


# ---------- Selection state ----------
def get_controller() -> SelectionController:
    controller: Optional[SelectionController] = st.session_state.get("controller")
    if controller is None:
        controller = SelectionController()

        # Keep widget state in step with dependent resets made by the controller.
        def sync_widgets(old: Selection, new: Selection):
            st.session_state["country_choice"] = new.country or ALL_COUNTRIES

        controller.subscribe(sync_widgets)
        st.session_state["controller"] = controller
    return controller


def on_selection_change(field: str, widget_key: str):
    value = st.session_state[widget_key]
    if field == "country" and value == ALL_COUNTRIES:
        value = ""
    get_controller().update(**{field: value})


# ---------- UI setup ----------
st.set_page_config(page_title="Paris 2024 Swimming Dashboard", layout="wide")
inject_base_styles()
st.title("2024 Paris Swimming Olympics Dashboard")

data_ctx = load_dashboard_data()
controller = get_controller()
for name, message in (data_ctx.get("errors") or {}).items():
    st.error(f"Could not load {name}: {message}")

# Country and event options depend on the current selection.
rankings_preview = compute_rankings(controller.selection, data_ctx)
stages_preview = compute_stages(controller.selection, data_ctx)

with st.sidebar:
    st.markdown("### Selection")
    st.selectbox(
        "Gender",
        options=list(GENDERS),
        index=GENDERS.index(controller.selection.gender),
        key="gender_choice",
        on_change=on_selection_change,
        args=("gender", "gender_choice"),
    )
    st.selectbox(
        "Stroke style",
        options=list(STROKE_STYLES),
        index=STROKE_STYLES.index(controller.selection.stroke_style),
        key="style_choice",
        on_change=on_selection_change,
        args=("stroke_style", "style_choice"),
    )
    country_options = [ALL_COUNTRIES] + rankings_preview["countries"]
    if st.session_state.get("country_choice") not in country_options:
        st.session_state["country_choice"] = ALL_COUNTRIES
    st.selectbox(
        "Country",
        options=country_options,
        key="country_choice",
        on_change=on_selection_change,
        args=("country", "country_choice"),
    )
    event_options = stages_preview["events"] or [controller.selection.event]
    if st.session_state.get("event_choice") not in event_options:
        st.session_state["event_choice"] = (
            controller.selection.event if controller.selection.event in event_options else event_options[0]
        )
    st.selectbox(
        "Swimming event (stage ranks)",
        options=event_options,
        key="event_choice",
        on_change=on_selection_change,
        args=("event", "event_choice"),
    )

selection = controller.selection
ticket = controller.ticket()
st.markdown(f"<div class='chip-row'>{format_selection_summary(selection)}</div>", unsafe_allow_html=True)

payloads = {
    "map": controller.accept(ticket, compute_map(selection, data_ctx)),
    "medals": controller.accept(ticket, compute_medals(selection, data_ctx)),
    "rankings": controller.accept(ticket, compute_rankings(selection, data_ctx)),
    "stages": controller.accept(ticket, compute_stages(selection, data_ctx)),
}

left, right = st.columns([7, 5])
with left:
    with card("Swimming athletes by country"):
        if payloads["map"] is not None:
            render_chart(payloads["map"], "map", "No swimming athletes found.")
            unmatched = payloads["map"].get("unmatched_countries") or []
            if unmatched:
                st.caption(f"Not on the map: {', '.join(unmatched)}")
    with card("Stage ranks"):
        if payloads["stages"] is not None:
            if not payloads["stages"].get("selectable") and not payloads["stages"].get("error"):
                st.info("The selected event has no heats, semifinal and final results.")
            else:
                render_chart(payloads["stages"], "stages", "No ranks for this event.")
with right:
    with card("Medals by country"):
        if payloads["medals"] is not None:
            render_chart(payloads["medals"], "medals", "No medals for this selection.")
            tally = payloads["medals"].get("tally") or []
            if tally:
                st.dataframe(pd.DataFrame(tally), hide_index=True, use_container_width=True)
    with card("Final rankings"):
        if payloads["rankings"] is not None:
            render_chart(payloads["rankings"], "rankings", "No final results for this selection.")
            conflicts = payloads["rankings"].get("country_conflicts") or []
            if conflicts:
                st.caption(f"Athletes listed under more than one country: {', '.join(conflicts)}")

with st.expander("Data quality", expanded=False):
    st.json(compute_debug(selection, data_ctx))
