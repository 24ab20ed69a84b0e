from __future__ import annotations

import logging
import re
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from core.charts import bump_chart, legend_items, to_vega_spec
from core.data import SWIMMING, UNKNOWN_COUNTRY, contains, matches, unavailable_reason
from core.encodings import country_color_scale, point_scale, rank_scale
from core.filters import Selection


logger = logging.getLogger(__name__)

FINAL_COLUMNS = ["event_name", "participant_name", "participant_country", "rank"]


def select_events(events: Optional[pd.DataFrame], gender: str, stroke_style: str) -> List[str]:
    """Individual swimming events for a gender + stroke, in catalog order."""
    if events is None or events.empty:
        return []
    names = events["event"]
    mask = (
        matches(events["sport"], SWIMMING)
        & contains(names, stroke_style)
        & contains(names, gender)
        & ~contains(names, "Relay")
    )
    return list(dict.fromkeys(str(e) for e in names[mask].tolist()))


def event_label(event: str) -> str:
    match = re.search(r"\d+m", event)
    return match.group(0) if match else event


def final_rows(results: Optional[pd.DataFrame], event_list: List[str]) -> pd.DataFrame:
    """Ranked individual final rows for the selected events."""
    if results is None or results.empty or not event_list:
        return pd.DataFrame(columns=FINAL_COLUMNS)
    mask = (
        matches(results["stage"], "Final")
        & matches(results["participant_type"], "Person")
        & results["event_name"].isin(event_list).fillna(False).astype(bool)
        & results["rank"].notna()
        & results["participant_name"].notna()
    )
    rows = results.loc[mask, FINAL_COLUMNS].copy()
    rows["participant_country"] = rows["participant_country"].fillna(UNKNOWN_COUNTRY).astype(str)
    return rows


def rank_series(finals: pd.DataFrame, event_list: List[str]) -> Tuple[List[Dict[str, Any]], List[str]]:
    """One series per athlete with a rank (or None) for every selected event.

    The athlete's country is taken from their first final row; athletes whose
    rows disagree on country are returned as conflicts.
    """
    series: List[Dict[str, Any]] = []
    conflicts: List[str] = []
    if finals.empty:
        return series, conflicts
    for athlete, records in finals.groupby("participant_name", sort=False):
        countries = records["participant_country"].unique().tolist()
        if len(countries) > 1:
            conflicts.append(str(athlete))
        by_event: Dict[str, int] = {}
        for event, rank in zip(records["event_name"], records["rank"]):
            by_event.setdefault(str(event), int(rank))
        series.append(
            {
                "athlete": str(athlete),
                "country": str(countries[0]),
                "ranks": {event: by_event.get(event) for event in event_list},
            }
        )
    return series, conflicts


def series_points(series: List[Dict[str, Any]], labels: Dict[str, str]) -> pd.DataFrame:
    rows = [
        {"athlete": s["athlete"], "country": s["country"], "event": event, "label": labels[event], "rank": rank}
        for s in series
        for event, rank in s["ranks"].items()
        if rank is not None
    ]
    return pd.DataFrame(rows, columns=["athlete", "country", "event", "label", "rank"])


def compute_rankings(selection: Selection, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "events": [],
        "event_labels": [],
        "countries": [],
        "series": [],
        "country_conflicts": [],
        "charts": {},
    }
    error = unavailable_reason(data_ctx, "rankings")
    if error:
        payload["error"] = error
        return payload

    event_list = select_events(data_ctx["events"], selection.gender, selection.stroke_style)
    labels = {event: event_label(event) for event in event_list}
    finals = final_rows(data_ctx["results"], event_list)
    series, conflicts = rank_series(finals, event_list)
    if conflicts:
        logger.warning("athletes with inconsistent countries in finals: %s", ", ".join(conflicts))

    countries = finals["participant_country"].drop_duplicates().tolist()
    visible = [s for s in series if not selection.country or s["country"] == selection.country]

    x = point_scale(labels[e] for e in event_list)
    y = rank_scale(rank for s in visible for rank in s["ranks"].values())
    color = country_color_scale(countries)

    payload.update(
        events=event_list,
        event_labels=[labels[e] for e in event_list],
        countries=countries,
        series=visible,
        country_conflicts=conflicts,
        legend=legend_items(color),
        encoding={"x": x.as_dict(), "y": y.as_dict(), "color": color.as_dict()},
    )
    if visible and event_list:
        points = series_points(visible, labels)
        chart = bump_chart(points, x, y, color, gender=selection.gender, stroke_style=selection.stroke_style)
        payload["charts"] = {"rankings": to_vega_spec(chart)}
    return payload
