from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from core.encodings import MEDAL_ORDER, Scale

alt.data_transformers.disable_max_rows()

MAP_TITLE = "Swimming Athletes at the Paris 2024 Olympics"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def world_map_chart(features: List[Dict[str, Any]], color: Scale) -> alt.Chart:
    """Choropleth of swimming athletes; ``features`` carry an ``athletes`` property."""
    return (
        alt.Chart(alt.Data(values=features), title=MAP_TITLE)
        .mark_geoshape(stroke="black", strokeWidth=0.5)
        .encode(
            color=alt.Color(
                "properties.athletes:Q",
                title="Number of Swimming Athletes",
                scale=color.to_altair(),
                legend=alt.Legend(orient="bottom", format="d"),
            ),
            tooltip=[
                alt.Tooltip("properties.ADMIN:N", title="Country"),
                alt.Tooltip("properties.athletes:Q", title="Athletes"),
            ],
        )
        .project(type="mercator")
    )


def medal_bar_chart(tally: pd.DataFrame, x: Scale, y: Scale, color: Scale, gender: str) -> alt.Chart:
    long = tally.melt(id_vars=["country", "total"], value_vars=MEDAL_ORDER, var_name="medal", value_name="count")
    long["stack_order"] = long["medal"].map({m: i for i, m in enumerate(MEDAL_ORDER)})
    return (
        alt.Chart(long, title=f"Medals by Country in Swimming ({gender})")
        .mark_bar()
        .encode(
            x=alt.X("country:N", title="Country", scale=x.to_altair(), axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("count:Q", title="Total Medals' Count", stack="zero", scale=y.to_altair(), axis=alt.Axis(format="d")),
            color=alt.Color("medal:N", title="Medal", scale=color.to_altair()),
            order=alt.Order("stack_order:Q"),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("medal:N", title="Medal"),
                alt.Tooltip("count:Q", title="Count"),
                alt.Tooltip("total:Q", title="Total"),
            ],
        )
    )


def bump_chart(
    points: pd.DataFrame,
    x: Scale,
    y: Scale,
    color: Scale,
    *,
    gender: str,
    stroke_style: str,
) -> alt.LayerChart:
    """Final ranks per athlete across events; ``points`` has athlete, country, event, label, rank."""
    base = alt.Chart(points).encode(
        x=alt.X("label:N", title=None, scale=x.to_altair(), axis=alt.Axis(labelAngle=0, grid=True)),
        y=alt.Y("rank:Q", title="Final Rank", scale=y.to_altair(), axis=alt.Axis(format="d", tickMinStep=1)),
        color=alt.Color("country:N", title="Country", scale=color.to_altair()),
        detail="athlete:N",
    )
    lines = base.mark_line(strokeWidth=2)
    dots = base.mark_circle(size=50, opacity=1).encode(
        tooltip=[
            alt.Tooltip("athlete:N", title="Athlete"),
            alt.Tooltip("country:N", title="Country"),
            alt.Tooltip("event:N", title="Event"),
            alt.Tooltip("rank:Q", title="Rank"),
        ]
    )
    return alt.layer(lines, dots).properties(
        title=f"Final Rankings of {gender} Athletes in {stroke_style} Events"
    )


def parallel_chart(points: pd.DataFrame, x: Scale, y: Scale, color: Scale, event: str) -> alt.LayerChart:
    """Heats/semifinal/final ranks per swimmer; ``points`` has swimmer, stage, rank, group."""
    base = alt.Chart(points).encode(
        x=alt.X("stage:N", title=None, scale=x.to_altair(), axis=alt.Axis(labelAngle=0, grid=True)),
        y=alt.Y("rank:Q", title="Rank", scale=y.to_altair(), axis=alt.Axis(format="d", tickMinStep=1)),
        color=alt.Color("group:N", title="Performance", scale=color.to_altair()),
        detail="swimmer:N",
    )
    lines = base.mark_line(strokeWidth=3, opacity=0.6)
    dots = base.mark_circle(size=30, opacity=0.8).encode(
        tooltip=[
            alt.Tooltip("swimmer:N", title="Swimmer"),
            alt.Tooltip("stage:N", title="Stage"),
            alt.Tooltip("rank:Q", title="Rank"),
            alt.Tooltip("group:N", title="Performance"),
        ]
    )
    return alt.layer(lines, dots).properties(title=f"Ranks for {event}")


def legend_items(color: Scale) -> List[Dict[str, str]]:
    rng: Sequence[str] = color.range or ()
    return [{"value": str(v), "color": c} for v, c in zip(color.domain, rng)]
