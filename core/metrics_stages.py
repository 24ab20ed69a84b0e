from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import parallel_chart, to_vega_spec
from core.data import matches, unavailable_reason
from core.encodings import (
    PERFORMANCE_GROUPS,
    PERFORMANCE_LABELS,
    STAGE_ORDER,
    STAGE_TITLES,
    performance_color_scale,
    performance_group,
    point_scale,
    rank_scale,
)
from core.filters import Selection

STAGE_BUCKETS = {"Heat": "heats", "Semifinal": "semifinals", "Final": "finals"}


def _person_rows(results: Optional[pd.DataFrame]) -> pd.DataFrame:
    if results is None or results.empty:
        return pd.DataFrame(columns=["event_name", "participant_name", "stage", "rank"])
    mask = (
        matches(results["participant_type"], "Person")
        & results["event_name"].notna()
        & results["participant_name"].notna()
    )
    return results[mask]


def qualifying_events(results: Optional[pd.DataFrame]) -> List[str]:
    """Events whose individual rows cover heats, semifinal and final, in first-seen order."""
    rows = _person_rows(results)
    rows = rows[rows["stage"].notna()]
    if rows.empty:
        return []
    stages = rows.groupby("event_name", sort=False)["stage"].nunique()
    return [str(event) for event, n in stages.items() if n == len(STAGE_BUCKETS)]


def stage_ranks(results: Optional[pd.DataFrame], event: str) -> List[Dict[str, Any]]:
    """Per swimmer, the rank in each stage bucket (first row per bucket; None when absent)."""
    rows = _person_rows(results)
    rows = rows[matches(rows["event_name"], event)] if not rows.empty else rows
    out: List[Dict[str, Any]] = []
    for swimmer, records in rows.groupby("participant_name", sort=False):
        ranks: Dict[str, Optional[int]] = {bucket: None for bucket in STAGE_ORDER}
        seen = set()
        for stage, rank in zip(records["stage"], records["rank"]):
            if pd.isna(stage):
                continue
            bucket = STAGE_BUCKETS[str(stage)]
            if bucket in seen:
                continue
            seen.add(bucket)
            ranks[bucket] = None if pd.isna(rank) else int(rank)
        out.append({"swimmer": str(swimmer), **ranks, "group": performance_group(ranks["finals"])})
    return out


def stage_points(records: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "swimmer": r["swimmer"],
            "stage": STAGE_TITLES[bucket],
            "rank": r[bucket],
            "group": PERFORMANCE_LABELS[r["group"]],
        }
        for r in records
        for bucket in STAGE_ORDER
        if r[bucket] is not None
    ]
    return pd.DataFrame(rows, columns=["swimmer", "stage", "rank", "group"])


def compute_stages(selection: Selection, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "events": [],
        "event": selection.event,
        "selectable": False,
        "records": [],
        "charts": {},
    }
    error = unavailable_reason(data_ctx, "stages")
    if error:
        payload["error"] = error
        return payload

    results = data_ctx["results"]
    events = qualifying_events(results)
    selectable = selection.event in events
    records = stage_ranks(results, selection.event) if selectable else []

    x = point_scale(STAGE_TITLES[s] for s in STAGE_ORDER)
    y = rank_scale(r[bucket] for r in records for bucket in STAGE_ORDER)
    color = performance_color_scale()
    group_counts = {g: sum(1 for r in records if r["group"] == g) for g in PERFORMANCE_GROUPS}

    payload.update(
        events=events,
        selectable=selectable,
        records=records,
        group_counts=group_counts,
        encoding={"x": x.as_dict(), "y": y.as_dict(), "color": color.as_dict()},
    )
    if records:
        chart = parallel_chart(stage_points(records), x, y, color, selection.event)
        payload["charts"] = {"stages": to_vega_spec(chart)}
    return payload
