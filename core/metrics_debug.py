from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.data import CHART_DATASETS, SCHEMAS, missing_datasets
from core.filters import Selection
from core.metrics_rankings import final_rows, rank_series, select_events


def compute_debug(selection: Selection, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "load_errors": dict(data_ctx.get("errors") or {}),
        "chart_status": {
            chart: ("ok" if not missing_datasets(data_ctx, chart) else "unavailable") for chart in CHART_DATASETS
        },
        "row_counts": {},
        "flagged_rows": {},
        "flag_samples": {},
        "unknown_country_rows": {},
        "country_conflicts": [],
    }

    for name in SCHEMAS:
        df = data_ctx.get(name)
        if not isinstance(df, pd.DataFrame):
            continue
        payload["row_counts"][name] = int(len(df))
        if "dq_issue" in df.columns:
            flagged = df[df["dq_issue"].notna()]
            payload["flagged_rows"][name] = {str(k): int(v) for k, v in flagged["dq_issue"].value_counts().items()}
            if not flagged.empty:
                sample = flagged.head(5).drop(columns=["disciplines"], errors="ignore")
                payload["flag_samples"][name] = sample.astype(object).where(sample.notna(), None).to_dict(orient="records")

    geo = data_ctx.get("countries")
    if isinstance(geo, dict):
        payload["row_counts"]["countries"] = len(geo.get("features", []))

    athletes = data_ctx.get("athletes")
    if isinstance(athletes, pd.DataFrame) and "country_code" in athletes.columns:
        payload["unknown_country_rows"]["athletes"] = int(athletes["country_code"].isna().sum())
    medallists = data_ctx.get("medallists")
    if isinstance(medallists, pd.DataFrame) and "country" in medallists.columns:
        payload["unknown_country_rows"]["medallists"] = int(medallists["country"].isna().sum())

    events = data_ctx.get("events")
    results = data_ctx.get("results")
    if isinstance(events, pd.DataFrame) and isinstance(results, pd.DataFrame):
        event_list = select_events(events, selection.gender, selection.stroke_style)
        _, conflicts = rank_series(final_rows(results, event_list), event_list)
        payload["country_conflicts"] = conflicts
    return payload
