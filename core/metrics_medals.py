from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from core.charts import medal_bar_chart, to_vega_spec
from core.data import SWIMMING, UNKNOWN_COUNTRY, matches, unavailable_reason
from core.encodings import MEDAL_ORDER, band_scale, count_scale, medal_color_scale
from core.filters import GENDER_TO_SEX, Selection

TALLY_COLUMNS = ["country", "gold", "silver", "bronze", "total"]


def medal_tally(medallists: Optional[pd.DataFrame], gender: str) -> pd.DataFrame:
    """Swimming medals per country for one gender, sorted by total (stable, first-seen order on ties)."""
    if medallists is None or medallists.empty:
        return pd.DataFrame(columns=TALLY_COLUMNS)
    sex = GENDER_TO_SEX.get(gender, gender)
    mask = matches(medallists["discipline"], SWIMMING) & matches(medallists["gender"], sex)
    df = medallists[mask & medallists["medal_type"].notna()].copy()
    if df.empty:
        return pd.DataFrame(columns=TALLY_COLUMNS)

    df["country"] = df["country"].fillna(UNKNOWN_COUNTRY).astype(str)
    df["medal_type"] = df["medal_type"].astype(str)
    order = df["country"].drop_duplicates().tolist()
    counts = pd.crosstab(df["country"], df["medal_type"]).reindex(
        index=order, columns=[m.capitalize() for m in MEDAL_ORDER], fill_value=0
    )

    tally = pd.DataFrame({"country": order})
    for medal in MEDAL_ORDER:
        tally[medal] = counts[medal.capitalize()].to_numpy().astype(int)
    tally["total"] = tally[MEDAL_ORDER].sum(axis=1).astype(int)
    return tally.sort_values("total", ascending=False, kind="stable").reset_index(drop=True)


def compute_medals(selection: Selection, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"selection": asdict(selection), "tally": [], "charts": {}}
    error = unavailable_reason(data_ctx, "medals")
    if error:
        payload["error"] = error
        return payload

    tally = medal_tally(data_ctx["medallists"], selection.gender)
    x = band_scale(tally["country"].tolist())
    y = count_scale(tally["total"].tolist())
    color = medal_color_scale()
    payload["tally"] = tally.to_dict(orient="records")
    payload["encoding"] = {"x": x.as_dict(), "y": y.as_dict(), "color": color.as_dict()}
    if not tally.empty:
        payload["charts"] = {"medals": to_vega_spec(medal_bar_chart(tally, x, y, color, selection.gender))}
    return payload
