from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import to_vega_spec, world_map_chart
from core.data import SWIMMING, UNKNOWN_COUNTRY, unavailable_reason
from core.encodings import sequential_scale
from core.filters import Selection


def athlete_counts_by_country(athletes: Optional[pd.DataFrame]) -> Dict[str, int]:
    """Swimming athletes per country code; blank codes count under UNKNOWN_COUNTRY."""
    if athletes is None or athletes.empty:
        return {}
    is_swimmer = athletes["disciplines"].apply(lambda d: SWIMMING in d).astype(bool)
    codes = athletes.loc[is_swimmer, "country_code"].fillna(UNKNOWN_COUNTRY).astype(str)
    if codes.empty:
        return {}
    counts = codes.groupby(codes, sort=False).size()
    return {str(code): int(n) for code, n in counts.items()}


def join_features(geo: Dict[str, Any], counts: Dict[str, int]) -> List[Dict[str, Any]]:
    """Copy the country features with an ``athletes`` property joined on ISO_A3 (0 when absent)."""
    out: List[Dict[str, Any]] = []
    for feature in geo.get("features", []):
        props = dict(feature.get("properties") or {})
        props["athletes"] = counts.get(str(props.get("ISO_A3")), 0)
        out.append({"type": "Feature", "geometry": feature.get("geometry"), "properties": props})
    return out


def compute_map(selection: Selection, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "counts": {},
        "unmatched_countries": [],
        "charts": {},
    }
    error = unavailable_reason(data_ctx, "map")
    if error:
        payload["error"] = error
        return payload

    counts = athlete_counts_by_country(data_ctx["athletes"])
    geo = data_ctx["countries"]
    iso_codes = {str((f.get("properties") or {}).get("ISO_A3")) for f in geo.get("features", [])}

    color = sequential_scale(counts.values())
    payload["counts"] = counts
    payload["total_athletes"] = sum(counts.values())
    payload["unmatched_countries"] = [code for code in counts if code not in iso_codes]
    payload["encoding"] = {"color": color.as_dict()}
    if counts:
        features = join_features(geo, counts)
        payload["charts"] = {"map": to_vega_spec(world_map_chart(features, color))}
    return payload
