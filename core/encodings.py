"""Scales, domains and palettes for the four charts.

Everything here is plain data; :meth:`Scale.to_altair` is the only place that
touches Altair.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import altair as alt


MEDAL_ORDER = ["gold", "silver", "bronze"]
MEDAL_COLORS = ["#FFD700", "#C0C0C0", "#CD7F32"]

STAGE_ORDER = ["heats", "semifinals", "finals"]
STAGE_TITLES = {"heats": "Heats", "semifinals": "Semifinals", "finals": "Finals"}

PERFORMANCE_GROUPS = ["Top", "Middle", "Low"]
PERFORMANCE_LABELS = {
    "Top": "Top Rank (1-3 in final)",
    "Middle": "Middle Rank (4-8 in final)",
    "Low": "Low Rank (9+ or not in final)",
}
PERFORMANCE_COLORS = ["#9B1B30", "#DD90D2", "#CDCAD8"]

TABLEAU10 = [
    "#4e79a7",
    "#f28e2c",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc949",
    "#af7aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ab",
]

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


@dataclass(frozen=True)
class Scale:
    kind: str
    domain: Tuple[Any, ...]
    range: Optional[Tuple[str, ...]] = None
    scheme: Optional[str] = None
    reverse: bool = False
    padding: Optional[float] = None

    def to_altair(self) -> alt.Scale:
        kwargs: Dict[str, Any] = {"domain": list(self.domain)}
        if self.kind in {"point", "band"}:
            kwargs["type"] = self.kind
        elif self.kind == "linear":
            kwargs.update(type="linear", zero=False, nice=False)
        if self.range is not None:
            kwargs["range"] = list(self.range)
        if self.scheme is not None:
            kwargs["scheme"] = self.scheme
        if self.reverse:
            kwargs["reverse"] = True
        if self.padding is not None:
            kwargs["padding"] = self.padding
        return alt.Scale(**kwargs)

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["domain"] = list(self.domain)
        if self.range is not None:
            out["range"] = list(self.range)
        return out


def performance_group(final_rank: Optional[int]) -> str:
    """Top for final ranks 1-3, Middle for 4-8, Low for everything else (including no final)."""
    if final_rank is None:
        return "Low"
    if 1 <= final_rank <= 3:
        return "Top"
    if 4 <= final_rank <= 8:
        return "Middle"
    return "Low"


def _tick_increment(start: float, stop: float, count: int) -> float:
    step = (stop - start) / count
    power = math.floor(math.log10(step))
    error = step / 10**power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power >= 0:
        return factor * 10**power
    return -(10**-power) / factor


def nice_upper(maximum: float, count: int = 10) -> float:
    """Round ``maximum`` up to a tick boundary the way linear scales "nice" a [0, max] domain."""
    if maximum <= 0:
        return 0
    stop = float(maximum)
    prestep = None
    for _ in range(10):
        step = _tick_increment(0.0, stop, count)
        if step == prestep:
            break
        if step > 0:
            stop = math.ceil(stop / step) * step
        else:
            stop = math.ceil(stop * -step) / -step
        prestep = step
    return int(stop) if float(stop).is_integer() else stop


def _present(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None and not (isinstance(v, float) and math.isnan(v))]


def count_domain(values: Iterable[Optional[float]]) -> Tuple[float, float]:
    """[0, nice(max)]; [0, 1] when there is nothing to count."""
    top = max(_present(values), default=0)
    if top <= 0:
        return (0, 1)
    return (0, nice_upper(top))


def rank_domain(values: Iterable[Optional[int]]) -> Tuple[int, int]:
    """[1, max rank]; [1, 1] when no rank is known."""
    ranks = [int(v) for v in _present(values)]
    if not ranks:
        return (1, 1)
    return (1, max(1, max(ranks)))


def ordinal_colors(domain: Sequence[str], palette: Sequence[str]) -> Dict[str, str]:
    """Assign palette colors to domain values in order, cycling when the domain is longer."""
    return {value: palette[i % len(palette)] for i, value in enumerate(domain)}


# ---------------- Scale builders ----------------
def point_scale(domain: Iterable[str], padding: float = 0.5) -> Scale:
    return Scale(kind="point", domain=tuple(dict.fromkeys(domain)), padding=padding)


def band_scale(domain: Iterable[str], padding: float = 0.1) -> Scale:
    return Scale(kind="band", domain=tuple(dict.fromkeys(domain)), padding=padding)


def rank_scale(values: Iterable[Optional[int]]) -> Scale:
    return Scale(kind="linear", domain=rank_domain(values), reverse=True)


def count_scale(values: Iterable[Optional[float]]) -> Scale:
    return Scale(kind="linear", domain=count_domain(values))


def sequential_scale(values: Iterable[Optional[float]], scheme: str = "blues") -> Scale:
    return Scale(kind="sequential", domain=count_domain(values), scheme=scheme)


def medal_color_scale() -> Scale:
    return Scale(kind="ordinal", domain=tuple(MEDAL_ORDER), range=tuple(MEDAL_COLORS))


def performance_color_scale() -> Scale:
    return Scale(
        kind="ordinal",
        domain=tuple(PERFORMANCE_LABELS[g] for g in PERFORMANCE_GROUPS),
        range=tuple(PERFORMANCE_COLORS),
    )


def country_color_scale(countries: Sequence[str]) -> Scale:
    colors = ordinal_colors(list(dict.fromkeys(countries)), TABLEAU10)
    return Scale(kind="ordinal", domain=tuple(colors), range=tuple(colors.values()))
