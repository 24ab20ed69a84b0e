from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


GENDERS = ("Women", "Men")
STROKE_STYLES = ("Freestyle", "Butterfly", "Backstroke", "Breaststroke")
DEFAULT_EVENT = "Women's 200m Butterfly"
ALL_COUNTRIES = "All Countries"

# Selector gender -> the value stored in the medallists table.
GENDER_TO_SEX = {"Women": "Female", "Men": "Male"}


@dataclass(frozen=True)
class Selection:
    gender: str = "Women"
    stroke_style: str = "Freestyle"
    country: str = ""
    event: str = DEFAULT_EVENT


def _as_choice(value: object, options: Iterable[str], default: str) -> str:
    if value is None:
        return default
    s = str(value).strip().lower()
    for option in options:
        if option.lower() == s:
            return option
    return default


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_selection(raw: Optional[dict]) -> Selection:
    raw = raw or {}
    gender = _as_choice(raw.get("gender"), GENDERS, Selection.gender)
    stroke_style = _as_choice(raw.get("stroke_style"), STROKE_STYLES, Selection.stroke_style)

    country = _as_text(raw.get("country"))
    if country == ALL_COUNTRIES:
        country = ""

    event = _as_text(raw.get("event")) or DEFAULT_EVENT
    return Selection(gender=gender, stroke_style=stroke_style, country=country, event=event)
