from __future__ import annotations

from typing import List

from pydantic import BaseModel

from core.filters import DEFAULT_EVENT


class SelectionModel(BaseModel):
    gender: str = "Women"
    stroke_style: str = "Freestyle"
    country: str = ""
    event: str = DEFAULT_EVENT


class MetaListResponse(BaseModel):
    values: List[str]
