from __future__ import annotations

import ast
import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("SWIM_DASHBOARD_DATA_DIR") or Path(__file__).resolve().parents[1] / "data")

ATHLETES_FILE = Path("archive") / "athletes.csv"
EVENTS_FILE = Path("archive") / "events.csv"
RESULTS_FILE = Path("archive") / "results" / "Swimming.csv"
MEDALLISTS_FILE = Path("archive") / "medallists.csv"
COUNTRIES_FILE = Path("countries") / "countries2.geo.json"

SWIMMING = "Swimming"
UNKNOWN_COUNTRY = "UNKNOWN"

NA_TOKENS = {"", "nan", "none", "null", "<na>", "na", "n/a"}

# Datasets each chart needs before it can compute anything.
CHART_DATASETS: Dict[str, Tuple[str, ...]] = {
    "map": ("athletes", "countries"),
    "medals": ("medallists",),
    "rankings": ("events", "results"),
    "stages": ("results",),
}


class DatasetLoadError(Exception):
    """A dataset file could not be read or does not match its schema."""


@dataclass(frozen=True)
class TableSchema:
    name: str
    columns: Dict[str, str]
    required: Tuple[str, ...]
    key_fields: Tuple[str, ...] = ()


ATHLETE_SCHEMA = TableSchema(
    name="athletes",
    columns={
        "name": "name",
        "country_code": "country_code",
        "country": "country",
        "disciplines": "disciplines",
    },
    required=("name", "country_code", "disciplines"),
    key_fields=("name",),
)

EVENT_SCHEMA = TableSchema(
    name="events",
    columns={"event": "event", "sport": "sport"},
    required=("event", "sport"),
    key_fields=("event",),
)

RESULT_SCHEMA = TableSchema(
    name="results",
    columns={
        "event_name": "event_name",
        "stage": "stage_label",
        "participant_type": "participant_type",
        "participant_name": "participant_name",
        "participant_country": "participant_country",
        "participant_country_code": "participant_country_code",
        "rank": "rank",
    },
    required=("event_name", "stage_label", "participant_type", "participant_name", "rank"),
    key_fields=("event_name", "participant_name", "stage"),
)

MEDAL_SCHEMA = TableSchema(
    name="medallists",
    columns={
        "name": "name",
        "country": "country",
        "country_code": "country_code",
        "discipline": "discipline",
        "event": "event",
        "gender": "gender",
        "medal_type": "medal_type",
    },
    required=("country", "discipline", "gender", "medal_type"),
    key_fields=("discipline", "gender", "medal_type"),
)

SCHEMAS: Dict[str, TableSchema] = {s.name: s for s in [ATHLETE_SCHEMA, EVENT_SCHEMA, RESULT_SCHEMA, MEDAL_SCHEMA]}


@dataclass(frozen=True)
class DatasetPaths:
    athletes: Path
    events: Path
    results: Path
    medallists: Path
    countries: Path

    @classmethod
    def under(cls, data_dir: Path) -> "DatasetPaths":
        data_dir = Path(data_dir)
        return cls(
            athletes=data_dir / ATHLETES_FILE,
            events=data_dir / EVENTS_FILE,
            results=data_dir / RESULTS_FILE,
            medallists=data_dir / MEDALLISTS_FILE,
            countries=data_dir / COUNTRIES_FILE,
        )


def default_paths() -> DatasetPaths:
    return DatasetPaths.under(DATA_DIR)


def file_signature(path: Path) -> Tuple[str, float]:
    try:
        return str(Path(path).resolve()), Path(path).stat().st_mtime
    except OSError as exc:
        raise DatasetLoadError(f"cannot read {path}: {exc}") from exc


# ---------------- Field coercion ----------------
def normalize_text(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if s.lower() in NA_TOKENS:
        return None
    return s


def parse_rank(value: object) -> Optional[int]:
    """Parse a rank cell into a positive int; anything else is None (never 0)."""
    s = normalize_text(value)
    if s is None:
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    if not num.is_integer() or num < 1:
        return None
    return int(num)


def parse_stage(value: object) -> Optional[str]:
    """Map stage labels like 'Heat 3', 'Semifinal 1', 'Final' onto Heat/Semifinal/Final."""
    s = normalize_text(value)
    if s is None:
        return None
    s = s.lower().replace("-", "").replace(" ", "")
    if s.startswith("heat"):
        return "Heat"
    if s.startswith("semifinal"):
        return "Semifinal"
    if s.startswith("final"):
        return "Final"
    return None


def parse_medal_type(value: object) -> Optional[str]:
    s = normalize_text(value)
    if s is None:
        return None
    s = s.lower()
    for medal in ("Gold", "Silver", "Bronze"):
        if s.startswith(medal.lower()):
            return medal
    return None


def parse_gender(value: object) -> Optional[str]:
    s = normalize_text(value)
    if s is None:
        return None
    s = s.lower()
    if s in {"female", "f", "w", "women", "woman"}:
        return "Female"
    if s in {"male", "m", "men", "man"}:
        return "Male"
    return None


def parse_participant_type(value: object) -> Optional[str]:
    s = normalize_text(value)
    if s is None:
        return None
    return {"person": "Person", "team": "Team"}.get(s.lower())


def parse_disciplines(value: object) -> FrozenSet[str]:
    """Parse the list literal stored in the roster ("['Swimming', 'Diving']")."""
    s = normalize_text(value)
    if s is None:
        return frozenset()
    if s.startswith("["):
        try:
            items = ast.literal_eval(s)
        except (ValueError, SyntaxError):
            items = s.strip("[]").split(",")
        if isinstance(items, str):
            items = [items]
    else:
        items = s.split(",")
    out = set()
    for item in items:
        text = normalize_text(str(item).strip().strip("'\""))
        if text:
            out.add(text)
    return frozenset(out)


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].apply(normalize_text).astype("string")
    return df


def matches(series: pd.Series, value: str) -> pd.Series:
    """Null-safe equality mask."""
    return series.eq(value).fillna(False).astype(bool)


def contains(series: pd.Series, token: str) -> pd.Series:
    """Null-safe, case-sensitive substring mask."""
    return series.str.contains(token, regex=False).fillna(False).astype(bool)


# ---------------- Schema ----------------
def apply_schema(df: pd.DataFrame, schema: TableSchema) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip())
    df = df.rename(columns=schema.columns)
    missing = [c for c in schema.required if c not in df.columns]
    if missing:
        raise DatasetLoadError(f"{schema.name}: missing required column(s) {', '.join(missing)}")
    canonical = list(dict.fromkeys(schema.columns.values()))
    for col in canonical:
        if col not in df.columns:
            df[col] = pd.NA
    df = df.loc[:, ~df.columns.duplicated()]
    df = df[canonical].copy()
    return coerce_str_safe(df, canonical)


def flag_invalid_rows(df: pd.DataFrame, schema: TableSchema) -> pd.DataFrame:
    issue = pd.Series(pd.NA, index=df.index, dtype="string")
    for col in schema.key_fields:
        if col not in df.columns:
            continue
        issue = issue.mask(df[col].isna() & issue.isna(), f"missing {col}")
    df["dq_issue"] = issue
    flagged = int(issue.notna().sum())
    if flagged:
        logger.warning("%s: %d row(s) flagged by schema check", schema.name, flagged)
    return df


def _coerce_athletes(df: pd.DataFrame) -> pd.DataFrame:
    df["disciplines"] = df["disciplines"].astype(object).apply(parse_disciplines)
    return df


def _coerce_results(df: pd.DataFrame) -> pd.DataFrame:
    df["stage"] = df["stage_label"].astype(object).apply(parse_stage).astype("string")
    df["participant_type"] = df["participant_type"].astype(object).apply(parse_participant_type).astype("string")
    df["rank"] = df["rank"].astype(object).apply(parse_rank).astype("Int64")
    return df


def _coerce_medallists(df: pd.DataFrame) -> pd.DataFrame:
    df["gender"] = df["gender"].astype(object).apply(parse_gender).astype("string")
    df["medal_type"] = df["medal_type"].astype(object).apply(parse_medal_type).astype("string")
    return df


COERCIONS: Dict[str, Callable[[pd.DataFrame], pd.DataFrame]] = {
    "athletes": _coerce_athletes,
    "events": lambda df: df,
    "results": _coerce_results,
    "medallists": _coerce_medallists,
}


# ---------------- Loaders ----------------
@lru_cache(maxsize=16)
def _read_table_cached(name: str, path: str, mtime: float) -> pd.DataFrame:
    schema = SCHEMAS[name]
    try:
        raw = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DatasetLoadError(f"{name}: cannot parse {path}: {exc}") from exc
    df = apply_schema(raw, schema)
    df = COERCIONS[name](df)
    df = flag_invalid_rows(df, schema)
    logger.debug("loaded %s: %d rows from %s", name, len(df), path)
    return df


def load_table(name: str, path: Path) -> pd.DataFrame:
    if name not in SCHEMAS:
        raise KeyError(f"unknown table {name!r}")
    resolved, mtime = file_signature(path)
    return _read_table_cached(name, resolved, mtime).copy()


@lru_cache(maxsize=4)
def _read_geo_cached(path: str, mtime: float) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            doc = json.load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DatasetLoadError(f"countries: cannot parse {path}: {exc}") from exc
    if not isinstance(doc, dict) or doc.get("type") != "FeatureCollection" or not isinstance(doc.get("features"), list):
        raise DatasetLoadError(f"countries: {path} is not a GeoJSON FeatureCollection")
    return doc


def load_geo(path: Path) -> Dict[str, Any]:
    resolved, mtime = file_signature(path)
    return _read_geo_cached(resolved, mtime)


def clear_caches() -> None:
    _read_table_cached.cache_clear()
    _read_geo_cached.cache_clear()


# ---------------- Public API ----------------
def load_dashboard_data(paths: Optional[DatasetPaths] = None) -> Dict[str, object]:
    """Load every dataset independently; a failing file only disables the charts that need it."""
    paths = paths or default_paths()
    loaders: List[Tuple[str, Callable[[], object]]] = [
        ("athletes", lambda: load_table("athletes", paths.athletes)),
        ("events", lambda: load_table("events", paths.events)),
        ("results", lambda: load_table("results", paths.results)),
        ("medallists", lambda: load_table("medallists", paths.medallists)),
        ("countries", lambda: load_geo(paths.countries)),
    ]
    data_ctx: Dict[str, object] = {"paths": paths, "errors": {}}
    for name, loader in loaders:
        try:
            data_ctx[name] = loader()
        except DatasetLoadError as exc:
            logger.exception("failed to load %s", name)
            data_ctx[name] = None
            data_ctx["errors"][name] = str(exc)
    return data_ctx


def missing_datasets(data_ctx: Dict[str, object], chart: str) -> List[str]:
    return [name for name in CHART_DATASETS[chart] if data_ctx.get(name) is None]


def unavailable_reason(data_ctx: Dict[str, object], chart: str) -> Optional[str]:
    missing = missing_datasets(data_ctx, chart)
    if not missing:
        return None
    errors = data_ctx.get("errors") or {}
    details = "; ".join(errors.get(name, f"{name} not loaded") for name in missing)
    return f"{chart} unavailable: {details}"
