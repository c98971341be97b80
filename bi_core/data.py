from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property, lru_cache
import logging
import math
from pathlib import Path
import re
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from bi_core.fields import (
    ACCOUNT_KEY,
    ACCOUNTS,
    CENTER_KEY,
    CENTERS,
    ENTITIES,
    FUNCTIONS,
    PROSPECTS,
    REQUIRED_COLUMNS,
    REVENUE,
    SERVICES,
)
from bi_core.relations import RelationIndex, duplicate_account_keys

logger = logging.getLogger(__name__)

FILE_SUFFIXES = (".csv", ".xlsx")
NUMERIC_COLUMNS = {
    ACCOUNTS: [
        "account_hq_employee_count",
        "account_hq_forbes_2000_rank",
        "account_hq_fortune_500_rank",
        "account_first_center_year",
        "years_in_india",
    ],
    CENTERS: ["center_inc_year", "center_employees", "lat", "lng"],
}
REVENUE_SUFFIXES = {"k": 1e-3, "m": 1.0, "mn": 1.0, "b": 1e3, "bn": 1e3}
_REVENUE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)\s*([a-z]*)$")


def parse_revenue(value: object) -> float:
    """Parse a revenue cell (in millions) into a float; `0.0` means "no revenue".

    Accepts numbers and strings such as "$1,250.5", "1.2B" or "800K".
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        s = str(value).strip().lower().replace(",", "").replace("$", "").replace("usd", "").strip()
        match = _REVENUE_RE.match(s)
        if not match:
            return 0.0
        amount, suffix = match.groups()
        if suffix and suffix not in REVENUE_SUFFIXES:
            return 0.0
        number = float(amount) * REVENUE_SUFFIXES.get(suffix, 1.0)
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def format_revenue_in_millions(value: object) -> str:
    number = parse_revenue(value)
    if number >= 1000:
        return f"${number / 1000:,.1f}B"
    return f"${number:,.0f}M"


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def ensure_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index, dtype="string")
    return df


def normalize_frame(entity: str, df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Give one raw collection the canonical shape the engine relies on."""
    df = pd.DataFrame() if df is None else drop_duplicate_columns(df.copy())
    df.columns = [str(c).strip() for c in df.columns]
    df = ensure_columns(df, REQUIRED_COLUMNS[entity])
    numeric = set(NUMERIC_COLUMNS.get(entity, []))
    # Join keys are matched exactly; no stripping or placeholder clean-up.
    keys = [c for c in (ACCOUNT_KEY, CENTER_KEY) if c in df.columns]
    for col in keys:
        df[col] = df[col].astype("string")
    text_cols = [c for c in df.columns if c not in numeric and c != REVENUE and c not in keys]
    df = coerce_str_safe(df, text_cols)
    df = numericize(df, numeric)
    if entity == ACCOUNTS:
        df[REVENUE] = df[REVENUE].apply(parse_revenue).astype(float)
    return df.reset_index(drop=True)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the five collections for one filter computation."""

    accounts: pd.DataFrame
    centers: pd.DataFrame
    functions: pd.DataFrame
    services: pd.DataFrame
    prospects: pd.DataFrame

    def frame(self, entity: str) -> pd.DataFrame:
        return getattr(self, entity)

    def counts(self) -> Dict[str, int]:
        return {entity: int(len(self.frame(entity))) for entity in ENTITIES}

    @cached_property
    def relations(self) -> RelationIndex:
        return RelationIndex.build(self.accounts, self.centers)


def build_snapshot(
    accounts: Optional[pd.DataFrame] = None,
    centers: Optional[pd.DataFrame] = None,
    functions: Optional[pd.DataFrame] = None,
    services: Optional[pd.DataFrame] = None,
    prospects: Optional[pd.DataFrame] = None,
) -> Snapshot:
    raw = {ACCOUNTS: accounts, CENTERS: centers, FUNCTIONS: functions, SERVICES: services, PROSPECTS: prospects}
    frames = {entity: normalize_frame(entity, raw[entity]) for entity in ENTITIES}

    centers_df = frames[CENTERS]
    dupes = centers_df[CENTER_KEY].notna() & centers_df[CENTER_KEY].duplicated()
    if dupes.any():
        logger.warning("dropping %d centers with duplicate %s", int(dupes.sum()), CENTER_KEY)
        frames[CENTERS] = centers_df[~dupes].reset_index(drop=True)

    dup_accounts = duplicate_account_keys(frames[ACCOUNTS])
    if dup_accounts:
        logger.warning("%d account names are not unique; joins will merge them: %s", len(dup_accounts), dup_accounts[:5])

    snapshot = Snapshot(**frames)
    orphans = snapshot.relations.orphan_center_keys()
    if orphans:
        logger.warning("%d centers reference no known account", len(orphans))
    return snapshot


def get_source_files(data_dir: Path) -> Dict[str, Path]:
    found: Dict[str, Path] = {}
    for entity in ENTITIES:
        for suffix in FILE_SUFFIXES:
            path = data_dir / f"{entity}{suffix}"
            if path.exists():
                found[entity] = path
                break
    return found


def file_signature(files: Dict[str, Path]) -> Tuple[Tuple[str, str, float], ...]:
    return tuple((entity, str(path), path.stat().st_mtime) for entity, path in sorted(files.items()))


def read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".xlsx":
        return pd.read_excel(path, dtype=object)
    return pd.read_csv(path, dtype=object, keep_default_na=True)


@lru_cache(maxsize=4)
def _load_snapshot_cached(files_sig: Tuple[Tuple[str, str, float], ...]) -> Snapshot:
    frames: Dict[str, pd.DataFrame] = {}
    for entity, path, _ in files_sig:
        frames[entity] = read_table(Path(path))
        logger.info("loaded %d %s from %s", len(frames[entity]), entity, path)
    return build_snapshot(**frames)


def load_snapshot(data_dir: Path) -> Snapshot:
    files = get_source_files(Path(data_dir))
    missing: List[str] = [e for e in ENTITIES if e not in files]
    if missing:
        logger.warning("no source file for %s in %s", ", ".join(missing), data_dir)
    return _load_snapshot_cached(file_signature(files))


def clear_snapshot_cache() -> None:
    _load_snapshot_cached.cache_clear()


def account_names(snapshot: Snapshot, query: str = "", limit: int = 50) -> List[str]:
    names = snapshot.accounts[ACCOUNT_KEY].dropna().astype(str)
    q = (query or "").strip().lower()
    if q:
        names = names[names.str.lower().str.contains(q, regex=False)]
    return sorted(names.unique().tolist())[: max(0, limit)]
