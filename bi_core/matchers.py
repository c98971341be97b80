"""Compile filter-value lists into reusable predicates.

Each matcher is usable both as a scalar predicate (`matcher(value)`) and as a
vectorized one (`matcher.mask(series)`); both follow the same rules.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, Optional, Tuple, Union

import pandas as pd

from bi_core.fields import FIELDS, REVENUE_FIELD, SEARCH_COLUMNS, SEARCH_FIELD
from bi_core.filters import FilterValue, Filters

logger = logging.getLogger(__name__)


def is_blank(value: object) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(value, str) and not value.strip()


def blank_mask(series: pd.Series) -> pd.Series:
    text = series.astype("string").str.strip()
    return (series.isna() | text.eq("").fillna(True)).astype(bool)


def _all_true(index: pd.Index) -> pd.Series:
    return pd.Series(True, index=index, dtype=bool)


@dataclass(frozen=True)
class ValueMatcher:
    include_set: FrozenSet[str] = frozenset()
    exclude_set: FrozenSet[str] = frozenset()
    include_blanks: Optional[bool] = None

    @property
    def is_active(self) -> bool:
        return bool(self.include_set or self.exclude_set)

    def _blank_passes(self) -> bool:
        if self.include_blanks is not None:
            return self.include_blanks
        return not self.include_set

    def __call__(self, value: object) -> bool:
        if not self.is_active:
            return True
        if is_blank(value):
            return self._blank_passes()
        value = str(value)
        if value in self.exclude_set:
            return False
        if self.include_set:
            return value in self.include_set
        return True

    def mask(self, series: pd.Series) -> pd.Series:
        if not self.is_active:
            return _all_true(series.index)
        values = series.astype("string")
        out = _all_true(series.index)
        if self.exclude_set:
            out &= ~values.isin(self.exclude_set).astype(bool)
        if self.include_set:
            out &= values.isin(self.include_set).astype(bool)
        blanks = blank_mask(series)
        return out.mask(blanks, self._blank_passes())


@dataclass(frozen=True)
class KeywordMatcher:
    include_keywords: Tuple[str, ...] = ()
    exclude_keywords: Tuple[str, ...] = ()

    @property
    def is_active(self) -> bool:
        return bool(self.include_keywords or self.exclude_keywords)

    def __call__(self, value: object) -> bool:
        if not self.is_active:
            return True
        text = "" if is_blank(value) else str(value).lower()
        if any(k in text for k in self.exclude_keywords):
            return False
        if self.include_keywords:
            return any(k in text for k in self.include_keywords)
        return True

    def mask(self, series: pd.Series) -> pd.Series:
        if not self.is_active:
            return _all_true(series.index)
        text = series.astype("string").str.lower().fillna("")
        out = _all_true(series.index)
        for keyword in self.exclude_keywords:
            out &= ~text.str.contains(keyword, regex=False).astype(bool)
        if self.include_keywords:
            hit = pd.Series(False, index=series.index, dtype=bool)
            for keyword in self.include_keywords:
                hit |= text.str.contains(keyword, regex=False).astype(bool)
            out &= hit
        return out


@dataclass(frozen=True)
class RevenueMatcher:
    """Inclusive revenue range; `0`/unparseable revenue counts as "no revenue"."""

    bounds: Optional[Tuple[float, float]] = None
    include_null: bool = False

    @property
    def is_active(self) -> bool:
        return self.bounds is not None

    def __call__(self, value: object) -> bool:
        if self.bounds is None:
            return True
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            number = 0.0
        if pd.isna(number) or number <= 0:
            return self.include_null
        lo, hi = self.bounds
        return lo <= number <= hi

    def mask(self, series: pd.Series) -> pd.Series:
        if self.bounds is None:
            return _all_true(series.index)
        numbers = pd.to_numeric(series, errors="coerce").fillna(0.0)
        lo, hi = self.bounds
        in_range = numbers.between(lo, hi, inclusive="both")
        return in_range.mask(numbers <= 0, self.include_null).astype(bool)


@dataclass(frozen=True)
class SearchMatcher:
    """Case-insensitive substring search over several text columns of one record."""

    term: str = ""
    columns: Tuple[str, ...] = SEARCH_COLUMNS

    @property
    def is_active(self) -> bool:
        return bool(self.term)

    def __call__(self, record: Any) -> bool:
        if not self.term:
            return True
        for col in self.columns:
            value = record.get(col) if hasattr(record, "get") else None
            if not is_blank(value) and self.term in str(value).lower():
                return True
        return False

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        if not self.term:
            return _all_true(frame.index)
        hit = pd.Series(False, index=frame.index, dtype=bool)
        for col in self.columns:
            if col in frame.columns:
                text = frame[col].astype("string").str.lower().fillna("")
                hit |= text.str.contains(self.term, regex=False).astype(bool)
        return hit


Matcher = Union[ValueMatcher, KeywordMatcher, RevenueMatcher, SearchMatcher]


def compile_value_matcher(values: Iterable[FilterValue], include_blanks: Optional[bool] = None) -> ValueMatcher:
    include = set()
    exclude = set()
    for v in values:
        (exclude if v.mode == "exclude" else include).add(v.value)
    return ValueMatcher(frozenset(include), frozenset(exclude), include_blanks)


def compile_keyword_matcher(values: Iterable[FilterValue]) -> KeywordMatcher:
    include = []
    exclude = []
    for v in values:
        keyword = v.value.strip().lower()
        if not keyword:
            continue
        target = exclude if v.mode == "exclude" else include
        if keyword not in target:
            target.append(keyword)
    return KeywordMatcher(tuple(include), tuple(exclude))


class MatcherCache:
    """Caller-owned memo of compiled matchers keyed by the filter-list value.

    Dropping entries (or the whole cache) is always safe: a miss recompiles.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[Hashable, Matcher]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compile(self, key: Hashable, compile_fn: Callable[[], Matcher]) -> Matcher:
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached
        self.misses += 1
        compiled = compile_fn()
        self._entries[key] = compiled
        if len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return compiled

    def value_matcher(self, values: Tuple[FilterValue, ...], include_blanks: Optional[bool] = None) -> ValueMatcher:
        return self.get_or_compile(  # type: ignore[return-value]
            ("value", tuple(values), include_blanks),
            lambda: compile_value_matcher(values, include_blanks),
        )

    def keyword_matcher(self, values: Tuple[FilterValue, ...]) -> KeywordMatcher:
        return self.get_or_compile(  # type: ignore[return-value]
            ("keyword", tuple(values)),
            lambda: compile_keyword_matcher(values),
        )

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}


def compile_filters(filters: Filters, cache: Optional[MatcherCache] = None) -> Dict[str, Matcher]:
    """Compile every field of `filters`; only active matchers are returned."""
    cache = cache if cache is not None else MatcherCache()
    compiled: Dict[str, Matcher] = {}
    for spec in FIELDS:
        matcher: Matcher
        if spec.kind == "value":
            matcher = cache.value_matcher(filters.values_for(spec.name), filters.blank_flag(spec.name))
        elif spec.kind == "keyword":
            matcher = cache.keyword_matcher(filters.values_for(spec.name))
        elif spec.name == REVENUE_FIELD:
            matcher = RevenueMatcher(filters.account_revenue_range, filters.include_null_revenue)
        elif spec.name == SEARCH_FIELD:
            matcher = SearchMatcher(filters.search_term.strip().lower())
        else:
            continue
        if matcher.is_active:
            compiled[spec.name] = matcher
    logger.debug("compiled %d active matchers (cache %s)", len(compiled), cache.stats())
    return compiled
