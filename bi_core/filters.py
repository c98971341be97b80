from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from bi_core.fields import FIELDS_BY_NAME, LIST_FIELDS

Mode = Literal["include", "exclude"]
FilterList = Tuple["FilterValue", ...]


@dataclass(frozen=True)
class FilterValue:
    value: str
    mode: Mode = "include"


@dataclass(frozen=True)
class Filters:
    account_countries: FilterList = ()
    account_regions: FilterList = ()
    account_industries: FilterList = ()
    account_sub_industries: FilterList = ()
    account_primary_categories: FilterList = ()
    account_primary_natures: FilterList = ()
    account_nasscom_statuses: FilterList = ()
    account_employees_ranges: FilterList = ()
    account_center_employees: FilterList = ()
    account_revenue_range: Optional[Tuple[float, float]] = None
    include_null_revenue: bool = False
    account_name_keywords: FilterList = ()
    center_types: FilterList = ()
    center_focus: FilterList = ()
    center_cities: FilterList = ()
    center_states: FilterList = ()
    center_countries: FilterList = ()
    center_employees: FilterList = ()
    center_statuses: FilterList = ()
    function_types: FilterList = ()
    prospect_departments: FilterList = ()
    prospect_levels: FilterList = ()
    prospect_cities: FilterList = ()
    prospect_title_keywords: FilterList = ()
    search_term: str = ""
    include_blanks: Dict[str, bool] = field(default_factory=dict)

    def values_for(self, name: str) -> FilterList:
        return getattr(self, name)

    def blank_flag(self, name: str) -> Optional[bool]:
        return self.include_blanks.get(name)

    def with_values(self, name: str, values: Iterable[FilterValue]) -> "Filters":
        return replace(self, **{name: tuple(values)})

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in LIST_FIELDS:
                out[f.name] = [{"value": v.value, "mode": v.mode} for v in value]
            elif f.name == "account_revenue_range":
                out[f.name] = list(value) if value is not None else None
            elif f.name == "include_blanks":
                out[f.name] = dict(value)
            else:
                out[f.name] = value
        return out


# Keys used by saved filter sets written by the web client.
CAMEL_CASE_KEYS: Dict[str, str] = {
    "accountCountries": "account_countries",
    "accountRegions": "account_regions",
    "accountIndustries": "account_industries",
    "accountSubIndustries": "account_sub_industries",
    "accountPrimaryCategories": "account_primary_categories",
    "accountPrimaryNatures": "account_primary_natures",
    "accountNasscomStatuses": "account_nasscom_statuses",
    "accountEmployeesRanges": "account_employees_ranges",
    "accountCenterEmployees": "account_center_employees",
    "accountRevenueRange": "account_revenue_range",
    "includeNullRevenue": "include_null_revenue",
    "accountNameKeywords": "account_name_keywords",
    "centerTypes": "center_types",
    "centerFocus": "center_focus",
    "centerCities": "center_cities",
    "centerStates": "center_states",
    "centerCountries": "center_countries",
    "centerEmployees": "center_employees",
    "centerStatuses": "center_statuses",
    "functionTypes": "function_types",
    "prospectDepartments": "prospect_departments",
    "prospectLevels": "prospect_levels",
    "prospectCities": "prospect_cities",
    "prospectTitleKeywords": "prospect_title_keywords",
    "searchTerm": "search_term",
    "includeBlanks": "include_blanks",
}


def to_filter_values(values: Iterable[str], mode: Mode = "include") -> FilterList:
    return tuple(FilterValue(str(v), mode) for v in values)


def extract_filter_values(values: Iterable[FilterValue]) -> List[str]:
    return [v.value for v in values]


def has_active_filters(values: Iterable[FilterValue]) -> bool:
    return len(tuple(values)) > 0


def count_by_mode(values: Iterable[FilterValue]) -> Dict[str, int]:
    counts = {"include": 0, "exclude": 0}
    for v in values:
        counts[v.mode] += 1
    return counts


def _as_filter_list(values: Optional[Iterable[object]]) -> FilterList:
    """Accept FilterValue objects, {"value", "mode"} dicts or legacy plain strings."""
    if not values or isinstance(values, (str, bytes)):
        return ()
    out: List[FilterValue] = []
    for v in values:
        if v is None:
            continue
        if isinstance(v, FilterValue):
            out.append(v)
        elif isinstance(v, Mapping):
            raw = v.get("value")
            if raw is None or str(raw) == "":
                continue
            mode = "exclude" if v.get("mode") == "exclude" else "include"
            out.append(FilterValue(str(raw), mode))
        elif str(v) != "":
            out.append(FilterValue(str(v), "include"))
    return tuple(out)


def _as_range(value: object) -> Optional[Tuple[float, float]]:
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        lo, hi = (float(x) for x in value)  # type: ignore[union-attr]
    except (TypeError, ValueError):
        return None
    if lo > hi:
        lo, hi = hi, lo
    return lo, hi


def _as_blank_flags(value: object) -> Dict[str, bool]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): bool(v) for k, v in value.items() if str(k) in FIELDS_BY_NAME}


def normalize_filters(raw: Optional[Mapping[str, Any]]) -> Filters:
    """Build `Filters` from an API body or a saved filter set.

    Missing keys fall back to defaults, camelCase keys are accepted, and
    unusable values are dropped rather than rejected.
    """
    raw = dict(raw or {})
    for camel, snake in CAMEL_CASE_KEYS.items():
        if camel in raw and snake not in raw:
            raw[snake] = raw.pop(camel)

    kwargs: Dict[str, Any] = {name: _as_filter_list(raw.get(name)) for name in LIST_FIELDS}
    kwargs["account_revenue_range"] = _as_range(raw.get("account_revenue_range"))
    kwargs["include_null_revenue"] = bool(raw.get("include_null_revenue", False))
    kwargs["search_term"] = str(raw.get("search_term") or "").strip()
    kwargs["include_blanks"] = _as_blank_flags(raw.get("include_blanks"))
    return Filters(**kwargs)


def count_active_filters(filters: Filters, *, revenue_active: Optional[bool] = None) -> int:
    """Selected values, plus one for a user-set revenue range and one for the null-revenue flag.

    `revenue_active` says whether the revenue range was set by the user; a
    range that just mirrors the data bounds (auto mode) does not count. The
    null-revenue flag counts only while some range is applied.
    """
    total = sum(len(filters.values_for(name)) for name in LIST_FIELDS)
    has_range = filters.account_revenue_range is not None
    if revenue_active is None:
        revenue_active = has_range
    if revenue_active:
        total += 1
    if filters.include_null_revenue and has_range:
        total += 1
    return total
