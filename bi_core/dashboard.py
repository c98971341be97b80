from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from bi_core.charts import calculate_chart_data
from bi_core.data import Snapshot
from bi_core.engine import FilterResult, MaskSet, apply_filters, build_masks
from bi_core.fields import ACCOUNTS, CENTERS, ENTITIES, LIST_FIELDS, PROSPECTS, REVENUE_FIELD
from bi_core.filters import (
    Filters,
    count_active_filters,
    count_by_mode,
    extract_filter_values,
    has_active_filters,
)
from bi_core.matchers import MatcherCache
from bi_core.options import compute_available_options
from bi_core.revenue import (
    RevenueRangeState,
    bounds_from_result,
    bounds_to_dict,
    revenue_filter_range,
    sync_range,
)

logger = logging.getLogger(__name__)

SUMMARY_CHARTS: Dict[str, List[str]] = {
    ACCOUNTS: ["account_hq_region", "account_hq_industry", "account_primary_nature"],
    CENTERS: ["center_type", "center_city", "center_status"],
    PROSPECTS: ["prospect_department", "prospect_level"],
}


def records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


def resolve_filters(filters: Filters, range_state: Optional[RevenueRangeState]) -> Filters:
    """Use a (synced) revenue range state as the engine's revenue filter."""
    if range_state is None:
        return filters
    return replace(filters, account_revenue_range=revenue_filter_range(range_state))


def selections(filters: Filters) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for name in LIST_FIELDS:
        values = filters.values_for(name)
        if has_active_filters(values):
            out[name] = {"values": extract_filter_values(values), **count_by_mode(values)}
    return out


def compute_dashboard(
    filters: Filters,
    snapshot: Snapshot,
    *,
    cache: Optional[MatcherCache] = None,
    range_state: Optional[RevenueRangeState] = None,
    include_records: bool = True,
) -> Dict[str, Any]:
    """Everything the dashboard shows for one filter state.

    With a `range_state` the revenue filter comes from that state: auto mode
    applies the freshly synced bounds, manual mode the clamped selection.
    Without one, `filters` is applied as given.
    """
    masks: MaskSet = build_masks(snapshot, filters, cache)
    relaxed = apply_filters(snapshot, masks, skip=REVENUE_FIELD)
    bounds = bounds_from_result(relaxed)
    state = sync_range(range_state or RevenueRangeState(), bounds)
    if range_state is not None:
        filters = resolve_filters(filters, state)
        masks = build_masks(snapshot, filters, cache)

    result: FilterResult = apply_filters(snapshot, masks) if REVENUE_FIELD in masks.masks else relaxed
    options = compute_available_options(snapshot, filters, masks=masks, baseline=result)
    revenue_active = state.mode == "manual" if range_state is not None else None

    totals = snapshot.counts()
    filtered = result.counts()
    logger.info("dashboard recomputed: %s", filtered)

    payload: Dict[str, Any] = {
        "filters": filters.to_dict(),
        "selections": selections(filters),
        "active_filter_count": count_active_filters(filters, revenue_active=revenue_active),
        "counts": {e: {"filtered": filtered[e], "total": totals[e]} for e in ENTITIES},
        "options": {name: facet.to_dict() for name, facet in options.items()},
        "revenue": {"bounds": bounds_to_dict(bounds), "state": state.to_dict()},
        "charts": {
            entity: {col: calculate_chart_data(result.frame(entity), col) for col in cols}
            for entity, cols in SUMMARY_CHARTS.items()
        },
    }
    if include_records:
        payload["records"] = {e: records(result.frame(e)) for e in ENTITIES}
    return payload
