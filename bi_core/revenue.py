"""Dynamic revenue bounds and the auto/manual selected-range state.

In auto mode the selected range tracks the recomputed bounds exactly. Any
direct edit (min, max or slider) switches to manual mode, after which bound
changes only clamp the selection. Reset and loading a saved filter set go
back to auto.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
import math
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

from bi_core.data import Snapshot
from bi_core.engine import FilterResult, MaskSet, apply_filters, build_masks
from bi_core.fields import REVENUE, REVENUE_FIELD
from bi_core.filters import Filters
from bi_core.matchers import MatcherCache

RangeMode = Literal["auto", "manual"]


@dataclass(frozen=True)
class RevenueBounds:
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class RevenueRangeState:
    selected: Tuple[float, float] = (0.0, 0.0)
    mode: RangeMode = "auto"

    def to_dict(self) -> Dict[str, Any]:
        return {"selected": list(self.selected), "mode": self.mode}


def bounds_from_result(result: FilterResult) -> RevenueBounds:
    revenue = result.accounts[REVENUE].astype(float)
    revenue = revenue[revenue > 0]
    if revenue.empty:
        return RevenueBounds()
    return RevenueBounds(float(math.floor(revenue.min())), float(math.ceil(revenue.max())))


def compute_revenue_bounds(
    snapshot: Snapshot,
    filters: Filters,
    *,
    cache: Optional[MatcherCache] = None,
    masks: Optional[MaskSet] = None,
) -> RevenueBounds:
    """Revenue min/max over accounts matching every active filter except revenue."""
    masks = masks if masks is not None else build_masks(snapshot, filters, cache)
    return bounds_from_result(apply_filters(snapshot, masks, skip=REVENUE_FIELD))


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def _parse(raw: object) -> Optional[float]:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) or math.isinf(value) else value


def sync_range(state: RevenueRangeState, bounds: RevenueBounds) -> RevenueRangeState:
    if state.mode == "auto":
        return replace(state, selected=(bounds.min, bounds.max))
    lo, hi = state.selected
    return replace(state, selected=(_clamp(lo, bounds.min, bounds.max), _clamp(hi, bounds.min, bounds.max)))


def edit_min(state: RevenueRangeState, raw: object, bounds: RevenueBounds) -> RevenueRangeState:
    value = _parse(raw)
    if value is None:
        return state
    hi = state.selected[1]
    return RevenueRangeState((_clamp(value, bounds.min, hi), hi), "manual")


def edit_max(state: RevenueRangeState, raw: object, bounds: RevenueBounds) -> RevenueRangeState:
    value = _parse(raw)
    if value is None:
        return state
    lo = state.selected[0]
    return RevenueRangeState((lo, _clamp(value, lo, bounds.max)), "manual")


def edit_range(state: RevenueRangeState, values: Sequence[object], bounds: RevenueBounds) -> RevenueRangeState:
    if len(values) != 2:
        return state
    lo, hi = _parse(values[0]), _parse(values[1])
    if lo is None or hi is None:
        return state
    lo, hi = sorted((lo, hi))
    return RevenueRangeState((_clamp(lo, bounds.min, bounds.max), _clamp(hi, bounds.min, bounds.max)), "manual")


def reset_range(bounds: RevenueBounds) -> RevenueRangeState:
    return RevenueRangeState((bounds.min, bounds.max), "auto")


def load_saved_range(bounds: RevenueBounds) -> RevenueRangeState:
    return reset_range(bounds)


def revenue_filter_range(state: RevenueRangeState) -> Tuple[float, float]:
    """The range the engine should apply; sync the state against current bounds first."""
    lo, hi = state.selected
    return float(lo), float(hi)


def state_from_dict(raw: Optional[Dict[str, Any]]) -> RevenueRangeState:
    if not raw:
        return RevenueRangeState()
    selected = raw.get("selected") or (0.0, 0.0)
    if len(selected) != 2:
        selected = (0.0, 0.0)
    lo, hi = _parse(selected[0]) or 0.0, _parse(selected[1]) or 0.0
    mode: RangeMode = "manual" if raw.get("mode") == "manual" else "auto"
    return RevenueRangeState((lo, hi), mode)


def bounds_to_dict(bounds: RevenueBounds) -> Dict[str, float]:
    return asdict(bounds)
