from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from bi_core.data import Snapshot
from bi_core.engine import FilterResult, MaskSet, apply_filters, build_masks
from bi_core.fields import FACET_FIELDS, FieldSpec
from bi_core.filters import Filters
from bi_core.matchers import MatcherCache, blank_mask
from bi_core.relations import RelationIndex


@dataclass(frozen=True)
class FilterOption:
    value: str
    count: int
    disabled: bool = False


@dataclass(frozen=True)
class FacetOptions:
    field: str
    options: List[FilterOption] = field(default_factory=list)
    blank_count: int = 0

    def counts(self) -> Dict[str, int]:
        return {o.value: o.count for o in self.options}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "options": [asdict(o) for o in self.options],
            "blank_count": self.blank_count,
        }


def count_values(series: pd.Series) -> List[FilterOption]:
    """Value counts sorted by count descending, ties in order of first appearance."""
    values = series[~blank_mask(series)].astype(str)
    if values.empty:
        return []
    counts = values.value_counts()
    ordered = [FilterOption(str(v), int(counts[v])) for v in pd.unique(values)]
    return sorted(ordered, key=lambda o: -o.count)


def facet_options(
    spec: FieldSpec,
    result: FilterResult,
    filters: Filters,
    relations: Optional[RelationIndex] = None,
) -> FacetOptions:
    frame = result.frame(spec.entity)
    if relations is not None:
        # Records with a dangling join key would vanish once this field is filtered.
        frame = relations.resolved(spec.entity, frame)
    column = frame[spec.column]
    options = count_values(column)
    seen = {o.value for o in options}
    # Selected values that no longer match stay listed so they can be removed.
    for selected in filters.values_for(spec.name):
        if selected.value not in seen:
            options.append(FilterOption(selected.value, 0, disabled=True))
            seen.add(selected.value)
    return FacetOptions(spec.name, options, int(blank_mask(column).sum()))


def compute_available_options(
    snapshot: Snapshot,
    filters: Filters,
    *,
    cache: Optional[MatcherCache] = None,
    masks: Optional[MaskSet] = None,
    baseline: Optional[FilterResult] = None,
) -> Dict[str, FacetOptions]:
    """Leave-one-out option counts for every facet field.

    Each count is the number of records of the field's entity that survive
    every active filter except the one on that field. Fields without a filter
    share the baseline result; each filtered field costs one extra pass with
    its own mask dropped.
    """
    masks = masks if masks is not None else build_masks(snapshot, filters, cache)
    if baseline is None:
        baseline = apply_filters(snapshot, masks)

    out: Dict[str, FacetOptions] = {}
    for spec in FACET_FIELDS:
        result = apply_filters(snapshot, masks, skip=spec.name) if spec.name in masks.masks else baseline
        out[spec.name] = facet_options(spec, result, filters, snapshot.relations)
    return out
