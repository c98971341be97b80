"""Cross-entity filtering.

Filters on one entity type constrain which records of related entity types
stay visible. `apply_filters` runs a fixed sequence of passes:

1. accounts by account-level matchers (categorical, revenue, name keywords)
2. centers by center-level matchers, restricted to surviving accounts when
   any account-level filter is active
3. functions by surviving centers (+ function matcher); an active function
   filter also shrinks centers to those with a surviving function
4. prospects by prospect-level matchers, restricted to surviving accounts
   when any account-level filter is active
5. an active prospect filter shrinks accounts to those referenced by
   surviving prospects, then steps 2-3 are re-run against that set
6. services by surviving centers
7. once a center or function filter is active, accounts shrink to those
   referenced by surviving centers and everything else is re-joined to that
   set

The order is part of the contract; it is not an iterate-to-fixpoint loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Mapping, Optional, Tuple, Union

import pandas as pd

from bi_core.data import Snapshot
from bi_core.fields import (
    ACCOUNT_KEY,
    ACCOUNTS,
    CENTER_KEY,
    CENTERS,
    ENTITIES,
    FIELDS_BY_NAME,
    FUNCTIONS,
    PROSPECTS,
)
from bi_core.filters import Filters
from bi_core.matchers import Matcher, MatcherCache, SearchMatcher, compile_filters
from bi_core.relations import key_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaskSet:
    """Per-field boolean masks, each evaluated once against its entity frame."""

    masks: Mapping[str, pd.Series] = field(default_factory=dict)

    def active_fields(self, skip: Optional[str] = None) -> Tuple[str, ...]:
        return tuple(name for name in self.masks if name != skip)

    def is_active(self, entity: Optional[str] = None, skip: Optional[str] = None) -> bool:
        for name in self.active_fields(skip):
            if entity is None or FIELDS_BY_NAME[name].entity == entity:
                return True
        return False

    def combined(self, entity: str, frame: pd.DataFrame, skip: Optional[str] = None) -> pd.Series:
        out = pd.Series(True, index=frame.index, dtype=bool)
        for name in self.active_fields(skip):
            if FIELDS_BY_NAME[name].entity == entity:
                out &= self.masks[name]
        return out


def evaluate_masks(snapshot: Snapshot, matchers: Mapping[str, Matcher]) -> MaskSet:
    masks: Dict[str, pd.Series] = {}
    for name, matcher in matchers.items():
        if not matcher.is_active:
            continue
        spec = FIELDS_BY_NAME[name]
        frame = snapshot.frame(spec.entity)
        if isinstance(matcher, SearchMatcher):
            masks[name] = matcher.mask(frame)
        else:
            masks[name] = matcher.mask(frame[spec.column])
    return MaskSet(masks)


def build_masks(snapshot: Snapshot, filters: Filters, cache: Optional[MatcherCache] = None) -> MaskSet:
    return evaluate_masks(snapshot, compile_filters(filters, cache))


@dataclass(frozen=True)
class FilterResult:
    accounts: pd.DataFrame
    centers: pd.DataFrame
    functions: pd.DataFrame
    services: pd.DataFrame
    prospects: pd.DataFrame

    def frame(self, entity: str) -> pd.DataFrame:
        return getattr(self, entity)

    def counts(self) -> Dict[str, int]:
        return {entity: int(len(self.frame(entity))) for entity in ENTITIES}

    def is_join_consistent(self) -> bool:
        account_keys = key_index(self.accounts, ACCOUNT_KEY)
        center_keys = key_index(self.centers, CENTER_KEY)
        return bool(
            self.centers[ACCOUNT_KEY].astype("string").isin(account_keys).all()
            and self.functions[CENTER_KEY].astype("string").isin(center_keys).all()
            and self.services[CENTER_KEY].astype("string").isin(center_keys).all()
            and self.prospects[ACCOUNT_KEY].astype("string").isin(account_keys).all()
        )


def _run(snapshot: Snapshot, masks: MaskSet, skip: Optional[str]) -> FilterResult:
    rel = snapshot.relations
    accounts = snapshot.accounts
    centers = snapshot.centers
    functions = snapshot.functions
    prospects = snapshot.prospects

    account_active = masks.is_active(ACCOUNTS, skip)
    function_active = masks.is_active(FUNCTIONS, skip)
    prospect_active = masks.is_active(PROSPECTS, skip)
    center_active = masks.is_active(CENTERS, skip)

    centers_m = centers[masks.combined(CENTERS, centers, skip)]
    functions_m = functions[masks.combined(FUNCTIONS, functions, skip)] if function_active else functions

    def filter_centers(account_keys: Optional[pd.Index]) -> Tuple[pd.DataFrame, pd.DataFrame]:
        kept_centers = centers_m if account_keys is None else rel.centers_for_accounts(centers_m, account_keys)
        kept_functions = rel.functions_for_centers(functions_m, key_index(kept_centers, CENTER_KEY))
        if function_active:
            kept_centers = rel.centers_for_keys(kept_centers, key_index(kept_functions, CENTER_KEY))
        return kept_centers, kept_functions

    # 1. accounts
    accounts_f = accounts[masks.combined(ACCOUNTS, accounts, skip)]
    account_keys = key_index(accounts_f, ACCOUNT_KEY)

    # 2-3. centers, functions
    centers_f, functions_f = filter_centers(account_keys if account_active else None)

    # 4. prospects
    prospects_f = prospects[masks.combined(PROSPECTS, prospects, skip)]
    if account_active:
        prospects_f = rel.prospects_for_accounts(prospects_f, account_keys)

    # 5. prospect closure
    if prospect_active:
        accounts_f = rel.accounts_for_keys(accounts_f, key_index(prospects_f, ACCOUNT_KEY))
        account_keys = key_index(accounts_f, ACCOUNT_KEY)
        centers_f, functions_f = filter_centers(account_keys)
        prospects_f = rel.prospects_for_accounts(prospects_f, account_keys)

    # 6. services
    services_f = rel.services_for_centers(snapshot.services, key_index(centers_f, CENTER_KEY))

    # 7. final closure
    if center_active or function_active:
        accounts_f = rel.accounts_for_keys(accounts_f, key_index(centers_f, ACCOUNT_KEY))
        account_keys = key_index(accounts_f, ACCOUNT_KEY)
        centers_f = rel.centers_for_accounts(centers_f, account_keys)
        center_keys = key_index(centers_f, CENTER_KEY)
        functions_f = rel.functions_for_centers(functions_f, center_keys)
        services_f = rel.services_for_centers(services_f, center_keys)
        prospects_f = rel.prospects_for_accounts(prospects_f, account_keys)

    return FilterResult(accounts_f, centers_f, functions_f, services_f, prospects_f)


def apply_filters(
    snapshot: Snapshot,
    filters: Union[Filters, MaskSet],
    *,
    skip: Optional[str] = None,
    cache: Optional[MatcherCache] = None,
) -> FilterResult:
    """Filter all five collections; `skip` relaxes one field (leave-one-out)."""
    masks = filters if isinstance(filters, MaskSet) else build_masks(snapshot, filters, cache)
    result = _run(snapshot, masks, skip)
    logger.debug("apply_filters skip=%s active=%s counts=%s", skip, masks.active_fields(skip), result.counts())
    return result
