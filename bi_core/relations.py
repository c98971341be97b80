from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from bi_core.fields import ACCOUNT_KEY, ACCOUNTS, CENTER_KEY, CENTERS, FUNCTIONS, PROSPECTS, SERVICES


def key_index(frame: pd.DataFrame, col: str) -> pd.Index:
    """Distinct, non-null join keys of `frame[col]`, compared by exact string match."""
    if frame.empty or col not in frame.columns:
        return pd.Index([], dtype=object)
    return pd.Index(frame[col].dropna().astype(str).unique())


def restrict(frame: pd.DataFrame, col: str, keys: Iterable[str]) -> pd.DataFrame:
    if frame.empty:
        return frame
    keys = keys if isinstance(keys, pd.Index) else pd.Index(list(keys))
    return frame[frame[col].astype("string").isin(keys).astype(bool)]


@dataclass(frozen=True)
class RelationIndex:
    """Join-key lookups for one snapshot (account name and center key).

    `resolved_center_keys` holds the centers whose account reference matches
    an existing account; the rest are orphans and drop out of joins.
    """

    account_keys: pd.Index
    center_keys: pd.Index
    resolved_center_keys: pd.Index

    @classmethod
    def build(cls, accounts: pd.DataFrame, centers: pd.DataFrame) -> "RelationIndex":
        account_keys = key_index(accounts, ACCOUNT_KEY)
        return cls(
            account_keys=account_keys,
            center_keys=key_index(centers, CENTER_KEY),
            resolved_center_keys=key_index(restrict(centers, ACCOUNT_KEY, account_keys), CENTER_KEY),
        )

    def orphan_center_keys(self) -> List[str]:
        """Centers whose account reference resolves to no account."""
        return [str(k) for k in self.center_keys.difference(self.resolved_center_keys, sort=False)]

    def accounts_for_keys(self, accounts: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(accounts, ACCOUNT_KEY, keys)

    def centers_for_keys(self, centers: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(centers, CENTER_KEY, keys)

    def centers_for_accounts(self, centers: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(centers, ACCOUNT_KEY, keys)

    def functions_for_centers(self, functions: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(functions, CENTER_KEY, keys)

    def services_for_centers(self, services: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(services, CENTER_KEY, keys)

    def prospects_for_accounts(self, prospects: pd.DataFrame, keys: Iterable[str]) -> pd.DataFrame:
        return restrict(prospects, ACCOUNT_KEY, keys)

    def resolved(self, entity: str, frame: pd.DataFrame) -> pd.DataFrame:
        """Rows of `frame` whose join references reach an existing account."""
        if entity == CENTERS:
            return self.centers_for_accounts(frame, self.account_keys)
        if entity == FUNCTIONS:
            return self.functions_for_centers(frame, self.resolved_center_keys)
        if entity == SERVICES:
            return self.services_for_centers(frame, self.resolved_center_keys)
        if entity == PROSPECTS:
            return self.prospects_for_accounts(frame, self.account_keys)
        if entity == ACCOUNTS:
            return frame
        raise KeyError(entity)


def duplicate_account_keys(accounts: pd.DataFrame) -> List[str]:
    if accounts.empty:
        return []
    names = accounts[ACCOUNT_KEY].dropna().astype(str)
    return sorted(names[names.duplicated()].unique().tolist())
