import math

import pandas as pd
import pytest

from bi_core.data import (
    account_names,
    build_snapshot,
    clear_snapshot_cache,
    format_revenue_in_millions,
    load_snapshot,
    normalize_frame,
    parse_revenue,
)
from bi_core.engine import apply_filters
from bi_core.fields import ACCOUNTS, ENTITIES, PROSPECTS, REQUIRED_COLUMNS, REVENUE
from bi_core.filters import Filters, to_filter_values
from bi_core.relations import RelationIndex, duplicate_account_keys


@pytest.mark.parametrize(
    "raw, expected",
    [
        (250, 250.0),
        ("$1,250.5", 1250.5),
        ("1.2B", 1200.0),
        ("800K", 0.8),
        ("12 mn", 12.0),
        ("5 USD", 5.0),
        (None, 0.0),
        (float("nan"), 0.0),
        ("n/a", 0.0),
        ("12 apples", 0.0),
        (-5, 0.0),
    ],
)
def test_parse_revenue(raw, expected):
    assert math.isclose(parse_revenue(raw), expected)


def test_format_revenue_in_millions():
    assert format_revenue_in_millions(250) == "$250M"
    assert format_revenue_in_millions("1500") == "$1.5B"
    assert format_revenue_in_millions(None) == "$0M"


def test_normalize_frame_adds_missing_columns_and_blanks_empty_text():
    df = normalize_frame(PROSPECTS, pd.DataFrame({"prospect_city": ["  Pune ", "", None]}))

    assert set(REQUIRED_COLUMNS[PROSPECTS]) <= set(df.columns)
    assert df.loc[0, "prospect_city"] == "Pune"
    assert df["prospect_city"].isna().tolist() == [False, True, True]


def test_snapshot_parses_revenue(snapshot):
    assert snapshot.accounts[REVENUE].tolist() == [10.0, 50.0, 0.0]


def test_build_snapshot_drops_duplicate_center_keys(centers_df):
    doubled = pd.concat([centers_df, centers_df.iloc[[0]]], ignore_index=True)

    snapshot = build_snapshot(centers=doubled)

    assert snapshot.centers["cn_unique_key"].tolist() == ["C1", "C2", "C3", "C4"]


def test_build_snapshot_tolerates_missing_collections():
    snapshot = build_snapshot()

    assert snapshot.counts() == {entity: 0 for entity in ENTITIES}
    assert set(REQUIRED_COLUMNS[ACCOUNTS]) <= set(snapshot.accounts.columns)


def test_relation_index_finds_orphan_centers(accounts_df, centers_df):
    extra = pd.DataFrame({"cn_unique_key": ["C9"], "account_global_legal_name": ["Ghost Ltd"]})
    snapshot = build_snapshot(accounts_df, pd.concat([centers_df, extra], ignore_index=True))

    relations = snapshot.relations
    assert isinstance(relations, RelationIndex)
    assert relations.orphan_center_keys() == ["C9"]
    assert "C9" not in set(relations.resolved_center_keys)
    assert relations.resolved("centers", snapshot.centers)["cn_unique_key"].tolist() == ["C1", "C2", "C3", "C4"]


def test_join_keys_keep_surrounding_whitespace():
    snapshot = build_snapshot(
        accounts=pd.DataFrame({
            "account_global_legal_name": ["Acme", "Other"],
            "account_hq_country": ["India", "USA"],
        }),
        centers=pd.DataFrame({"cn_unique_key": ["C1"], "account_global_legal_name": ["Acme "]}),
    )

    result = apply_filters(snapshot, Filters(account_countries=to_filter_values(["India"])))

    assert snapshot.centers.loc[0, "account_global_legal_name"] == "Acme "
    assert result.centers.empty
    assert snapshot.relations.orphan_center_keys() == ["C1"]


def test_relation_index_restricts_children(snapshot):
    relations = snapshot.relations

    centers = relations.centers_for_accounts(snapshot.centers, ["Acme Corp"])
    functions = relations.functions_for_centers(snapshot.functions, centers["cn_unique_key"])

    assert centers["cn_unique_key"].tolist() == ["C1", "C4"]
    assert functions["function_name"].tolist() == ["IT", "HR", "IT"]
    assert relations.prospects_for_accounts(snapshot.prospects, []).empty
    assert relations.services_for_centers(snapshot.services, ["C2"])["primary_service"].tolist() == ["Analytics"]
    assert relations.accounts_for_keys(snapshot.accounts, ["Globex Inc", "acme corp"]).shape[0] == 1


def test_duplicate_account_keys():
    accounts = pd.DataFrame({"account_global_legal_name": ["A", "B", "A", None, None]})

    assert duplicate_account_keys(accounts) == ["A"]


def test_account_names(snapshot):
    assert account_names(snapshot) == ["Acme Corp", "Globex Inc", "Initech LLC"]
    assert account_names(snapshot, "INC") == ["Globex Inc"]
    assert account_names(snapshot, limit=1) == ["Acme Corp"]


def test_load_snapshot_reads_csv_directory(tmp_path, accounts_df, centers_df, prospects_df):
    accounts_df.to_csv(tmp_path / "accounts.csv", index=False)
    centers_df.to_csv(tmp_path / "centers.csv", index=False)
    prospects_df.to_csv(tmp_path / "prospects.csv", index=False)
    clear_snapshot_cache()

    snapshot = load_snapshot(tmp_path)

    assert snapshot.counts() == {"accounts": 3, "centers": 4, "functions": 0, "services": 0, "prospects": 4}
    assert snapshot.accounts[REVENUE].tolist() == [10.0, 50.0, 0.0]
    assert load_snapshot(tmp_path) is snapshot
    clear_snapshot_cache()
