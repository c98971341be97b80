import pandas as pd

from bi_core.charts import UNKNOWN_LABEL, calculate_chart_data, pie_chart, to_vega_spec


def test_chart_data_counts_groups_in_descending_order(snapshot):
    data = calculate_chart_data(snapshot.functions, "function_name")

    assert data == [{"name": "IT", "value": 3}, {"name": "HR", "value": 1}, {"name": "Finance", "value": 1}]


def test_chart_data_groups_blanks_as_unknown(snapshot):
    data = calculate_chart_data(snapshot.accounts, "account_hq_sub_industry")

    assert {"name": UNKNOWN_LABEL, "value": 1} in data
    assert sum(row["value"] for row in data) == 3


def test_chart_data_keeps_top_n():
    frame = pd.DataFrame({"city": [f"city-{i}" for i in range(12)] + ["city-0"]})

    data = calculate_chart_data(frame, "city", top_n=10)

    assert len(data) == 10
    assert data[0] == {"name": "city-0", "value": 2}


def test_chart_data_for_empty_or_unknown_column(snapshot):
    assert calculate_chart_data(snapshot.accounts.iloc[0:0], "account_hq_region") == []
    assert calculate_chart_data(snapshot.accounts, "no_such_column") == []


def test_pie_chart_spec():
    spec = to_vega_spec(pie_chart([{"name": "GCC", "value": 2}, {"name": "Vendor", "value": 1}], "center_type"))

    assert spec["mark"]["type"] == "arc"
    assert spec["mark"]["innerRadius"] == 50
    assert spec["encoding"]["theta"]["field"] == "value"
    assert spec["encoding"]["color"]["field"] == "name"
