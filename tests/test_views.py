import pytest

from smb_pulse.engine import calculate_metrics
from smb_pulse.mapping import ColumnMapping
from smb_pulse.validation import validate_structure
from smb_pulse.views import (
    anomalies_to_dataframe,
    groups_to_dataframe,
    summary_to_dataframe,
    validation_to_dataframe,
)


@pytest.fixture(scope="module")
def metrics():
    rows = [
        {"Sales": "100.456", "Profit": "150", "Region": "Jakarta"},
        {"Sales": "300", "Profit": "30", "Region": "Bandung"},
        {"Sales": "300", "Profit": "60", "Region": "Medan"},
        {"Sales": "0", "Profit": "0", "Region": ""},
    ]
    mapping = ColumnMapping(revenue="Sales", profit="Profit", region="Region")
    return calculate_metrics(rows, mapping)


def test_summary_to_dataframe(metrics) -> None:
    df = summary_to_dataframe(metrics, decimals=1)

    assert list(df.columns) == ["metric", "value"]
    values = dict(zip(df["metric"], df["value"]))
    assert values["Total revenue"] == pytest.approx(700.5)
    assert values["Transactions"] == 4
    assert values["Valid rows"] == 3
    assert values["Anomalies"] == len(metrics.anomalies)


def test_groups_sorted_by_revenue_with_stable_ties(metrics) -> None:
    df = groups_to_dataframe(metrics.by_region, decimals=2)

    assert df["group"].tolist() == ["Bandung", "Medan", "Jakarta", "Unknown"]
    assert df.loc[2, "total_revenue"] == pytest.approx(100.46)
    assert df["count"].sum() == 4


def test_groups_to_dataframe_empty() -> None:
    df = groups_to_dataframe({})
    assert df.empty
    assert "group" in df.columns


def test_anomalies_to_dataframe_keeps_detection_order(metrics) -> None:
    df = anomalies_to_dataframe(metrics.anomalies)

    assert list(df.columns) == ["row", "field", "value", "issue", "severity"]
    assert df["row"].tolist() == [a.row for a in metrics.anomalies]
    assert df.loc[0, "issue"] == "Profit exceeds revenue (impossible)"


def test_validation_to_dataframe_errors_first() -> None:
    result = validate_structure(["Sales"], ColumnMapping(revenue="Sales"))

    df = validation_to_dataframe(result)

    assert df["level"].tolist() == ["error", "warning"]
    assert df["code"].tolist() == ["INSUFFICIENT_COLUMNS", "NO_PROFIT_COLUMN"]
