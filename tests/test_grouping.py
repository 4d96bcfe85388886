import pytest

from smb_pulse.estimators import GroupProfitEstimator, SectorCOGSProfitEstimator
from smb_pulse.grouping import group_by_field
from smb_pulse.mapping import ColumnMapping
from smb_pulse.models import UNKNOWN_GROUP

ROWS = [
    {"Sales": "100", "Profit": "20", "Region": "Jakarta"},
    {"Sales": "300", "Profit": "60", "Region": "Bandung"},
    {"Sales": "200", "Profit": "-10", "Region": "Jakarta"},
    {"Sales": "50", "Profit": "5", "Region": ""},
    {"Sales": "0", "Profit": "0"},
]


def test_group_by_field_with_observed_profit() -> None:
    mapping = ColumnMapping(revenue="Sales", profit="Profit", region="Region")

    groups = group_by_field(ROWS, "Region", mapping)

    assert list(groups) == ["Jakarta", "Bandung", UNKNOWN_GROUP]

    jakarta = groups["Jakarta"]
    assert jakarta.count == 2
    assert jakarta.total_revenue == pytest.approx(300.0)
    assert jakarta.total_profit == pytest.approx(10.0)
    assert jakarta.avg_transaction == pytest.approx(150.0)
    assert jakarta.profit_margin == pytest.approx(10.0 / 300.0 * 100)

    unknown = groups[UNKNOWN_GROUP]
    assert unknown.count == 2
    assert unknown.total_revenue == pytest.approx(50.0)


def test_group_by_field_estimates_flat_margin_without_profit() -> None:
    mapping = ColumnMapping(revenue="Sales", region="Region")

    groups = group_by_field(ROWS, "Region", mapping)

    assert groups["Bandung"].total_profit == pytest.approx(300.0 * 0.17)
    assert groups["Bandung"].profit_margin == pytest.approx(17.0)


def test_group_counts_add_up_to_row_count() -> None:
    mapping = ColumnMapping(revenue="Sales", region="Region")
    groups = group_by_field(ROWS, "Region", mapping)
    assert sum(g.count for g in groups.values()) == len(ROWS)


def test_group_without_revenue_has_zero_margin() -> None:
    mapping = ColumnMapping(revenue="Sales", profit="Profit", region="Region")
    rows = [{"Sales": "0", "Profit": "-5", "Region": "Medan"}]

    groups = group_by_field(rows, "Region", mapping)

    assert groups["Medan"].profit_margin == 0
    assert groups["Medan"].avg_transaction == 0


def test_group_by_field_accepts_custom_estimator() -> None:
    mapping = ColumnMapping(revenue="Sales", region="Region")
    groups = group_by_field(ROWS, "Region", mapping, GroupProfitEstimator(margin=0.5))
    assert groups["Bandung"].total_profit == pytest.approx(150.0)


def test_sector_estimator_models_cogs_and_opex() -> None:
    estimator = SectorCOGSProfitEstimator(sector="Kuliner")

    assert estimator.cogs(1_000_000) == pytest.approx(350_000)
    assert estimator.opex(1_000_000) == pytest.approx(109_000)
    assert estimator.estimate_profit(1_000_000) == pytest.approx(541_000)


@pytest.mark.parametrize("sector", ["Unknown sector", "", None, "kuliner"])
def test_sector_estimator_falls_back_to_default_ratio(sector) -> None:
    assert SectorCOGSProfitEstimator(sector=sector).cogs_ratio == pytest.approx(0.47)
