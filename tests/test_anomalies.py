from smb_pulse.anomalies import (
    ISSUE_NEGATIVE_MARGIN,
    ISSUE_NON_POSITIVE_REVENUE,
    ISSUE_OUTLIER,
    ISSUE_PROFIT_EXCEEDS_REVENUE,
    detect_anomalies,
    revenue_stats,
    summarize_anomalies,
)
from smb_pulse.mapping import ColumnMapping
from smb_pulse.models import Severity

WITH_PROFIT = ColumnMapping(revenue="revenue", profit="profit")
REVENUE_ONLY = ColumnMapping(revenue="revenue")


def test_profit_exceeding_revenue_is_flagged_once() -> None:
    rows = [
        {"revenue": "100", "profit": "150"},
        {"revenue": "200", "profit": "50"},
    ]

    anomalies = detect_anomalies(rows, WITH_PROFIT)

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.row == 1
    assert anomaly.field == "profit"
    assert anomaly.value == "150"
    assert anomaly.issue == ISSUE_PROFIT_EXCEEDS_REVENUE
    assert anomaly.severity is Severity.HIGH


def test_zero_revenue_is_high_severity() -> None:
    anomalies = detect_anomalies([{"revenue": "0"}], REVENUE_ONLY)

    assert [(a.row, a.issue, a.severity) for a in anomalies] == [
        (1, ISSUE_NON_POSITIVE_REVENUE, Severity.HIGH)
    ]
    assert anomalies[0].value == "0"


def test_blank_revenue_reports_empty_value() -> None:
    rows = [{"revenue": "100"}, {"revenue": ""}, {}]

    anomalies = [
        a for a in detect_anomalies(rows, REVENUE_ONLY)
        if a.issue == ISSUE_NON_POSITIVE_REVENUE
    ]

    assert [(a.row, a.value) for a in anomalies] == [(2, "empty"), (3, "empty")]


def test_non_text_cells_are_accepted() -> None:
    rows = [{"revenue": 0, "profit": 5}, {"revenue": 250, "profit": 40}]

    anomalies = detect_anomalies(rows, WITH_PROFIT)  # type: ignore[arg-type]

    assert [(a.row, a.issue, a.value) for a in anomalies] == [
        (1, ISSUE_NON_POSITIVE_REVENUE, "0"),
        (1, ISSUE_OUTLIER, "0"),
        (1, ISSUE_PROFIT_EXCEEDS_REVENUE, "5"),
    ]


def test_no_positive_revenue_disables_outlier_check() -> None:
    rows = [{"revenue": "0"}, {"revenue": "-5"}, {"revenue": "abc"}]

    assert revenue_stats([0.0, -5.0, 0.0]) is None
    anomalies = detect_anomalies(rows, REVENUE_ONLY)

    assert all(a.issue == ISSUE_NON_POSITIVE_REVENUE for a in anomalies)
    assert [a.row for a in anomalies] == [1, 2, 3]


def test_outlier_is_detected_beyond_three_std() -> None:
    rows = [{"revenue": "100"} for _ in range(20)] + [{"revenue": "10000"}]

    anomalies = detect_anomalies(rows, REVENUE_ONLY)

    assert len(anomalies) == 1
    assert anomalies[0].row == 21
    assert anomalies[0].issue == ISSUE_OUTLIER
    assert anomalies[0].severity is Severity.MEDIUM
    assert anomalies[0].value == "10000"


def test_zero_revenue_row_can_also_be_an_outlier() -> None:
    """With identical positive revenues (std = 0), a zero row is both
    non-positive and outside the band; both anomalies are reported."""
    rows = [{"revenue": "100"}, {"revenue": "100"}, {"revenue": "0"}]

    anomalies = detect_anomalies(rows, REVENUE_ONLY)

    assert [(a.row, a.issue) for a in anomalies] == [
        (3, ISSUE_NON_POSITIVE_REVENUE),
        (3, ISSUE_OUTLIER),
    ]


def test_extremely_negative_margin() -> None:
    rows = [
        {"revenue": "200", "profit": "-150"},
        {"revenue": "200", "profit": "-100"},
        {"revenue": "200", "profit": "20"},
    ]

    anomalies = detect_anomalies(rows, WITH_PROFIT)

    assert len(anomalies) == 1
    assert anomalies[0].row == 1
    assert anomalies[0].issue == ISSUE_NEGATIVE_MARGIN
    assert anomalies[0].value == "-75.0%"
    assert anomalies[0].severity is Severity.MEDIUM


def test_checks_are_independent_and_in_detection_order() -> None:
    # Row 2: zero revenue (high), profit > revenue (high).
    rows = [
        {"revenue": "100", "profit": "10"},
        {"revenue": "0", "profit": "5"},
        {"revenue": "100", "profit": "10"},
    ]

    anomalies = detect_anomalies(rows, WITH_PROFIT)

    assert [(a.row, a.issue) for a in anomalies] == [
        (2, ISSUE_NON_POSITIVE_REVENUE),
        (2, ISSUE_OUTLIER),
        (2, ISSUE_PROFIT_EXCEEDS_REVENUE),
    ]


def test_profit_checks_skipped_without_profit_mapping() -> None:
    rows = [{"revenue": "100", "profit": "500"}, {"revenue": "100", "profit": "500"}]
    assert detect_anomalies(rows, REVENUE_ONLY) == []


def test_summarize_anomalies_counts_every_level() -> None:
    rows = [{"revenue": "0"}, {"revenue": "100"}]
    counts = summarize_anomalies(detect_anomalies(rows, REVENUE_ONLY))

    assert counts[Severity.LOW] == 0
    assert counts[Severity.HIGH] == 1
    assert set(counts) == set(Severity)
