import pytest

from smb_pulse.engine import calculate_metrics
from smb_pulse.insights import (
    AnalysisResult,
    NarrativeContext,
    NarrativeProvider,
    format_rupiah,
    generate_fallback_analysis,
    generate_narrative,
)
from smb_pulse.mapping import ColumnMapping


def _metrics(rows, **mapping):
    return calculate_metrics(rows, ColumnMapping(revenue="Sales", **mapping))


HEALTHY = [
    {"Sales": "1000", "Profit": "300", "Region": "Jakarta"},
    {"Sales": "2000", "Profit": "600", "Region": "Bandung"},
    {"Sales": "1500", "Profit": "450", "Region": "Bandung"},
]


def test_format_rupiah() -> None:
    assert format_rupiah(1_234_567) == "Rp 1.234.567"
    assert format_rupiah(1234.5) == "Rp 1.234,5"
    assert format_rupiah(0) == "Rp 0"
    assert format_rupiah(-2500) == "Rp -2.500"


def test_fallback_healthy_business() -> None:
    metrics = _metrics(HEALTHY, profit="Profit", region="Region")

    result = generate_fallback_analysis(metrics)

    assert result.success is True
    assert result.error is None
    categories = [i.category for i in result.insights]
    assert categories == ["revenue", "profitability", "opportunity"]
    assert result.insights[1].title == "Healthy profit margin"
    assert "Bandung" in result.insights[2].description
    assert result.risk_assessment.level == "low"
    assert result.risk_assessment.factors == ()
    assert result.recommendations == ("Strengthen market penetration in Bandung.",)
    assert result.confidence == metrics.confidence


def test_fallback_low_margin_and_poor_quality() -> None:
    rows = [{"Sales": "1000", "Profit": "50"}] + [{"Sales": "0", "Profit": "0"}] * 3

    metrics = _metrics(rows, profit="Profit")
    result = generate_fallback_analysis(metrics)

    assert metrics.profit_margin == pytest.approx(5.0)
    assert metrics.data_quality.quality_score == 25
    assert [i.category for i in result.insights] == [
        "revenue",
        "profitability",
        "data_quality",
    ]
    assert result.risk_assessment.factors == ("Low profit margin", "Low data quality")
    assert result.risk_assessment.level == "medium"
    assert any("suppliers" in r for r in result.recommendations)


def test_fallback_high_risk_with_many_anomalies() -> None:
    rows = [{"Sales": "0", "Profit": "10"}] * 12

    result = generate_fallback_analysis(_metrics(rows, profit="Profit"))

    assert "risk" in [i.category for i in result.insights]
    assert len(result.risk_assessment.factors) == 3
    assert result.risk_assessment.level == "high"
    assert result.summary.endswith("Several risk areas need attention.")


def test_fallback_default_recommendations() -> None:
    rows = [{"Sales": "1000", "Profit": "150"}] * 3

    result = generate_fallback_analysis(_metrics(rows, profit="Profit"))

    assert result.recommendations == (
        "Maintain current performance.",
        "Monitor trends regularly.",
    )
    assert result.risk_assessment.level == "low"


def test_fallback_is_deterministic() -> None:
    metrics = _metrics(HEALTHY, profit="Profit", region="Region")
    assert generate_fallback_analysis(metrics) == generate_fallback_analysis(metrics)


class _StaticProvider(NarrativeProvider):
    def __init__(self, result: AnalysisResult) -> None:
        self.result = result
        self.calls: list[NarrativeContext] = []

    def analyze(self, metrics, context):
        self.calls.append(context)
        return self.result


class _FailingProvider(NarrativeProvider):
    def analyze(self, metrics, context):
        raise TimeoutError("provider timed out")


def test_generate_narrative_without_provider_uses_fallback() -> None:
    metrics = _metrics(HEALTHY, profit="Profit")

    result = generate_narrative(metrics)

    assert result == generate_fallback_analysis(metrics)
    assert result.error is None


def test_generate_narrative_returns_provider_result() -> None:
    metrics = _metrics(HEALTHY, profit="Profit")
    expected = AnalysisResult(success=True, summary="All good.", confidence=70)
    provider = _StaticProvider(expected)
    context = NarrativeContext(file_name="sales.csv", sector="Retail", row_count=3)

    result = generate_narrative(metrics, context, provider)

    assert result is expected
    assert provider.calls == [context]


def test_generate_narrative_falls_back_on_exception() -> None:
    metrics = _metrics(HEALTHY, profit="Profit")
    before = metrics.to_dict()

    result = generate_narrative(metrics, provider=_FailingProvider())

    assert result.success is True
    assert result.error == "provider timed out"
    assert result.summary == generate_fallback_analysis(metrics).summary
    assert metrics.to_dict() == before


def test_generate_narrative_falls_back_on_unsuccessful_result() -> None:
    metrics = _metrics(HEALTHY, profit="Profit")
    provider = _StaticProvider(
        AnalysisResult(success=False, summary="", error="HTTP 503")
    )

    result = generate_narrative(metrics, provider=provider)

    assert result.error == "HTTP 503"
    assert result.insights == generate_fallback_analysis(metrics).insights


def test_analysis_result_to_dict() -> None:
    metrics = _metrics(HEALTHY, profit="Profit", region="Region")

    payload = generate_fallback_analysis(metrics).to_dict()

    assert set(payload) == {
        "success",
        "summary",
        "insights",
        "riskAssessment",
        "recommendations",
        "confidence",
    }
    assert payload["riskAssessment"] == {"level": "low", "factors": []}
    assert "recommendation" not in payload["insights"][0]
