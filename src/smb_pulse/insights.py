# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Narrative insights built on top of computed metrics.

Narratives are normally written by an external language model. This module
only defines the boundary with that collaborator and the local fallback used
whenever it is unavailable:

- NarrativeProvider:
    Abstract interface of the external generator. Implementations receive
    the already-computed DataMetrics and a NarrativeContext and return an
    AnalysisResult.

- generate_fallback_analysis(metrics):
    Deterministic narrative derived from threshold rules on the metrics.

- generate_narrative(metrics, context, provider):
    Calls the provider when one is given and substitutes the fallback on any
    failure (missing provider, exception, unsuccessful result). The metrics
    are never recomputed nor modified here, so a failing provider cannot
    affect the numbers already delivered.

Fallback rules
--------------
- revenue > 0                 → revenue insight
- profit margin < 10%         → low margin insight, COGS recommendation,
                                risk factor
- profit margin > 25%         → healthy margin insight
- quality score < 80          → data quality insight, recommendation,
                                risk factor
- more than 10 anomalies      → risk insight, risk factor
- at least one region         → opportunity insight on the top region,
                                recommendation

Risk level: high with 3+ factors or margin < 5%, medium with 1+ factor or
margin < 10%, low otherwise.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .models import DataMetrics

logger = logging.getLogger(__name__)

INSIGHT_CATEGORIES: tuple[str, ...] = (
    "revenue",
    "profitability",
    "risk",
    "opportunity",
    "data_quality",
)
RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high")

LOW_MARGIN_PCT = 10.0
HEALTHY_MARGIN_PCT = 25.0
CRITICAL_MARGIN_PCT = 5.0
LOW_QUALITY_SCORE = 80
MANY_ANOMALIES = 10
HIGH_RISK_FACTORS = 3

DEFAULT_RECOMMENDATIONS: tuple[str, ...] = (
    "Maintain current performance.",
    "Monitor trends regularly.",
)


@dataclass(frozen=True)
class Insight:
    """One narrative insight."""

    category: str
    title: str
    description: str
    confidence: int
    actionable: bool
    recommendation: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "actionable": self.actionable,
        }
        if self.recommendation is not None:
            out["recommendation"] = self.recommendation
        return out


@dataclass(frozen=True)
class RiskAssessment:
    level: str
    factors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "factors": list(self.factors)}


@dataclass(frozen=True)
class AnalysisResult:
    """Structured narrative returned to the caller.

    ``error`` is set when the fallback replaced a failed provider call; the
    result is still complete and usable.
    """

    success: bool
    summary: str
    insights: tuple[Insight, ...] = ()
    risk_assessment: RiskAssessment = field(
        default_factory=lambda: RiskAssessment(level="medium")
    )
    recommendations: tuple[str, ...] = ()
    confidence: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "summary": self.summary,
            "insights": [i.to_dict() for i in self.insights],
            "riskAssessment": self.risk_assessment.to_dict(),
            "recommendations": list(self.recommendations),
            "confidence": self.confidence,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class NarrativeContext:
    """Optional context passed along with the metrics."""

    file_name: Optional[str] = None
    sector: Optional[str] = None
    row_count: Optional[int] = None


class NarrativeProvider(ABC):
    """Abstract base for external narrative generators."""

    @abstractmethod
    def analyze(
        self, metrics: DataMetrics, context: NarrativeContext
    ) -> AnalysisResult:
        """Return a narrative for the given metrics.

        Implementations may raise any exception (missing credentials,
        transport errors, timeouts, malformed content); the caller falls
        back to the local narrative.
        """


def format_rupiah(value: float) -> str:
    """Format an amount as 'Rp 1.234.567' (Indonesian digit grouping).

    Up to three decimals are kept and trailing zeros dropped, the decimal
    separator being a comma.
    """
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.3f}".rstrip("0").rstrip(".")
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"Rp {sign}{text}"


def _risk_level(factor_count: int, profit_margin: float) -> str:
    if factor_count >= HIGH_RISK_FACTORS or profit_margin < CRITICAL_MARGIN_PCT:
        return "high"
    if factor_count >= 1 or profit_margin < LOW_MARGIN_PCT:
        return "medium"
    return "low"


def generate_fallback_analysis(metrics: DataMetrics) -> AnalysisResult:
    """Build a deterministic narrative from the metrics alone."""
    insights: list[Insight] = []
    recommendations: list[str] = []
    risk_factors: list[str] = []

    margin = metrics.profit_margin

    # Revenue
    if metrics.total_revenue > 0:
        insights.append(
            Insight(
                category="revenue",
                title="Revenue performance",
                description=(
                    f"Total revenue {format_rupiah(metrics.total_revenue)} "
                    f"over {metrics.transaction_count} transactions."
                ),
                confidence=90,
                actionable=False,
            )
        )

    # Profitability
    if margin < LOW_MARGIN_PCT:
        insights.append(
            Insight(
                category="profitability",
                title="Low profit margin",
                description=(
                    f"Profit margin {margin:.1f}% is below the industry "
                    "average (15-20%)."
                ),
                confidence=85,
                actionable=True,
                recommendation=(
                    "Review the cost structure and look for efficiency gains."
                ),
            )
        )
        recommendations.append(
            "Renegotiate with suppliers to bring the cost of goods sold down."
        )
        risk_factors.append("Low profit margin")
    elif margin > HEALTHY_MARGIN_PCT:
        insights.append(
            Insight(
                category="profitability",
                title="Healthy profit margin",
                description=(
                    f"Profit margin {margin:.1f}% indicates a healthy business."
                ),
                confidence=85,
                actionable=True,
                recommendation="Keep it up and consider expanding.",
            )
        )

    # Data quality
    quality = metrics.data_quality
    if quality.quality_score < LOW_QUALITY_SCORE:
        insights.append(
            Insight(
                category="data_quality",
                title="Data quality needs improvement",
                description=(
                    f"Data quality score {quality.quality_score}% with "
                    f"{quality.invalid_rows} invalid rows."
                ),
                confidence=95,
                actionable=True,
                recommendation="Clean the data and keep formats consistent.",
            )
        )
        recommendations.append(
            "Validate and clean input data for a more accurate analysis."
        )
        risk_factors.append("Low data quality")

    # Anomalies
    if len(metrics.anomalies) > MANY_ANOMALIES:
        insights.append(
            Insight(
                category="risk",
                title="Many anomalies detected",
                description=f"{len(metrics.anomalies)} anomalies need to be reviewed.",
                confidence=80,
                actionable=True,
                recommendation="Review the transactions flagged as anomalies.",
            )
        )
        risk_factors.append("High anomaly count")

    # Opportunity: top region by revenue (first one wins on ties)
    if metrics.by_region:
        top_name, top_group = max(
            metrics.by_region.items(), key=lambda item: item[1].total_revenue
        )
        insights.append(
            Insight(
                category="opportunity",
                title="Top performing region",
                description=(
                    f"{top_name} is the region with the highest revenue "
                    f"({format_rupiah(top_group.total_revenue)})."
                ),
                confidence=88,
                actionable=True,
                recommendation="Focus marketing resources on this region.",
            )
        )
        recommendations.append(f"Strengthen market penetration in {top_name}.")

    level = _risk_level(len(risk_factors), margin)
    outlook = {
        "high": "Several risk areas need attention.",
        "medium": "Fairly stable, with room for improvement.",
        "low": "Overall the business is healthy.",
    }[level]
    summary = (
        f"The business recorded revenue of {format_rupiah(metrics.total_revenue)} "
        f"with a {margin:.1f}% margin. {outlook}"
    )

    return AnalysisResult(
        success=True,
        summary=summary,
        insights=tuple(insights),
        risk_assessment=RiskAssessment(level=level, factors=tuple(risk_factors)),
        recommendations=tuple(recommendations) or DEFAULT_RECOMMENDATIONS,
        confidence=metrics.confidence,
    )


def generate_narrative(
    metrics: DataMetrics,
    context: Optional[NarrativeContext] = None,
    provider: Optional[NarrativeProvider] = None,
) -> AnalysisResult:
    """Return a narrative for ``metrics``, falling back locally on failure.

    Args:
        metrics: Already computed metrics.
        context: Optional file name / sector / row count.
        provider: External generator. When None, the fallback is used
            directly and no error is reported.

    Returns:
        The provider's result when it succeeds, otherwise the fallback
        narrative with ``error`` describing the failure.
    """
    context = context or NarrativeContext(row_count=metrics.transaction_count)

    if provider is None:
        logger.info("No narrative provider configured, using fallback analysis")
        return generate_fallback_analysis(metrics)

    try:
        result = provider.analyze(metrics, context)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Narrative provider failed, using fallback analysis: %s", exc)
        return replace(
            generate_fallback_analysis(metrics), error=str(exc) or type(exc).__name__
        )

    if not result.success:
        logger.warning(
            "Narrative provider returned an unsuccessful result: %s", result.error
        )
        return replace(
            generate_fallback_analysis(metrics),
            error=result.error or "Narrative provider returned no result",
        )

    return result
