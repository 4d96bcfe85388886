# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Profit estimation strategies.

When the uploaded file has no profit column, profit has to be modeled from
revenue. Two models coexist and are intentionally kept apart:

- GroupProfitEstimator:
    flat margin (17% by default) applied to each region / category bucket.

- SectorCOGSProfitEstimator:
    ``revenue - revenue * COGS_ratio(sector) - revenue * opex_ratio``,
    used for the dataset totals and for the modeled cost structure.

The two call sites use different defaults and the difference is not
documented upstream, so the models are not unified. A group breakdown
without observed profit therefore does not add up to the estimated total.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .config import DEFAULT_COST_MODEL, DEFAULT_SECTOR, CostModel


class ProfitEstimator(ABC):
    """Abstract base for profit estimation strategies."""

    @abstractmethod
    def estimate_profit(self, total_revenue: float) -> float:
        """Return the modeled profit for a revenue amount."""


class GroupProfitEstimator(ProfitEstimator):
    """Flat margin applied to a group's revenue."""

    def __init__(self, margin: float = DEFAULT_COST_MODEL.group_profit_margin):
        self.margin = margin

    def estimate_profit(self, total_revenue: float) -> float:
        return total_revenue * self.margin


class SectorCOGSProfitEstimator(ProfitEstimator):
    """Profit modeled from a sector COGS ratio and a fixed OpEx ratio.

    Unknown sector names silently use the 'default' ratio of the cost model.
    """

    def __init__(
        self,
        sector: Optional[str] = DEFAULT_SECTOR,
        cost_model: CostModel = DEFAULT_COST_MODEL,
    ):
        self.sector = sector or DEFAULT_SECTOR
        self.cost_model = cost_model
        self.cogs_ratio = cost_model.cogs_ratio(self.sector)

    def cogs(self, total_revenue: float) -> float:
        return total_revenue * self.cogs_ratio

    def opex(self, total_revenue: float) -> float:
        return total_revenue * self.cost_model.opex_ratio

    def estimate_profit(self, total_revenue: float) -> float:
        return total_revenue - self.cogs(total_revenue) - self.opex(total_revenue)
