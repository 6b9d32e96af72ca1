from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext
from .base import PricingModule, register
from .fuel import TRANSPORT_SERVICES


@register
class TollCostModule(PricingModule):
    """Estimated motorway tolls, only beyond the long-distance threshold."""

    id = "toll-cost"
    priority = 35
    category = CostCategory.DISTANCE
    label = "Tolls"
    defaults = {
        "THRESHOLD_KM": "50",
        "COST_PER_KM": "0.08",
        "HIGHWAY_PERCENTAGE": "0.7",
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return (
            ctx.service_type in TRANSPORT_SERVICES
            and ctx.distance is not None
            and ctx.distance > self.tariff("THRESHOLD_KM")
        )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        highway_km = ctx.distance * self.tariff("HIGHWAY_PERCENTAGE")
        return ctx.with_cost(
            self.cost(highway_km * self.tariff("COST_PER_KM"), highwayKm=str(highway_km))
        )
