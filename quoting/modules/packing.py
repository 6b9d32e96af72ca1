from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext, ServiceType
from .base import PricingModule, adjusted_volume, register


@register
class PackingCostModule(PricingModule):
    id = "packing-cost"
    priority = 85
    category = CostCategory.SERVICE
    label = "Packing"
    defaults = {
        "PACKING_COST_PER_M3": "5",
    }
    required_fields = ("volume",)

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.packing or ctx.service_type == ServiceType.PACKING

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        volume = adjusted_volume(ctx)
        rate = self.tariff("PACKING_COST_PER_M3")
        return ctx.with_cost(self.cost(volume * rate, volume=str(volume), ratePerM3=str(rate)))
