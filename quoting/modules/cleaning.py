from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext, ServiceType
from ..engine.errors import ValidationError
from .base import PricingModule, register


@register
class CleaningEndCostModule(PricingModule):
    """End-of-tenancy cleaning, priced per m2 of surface."""

    id = "cleaning-end-cost"
    priority = 86
    category = CostCategory.SERVICE
    label = "End-of-tenancy cleaning"
    defaults = {
        "CLEANING_COST_PER_M2": "8",
    }
    required_fields = ("surface",)

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.cleaning_end or ctx.service_type == ServiceType.CLEANING

    def validate(self, ctx: QuoteContext) -> None:
        super().validate(ctx)
        if ctx.surface <= 0:
            raise ValidationError("surface", "Surface must be > 0", module_id=self.id)

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        rate = self.tariff("CLEANING_COST_PER_M2")
        return ctx.with_cost(
            self.cost(ctx.surface * rate, surface=str(ctx.surface), ratePerM2=str(rate))
        )
