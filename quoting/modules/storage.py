from __future__ import annotations

import math

from ..engine.context import CostCategory, QuoteContext
from ..engine.errors import ValidationError
from .base import D, PricingModule, adjusted_volume, register


@register
class StorageCostModule(PricingModule):
    """Temporary storage: volume x monthly rate x started months."""

    id = "storage-cost"
    priority = 87
    category = CostCategory.SERVICE
    label = "Temporary storage"
    defaults = {
        "STORAGE_COST_PER_M3_PER_MONTH": "30",
        "STORAGE_DEFAULT_DURATION_DAYS": 30,
        "DAYS_PER_MONTH": 30,
    }
    required_fields = ("volume",)

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.storage

    def validate(self, ctx: QuoteContext) -> None:
        super().validate(ctx)
        if ctx.storage_duration_days is not None and ctx.storage_duration_days <= 0:
            raise ValidationError(
                "storage_duration_days", "Storage duration must be > 0", module_id=self.id
            )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        days = ctx.storage_duration_days or int(self.tariffs["STORAGE_DEFAULT_DURATION_DAYS"])
        months = math.ceil(days / int(self.tariffs["DAYS_PER_MONTH"]))
        volume = adjusted_volume(ctx)
        rate = self.tariff("STORAGE_COST_PER_M3_PER_MONTH")
        return ctx.with_cost(
            self.cost(
                volume * rate * D(months),
                volume=str(volume),
                months=months,
                ratePerM3PerMonth=str(rate),
            )
        )
