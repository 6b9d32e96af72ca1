from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext
from .base import PricingModule, register

# Both surcharges are a percentage of the subtotal accumulated by the
# modules that ran before them, so they must keep a priority above every
# BASE / DISTANCE / OPTION module they are meant to cover.


@register
class EndOfMonthSurchargeModule(PricingModule):
    id = "end-of-month-surcharge"
    priority = 80
    category = CostCategory.SURCHARGE
    label = "End of month"
    defaults = {
        "THRESHOLD_DAY": 25,
        "SURCHARGE_PERCENTAGE": "0.05",
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return (
            ctx.moving_date is not None
            and ctx.moving_date.day >= int(self.tariffs["THRESHOLD_DAY"])
            and ctx.total > 0
        )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        subtotal = ctx.total
        pct = self.tariff("SURCHARGE_PERCENTAGE")
        return ctx.with_cost(
            self.cost(subtotal * pct, subtotal=str(subtotal), percentage=str(pct))
        )


@register
class WeekendSurchargeModule(PricingModule):
    id = "weekend-surcharge"
    priority = 81
    category = CostCategory.SURCHARGE
    label = "Weekend"
    defaults = {
        "SURCHARGE_PERCENTAGE": "0.05",
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return (
            ctx.moving_date is not None
            and ctx.moving_date.weekday() >= 5
            and ctx.total > 0
        )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        subtotal = ctx.total
        pct = self.tariff("SURCHARGE_PERCENTAGE")
        return ctx.with_cost(
            self.cost(subtotal * pct, subtotal=str(subtotal), percentage=str(pct))
        )
