from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext
from .base import D, PricingModule, register

HIGH_VALUE_ITEMS = ("piano", "safe", "artwork")


@register
class HighValueItemHandlingModule(PricingModule):
    """Specialised handling per high-value item (piano, safe, artwork)."""

    id = "high-value-item-handling"
    priority = 73
    category = CostCategory.OPTION
    label = "High-value item handling"
    defaults = {
        "HANDLING_COSTS": {"piano": "150", "safe": "200", "artwork": "100"},
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return any(getattr(ctx, item) for item in HIGH_VALUE_ITEMS)

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        costs = self.tariffs["HANDLING_COSTS"]
        items = tuple(item for item in HIGH_VALUE_ITEMS if getattr(ctx, item))
        total = sum((D(str(costs[item])) for item in items), D("0"))
        return ctx.with_cost(self.cost(total, items=items))
