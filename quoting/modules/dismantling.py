from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext
from .base import D, PricingModule, register


@register
class DismantlingCostModule(PricingModule):
    """
    Furniture dismantling (service sold on its own, reassembly is separate).

    cost = BASE_COST
         + COST_PER_BULKY_FURNITURE   if bulky furniture
         + PIANO_COST                 if piano
         + complex_items * COST_PER_COMPLEX_ITEM
    """

    id = "dismantling-cost"
    priority = 86.5
    category = CostCategory.SERVICE
    label = "Furniture dismantling"
    defaults = {
        "BASE_COST": "50",
        "COST_PER_COMPLEX_ITEM": "25",
        "COST_PER_BULKY_FURNITURE": "40",
        "PIANO_COST": "60",
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.dismantling

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        base = self.tariff("BASE_COST")
        bulky = self.tariff("COST_PER_BULKY_FURNITURE") if ctx.bulky_furniture else D("0")
        piano = self.tariff("PIANO_COST") if ctx.piano else D("0")
        complex_items = self.tariff("COST_PER_COMPLEX_ITEM") * max(ctx.complex_items, 0)

        total = base + bulky + piano + complex_items
        return ctx.with_cost(
            self.cost(
                total,
                base=str(base),
                bulky=str(bulky),
                piano=str(piano),
                complexItems=str(complex_items),
            )
        )
