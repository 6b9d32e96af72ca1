from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext, ServiceType
from .base import D, PricingModule, register


@register
class LaborAccessPenaltyModule(PricingModule):
    """Stairs without elevator: fee per floor above STAIRS_FLOOR_THRESHOLD, per address."""

    id = "labor-access-penalty"
    priority = 66
    category = CostCategory.SURCHARGE
    label = "Stairs access"
    defaults = {
        "STAIRS_PER_FLOOR": "25",
        "STAIRS_FLOOR_THRESHOLD": 3,
    }

    def _floors_over(self, floor: int, has_elevator: bool) -> int:
        if has_elevator:
            return 0
        return max(floor - int(self.tariffs["STAIRS_FLOOR_THRESHOLD"]), 0)

    def _penalised_floors(self, ctx: QuoteContext) -> tuple[int, int]:
        return (
            self._floors_over(ctx.pickup_floor, ctx.pickup_has_elevator),
            self._floors_over(ctx.delivery_floor, ctx.delivery_has_elevator),
        )

    def is_applicable(self, ctx: QuoteContext) -> bool:
        if ctx.service_type == ServiceType.CLEANING:
            return False
        return sum(self._penalised_floors(ctx)) > 0

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        pickup, delivery = self._penalised_floors(ctx)
        cost = D(pickup + delivery) * self.tariff("STAIRS_PER_FLOOR")
        return ctx.with_cost(self.cost(cost, pickupFloors=pickup, deliveryFloors=delivery))
