from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext, ServiceType
from .base import D, PricingModule, register

TRANSPORT_SERVICES = (ServiceType.MOVING, ServiceType.DELIVERY)


@register
class FuelCostModule(PricingModule):
    """Fuel for the whole trip: km x L/100km x price per litre."""

    id = "fuel-cost"
    priority = 33
    category = CostCategory.DISTANCE
    label = "Fuel"
    defaults = {
        "PRICE_PER_LITER": "1.70",
        "VEHICLE_CONSUMPTION_L_PER_100KM": "12",
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return (
            ctx.service_type in TRANSPORT_SERVICES
            and ctx.distance is not None
            and ctx.distance > 0
        )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        liters = ctx.distance * self.tariff("VEHICLE_CONSUMPTION_L_PER_100KM") / D("100")
        cost = liters * self.tariff("PRICE_PER_LITER")
        return ctx.with_cost(
            self.cost(cost, distanceKm=str(ctx.distance), liters=str(liters.quantize(D("0.01"))))
        )
