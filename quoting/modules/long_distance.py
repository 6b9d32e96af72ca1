from __future__ import annotations

from ..engine.context import CostCategory, QuoteContext
from .base import D, PricingModule, register
from .fuel import TRANSPORT_SERVICES


@register
class LongDistanceSurchargeModule(PricingModule):
    """
    Operating surcharge for long trips (wear, vehicle unavailability).
    Not extra fuel: fuel is already priced for the whole distance.

    Progressive per-km rates on the distance above THRESHOLD_KM, the excess
    capped at MAX_EXCESS_DISTANCE_KM.
    """

    id = "long-distance-surcharge"
    priority = 34
    category = CostCategory.DISTANCE
    label = "Long distance surcharge"
    defaults = {
        "THRESHOLD_KM": "50",
        "MAX_EXCESS_DISTANCE_KM": "1000",
        "PROGRESSIVE_RATES": [
            {"maxKm": "200", "costPerKm": "0.15"},
            {"maxKm": "1000", "costPerKm": "0.20"},
        ],
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return (
            ctx.service_type in TRANSPORT_SERVICES
            and ctx.distance is not None
            and ctx.distance > self.tariff("THRESHOLD_KM")
        )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        excess = min(
            ctx.distance - self.tariff("THRESHOLD_KM"),
            self.tariff("MAX_EXCESS_DISTANCE_KM"),
        )

        total = D("0")
        lower = D("0")
        for band in self.tariffs["PROGRESSIVE_RATES"]:
            upper = D(str(band["maxKm"]))
            if excess <= lower:
                break
            km_in_band = min(excess, upper) - lower
            total += km_in_band * D(str(band["costPerKm"]))
            lower = upper

        return ctx.with_cost(self.cost(total, excessKm=str(excess)))
