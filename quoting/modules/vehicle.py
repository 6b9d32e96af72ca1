from __future__ import annotations

import math

from ..engine.context import CostCategory, QuoteContext
from .base import D, PricingModule, adjusted_volume, register
from .fuel import TRANSPORT_SERVICES


@register
class VehicleSelectionModule(PricingModule):
    """
    Smallest truck whose capacity covers the adjusted volume.
    Above the largest capacity: several of the largest truck.
    """

    id = "vehicle-selection"
    priority = 60
    category = CostCategory.BASE
    label = "Vehicle"
    defaults = {
        "VEHICLES": [
            {"type": "TRUCK_12M3", "capacity": "12", "cost": "80"},
            {"type": "TRUCK_20M3", "capacity": "20", "cost": "250"},
            {"type": "TRUCK_30M3", "capacity": "30", "cost": "350"},
        ],
    }
    required_fields = ("volume",)

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.service_type in TRANSPORT_SERVICES

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        volume = adjusted_volume(ctx)
        vehicles = sorted(self.tariffs["VEHICLES"], key=lambda v: D(str(v["capacity"])))

        for vehicle in vehicles:
            if volume <= D(str(vehicle["capacity"])):
                chosen, count = vehicle, 1
                break
        else:
            chosen = vehicles[-1]
            count = math.ceil(volume / D(str(chosen["capacity"])))

        cost = D(str(chosen["cost"])) * count
        label = f"{self.label} ({chosen['type']} x{count})" if count > 1 else f"{self.label} ({chosen['type']})"

        ctx = ctx.with_metadata(self.id, vehicle_type=chosen["type"], vehicle_count=count)
        return ctx.with_cost(
            self.cost(cost, label=label, vehicleType=chosen["type"], count=count, volume=str(volume))
        )
