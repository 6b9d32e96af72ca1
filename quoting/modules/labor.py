from __future__ import annotations

import math

from ..engine.context import CostCategory, QuoteContext, ServiceType
from ..engine.errors import ValidationError
from .base import D, PricingModule, adjusted_volume, register


@register
class LaborBaseModule(PricingModule):
    """
    Crew cost: workers x hours x hourly rate.

    - workers: client/ops input, else adjusted volume / VOLUME_PER_WORKER,
      clamped to [DEFAULT_WORKERS_COUNT, MAX_WORKERS_COUNT]
    - hours: input duration, else BASE_WORK_HOURS
    """

    id = "labor-base"
    priority = 62
    category = CostCategory.BASE
    label = "Labor"
    defaults = {
        "BASE_HOURLY_RATE": "30",
        "BASE_WORK_HOURS": "7",
        "VOLUME_PER_WORKER": "5",
        "DEFAULT_WORKERS_COUNT": 2,
        "MAX_WORKERS_COUNT": 6,
    }

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return True

    def validate(self, ctx: QuoteContext) -> None:
        if ctx.workers is not None and ctx.workers <= 0:
            raise ValidationError("workers", "Workers must be > 0", module_id=self.id)
        if ctx.duration is not None and ctx.duration <= 0:
            raise ValidationError("duration", "Duration must be > 0", module_id=self.id)
        if ctx.service_type == ServiceType.CLEANING and ctx.duration is None:
            raise ValidationError("duration", module_id=self.id)

    def _workers(self, ctx: QuoteContext) -> int:
        if ctx.workers is not None:
            return ctx.workers
        minimum = int(self.tariffs["DEFAULT_WORKERS_COUNT"])
        maximum = int(self.tariffs["MAX_WORKERS_COUNT"])
        volume = adjusted_volume(ctx)
        needed = math.ceil(volume / self.tariff("VOLUME_PER_WORKER")) if volume > 0 else minimum
        return min(max(needed, minimum), maximum)

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        workers = self._workers(ctx)
        hours = ctx.duration if ctx.duration is not None else self.tariff("BASE_WORK_HOURS")
        rate = self.tariff("BASE_HOURLY_RATE")

        ctx = ctx.with_metadata(self.id, workers=workers, hours=str(hours))
        return ctx.with_cost(
            self.cost(
                D(workers) * hours * rate,
                label=f"{self.label} ({workers} x {hours}h)",
                workers=workers,
                hours=str(hours),
                hourlyRate=str(rate),
            )
        )
