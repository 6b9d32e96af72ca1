from __future__ import annotations

from ..engine.context import QuoteContext, ServiceType
from ..engine.errors import ValidationError
from .base import D, PricingModule, register


@register
class VolumeEstimationModule(PricingModule):
    """
    Adjusted volume = declared volume + allowance per special item,
    floored at MIN_VOLUME_M3.

    Contributes no cost: the result lands in computed metadata and is read
    by vehicle selection, labor, packing and storage.
    """

    id = "volume-estimation"
    priority = 20
    label = "Volume estimation"
    defaults = {
        "MIN_VOLUME_M3": "5",
        "MAX_VOLUME_M3": "200",
        "SPECIAL_ITEMS_VOLUME": {
            "piano": "8",
            "bulky_furniture": "5",
            "safe": "3",
            "artwork": "2",
        },
    }
    required_fields = ("volume",)

    def is_applicable(self, ctx: QuoteContext) -> bool:
        return ctx.service_type != ServiceType.CLEANING

    def validate(self, ctx: QuoteContext) -> None:
        super().validate(ctx)
        if ctx.volume <= 0:
            raise ValidationError("volume", "Volume must be > 0", module_id=self.id)
        if ctx.volume > self.tariff("MAX_VOLUME_M3"):
            raise ValidationError(
                "volume",
                f"Volume exceeds {self.tariffs['MAX_VOLUME_M3']} m3",
                module_id=self.id,
            )

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        extras = D("0")
        items = []
        for flag, allowance in sorted(self.tariffs["SPECIAL_ITEMS_VOLUME"].items()):
            if getattr(ctx, flag, False):
                extras += D(str(allowance))
                items.append(flag)

        adjusted = max(ctx.volume + extras, self.tariff("MIN_VOLUME_M3"))
        return ctx.with_metadata(
            self.id,
            base_volume=str(ctx.volume),
            adjusted_volume=str(adjusted),
            special_items=tuple(items),
        )
