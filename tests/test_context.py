from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

import pytest

from quoting.engine.context import CostEntry, QuoteContext, ServiceType, money
from quoting.engine.errors import ValidationError


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money(Decimal("2.344")) == Decimal("2.34")


def test_context_is_immutable(moving_ctx):
    with pytest.raises(FrozenInstanceError):
        moving_ctx.volume = Decimal("1")


def test_context_coerces_numbers():
    ctx = QuoteContext(service_type="DELIVERY", volume=12.5, workers="3")

    assert ctx.service_type is ServiceType.DELIVERY
    assert ctx.volume == Decimal("12.5")
    assert ctx.workers == 3


def test_context_invalid_service_type():
    with pytest.raises(ValidationError) as ei:
        QuoteContext(service_type="TELEPORT")
    assert ei.value.field == "service_type"


def test_context_invalid_number():
    with pytest.raises(ValidationError) as ei:
        QuoteContext(volume="a lot")
    assert ei.value.field == "volume"


def test_with_cost_returns_new_context(moving_ctx):
    entry = CostEntry("fuel-cost", "DISTANCE", "Fuel", Decimal("6.125"))
    out = moving_ctx.with_cost(entry)

    assert out is not moving_ctx
    assert moving_ctx.computed.costs == ()
    assert out.computed.costs[0].amount == Decimal("6.13")
    assert out.computed.activated_modules == ("fuel-cost",)


def test_activated_modules_unique(moving_ctx):
    entry = CostEntry("fuel-cost", "DISTANCE", "Fuel", Decimal("1"))
    out = moving_ctx.with_cost(entry).with_cost(entry)

    assert out.computed.activated_modules == ("fuel-cost",)
    assert out.total == Decimal("2.00")


def test_with_metadata_merges_per_module(moving_ctx):
    out = moving_ctx.with_metadata("labor-base", workers=3).with_metadata("labor-base", hours="7")

    assert dict(out.computed.module_metadata("labor-base")) == {"workers": 3, "hours": "7"}
    assert moving_ctx.computed.module_metadata("labor-base") == {}


def test_with_overrides_rejects_unknown_fields(moving_ctx):
    with pytest.raises(ValidationError):
        moving_ctx.with_overrides({"computed": None})


def test_cost_entry_metadata_is_read_only():
    entry = CostEntry("fuel-cost", "DISTANCE", "Fuel", Decimal("1"), {"km": "3"})
    with pytest.raises(TypeError):
        entry.metadata["km"] = "4"


def test_context_coerces_iso_date():
    assert QuoteContext(moving_date="2026-03-14").moving_date == date(2026, 3, 14)


def test_context_invalid_date():
    with pytest.raises(ValidationError) as ei:
        QuoteContext(moving_date="14/03/2026")
    assert ei.value.field == "moving_date"


def test_cost_entry_list_metadata_is_frozen():
    entry = CostEntry("high-value-item-handling", "OPTION", "Items", Decimal("1"), {"items": ["piano"]})

    assert entry.metadata["items"] == ("piano",)
    with pytest.raises(AttributeError):
        entry.metadata["items"].append("safe")
