from datetime import date
from decimal import Decimal

from quoting.modules.access_penalty import LaborAccessPenaltyModule
from quoting.modules.high_value import HighValueItemHandlingModule
from quoting.modules.temporal import EndOfMonthSurchargeModule, WeekendSurchargeModule


def test_access_penalty_happy_one_address(moving_ctx):
    ctx = moving_ctx.replace(pickup_floor=5, delivery_floor=4, delivery_has_elevator=True)
    module = LaborAccessPenaltyModule()

    assert module.is_applicable(ctx)
    # 2 floors above 3 at pickup
    assert module.apply(ctx).total == Decimal("50.00")


def test_access_penalty_both_addresses(moving_ctx):
    ctx = moving_ctx.replace(pickup_floor=5, delivery_floor=4)
    assert LaborAccessPenaltyModule().apply(ctx).total == Decimal("75.00")


def test_access_penalty_edge_threshold_floor(moving_ctx):
    ctx = moving_ctx.replace(pickup_floor=3, delivery_floor=8, delivery_has_elevator=True)
    assert not LaborAccessPenaltyModule().is_applicable(ctx)


def test_access_penalty_edge_cleaning(moving_ctx):
    ctx = moving_ctx.replace(service_type="CLEANING", pickup_floor=9)
    assert not LaborAccessPenaltyModule().is_applicable(ctx)


def test_high_value_happy(moving_ctx):
    out = HighValueItemHandlingModule().apply(moving_ctx.replace(piano=True, safe=True))
    assert out.total == Decimal("350.00")
    assert out.computed.costs[0].metadata["items"] == ("piano", "safe")


def test_high_value_edge_nothing_declared(moving_ctx):
    assert not HighValueItemHandlingModule().is_applicable(moving_ctx)


def test_end_of_month_then_weekend(ctx_with_subtotal):
    # 2026-03-28 is a Saturday
    ctx = ctx_with_subtotal.replace(moving_date=date(2026, 3, 28))
    eom = EndOfMonthSurchargeModule()
    weekend = WeekendSurchargeModule()

    assert eom.is_applicable(ctx)
    ctx = eom.apply(ctx)
    assert ctx.computed.costs_for("end-of-month-surcharge")[0].amount == Decimal("50.00")

    # weekend reads the subtotal including the month-end surcharge
    assert weekend.is_applicable(ctx)
    ctx = weekend.apply(ctx)
    assert ctx.computed.costs_for("weekend-surcharge")[0].amount == Decimal("52.50")


def test_weekend_edge_sunday_mid_month(ctx_with_subtotal):
    ctx = ctx_with_subtotal.replace(moving_date=date(2026, 3, 15))
    assert WeekendSurchargeModule().is_applicable(ctx)
    assert not EndOfMonthSurchargeModule().is_applicable(ctx)


def test_surcharges_edge_weekday(ctx_with_subtotal):
    assert not WeekendSurchargeModule().is_applicable(ctx_with_subtotal)
    assert not EndOfMonthSurchargeModule().is_applicable(ctx_with_subtotal)


def test_surcharges_edge_nothing_to_surcharge(moving_ctx):
    ctx = moving_ctx.replace(moving_date=date(2026, 3, 28))
    assert not WeekendSurchargeModule().is_applicable(ctx)
    assert not EndOfMonthSurchargeModule().is_applicable(ctx)


def test_surcharges_edge_no_date(ctx_with_subtotal):
    ctx = ctx_with_subtotal.replace(moving_date=None)
    assert not WeekendSurchargeModule().is_applicable(ctx)
