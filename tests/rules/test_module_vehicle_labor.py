from decimal import Decimal

import pytest

from quoting.engine.errors import ValidationError
from quoting.modules.labor import LaborBaseModule
from quoting.modules.vehicle import VehicleSelectionModule


def test_vehicle_happy_smallest_fitting_truck(moving_ctx):
    out = VehicleSelectionModule().apply(moving_ctx)

    assert out.total == Decimal("250.00")
    assert out.computed.module_metadata("vehicle-selection")["vehicle_type"] == "TRUCK_20M3"


def test_vehicle_edge_small_volume(moving_ctx):
    out = VehicleSelectionModule().apply(moving_ctx.replace(volume=Decimal("10")))
    assert out.total == Decimal("80.00")


def test_vehicle_edge_several_large_trucks(moving_ctx):
    out = VehicleSelectionModule().apply(moving_ctx.replace(volume=Decimal("40")))

    # ceil(40 / 30) = 2 x 350
    assert out.total == Decimal("700.00")
    assert out.computed.module_metadata("vehicle-selection")["vehicle_count"] == 2
    assert "x2" in out.computed.costs[0].label


def test_vehicle_custom_fleet(moving_ctx):
    module = VehicleSelectionModule(
        {"VEHICLES": [{"type": "VAN", "capacity": "25", "cost": "199"}]}
    )
    assert module.apply(moving_ctx).total == Decimal("199.00")


def test_labor_happy_explicit_crew(moving_ctx):
    ctx = moving_ctx.replace(workers=3, duration=Decimal("5"))
    out = LaborBaseModule().apply(ctx)

    # 3 workers x 5 h x 30
    assert out.total == Decimal("450.00")


def test_labor_workers_derived_from_volume(moving_ctx):
    out = LaborBaseModule().apply(moving_ctx)
    # ceil(20 / 5) = 4 workers x 7 h x 30
    assert out.total == Decimal("840.00")


@pytest.mark.parametrize(
    "volume, expected",
    [
        ("3", Decimal("420.00")),  # clamped up to 2 workers
        ("50", Decimal("1260.00")),  # clamped down to 6 workers
    ],
)
def test_labor_edge_worker_clamp(moving_ctx, volume, expected):
    out = LaborBaseModule().apply(moving_ctx.replace(volume=Decimal(volume)))
    assert out.total == expected


def test_labor_invalid_zero_workers(moving_ctx):
    with pytest.raises(ValidationError) as ei:
        LaborBaseModule().validate(moving_ctx.replace(workers=0))
    assert ei.value.field == "workers"


def test_labor_invalid_cleaning_without_duration(moving_ctx):
    with pytest.raises(ValidationError) as ei:
        LaborBaseModule().validate(moving_ctx.replace(service_type="CLEANING"))
    assert ei.value.field == "duration"
