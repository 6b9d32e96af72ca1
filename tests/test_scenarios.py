from decimal import Decimal

import pytest

from quoting.engine.errors import ConfigurationError
from quoting.engine.quote_engine import QuoteEngine
from quoting.scenarios.generator import ScenarioGenerator
from quoting.scenarios.scenario import PriceAdjustment, Scenario, ScenarioSet

EXPECTED = [
    ("ECO", Decimal("1096.12"), Decimal("1315.34")),
    ("FLEX", Decimal("1096.12"), Decimal("1512.65")),
    ("STANDARD", Decimal("1246.12"), Decimal("1619.96")),
    ("CONFORT", Decimal("1711.12"), Decimal("2310.01")),
    ("SECURITY_PLUS", Decimal("2671.12"), Decimal("3525.88")),
    ("PREMIUM", Decimal("2671.12"), Decimal("3739.57")),
]


def _by_id(variants):
    return {v.scenario_id: v for v in variants}


def test_default_tiers_priced_and_sorted(engine, moving_ctx):
    variants = engine.generate_variants(moving_ctx)

    assert [(v.scenario_id, v.base_price, v.final_price) for v in variants] == EXPECTED


def test_standard_is_recommended(engine, moving_ctx):
    variants = engine.generate_variants(moving_ctx)

    assert [v.scenario_id for v in variants if v.recommended] == ["STANDARD"]


def test_forced_overrides_win_over_client_input(engine, moving_ctx):
    # client explicitly declined dismantling; CONFORT bundles it anyway
    variants = _by_id(engine.generate_variants(moving_ctx.replace(dismantling=False)))

    assert "dismantling-cost" in variants["CONFORT"].activated_modules
    assert "reassembly-cost" in variants["CONFORT"].activated_modules


def test_eco_strips_client_selected_extras(engine, moving_ctx):
    ctx = moving_ctx.replace(packing=True, dismantling=True, piano=True)
    eco = _by_id(engine.generate_variants(ctx))["ECO"]

    assert "packing-cost" not in eco.activated_modules
    assert "dismantling-cost" not in eco.activated_modules
    assert "high-value-item-handling" not in eco.activated_modules


def test_flex_follows_client_selection(engine, moving_ctx):
    ctx = moving_ctx.replace(packing=True)
    flex = _by_id(engine.generate_variants(ctx))["FLEX"]

    assert "packing-cost" in flex.activated_modules
    assert flex.base_price == engine.calculate(ctx).base_price


def test_scenarios_do_not_leak_into_each_other(engine, moving_ctx):
    variants = _by_id(engine.generate_variants(moving_ctx))

    # PREMIUM forced cleaning; nothing of it reaches the cheaper tiers
    assert "cleaning-end-cost" in variants["PREMIUM"].activated_modules
    for sid in ("ECO", "STANDARD", "FLEX"):
        assert "cleaning-end-cost" not in variants[sid].activated_modules
    # caller context untouched
    assert moving_ctx.computed.costs == ()
    assert moving_ctx.cleaning_end is False


def test_zero_scenarios_returns_implicit_base_variant(registry, moving_ctx):
    engine = QuoteEngine(registry, ScenarioSet())
    variants = engine.generate_variants(moving_ctx)

    assert len(variants) == 1
    only = variants[0]
    assert only.scenario_id == "BASE"
    assert only.recommended is True
    assert only.base_price == only.final_price == engine.calculate(moving_ctx).base_price


def test_missing_default_recommends_cheapest(registry, moving_ctx):
    scenarios = ScenarioSet(
        [
            Scenario(id="HIGH", price_adjustment=PriceAdjustment(multiplier="2")),
            Scenario(id="LOW", price_adjustment=PriceAdjustment(multiplier="1")),
        ]
    )
    variants = QuoteEngine(registry, scenarios).generate_variants(moving_ctx)

    assert [v.scenario_id for v in variants] == ["LOW", "HIGH"]
    assert variants[0].recommended and not variants[1].recommended


def test_ties_keep_configured_order(registry, moving_ctx):
    scenarios = ScenarioSet([Scenario(id="B_TIER"), Scenario(id="A_TIER")], "A_TIER")
    variants = ScenarioGenerator().generate_variants(moving_ctx, registry.modules, scenarios)

    assert [v.scenario_id for v in variants] == ["B_TIER", "A_TIER"]
    assert variants[1].recommended


def test_disabled_module_removed_from_effective_list(registry, moving_ctx):
    scenario = Scenario(id="NO_FUEL", disabled_module_ids=("fuel-cost",))
    variant = ScenarioGenerator().evaluate(moving_ctx, registry.modules, scenario)

    assert "fuel-cost" not in variant.activated_modules
    assert variant.base_price == Decimal("1090.00")


def test_price_adjustment_multiplier_and_delta():
    adj = PriceAdjustment(multiplier="1.1", delta="-5")
    assert adj.apply(Decimal("100")) == Decimal("105.00")


def test_price_adjustment_invalid_multiplier():
    with pytest.raises(ConfigurationError):
        PriceAdjustment(multiplier="-1")


def test_scenario_invalid_override_field():
    with pytest.raises(ConfigurationError):
        Scenario(id="BAD", forced_overrides={"metadata": {"x": 1}})


def test_scenario_invalid_override_value():
    with pytest.raises(ConfigurationError):
        Scenario(id="BAD", forced_overrides={"surface": "lots"})


def test_scenario_set_duplicate_ids():
    with pytest.raises(ConfigurationError):
        ScenarioSet([Scenario(id="ECO"), Scenario(id="ECO")])


def test_scenario_from_dict_camel_case():
    s = Scenario.from_dict(
        {
            "id": "CONFORT",
            "label": "Comfort",
            "disabledModules": ["storage-cost"],
            "forcedOverrides": {"dismantling": True},
            "priceAdjustment": {"multiplier": "1.35", "delta": 10},
            "useClientSelection": False,
            "tags": ["bundle"],
        }
    )

    assert s.disabled_module_ids == ("storage-cost",)
    assert s.forced_overrides["dismantling"] is True
    assert s.price_adjustment == PriceAdjustment(Decimal("1.35"), Decimal("10"))
    assert s.use_client_selection is False
    assert s.tags == ("bundle",)


def test_cleaning_context_gets_cleaning_tiers(engine, cleaning_ctx):
    variants = engine.generate_variants(cleaning_ctx)

    assert [(v.scenario_id, v.final_price) for v in variants] == [
        ("CLEANING_STANDARD", Decimal("858.00")),
        ("FLEX", Decimal("910.80")),
        ("CLEANING_PLUS", Decimal("987.00")),
    ]
    assert all(v.base_price == engine.calculate(cleaning_ctx).base_price for v in variants)


def test_cleaning_recommends_its_tagged_tier(engine, cleaning_ctx):
    variants = engine.generate_variants(cleaning_ctx)

    assert [v.scenario_id for v in variants if v.recommended] == ["CLEANING_STANDARD"]
    assert engine.scenarios.default_for(cleaning_ctx) == "CLEANING_STANDARD"


def test_moving_context_skips_cleaning_tiers(engine, moving_ctx):
    ids = {v.scenario_id for v in engine.generate_variants(moving_ctx)}
    assert not ids & {"CLEANING_STANDARD", "CLEANING_PLUS"}


def test_no_offered_tier_returns_implicit_base_variant(registry, cleaning_ctx):
    scenarios = ScenarioSet([Scenario(id="MOVE_ONLY", service_types=("MOVING",))])
    variants = QuoteEngine(registry, scenarios).generate_variants(cleaning_ctx)

    assert [v.scenario_id for v in variants] == ["BASE"]
    assert variants[0].recommended
    assert scenarios.default_for(cleaning_ctx) == "BASE"


def test_full_service_tiers_price_the_declared_surface(engine, moving_ctx):
    ctx = moving_ctx.replace(cleaning_end=True, surface=Decimal("200"))
    variants = _by_id(engine.generate_variants(ctx))

    for sid in ("FLEX", "SECURITY_PLUS", "PREMIUM"):
        (cleaning,) = variants[sid].context.computed.costs_for("cleaning-end-cost")
        assert cleaning.amount == Decimal("1600.00")


def test_surface_fallback_only_when_not_declared(engine, moving_ctx):
    premium = _by_id(engine.generate_variants(moving_ctx))["PREMIUM"]

    (cleaning,) = premium.context.computed.costs_for("cleaning-end-cost")
    assert cleaning.amount == Decimal("640.00")
    assert moving_ctx.surface is None


def test_scenario_unknown_service_type():
    with pytest.raises(ConfigurationError):
        Scenario(id="BAD", service_types=("TELEPORT",))


def test_scenario_from_dict_service_types_and_fallbacks():
    s = Scenario.from_dict(
        {"id": "FULL", "serviceTypes": ["MOVING"], "fallbackValues": {"surface": "80"}}
    )

    assert [t.value for t in s.service_types] == ["MOVING"]
    assert s.fallback_values["surface"] == Decimal("80")
