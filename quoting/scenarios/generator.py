from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..core.logging_config import logger
from ..engine.context import CostEntry, QuoteContext
from ..engine.pipeline import PipelineExecutor
from ..modules.base import PricingModule
from .scenario import IMPLICIT_SCENARIO, PriceAdjustment, Scenario, ScenarioSet

D = Decimal


@dataclass(frozen=True)
class Variant:
    scenario_id: str
    label: str
    base_price: D
    final_price: D
    breakdown: Tuple[CostEntry, ...]
    activated_modules: Tuple[str, ...]
    price_adjustment: PriceAdjustment = field(default_factory=PriceAdjustment)
    recommended: bool = False
    tags: Tuple[str, ...] = ()
    # pipeline result, kept for callers that need the computed metadata
    context: Optional[QuoteContext] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenarioId": self.scenario_id,
            "label": self.label,
            "basePrice": str(self.base_price),
            "finalPrice": str(self.final_price),
            "priceAdjustment": self.price_adjustment.to_dict(),
            "recommended": self.recommended,
            "tags": list(self.tags),
            "activatedModules": list(self.activated_modules),
            "breakdown": [
                {
                    "moduleId": c.module_id,
                    "category": c.category.value,
                    "label": c.label,
                    "amount": str(c.amount),
                }
                for c in self.breakdown
            ],
        }


class ScenarioGenerator:
    """
    Runs the pipeline once per scenario and returns priced variants.

    Each scenario starts from the caller's context with an empty accumulator,
    so variants never share intermediate state. With a `pool` the scenarios
    are evaluated concurrently; results are identical either way.
    """

    def __init__(
        self,
        pipeline: Optional[PipelineExecutor] = None,
        pool: Optional[Executor] = None,
    ):
        self.pipeline = pipeline or PipelineExecutor()
        self.pool = pool

    def generate_variants(
        self,
        ctx: QuoteContext,
        base_modules: Sequence[PricingModule],
        scenarios: Union[ScenarioSet, Sequence[Scenario], None] = None,
    ) -> List[Variant]:
        if not isinstance(scenarios, ScenarioSet):
            scenarios = ScenarioSet(tuple(scenarios or ()))

        # tiers not offered for this service type are skipped; never return nothing
        todo: Sequence[Scenario] = scenarios.applicable(ctx) or (IMPLICIT_SCENARIO,)
        base_modules = tuple(base_modules)

        if self.pool is not None and len(todo) > 1:
            futures = [
                self.pool.submit(self.evaluate, ctx, base_modules, s) for s in todo
            ]
            variants = [f.result() for f in futures]
        else:
            variants = [self.evaluate(ctx, base_modules, s) for s in todo]

        # stable on ties: configured order
        order = {s.id: i for i, s in enumerate(todo)}
        variants.sort(key=lambda v: (v.final_price, order[v.scenario_id]))

        recommended_id = scenarios.default_for(ctx)
        if recommended_id not in order:
            recommended_id = variants[0].scenario_id
        variants = [
            replace(v, recommended=(v.scenario_id == recommended_id)) for v in variants
        ]

        logger.debug(
            "variants_generated",
            scenarios=[v.scenario_id for v in variants],
            recommended=recommended_id,
        )
        return variants

    def evaluate(
        self,
        ctx: QuoteContext,
        base_modules: Sequence[PricingModule],
        scenario: Scenario,
    ) -> Variant:
        """Price a single scenario."""
        eff_ctx = scenario.effective_context(ctx)
        modules = scenario.effective_modules(base_modules)

        result = self.pipeline.execute(eff_ctx, modules)
        base_price = result.total

        return Variant(
            scenario_id=scenario.id,
            label=scenario.label or scenario.id,
            base_price=base_price,
            final_price=scenario.price_adjustment.apply(base_price),
            breakdown=result.computed.costs,
            activated_modules=result.computed.activated_modules,
            price_adjustment=scenario.price_adjustment,
            tags=scenario.tags,
            context=result,
        )
