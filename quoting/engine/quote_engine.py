from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..scenarios.generator import ScenarioGenerator, Variant
from ..scenarios.scenario import ScenarioSet
from .config_loader import PricingSnapshot, load_snapshot
from .context import CostEntry, QuoteContext
from .pipeline import PipelineExecutor
from .registry import ModuleRegistry

D = Decimal


@dataclass(frozen=True)
class Calculation:
    context: QuoteContext
    base_price: D
    breakdown: Tuple[CostEntry, ...]
    activated_modules: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "basePrice": str(self.base_price),
            "activatedModules": list(self.activated_modules),
            "breakdown": [
                {
                    "moduleId": c.module_id,
                    "category": c.category.value,
                    "label": c.label,
                    "amount": str(c.amount),
                    "metadata": dict(c.metadata),
                }
                for c in self.breakdown
            ],
        }


class QuoteEngine:
    """
    Facade over one pricing snapshot: base calculation and tiered variants.
    Holds no per-request state; safe to share between threads.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        scenarios: Optional[ScenarioSet] = None,
        pool: Optional[Executor] = None,
        version: str = "unversioned",
    ):
        self.registry = registry
        self.scenarios = scenarios or ScenarioSet()
        self.version = version
        self.pipeline = PipelineExecutor()
        self.generator = ScenarioGenerator(self.pipeline, pool=pool)

    @classmethod
    def from_snapshot(cls, snapshot: PricingSnapshot, pool: Optional[Executor] = None) -> "QuoteEngine":
        return cls(snapshot.registry, snapshot.scenarios, pool=pool, version=snapshot.version)

    @classmethod
    def from_yaml_file(cls, path: str, pool: Optional[Executor] = None) -> "QuoteEngine":
        return cls.from_snapshot(load_snapshot(path), pool=pool)

    def calculate(self, ctx: QuoteContext) -> Calculation:
        result = self.pipeline.execute(ctx.reset_computed(), self.registry.modules)
        return Calculation(
            context=result,
            base_price=result.total,
            breakdown=result.computed.costs,
            activated_modules=result.computed.activated_modules,
        )

    def generate_variants(self, ctx: QuoteContext) -> List[Variant]:
        return self.generator.generate_variants(ctx, self.registry.modules, self.scenarios)
