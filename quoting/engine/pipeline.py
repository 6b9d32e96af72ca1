# quoting/engine/pipeline.py
from __future__ import annotations

from typing import Sequence

from ..core.logging_config import logger
from ..modules.base import PricingModule
from .context import QuoteContext
from .errors import ComputationError, QuotingError, ValidationError


class PipelineExecutor:
    """
    Ordered fold of modules over a context.

    Behavior:
    - validation pass first: every module applicable to the input context
      checks its required fields (ValidationError, nothing computed yet)
    - for module in order: if is_applicable(ctx) -> ctx = module.apply(ctx)
    - any exception inside a module aborts the whole run as ComputationError
      tagged with the module id; no partial price is returned
    - no retries: modules are pure, same input gives same failure

    Module order is the caller's responsibility (registry order).
    """

    def validate(self, ctx: QuoteContext, modules: Sequence[PricingModule]) -> None:
        for module in modules:
            if self._is_applicable(module, ctx):
                module.validate(ctx)

    def execute(self, ctx: QuoteContext, modules: Sequence[PricingModule]) -> QuoteContext:
        self.validate(ctx, modules)

        for module in modules:
            if not self._is_applicable(module, ctx):
                logger.debug("module_skipped", module_id=module.id)
                continue

            before = ctx
            try:
                ctx = module.apply(ctx)
            except ValidationError:
                raise
            except Exception as e:
                logger.error(
                    "module_failed",
                    module_id=module.id,
                    exc=f"{type(e).__name__}: {e}",
                )
                raise ComputationError(module.id, f"{type(e).__name__}: {e}") from e

            self._check_contract(module, before, ctx)
            logger.debug(
                "module_applied",
                module_id=module.id,
                subtotal=str(ctx.total),
            )

        return ctx

    # -----------------
    # internals
    # -----------------

    @staticmethod
    def _is_applicable(module: PricingModule, ctx: QuoteContext) -> bool:
        try:
            return bool(module.is_applicable(ctx))
        except QuotingError:
            raise
        except Exception as e:
            raise ComputationError(
                module.id, f"is_applicable failed: {type(e).__name__}: {e}"
            ) from e

    @staticmethod
    def _check_contract(module: PricingModule, before: QuoteContext, after: QuoteContext) -> None:
        if not isinstance(after, QuoteContext):
            raise ComputationError(module.id, "apply() must return a QuoteContext")

        if after.price_relevant_values() != before.price_relevant_values():
            raise ComputationError(module.id, "apply() must not change input fields")

        old = before.computed.costs
        new = after.computed.costs
        if new[: len(old)] != old:
            raise ComputationError(module.id, "apply() must not rewrite earlier costs")
        foreign = [c.module_id for c in new[len(old):] if c.module_id != module.id]
        if foreign:
            raise ComputationError(module.id, f"apply() added costs for other modules: {foreign}")
