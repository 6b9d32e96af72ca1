from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.logging_config import logger
from ..engine.context import QuoteContext, money
from ..engine.errors import ScenarioUnavailableError
from ..scenarios.generator import Variant
from .price_signature import (
    PriceSignatureService,
    SignatureFailure,
    SignedPrice,
    VerificationResult,
)

D = Decimal


class PriceSource(str, Enum):
    SIGNATURE = "SIGNATURE"
    RECOMPUTED = "RECOMPUTED"


@dataclass(frozen=True)
class ResolvedPrice:
    amount: D
    source: PriceSource
    scenario_id: Optional[str]
    verification: VerificationResult
    calculation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "source": self.source.value,
            "scenarioId": self.scenario_id,
            "calculationId": self.calculation_id,
            "verification": self.verification.to_dict(),
        }


class PaymentPriceGuard:
    """
    Decides the amount actually charged.

    Fast path: a valid signature issued for the requested tier -> the signed
    total. A signature for another tier fails verification like any tampering.
    Slow path: anything else -> full server-side recomputation of the
    variants and pick of the requested (or default) scenario. The amount the
    client declares is never used, only compared and logged.
    """

    def __init__(
        self,
        signatures: PriceSignatureService,
        engine: Any,
        allow_first_available: bool = False,
    ):
        self.signatures = signatures
        self.engine = engine
        self.allow_first_available = allow_first_available

    def resolve(
        self,
        signed: Union[SignedPrice, Mapping[str, Any], None],
        ctx: QuoteContext,
        scenario_id: Optional[str] = None,
        declared_price: Any = None,
        now: Optional[int] = None,
    ) -> ResolvedPrice:
        verification = self.signatures.verify(signed, ctx, now=now, scenario_id=scenario_id)

        if verification.valid:
            if not isinstance(signed, SignedPrice):
                signed = SignedPrice.from_dict(signed)
            resolved = ResolvedPrice(
                amount=money(signed.total_price),
                source=PriceSource.SIGNATURE,
                scenario_id=signed.scenario_id,
                verification=verification,
                calculation_id=signed.calculation_id,
            )
        else:
            self._log_security_event(verification, scenario_id)
            variant = self._pick(self.engine.generate_variants(ctx), ctx, scenario_id)
            resolved = ResolvedPrice(
                amount=variant.final_price,
                source=PriceSource.RECOMPUTED,
                scenario_id=variant.scenario_id,
                verification=verification,
            )

        self._check_declared(resolved, declared_price)
        return resolved

    # -----------------
    # internals
    # -----------------

    def _pick(
        self, variants: List[Variant], ctx: QuoteContext, scenario_id: Optional[str]
    ) -> Variant:
        by_id = {v.scenario_id: v for v in variants}

        candidates = [scenario_id, self.engine.scenarios.default_for(ctx)]
        for cid in candidates:
            if cid and cid in by_id:
                if scenario_id and cid != scenario_id:
                    logger.warning(
                        "payment_scenario_substituted",
                        requested=scenario_id,
                        used=cid,
                    )
                return by_id[cid]

        if self.allow_first_available and variants:
            logger.warning(
                "payment_scenario_first_available",
                requested=scenario_id,
                used=variants[0].scenario_id,
            )
            return variants[0]

        raise ScenarioUnavailableError(scenario_id, [v.scenario_id for v in variants])

    @staticmethod
    def _log_security_event(v: VerificationResult, scenario_id: Optional[str]) -> None:
        log = logger.bind(reason=v.reason.value if v.reason else None, scenario_id=scenario_id)
        if v.reason == SignatureFailure.MISSING:
            log.warning("price_signature_missing", severity="low", action="recompute")
        elif v.reason == SignatureFailure.EXPIRED:
            log.warning(
                "price_signature_expired",
                severity="medium",
                age_seconds=v.age_seconds,
                action="recompute",
            )
        else:
            log.error(
                "price_signature_invalid",
                severity="high",
                security_alert=True,
                action="recompute",
            )

    @staticmethod
    def _check_declared(resolved: ResolvedPrice, declared_price: Any) -> None:
        if declared_price is None:
            return
        try:
            declared = money(declared_price)
        except ArithmeticError:
            logger.warning("payment_declared_price_unparseable", declared=str(declared_price))
            return
        if declared != resolved.amount:
            logger.warning(
                "payment_declared_price_mismatch",
                declared=str(declared),
                authoritative=str(resolved.amount),
                source=resolved.source.value,
            )
