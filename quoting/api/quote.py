from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request

from ..core.logging_config import logger
from ..core.settings import settings
from ..engine.config_loader import PricingConfigLoader
from ..engine.errors import ScenarioUnavailableError
from ..engine.quote_engine import QuoteEngine
from ..schemas.quote_input_v1 import (
    PaymentResolveInputV1,
    QuoteCalculateInputV1,
    QuoteSignInputV1,
    QuoteVerifyInputV1,
)
from ..schemas.quote_output_v1 import (
    PaymentResolveOutputV1,
    QuoteOutputV1,
    SignOutputV1,
    VariantsOutputV1,
    VerifyOutputV1,
)
from ..signing.payment_guard import PaymentPriceGuard
from ..signing.price_signature import PriceSignatureService

# ----------------------------
# Router
# ----------------------------
router = APIRouter(prefix="/api/quote", tags=["quote"])


# ----------------------------
# Services (process-wide, built on first use)
# ----------------------------
@lru_cache(maxsize=1)
def get_config_loader() -> PricingConfigLoader:
    return PricingConfigLoader(
        settings.PRICING_CONFIG_PATH,
        default_scenario_id=settings.DEFAULT_SCENARIO_ID,
    )


@lru_cache(maxsize=1)
def get_scenario_pool() -> Optional[ThreadPoolExecutor]:
    if settings.SCENARIO_WORKERS <= 0:
        return None
    return ThreadPoolExecutor(
        max_workers=settings.SCENARIO_WORKERS, thread_name_prefix="scenario"
    )


@lru_cache(maxsize=1)
def get_signature_service() -> PriceSignatureService:
    return PriceSignatureService.from_settings(settings)


def get_engine(loader: PricingConfigLoader = Depends(get_config_loader)) -> QuoteEngine:
    # one snapshot per request: a reload mid-request is never observed
    return QuoteEngine.from_snapshot(loader.get(), pool=get_scenario_pool())


# ----------------------------
# Helpers
# ----------------------------
def _log_obs(
    *,
    request: Request,
    endpoint: str,
    t0: float,
    event: str,
    **fields: Any,
) -> None:
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", "unknown"
    )
    logger.bind(
        request_id=request_id,
        endpoint=endpoint,
        duration_ms=round((time.time() - t0) * 1000, 2),
        **fields,
    ).info(event)


# ----------------------------
# 1) Calculate
# ----------------------------
@router.post("/calculate", response_model=QuoteOutputV1)
def calculate_quote(
    payload: QuoteCalculateInputV1,
    request: Request,
    engine: QuoteEngine = Depends(get_engine),
) -> QuoteOutputV1:
    t0 = time.time()

    calc = engine.calculate(payload.context.to_context())

    _log_obs(
        request=request,
        endpoint="/api/quote/calculate",
        t0=t0,
        event="quote_calculate",
        base_price=str(calc.base_price),
        modules=len(calc.activated_modules),
    )
    return QuoteOutputV1(
        config_version=engine.version,
        currency=settings.CURRENCY,
        payload=calc.to_dict(),
    )


# ----------------------------
# 2) Variants
# ----------------------------
@router.post("/variants", response_model=VariantsOutputV1)
def quote_variants(
    payload: QuoteCalculateInputV1,
    request: Request,
    engine: QuoteEngine = Depends(get_engine),
) -> VariantsOutputV1:
    t0 = time.time()

    variants = engine.generate_variants(payload.context.to_context())
    recommended = next((v.scenario_id for v in variants if v.recommended), None)

    _log_obs(
        request=request,
        endpoint="/api/quote/variants",
        t0=t0,
        event="quote_variants",
        variants=len(variants),
        recommended=recommended,
    )
    return VariantsOutputV1(
        config_version=engine.version,
        currency=settings.CURRENCY,
        recommended=recommended,
        variants=[v.to_dict() for v in variants],
    )


# ----------------------------
# 3) Sign the chosen variant
# ----------------------------
@router.post("/sign", response_model=SignOutputV1)
def sign_quote(
    payload: QuoteSignInputV1,
    request: Request,
    engine: QuoteEngine = Depends(get_engine),
    signatures: PriceSignatureService = Depends(get_signature_service),
) -> SignOutputV1:
    t0 = time.time()
    ctx = payload.context.to_context()

    # the amount is always recomputed here, never taken from the client
    variants = engine.generate_variants(ctx)
    variant = next((v for v in variants if v.scenario_id == payload.scenario_id), None)
    if variant is None:
        raise ScenarioUnavailableError(payload.scenario_id, [v.scenario_id for v in variants])

    signed = signatures.sign(variant, ctx)

    _log_obs(
        request=request,
        endpoint="/api/quote/sign",
        t0=t0,
        event="quote_sign",
        scenario_id=variant.scenario_id,
        calculation_id=signed.calculation_id,
    )
    return SignOutputV1(variant=variant.to_dict(), signedPrice=signed.to_dict())


# ----------------------------
# 4) Verify
# ----------------------------
@router.post("/verify", response_model=VerifyOutputV1)
def verify_quote(
    payload: QuoteVerifyInputV1,
    request: Request,
    signatures: PriceSignatureService = Depends(get_signature_service),
) -> VerifyOutputV1:
    t0 = time.time()

    signed = payload.signed_price.model_dump() if payload.signed_price else None
    result = signatures.verify(
        signed, payload.context.to_context(), scenario_id=payload.scenario_id
    )

    _log_obs(
        request=request,
        endpoint="/api/quote/verify",
        t0=t0,
        event="quote_verify",
        valid=result.valid,
        reason=result.reason.value if result.reason else None,
    )
    return VerifyOutputV1(**result.to_dict())


# ----------------------------
# 5) Authoritative price at payment time
# ----------------------------
@router.post("/payment/resolve", response_model=PaymentResolveOutputV1)
def resolve_payment_price(
    payload: PaymentResolveInputV1,
    request: Request,
    engine: QuoteEngine = Depends(get_engine),
    signatures: PriceSignatureService = Depends(get_signature_service),
) -> PaymentResolveOutputV1:
    t0 = time.time()

    guard = PaymentPriceGuard(
        signatures,
        engine,
        allow_first_available=settings.FALLBACK_ALLOW_FIRST_AVAILABLE,
    )
    resolved = guard.resolve(
        payload.signed_price.model_dump() if payload.signed_price else None,
        payload.context.to_context(),
        scenario_id=payload.scenario_id,
        declared_price=payload.declared_price,
    )

    _log_obs(
        request=request,
        endpoint="/api/quote/payment/resolve",
        t0=t0,
        event="payment_price_resolved",
        source=resolved.source.value,
        scenario_id=resolved.scenario_id,
        amount=str(resolved.amount),
    )
    return PaymentResolveOutputV1(currency=settings.CURRENCY, **resolved.to_dict())
