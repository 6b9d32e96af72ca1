# quoting/schemas/quote_input_v1.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from ..engine.context import QuoteContext


class QuoteContextV1(BaseModel):
    """
    Context = allowlist. Anything not declared here is rejected, so a client
    cannot smuggle fields into the pricing context.
    """

    model_config = ConfigDict(extra="forbid")

    service_type: Literal["MOVING", "CLEANING", "PACKING", "DELIVERY"] = "MOVING"
    region: Optional[str] = None
    departure_address: Optional[str] = None
    arrival_address: Optional[str] = None

    volume: Optional[Decimal] = Field(default=None, ge=0)
    distance: Optional[Decimal] = Field(default=None, ge=0)
    duration: Optional[Decimal] = Field(default=None, ge=0)
    workers: Optional[int] = Field(default=None, ge=0)
    surface: Optional[Decimal] = Field(default=None, ge=0)
    moving_date: Optional[date] = None

    pickup_floor: int = Field(default=0, ge=-5, le=100)
    pickup_has_elevator: bool = False
    delivery_floor: int = Field(default=0, ge=-5, le=100)
    delivery_has_elevator: bool = False
    complex_items: int = Field(default=0, ge=0)
    storage_duration_days: Optional[int] = Field(default=None, ge=0)

    dismantling: bool = False
    reassembly: bool = False
    bulky_furniture: bool = False
    piano: bool = False
    safe: bool = False
    artwork: bool = False
    packing: bool = False
    cleaning_end: bool = False
    storage: bool = False

    # free-form, never price relevant
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_context(self) -> QuoteContext:
        return QuoteContext(**self.model_dump())


class QuoteCalculateInputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context: QuoteContextV1


class QuoteSignInputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context: QuoteContextV1
    scenario_id: constr(strip_whitespace=True, min_length=1)  # type: ignore


class SignedPriceV1(BaseModel):
    """Wire form of a signed price, camelCase as it travels with the quote."""

    model_config = ConfigDict(extra="forbid")

    calculationId: str
    totalPrice: str
    contextFingerprint: str
    timestamp: int
    signature: str
    scenarioId: Optional[str] = None


class QuoteVerifyInputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context: QuoteContextV1
    signed_price: Optional[SignedPriceV1] = None
    # tier the client is about to pay for; defaults to the one carried by the signature
    scenario_id: Optional[str] = None


class PaymentResolveInputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context: QuoteContextV1
    signed_price: Optional[SignedPriceV1] = None
    scenario_id: Optional[str] = None
    declared_price: Optional[Decimal] = None
