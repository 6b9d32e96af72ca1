# quoting/schemas/quote_output_v1.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class QuoteOutputV1(BaseModel):
    """
    Top-level fields are strict; the engine result travels as-is in payload.
    """

    model_config = ConfigDict(extra="forbid")

    version: Literal["v1"] = "v1"
    config_version: str
    currency: str
    payload: Dict[str, Any]


class VariantsOutputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: Literal["v1"] = "v1"
    config_version: str
    currency: str
    recommended: Optional[str] = None
    variants: List[Dict[str, Any]]


class SignOutputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: Literal["v1"] = "v1"
    variant: Dict[str, Any]
    signedPrice: Dict[str, Any]


class VerifyOutputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    valid: bool
    reason: Optional[str] = None
    ageSeconds: Optional[int] = None


class PaymentResolveOutputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    currency: str
    amount: str
    source: Literal["SIGNATURE", "RECOMPUTED"]
    scenarioId: Optional[str] = None
    calculationId: Optional[str] = None
    verification: VerifyOutputV1
