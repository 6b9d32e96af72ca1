from __future__ import annotations

import hashlib
import secrets
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from itsdangerous import Signer

from ..core.logging_config import logger
from ..engine.context import QuoteContext, money
from ..engine.errors import ConfigurationError
from .fingerprint import context_fingerprint

D = Decimal

MIN_SECRET_LENGTH = 16


class SignatureFailure(str, Enum):
    MISSING = "MISSING"
    FINGERPRINT_MISMATCH = "FINGERPRINT_MISMATCH"
    INVALID = "INVALID"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class SignedPrice:
    calculation_id: str
    total_price: D
    context_fingerprint: str
    timestamp: int  # unix seconds
    signature: str
    # tier the price was issued for; bound through the fingerprint
    scenario_id: Optional[str] = None

    @property
    def payload(self) -> bytes:
        """Exact bytes covered by the HMAC."""
        return "|".join(
            (
                self.calculation_id,
                format(money(self.total_price), "f"),
                self.context_fingerprint,
                str(int(self.timestamp)),
            )
        ).encode("utf-8")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calculationId": self.calculation_id,
            "totalPrice": format(money(self.total_price), "f"),
            "contextFingerprint": self.context_fingerprint,
            "timestamp": int(self.timestamp),
            "signature": self.signature,
            "scenarioId": self.scenario_id,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "SignedPrice":
        """Raises ValueError on any malformed input."""
        try:
            ts = d["timestamp"]
            if isinstance(ts, bool) or not isinstance(ts, (int, str)):
                raise ValueError(f"bad timestamp: {ts!r}")
            total = D(str(d["totalPrice"]))
            if not total.is_finite():
                raise ValueError(f"bad total price: {total!r}")
            scenario_id = d.get("scenarioId")
            return SignedPrice(
                calculation_id=str(d["calculationId"]),
                total_price=total,
                context_fingerprint=str(d["contextFingerprint"]),
                timestamp=int(ts),
                signature=str(d["signature"]),
                scenario_id=str(scenario_id) if scenario_id is not None else None,
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise ValueError(f"Malformed signed price: {e!r}") from e


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: Optional[SignatureFailure] = None
    age_seconds: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "reason": self.reason.value if self.reason else None,
            "ageSeconds": self.age_seconds,
        }


class PriceSignatureService:
    """
    Binds a price to the price-relevant inputs it was computed from.

    signature = HMAC-SHA256(secret, calculationId|totalPrice|fingerprint|timestamp)

    The fingerprint covers the scenario id, so a signature issued for one tier
    does not verify for another.

    Older secrets passed in `previous_secrets` are accepted by verify() but
    never used to sign.
    """

    def __init__(
        self,
        secret: str,
        previous_secrets: Sequence[str] = (),
        max_age_hours: float = 24,
        clock_skew_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        for s in (secret, *previous_secrets):
            if not s or len(s) < MIN_SECRET_LENGTH:
                raise ConfigurationError(
                    f"PRICE_SIGNATURE_SECRET must be set (min length {MIN_SECRET_LENGTH})."
                )
        if max_age_hours <= 0:
            raise ConfigurationError("PRICE_SIGNATURE_MAX_AGE_HOURS must be > 0")

        # itsdangerous signs with the last key and verifies against all of them
        self._signer = Signer(
            secret_key=[*previous_secrets, secret],
            key_derivation="none",
            digest_method=hashlib.sha256,
        )
        self.max_age_seconds = int(max_age_hours * 3600)
        self.clock_skew_seconds = int(clock_skew_seconds)
        self._clock = clock

    @classmethod
    def from_settings(cls, s: Any) -> "PriceSignatureService":
        secret = s.PRICE_SIGNATURE_SECRET
        if not secret:
            if s.is_production:
                raise ConfigurationError("PRICE_SIGNATURE_SECRET is required in production")
            secret = secrets.token_urlsafe(32)
            logger.warning(
                "price_signature_ephemeral_secret",
                app_env=s.APP_ENV,
                note="signatures will not survive a restart",
            )
        return cls(
            secret=secret,
            previous_secrets=tuple(s.PRICE_SIGNATURE_PREVIOUS_SECRETS),
            max_age_hours=s.PRICE_SIGNATURE_MAX_AGE_HOURS,
            clock_skew_seconds=s.PRICE_SIGNATURE_CLOCK_SKEW_SECONDS,
        )

    def _now(self, now: Optional[int]) -> int:
        return int(self._clock() if now is None else now)

    # ---- signing ---------------------------------------------------

    def sign(self, variant: Any, ctx: QuoteContext, now: Optional[int] = None) -> SignedPrice:
        """Sign the final price of a chosen variant."""
        return self.sign_amount(
            variant.final_price, ctx, scenario_id=variant.scenario_id, now=now
        )

    def sign_amount(
        self,
        total_price: Any,
        ctx: QuoteContext,
        scenario_id: Optional[str] = None,
        now: Optional[int] = None,
    ) -> SignedPrice:
        unsigned = SignedPrice(
            calculation_id=str(uuid.uuid4()),
            total_price=money(total_price),
            context_fingerprint=context_fingerprint(ctx, scenario_id),
            timestamp=self._now(now),
            signature="",
            scenario_id=scenario_id,
        )
        signature = self._signer.get_signature(unsigned.payload).decode("ascii")
        signed = SignedPrice(
            calculation_id=unsigned.calculation_id,
            total_price=unsigned.total_price,
            context_fingerprint=unsigned.context_fingerprint,
            timestamp=unsigned.timestamp,
            signature=signature,
            scenario_id=scenario_id,
        )
        logger.info(
            "price_signed",
            calculation_id=signed.calculation_id,
            scenario_id=scenario_id,
            total_price=str(signed.total_price),
        )
        return signed

    # ---- verification ----------------------------------------------

    def verify(
        self,
        signed: Union[SignedPrice, Mapping[str, Any], None],
        ctx: QuoteContext,
        now: Optional[int] = None,
        scenario_id: Optional[str] = None,
    ) -> VerificationResult:
        """
        Check fingerprint, then HMAC, then age. Never raises for a bad
        signature: the reason is returned so the caller can fall back.

        With `scenario_id` the signature must have been issued for that tier;
        without it the tier carried by the signed price is checked.
        """
        if not signed:
            return self._reject(SignatureFailure.MISSING)

        if not isinstance(signed, SignedPrice):
            try:
                signed = SignedPrice.from_dict(signed)
            except ValueError:
                return self._reject(SignatureFailure.INVALID)

        expected_scenario = scenario_id if scenario_id is not None else signed.scenario_id
        if context_fingerprint(ctx, expected_scenario) != signed.context_fingerprint:
            return self._reject(SignatureFailure.FINGERPRINT_MISMATCH, signed)

        # constant-time compare inside itsdangerous
        if not self._signer.verify_signature(signed.payload, signed.signature.encode("ascii", "replace")):
            return self._reject(SignatureFailure.INVALID, signed)

        age = self._now(now) - int(signed.timestamp)
        if age < -self.clock_skew_seconds:
            return self._reject(SignatureFailure.INVALID, signed, age)
        if age > self.max_age_seconds:
            return self._reject(SignatureFailure.EXPIRED, signed, age)

        return VerificationResult(valid=True, age_seconds=max(age, 0))

    @staticmethod
    def _reject(
        reason: SignatureFailure,
        signed: Optional[SignedPrice] = None,
        age: Optional[int] = None,
    ) -> VerificationResult:
        logger.info(
            "price_signature_rejected",
            reason=reason.value,
            calculation_id=signed.calculation_id if signed else None,
            age_seconds=age,
        )
        return VerificationResult(valid=False, reason=reason, age_seconds=age)
