from .fingerprint import context_fingerprint  # noqa
from .payment_guard import PaymentPriceGuard, PriceSource, ResolvedPrice  # noqa
from .price_signature import (  # noqa
    PriceSignatureService,
    SignatureFailure,
    SignedPrice,
    VerificationResult,
)
