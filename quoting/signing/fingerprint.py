from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from ..engine.context import PRICE_RELEVANT_FIELDS, QuoteContext

# Bump when the canonical form changes; old signatures then stop matching.
FINGERPRINT_VERSION = 2


def _canonical_value(v: Any) -> Any:
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, Decimal):
        # 80, 80.0 and 80.00 must hash the same
        return format(v.normalize(), "f")
    if isinstance(v, date):
        return v.isoformat()
    return v


def canonical_context(ctx: QuoteContext, scenario_id: Optional[str] = None) -> Dict[str, Any]:
    """
    The allow-listed, price-relevant view of a context in JSON-safe form,
    bound to the tier the price was computed for.
    """
    return {
        "v": FINGERPRINT_VERSION,
        "scenario": scenario_id,
        "fields": {
            name: _canonical_value(getattr(ctx, name)) for name in PRICE_RELEVANT_FIELDS
        },
    }


def context_fingerprint(ctx: QuoteContext, scenario_id: Optional[str] = None) -> str:
    """SHA-256 hex digest of the canonical JSON of the price-relevant fields."""
    blob = json.dumps(
        canonical_context(ctx, scenario_id),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()
