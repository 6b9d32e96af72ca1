from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

import quoting.modules  # noqa: F401 (register all modules)

from quoting.core.settings import DEFAULT_PRICING_CONFIG
from quoting.engine.config_loader import load_snapshot
from quoting.engine.context import CostEntry, QuoteContext
from quoting.engine.quote_engine import QuoteEngine
from quoting.engine.registry import ModuleRegistry
from quoting.signing.price_signature import PriceSignatureService

TEST_SECRET = "test-secret-please-rotate-0001"


class RecordingLogger:
    """Stand-in for the structlog logger; keeps (level, event, fields)."""

    def __init__(self, events=None, bound=None):
        self.events = events if events is not None else []
        self._bound = dict(bound or {})

    def bind(self, **kw):
        return RecordingLogger(self.events, {**self._bound, **kw})

    def _record(self, level, event, **kw):
        self.events.append((level, event, {**self._bound, **kw}))

    def debug(self, event, **kw):
        self._record("debug", event, **kw)

    def info(self, event, **kw):
        self._record("info", event, **kw)

    def warning(self, event, **kw):
        self._record("warning", event, **kw)

    def error(self, event, **kw):
        self._record("error", event, **kw)

    def named(self, event):
        return [e for e in self.events if e[1] == event]


@pytest.fixture
def fixed_now():
    # 2026-03-11 12:00:00 UTC
    return 1773230400


@pytest.fixture
def moving_ctx():
    # Wednesday, no month-end, short trip: no surcharges apply
    return QuoteContext(
        service_type="MOVING",
        volume=Decimal("20"),
        distance=Decimal("30"),
        moving_date=date(2026, 3, 11),
        departure_address="12 Rue des Lilas, Lyon",
        arrival_address="4 Quai Perrache, Lyon",
    )


@pytest.fixture
def cleaning_ctx():
    # 2 cleaners x 3 h x 30 + 60 m2 x 8 = 660.00 before tier markup
    return QuoteContext(
        service_type="CLEANING",
        surface=Decimal("60"),
        duration=Decimal("3"),
        departure_address="8 Rue Victor Hugo, Lyon",
    )


@pytest.fixture
def ctx_with_subtotal(moving_ctx):
    """Context that already carries 1000.00 of base cost."""
    return moving_ctx.with_cost(
        CostEntry(module_id="labor-base", category="BASE", label="Labor", amount=Decimal("1000"))
    )


@pytest.fixture
def registry():
    return ModuleRegistry.from_config()


@pytest.fixture
def snapshot():
    return load_snapshot(str(DEFAULT_PRICING_CONFIG))


@pytest.fixture
def engine(snapshot):
    # Uses the shipped pricing.yaml (also validates it)
    return QuoteEngine.from_snapshot(snapshot)


@pytest.fixture
def signatures(fixed_now):
    return PriceSignatureService(TEST_SECRET, clock=lambda: fixed_now)


@pytest.fixture
def recording_logger():
    return RecordingLogger()
