from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ValidationError

D = Decimal
CENT = D("0.01")


def money(amount: Any) -> D:
    """Quantize to the currency minor unit (2 decimals, half-up)."""
    return D(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def _frozen_mapping(m: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    # list values become tuples so nothing stored here can be edited in place
    return MappingProxyType(
        {k: tuple(v) if isinstance(v, list) else v for k, v in dict(m or {}).items()}
    )


# -----------------------------
# Enums
# -----------------------------


class ServiceType(str, Enum):
    MOVING = "MOVING"
    CLEANING = "CLEANING"
    PACKING = "PACKING"
    DELIVERY = "DELIVERY"


class CostCategory(str, Enum):
    BASE = "BASE"
    DISTANCE = "DISTANCE"
    OPTION = "OPTION"
    SERVICE = "SERVICE"
    SURCHARGE = "SURCHARGE"


# -----------------------------
# Computed accumulator
# -----------------------------


@dataclass(frozen=True)
class CostEntry:
    module_id: str
    category: CostCategory
    label: str
    amount: D
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", CostCategory(self.category))
        object.__setattr__(self, "amount", money(self.amount))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))


@dataclass(frozen=True)
class ComputedContext:
    """
    Output accumulator threaded through the pipeline.
    Every helper returns a new instance; nothing is edited in place.
    """

    costs: Tuple[CostEntry, ...] = ()
    activated_modules: Tuple[str, ...] = ()
    metadata: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "costs", tuple(self.costs))
        object.__setattr__(self, "activated_modules", tuple(self.activated_modules))
        object.__setattr__(
            self,
            "metadata",
            MappingProxyType(
                {k: _frozen_mapping(v) for k, v in dict(self.metadata).items()}
            ),
        )

    @property
    def total(self) -> D:
        return money(sum((c.amount for c in self.costs), D("0")))

    def with_cost(self, entry: CostEntry) -> "ComputedContext":
        activated = self.activated_modules
        if entry.module_id not in activated:
            activated = activated + (entry.module_id,)
        return replace(self, costs=self.costs + (entry,), activated_modules=activated)

    def with_metadata(self, module_id: str, **values: Any) -> "ComputedContext":
        merged: Dict[str, Mapping[str, Any]] = dict(self.metadata)
        merged[module_id] = {**dict(self.metadata.get(module_id, {})), **values}
        return replace(self, metadata=merged)

    def module_metadata(self, module_id: str) -> Mapping[str, Any]:
        return self.metadata.get(module_id, MappingProxyType({}))

    def costs_for(self, module_id: str) -> Tuple[CostEntry, ...]:
        return tuple(c for c in self.costs if c.module_id == module_id)


# -----------------------------
# Input context
# -----------------------------

# Fields whose value influences price. Used for fingerprints and overrides;
# `metadata` is not part of it.
PRICE_RELEVANT_FIELDS: Tuple[str, ...] = (
    "service_type",
    "region",
    "departure_address",
    "arrival_address",
    "volume",
    "distance",
    "duration",
    "workers",
    "surface",
    "moving_date",
    "pickup_floor",
    "pickup_has_elevator",
    "delivery_floor",
    "delivery_has_elevator",
    "complex_items",
    "storage_duration_days",
    "dismantling",
    "reassembly",
    "bulky_furniture",
    "piano",
    "safe",
    "artwork",
    "packing",
    "cleaning_end",
    "storage",
)

# Client-selectable services that fixed-formula scenarios reset.
CROSS_SELLING_FLAGS: Tuple[str, ...] = (
    "packing",
    "dismantling",
    "reassembly",
    "cleaning_end",
)

_DECIMAL_FIELDS = ("volume", "distance", "duration", "surface")
_INT_FIELDS = (
    "workers",
    "pickup_floor",
    "delivery_floor",
    "complex_items",
    "storage_duration_days",
)


@dataclass(frozen=True)
class QuoteContext:
    """
    Complete description of one pricing request plus the computed accumulator.

    Immutable: modules receive a context and return a new one through
    `with_cost` / `with_metadata` / `replace`.
    """

    service_type: ServiceType = ServiceType.MOVING
    region: Optional[str] = None
    departure_address: Optional[str] = None
    arrival_address: Optional[str] = None

    volume: Optional[D] = None  # m3
    distance: Optional[D] = None  # km
    duration: Optional[D] = None  # hours
    workers: Optional[int] = None
    surface: Optional[D] = None  # m2
    moving_date: Optional[date] = None

    pickup_floor: int = 0
    pickup_has_elevator: bool = False
    delivery_floor: int = 0
    delivery_has_elevator: bool = False
    complex_items: int = 0
    storage_duration_days: Optional[int] = None

    # Requested options
    dismantling: bool = False
    reassembly: bool = False
    bulky_furniture: bool = False
    piano: bool = False
    safe: bool = False
    artwork: bool = False
    packing: bool = False
    cleaning_end: bool = False
    storage: bool = False

    metadata: Mapping[str, Any] = field(default_factory=dict)
    computed: ComputedContext = field(default_factory=ComputedContext)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "service_type", ServiceType(self.service_type))
        except ValueError as e:
            raise ValidationError("service_type", f"Unknown service type: {self.service_type}") from e

        for name in _DECIMAL_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, D):
                try:
                    object.__setattr__(self, name, D(str(value)))
                except ArithmeticError as e:
                    raise ValidationError(name, f"Not a number: {value!r}") from e

        for name in _INT_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, int):
                try:
                    object.__setattr__(self, name, int(value))
                except (TypeError, ValueError) as e:
                    raise ValidationError(name, f"Not an integer: {value!r}") from e

        if self.moving_date is not None and not isinstance(self.moving_date, date):
            try:
                object.__setattr__(self, "moving_date", date.fromisoformat(str(self.moving_date)))
            except ValueError as e:
                raise ValidationError("moving_date", f"Not an ISO date: {self.moving_date!r}") from e

        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    # ---- derived values -------------------------------------------

    @property
    def total(self) -> D:
        return self.computed.total

    def price_relevant_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PRICE_RELEVANT_FIELDS}

    # ---- copy-on-write helpers ------------------------------------

    def replace(self, **changes: Any) -> "QuoteContext":
        return replace(self, **changes)

    def with_cost(self, entry: CostEntry) -> "QuoteContext":
        return replace(self, computed=self.computed.with_cost(entry))

    def with_metadata(self, module_id: str, **values: Any) -> "QuoteContext":
        return replace(self, computed=self.computed.with_metadata(module_id, **values))

    def with_overrides(self, overrides: Mapping[str, Any]) -> "QuoteContext":
        """Force input fields; only price-relevant input fields may be overridden."""
        if not overrides:
            return self
        unknown = sorted(set(overrides) - set(PRICE_RELEVANT_FIELDS))
        if unknown:
            raise ValidationError(unknown[0], f"Field cannot be overridden: {unknown}")
        return replace(self, **dict(overrides))

    def reset_computed(self) -> "QuoteContext":
        return replace(self, computed=ComputedContext())
