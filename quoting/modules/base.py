from __future__ import annotations

from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from ..engine.context import CostCategory, CostEntry, QuoteContext, money
from ..engine.errors import ConfigurationError, ValidationError

D = Decimal


class PricingModule:
    """
    Base class for all pricing modules.

    A module is a named, pure computation unit:
      - is_applicable(ctx) decides whether it contributes for this context
      - apply(ctx) returns a new context with its CostEntry appended

    Tariffs are frozen at construction: class `defaults` overridden key by key
    by the configuration snapshot. apply() must not read the clock, do I/O or
    use randomness.
    """

    id: str = ""
    priority: float = 0.0
    category: CostCategory = CostCategory.SERVICE
    label: str = ""
    defaults: Mapping[str, Any] = {}
    # Context fields that must be set whenever the module is applicable
    required_fields: Tuple[str, ...] = ()

    def __init__(self, tariffs: Optional[Mapping[str, Any]] = None):
        tariffs = dict(tariffs or {})
        unknown = sorted(set(tariffs) - set(self.defaults))
        if unknown:
            raise ConfigurationError(
                f"Unknown tariff keys for module '{self.id}': {unknown}"
            )
        for key, value in tariffs.items():
            check_tariff(self.id, key, self.defaults[key], value)
        self.tariffs: Mapping[str, Any] = MappingProxyType({**self.defaults, **tariffs})

    # ---- contract --------------------------------------------------

    def is_applicable(self, ctx: QuoteContext) -> bool:
        raise NotImplementedError

    def apply(self, ctx: QuoteContext) -> QuoteContext:
        raise NotImplementedError

    def validate(self, ctx: QuoteContext) -> None:
        for name in self.required_fields:
            if getattr(ctx, name, None) is None:
                raise ValidationError(name, module_id=self.id)

    # ---- helpers ---------------------------------------------------

    @property
    def sort_key(self) -> Tuple[float, str]:
        return (float(self.priority), self.id)

    def tariff(self, key: str) -> D:
        return D(str(self.tariffs[key]))

    def cost(self, amount: Any, label: Optional[str] = None, **meta: Any) -> CostEntry:
        return CostEntry(
            module_id=self.id,
            category=self.category,
            label=label or self.label,
            amount=money(amount),
            metadata=meta,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} priority={self.priority}>"


# Registry: module id -> module class
module_registry: Dict[str, Type[PricingModule]] = {}


def register(module_cls: Type[PricingModule]) -> Type[PricingModule]:
    """
    Decorator to register a module class by its id.
    Fails fast on duplicate registrations.
    """
    key = getattr(module_cls, "id", None)
    if not key:
        raise ValueError(f"Module class {module_cls.__name__} has no id")

    if key in module_registry and module_registry[key] is not module_cls:
        raise ValueError(
            f"Duplicate module registration for id '{key}': "
            f"{module_registry[key].__name__} vs {module_cls.__name__}"
        )

    module_registry[key] = module_cls
    return module_cls


def _is_amount(text: str) -> bool:
    try:
        return D(text).is_finite()
    except InvalidOperation:
        return False


def check_tariff(module_id: str, key: str, template: Any, value: Any) -> None:
    """
    Check a configured tariff against the shape of its default:
    integers stay integers, amounts parse as finite decimals, tables keep
    every key of the default table, rate bands are non-empty lists.
    """

    def bad(expected: str) -> ConfigurationError:
        return ConfigurationError(
            f"Tariff '{key}' of module '{module_id}' must be {expected}, got {value!r}"
        )

    if isinstance(template, Mapping):
        if not isinstance(value, Mapping):
            raise bad("a mapping")
        missing = sorted(set(template) - set(value))
        if missing:
            raise bad(f"a mapping with keys {sorted(template)}")
        sample = next(iter(template.values()))
        for k, v in value.items():
            check_tariff(module_id, f"{key}.{k}", template.get(k, sample), v)
    elif isinstance(template, (list, tuple)):
        if not isinstance(value, (list, tuple)) or not value:
            raise bad("a non-empty list")
        for i, item in enumerate(value):
            check_tariff(module_id, f"{key}[{i}]", template[0], item)
    elif isinstance(template, str) and not _is_amount(template):
        if not isinstance(value, str):
            raise bad("a string")
    elif isinstance(template, int):
        if isinstance(value, bool):
            raise bad("an integer")
        try:
            int(str(value))
        except ValueError:
            raise bad("an integer") from None
    else:
        if isinstance(value, bool):
            raise bad("a number")
        try:
            amount = D(str(value))
        except InvalidOperation:
            raise bad("a number") from None
        if not amount.is_finite():
            raise bad("a finite number")


def adjusted_volume(ctx: QuoteContext) -> D:
    """Volume after special-item allowances, falling back to the raw input."""
    meta = ctx.computed.module_metadata("volume-estimation")
    if "adjusted_volume" in meta:
        return D(str(meta["adjusted_volume"]))
    return ctx.volume if ctx.volume is not None else D("0")
