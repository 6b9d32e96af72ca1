from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..engine.context import CROSS_SELLING_FLAGS, QuoteContext, ServiceType, money
from ..engine.errors import ConfigurationError, ValidationError

D = Decimal

DEFAULT_SCENARIO_ID = "STANDARD"
# Marks the tier to recommend when the default one does not apply to a context
RECOMMENDED_TAG = "recommended"


@dataclass(frozen=True)
class PriceAdjustment:
    """final = base x multiplier + delta, rounded to the cent."""

    multiplier: D = D("1")
    delta: D = D("0")

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "multiplier", D(str(self.multiplier)))
            object.__setattr__(self, "delta", D(str(self.delta)))
        except InvalidOperation as e:
            raise ConfigurationError(f"Invalid price adjustment: {e!r}") from e
        if self.multiplier < 0:
            raise ConfigurationError(f"Price multiplier must be >= 0, got {self.multiplier}")

    def apply(self, base_price: D) -> D:
        return money(D(base_price) * self.multiplier + self.delta)

    def to_dict(self) -> Dict[str, str]:
        return {"multiplier": str(self.multiplier), "delta": str(self.delta)}

    @staticmethod
    def from_dict(d: Optional[Mapping[str, Any]]) -> "PriceAdjustment":
        d = d or {}
        return PriceAdjustment(
            multiplier=d.get("multiplier", "1"),
            delta=d.get("delta", "0"),
        )


@dataclass(frozen=True)
class Scenario:
    """
    A named pricing tier. Pure configuration: which modules to drop, which
    context fields to force, and the markup applied to the pipeline result.

    `fallback_values` only fill fields the caller left unset; measured inputs
    such as the surface are never replaced. An empty `service_types` means the
    tier is offered for every service type.
    """

    id: str
    label: str = ""
    description: str = ""
    disabled_module_ids: Tuple[str, ...] = ()
    forced_overrides: Mapping[str, Any] = field(default_factory=dict)
    price_adjustment: PriceAdjustment = field(default_factory=PriceAdjustment)
    # False: client-selected extras are cleared, the tier defines its own services
    use_client_selection: bool = True
    tags: Tuple[str, ...] = ()
    service_types: Tuple[ServiceType, ...] = ()
    fallback_values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigurationError("Scenario id must be non-empty")
        object.__setattr__(self, "disabled_module_ids", tuple(self.disabled_module_ids))
        object.__setattr__(self, "tags", tuple(self.tags))
        try:
            object.__setattr__(
                self, "service_types", tuple(ServiceType(s) for s in self.service_types)
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Scenario '{self.id}' has an unknown service type: {e}"
            ) from e

        # Resolve values once so a bad tier fails at load time; store them coerced
        for name in ("forced_overrides", "fallback_values"):
            values = dict(getattr(self, name))
            try:
                resolved = QuoteContext().with_overrides(values)
            except ValidationError as e:
                raise ConfigurationError(
                    f"Scenario '{self.id}' has invalid {name}: {e}"
                ) from e
            object.__setattr__(
                self, name, MappingProxyType({k: getattr(resolved, k) for k in values})
            )

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Scenario":
        return Scenario(
            id=str(d["id"]),
            label=str(d.get("label", "")),
            description=str(d.get("description", "")),
            disabled_module_ids=tuple(d.get("disabledModules", []) or []),
            forced_overrides=dict(d.get("forcedOverrides", {}) or {}),
            price_adjustment=PriceAdjustment.from_dict(d.get("priceAdjustment")),
            use_client_selection=bool(d.get("useClientSelection", True)),
            tags=tuple(d.get("tags", []) or []),
            service_types=tuple(d.get("serviceTypes", []) or []),
            fallback_values=dict(d.get("fallbackValues", {}) or {}),
        )

    def applies_to(self, ctx: QuoteContext) -> bool:
        return not self.service_types or ctx.service_type in self.service_types

    def effective_context(self, ctx: QuoteContext) -> QuoteContext:
        """Caller context with this tier's rules applied; overrides win."""
        eff = ctx.reset_computed()
        if not self.use_client_selection:
            eff = eff.replace(**{name: False for name in CROSS_SELLING_FLAGS})
        unset = {k: v for k, v in self.fallback_values.items() if getattr(eff, k) is None}
        return eff.with_overrides(unset).with_overrides(self.forced_overrides)

    def effective_modules(self, modules: Iterable[Any]) -> Tuple[Any, ...]:
        disabled = set(self.disabled_module_ids)
        return tuple(m for m in modules if m.id not in disabled)


# Raw computation used when no tier is configured.
IMPLICIT_SCENARIO = Scenario(id="BASE", label="Base price")


class ScenarioSet:
    """Ordered, immutable list of scenarios plus the recommended default id."""

    def __init__(
        self,
        scenarios: Sequence[Scenario] = (),
        default_scenario_id: Optional[str] = None,
    ):
        ids: List[str] = [s.id for s in scenarios]
        dups = sorted({i for i in ids if ids.count(i) > 1})
        if dups:
            raise ConfigurationError(f"Duplicate scenario ids: {dups}")

        self._scenarios: Tuple[Scenario, ...] = tuple(scenarios)
        self._by_id = {s.id: s for s in self._scenarios}
        self.default_scenario_id = default_scenario_id or DEFAULT_SCENARIO_ID

    @staticmethod
    def from_dict(
        items: Optional[Sequence[Mapping[str, Any]]],
        default_scenario_id: Optional[str] = None,
    ) -> "ScenarioSet":
        return ScenarioSet(
            [Scenario.from_dict(i) for i in (items or [])],
            default_scenario_id=default_scenario_id,
        )

    @property
    def scenarios(self) -> Tuple[Scenario, ...]:
        return self._scenarios

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self._scenarios)

    def get(self, scenario_id: str) -> Optional[Scenario]:
        return self._by_id.get(scenario_id)

    def applicable(self, ctx: QuoteContext) -> Tuple[Scenario, ...]:
        """Tiers offered for this context, in configured order."""
        return tuple(s for s in self._scenarios if s.applies_to(ctx))

    def default_for(self, ctx: QuoteContext) -> Optional[str]:
        """
        Recommended tier for a context: the configured default when it is
        offered, else the first offered tier tagged `recommended`. The
        implicit base variant when no tier is offered at all.
        """
        offered = self.applicable(ctx)
        if not offered:
            return IMPLICIT_SCENARIO.id
        if any(s.id == self.default_scenario_id for s in offered):
            return self.default_scenario_id
        return next((s.id for s in offered if RECOMMENDED_TAG in s.tags), None)

    def check_modules(self, known_module_ids: Iterable[str]) -> None:
        """Every disabled module id must name a registered module."""
        known = set(known_module_ids)
        for s in self._scenarios:
            unknown = sorted(set(s.disabled_module_ids) - known)
            if unknown:
                raise ConfigurationError(
                    f"Scenario '{s.id}' disables unknown modules: {unknown}"
                )

    def __iter__(self):
        return iter(self._scenarios)

    def __len__(self) -> int:
        return len(self._scenarios)
