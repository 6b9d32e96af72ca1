# quoting/engine/registry.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .errors import ConfigurationError
from ..modules.base import PricingModule


class ModuleRegistry:
    """
    Frozen, ordered collection of module instances.

    Sorted once by (priority, id) at construction; the order never changes
    afterwards and is identical in every process built from the same config.
    """

    def __init__(self, modules: Iterable[PricingModule]) -> None:
        modules = list(modules)

        seen, dups = set(), []
        for m in modules:
            if m.id in seen and m.id not in dups:
                dups.append(m.id)
            seen.add(m.id)
        if dups:
            raise ConfigurationError(f"Duplicate module ids in registry: {dups}")

        self._modules: Tuple[PricingModule, ...] = tuple(
            sorted(modules, key=lambda m: m.sort_key)
        )
        self._by_id: Dict[str, PricingModule] = {m.id: m for m in self._modules}

    @classmethod
    def from_config(
        cls,
        tariffs: Optional[Mapping[str, Mapping[str, Any]]] = None,
        enabled: Optional[Mapping[str, bool]] = None,
    ) -> "ModuleRegistry":
        """
        Instantiate every registered module class with its configured tariffs.
        Modules switched off in `enabled` are left out of the pipeline.
        """
        from ..modules import module_registry  # registers all module classes

        tariffs = dict(tariffs or {})
        enabled = dict(enabled or {})

        unknown = sorted((set(tariffs) | set(enabled)) - set(module_registry))
        if unknown:
            raise ConfigurationError(f"Configuration references unknown modules: {unknown}")

        instances = []
        for module_id in sorted(module_registry):
            if not enabled.get(module_id, True):
                continue
            instances.append(module_registry[module_id](tariffs.get(module_id)))
        return cls(instances)

    @property
    def modules(self) -> Tuple[PricingModule, ...]:
        return self._modules

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(m.id for m in self._modules)

    def get(self, module_id: str) -> PricingModule:
        try:
            return self._by_id[module_id]
        except KeyError:
            raise KeyError(f"Unknown module '{module_id}'. Registered: {list(self.ids)}")

    def without(self, module_ids: Iterable[str]) -> Tuple[PricingModule, ...]:
        """Ordered module list minus the given ids (order preserved)."""
        excluded = set(module_ids)
        return tuple(m for m in self._modules if m.id not in excluded)

    def __iter__(self) -> Iterator[PricingModule]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._by_id
