from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

from ..core.logging_config import logger
from ..scenarios.scenario import ScenarioSet
from .errors import ConfigurationError
from .registry import ModuleRegistry

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "config" / "schemas" / "pricing_config.schema.json"


@dataclass(frozen=True)
class PricingSnapshot:
    """One consistent pricing configuration: tariffs, module list, tiers."""

    version: str
    registry: ModuleRegistry
    scenarios: ScenarioSet
    mtime_ns: int = 0


@lru_cache(maxsize=1)
def _schema() -> Dict[str, Any]:
    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def build_snapshot(
    raw: Dict[str, Any],
    mtime_ns: int = 0,
    default_scenario_id: Optional[str] = None,
) -> PricingSnapshot:
    """
    Validate a parsed pricing document and freeze it into a snapshot.

    Two passes: JSON Schema for shape, then cross-checks against the module
    catalogue (unknown ids, unknown tariff keys, tariff value shapes, invalid overrides).
    """
    try:
        jsonschema.validate(instance=raw, schema=_schema())
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigurationError(f"Pricing config invalid at {path}: {e.message}") from e

    from ..modules import module_registry

    modules_cfg: Dict[str, Any] = raw.get("modules") or {}
    tariffs = {mid: (m or {}).get("tariffs") or {} for mid, m in modules_cfg.items()}
    enabled = {mid: bool((m or {}).get("enabled", True)) for mid, m in modules_cfg.items()}

    registry = ModuleRegistry.from_config(tariffs, enabled)

    scenarios = ScenarioSet.from_dict(
        raw.get("scenarios"),
        default_scenario_id=raw.get("defaultScenario") or default_scenario_id,
    )
    scenarios.check_modules(module_registry)

    return PricingSnapshot(
        version=str(raw.get("version", "unversioned")),
        registry=registry,
        scenarios=scenarios,
        mtime_ns=mtime_ns,
    )


def load_snapshot(path: str, default_scenario_id: Optional[str] = None) -> PricingSnapshot:
    mtime_ns = os.stat(path).st_mtime_ns
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Pricing config is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError("Pricing config must be a mapping at top level")
    return build_snapshot(raw, mtime_ns=mtime_ns, default_scenario_id=default_scenario_id)


class PricingConfigLoader:
    """
    Hot reload of the pricing configuration (thread-safe).

    - Keeps the last known-good snapshot active
    - On each get(): checks mtime_ns; if changed -> reload + validate
    - If reload fails: logs the error and keeps the previous snapshot
    In-flight computations hold their own snapshot reference, so a swap never
    changes configuration under them.
    """

    def __init__(self, path: str, default_scenario_id: Optional[str] = None):
        self.path = path
        self.default_scenario_id = default_scenario_id
        self._lock = threading.Lock()
        self._rejected_mtime_ns: Optional[int] = None

        # eager initial load (fail-fast if missing or invalid)
        self._snapshot: PricingSnapshot = load_snapshot(path, default_scenario_id)
        logger.info(
            "pricing_config_loaded",
            path=path,
            version=self._snapshot.version,
            modules=list(self._snapshot.registry.ids),
            scenarios=list(self._snapshot.scenarios.ids),
        )

    def get(self) -> PricingSnapshot:
        try:
            current_mtime = os.stat(self.path).st_mtime_ns
        except FileNotFoundError:
            logger.warning("pricing_config_missing", path=self.path, action="keep_previous")
            return self._snapshot

        snapshot = self._snapshot
        if current_mtime in (snapshot.mtime_ns, self._rejected_mtime_ns):
            return snapshot

        with self._lock:
            snapshot = self._snapshot
            # another thread may have reloaded while we waited
            if current_mtime in (snapshot.mtime_ns, self._rejected_mtime_ns):
                return snapshot

            try:
                new_snapshot = load_snapshot(self.path, self.default_scenario_id)
            except (ConfigurationError, OSError) as e:
                # same file version is not retried until it changes again
                self._rejected_mtime_ns = current_mtime
                logger.error(
                    "pricing_config_reload_failed",
                    path=self.path,
                    error=str(e),
                    action="keep_previous",
                )
                return snapshot

            self._snapshot = new_snapshot
            logger.info(
                "pricing_config_reloaded",
                path=self.path,
                version=new_snapshot.version,
                mtime_ns=new_snapshot.mtime_ns,
            )
            return new_snapshot
