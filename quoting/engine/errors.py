from __future__ import annotations

from typing import Optional


class QuotingError(Exception):
    """Base class for every error raised by the pricing core."""


class ValidationError(QuotingError):
    """
    Context is missing (or carries an unusable value for) a field that a
    module strictly requires. Raised before the pipeline runs.
    """

    def __init__(
        self,
        field: str,
        message: Optional[str] = None,
        module_id: Optional[str] = None,
    ):
        self.field = str(field)
        self.module_id = module_id
        self.message = message or f"Missing required field: {self.field}"
        where = f" (module {module_id})" if module_id else ""
        super().__init__(f"{self.field}: {self.message}{where}")


class ComputationError(QuotingError):
    """
    A module failed while applying. The whole computation is aborted;
    no partial price ever leaves the executor.
    """

    def __init__(self, module_id: str, message: str):
        self.module_id = str(module_id)
        self.message = str(message)
        super().__init__(f"{self.module_id}: {self.message}")


class ConfigurationError(QuotingError):
    """Invalid pricing configuration (tariffs, registry, scenarios)."""


class ScenarioUnavailableError(QuotingError):
    """No scenario could be selected to produce an authoritative price."""

    def __init__(self, scenario_id: Optional[str], available: list[str]):
        self.scenario_id = scenario_id
        self.available = list(available)
        super().__init__(
            f"Scenario {scenario_id!r} not available. Available: {self.available}"
        )
