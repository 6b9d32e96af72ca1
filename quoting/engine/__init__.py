from .context import ComputedContext, CostCategory, CostEntry, QuoteContext, ServiceType  # noqa
from .errors import (  # noqa
    ComputationError,
    ConfigurationError,
    QuotingError,
    ScenarioUnavailableError,
    ValidationError,
)
