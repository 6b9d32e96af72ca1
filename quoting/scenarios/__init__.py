from .generator import ScenarioGenerator, Variant  # noqa
from .scenario import IMPLICIT_SCENARIO, PriceAdjustment, Scenario, ScenarioSet  # noqa
