# Ensure registration happens by importing modules
from .base import PricingModule, module_registry, register  # noqa
from . import (  # noqa
    volume_estimation,
    fuel,
    long_distance,
    tolls,
    vehicle,
    labor,
    access_penalty,
    high_value,
    temporal,
    packing,
    cleaning,
    dismantling,
    reassembly,
    storage,
)
