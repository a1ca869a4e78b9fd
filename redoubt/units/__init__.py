"""
Pluggable verification (probe) and production (producer) units.

Units are built once from the policy document and shared by every
request, see :mod:`redoubt.units.base` for the contract they follow.
"""

from .base import ConstructionError, Probe, Producer, UnitSpec
from .registry import UnitRegistry, build_probe_registry, build_producer_registry

__all__ = [
    "ConstructionError", "Probe", "Producer", "UnitSpec", "UnitRegistry",
    "build_probe_registry", "build_producer_registry",
]
