"""
Policy system for redoubt.

This package provides:
- Pydantic models for the declarative policy document
- Strict YAML loading of that document
- Compilation of raw policies into executable Policy values
- The harvest dispatcher that runs compiled policies per request
"""

from .models import Policy, PolicyConfig, RawPolicy, RawUnitSpec
from .loader import ConfigError, load_config, load_config_file
from .compile import CompilationError, PolicyCompiler, compile_policies
from .engine import HarvestDispatcher, HarvestError, ProbeError, ProducerError

__all__ = [
    "Policy", "PolicyConfig", "RawPolicy", "RawUnitSpec", "ConfigError",
    "load_config", "load_config_file", "CompilationError", "PolicyCompiler",
    "compile_policies", "HarvestDispatcher", "HarvestError", "ProbeError",
    "ProducerError",
]
