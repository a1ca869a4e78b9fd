"""
Policy models.

Raw models mirror the YAML policy document and are validated strictly:
unknown keys are rejected everywhere except inside a unit, whose extra
fields belong to the unit type and are checked by that unit's own spec.
The compiled :class:`Policy` holds live probe and producer instances.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from redoubt.units.base import Probe, Producer


class RawUnitSpec(BaseModel):
    """A probe or producer entry: a ``type`` tag plus type-specific fields."""
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = Field(min_length=1, description="Registered unit type tag")

    def fields(self) -> Dict[str, Any]:
        """Type-specific fields, without the ``type`` tag."""
        return dict(self.model_extra or {})


class RawPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    verify: List[RawUnitSpec] = Field(default_factory=list, description="Probes, evaluated in order")
    produce: List[RawUnitSpec] = Field(default_factory=list, description="Producers, invoked in order")


class PolicyConfig(BaseModel):
    """Top level of the policy document."""
    model_config = ConfigDict(extra="forbid")

    policies: List[RawPolicy] = Field(default_factory=list)

    @field_validator("policies")
    @classmethod
    def _unique_names(cls, v: List[RawPolicy]) -> List[RawPolicy]:
        seen = set()
        for policy in v:
            if policy.name in seen:
                raise ValueError(f"duplicate policy name '{policy.name}'")
            seen.add(policy.name)
        return v


@dataclass(frozen=True)
class Policy:
    """A compiled policy. Immutable for the lifetime of the process."""
    name: str
    verify: Tuple[Probe, ...] = ()
    produce: Tuple[Producer, ...] = ()
