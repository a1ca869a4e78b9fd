"""
Built-in probes.

Each probe checks one aspect of the asserted identity. Probes keep no
state beyond their compiled spec, so a single instance serves every
request.
"""
import re
from typing import List

from pydantic import Field, field_validator, model_validator

from redoubt.interpolation import Environment

from .base import Probe, UnitSpec


class MachineNameSpec(UnitSpec):
    pattern: str = Field(description="Regular expression the whole machine name must match")

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except (re.error, OverflowError) as e:
            raise ValueError(f"invalid regular expression: {e}")
        return v


class MachineNameProbe(Probe):
    """Passes when the machine name fully matches ``pattern``."""

    type = "machine_name"
    Spec = MachineNameSpec

    def __init__(self, spec: MachineNameSpec):
        super().__init__(spec)
        self._regex = re.compile(spec.pattern)

    def verify(self, env: Environment) -> bool:
        return self._regex.fullmatch(env.machine.name) is not None


class UserSpec(UnitSpec):
    names: List[str] = Field(default_factory=list, description="Allowed user names")
    groups: List[str] = Field(default_factory=list, description="Allowed user groups")

    @model_validator(mode="after")
    def _not_empty(self) -> "UserSpec":
        if not self.names and not self.groups:
            raise ValueError("at least one of 'names' or 'groups' is required")
        return self


class UserProbe(Probe):
    """Passes when the user is listed by name or belongs to a listed group."""

    type = "user"
    Spec = UserSpec

    def __init__(self, spec: UserSpec):
        super().__init__(spec)
        self._names = frozenset(spec.names)
        self._groups = frozenset(spec.groups)

    def verify(self, env: Environment) -> bool:
        if env.user.name in self._names:
            return True
        return not self._groups.isdisjoint(env.user.groups)


class LabelSpec(UnitSpec):
    key: str = Field(min_length=1)
    values: List[str] = Field(min_length=1, description="Accepted label values")


class LabelProbe(Probe):
    """Passes when machine label ``key`` carries one of ``values``."""

    type = "label"
    Spec = LabelSpec

    def __init__(self, spec: LabelSpec):
        super().__init__(spec)
        self._values = frozenset(spec.values)

    def verify(self, env: Environment) -> bool:
        value = env.machine.labels.get(self.spec.key)
        return value is not None and value in self._values
