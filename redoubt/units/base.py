"""
Base interfaces for probes and producers.

Every unit is constructed once at startup from its section of the policy
document and then invoked concurrently by many requests. Implementations
must therefore be stateless after construction, or synchronise any state
they keep themselves: the dispatcher takes no locks.
"""
from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Mapping, Tuple, Type

from pydantic import BaseModel, ConfigDict

from redoubt.api.models import Product, Task
from redoubt.interpolation import Environment


class UnitSpec(BaseModel):
    """Type-specific fields of a unit. Unknown fields are rejected."""
    model_config = ConfigDict(extra="forbid", frozen=True)


class ConstructionError(Exception):
    """Exception raised when a unit cannot be built from its spec."""

    def __init__(self, kind: str, tag: str, message: str):
        self.kind = kind
        self.tag = tag
        self.message = message
        super().__init__(f"{kind} '{tag}': {message}")


class Unit(ABC):
    """Common construction contract of probes and producers."""

    type: ClassVar[str]
    Spec: ClassVar[Type[UnitSpec]] = UnitSpec

    def __init__(self, spec: UnitSpec):
        self.spec = spec

    @classmethod
    def from_config(cls, fields: Mapping[str, Any]) -> "Unit":
        """
        Validate ``fields`` against the unit's Spec and build the unit.

        Raises:
            pydantic.ValidationError: If a field is missing, unknown or invalid
            ValueError: If the unit rejects an otherwise well-formed spec
        """
        return cls(cls.Spec.model_validate(dict(fields)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.spec!r})"


class Probe(Unit):
    """Decides whether an identity satisfies a condition."""

    @abstractmethod
    def verify(self, env: Environment) -> bool:
        """
        Check ``env``.

        Returns:
            True when the identity passes

        Raises:
            Exception: If the check itself could not be carried out
        """


class Producer(Unit):
    """Emits tasks and products for an identity."""

    @abstractmethod
    def produce(self, env: Environment) -> Tuple[List[Task], List[Product]]:
        """
        Generate output for ``env``. Must not modify ``env``.

        Raises:
            Exception: If output cannot be generated
        """
