"""
Unit Registry.

Maps the ``type`` tag of a unit in the policy document to the constructor
that builds it. There is one registry for probes and one for producers;
both are populated once at startup by :func:`build_probe_registry` and
:func:`build_producer_registry`.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping

from pydantic import ValidationError

from .base import ConstructionError, Unit

logger = logging.getLogger(__name__)

Constructor = Callable[[Mapping[str, Any]], Unit]


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic error into ``/field: message`` pairs."""
    issues = []
    for item in error.errors():
        path = "/" + "/".join(str(part) for part in item["loc"])
        issues.append(f"{path}: {item['msg']}")
    return "; ".join(issues)


class UnitRegistry:
    """
    Fixed mapping from type tag to unit constructor.

    Args:
        kind: Human readable unit family ("probe" or "producer"), used in errors
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._constructors: Dict[str, Constructor] = {}

    def register(self, tag: str, constructor: Constructor) -> None:
        """
        Registers a constructor under ``tag``.

        Raises:
            ValueError: If ``tag`` is already registered
        """
        if tag in self._constructors:
            raise ValueError(f"{self.kind} type '{tag}' is already registered")
        self._constructors[tag] = constructor
        logger.debug("Registered %s type: %s", self.kind, tag)

    def tags(self) -> List[str]:
        return sorted(self._constructors)

    def __contains__(self, tag: object) -> bool:
        return tag in self._constructors

    def construct(self, tag: str, fields: Mapping[str, Any]) -> Unit:
        """
        Builds a unit of type ``tag`` from its type-specific ``fields``.

        Raises:
            ConstructionError: If the tag is unknown or the spec is invalid
        """
        constructor = self._constructors.get(tag)
        if constructor is None:
            raise ConstructionError(
                self.kind, tag,
                f"unknown {self.kind} type (known: {', '.join(self.tags()) or 'none'})",
            )
        try:
            return constructor(fields)
        except ValidationError as e:
            raise ConstructionError(self.kind, tag, describe_validation_error(e)) from e
        except ValueError as e:
            raise ConstructionError(self.kind, tag, str(e)) from e
        except Exception as e:
            raise ConstructionError(self.kind, tag, f"{type(e).__name__}: {e}") from e


def build_probe_registry() -> UnitRegistry:
    """Returns a registry holding all built-in probes."""
    from .probes import LabelProbe, MachineNameProbe, UserProbe

    registry = UnitRegistry("probe")
    for cls in (MachineNameProbe, UserProbe, LabelProbe):
        registry.register(cls.type, cls.from_config)
    logger.debug("Probe registry initialized: %s", registry.tags())
    return registry


def build_producer_registry() -> UnitRegistry:
    """Returns a registry holding all built-in producers."""
    from .producers import FileProducer, StaticProducer

    registry = UnitRegistry("producer")
    for cls in (StaticProducer, FileProducer):
        registry.register(cls.type, cls.from_config)
    logger.debug("Producer registry initialized: %s", registry.tags())
    return registry
