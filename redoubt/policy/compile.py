"""
Policy compilation.

Turns the raw policies of the policy document into :class:`Policy`
values by building every probe and producer through the unit
registries. Compilation is all-or-nothing: the first unit that cannot
be built aborts the whole run, so the service either starts with every
policy compiled or does not start.
"""
import logging
from typing import Iterable, List

from redoubt.policy.models import Policy, RawPolicy
from redoubt.units.base import ConstructionError
from redoubt.units.registry import UnitRegistry

logger = logging.getLogger(__name__)


class CompilationError(Exception):
    """Exception raised during policy compilation."""

    def __init__(self, policy: str, path: str, message: str):
        self.policy = policy
        self.path = path
        self.message = message
        super().__init__(f"policy '{policy}' {path}: {message}")


class PolicyCompiler:
    """
    Compiles raw policies against a probe and a producer registry.

    Args:
        probes: Registry used for ``verify`` entries
        producers: Registry used for ``produce`` entries
    """

    def __init__(self, probes: UnitRegistry, producers: UnitRegistry):
        self.probes = probes
        self.producers = producers

    def compile(self, raw_policies: Iterable[RawPolicy]) -> List[Policy]:
        """
        Compile policies in input order.

        Raises:
            CompilationError: On the first unit that cannot be constructed
        """
        policies = []
        for index, raw in enumerate(raw_policies):
            policies.append(self._compile_policy(index, raw))
        logger.info("Compiled %d policies", len(policies))
        return policies

    def _compile_policy(self, index: int, raw: RawPolicy) -> Policy:
        verify = []
        for i, unit in enumerate(raw.verify):
            verify.append(self._construct(self.probes, raw.name, f"/policies/{index}/verify/{i}", unit))

        produce = []
        for i, unit in enumerate(raw.produce):
            produce.append(self._construct(self.producers, raw.name, f"/policies/{index}/produce/{i}", unit))

        policy = Policy(name=raw.name, verify=tuple(verify), produce=tuple(produce))
        logger.debug("Compiled policy %r", policy)
        return policy

    @staticmethod
    def _construct(registry: UnitRegistry, policy: str, path: str, unit):
        try:
            return registry.construct(unit.type, unit.fields())
        except ConstructionError as e:
            raise CompilationError(policy, path, str(e)) from e


def compile_policies(raw_policies: Iterable[RawPolicy],
                     probes: UnitRegistry,
                     producers: UnitRegistry) -> List[Policy]:
    """
    Compile raw policies with the given registries.

    Raises:
        CompilationError: On the first unit that cannot be constructed
    """
    return PolicyCompiler(probes, producers).compile(raw_policies)
