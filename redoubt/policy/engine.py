"""
Harvest dispatcher.

Runs one request's environment through the compiled policies and
aggregates what their producers emit. For each policy, in order:

1. Its probes are evaluated in declared order. All must pass; the first
   one that does not skips the policy. A probe that raises aborts the
   request with :class:`ProbeError`.
2. Its producers are invoked in declared order and their tasks and
   products appended to the response.

The first producer failure aborts the request with
:class:`ProducerError`. Output gathered before the failure is dropped:
callers get either the complete response or an error, never a mix.
"""
import logging
from typing import Iterable, Tuple

from redoubt.api.models import HarvestResponse, Product, Task
from redoubt.interpolation import Environment
from redoubt.policy.models import Policy

logger = logging.getLogger(__name__)


class HarvestError(Exception):
    """A unit failed while serving a harvest request."""

    stage = "unit"

    def __init__(self, policy: str, unit: str, message: str):
        self.policy = policy
        self.unit = unit
        self.message = message
        super().__init__(f"policy '{policy}' {self.stage} '{unit}': {message}")


class ProbeError(HarvestError):
    stage = "probe"


class ProducerError(HarvestError):
    stage = "producer"


class HarvestDispatcher:
    """
    Executes compiled policies against request environments.

    The policy tuple is shared by every concurrent request and never
    modified; per-request state lives only inside :meth:`dispatch`.
    """

    def __init__(self, policies: Iterable[Policy]):
        self._policies: Tuple[Policy, ...] = tuple(policies)

    @property
    def policies(self) -> Tuple[Policy, ...]:
        return self._policies

    def dispatch(self, env: Environment) -> HarvestResponse:
        """
        Harvest tasks and products for ``env``.

        Raises:
            ProbeError: If a probe raised while checking ``env``
            ProducerError: If a producer failed
        """
        response = HarvestResponse()
        for policy in self._policies:
            if not self._verify(policy, env):
                logger.info("Policy '%s' skipped for machine '%s' user '%s'",
                            policy.name, env.machine.name, env.user.name)
                continue

            for producer in policy.produce:
                try:
                    tasks, products = producer.produce(env)
                    response.tasks.extend(Task.model_validate(t) for t in tasks)
                    response.products.extend(Product.model_validate(p) for p in products)
                except Exception as e:
                    logger.warning("Producer '%s' of policy '%s' failed: %s",
                                   producer.type, policy.name, e)
                    raise ProducerError(policy.name, producer.type, str(e)) from e

        logger.debug("Harvest for machine '%s' user '%s': %d tasks, %d products",
                     env.machine.name, env.user.name,
                     len(response.tasks), len(response.products))
        return response

    @staticmethod
    def _verify(policy: Policy, env: Environment) -> bool:
        for probe in policy.verify:
            try:
                passed = probe.verify(env)
            except Exception as e:
                logger.warning("Probe '%s' of policy '%s' failed: %s",
                               probe.type, policy.name, e)
                raise ProbeError(policy.name, probe.type, str(e)) from e
            if not passed:
                logger.debug("Probe '%s' of policy '%s' rejected machine '%s'",
                             probe.type, policy.name, env.machine.name)
                return False
        return True
