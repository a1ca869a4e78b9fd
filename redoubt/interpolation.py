"""
Request environment and ``${...}`` template rendering.

The environment is the identity a single harvest request is evaluated
against. It is built fresh for every request and frozen, so probes and
producers can read it but never change it.
"""
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

from redoubt.api.models import HarvestRequest, MachineIdentity, UserIdentity

# "$$" is an escaped literal "$", so "$${HOME}" renders as "${HOME}".
PLACEHOLDER = re.compile(r"\$\$|\$\{([^{}]*)\}")

# Placeholder paths a template may use. ``machine.labels.<key>`` is open-ended.
_SCALAR_PATHS = {
    "machine.name",
    "machine.addresses",
    "user.name",
    "user.groups",
}
_LABEL_PREFIX = "machine.labels."


class InterpolationError(ValueError):
    """Raised when a template cannot be parsed or rendered."""


class Environment(BaseModel):
    """Identity context handed to every probe and producer of a request."""
    model_config = ConfigDict(frozen=True)

    machine: MachineIdentity
    user: UserIdentity


def build_environment(request: HarvestRequest) -> Environment:
    """Build the per-request environment from the asserted identity."""
    return Environment(
        machine=request.machine.model_copy(deep=True),
        user=request.user.model_copy(deep=True),
    )


def _check_path(path: str) -> None:
    if path in _SCALAR_PATHS:
        return
    if path.startswith(_LABEL_PREFIX) and len(path) > len(_LABEL_PREFIX):
        return
    raise InterpolationError(f"unknown placeholder '${{{path}}}'")


def _lookup(env: Environment, path: str) -> str:
    if path.startswith(_LABEL_PREFIX):
        key = path[len(_LABEL_PREFIX):]
        try:
            return env.machine.labels[key]
        except KeyError:
            raise InterpolationError(
                f"machine '{env.machine.name}' has no label '{key}'"
            ) from None

    scope, attr = path.split(".", 1)
    value: Any = getattr(getattr(env, scope), attr)
    if isinstance(value, list):
        return ",".join(value)
    return str(value)


class Template:
    """
    A string with ``${path}`` placeholders, parsed once and rendered per request.

    Placeholder paths are validated when the template is built so that a
    typo in the policy document fails at startup rather than on the first
    request.
    """

    def __init__(self, source: str):
        self.source = source
        self._plain = True
        for match in PLACEHOLDER.finditer(source):
            self._plain = False
            if match.group(1) is None:
                continue
            _check_path(match.group(1).strip())
        # Any "${" left once placeholders and escapes are removed is unclosed.
        if "${" in PLACEHOLDER.sub("", source):
            raise InterpolationError(f"unterminated placeholder in '{source}'")

    def _substitute(self, env: Environment, match: "re.Match[str]") -> str:
        if match.group(1) is None:
            return "$"
        return _lookup(env, match.group(1).strip())

    def render(self, env: Environment) -> str:
        if self._plain:
            return self.source
        return PLACEHOLDER.sub(lambda m: self._substitute(env, m), self.source)

    def __repr__(self) -> str:
        return f"Template({self.source!r})"
