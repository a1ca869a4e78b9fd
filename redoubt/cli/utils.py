import functools
import logging
import sys
from typing import List

from rich.console import Console
from rich.markup import escape

from redoubt.policy.compile import CompilationError, compile_policies
from redoubt.policy.loader import ConfigError, load_config_file
from redoubt.policy.models import Policy
from redoubt.units.registry import build_probe_registry, build_producer_registry

console = Console()
logger = logging.getLogger(__name__)


def load_policies(config_file: str) -> List[Policy]:
    """Load the policy document and compile it with the built-in units."""
    config = load_config_file(config_file)
    logger.info("Config: %s", config.model_dump_json())
    policies = compile_policies(config.policies, build_probe_registry(), build_producer_registry())
    logger.info("Policies: %r", policies)
    return policies


def handle_startup_errors(func):
    """Decorator turning config and compilation errors into exit status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            logger.error("Can't load config: %s", e)
            console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
            sys.exit(1)
        except CompilationError as e:
            logger.error("Can't initialize policies: %s", e)
            console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
            sys.exit(1)
    return wrapper
