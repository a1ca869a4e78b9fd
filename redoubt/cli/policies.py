import click
from rich.table import Table

from redoubt.config import settings
from redoubt.units.registry import build_probe_registry, build_producer_registry

from .utils import console, handle_startup_errors, load_policies


@click.group(name='policies')
def policies_cli():
    """Policy document commands."""
    pass


@policies_cli.command()
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='Policy document to check.')
@handle_startup_errors
def check(config_file):
    """Compiles the policy document without serving it."""
    policies = load_policies(config_file or settings.CONFIG_FILE)

    table = Table(title="Compiled policies")
    table.add_column("Policy", style="cyan")
    table.add_column("Verify")
    table.add_column("Produce")
    for policy in policies:
        table.add_row(
            policy.name,
            ", ".join(p.type for p in policy.verify) or "-",
            ", ".join(p.type for p in policy.produce) or "-",
        )
    console.print(table)
    console.print(f"[green]OK[/green]: {len(policies)} policies compiled")


@policies_cli.command()
def units():
    """Lists the registered probe and producer types."""
    console.print("[bold blue]Probes[/bold blue]")
    for tag in build_probe_registry().tags():
        console.print(f"  {tag}")
    console.print("[bold blue]Producers[/bold blue]")
    for tag in build_producer_registry().tags():
        console.print(f"  {tag}")
