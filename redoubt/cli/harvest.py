import sys

import click
from pydantic import ValidationError
from rich.markup import escape

from redoubt.api.models import HarvestRequest
from redoubt.config import settings
from redoubt.interpolation import build_environment
from redoubt.policy.engine import HarvestDispatcher, HarvestError

from .utils import console, handle_startup_errors, load_policies


def _parse_labels(ctx, param, values):
    labels = {}
    for item in values:
        key, sep, value = item.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{item}'")
        labels[key] = value
    return labels


@click.command(name='harvest')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='Policy document to use.')
@click.option('--machine', required=True, help='Machine name to harvest for.')
@click.option('--user', required=True, help='User name to harvest for.')
@click.option('--address', 'addresses', multiple=True, help='Machine address (repeatable).')
@click.option('--label', 'labels', multiple=True, callback=_parse_labels,
              help='Machine label as key=value (repeatable).')
@click.option('--group', 'groups', multiple=True, help='User group (repeatable).')
@handle_startup_errors
def harvest_cmd(config_file, machine, user, addresses, labels, groups):
    """Runs a harvest locally and prints the response as JSON."""
    try:
        request = HarvestRequest.model_validate({
            "machine": {"name": machine, "addresses": list(addresses), "labels": labels},
            "user": {"name": user, "groups": list(groups)},
        })
    except ValidationError as e:
        raise click.UsageError(str(e))

    dispatcher = HarvestDispatcher(load_policies(config_file or settings.CONFIG_FILE))
    try:
        response = dispatcher.dispatch(build_environment(request))
    except HarvestError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        sys.exit(1)
    click.echo(response.model_dump_json(indent=2))
