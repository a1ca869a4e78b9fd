import click
import logging

import uvicorn

from redoubt.app import create_app
from redoubt.config import parse_listen, settings

from .utils import handle_startup_errors, load_policies

logger = logging.getLogger(__name__)


@click.command(name='serve')
@click.option('--listen', default=None, help='Listen for incoming requests there (host:port).')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='Policy document to use.')
@handle_startup_errors
def serve_cmd(listen, config_file):
    """Compiles the policy document and serves the harvest API."""
    listen = listen or settings.LISTEN
    try:
        host, port = parse_listen(listen)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--listen')

    policies = load_policies(config_file or settings.CONFIG_FILE)
    logger.info("Listening on %s", listen)
    uvicorn.run(create_app(policies), host=host, port=port, log_config=None)
