import click
import logging

from redoubt.config import settings
from redoubt.utils.logging import setup_logging

from .harvest import harvest_cmd
from .policies import policies_cli
from .serve import serve_cmd


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enables verbose mode.')
@click.option('--quiet', '-q', is_flag=True, help='Enables quiet mode.')
@click.pass_context
def app(ctx, verbose, quiet):
    """
    redoubt - policy-driven harvest service.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = settings.LOG_LEVEL
    setup_logging(force=True, level=level, fmt=settings.LOG_FORMAT)
    logging.getLogger(__name__).debug("Log level set to %s", level)


# Add subcommands
app.add_command(serve_cmd, name='serve')
app.add_command(policies_cli, name='policies')
app.add_command(harvest_cmd, name='harvest')

if __name__ == '__main__':
    app()
