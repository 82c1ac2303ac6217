"""`gomu` synchronizes Go module dependencies across local repositories."""

from __future__ import annotations

import logging
import sys

import click

from . import config, dispatch, util
from .console import Console
from .exceptions import ConfigurationError, ParseError
from .parser import parse_args
from .registry import REGISTRY
from .usage import format_usage

DESCRIPTION = __doc__

logger = logging.getLogger(__name__)


def report_parse_error(ex: ParseError) -> None:
    click.echo(format_usage(REGISTRY))
    click.echo(f"\nError parsing arguments: {ex}", err=True)


@click.command(
    "gomu",
    help=DESCRIPTION,
    add_help_option=False,
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": True,
    },
)
# click still consumes a bare "--"; gomu has no use for it, so
# ``gomu -- sync`` is the same as ``gomu sync``.
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(ctx: click.Context, args: tuple[str, ...]) -> None:
    try:
        options = parse_args(args, registry=REGISTRY)
    except ParseError as ex:
        logger.debug("Failed to parse %s (token=%r)", args, ex.token)
        report_parse_error(ex)
        ctx.exit(dispatch.EXIT_FAILURE)

    config.configure_logging(options.log_level)
    logger.debug("Parsed options: %s", options)

    try:
        context = config.build_context(options.log_level)
    except ConfigurationError as ex:
        Console(options.log_level).error(str(ex))
        ctx.exit(dispatch.EXIT_FAILURE)

    if options.name_only and util.stdin_is_piped():
        util.passthrough_stdin()

    ctx.exit(dispatch.dispatch(options, context))


def main() -> None:
    """Primary entrypoint for gomu."""
    cli(args=sys.argv[1:], prog_name="gomu", auto_envvar_prefix=config.AUTO_ENVVAR_PREFIX)


if __name__ == "__main__":
    main()
