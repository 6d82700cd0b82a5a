"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from ikecmd import __version__
from ikecmd.config import IkeCmdConfig


@click.group()
@click.version_option(version=__version__, prog_name="ikecmd")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """ikecmd — set up an IPsec VPN connection from the command line."""
    ctx.ensure_object(dict)
    try:
        config = IkeCmdConfig.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from None
    config.verbose = verbose
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from ikecmd.cli.connect import connect  # noqa: F811
    from ikecmd.cli.profiles import profiles  # noqa: F811

    main.add_command(connect)
    main.add_command(profiles)


_register_commands()
