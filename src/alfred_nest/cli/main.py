"""
alfred-nest CLI — `nst` command.

Commands:
  nst authorize            Log in to Nest in the browser
  nst status               Default thermostat at a glance
  nst temp [VALUE]         Show or set the target temperature
  nst mode [MODE]          Show or set heat/cool mode
  nst presence [STATE]     Show or set home/away
  nst devices              List thermostats
  nst config <cmd>         Workflow settings
  nst refresh              Re-sync with Nest now
"""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from alfred_nest import __version__
from alfred_nest.context import Context, Settings
from alfred_nest.errors import NestError, NotAuthorized

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _get_context() -> Context:
    return click.get_current_context().find_object(Context)


class NestGroup(click.Group):
    """Turns core errors into a red message and exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except NotAuthorized as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
        except NestError as e:
            console.print(f"[red]Error communicating with Nest: {e}[/red]")
            sys.exit(1)


@click.group(cls=NestGroup)
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Alfred Nest — control your Nest thermostat."""
    _setup_logging(verbose)
    if ctx.obj is None:
        ctx.obj = Context(Settings.from_env())


# Register subcommands from separate modules
from alfred_nest.cli.auth import authorize, logout, serve
from alfred_nest.cli.config import config
from alfred_nest.cli.thermostat import devices, mode, presence, refresh, status, temp

main.add_command(authorize)
main.add_command(serve)
main.add_command(logout)
main.add_command(config)
main.add_command(status)
main.add_command(refresh)
main.add_command(temp)
main.add_command(mode)
main.add_command(presence)
main.add_command(devices)


if __name__ == "__main__":
    main()
