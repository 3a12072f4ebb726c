"""CLI: nst authorize|serve|logout"""

import logging
import sys
from typing import Optional

import click
from rich.console import Console

from alfred_nest.auth import EXIT_IN_PROGRESS, READY_LINE, AuthState, authorize_url, new_state, spawn_callback_server
from alfred_nest.errors import AuthorizationInProgress, NestError

logger = logging.getLogger(__name__)
console = Console()
err_console = Console(stderr=True)


def _get_context():
    from alfred_nest.cli.main import _get_context
    return _get_context()


@click.command("authorize")
def authorize():
    """Authorize this workflow to access your Nest."""
    ctx = _get_context()
    settings = ctx.settings
    if not settings.client_id or not settings.client_secret:
        raise NestError("missing_client", "NEST_CLIENT_ID and NEST_CLIENT_SECRET must be set.")

    state = new_state()
    with console.status("Starting authorization listener..."):
        spawn_callback_server(state)
    url = authorize_url(settings.client_id, state, settings.authorize_url)
    click.launch(url)
    console.print("[green]Finish logging in to Nest in your browser.[/green]")
    console.print(f"[dim]{url}[/dim]")


@click.command("serve")
@click.option("--state", default=None, help="State value the callback must carry")
def serve(state: Optional[str]):
    """Wait for one OAuth callback and store the token (run by `authorize`)."""
    server = _get_context().callback_server(expected_state=state)
    try:
        server.listen()
    except AuthorizationInProgress as e:
        logger.error("%s", e)
        sys.exit(EXIT_IN_PROGRESS)

    # The parent stops reading after this line; everything else goes to stderr.
    click.echo(f"{READY_LINE} on http://localhost:{server.port}/authorize")
    sys.stdout.flush()

    result = server.serve_once()
    if result == AuthState.SUCCESS:
        err_console.print("[green]Authorization was successful![/green]")
        return
    err_console.print(f"[red]Authorization failed: {server.error}[/red]")
    sys.exit(1)


@click.command("logout")
def logout():
    """Forget the stored access token."""
    _get_context().tokens.clear()
    console.print("[green]Logged out.[/green]")
