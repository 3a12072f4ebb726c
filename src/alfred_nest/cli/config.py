"""CLI: nst config show|nest|scale|device-scale"""

import click
from rich.console import Console

from alfred_nest.cli.thermostat import _invalidate
from alfred_nest.temperature import Scale

console = Console()


def _get_context():
    from alfred_nest.cli.main import _get_context
    return _get_context()


def _parse_scale(value: str) -> Scale:
    try:
        return Scale.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
def config():
    """Set workflow options."""


@config.command("show")
def config_show():
    """Show the current settings."""
    ctx = _get_context()
    cfg = ctx.tokens.config
    console.print(f"Default Nest: {cfg.selected_device_id or '[dim]none[/dim]'}")
    console.print(f"Scale: {ctx.tokens.scale.label}")
    if ctx.tokens.is_authorized():
        console.print(f"[green]Authorized[/green] until {cfg.access_expiry.isoformat()}")
    else:
        console.print("[yellow]Not authorized. Run `nst authorize`.[/yellow]")


@config.command("nest")
@click.argument("name")
def config_nest(name: str):
    """Select your default Nest by name or device ID."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat_by_name(name)
    ctx.tokens.select_device(thermostat.device_id)
    console.print(f"[green]Set default Nest to '{thermostat.name}'[/green]")


@config.command("scale")
@click.argument("value")
def config_scale(value: str):
    """Select the temperature scale used in this workflow (C or F)."""
    scale = _parse_scale(value)
    _get_context().tokens.set_scale(scale)
    console.print(f"[green]Using {scale.label} scale[/green]")


@config.command("device-scale")
@click.argument("value")
def config_device_scale(value: str):
    """Change the scale your default Nest itself displays."""
    scale = _parse_scale(value)
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat()
    with ctx.open_session() as session:
        session.set_temperature_scale(thermostat.device_id, scale)
    console.print(f"[green]{thermostat.name} now displays {scale.label}[/green]")
    _invalidate(ctx)
