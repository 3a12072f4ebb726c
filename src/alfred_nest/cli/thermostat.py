"""CLI: nst status|refresh|temp|mode|presence|devices

Every command that changes something reads through the cache first, writes
straight to Nest, then invalidates the cache so the next read re-syncs.
"""

import logging
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from alfred_nest.errors import DeviceNotFound, PersistenceError
from alfred_nest.models.account import HvacMode, Presence, Thermostat
from alfred_nest.nest import choose_bound
from alfred_nest.temperature import Scale, Temperature

logger = logging.getLogger(__name__)
console = Console()


def _get_context():
    from alfred_nest.cli.main import _get_context
    return _get_context()


def _invalidate(ctx) -> None:
    try:
        ctx.cache.invalidate()
    except PersistenceError:
        # Nest already has the new value; only the local cache is behind.
        logger.error("Change applied on Nest, but the cache could not be invalidated")
        raise


def _target_summary(thermostat: Thermostat, scale: Scale) -> str:
    if thermostat.hvac_mode == HvacMode.RANGE:
        low = thermostat.target_temperature_low(scale)
        high = thermostat.target_temperature_high(scale)
        return f"Target is {low} to {high}"
    if thermostat.hvac_mode == HvacMode.HEAT:
        return f"Heating to {thermostat.target_temperature(scale)}"
    if thermostat.hvac_mode == HvacMode.COOL:
        return f"Cooling to {thermostat.target_temperature(scale)}"
    return "Heating and cooling are off"


@click.command("status")
def status():
    """Show your default Nest at a glance."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat()
    structure = ctx.cache.structure_for(thermostat)
    presence = structure.away.value if structure else "unknown"
    console.print(f"[bold]{thermostat.name or thermostat.device_id}[/bold]")
    console.print(
        f"Temp: {thermostat.ambient_temperature(ctx.tokens.scale)}, "
        f"Humidity: {thermostat.humidity:g}%, "
        f"Mode: {thermostat.hvac_mode.value}, "
        f"Presence: {presence}"
    )


@click.command("refresh")
def refresh():
    """Refresh status from Nest.com."""
    ctx = _get_context()
    with console.status("Refreshing..."):
        ctx.cache.refresh()
    console.print("[green]All freshened up![/green]")


@click.command("temp")
@click.argument("value", type=float, required=False)
def temp(value: Optional[float]):
    """View and adjust your default Nest's temperature."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat()
    scale = ctx.tokens.scale
    current = thermostat.ambient_temperature(scale)

    if value is None:
        console.print(_target_summary(thermostat, scale))
        console.print(f"[dim]Current temperature is {current}[/dim]")
        return

    target = Temperature(value=value, scale=scale)
    bound = choose_bound(thermostat, target)
    with ctx.open_session() as session:
        accepted = session.set_target_temperature(thermostat.device_id, target, bound)
    console.print(f"[green]Set temperature to {accepted}[/green]")
    _invalidate(ctx)


@click.command("mode")
@click.argument("new_mode", metavar="MODE", required=False, type=click.Choice([m.value for m in HvacMode]))
def mode(new_mode: Optional[str]):
    """Show or set your Nest's heat/cool mode."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat()

    if new_mode is None:
        console.print(f"Mode: {thermostat.hvac_mode.value}")
        return

    with ctx.open_session() as session:
        session.set_hvac_mode(thermostat.device_id, HvacMode(new_mode))
    console.print(f"[green]Set mode to {new_mode}[/green]")
    _invalidate(ctx)


@click.command("presence")
@click.argument("state", required=False, type=click.Choice([p.value for p in Presence]))
def presence(state: Optional[str]):
    """Tell Nest whether you're home or away."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    thermostat = ctx.cache.thermostat()
    structure = ctx.cache.structure_for(thermostat)
    if structure is None:
        raise DeviceNotFound(f"No structure found for '{thermostat.name}'")

    if state is None:
        console.print(f"Presence: {structure.away.value}")
        return

    with ctx.open_session() as session:
        session.set_presence(structure.structure_id, Presence(state))
    console.print(f"[green]Set presence to {state}[/green]")
    _invalidate(ctx)


@click.command("devices")
def devices():
    """List the thermostats on your account."""
    ctx = _get_context()
    ctx.cache.ensure_fresh()
    selected = ctx.tokens.config.selected_device_id
    table = Table(title="Thermostats")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("SW")
    table.add_column("Scale")
    for t in ctx.cache.cache.account.devices.thermostats.values():
        name = f"{t.name} *" if t.device_id == selected else t.name
        table.add_row(t.device_id, name, "Online" if t.is_online else "Offline", t.software_version, t.scale_name)
    console.print(table)
