"""Engine configuration commands: show, set and unset."""

from __future__ import annotations

from typing import Any

import typer

from . import config, config_manager
from .cli_groups import config_grp


def _coerce(key: str, value: str) -> Any:
    if key == "default_depth":
        try:
            depth = int(value)
        except ValueError:
            raise typer.BadParameter("default_depth must be an integer") from None
        if depth < 1:
            raise typer.BadParameter("default_depth must be positive")
        return depth
    if key == "timeout":
        try:
            seconds = float(value)
        except ValueError:
            raise typer.BadParameter("timeout must be a number of seconds") from None
        if seconds <= 0:
            raise typer.BadParameter("timeout must be positive")
        return seconds
    return value


@config_grp.command("show")
def show_config():
    """Show the engine configuration in effect."""
    cfg = config_manager.load_engine_config()

    typer.echo("")
    typer.echo(typer.style("  🔧 Engine Configuration", bold=True))
    typer.echo(typer.style("  ─────────────────────────────────────────", dim=True))
    not_set = typer.style("(probe default locations)", dim=True)
    typer.echo(f"  JAR        {cfg.jar_path or not_set}")
    typer.echo(f"  Java home  {cfg.java_home or not_set}")
    typer.echo(f"  Depth      {typer.style(str(cfg.default_depth), bold=True)}")
    timeout = f"{cfg.timeout:g}s" if cfg.timeout else typer.style("(none)", dim=True)
    typer.echo(f"  Timeout    {timeout}")
    typer.echo(f"  Config     {typer.style(str(config.CONFIG_FILE), dim=True)}")
    typer.echo("")


@config_grp.command("set")
def set_config(
    key: str = typer.Argument(..., help=f"One of: {', '.join(config_manager.ENGINE_KEYS)}."),
    value: str = typer.Argument(..., help="New value."),
):
    """Set an engine setting."""
    if key not in config_manager.ENGINE_KEYS:
        raise typer.BadParameter(f"Unknown setting '{key}'. Choose from: {', '.join(config_manager.ENGINE_KEYS)}")
    if not config_manager.save_engine_config(**{key: _coerce(key, value)}):
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ Set engine.{key} = {value}")


@config_grp.command("unset")
def unset_config(
    key: str = typer.Argument(..., help=f"One of: {', '.join(config_manager.ENGINE_KEYS)}."),
):
    """Remove an engine setting so the default applies again."""
    if key not in config_manager.ENGINE_KEYS:
        raise typer.BadParameter(f"Unknown setting '{key}'. Choose from: {', '.join(config_manager.ENGINE_KEYS)}")
    if not config_manager.save_engine_config(**{key: None}):
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed engine.{key}")
