# src/matchmaker/apps/cli/commands/config.py
from __future__ import annotations
import json
from pathlib import Path

import typer
from rich import print

from matchmaker.config import const
from matchmaker.apps.cli.errors import run_safe
from matchmaker.services.settings import Settings, init_config_file

app = typer.Typer(help="Inspect or create the matchmaker configuration")


@app.command("show")
@run_safe
def show(ctx: typer.Context):
    """Print the effective configuration (defaults + file + ENV)."""
    opts = ctx.obj or {}
    settings = Settings.from_sources(opts.get("config_file"), opts.get("env_file"))
    typer.echo(json.dumps(settings.to_dict(), indent=2))


@app.command("init")
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write a config file with the default values."""
    opts = ctx.obj or {}
    path = Path(opts.get("config_file") or const.CONFIG_FILE)
    if path.exists() and not force:
        print(f"[yellow]{path} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)
    init_config_file(path)
    print(f"[green]written: {path}[/green]")
