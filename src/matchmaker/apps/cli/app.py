# src/matchmaker/apps/cli/app.py
from __future__ import annotations

import asyncio
from typing import Optional

import typer

from matchmaker.apps.bootstrap import build_context
from matchmaker.apps.cli.commands import config as config_cmd
from matchmaker.apps.runner import serve as run_broker
from matchmaker.apps.cli.errors import run_safe
from matchmaker.services.settings import Settings

app = typer.Typer(help="Matchmaker: hands out free render nodes to clients", no_args_is_help=True)


# -------- helpers --------


def load_settings(ctx: typer.Context, *, create_missing: bool = False, **overrides) -> Settings:
    opts = ctx.obj or {}
    settings = Settings.from_sources(opts.get("config_file"), opts.get("env_file"), create_missing=create_missing)
    return settings.with_overrides(**overrides)


# -------- root callback --------


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[str] = typer.Option(None, "--config-file", help="YAML/JSON config (default: config.yaml or MATCHMAKER_CONFIG_FILE)"),
    env_file: Optional[str] = typer.Option(".env", "--env-file", help="dotenv file with MATCHMAKER_* variables"),
):
    """Runs before every subcommand: remembers where the configuration comes from."""
    ctx.obj = {"config_file": config_file, "env_file": env_file}


@app.command("serve")
@run_safe
def serve(
    ctx: typer.Context,
    http_port: Optional[int] = typer.Option(None, "--http-port", help="Port clients use for allocation requests"),
    control_port: Optional[int] = typer.Option(None, "--control-port", help="Port render nodes connect to"),
    host: Optional[str] = typer.Option(None, "--host"),
    use_https: Optional[bool] = typer.Option(None, "--use-https/--no-https"),
    log_to_file: Optional[bool] = typer.Option(None, "--log-to-file/--no-log-to-file"),
):
    """Start the control listener and the HTTP allocation endpoints."""
    settings = load_settings(
        ctx,
        create_missing=True,
        http_port=http_port,
        control_port=control_port,
        host=host,
        use_https=use_https,
        log_to_file=log_to_file,
    )
    broker = build_context(settings)
    try:
        asyncio.run(run_broker(broker))
    except KeyboardInterrupt:
        pass


app.add_typer(config_cmd.app, name="config")

if __name__ == "__main__":
    app()
