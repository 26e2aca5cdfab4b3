# src/matchmaker/apps/cli/errors.py
from __future__ import annotations

import functools
import os
import traceback

import typer

from matchmaker.services.settings import ConfigError


def run_safe(func):
    """Turn a ``ConfigError`` into a one-line message and exit code 2."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            if os.getenv("MATCHMAKER_CLI_DEBUG") == "1":
                traceback.print_exc()
            typer.echo(f"config error: {e}", err=True)
            raise typer.Exit(2)

    return wrapper
