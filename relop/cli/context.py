from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relop.core.errors import ErrorCode
from relop.core.result import Err
from relop.output.console import ConsoleProtocol, RichConsole
from relop.release.config import OperatorConfig, resolve_config

# Set by the root callback so every command sees the global options.
CONFIG_ENV = "RELOP_CONFIG"
QUIET_ENV = "RELOP_QUIET"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace_root: Path
    config: OperatorConfig
    console: ConsoleProtocol


def build_context() -> CLIContext:
    root = Path.cwd()
    config_path = os.environ.get(CONFIG_ENV) or None

    config_result = resolve_config(
        path=Path(config_path) if config_path else None,
        env=os.environ,
        cwd=root,
    )
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.pretty()}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        workspace_root=root,
        config=config_result.value,
        console=RichConsole(quiet=os.environ.get(QUIET_ENV) == "1"),
    )
