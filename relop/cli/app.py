from __future__ import annotations

import os
from pathlib import Path

import typer

from relop import __version__
from relop.cli.commands.artifacts_cmds import collect, stamp, verify
from relop.cli.commands.inspect_cmds import deduce, detect
from relop.cli.commands.run_cmd import run
from relop.cli.context import CONFIG_ENV, QUIET_ENV
from relop.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(run)
app.command()(detect)
app.command()(deduce)
app.command()(collect)
app.command()(stamp)
app.command()(verify)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (defaults to ./relop.toml when present)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors and outputs."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV] = str(path)

    if quiet:
        os.environ[QUIET_ENV] = "1"


def main() -> None:
    app()
