from __future__ import annotations

from pathlib import Path

import typer

from relop.cli.commands._helpers import apply_overrides, build_host, exit_on_error, validated
from relop.cli.context import build_context
from relop.output.console import Style
from relop.release.engine import ReleaseEngine
from relop.release.outputs import format_outputs, write_outputs


def run(
    repo: str | None = typer.Option(None, "--repo", help="Repository (owner/name)"),
    sha: str | None = typer.Option(None, "--sha", help="Pushed commit (defaults to GITHUB_SHA)"),
    label: str | None = typer.Option(None, "--label", help="Label that requests a release"),
    staging_dir: Path | None = typer.Option(
        None, "--staging-dir", help="Directory the build jobs staged binaries into"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Seconds to wait for all artifacts"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Stop before publishing"),
) -> None:
    """Decide, tag, checksum and publish a release for the pushed commit."""
    ctx = build_context()
    config = validated(
        apply_overrides(
            ctx.config,
            repo=repo,
            sha=sha,
            label=label,
            staging_dir=staging_dir,
            timeout=timeout,
        ),
        ctx,
    )
    host = build_host(config, ctx)

    engine = ReleaseEngine(host=host, config=config, console=ctx.console, dry_run=dry_run)
    outcome = exit_on_error(engine.run(), ctx)

    if dry_run:
        for line in format_outputs(outcome).splitlines():
            ctx.console.print(f"(dry-run) {line}", Style.DIM)
        return

    if config.output_path is None:
        typer.echo(format_outputs(outcome), nl=False)
        return
    exit_on_error(write_outputs(outcome, config.output_path), ctx)
