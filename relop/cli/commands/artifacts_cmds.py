"""Local artifact commands; none of them talk to the release host."""

from __future__ import annotations

from pathlib import Path

import typer

from relop.cli.commands._helpers import apply_overrides, exit_on_error, validated
from relop.cli.context import CLIContext, build_context
from relop.release.collector import collect as collect_artifacts
from relop.release.config import OperatorConfig
from relop.release.model import BuildArtifact
from relop.release.stamper import read_entries, stamp as stamp_artifacts, verify as verify_artifacts


def _collected(config: OperatorConfig, ctx: CLIContext) -> tuple[BuildArtifact, ...]:
    return exit_on_error(
        collect_artifacts(
            staging_dir=config.staging_dir,
            project=config.project,
            targets=config.targets,
            timeout=config.collect_timeout,
            poll_interval=config.poll_interval,
            console=ctx.console,
        ),
        ctx,
    )


def _config(
    ctx: CLIContext,
    *,
    staging_dir: Path | None,
    project: str | None,
    targets: list[str] | None,
    timeout: float | None,
    checksum_dir: Path | None = None,
) -> OperatorConfig:
    return validated(
        apply_overrides(
            ctx.config,
            staging_dir=staging_dir,
            project=project,
            targets=targets,
            timeout=timeout,
            checksum_dir=checksum_dir,
        ),
        ctx,
    )


def collect(
    staging_dir: Path | None = typer.Option(None, "--staging-dir", help="Staging directory"),
    project: str | None = typer.Option(None, "--project", help="Project (binary) name"),
    target: list[str] | None = typer.Option(None, "--target", help="Expected platform triple"),
    timeout: float = typer.Option(0.0, "--timeout", help="Seconds to wait (0: check once)"),
) -> None:
    """Check that every expected platform binary is staged."""
    ctx = build_context()
    config = _config(ctx, staging_dir=staging_dir, project=project, targets=target, timeout=timeout)

    for artifact in _collected(config, ctx):
        ctx.console.success(f"{artifact.name}  ({artifact.path})")


def stamp(
    staging_dir: Path | None = typer.Option(None, "--staging-dir", help="Staging directory"),
    project: str | None = typer.Option(None, "--project", help="Project (binary) name"),
    target: list[str] | None = typer.Option(None, "--target", help="Expected platform triple"),
    out_dir: Path | None = typer.Option(
        None, "--out-dir", help="Write checksum files here instead of next to each binary"
    ),
) -> None:
    """Write <artifact>.sha256 for every staged binary."""
    ctx = build_context()
    config = _config(
        ctx,
        staging_dir=staging_dir,
        project=project,
        targets=target,
        timeout=0.0,
        checksum_dir=out_dir,
    )

    artifacts = _collected(config, ctx)
    entries = exit_on_error(
        stamp_artifacts(artifacts=artifacts, console=ctx.console, out_dir=config.checksum_dir),
        ctx,
    )
    for entry in entries:
        ctx.console.success(str(entry.checksum_path))


def verify(
    staging_dir: Path | None = typer.Option(None, "--staging-dir", help="Staging directory"),
    project: str | None = typer.Option(None, "--project", help="Project (binary) name"),
    target: list[str] | None = typer.Option(None, "--target", help="Expected platform triple"),
    out_dir: Path | None = typer.Option(None, "--out-dir", help="Where checksum files live"),
) -> None:
    """Re-hash staged binaries and compare with their checksum files."""
    ctx = build_context()
    config = _config(
        ctx,
        staging_dir=staging_dir,
        project=project,
        targets=target,
        timeout=0.0,
        checksum_dir=out_dir,
    )

    artifacts = _collected(config, ctx)
    entries = exit_on_error(read_entries(artifacts=artifacts, out_dir=config.checksum_dir), ctx)
    exit_on_error(verify_artifacts(artifacts=artifacts, entries=entries), ctx)
    ctx.console.success(f"{len(entries)} checksum(s) verified")
