"""Read-only commands: show what a run would decide without side effects."""

from __future__ import annotations

import typer

from relop.cli.commands._helpers import apply_overrides, build_host, exit_on_error, validated
from relop.cli.context import build_context
from relop.release.signal import detect as detect_signal
from relop.release.versioning import deduce as deduce_tag


def detect(
    repo: str | None = typer.Option(None, "--repo", help="Repository (owner/name)"),
    sha: str | None = typer.Option(None, "--sha", help="Commit to inspect"),
    label: str | None = typer.Option(None, "--label", help="Label that requests a release"),
) -> None:
    """Show whether the change merged as SHA requested a release."""
    ctx = build_context()
    config = validated(apply_overrides(ctx.config, repo=repo, sha=sha, label=label), ctx)
    commit = exit_on_error(config.require_sha(), ctx)
    host = build_host(config, ctx)

    signal = exit_on_error(
        detect_signal(
            host=host,
            sha=commit,
            label=config.label,
            default_bump=config.bump,
            bump_labels=config.bump_labels,
        ),
        ctx,
    )

    typer.echo(f"requested={'true' if signal.requested else 'false'}")
    typer.echo(f"change={signal.change_number or ''}")
    typer.echo(f"bump={signal.bump}")


def deduce(
    repo: str | None = typer.Option(None, "--repo", help="Repository (owner/name)"),
    sha: str | None = typer.Option(None, "--sha", help="Commit to inspect"),
    label: str | None = typer.Option(None, "--label", help="Label that requests a release"),
) -> None:
    """Print the tag a run would mint for SHA (nothing if no release was requested)."""
    ctx = build_context()
    config = validated(apply_overrides(ctx.config, repo=repo, sha=sha, label=label), ctx)
    commit = exit_on_error(config.require_sha(), ctx)
    host = build_host(config, ctx)

    signal = exit_on_error(
        detect_signal(
            host=host,
            sha=commit,
            label=config.label,
            default_bump=config.bump,
            bump_labels=config.bump_labels,
        ),
        ctx,
    )
    if not signal.requested:
        ctx.console.info("no release requested")
        return

    tags = exit_on_error(host.list_tags(), ctx)
    tag = exit_on_error(
        deduce_tag(signal=signal, prior_tags=tags, initial_version=config.initial_version),
        ctx,
    )
    if tag is not None:
        typer.echo(tag)
