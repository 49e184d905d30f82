"""Shared helpers for CLI commands."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relop.core.errors import ErrorCode
from relop.core.result import Err, Result
from relop.output.console import Style
from relop.release.config import OperatorConfig
from relop.release.errors import ErrorCategory, ReleaseError
from relop.release.host import GhReleaseHost
from relop.release.model import PlatformTarget

if TYPE_CHECKING:
    from relop.cli.context import CLIContext


T = TypeVar("T")

_CATEGORY_CODES: dict[ErrorCategory, ErrorCode] = {
    "usage": ErrorCode.USER_ERROR,
    "environment": ErrorCode.ENV_ERROR,
    "infrastructure": ErrorCode.NETWORK_ERROR,
    "integrity": ErrorCode.INTEGRITY_ERROR,
    "conflict": ErrorCode.CONFLICT_ERROR,
    "io": ErrorCode.IO_ERROR,
}


def error_code_for(error: ReleaseError) -> ErrorCode:
    return _CATEGORY_CODES[error.category]


def exit_on_error(result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the Ok value, or report the error and exit with its category code."""
    if isinstance(result, Err):
        fail(result.error, ctx)
    return result.value


def fail(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(error_code_for(error)))


def apply_overrides(
    config: OperatorConfig,
    *,
    repo: str | None = None,
    sha: str | None = None,
    label: str | None = None,
    project: str | None = None,
    targets: list[str] | None = None,
    staging_dir: Path | None = None,
    checksum_dir: Path | None = None,
    timeout: float | None = None,
) -> OperatorConfig:
    """Apply CLI options on top of file + environment configuration."""
    updated = replace(
        config,
        repository=repo or config.repository,
        sha=sha or config.sha,
        label=label or config.label,
        project=project or config.project,
        targets=tuple(PlatformTarget(t) for t in targets) if targets else config.targets,
        staging_dir=staging_dir if staging_dir is not None else config.staging_dir,
        checksum_dir=checksum_dir if checksum_dir is not None else config.checksum_dir,
        collect_timeout=timeout if timeout is not None else config.collect_timeout,
    )
    return updated


def validated(config: OperatorConfig, ctx: CLIContext) -> OperatorConfig:
    return exit_on_error(config.validate(), ctx)


def build_host(config: OperatorConfig, ctx: CLIContext) -> GhReleaseHost:
    repo = exit_on_error(config.require_repository(), ctx)
    host = GhReleaseHost(workspace_root=ctx.workspace_root, repo=repo, token=config.token)
    exit_on_error(host.preflight(), ctx)
    return host
