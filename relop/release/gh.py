from __future__ import annotations

import json
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from time import sleep

from relop.core.result import Err, Ok, Result
from relop.platform.process import ProcessError
from relop.platform.process import run as run_process
from relop.release.errors import ReleaseError, ReleaseErrorKind
from relop.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.timed_out:
        return True
    return any(marker in text for marker in markers)


def is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "http 404" in text or "release not found" in text


def gh_env(token: str | None) -> dict[str, str]:
    """Environment for gh: inherit, inject the credential, never prompt."""
    env = dict(os.environ)
    if token:
        env["GH_TOKEN"] = token
    env["GH_PROMPT_DISABLED"] = "1"
    env["NO_COLOR"] = "1"
    return env


def run_gh_read_raw(
    *,
    workspace_root: Path,
    cmd: list[str],
    env: Mapping[str, str] | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    """Run an idempotent gh read, retrying transient failures.

    The last ProcessError is returned untouched so callers can tell a 404 from
    an outage.
    """
    attempts = max(1, retry_attempts)
    result = run_process(cmd, cwd=workspace_root, env=env, timeout=timeout)
    for attempt in range(1, attempts):
        if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_process(cmd, cwd=workspace_root, env=env, timeout=timeout)
    return result


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    message: str,
    env: Mapping[str, str] | None = None,
    kind: ReleaseErrorKind = "host_unreachable",
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
) -> Result[str, ReleaseError]:
    result = run_gh_read_raw(workspace_root=workspace_root, cmd=cmd, env=env, timeout=timeout)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind=kind,
                message=message,
                hint=result.error.stderr.strip() or hint,
            )
        )
    return result


def parse_json(payload: str, *, what: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="invalid_payload",
                message=f"invalid JSON from {what}: {e}",
            )
        )
    return Ok(obj)


def gh_api_json(
    *,
    workspace_root: Path,
    endpoint: str,
    env: Mapping[str, str] | None = None,
) -> Result[object, ReleaseError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        env=env,
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result
    return parse_json(result.value, what=f"gh api {endpoint}")


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(
    *,
    workspace_root: Path,
    env: Mapping[str, str] | None = None,
) -> Result[None, ReleaseError]:
    result = run_process(
        ["gh", "auth", "status"],
        cwd=workspace_root,
        env=env,
        timeout=GH_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Set GITHUB_TOKEN (or GH_TOKEN) for the release job",
            )
        )
    return Ok(None)
