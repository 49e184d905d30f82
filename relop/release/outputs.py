"""Machine-readable run outputs for the orchestrating pipeline."""

from __future__ import annotations

from pathlib import Path

from relop.core.result import Err, Ok, Result
from relop.release.errors import ReleaseError
from relop.release.model import ReleaseOutcome


def format_outputs(outcome: ReleaseOutcome) -> str:
    return "".join(f"{key}={value}\n" for key, value in outcome.to_outputs().items())


def write_outputs(outcome: ReleaseOutcome, path: Path) -> Result[None, ReleaseError]:
    """Append ``release-detected`` and ``tag-name`` to a ``GITHUB_OUTPUT`` file."""
    try:
        with path.open("a", encoding="utf-8") as f:
            f.write(format_outputs(outcome))
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"cannot write run outputs to {path}: {e}",
            )
        )
    return Ok(None)
