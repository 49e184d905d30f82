"""Barrier over the per-platform build outputs.

Build jobs stage their binaries independently, in any order, either flat
(``<staging>/<name>``) or one directory per artifact as the artifact
download step lays them out (``<staging>/<name>/<name>``). Only entries whose
name starts with ``<project>-`` are considered staged; the rest of the
staging directory (usually a checkout) is ignored.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from time import monotonic, sleep

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.release.errors import ReleaseError
from relop.release.model import (
    CHECKSUM_SUFFIX,
    WINDOWS_EXTENSION,
    BuildArtifact,
    PlatformTarget,
)

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


def classify(
    name: str, *, project: str, targets: tuple[PlatformTarget, ...]
) -> PlatformTarget | None:
    """Return the target a file name belongs to, or None if it breaks the convention."""
    for target in targets:
        if name == target.artifact_name(project):
            return target
    return None


def _is_checksum_sidecar(name: str, *, project: str, targets: tuple[PlatformTarget, ...]) -> bool:
    if not name.endswith(CHECKSUM_SUFFIX):
        return False
    return classify(name[: -len(CHECKSUM_SUFFIX)], project=project, targets=targets) is not None


def _unexpected(path: Path, *, project: str) -> ReleaseError:
    return ReleaseError(
        kind="unexpected_artifact",
        message=f"unexpected staged file: {path.name}",
        hint=f"Expected <{project}>-<platform-triple>[{WINDOWS_EXTENSION}] ({path})",
    )


def _candidates(staging_dir: Path, *, prefix: str) -> list[tuple[Path, str | None]]:
    """Staged files, each with the artifact directory it was found in (if any)."""
    out: list[tuple[Path, str | None]] = []
    for entry in sorted(staging_dir.iterdir()):
        if not entry.name.startswith(prefix):
            continue
        if entry.is_file():
            out.append((entry, None))
        elif entry.is_dir():
            for inner in sorted(entry.iterdir()):
                if inner.is_file() and not inner.name.startswith("."):
                    out.append((inner, entry.name))
    return out


def scan_staging(
    staging_dir: Path,
    *,
    project: str,
    targets: tuple[PlatformTarget, ...],
) -> Result[dict[str, BuildArtifact], ReleaseError]:
    """Artifacts currently staged, keyed by platform triple.

    Malformed or duplicate entries fail immediately: waiting longer cannot fix
    contamination.
    """
    if not staging_dir.is_dir():
        return Ok({})

    prefix = f"{project}-"
    found: dict[str, BuildArtifact] = {}
    try:
        candidates = _candidates(staging_dir, prefix=prefix)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"cannot read staging directory {staging_dir}: {e}",
            )
        )

    for path, container in candidates:
        name = path.name
        if _is_checksum_sidecar(name, project=project, targets=targets):
            continue

        target = classify(name, project=project, targets=targets)
        if target is None:
            return Err(_unexpected(path, project=project))

        # The artifact directory is named after the binary, without ".exe".
        if container is not None and container not in (name, name.removesuffix(WINDOWS_EXTENSION)):
            return Err(_unexpected(path, project=project))

        if target.triple in found:
            return Err(
                ReleaseError(
                    kind="unexpected_artifact",
                    message=f"artifact staged twice for {target.triple}",
                    hint=f"{found[target.triple].path} and {path}",
                )
            )
        found[target.triple] = BuildArtifact(project=project, target=target, path=path)

    return Ok(found)


def collect(
    *,
    staging_dir: Path,
    project: str,
    targets: tuple[PlatformTarget, ...],
    timeout: float,
    poll_interval: float,
    console: ConsoleProtocol,
    clock: Clock = monotonic,
    sleeper: Sleeper = sleep,
) -> Result[tuple[BuildArtifact, ...], ReleaseError]:
    """Wait until every target has exactly one staged binary, or time out.

    Returns artifacts in the order of ``targets``. A partial set is never
    returned: on timeout the error names every missing triple.
    """
    deadline = clock() + timeout
    reported: set[str] = set()

    while True:
        scanned = scan_staging(staging_dir, project=project, targets=targets)
        if isinstance(scanned, Err):
            return scanned

        found = scanned.value
        for triple in sorted(found.keys() - reported):
            console.print(f"staged: {found[triple].name}", Style.DIM)
            reported.add(triple)

        missing = [t.triple for t in targets if t.triple not in found]
        if not missing:
            return Ok(tuple(found[t.triple] for t in targets))

        remaining = deadline - clock()
        if remaining <= 0:
            return Err(
                ReleaseError(
                    kind="missing_artifact",
                    message=f"missing artifacts for: {', '.join(missing)}",
                    hint=f"Waited {timeout:g}s for build outputs in {staging_dir}",
                )
            )

        console.print(f"waiting for {len(missing)} artifact(s): {', '.join(missing)}", Style.DIM)
        sleeper(min(poll_interval, remaining))
