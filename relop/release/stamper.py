from __future__ import annotations

import hashlib
from pathlib import Path

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.platform.files import atomic_write_text, remove_quietly
from relop.release.errors import ReleaseError
from relop.release.model import CHECKSUM_SUFFIX, ArtifactManifestEntry, BuildArtifact

_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_sha256(value: str) -> bool:
    if len(value) != 64:
        return False
    return all(ch in "0123456789abcdef" for ch in value)


def checksum_path_for(artifact: BuildArtifact, out_dir: Path | None = None) -> Path:
    directory = out_dir if out_dir is not None else artifact.path.parent
    return directory / f"{artifact.name}{CHECKSUM_SUFFIX}"


def stamp(
    *,
    artifacts: tuple[BuildArtifact, ...],
    console: ConsoleProtocol,
    out_dir: Path | None = None,
) -> Result[tuple[ArtifactManifestEntry, ...], ReleaseError]:
    """Write ``<name>.sha256`` for every artifact.

    All or nothing: if any artifact cannot be hashed or its checksum cannot
    be written, the checksum files written by this call are removed.
    """
    entries: list[ArtifactManifestEntry] = []
    written: list[Path] = []

    for artifact in artifacts:
        target = checksum_path_for(artifact, out_dir)
        try:
            entry = ArtifactManifestEntry(
                name=artifact.name,
                sha256=sha256_file(artifact.path),
                checksum_path=target,
            )
            atomic_write_text(target, entry.checksum_line())
        except OSError as e:
            remove_quietly(written)
            return Err(
                ReleaseError(
                    kind="digest_failed",
                    message=f"failed to checksum {artifact.name}: {e}",
                    hint=str(artifact.path),
                )
            )

        written.append(target)
        entries.append(entry)
        console.print(f"{entry.sha256}  {artifact.name}", Style.DIM)

    return Ok(tuple(entries))


def verify(
    *,
    artifacts: tuple[BuildArtifact, ...],
    entries: tuple[ArtifactManifestEntry, ...],
) -> Result[None, ReleaseError]:
    """Re-hash artifacts and compare against their checksum files."""
    by_name = {e.name: e for e in entries}
    for artifact in artifacts:
        entry = by_name.get(artifact.name)
        if entry is None:
            return Err(
                ReleaseError(
                    kind="checksum_mismatch",
                    message=f"no checksum entry for {artifact.name}",
                )
            )

        try:
            recorded = entry.checksum_path.read_text(encoding="utf-8").strip()
            actual = sha256_file(artifact.path)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="digest_failed",
                    message=f"failed to verify {artifact.name}: {e}",
                )
            )

        if not is_sha256(recorded):
            return Err(
                ReleaseError(
                    kind="checksum_mismatch",
                    message=f"malformed checksum file: {entry.checksum_path.name}",
                )
            )
        if recorded != actual or recorded != entry.sha256:
            return Err(
                ReleaseError(
                    kind="checksum_mismatch",
                    message=f"checksum mismatch for {artifact.name}",
                    hint=f"expected {recorded}, got {actual}",
                )
            )
    return Ok(None)


def read_entries(
    *,
    artifacts: tuple[BuildArtifact, ...],
    out_dir: Path | None = None,
) -> Result[tuple[ArtifactManifestEntry, ...], ReleaseError]:
    """Load previously written checksum files as manifest entries."""
    entries: list[ArtifactManifestEntry] = []
    for artifact in artifacts:
        path = checksum_path_for(artifact, out_dir)
        try:
            recorded = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="checksum_mismatch",
                    message=f"missing checksum file for {artifact.name}: {e}",
                )
            )
        entries.append(
            ArtifactManifestEntry(name=artifact.name, sha256=recorded, checksum_path=path)
        )
    return Ok(tuple(entries))
