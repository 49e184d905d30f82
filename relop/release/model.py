from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal


ReleaseBump = Literal["major", "minor", "patch"]

BUMP_ORDER: tuple[ReleaseBump, ...] = ("patch", "minor", "major")

WINDOWS_EXTENSION = ".exe"
CHECKSUM_SUFFIX = ".sha256"


@dataclass(frozen=True, slots=True)
class ReleaseSignal:
    """Whether the pushed commit asked for a release, and where that came from."""

    requested: bool
    source_sha: str
    label: str | None = None
    change_number: int | None = None
    bump: ReleaseBump = "minor"


@dataclass(frozen=True, slots=True)
class MergedChange:
    """A merged pull request associated with a commit."""

    number: int
    merged_at: str
    labels: frozenset[str]


@dataclass(frozen=True, slots=True)
class PlatformTarget:
    triple: str

    @property
    def is_windows(self) -> bool:
        return "windows" in self.triple

    @property
    def extension(self) -> str:
        return WINDOWS_EXTENSION if self.is_windows else ""

    def artifact_name(self, project: str) -> str:
        return f"{project}-{self.triple}{self.extension}"


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    project: str
    target: PlatformTarget
    path: Path

    @property
    def name(self) -> str:
        return self.target.artifact_name(self.project)


@dataclass(frozen=True, slots=True)
class ArtifactManifestEntry:
    name: str
    sha256: str
    checksum_path: Path

    def checksum_line(self) -> str:
        return f"{self.sha256}\n"


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """The published unit: one tag, its binaries and one checksum per binary."""

    tag: str
    artifacts: tuple[BuildArtifact, ...]
    manifest: tuple[ArtifactManifestEntry, ...]

    def __post_init__(self) -> None:
        artifact_names = [a.name for a in self.artifacts]
        entry_names = [e.name for e in self.manifest]
        if len(set(artifact_names)) != len(artifact_names):
            raise ValueError(f"duplicate artifact names in release {self.tag}")
        if sorted(artifact_names) != sorted(entry_names):
            raise ValueError(
                f"artifacts and manifest entries differ for release {self.tag}: "
                f"{sorted(artifact_names)} vs {sorted(entry_names)}"
            )

    def upload_paths(self) -> tuple[Path, ...]:
        by_name = {e.name: e for e in self.manifest}
        out: list[Path] = []
        for artifact in sorted(self.artifacts, key=lambda a: a.name):
            out.append(artifact.path)
            out.append(by_name[artifact.name].checksum_path)
        return tuple(out)


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    detected: bool
    tag: str | None = None

    def to_outputs(self) -> dict[str, str]:
        return {
            "release-detected": "true" if self.detected else "false",
            "tag-name": self.tag or "",
        }


NO_RELEASE = ReleaseOutcome(detected=False, tag=None)
