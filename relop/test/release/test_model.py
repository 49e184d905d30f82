from __future__ import annotations

from pathlib import Path

import pytest

from relop.core.result import Err, Ok
from relop.release.errors import ReleaseError, error_category
from relop.release.model import (
    NO_RELEASE,
    ArtifactManifestEntry,
    BuildArtifact,
    PlatformTarget,
    ReleaseOutcome,
    ReleaseRecord,
)
from relop.release.outputs import format_outputs, write_outputs

LINUX = PlatformTarget("x86_64-unknown-linux-gnu")
WINDOWS = PlatformTarget("x86_64-pc-windows-msvc")


def _artifact(target: PlatformTarget, root: Path) -> BuildArtifact:
    path = root / target.artifact_name("fj-app")
    return BuildArtifact(project="fj-app", target=target, path=path)


def _entry(artifact: BuildArtifact) -> ArtifactManifestEntry:
    return ArtifactManifestEntry(
        name=artifact.name,
        sha256="0" * 64,
        checksum_path=artifact.path.with_name(f"{artifact.name}.sha256"),
    )


def test_artifact_names_follow_platform() -> None:
    assert LINUX.artifact_name("fj-app") == "fj-app-x86_64-unknown-linux-gnu"
    assert WINDOWS.artifact_name("fj-app") == "fj-app-x86_64-pc-windows-msvc.exe"
    assert WINDOWS.is_windows
    assert not LINUX.is_windows


def test_record_upload_paths_pair_binary_and_checksum(tmp_path: Path) -> None:
    windows = _artifact(WINDOWS, tmp_path)
    linux = _artifact(LINUX, tmp_path)
    record = ReleaseRecord(
        tag="v0.1.0",
        artifacts=(windows, linux),
        manifest=(_entry(linux), _entry(windows)),
    )

    assert record.upload_paths() == (
        linux.path,
        tmp_path / "fj-app-x86_64-unknown-linux-gnu.sha256",
        windows.path,
        tmp_path / "fj-app-x86_64-pc-windows-msvc.exe.sha256",
    )


def test_record_requires_one_entry_per_artifact(tmp_path: Path) -> None:
    linux = _artifact(LINUX, tmp_path)
    windows = _artifact(WINDOWS, tmp_path)

    with pytest.raises(ValueError, match="differ"):
        ReleaseRecord(tag="v0.1.0", artifacts=(linux, windows), manifest=(_entry(linux),))

    with pytest.raises(ValueError, match="duplicate"):
        ReleaseRecord(
            tag="v0.1.0",
            artifacts=(linux, linux),
            manifest=(_entry(linux), _entry(linux)),
        )


def test_outcome_outputs() -> None:
    assert NO_RELEASE.to_outputs() == {"release-detected": "false", "tag-name": ""}
    assert ReleaseOutcome(detected=True, tag="v0.2.0").to_outputs() == {
        "release-detected": "true",
        "tag-name": "v0.2.0",
    }


def test_format_outputs() -> None:
    outcome = ReleaseOutcome(detected=True, tag="v0.2.0")
    assert format_outputs(outcome) == "release-detected=true\ntag-name=v0.2.0\n"


def test_write_outputs_appends(tmp_path: Path) -> None:
    path = tmp_path / "out"
    assert write_outputs(NO_RELEASE, path) == Ok(None)
    assert write_outputs(ReleaseOutcome(detected=True, tag="v0.1.0"), path) == Ok(None)
    assert path.read_text(encoding="utf-8") == (
        "release-detected=false\ntag-name=\nrelease-detected=true\ntag-name=v0.1.0\n"
    )


def test_write_outputs_to_missing_directory(tmp_path: Path) -> None:
    result = write_outputs(NO_RELEASE, tmp_path / "missing" / "out")
    assert isinstance(result, Err)
    assert result.error.kind == "io_failed"
    assert result.error.category == "io"


def test_error_categories() -> None:
    assert ReleaseError(kind="tag_exists", message="x").category == "conflict"
    assert ReleaseError(kind="digest_failed", message="x").category == "integrity"
    assert ReleaseError(kind="gh_auth_required", message="x").category == "environment"
    assert error_category("io_failed") == "io"


def test_error_pretty() -> None:
    assert ReleaseError(kind="tag_exists", message="taken").pretty() == "taken"
    assert (
        ReleaseError(kind="tag_exists", message="taken", hint="bump").pretty()
        == "taken (hint: bump)"
    )
