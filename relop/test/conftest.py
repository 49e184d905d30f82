from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from relop.release.config import DEFAULT_TARGETS
from relop.release.host import MemoryReleaseHost
from relop.release.model import PlatformTarget


@pytest.fixture
def fake_host() -> MemoryReleaseHost:
    return MemoryReleaseHost()


@pytest.fixture
def targets() -> tuple[PlatformTarget, ...]:
    return tuple(PlatformTarget(t) for t in DEFAULT_TARGETS)


@pytest.fixture
def project() -> str:
    return "fj-app"


@pytest.fixture
def stage(tmp_path: Path, project: str) -> Callable[..., list[Path]]:
    """Write fake binaries into ``tmp_path/staging`` using the download layout."""

    def _stage(*triples: str, nested: bool = True, content: bytes | None = None) -> list[Path]:
        staging = tmp_path / "staging"
        staging.mkdir(exist_ok=True)
        written: list[Path] = []
        for triple in triples:
            target = PlatformTarget(triple)
            name = target.artifact_name(project)
            if nested:
                directory = staging / f"{project}-{triple}"
                directory.mkdir(exist_ok=True)
            else:
                directory = staging
            path = directory / name
            path.write_bytes(content if content is not None else f"binary for {triple}".encode())
            written.append(path)
        return written

    return _stage
