from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import typer

from relop.cli.context import CLIContext
from relop.core.errors import ErrorCode
from relop.output.console import MockConsole
from relop.release.config import OperatorConfig

PROJECT = "fj-app"
StageFn = Callable[..., list[Path]]


LINUX = "x86_64-unknown-linux-gnu"
WINDOWS = "x86_64-pc-windows-msvc"


def _patch(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> CLIContext:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    ctx = CLIContext(
        workspace_root=tmp_path,
        config=OperatorConfig(project=PROJECT, staging_dir=tmp_path / "staging"),
        console=MockConsole(),
    )
    monkeypatch.setattr(artifacts_cmds, "build_context", lambda: ctx)
    return ctx


def test_collect_reports_every_target(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, stage: StageFn
) -> None:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    ctx = _patch(monkeypatch, tmp_path)
    stage(LINUX, WINDOWS)

    artifacts_cmds.collect(staging_dir=None, project=None, target=[LINUX, WINDOWS], timeout=0.0)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find(f"{PROJECT}-{WINDOWS}.exe")
    assert not ctx.console.has_error()


def test_collect_missing_target_exits_with_integrity_code(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, stage: StageFn
) -> None:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    _patch(monkeypatch, tmp_path)
    stage(LINUX)

    with pytest.raises(typer.Exit) as exc:
        artifacts_cmds.collect(
            staging_dir=None, project=None, target=[LINUX, WINDOWS], timeout=0.0
        )

    assert exc.value.exit_code == int(ErrorCode.INTEGRITY_ERROR)


def test_stamp_then_verify(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, stage: StageFn) -> None:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    ctx = _patch(monkeypatch, tmp_path)
    linux, windows = stage(LINUX, WINDOWS)

    artifacts_cmds.stamp(staging_dir=None, project=None, target=[LINUX, WINDOWS], out_dir=None)

    assert (linux.parent / f"{linux.name}.sha256").is_file()
    assert (windows.parent / f"{windows.name}.sha256").is_file()

    artifacts_cmds.verify(staging_dir=None, project=None, target=[LINUX, WINDOWS], out_dir=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("2 checksum(s) verified")


def test_verify_detects_tampering(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, stage: StageFn
) -> None:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    _patch(monkeypatch, tmp_path)
    (linux,) = stage(LINUX)
    out_dir = tmp_path / "sums"
    out_dir.mkdir()

    artifacts_cmds.stamp(staging_dir=None, project=None, target=[LINUX], out_dir=out_dir)
    linux.write_bytes(b"replaced after stamping")

    with pytest.raises(typer.Exit) as exc:
        artifacts_cmds.verify(staging_dir=None, project=None, target=[LINUX], out_dir=out_dir)

    assert exc.value.exit_code == int(ErrorCode.INTEGRITY_ERROR)


def test_verify_without_checksums_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, stage: StageFn
) -> None:
    import relop.cli.commands.artifacts_cmds as artifacts_cmds

    _patch(monkeypatch, tmp_path)
    stage(LINUX)

    with pytest.raises(typer.Exit) as exc:
        artifacts_cmds.verify(staging_dir=None, project=None, target=[LINUX], out_dir=None)

    assert exc.value.exit_code == int(ErrorCode.INTEGRITY_ERROR)
