from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from relop import __version__
from relop.cli.app import app
from relop.cli.commands._helpers import error_code_for
from relop.cli.context import CONFIG_ENV, QUIET_ENV, build_context
from relop.core.errors import ErrorCode
from relop.release.errors import ReleaseError


_RUNNER_ENV = (
    "GITHUB_REPOSITORY",
    "GITHUB_SHA",
    "GITHUB_OUTPUT",
    "RELEASE_LABEL",
    "RELEASE_BUMP",
    "PROJ_NAME",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # The root callback writes these; registering them here restores them afterwards.
    monkeypatch.setenv(CONFIG_ENV, "")
    monkeypatch.setenv(QUIET_ENV, "")
    for name in _RUNNER_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_version() -> None:
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_config_file_is_a_usage_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["--config", str(tmp_path / "nope.toml"), "collect"])
    assert result.exit_code == int(ErrorCode.USER_ERROR)


def test_collect_via_app_with_empty_staging(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        app, ["collect", "--staging-dir", str(tmp_path), "--target", "x86_64-unknown-linux-gnu"]
    )
    assert result.exit_code == int(ErrorCode.INTEGRITY_ERROR)


def test_build_context_reads_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "example/fornjot")
    monkeypatch.setenv("GITHUB_SHA", "abc123")
    monkeypatch.setenv("RELEASE_LABEL", "ship")

    ctx = build_context()

    assert ctx.workspace_root == tmp_path
    assert ctx.config.repository == "example/fornjot"
    assert ctx.config.sha == "abc123"
    assert ctx.config.label == "ship"


def test_build_context_rejects_bad_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / "relop.toml").write_text('[release]\nbump = "huge"\n', encoding="utf-8")

    with pytest.raises(typer.Exit) as exc:
        build_context()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_config", ErrorCode.USER_ERROR),
        ("gh_missing", ErrorCode.ENV_ERROR),
        ("host_unreachable", ErrorCode.NETWORK_ERROR),
        ("publish_failed", ErrorCode.NETWORK_ERROR),
        ("missing_artifact", ErrorCode.INTEGRITY_ERROR),
        ("checksum_mismatch", ErrorCode.INTEGRITY_ERROR),
        ("tag_exists", ErrorCode.CONFLICT_ERROR),
        ("io_failed", ErrorCode.IO_ERROR),
        ("non_monotonic", ErrorCode.CONFLICT_ERROR),
    ],
)
def test_error_code_for(kind: str, code: ErrorCode) -> None:
    error = ReleaseError(kind=kind, message="boom")  # type: ignore[arg-type]
    assert error_code_for(error) == code
