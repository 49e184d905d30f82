from __future__ import annotations

import sys
from pathlib import Path

from relop.core.result import Err, Ok
from relop.platform.process import ProcessError, run


def test_run_returns_stdout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.strip() == "hello"


def test_run_reports_exit_code_and_stderr(tmp_path: Path) -> None:
    code = "import sys; sys.stderr.write('bad things'); sys.exit(3)"
    result = run([sys.executable, "-c", code], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == 3
    assert "bad things" in result.error.stderr
    assert not result.error.timed_out


def test_run_times_out(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
    assert isinstance(result, Err)
    assert result.error.returncode == -1
    assert result.error.timed_out


def test_run_missing_binary(tmp_path: Path) -> None:
    result = run(["relop-definitely-not-a-binary"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == -1


def test_run_passes_environment(tmp_path: Path) -> None:
    code = "import os; print(os.environ['RELOP_PROBE'])"
    result = run([sys.executable, "-c", code], cwd=tmp_path, env={"RELOP_PROBE": "42"})
    assert isinstance(result, Ok)
    assert result.value.strip() == "42"


def test_process_error_str_truncates_command() -> None:
    error = ProcessError(
        command=("gh", "release", "create", "v1.0.0", "a", "b"),
        returncode=1,
        stdout="",
        stderr="",
    )
    assert str(error) == "gh release create ... failed (exit 1)"
