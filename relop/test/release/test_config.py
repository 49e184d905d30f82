from __future__ import annotations

from pathlib import Path

from relop.core.result import Err, Ok
from relop.release.config import (
    DEFAULT_TARGETS,
    OperatorConfig,
    load_config,
    resolve_config,
)
from relop.release.model import PlatformTarget


def test_defaults_are_valid() -> None:
    result = OperatorConfig().validate()
    assert isinstance(result, Ok)
    config = result.value
    assert config.label == "release"
    assert config.bump == "minor"
    assert config.project == "fj-app"
    assert [t.triple for t in config.targets] == list(DEFAULT_TARGETS)


def test_from_dict_reads_every_section() -> None:
    result = OperatorConfig.from_dict(
        {
            "release": {
                "label": "ship-it",
                "bump": "patch",
                "initial_version": "v1.0.0",
                "bump_labels": {"semver:major": "major"},
            },
            "artifacts": {
                "project": "tool",
                "targets": ["x86_64-unknown-linux-gnu"],
                "staging_dir": "dist",
                "checksum_dir": "sums",
            },
            "timeouts": {"collect": 0, "poll_interval": 2},
        }
    )
    assert isinstance(result, Ok)
    config = result.value
    assert config.label == "ship-it"
    assert config.bump == "patch"
    assert config.initial_version == "v1.0.0"
    assert config.bump_labels == (("semver:major", "major"),)
    assert config.project == "tool"
    assert config.targets == (PlatformTarget("x86_64-unknown-linux-gnu"),)
    assert config.staging_dir == Path("dist")
    assert config.checksum_dir == Path("sums")
    assert config.collect_timeout == 0.0
    assert config.poll_interval == 2.0


def test_from_dict_rejects_unknown_bump() -> None:
    result = OperatorConfig.from_dict({"release": {"bump": "huge"}})
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_config"


def test_from_dict_rejects_non_list_targets() -> None:
    result = OperatorConfig.from_dict({"artifacts": {"targets": "x86_64-unknown-linux-gnu"}})
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_config"


def test_validate_rejects_duplicate_and_empty_targets() -> None:
    linux = PlatformTarget("x86_64-unknown-linux-gnu")
    assert isinstance(OperatorConfig(targets=(linux, linux)).validate(), Err)
    assert isinstance(OperatorConfig(targets=()).validate(), Err)


def test_validate_rejects_bad_initial_version_and_label() -> None:
    assert isinstance(OperatorConfig(initial_version="0.1").validate(), Err)
    assert isinstance(OperatorConfig(label="  ").validate(), Err)


def test_validate_rejects_non_positive_poll_interval() -> None:
    assert isinstance(OperatorConfig(poll_interval=0).validate(), Err)
    assert isinstance(OperatorConfig(collect_timeout=-1).validate(), Err)


def test_with_env_overlays_runner_variables() -> None:
    result = OperatorConfig().with_env(
        {
            "GITHUB_REPOSITORY": "example/fornjot",
            "GITHUB_SHA": "abc123",
            "GITHUB_OUTPUT": "/tmp/out",
            "RELEASE_LABEL": "ship",
            "RELEASE_BUMP": "MAJOR",
            "PROJ_NAME": "tool",
            "GITHUB_TOKEN": "s3cret",
        }
    )
    assert isinstance(result, Ok)
    config = result.value
    assert config.repository == "example/fornjot"
    assert config.sha == "abc123"
    assert config.output_path == Path("/tmp/out")
    assert config.label == "ship"
    assert config.bump == "major"
    assert config.project == "tool"
    assert config.token == "s3cret"


def test_with_env_prefers_gh_token() -> None:
    result = OperatorConfig().with_env({"GH_TOKEN": "a", "GITHUB_TOKEN": "b"})
    assert isinstance(result, Ok)
    assert result.value.token == "a"


def test_with_env_keeps_values_for_blank_variables() -> None:
    base = OperatorConfig(label="ship", sha="abc")
    result = base.with_env({"RELEASE_LABEL": "  ", "GITHUB_SHA": ""})
    assert isinstance(result, Ok)
    assert result.value.label == "ship"
    assert result.value.sha == "abc"


def test_token_is_not_rendered() -> None:
    config = OperatorConfig(token="s3cret")
    assert "s3cret" not in repr(config)


def test_require_repository_and_sha() -> None:
    config = OperatorConfig()
    repo = config.require_repository()
    sha = config.require_sha()
    assert isinstance(repo, Err)
    assert isinstance(sha, Err)
    assert repo.error.hint is not None and "--repo" in repo.error.hint


def test_load_config_reports_syntax_errors(tmp_path: Path) -> None:
    path = tmp_path / "relop.toml"
    path.write_text("[release\n", encoding="utf-8")
    result = load_config(path)
    assert isinstance(result, Err)
    assert "TOML" in result.error.message


def test_resolve_config_uses_implicit_file_then_env(tmp_path: Path) -> None:
    (tmp_path / "relop.toml").write_text(
        '[release]\nlabel = "from-file"\nbump = "patch"\n', encoding="utf-8"
    )
    result = resolve_config(path=None, env={"RELEASE_BUMP": "major"}, cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.label == "from-file"
    assert result.value.bump == "major"


def test_resolve_config_without_file(tmp_path: Path) -> None:
    result = resolve_config(path=None, env={}, cwd=tmp_path)
    assert result == OperatorConfig().validate()


def test_resolve_config_explicit_path_must_exist(tmp_path: Path) -> None:
    result = resolve_config(path=tmp_path / "missing.toml", env={}, cwd=tmp_path)
    assert isinstance(result, Err)
    assert "not found" in result.error.message
