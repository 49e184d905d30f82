"""Typed operator configuration.

Values come from built-in defaults, an optional ``relop.toml``, then the
environment the CI runner provides. CLI options are applied last by the
command layer via ``dataclasses.replace``.

Example ``relop.toml``::

    [release]
    label = "release"
    bump = "minor"
    initial_version = "v0.1.0"

    [release.bump_labels]
    "bump:major" = "major"

    [artifacts]
    project = "fj-app"
    targets = ["x86_64-unknown-linux-gnu", "x86_64-pc-windows-msvc"]
    staging_dir = "."

    [timeouts]
    collect = 600
    poll_interval = 5
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import cast

from relop.core.result import Err, Ok, Result
from relop.core.structured import (
    StrDict,
    as_str_dict,
    get_float,
    get_str,
    get_str_list,
    get_table,
)
from relop.release.errors import ReleaseError
from relop.release.model import BUMP_ORDER, PlatformTarget, ReleaseBump
from relop.release.semver import parse_tag
from relop.release.timeouts import COLLECT_POLL_INTERVAL_SECONDS, COLLECT_TIMEOUT_SECONDS
from relop.release.versioning import DEFAULT_INITIAL_VERSION

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_BUMP_LABELS",
    "DEFAULT_TARGETS",
    "OperatorConfig",
    "load_config",
    "resolve_config",
]

CONFIG_FILE_NAME = "relop.toml"

DEFAULT_LABEL = "release"
DEFAULT_BUMP: ReleaseBump = "minor"
DEFAULT_PROJECT = "fj-app"

DEFAULT_TARGETS: tuple[str, ...] = (
    "x86_64-unknown-linux-gnu",
    "x86_64-apple-darwin",
    "aarch64-apple-darwin",
    "x86_64-pc-windows-msvc",
)

DEFAULT_BUMP_LABELS: tuple[tuple[str, ReleaseBump], ...] = (
    ("bump:major", "major"),
    ("bump:minor", "minor"),
    ("bump:patch", "patch"),
)


def _default_targets() -> tuple[PlatformTarget, ...]:
    return tuple(PlatformTarget(t) for t in DEFAULT_TARGETS)


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    """Everything a release run needs besides the host itself."""

    repository: str | None = None
    sha: str | None = None
    label: str = DEFAULT_LABEL
    bump: ReleaseBump = DEFAULT_BUMP
    bump_labels: tuple[tuple[str, ReleaseBump], ...] = DEFAULT_BUMP_LABELS
    initial_version: str = DEFAULT_INITIAL_VERSION
    project: str = DEFAULT_PROJECT
    targets: tuple[PlatformTarget, ...] = field(default_factory=_default_targets)
    staging_dir: Path = Path(".")
    checksum_dir: Path | None = None
    output_path: Path | None = None
    collect_timeout: float = COLLECT_TIMEOUT_SECONDS
    poll_interval: float = COLLECT_POLL_INTERVAL_SECONDS
    # Never rendered: repr=False keeps it out of error messages and debug output.
    token: str | None = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[OperatorConfig, ReleaseError]:
        """Create a config from a parsed TOML mapping."""
        release: StrDict = get_table(data, "release") or {}
        artifacts: StrDict = get_table(data, "artifacts") or {}
        timeouts: StrDict = get_table(data, "timeouts") or {}

        bump = _parse_bump(get_str(release, "bump") or DEFAULT_BUMP)
        if isinstance(bump, Err):
            return bump

        bump_labels = DEFAULT_BUMP_LABELS
        raw_labels = get_table(release, "bump_labels")
        if raw_labels is not None:
            pairs: list[tuple[str, ReleaseBump]] = []
            for name, value in raw_labels.items():
                if not isinstance(value, str):
                    return Err(
                        ReleaseError(
                            kind="invalid_config",
                            message=f"bump label {name!r} must map to a string",
                        )
                    )
                parsed = _parse_bump(value)
                if isinstance(parsed, Err):
                    return parsed
                pairs.append((name, parsed.value))
            bump_labels = tuple(pairs)

        targets = _default_targets()
        if "targets" in artifacts:
            raw_targets = get_str_list(artifacts, "targets")
            if raw_targets is None:
                return Err(
                    ReleaseError(
                        kind="invalid_config",
                        message="artifacts.targets must be a list of platform triples",
                    )
                )
            targets = tuple(PlatformTarget(t) for t in raw_targets)

        staging = get_str(artifacts, "staging_dir")
        checksum_dir = get_str(artifacts, "checksum_dir")

        config = cls(
            label=get_str(release, "label") or DEFAULT_LABEL,
            bump=bump.value,
            bump_labels=bump_labels,
            initial_version=get_str(release, "initial_version") or DEFAULT_INITIAL_VERSION,
            project=get_str(artifacts, "project") or DEFAULT_PROJECT,
            targets=targets,
            staging_dir=Path(staging) if staging else Path("."),
            checksum_dir=Path(checksum_dir) if checksum_dir else None,
            collect_timeout=_or_default(get_float(timeouts, "collect"), COLLECT_TIMEOUT_SECONDS),
            poll_interval=_or_default(
                get_float(timeouts, "poll_interval"), COLLECT_POLL_INTERVAL_SECONDS
            ),
        )
        return config.validate()

    def with_env(self, env: Mapping[str, str]) -> Result[OperatorConfig, ReleaseError]:
        """Overlay the CI runner environment on top of this config."""
        bump = self.bump
        raw_bump = env.get("RELEASE_BUMP", "").strip()
        if raw_bump:
            parsed = _parse_bump(raw_bump)
            if isinstance(parsed, Err):
                return parsed
            bump = parsed.value

        output = env.get("GITHUB_OUTPUT", "").strip()
        token = (env.get("GH_TOKEN") or env.get("GITHUB_TOKEN") or "").strip()

        updated = replace(
            self,
            repository=env.get("GITHUB_REPOSITORY", "").strip() or self.repository,
            sha=env.get("GITHUB_SHA", "").strip() or self.sha,
            label=env.get("RELEASE_LABEL", "").strip() or self.label,
            bump=bump,
            project=env.get("PROJ_NAME", "").strip() or self.project,
            output_path=Path(output) if output else self.output_path,
            token=token or self.token,
        )
        return updated.validate()

    def validate(self) -> Result[OperatorConfig, ReleaseError]:
        if not self.label.strip():
            return Err(ReleaseError(kind="invalid_config", message="release label is empty"))

        if parse_tag(self.initial_version) is None:
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message=f"invalid initial version: {self.initial_version}",
                    hint="Expected: vMAJOR.MINOR.PATCH",
                )
            )

        if not self.targets:
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message="no platform targets configured",
                    hint="Set artifacts.targets in relop.toml",
                )
            )

        triples = [t.triple for t in self.targets]
        if len(set(triples)) != len(triples):
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message="duplicate platform targets configured",
                    hint=", ".join(triples),
                )
            )

        # A zero timeout means "check once, do not wait".
        if self.collect_timeout < 0 or self.poll_interval <= 0:
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message="collect timeout must be >= 0 and poll interval > 0",
                )
            )

        return Ok(self)

    def require_repository(self) -> Result[str, ReleaseError]:
        if not self.repository:
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message="repository is not set",
                    hint="Set GITHUB_REPOSITORY or pass --repo owner/name",
                )
            )
        return Ok(self.repository)

    def require_sha(self) -> Result[str, ReleaseError]:
        if not self.sha:
            return Err(
                ReleaseError(
                    kind="invalid_config",
                    message="commit sha is not set",
                    hint="Set GITHUB_SHA or pass --sha",
                )
            )
        return Ok(self.sha)


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else value


def _parse_bump(value: str) -> Result[ReleaseBump, ReleaseError]:
    v = value.strip().lower()
    if v not in BUMP_ORDER:
        return Err(
            ReleaseError(
                kind="invalid_config",
                message=f"invalid bump kind: {value}",
                hint="Expected one of: major, minor, patch",
            )
        )
    return Ok(cast(ReleaseBump, v))


def _parse_toml(path: Path) -> Result[StrDict, ReleaseError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ReleaseError(kind="invalid_config", message=f"config file not found: {path}"))
    except PermissionError:
        return Err(
            ReleaseError(kind="invalid_config", message=f"permission denied reading: {path}")
        )
    except tomllib.TOMLDecodeError as e:
        return Err(ReleaseError(kind="invalid_config", message=f"invalid TOML syntax: {e}"))
    except UnicodeDecodeError as e:
        return Err(ReleaseError(kind="invalid_config", message=f"error reading config: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ReleaseError(kind="invalid_config", message="config root must be a table"))
    return Ok(data)


def load_config(path: Path) -> Result[OperatorConfig, ReleaseError]:
    """Load and validate configuration from a TOML file."""
    data = _parse_toml(path)
    if isinstance(data, Err):
        return data
    return OperatorConfig.from_dict(data.value)


def resolve_config(
    *,
    path: Path | None,
    env: Mapping[str, str],
    cwd: Path,
) -> Result[OperatorConfig, ReleaseError]:
    """Defaults, then the config file, then the environment.

    An explicit ``path`` must exist; the implicit ``relop.toml`` in ``cwd`` is
    optional.
    """
    if path is not None:
        base = load_config(path)
    elif (cwd / CONFIG_FILE_NAME).is_file():
        base = load_config(cwd / CONFIG_FILE_NAME)
    else:
        base = OperatorConfig().validate()

    if isinstance(base, Err):
        return base
    return base.value.with_env(env)
