"""One release run, as a state machine.

START -> SIGNAL_EVALUATED -> NO_RELEASE
                          -> TAG_DEDUCED -> ARTIFACTS_COLLECTED -> MANIFEST_STAMPED -> PUBLISHED

Any stage may move to FAILED. Terminal stages are never left, and an engine
instance runs once; a rerun builds a new engine and starts at START.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from time import monotonic, sleep

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.release.collector import Clock, Sleeper, collect
from relop.release.config import OperatorConfig
from relop.release.errors import ReleaseError
from relop.release.host import ReleaseHost
from relop.release.model import NO_RELEASE, ReleaseOutcome, ReleaseRecord
from relop.release.publisher import publish
from relop.release.signal import detect
from relop.release.stamper import stamp
from relop.release.versioning import deduce


class RunStage(Enum):
    START = "start"
    SIGNAL_EVALUATED = "signal_evaluated"
    NO_RELEASE = "no_release"
    TAG_DEDUCED = "tag_deduced"
    ARTIFACTS_COLLECTED = "artifacts_collected"
    MANIFEST_STAMPED = "manifest_stamped"
    PUBLISHED = "published"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES

    def __str__(self) -> str:
        return self.value


TERMINAL_STAGES = frozenset({RunStage.NO_RELEASE, RunStage.PUBLISHED, RunStage.FAILED})

TRANSITIONS: Mapping[RunStage, frozenset[RunStage]] = {
    RunStage.START: frozenset({RunStage.SIGNAL_EVALUATED}),
    RunStage.SIGNAL_EVALUATED: frozenset({RunStage.NO_RELEASE, RunStage.TAG_DEDUCED}),
    RunStage.TAG_DEDUCED: frozenset({RunStage.ARTIFACTS_COLLECTED}),
    RunStage.ARTIFACTS_COLLECTED: frozenset({RunStage.MANIFEST_STAMPED}),
    RunStage.MANIFEST_STAMPED: frozenset({RunStage.PUBLISHED}),
}


def can_transition(current: RunStage, new: RunStage) -> bool:
    if current.is_terminal:
        return False
    if new is RunStage.FAILED:
        return True
    return new in TRANSITIONS.get(current, frozenset())


class ReleaseEngine:
    """Runs signal -> tag -> collect -> stamp -> publish, stopping at the first error.

    With ``dry_run`` the run stops after stamping, stays in MANIFEST_STAMPED
    and reports the outcome that publishing would have produced.
    """

    def __init__(
        self,
        *,
        host: ReleaseHost,
        config: OperatorConfig,
        console: ConsoleProtocol,
        dry_run: bool = False,
        clock: Clock = monotonic,
        sleeper: Sleeper = sleep,
    ) -> None:
        self._host = host
        self._config = config
        self._console = console
        self._dry_run = dry_run
        self._clock = clock
        self._sleeper = sleeper
        self._history: list[RunStage] = [RunStage.START]
        self._error: ReleaseError | None = None

    @property
    def stage(self) -> RunStage:
        return self._history[-1]

    @property
    def history(self) -> tuple[RunStage, ...]:
        return tuple(self._history)

    @property
    def error(self) -> ReleaseError | None:
        return self._error

    def _advance(self, new: RunStage) -> Result[None, ReleaseError]:
        if not can_transition(self.stage, new):
            return Err(
                ReleaseError(
                    kind="invalid_state",
                    message=f"invalid release transition: {self.stage} -> {new}",
                )
            )
        self._history.append(new)
        return Ok(None)

    def _fail(self, error: ReleaseError) -> Err[ReleaseError]:
        self._error = error
        if not self.stage.is_terminal:
            self._history.append(RunStage.FAILED)
        return Err(error)

    def run(self) -> Result[ReleaseOutcome, ReleaseError]:
        if self.stage is not RunStage.START:
            return Err(
                ReleaseError(
                    kind="invalid_state",
                    message=f"release engine already ran (stage: {self.stage})",
                    hint="Create a new engine for a new run.",
                )
            )

        result = self._run()
        if isinstance(result, Err):
            return self._fail(result.error)
        return result

    def _run(self) -> Result[ReleaseOutcome, ReleaseError]:
        cfg = self._config
        console = self._console

        sha = cfg.require_sha()
        if isinstance(sha, Err):
            return sha

        console.header("Release signal")
        signal = detect(
            host=self._host,
            sha=sha.value,
            label=cfg.label,
            default_bump=cfg.bump,
            bump_labels=cfg.bump_labels,
        )
        if isinstance(signal, Err):
            return signal
        step = self._advance(RunStage.SIGNAL_EVALUATED)
        if isinstance(step, Err):
            return step

        if not signal.value.requested:
            console.info(f"no '{cfg.label}' label on the change merged as {sha.value[:8]}")
            step = self._advance(RunStage.NO_RELEASE)
            if isinstance(step, Err):
                return step
            return Ok(NO_RELEASE)

        console.info(
            f"release requested by #{signal.value.change_number} "
            f"(label '{signal.value.label}', bump {signal.value.bump})"
        )

        # Always a fresh read: another run may have released since the last one.
        prior_tags = self._host.list_tags()
        if isinstance(prior_tags, Err):
            return prior_tags
        console.print(f"{len(prior_tags.value)} existing tag(s)", Style.DIM)

        tag = deduce(
            signal=signal.value,
            prior_tags=prior_tags.value,
            initial_version=cfg.initial_version,
        )
        if isinstance(tag, Err):
            return tag
        if tag.value is None:
            return Err(ReleaseError(kind="invalid_state", message="no tag deduced for a release"))
        step = self._advance(RunStage.TAG_DEDUCED)
        if isinstance(step, Err):
            return step
        console.success(f"tag: {tag.value}")

        console.header("Artifacts")
        artifacts = collect(
            staging_dir=cfg.staging_dir,
            project=cfg.project,
            targets=cfg.targets,
            timeout=cfg.collect_timeout,
            poll_interval=cfg.poll_interval,
            console=console,
            clock=self._clock,
            sleeper=self._sleeper,
        )
        if isinstance(artifacts, Err):
            return artifacts
        step = self._advance(RunStage.ARTIFACTS_COLLECTED)
        if isinstance(step, Err):
            return step
        console.success(f"{len(artifacts.value)} artifact(s) collected")

        console.header("Checksums")
        manifest = stamp(artifacts=artifacts.value, console=console, out_dir=cfg.checksum_dir)
        if isinstance(manifest, Err):
            return manifest

        try:
            record = ReleaseRecord(
                tag=tag.value, artifacts=artifacts.value, manifest=manifest.value
            )
        except ValueError as e:
            return Err(ReleaseError(kind="invalid_state", message=str(e)))
        step = self._advance(RunStage.MANIFEST_STAMPED)
        if isinstance(step, Err):
            return step

        if self._dry_run:
            console.warning(f"dry run: not publishing {record.tag}")
            return Ok(ReleaseOutcome(detected=True, tag=record.tag))

        console.header("Publish")
        outcome = publish(host=self._host, record=record, target_sha=sha.value, console=console)
        if isinstance(outcome, Err):
            return outcome
        step = self._advance(RunStage.PUBLISHED)
        if isinstance(step, Err):
            return step
        console.success(f"published {record.tag}")
        return outcome
