from __future__ import annotations

from relop.core.result import Err, Ok, Result
from relop.release.errors import ReleaseError
from relop.release.host import ReleaseHost
from relop.release.model import BUMP_ORDER, MergedChange, ReleaseBump, ReleaseSignal


def _normalize(label: str) -> str:
    return label.strip().lower()


def latest_merged(changes: list[MergedChange]) -> MergedChange | None:
    """The most recently merged change; ties resolve to the highest number."""
    if not changes:
        return None
    # merged_at is ISO-8601 UTC from the host, so string order is time order.
    return max(changes, key=lambda c: (c.merged_at, c.number))


def select_bump(
    labels: frozenset[str],
    *,
    default: ReleaseBump,
    bump_labels: tuple[tuple[str, ReleaseBump], ...],
) -> ReleaseBump:
    normalized = {_normalize(label) for label in labels}
    picked = [bump for name, bump in bump_labels if _normalize(name) in normalized]
    if not picked:
        return default
    return max(picked, key=BUMP_ORDER.index)


def signal_from_changes(
    changes: list[MergedChange],
    *,
    sha: str,
    label: str,
    default_bump: ReleaseBump,
    bump_labels: tuple[tuple[str, ReleaseBump], ...] = (),
) -> ReleaseSignal:
    change = latest_merged(changes)
    if change is None:
        return ReleaseSignal(requested=False, source_sha=sha, bump=default_bump)

    wanted = _normalize(label)
    matched = next((lbl for lbl in sorted(change.labels) if _normalize(lbl) == wanted), None)
    if matched is None:
        return ReleaseSignal(
            requested=False,
            source_sha=sha,
            change_number=change.number,
            bump=default_bump,
        )

    return ReleaseSignal(
        requested=True,
        source_sha=sha,
        label=matched,
        change_number=change.number,
        bump=select_bump(change.labels, default=default_bump, bump_labels=bump_labels),
    )


def detect(
    *,
    host: ReleaseHost,
    sha: str,
    label: str,
    default_bump: ReleaseBump = "minor",
    bump_labels: tuple[tuple[str, ReleaseBump], ...] = (),
) -> Result[ReleaseSignal, ReleaseError]:
    """Decide whether the change merged as ``sha`` asked for a release.

    A missing label is a normal "no release" signal. A host failure is an
    error and is never read as "no release".
    """
    if not label.strip():
        return Err(ReleaseError(kind="invalid_config", message="release label is empty"))

    changes = host.merged_changes(sha)
    if isinstance(changes, Err):
        return changes

    return Ok(
        signal_from_changes(
            changes.value,
            sha=sha,
            label=label,
            default_bump=default_bump,
            bump_labels=bump_labels,
        )
    )
