"""Next-tag computation.

Ordering is numeric semantic versioning over ``vMAJOR.MINOR.PATCH`` tags.
Tags that do not parse (pre-releases, unrelated tags) do not take part in
ordering but still block reuse of their exact name.
"""

from __future__ import annotations

from collections.abc import Iterable

from relop.core.result import Err, Ok, Result
from relop.release.errors import ReleaseError
from relop.release.model import ReleaseBump, ReleaseSignal
from relop.release.semver import SemVer, latest_version, parse_tag

DEFAULT_INITIAL_VERSION = "v0.1.0"


def next_tag(
    *,
    prior_tags: Iterable[str],
    bump: ReleaseBump,
    initial_version: str = DEFAULT_INITIAL_VERSION,
) -> Result[str, ReleaseError]:
    tags = frozenset(t.strip() for t in prior_tags if t.strip())
    latest = latest_version(tags)

    if latest is None:
        initial = parse_tag(initial_version)
        if initial is None:
            return Err(
                ReleaseError(
                    kind="invalid_tag",
                    message=f"invalid initial version: {initial_version}",
                    hint="Expected: vMAJOR.MINOR.PATCH",
                )
            )
        candidate = initial
    else:
        candidate = latest.bump(bump)

    checked = validate_next(candidate=candidate, prior_tags=tags)
    if isinstance(checked, Err):
        return checked
    return Ok(candidate.to_tag())


def validate_next(*, candidate: SemVer, prior_tags: frozenset[str]) -> Result[None, ReleaseError]:
    tag = candidate.to_tag()
    if tag in prior_tags:
        return Err(
            ReleaseError(
                kind="tag_exists",
                message=f"tag already exists: {tag}",
                hint="Another run may have released concurrently; rerun after checking the host.",
            )
        )

    for prior in prior_tags:
        v = parse_tag(prior)
        if v is not None and candidate <= v:
            return Err(
                ReleaseError(
                    kind="non_monotonic",
                    message=f"computed tag {tag} is not greater than existing tag {prior}",
                )
            )
    return Ok(None)


def deduce(
    *,
    signal: ReleaseSignal,
    prior_tags: Iterable[str],
    initial_version: str = DEFAULT_INITIAL_VERSION,
) -> Result[str | None, ReleaseError]:
    """Mint the tag for this run, or None when no release was requested."""
    if not signal.requested:
        return Ok(None)

    result = next_tag(prior_tags=prior_tags, bump=signal.bump, initial_version=initial_version)
    if isinstance(result, Err):
        return result
    return Ok(result.value)
