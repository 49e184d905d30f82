from __future__ import annotations

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.release.errors import ReleaseError, ReleaseErrorKind
from relop.release.host import ReleaseHost
from relop.release.model import ReleaseOutcome, ReleaseRecord


def release_notes(record: ReleaseRecord) -> str:
    lines = ["SHA-256 checksums:", ""]
    for entry in sorted(record.manifest, key=lambda e: e.name):
        lines.append(f"    {entry.sha256}  {entry.name}")
    return "\n".join(lines) + "\n"


def publish(
    *,
    host: ReleaseHost,
    record: ReleaseRecord,
    target_sha: str,
    console: ConsoleProtocol,
) -> Result[ReleaseOutcome, ReleaseError]:
    """Create the release for ``record.tag`` with every artifact and checksum.

    Never overwrites: an existing tag or release is a hard error and nothing
    is uploaded. The release is assembled as a draft, made public by id in one
    final step, and then checked to own its tag. If any of that fails, the
    draft stays on the host for a human to inspect; nothing is retried.
    """
    tag = record.tag

    exists = host.tag_exists(tag)
    if isinstance(exists, Err):
        return exists
    if exists.value:
        return Err(
            ReleaseError(
                kind="tag_exists",
                message=f"release already exists for tag {tag}",
                hint="Duplicate tag: a concurrent run released first, or the version was reused.",
            )
        )

    files = record.upload_paths()
    console.print(f"creating draft {tag} with {len(files)} file(s)", Style.DIM)
    created = host.create_draft(
        tag=tag,
        target_sha=target_sha,
        notes=release_notes(record),
        files=files,
    )
    if isinstance(created, Err):
        return Err(_with_remnant_hint(created.error, tag))
    release_id = created.value

    published = host.publish_release(release_id)
    if isinstance(published, Err):
        return Err(_with_remnant_hint(published.error, tag, release_id=release_id))

    confirmed = _confirm_ownership(host, tag=tag, release_id=release_id, target_sha=target_sha)
    if isinstance(confirmed, Err):
        return confirmed

    return Ok(ReleaseOutcome(detected=True, tag=tag))


def _confirm_ownership(
    host: ReleaseHost,
    *,
    tag: str,
    release_id: int,
    target_sha: str,
) -> Result[None, ReleaseError]:
    """Check that ``tag`` now belongs to our release and points at ``target_sha``.

    Drafts do not reserve a tag, so another run can publish the same tag
    between our existence check and our publish.
    """
    owner = host.release_id_for_tag(tag)
    if isinstance(owner, Err):
        return Err(_with_remnant_hint(owner.error, tag, release_id=release_id))
    if owner.value != release_id:
        return Err(
            _with_remnant_hint(
                ReleaseError(
                    kind="tag_exists",
                    message=f"tag {tag} was claimed by another release",
                ),
                tag,
                release_id=release_id,
                kind="tag_exists",
            )
        )

    target = host.tag_target(tag)
    if isinstance(target, Err):
        return Err(_with_remnant_hint(target.error, tag, release_id=release_id))
    if target.value != target_sha:
        return Err(
            _with_remnant_hint(
                ReleaseError(
                    kind="tag_exists",
                    message=f"tag {tag} points at {target.value or 'nothing'}, not {target_sha}",
                ),
                tag,
                release_id=release_id,
                kind="tag_exists",
            )
        )
    return Ok(None)


def _with_remnant_hint(
    error: ReleaseError,
    tag: str,
    *,
    release_id: int | None = None,
    kind: ReleaseErrorKind = "publish_failed",
) -> ReleaseError:
    detail = f"; {error.hint}" if error.hint else ""
    remnant = (
        f"A draft release for {tag}"
        if release_id is None
        else f"The draft release for {tag} (id {release_id})"
    )
    return ReleaseError(
        kind=kind,
        message=error.message,
        hint=f"{remnant} may remain on the host; inspect and remove it before rerunning{detail}",
    )
