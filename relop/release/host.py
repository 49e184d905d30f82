"""Release host access.

``ReleaseHost`` is the seam between the release stages and the forge. The
production implementation drives the GitHub CLI; ``MemoryReleaseHost`` keeps
the same state in memory for tests.
Every method performs a fresh read or write: nothing is cached between calls,
so each run sees the current set of tags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from relop.core.result import Err, Ok, Result
from relop.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str, get_table
from relop.platform.process import run as run_process
from relop.release.errors import ReleaseError
from relop.release.gh import (
    ensure_gh_auth,
    ensure_gh_available,
    gh_api_json,
    gh_env,
    is_not_found,
    parse_json,
    run_gh_read,
    run_gh_read_raw,
)
from relop.release.model import MergedChange
from relop.release.timeouts import GH_TIMEOUT_SECONDS, GH_UPLOAD_TIMEOUT_SECONDS

UPLOADS_HOST = "uploads.github.com"


class ReleaseHost(Protocol):
    def merged_changes(self, sha: str) -> Result[list[MergedChange], ReleaseError]:
        """Merged changes (pull requests) associated with ``sha``."""
        ...

    def list_tags(self) -> Result[list[str], ReleaseError]:
        """Every tag currently on the host."""
        ...

    def tag_exists(self, tag: str) -> Result[bool, ReleaseError]:
        """True if ``tag`` exists as a git tag or as a (draft) release."""
        ...

    def create_draft(
        self,
        *,
        tag: str,
        target_sha: str,
        notes: str,
        files: tuple[Path, ...],
    ) -> Result[int, ReleaseError]:
        """Create an unpublished release for ``tag`` with ``files`` attached; return its id."""
        ...

    def publish_release(self, release_id: int) -> Result[None, ReleaseError]:
        """Make the draft release ``release_id`` public."""
        ...

    def release_id_for_tag(self, tag: str) -> Result[int | None, ReleaseError]:
        """Id of the published release that owns ``tag``, if any."""
        ...

    def tag_target(self, tag: str) -> Result[str | None, ReleaseError]:
        """Object the ``tag`` ref points at, if the tag exists."""
        ...


@dataclass(frozen=True, slots=True)
class GhReleaseHost:
    workspace_root: Path
    repo: str
    token: str | None = None

    def _env(self) -> dict[str, str]:
        return gh_env(self.token)

    def preflight(self) -> Result[None, ReleaseError]:
        ok = ensure_gh_available()
        if isinstance(ok, Err):
            return ok
        return ensure_gh_auth(workspace_root=self.workspace_root, env=self._env())

    def merged_changes(self, sha: str) -> Result[list[MergedChange], ReleaseError]:
        obj = gh_api_json(
            workspace_root=self.workspace_root,
            endpoint=f"repos/{self.repo}/commits/{sha}/pulls",
            env=self._env(),
        )
        if isinstance(obj, Err):
            return obj

        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(
                ReleaseError(
                    kind="invalid_payload",
                    message=f"unexpected pulls payload for {self.repo}@{sha[:8]}",
                )
            )

        out: list[MergedChange] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            number = get_int(d, "number")
            merged_at = get_str(d, "merged_at")
            # Open or closed-unmerged pull requests never request a release.
            if number is None or merged_at is None:
                continue

            labels: set[str] = set()
            for label_obj in get_list(d, "labels") or []:
                label = as_str_dict(label_obj)
                if label is None:
                    continue
                name = get_str(label, "name")
                if name is not None:
                    labels.add(name)

            out.append(MergedChange(number=number, merged_at=merged_at, labels=frozenset(labels)))

        return Ok(out)

    def list_tags(self) -> Result[list[str], ReleaseError]:
        result = run_gh_read(
            workspace_root=self.workspace_root,
            cmd=["gh", "api", "--paginate", f"repos/{self.repo}/tags", "--jq", ".[].name"],
            env=self._env(),
            message=f"failed to list tags: {self.repo}",
        )
        if isinstance(result, Err):
            return result
        return Ok([line.strip() for line in result.value.splitlines() if line.strip()])

    def tag_exists(self, tag: str) -> Result[bool, ReleaseError]:
        ref = run_gh_read_raw(
            workspace_root=self.workspace_root,
            cmd=["gh", "api", f"repos/{self.repo}/git/ref/tags/{tag}"],
            env=self._env(),
        )
        if isinstance(ref, Ok):
            return Ok(True)
        if not is_not_found(ref.error):
            return Err(
                ReleaseError(
                    kind="host_unreachable",
                    message=f"failed to look up tag {tag}",
                    hint=ref.error.stderr.strip() or None,
                )
            )

        # Drafts have no git ref yet but still own their tag name.
        release = run_gh_read_raw(
            workspace_root=self.workspace_root,
            cmd=["gh", "release", "view", tag, "--repo", self.repo, "--json", "tagName"],
            env=self._env(),
        )
        if isinstance(release, Ok):
            return Ok(True)
        if is_not_found(release.error):
            return Ok(False)
        return Err(
            ReleaseError(
                kind="host_unreachable",
                message=f"failed to look up release {tag}",
                hint=release.error.stderr.strip() or None,
            )
        )

    def create_draft(
        self,
        *,
        tag: str,
        target_sha: str,
        notes: str,
        files: tuple[Path, ...],
    ) -> Result[int, ReleaseError]:
        created = run_process(
            [
                "gh",
                "api",
                "-X",
                "POST",
                f"repos/{self.repo}/releases",
                "-f",
                f"tag_name={tag}",
                "-f",
                f"target_commitish={target_sha}",
                "-f",
                f"name={tag}",
                "-f",
                f"body={notes}",
                "-F",
                "draft=true",
            ],
            cwd=self.workspace_root,
            env=self._env(),
            timeout=GH_TIMEOUT_SECONDS,
        )
        if isinstance(created, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"failed to create draft release {tag}",
                    hint=created.error.stderr.strip() or None,
                )
            )

        payload = parse_json(created.value, what="gh api release create")
        if isinstance(payload, Err):
            return payload
        release = as_str_dict(payload.value)
        release_id = get_int(release, "id") if release is not None else None
        if release_id is None:
            return Err(
                ReleaseError(
                    kind="invalid_payload",
                    message=f"no release id returned for draft {tag}",
                )
            )

        for path in files:
            uploaded = self._upload_asset(release_id, path)
            if isinstance(uploaded, Err):
                return uploaded
        return Ok(release_id)

    def _upload_asset(self, release_id: int, path: Path) -> Result[None, ReleaseError]:
        url = (
            f"https://{UPLOADS_HOST}/repos/{self.repo}/releases/{release_id}/assets"
            f"?name={quote(path.name)}"
        )
        result = run_process(
            [
                "gh",
                "api",
                "-X",
                "POST",
                url,
                "--input",
                str(path),
                "-H",
                "Content-Type: application/octet-stream",
            ],
            cwd=self.workspace_root,
            env=self._env(),
            timeout=GH_UPLOAD_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"failed to upload {path.name} to draft release {release_id}",
                    hint=result.error.stderr.strip() or None,
                )
            )
        return Ok(None)

    def publish_release(self, release_id: int) -> Result[None, ReleaseError]:
        # By id, never by tag name: the tag may already belong to another release.
        result = run_process(
            [
                "gh",
                "api",
                "-X",
                "PATCH",
                f"repos/{self.repo}/releases/{release_id}",
                "-F",
                "draft=false",
            ],
            cwd=self.workspace_root,
            env=self._env(),
            timeout=GH_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"failed to publish draft release {release_id}",
                    hint=result.error.stderr.strip() or None,
                )
            )
        return Ok(None)

    def release_id_for_tag(self, tag: str) -> Result[int | None, ReleaseError]:
        obj = self._lookup_json(f"repos/{self.repo}/releases/tags/{tag}", what=f"release {tag}")
        if isinstance(obj, Err):
            return obj
        if obj.value is None:
            return Ok(None)
        release = as_str_dict(obj.value)
        release_id = get_int(release, "id") if release is not None else None
        if release_id is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"no id in release payload for {tag}")
            )
        return Ok(release_id)

    def tag_target(self, tag: str) -> Result[str | None, ReleaseError]:
        obj = self._lookup_json(f"repos/{self.repo}/git/ref/tags/{tag}", what=f"tag {tag}")
        if isinstance(obj, Err):
            return obj
        if obj.value is None:
            return Ok(None)
        ref = as_str_dict(obj.value)
        target = get_table(ref, "object") if ref is not None else None
        sha = get_str(target, "sha") if target is not None else None
        if sha is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"no object in ref payload for {tag}")
            )
        return Ok(sha)

    def _lookup_json(self, endpoint: str, *, what: str) -> Result[object | None, ReleaseError]:
        """GET ``endpoint``; a 404 is ``None``, any other failure an error."""
        result = run_gh_read_raw(
            workspace_root=self.workspace_root,
            cmd=["gh", "api", endpoint],
            env=self._env(),
        )
        if isinstance(result, Err):
            if is_not_found(result.error):
                return Ok(None)
            return Err(
                ReleaseError(
                    kind="host_unreachable",
                    message=f"failed to look up {what}",
                    hint=result.error.stderr.strip() or None,
                )
            )
        return parse_json(result.value, what=f"gh api {endpoint}")


def _no_changes() -> list[MergedChange]:
    return []


def _no_strings() -> list[str]:
    return []


@dataclass
class MemoryReleaseHost:
    """Release host kept in memory, recording every call.

    Mirrors GitHub's behavior where it matters for races: drafts own no tag,
    and publishing a release whose tag already exists leaves the tag on the
    release that created it.
    """

    changes: list[MergedChange] = field(default_factory=_no_changes)
    tags: list[str] = field(default_factory=_no_strings)
    # Tags another run creates before this run's existence check.
    raced_tags: set[str] = field(default_factory=set)
    # Tags another run publishes between this run's draft and its publish.
    claimed_tags: set[str] = field(default_factory=set)
    changes_error: ReleaseError | None = None
    tags_error: ReleaseError | None = None
    create_error: ReleaseError | None = None
    publish_error: ReleaseError | None = None
    calls: list[str] = field(default_factory=_no_strings)
    drafts: dict[str, tuple[Path, ...]] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    published: list[str] = field(default_factory=_no_strings)
    owners: dict[str, int] = field(default_factory=dict)
    tag_targets: dict[str, str] = field(default_factory=dict)
    _releases: dict[int, tuple[str, str]] = field(default_factory=dict, init=False)

    def merged_changes(self, sha: str) -> Result[list[MergedChange], ReleaseError]:
        self.calls.append(f"merged_changes:{sha}")
        if self.changes_error is not None:
            return Err(self.changes_error)
        return Ok(list(self.changes))

    def list_tags(self) -> Result[list[str], ReleaseError]:
        self.calls.append("list_tags")
        if self.tags_error is not None:
            return Err(self.tags_error)
        return Ok(list(self.tags))

    def tag_exists(self, tag: str) -> Result[bool, ReleaseError]:
        self.calls.append(f"tag_exists:{tag}")
        return Ok(tag in self.tags or tag in self.raced_tags or tag in self.drafts)

    def create_draft(
        self,
        *,
        tag: str,
        target_sha: str,
        notes: str,
        files: tuple[Path, ...],
    ) -> Result[int, ReleaseError]:
        self.calls.append(f"create_draft:{tag}@{target_sha[:8]}")
        if self.create_error is not None:
            return Err(self.create_error)
        release_id = len(self._releases) + 1
        self._releases[release_id] = (tag, target_sha)
        self.drafts[tag] = files
        self.notes[tag] = notes
        return Ok(release_id)

    def publish_release(self, release_id: int) -> Result[None, ReleaseError]:
        self.calls.append(f"publish_release:{release_id}")
        if self.publish_error is not None:
            return Err(self.publish_error)
        tag, target_sha = self._releases[release_id]
        if tag in self.claimed_tags and tag not in self.owners:
            self._claim(tag, release_id=0, target_sha="0" * 40)
        if tag not in self.owners:
            self._claim(tag, release_id=release_id, target_sha=target_sha)
            self.published.append(tag)
        return Ok(None)

    def _claim(self, tag: str, *, release_id: int, target_sha: str) -> None:
        self.owners[tag] = release_id
        self.tag_targets[tag] = target_sha
        self.tags.append(tag)

    def release_id_for_tag(self, tag: str) -> Result[int | None, ReleaseError]:
        self.calls.append(f"release_id_for_tag:{tag}")
        return Ok(self.owners.get(tag))

    def tag_target(self, tag: str) -> Result[str | None, ReleaseError]:
        self.calls.append(f"tag_target:{tag}")
        return Ok(self.tag_targets.get(tag))
