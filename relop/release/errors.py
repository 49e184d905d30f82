"""Error payload for every release stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "gh_missing",
    "gh_auth_required",
    "host_unreachable",
    "invalid_payload",
    "invalid_config",
    "invalid_tag",
    "invalid_state",
    "non_monotonic",
    "tag_exists",
    "missing_artifact",
    "unexpected_artifact",
    "digest_failed",
    "checksum_mismatch",
    "publish_failed",
    "io_failed",
]

ErrorCategory = Literal["usage", "environment", "infrastructure", "integrity", "conflict", "io"]

_CATEGORIES: dict[ReleaseErrorKind, ErrorCategory] = {
    "invalid_config": "usage",
    "gh_missing": "environment",
    "gh_auth_required": "environment",
    "host_unreachable": "infrastructure",
    "invalid_payload": "infrastructure",
    "publish_failed": "infrastructure",
    "missing_artifact": "integrity",
    "unexpected_artifact": "integrity",
    "digest_failed": "integrity",
    "checksum_mismatch": "integrity",
    "invalid_tag": "conflict",
    "invalid_state": "conflict",
    "non_monotonic": "conflict",
    "tag_exists": "conflict",
    "io_failed": "io",
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def category(self) -> ErrorCategory:
        return error_category(self.kind)

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def error_category(kind: ReleaseErrorKind) -> ErrorCategory:
    return _CATEGORIES[kind]
