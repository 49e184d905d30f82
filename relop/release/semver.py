from __future__ import annotations

import re
from dataclasses import dataclass

from relop.release.model import ReleaseBump


_STABLE_RE = re.compile(r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def to_tag(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: ReleaseBump) -> "SemVer":
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_tag(tag: str) -> SemVer | None:
    """Parse ``vMAJOR.MINOR.PATCH``; anything else (pre-releases, bare numbers) is None."""
    m = _STABLE_RE.match(tag.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def latest_version(tags: list[str] | tuple[str, ...] | frozenset[str]) -> SemVer | None:
    versions = [v for v in (parse_tag(t) for t in tags) if v is not None]
    return max(versions) if versions else None
