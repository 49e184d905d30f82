from __future__ import annotations

from relop.release.semver import SemVer, latest_version, parse_tag


def test_parse_tag() -> None:
    assert parse_tag("v1.2.3") == SemVer(1, 2, 3)
    assert parse_tag("v0.0.1") == SemVer(0, 0, 1)
    assert parse_tag(" v0.4.0 ") == SemVer(0, 4, 0)


def test_parse_tag_rejects_other_shapes() -> None:
    assert parse_tag("v1.2.3-beta.1") is None
    assert parse_tag("1.2.3") is None
    assert parse_tag("v01.2.3") is None
    assert parse_tag("release-2024") is None


def test_ordering_is_numeric() -> None:
    assert SemVer(0, 10, 0) > SemVer(0, 9, 9)
    assert SemVer(1, 0, 0) > SemVer(0, 99, 99)


def test_bump() -> None:
    v = SemVer(1, 4, 2)
    assert v.bump("major") == SemVer(2, 0, 0)
    assert v.bump("minor") == SemVer(1, 5, 0)
    assert v.bump("patch") == SemVer(1, 4, 3)


def test_latest_version_ignores_unparseable_tags() -> None:
    assert latest_version(["v0.9.0", "v0.10.0", "nightly", "v1.0.0-rc.1"]) == SemVer(0, 10, 0)
    assert latest_version(["nightly"]) is None
    assert latest_version([]) is None
