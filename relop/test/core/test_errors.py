"""Tests for relop.core.errors."""

from relop.core.errors import ErrorCode


class TestErrorCodeValues:
    def test_ok_is_zero(self) -> None:
        assert ErrorCode.OK == 0

    def test_failure_codes_are_stable(self) -> None:
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.ENV_ERROR == 2
        assert ErrorCode.INTEGRITY_ERROR == 3
        assert ErrorCode.NETWORK_ERROR == 4
        assert ErrorCode.IO_ERROR == 5
        assert ErrorCode.CONFLICT_ERROR == 6

    def test_codes_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))


class TestErrorCodeUsage:
    def test_str_is_human_readable(self) -> None:
        assert str(ErrorCode.CONFLICT_ERROR) == "conflict error"

    def test_success_flags(self) -> None:
        assert ErrorCode.OK.is_success
        assert not ErrorCode.OK.is_error
        assert ErrorCode.INTEGRITY_ERROR.is_error
