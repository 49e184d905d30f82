"""Process exit codes.

The orchestrating pipeline only needs "zero or not", but distinct codes make
it obvious from a job log which class of failure stopped the run:

- 0: Success (release published, or no release requested)
- 1: User error (bad configuration or arguments)
- 2: Environment error (gh missing, not authenticated)
- 3: Integrity error (missing/unexpected artifacts, digest failure)
- 4: Network error (host unreachable, publish failed)
- 5: I/O error (local file access)
- 6: Conflict (tag already exists, non-monotonic version)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands. Values are stable."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    INTEGRITY_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    CONFLICT_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
