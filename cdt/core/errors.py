"""Process exit codes.

Every command maps its outcome onto one of these values. They are part of
the CLI contract (CI jobs key off them) and must stay stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Every selected tool is present (or was installed)
    - 1: User error (bad arguments, refusing to run as root)
    - 2: Environment error (tools missing on check, skips in strict mode)
    - 3: Install error (an install failed or could not be verified)
    - 5: I/O error (catalogue or config unreadable)
    - 130: Interrupted by the user
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    INSTALL_ERROR = 3
    IO_ERROR = 5
    INTERRUPTED = 130

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
