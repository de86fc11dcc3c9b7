"""Process exit codes for tagsync commands.

CI reads nothing but the exit status, so these values are the whole error
contract with the workflow runner and must stay stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success (including "no new tags")
    - 1: User error (bad tag input, release already exists)
    - 2: Environment error (git/gh missing, auth, bad config)
    - 3: Build error (cargo failed, archive missing)
    - 4: Network error (fetch, push, upload, dispatch)
    - 5: I/O error (outputs file, archive write)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
