from __future__ import annotations

from typing import Sequence


class GitPulseError(Exception):
    """Base error for the project."""


class InvalidRootError(GitPulseError):
    pass


class NotAGitRepositoryError(InvalidRootError):
    pass


class GitPolicyError(GitPulseError):
    pass


class ExternalToolError(GitPulseError):
    """
    The external tool exited non-zero or could not be launched.
    `output` holds the combined stdout+stderr when the process ran.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        exit_code: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.argv = list(argv)
        self.exit_code = exit_code
        self.output = output


class DefaultBranchUnresolved(GitPulseError):
    def __init__(self, remote: str) -> None:
        super().__init__(f"Could not determine default branch of remote '{remote}'")
        self.remote = remote
