"""Exceptions raised by the git acknowledgment filter."""


class GitFilterError(Exception):
    """Base class for git filter failures."""

    pass


class RepositoryResolutionError(GitFilterError):
    """Raised when no Git repository can be found at a location."""

    pass


class SubprocessError(GitFilterError):
    """Raised when a mandatory version-control query cannot be executed or exits non-zero."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class EncodingError(GitFilterError):
    """Raised for non-UTF-8 query output when strict decoding is requested."""

    pass
