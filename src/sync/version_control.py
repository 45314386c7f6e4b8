"""Version-control change queries consumed by the acknowledgment filter."""

import subprocess
from pathlib import Path
from typing import Protocol

import structlog

from src.sync.errors import EncodingError, RepositoryResolutionError, SubprocessError

log = structlog.stdlib.get_logger()


class VersionControlQuery(Protocol):
    """Capability that answers the change-detection queries for a repository.

    Every listing method returns the raw, newline-separated output of the
    query; paths are relative to the repository root.
    """

    def resolve_root(self, location: Path) -> Path:
        """Return the repository root containing ``location``."""
        ...

    def diff(self, repo_root: Path, reference: str) -> str:
        """List paths that differ between the working tree and ``reference``."""
        ...

    def untracked(self, repo_root: Path) -> str:
        """List untracked, non-ignored paths."""
        ...

    def staged(self, repo_root: Path, reference: str) -> str:
        """List paths staged in the index that differ from ``reference``."""
        ...


def decode_output(raw: bytes, command: list[str], strict: bool = False) -> str:
    """
    Decode query output as UTF-8.

    Invalid bytes are replaced rather than failing the query, unless
    ``strict`` is set.

    Raises:
        EncodingError: If the output is not valid UTF-8 and ``strict`` is True
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        if strict:
            raise EncodingError(f"Non UTF-8 output from {' '.join(command)}: {e}") from e
        log.warning("query_output_not_utf8", command=command, error=str(e))
        return raw.decode("utf-8", errors="replace")


class GitQuery:
    """Runs the change-detection queries with the ``git`` executable."""

    def __init__(self, executable: str = "git", strict_encoding: bool = False):
        """
        Initialize the git query runner.

        Args:
            executable: Name or path of the git executable
            strict_encoding: Raise EncodingError instead of decoding lossily
        """
        self._executable = executable
        self._strict_encoding = strict_encoding

    def resolve_root(self, location: Path) -> Path:
        """
        Find the Git repository root for the given location.

        Raises:
            RepositoryResolutionError: If git is missing or location is not inside a repository
        """
        location = Path(location)
        # A project file is resolved from its directory.
        cwd = location if location.is_dir() else location.parent
        try:
            output = self._run(["rev-parse", "--show-toplevel"], cwd=cwd)
        except SubprocessError as e:
            log.error("repository_resolution_failed", location=str(location), error=str(e))
            raise RepositoryResolutionError(
                f"Failed to find Git repository root: {e.stderr or e}"
            ) from e

        root = output.strip()
        if not root:
            raise RepositoryResolutionError(f"git returned no repository root for {location}")

        log.debug("repository_root_resolved", location=str(location), repo_root=root)
        return Path(root)

    def diff(self, repo_root: Path, reference: str) -> str:
        return self._run(["diff", "--name-only", reference, "--"], cwd=repo_root)

    def untracked(self, repo_root: Path) -> str:
        return self._run(["ls-files", "--others", "--exclude-standard"], cwd=repo_root)

    def staged(self, repo_root: Path, reference: str) -> str:
        return self._run(["diff", "--name-only", "--cached", reference, "--"], cwd=repo_root)

    def _run(self, args: list[str], cwd: Path) -> str:
        """
        Run a git command and return its decoded standard output.

        Raises:
            SubprocessError: If git cannot be executed or exits non-zero
        """
        # Unquoted paths: git escapes non-ASCII names by default.
        command = [self._executable, "-c", "core.quotePath=false", *args]
        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            raise SubprocessError(
                f"Failed to execute {' '.join(command)}: {e}", command=command
            ) from e

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise SubprocessError(
                f"{' '.join(command)} failed: {stderr}",
                command=command,
                returncode=completed.returncode,
                stderr=stderr,
            )

        return decode_output(completed.stdout, command, strict=self._strict_encoding)
