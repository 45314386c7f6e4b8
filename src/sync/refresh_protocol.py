"""Orchestration of the change-detection queries for one refresh."""

from pathlib import Path

import structlog

from src.sync.ancestry import expand
from src.sync.errors import EncodingError, SubprocessError
from src.sync.models import RefreshResult
from src.sync.version_control import VersionControlQuery

log = structlog.stdlib.get_logger()


def parse_path_lines(output: str, repo_root: Path) -> set[Path]:
    """
    Turn line-oriented query output into absolute paths.

    Args:
        output: Newline-separated repository-relative paths
        repo_root: Repository root the paths are relative to

    Returns:
        Absolute paths, one per non-blank line
    """
    paths: set[Path] = set()
    for line in output.splitlines():
        relative = line.strip()
        if relative:
            paths.add(repo_root / relative)
    return paths


class RefreshProtocol:
    """Runs diff, untracked and staged queries and expands their union.

    The protocol never touches shared state: it returns a RefreshResult that
    the caller commits, so a fatal query error leaves nothing half-merged.
    """

    def __init__(self, query: VersionControlQuery, repo_root: Path, reference: str):
        """
        Initialize the refresh protocol.

        Args:
            query: Version-control query capability
            repo_root: Repository root the query results are relative to
            reference: Reference to compare against
        """
        self._query = query
        self._repo_root = repo_root
        self._reference = reference

    def run(self) -> RefreshResult:
        """
        Run the three queries and expand every reported path.

        Returns:
            RefreshResult with the expanded change set

        Raises:
            SubprocessError: If the diff or untracked query fails
        """
        diff_paths = parse_path_lines(
            self._query.diff(self._repo_root, self._reference), self._repo_root
        )
        if diff_paths:
            log.debug("git_diff_changed_files", count=len(diff_paths), reference=self._reference)

        untracked_paths = parse_path_lines(self._query.untracked(self._repo_root), self._repo_root)

        diagnostics: list[str] = []
        try:
            staged_paths = parse_path_lines(
                self._query.staged(self._repo_root, self._reference), self._repo_root
            )
        except (SubprocessError, EncodingError) as e:
            log.warning("staged_query_failed", reference=self._reference, error=str(e))
            diagnostics.append(f"Staged query failed: {e}")
            staged_paths = set()

        reported = diff_paths | untracked_paths | staged_paths

        changed: set[Path] = set()
        for path in reported:
            log.debug("acknowledging_reported_path", path=str(path))
            changed.update(expand(path))

        return RefreshResult(
            changed_paths=frozenset(changed),
            diff_count=len(diff_paths),
            untracked_count=len(untracked_paths),
            staged_count=len(staged_paths),
            reported_count=len(reported),
            diagnostics=diagnostics,
        )
