"""Session-scoped cache of paths acknowledged for sync."""

import threading
import time
from pathlib import Path
from typing import Iterable

import structlog

from src.sync.ancestry import expand, expand_anchor, normalize_path
from src.sync.models import RefreshReport
from src.sync.refresh_protocol import RefreshProtocol
from src.sync.rwlock import ReadWriteLock
from src.sync.version_control import GitQuery, VersionControlQuery

log = structlog.stdlib.get_logger()


class PathAcknowledgmentCache:
    """Tracks which paths have changed since a reference during a sync session.

    Two sets are kept: the paths the latest refresh reported as different
    from the reference, and every path acknowledged at any point of the
    session. The second only grows, so a file whose content is reverted to
    match the reference stays in scope instead of disappearing from the
    consumer.

    Each set has its own read/write lock and no operation holds both at once.
    Refreshes are serialized among themselves; reads and forced
    acknowledgments never wait on a running refresh.
    """

    def __init__(self, repo_root: Path, reference: str, query: VersionControlQuery):
        """
        Initialize an empty cache. Use :meth:`create` to build a ready one.

        Args:
            repo_root: Resolved repository root
            reference: Reference to compare against (e.g. "HEAD", "main", a commit hash)
            query: Version-control query capability
        """
        self._repo_root: Path = Path(repo_root)
        self._reference: str = reference
        self._protocol = RefreshProtocol(query, self._repo_root, reference)

        self._changed_paths: frozenset[Path] = frozenset()
        self._changed_lock = ReadWriteLock()

        self._acknowledged_paths: set[Path] = set()
        self._acknowledged_lock = ReadWriteLock()

        # Overlapping refreshes would publish change sets out of order.
        self._refresh_lock = threading.Lock()
        self._last_report: RefreshReport | None = None

    @classmethod
    def create(
        cls,
        repo_root: Path,
        reference: str,
        anchor_paths: Iterable[Path] = (),
        query: VersionControlQuery | None = None,
    ) -> "PathAcknowledgmentCache":
        """
        Build a cache for a session: resolve the repository, pin anchors, refresh.

        Args:
            repo_root: Any location inside the repository
            reference: Reference to compare against
            anchor_paths: Paths that must stay acknowledged regardless of git state
            query: Version-control query capability (defaults to GitQuery)

        Returns:
            Cache populated by the initial refresh

        Raises:
            RepositoryResolutionError: If the repository root cannot be resolved
            SubprocessError: If the initial refresh fails
        """
        query = query if query is not None else GitQuery()
        resolved_root = query.resolve_root(Path(repo_root))

        cache = cls(resolved_root, reference, query)
        for anchor in anchor_paths:
            cache.register_anchor(anchor)

        cache.refresh()

        log.info(
            "git_filter_created",
            repo_root=str(resolved_root),
            reference=reference,
            acknowledged=len(cache.acknowledged_paths()),
        )
        return cache

    @property
    def reference(self) -> str:
        """Reference being compared against."""
        return self._reference

    @property
    def repo_root(self) -> Path:
        """Repository root path."""
        return self._repo_root

    @property
    def last_report(self) -> RefreshReport | None:
        """Report of the most recent successful refresh."""
        return self._last_report

    def refresh(self) -> RefreshReport:
        """
        Re-run the change queries and merge the result into the session.

        Newly changed paths are acknowledged for the rest of the session, even
        if they are later reverted. Nothing is committed when a mandatory query
        fails. Concurrent calls run one after another, so the published change
        set always comes from the most recently started refresh.

        Returns:
            RefreshReport describing the committed refresh

        Raises:
            SubprocessError: If the diff or untracked query fails
        """
        with self._refresh_lock:
            return self._refresh()

    def _refresh(self) -> RefreshReport:
        start = time.monotonic()
        try:
            result = self._protocol.run()
        except Exception as e:
            log.error("git_filter_refresh_failed", reference=self._reference, error=str(e))
            raise

        # Merge before publishing the new change set so the change set is
        # always a subset of the acknowledged set.
        with self._acknowledged_lock.write():
            before = len(self._acknowledged_paths)
            self._acknowledged_paths.update(result.changed_paths)
            acknowledged_count = len(self._acknowledged_paths)

        with self._changed_lock.write():
            self._changed_paths = result.changed_paths

        report = RefreshReport(
            reference=self._reference,
            changed_count=len(result.changed_paths),
            acknowledged_count=acknowledged_count,
            newly_acknowledged=acknowledged_count - before,
            diff_count=result.diff_count,
            untracked_count=result.untracked_count,
            staged_count=result.staged_count,
            duration_seconds=time.monotonic() - start,
            diagnostics=result.diagnostics,
        )
        self._last_report = report

        log.debug(
            "git_filter_refreshed",
            reference=self._reference,
            reported=result.reported_count,
            changed=report.changed_count,
            acknowledged=report.acknowledged_count,
            newly_acknowledged=report.newly_acknowledged,
        )
        return report

    def is_acknowledged(self, path: Path) -> bool:
        """
        Check if a path should be synced.

        A path is acknowledged when it, or any of its descendants, has been
        acknowledged at any point during the session.

        Args:
            path: Absolute path, or a path relative to the repository root

        Returns:
            True if the path is in scope for sync
        """
        raw = self._absolute(path)
        canonical = normalize_path(raw)

        direct = False
        descendant: Path | None = None
        with self._acknowledged_lock.read():
            if canonical in self._acknowledged_paths or raw in self._acknowledged_paths:
                direct = True
            else:
                # Directories are traversed when any descendant is acknowledged.
                for acknowledged in self._acknowledged_paths:
                    if canonical in acknowledged.parents or raw in acknowledged.parents:
                        descendant = acknowledged
                        break

        if direct:
            log.debug("path_directly_acknowledged", path=str(raw))
            return True
        if descendant is not None:
            log.debug(
                "path_has_acknowledged_descendant",
                path=str(raw),
                descendant=str(descendant),
            )
            return True

        log.debug("path_not_acknowledged", path=str(raw), canonical=str(canonical))
        return False

    def force_acknowledge(self, path: Path) -> None:
        """
        Acknowledge a path, its ancestors and its metadata files unconditionally.

        Args:
            path: Absolute path, or a path relative to the repository root
        """
        self._merge(expand(self._absolute(path)))

    def register_anchor(self, path: Path) -> None:
        """
        Pin a project path so the project structure exists without any git changes.

        Args:
            path: Project directory or project file
        """
        total = self._merge(expand_anchor(self._absolute(path)))
        log.debug("git_filter_anchor_registered", path=str(path), acknowledged=total)

    def acknowledged_paths(self) -> frozenset[Path]:
        """Snapshot of every path acknowledged during the session."""
        with self._acknowledged_lock.read():
            return frozenset(self._acknowledged_paths)

    def changed_paths(self) -> frozenset[Path]:
        """Snapshot of the paths reported by the latest refresh."""
        with self._changed_lock.read():
            return self._changed_paths

    def _merge(self, paths: set[Path]) -> int:
        with self._acknowledged_lock.write():
            self._acknowledged_paths.update(paths)
            return len(self._acknowledged_paths)

    def _absolute(self, path: Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self._repo_root / path
