"""Sync coordinator wiring the git filter into a sync session."""

from datetime import datetime
from pathlib import Path
from typing import Iterable

import structlog

from src.models.config import GitFilterConfig
from src.sync.acknowledgment_cache import PathAcknowledgmentCache
from src.sync.errors import GitFilterError, SubprocessError
from src.sync.models import SyncReport
from src.sync.version_control import GitQuery, VersionControlQuery
from src.utils.config_loader import ConfigLoader
from src.utils.logging_config import configure_logging_from_config
from src.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()


class SyncCoordinator:
    """Decides which paths enter a sync payload for one session.

    When a base reference is configured, only paths acknowledged by the git
    filter are admitted; otherwise every candidate is.
    """

    def __init__(self, config: GitFilterConfig, query: VersionControlQuery | None = None):
        """
        Initialize sync coordinator.

        Args:
            config: Git filter configuration
            query: Optional version-control query (uses GitQuery if None)
        """
        self._config = config
        self._query: VersionControlQuery = (
            query if query is not None else GitQuery(strict_encoding=config.strict_encoding)
        )
        self._project_path: Path = Path(config.project_path).absolute()
        self._cache: PathAcknowledgmentCache | None = None

        log.info(
            "sync_coordinator_initialized",
            project_path=str(self._project_path),
            base_ref=config.base_ref,
        )

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def cache(self) -> PathAcknowledgmentCache | None:
        return self._cache

    def start(self) -> None:
        """
        Build the acknowledgment cache anchored at the project path.

        Raises:
            RepositoryResolutionError: If the project is not inside a Git repository
            SubprocessError: If the initial refresh fails
        """
        if not self.enabled:
            log.info("git_filter_disabled", project_path=str(self._project_path))
            return
        if self._cache is not None:
            return

        log.info(
            "git_filter_enabled",
            reference=self._config.base_ref,
            message=f"only syncing files changed since '{self._config.base_ref}'",
        )
        self._cache = PathAcknowledgmentCache.create(
            self._project_path,
            self._config.base_ref,
            anchor_paths=[self._project_path],
            query=self._query,
        )

    def handle_change(self) -> SyncReport:
        """
        React to a filesystem change notification by refreshing the filter.

        A failed refresh is reported, not raised: previously acknowledged
        paths stay acknowledged and the next notification tries again.

        Returns:
            SyncReport for this notification
        """
        start_time = datetime.now()
        errors: list[str] = []
        refresh_report = None

        if self.enabled:
            cache = self._require_cache()
            refresh = exponential_backoff_retry(
                max_retries=self._config.refresh_retries,
                base_delay=self._config.retry_base_delay,
                exceptions=(SubprocessError,),
            )(cache.refresh)
            try:
                refresh_report = refresh()
            except GitFilterError as e:
                log.error("git_filter_refresh_failed_after_change", error=str(e))
                errors.append(f"Refresh failed: {e}")

        end_time = datetime.now()
        return SyncReport(
            start_time=start_time,
            end_time=end_time,
            duration_seconds=(end_time - start_time).total_seconds(),
            refresh=refresh_report,
            errors=errors,
        )

    def is_admitted(self, path: Path) -> bool:
        """Check if a single candidate path may be included in a sync payload."""
        if not self.enabled:
            return True
        return self._require_cache().is_acknowledged(path)

    def admit(self, candidates: Iterable[Path]) -> list[Path]:
        """
        Filter candidate paths down to the ones to include in a sync payload.

        Args:
            candidates: Paths considered for sync

        Returns:
            Admitted paths, in input order
        """
        candidates = list(candidates)
        admitted = [path for path in candidates if self.is_admitted(path)]
        log.debug("paths_admitted", candidates=len(candidates), admitted=len(admitted))
        return admitted

    def pin(self, path: Path) -> None:
        """Always sync a path regardless of git state. No-op when the filter is disabled."""
        if self.enabled:
            self._require_cache().force_acknowledge(path)

    def mode_description(self) -> str:
        """Human readable sync mode, e.g. ``git-since (HEAD)``."""
        if self.enabled:
            return f"git-since ({self._config.base_ref})"
        return "full"

    def _require_cache(self) -> PathAcknowledgmentCache:
        if self._cache is None:
            raise RuntimeError("SyncCoordinator.start() must be called before use")
        return self._cache


def bootstrap(
    config_path: str | None = None, query: VersionControlQuery | None = None
) -> SyncCoordinator:
    """
    Load configuration, configure logging and start a coordinator.

    Args:
        config_path: Optional path to a YAML configuration file
        query: Optional version-control query (uses GitQuery if None)

    Returns:
        Started SyncCoordinator

    Raises:
        ConfigurationError: If configuration is invalid
        RepositoryResolutionError: If the project is not inside a Git repository
        SubprocessError: If the initial refresh fails
    """
    loader = ConfigLoader()
    config = loader.load_config(config_path)
    configure_logging_from_config(config.logging)
    loader.validate_config(config)

    coordinator = SyncCoordinator(config.git_filter, query=query)
    coordinator.start()

    log.info("sync_session_started", mode=coordinator.mode_description())
    return coordinator
