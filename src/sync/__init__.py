"""Git-since filtering of the paths admitted into a sync session."""

from src.sync.acknowledgment_cache import PathAcknowledgmentCache
from src.sync.errors import (
    EncodingError,
    GitFilterError,
    RepositoryResolutionError,
    SubprocessError,
)
from src.sync.models import RefreshReport, RefreshResult, SyncReport
from src.sync.refresh_protocol import RefreshProtocol
from src.sync.sync_coordinator import SyncCoordinator, bootstrap
from src.sync.version_control import GitQuery, VersionControlQuery

__all__ = [
    "EncodingError",
    "GitFilterError",
    "GitQuery",
    "PathAcknowledgmentCache",
    "RefreshProtocol",
    "RefreshReport",
    "RefreshResult",
    "RepositoryResolutionError",
    "SubprocessError",
    "SyncCoordinator",
    "SyncReport",
    "VersionControlQuery",
    "bootstrap",
]
