"""Data models for acknowledgment refreshes and sync notifications."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class RefreshResult(BaseModel):
    """Outcome of one run of the change-detection queries, before it is merged."""

    changed_paths: frozenset[Path] = Field(
        default_factory=frozenset,
        description="Expanded closure of every path reported by the queries",
    )
    diff_count: int = Field(default=0, ge=0, description="Paths reported by diff-vs-reference")
    untracked_count: int = Field(default=0, ge=0, description="Untracked paths reported")
    staged_count: int = Field(default=0, ge=0, description="Paths reported by staged-vs-reference")
    reported_count: int = Field(
        default=0, ge=0, description="Distinct paths across all queries, before expansion"
    )
    diagnostics: list[str] = Field(
        default_factory=list, description="Tolerated failures encountered during the queries"
    )


class RefreshReport(BaseModel):
    """Report of a committed refresh of the acknowledgment cache."""

    reference: str = Field(..., description="Reference the working tree was compared against")
    changed_count: int = Field(default=0, ge=0, description="Size of the new change set")
    acknowledged_count: int = Field(
        default=0, ge=0, description="Size of the session acknowledged set after merging"
    )
    newly_acknowledged: int = Field(
        default=0, ge=0, description="Paths acknowledged for the first time by this refresh"
    )
    diff_count: int = Field(default=0, ge=0)
    untracked_count: int = Field(default=0, ge=0)
    staged_count: int = Field(default=0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Refresh duration in seconds")
    diagnostics: list[str] = Field(
        default_factory=list, description="Tolerated failures, e.g. a failed staged query"
    )


class SyncReport(BaseModel):
    """Report of handling one filesystem change notification."""

    start_time: datetime = Field(..., description="Notification handling start timestamp")
    end_time: datetime = Field(..., description="Notification handling end timestamp")
    duration_seconds: float = Field(default=0.0, ge=0.0)
    refresh: RefreshReport | None = Field(
        default=None, description="Refresh report, absent when the filter is disabled or failed"
    )
    errors: list[str] = Field(
        default_factory=list, description="List of errors encountered during handling"
    )

    @property
    def success(self) -> bool:
        """Check if the notification was handled without errors."""
        return len(self.errors) == 0
