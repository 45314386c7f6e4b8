"""Tests for the sync coordinator that admits paths into a sync payload."""

from pathlib import Path

import pytest

from conftest import VIRTUAL_REPO, FakeQuery
from src.models.config import GitFilterConfig
from src.sync.errors import RepositoryResolutionError
from src.sync.sync_coordinator import SyncCoordinator, bootstrap


class FlakyQuery(FakeQuery):
    """Fake query whose untracked listing fails a fixed number of times."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.remaining_failures = failures

    def untracked(self, repo_root: Path) -> str:
        if self.remaining_failures > 0 and not self.failing:
            self.remaining_failures -= 1
            self.failing.add("untracked")
            try:
                return super().untracked(repo_root)
            finally:
                self.failing.discard("untracked")
        return super().untracked(repo_root)


@pytest.fixture
def enabled_config() -> GitFilterConfig:
    return GitFilterConfig(base_ref="HEAD", project_path=VIRTUAL_REPO / "game")


def test_disabled_filter_admits_everything(fake_query: FakeQuery) -> None:
    coordinator = SyncCoordinator(GitFilterConfig(base_ref=None), query=fake_query)
    coordinator.start()
    candidates = [VIRTUAL_REPO / "src" / "a.lua", VIRTUAL_REPO / "src" / "c.lua"]

    assert coordinator.admit(candidates) == candidates
    assert coordinator.cache is None
    assert coordinator.mode_description() == "full"
    assert fake_query.calls == []

    report = coordinator.handle_change()
    assert report.success
    assert report.refresh is None


def test_enabled_filter_admits_changed_and_project_paths(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    fake_query.diff_output = "src/a.lua\n"
    coordinator = SyncCoordinator(enabled_config, query=fake_query)
    coordinator.start()

    admitted = coordinator.admit(
        [
            VIRTUAL_REPO / "src" / "a.lua",
            VIRTUAL_REPO / "src" / "c.lua",
            VIRTUAL_REPO / "game",
        ]
    )

    assert admitted == [
        VIRTUAL_REPO / "src" / "a.lua",
        VIRTUAL_REPO / "game",
    ]
    assert coordinator.mode_description() == "git-since (HEAD)"


def test_handle_change_picks_up_new_files(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    coordinator = SyncCoordinator(enabled_config, query=fake_query)
    coordinator.start()
    assert not coordinator.is_admitted(VIRTUAL_REPO / "src" / "new.lua")

    fake_query.untracked_output = "src/new.lua\n"
    report = coordinator.handle_change()

    assert report.success
    assert report.refresh is not None
    assert report.refresh.untracked_count == 1
    assert coordinator.is_admitted(VIRTUAL_REPO / "src" / "new.lua")


def test_failed_refresh_is_reported_and_keeps_state(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    fake_query.diff_output = "src/a.lua\n"
    coordinator = SyncCoordinator(enabled_config, query=fake_query)
    coordinator.start()

    fake_query.diff_output = "src/b.lua\n"
    fake_query.failing.add("diff")
    report = coordinator.handle_change()

    assert not report.success
    assert report.refresh is None
    assert "Refresh failed" in report.errors[0]
    assert coordinator.is_admitted(VIRTUAL_REPO / "src" / "a.lua")
    assert not coordinator.is_admitted(VIRTUAL_REPO / "src" / "b.lua")


def test_refresh_retries_transient_failures() -> None:
    query = FlakyQuery(failures=0)
    query.untracked_output = "src/b.lua\n"
    config = GitFilterConfig(
        base_ref="HEAD",
        project_path=VIRTUAL_REPO,
        refresh_retries=2,
        retry_base_delay=0.01,
    )
    coordinator = SyncCoordinator(config, query=query)
    coordinator.start()

    query.remaining_failures = 2
    report = coordinator.handle_change()

    assert report.success
    assert query.remaining_failures == 0
    assert [name for name, _ in query.calls].count("untracked") == 4


def test_pin_forces_acknowledgment(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    coordinator = SyncCoordinator(enabled_config, query=fake_query)
    coordinator.start()

    coordinator.pin(VIRTUAL_REPO / "always" / "synced.lua")

    assert coordinator.is_admitted(VIRTUAL_REPO / "always" / "synced.lua")
    assert coordinator.is_admitted(VIRTUAL_REPO / "always" / "synced.meta.json")


def test_unstarted_coordinator_raises(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    coordinator = SyncCoordinator(enabled_config, query=fake_query)

    with pytest.raises(RuntimeError):
        coordinator.is_admitted(VIRTUAL_REPO / "src" / "a.lua")


def test_start_outside_repository_raises(
    fake_query: FakeQuery, enabled_config: GitFilterConfig
) -> None:
    fake_query.failing.add("resolve_root")
    coordinator = SyncCoordinator(enabled_config, query=fake_query)

    with pytest.raises(RepositoryResolutionError):
        coordinator.start()


def test_bootstrap_from_yaml(tmp_path: Path, fake_query: FakeQuery) -> None:
    config_file = tmp_path / "session.yaml"
    config_file.write_text(
        "git_filter:\n"
        "  base_ref: main\n"
        f"  project_path: {VIRTUAL_REPO / 'game'}\n"
        "logging:\n"
        "  log_level: DEBUG\n"
        "  json_logs: false\n"
    )
    fake_query.diff_output = "src/a.lua\n"

    coordinator = bootstrap(str(config_file), query=fake_query)

    assert coordinator.enabled
    assert coordinator.cache is not None
    assert coordinator.cache.reference == "main"
    assert coordinator.is_admitted(VIRTUAL_REPO / "src" / "a.lua")
    assert coordinator.is_admitted(VIRTUAL_REPO / "game")
