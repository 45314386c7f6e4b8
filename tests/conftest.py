"""Shared fixtures for the git filter tests."""

from pathlib import Path

import pytest

from src.sync.errors import RepositoryResolutionError, SubprocessError

VIRTUAL_REPO = Path("/virtual/repo")


class FakeQuery:
    """Deterministic stand-in for the git queries.

    Outputs are plain strings, exactly as git would print them; names added
    to ``failing`` make the matching query raise.
    """

    def __init__(self, root: Path = VIRTUAL_REPO):
        self.root = root
        self.diff_output = ""
        self.untracked_output = ""
        self.staged_output = ""
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str | None]] = []

    def resolve_root(self, location: Path) -> Path:
        self.calls.append(("resolve_root", str(location)))
        if "resolve_root" in self.failing:
            raise RepositoryResolutionError(f"Failed to find Git repository root: {location}")
        return self.root

    def diff(self, repo_root: Path, reference: str) -> str:
        self._record("diff", reference)
        return self.diff_output

    def untracked(self, repo_root: Path) -> str:
        self._record("untracked", None)
        return self.untracked_output

    def staged(self, repo_root: Path, reference: str) -> str:
        self._record("staged", reference)
        return self.staged_output

    def _record(self, name: str, reference: str | None) -> None:
        self.calls.append((name, reference))
        if name in self.failing:
            raise SubprocessError(
                f"git {name} failed: fatal: bad revision",
                command=["git", name],
                returncode=128,
                stderr="fatal: bad revision",
            )


@pytest.fixture
def fake_query() -> FakeQuery:
    """Fake query rooted at a repository path that does not exist on disk."""
    return FakeQuery()


@pytest.fixture
def repo_root() -> Path:
    return VIRTUAL_REPO
