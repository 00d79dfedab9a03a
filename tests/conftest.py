from __future__ import annotations

import pytest

from gitlinks.runtime import reset_verbose_logging, set_verbose_logging

MAIN = "a" * 40
FEATURE = "b" * 40


class FakeRepo:
    """In-memory stand-in for gitlinks.gitrev.GitRepo."""

    def __init__(
        self,
        *,
        branch: str = "main",
        prefix: str = "",
        refs: dict[str, str] | None = None,
        trees: dict[str, set[str]] | None = None,
        remote_branches: set[str] | None = None,
    ) -> None:
        self.branch = branch
        self.prefix = prefix
        self.refs = refs if refs is not None else {"main": MAIN, "feature": FEATURE}
        self.trees = trees if trees is not None else {
            MAIN: {"grep.c", "src/foo.c", "ssl/s3_lib.c"},
            FEATURE: {"grep.c", "new.c"},
        }
        self.remote_branches = remote_branches if remote_branches is not None else {"main"}
        self.calls: list[tuple] = []

    def current_branch(self) -> str:
        return self.branch

    def show_prefix(self) -> str:
        return self.prefix

    def resolve_commit(self, rev: str, short: bool = False) -> str | None:
        self.calls.append(("resolve_commit", rev, short))
        full = self.refs.get(rev)
        if full is None and rev in self.trees:
            full = rev
        if full is None:
            return None
        return full[:7] if short else full

    def remote_branch_exists(self, name: str) -> bool:
        self.calls.append(("remote_branch_exists", name))
        return name in self.remote_branches

    def path_exists(self, rev: str, path: str) -> bool:
        self.calls.append(("path_exists", rev, path))
        return path in self.trees.get(rev, set())


@pytest.fixture
def fake_repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture(autouse=True)
def _quiet_logging():
    token = set_verbose_logging(False)
    yield
    reset_verbose_logging(token)
