from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from conftest import FakeRepo
from gitlinks import cli
from gitlinks.gitrev import CommitRecord, NotInRepositoryError

ROOT = "https://github.com/openssl/openssl"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


@pytest.fixture
def opened(monkeypatch) -> dict:
    seen: dict = {}

    def _open(**kwargs):  # type: ignore[no-untyped-def]
        seen.update(kwargs)
        return FakeRepo()

    monkeypatch.setattr(cli.GitRepo, "open", _open)
    return seen


def test_linkify_replaces_stdin(opened: dict) -> None:
    result = CliRunner().invoke(cli.linkify, [], input="grep.c:42: error\nplain\n")

    assert result.exit_code == 0
    assert result.output == f"{ROOT}/blob/main/grep.c#L42  error\nplain\n"
    assert opened["hosting_root"] == ROOT


def test_linkify_list_markdown_over_files(opened: dict, tmp_path: Path) -> None:
    first = tmp_path / "a.log"
    second = tmp_path / "b.log"
    first.write_text("grep.c:1 and missing.c\n", encoding="utf-8")
    second.write_text("feature:new.c\n", encoding="utf-8")

    result = CliRunner().invoke(cli.linkify, ["-l", "-m", str(first), str(second)])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        f"[grep.c:1]({ROOT}/blob/main/grep.c#L1)",
        f"[feature:new.c]({ROOT}/blob/{'b' * 7}/new.c)",
    ]


def test_linkify_permanent_flag(opened: dict) -> None:
    result = CliRunner().invoke(cli.linkify, ["--permanent"], input="grep.c\n")

    assert result.output == f"{ROOT}/blob/{'a' * 40}/grep.c\n"


def test_linkify_outside_repository_exits_nonzero(monkeypatch) -> None:
    def _open(**kwargs):  # type: ignore[no-untyped-def]
        raise NotInRepositoryError("Not inside a git work tree: /tmp")

    monkeypatch.setattr(cli.GitRepo, "open", _open)

    result = CliRunner().invoke(cli.linkify, [], input="grep.c\n")

    assert result.exit_code == 1
    assert "Not inside a git work tree" in result.output
    assert "grep.c" not in result.output


def test_linkify_rejects_unknown_option(opened: dict) -> None:
    result = CliRunner().invoke(cli.linkify, ["--bogus"])

    assert result.exit_code == 2


def test_linkify_reads_hosting_root_from_config(opened: dict, tmp_path: Path) -> None:
    config = tmp_path / "links.yaml"
    config.write_text("hosting_root: https://github.com/me/fork/\nabbrev: 12\n", encoding="utf-8")

    result = CliRunner().invoke(cli.linkify, ["--config", str(config)], input="grep.c\n")

    assert result.output == "https://github.com/me/fork/blob/main/grep.c\n"
    assert opened["abbrev"] == 12


def test_linkify_invalid_config_is_reported(opened: dict, tmp_path: Path) -> None:
    config = tmp_path / "links.yaml"
    config.write_text("abbrev: two\n", encoding="utf-8")

    result = CliRunner().invoke(cli.linkify, ["--config", str(config)], input="")

    assert result.exit_code == 1
    assert "abbrev" in result.output


def test_man_prints_manual_without_opening_repo(monkeypatch) -> None:
    def _open(**kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError("--man should not touch the repository")

    monkeypatch.setattr(cli.GitRepo, "open", _open)

    result = CliRunner().invoke(cli.linkify, ["--man"])

    assert result.exit_code == 0
    assert "SYNOPSIS" in result.output
    assert "--permanent" in result.output


def test_cherry_report_missing_only(monkeypatch) -> None:
    picked = CommitRecord("1" * 40, "Fix leak")
    missing = CommitRecord("2" * 40, "Add feature")
    backport = CommitRecord("9" * 40, "Fix leak", f"(cherry picked from commit {'1' * 40})")

    class _Repo(FakeRepo):
        def merge_base(self, a, b):  # type: ignore[no-untyped-def]
            return "0" * 40

        def commits(self, rev_range):  # type: ignore[no-untyped-def]
            return [picked, missing] if rev_range.endswith("main") else [backport]

    monkeypatch.setattr(cli.GitRepo, "open", lambda **kwargs: _Repo())

    result = CliRunner().invoke(cli.cherry_report_cmd, ["--missing", "main", "feature"])

    assert result.exit_code == 0
    assert result.output == f"- {'2' * 12} Add feature\n"


def test_cherry_report_unknown_branch(monkeypatch) -> None:
    monkeypatch.setattr(cli.GitRepo, "open", lambda **kwargs: FakeRepo())

    result = CliRunner().invoke(cli.cherry_report_cmd, ["main", "nope"])

    assert result.exit_code == 1
    assert "Unknown revision: nope" in result.output


def test_linkify_malformed_config_is_reported(opened: dict, tmp_path: Path) -> None:
    config = tmp_path / "links.yaml"
    config.write_text("hosting_root: [unclosed\n", encoding="utf-8")

    result = CliRunner().invoke(cli.linkify, ["--config", str(config)], input="grep.c\n")

    assert result.exit_code == 1
    assert "Cannot parse config file" in result.output
    assert isinstance(result.exception, SystemExit)


def test_linkify_tolerates_undecodable_bytes(opened: dict, tmp_path: Path) -> None:
    log = tmp_path / "build.log"
    log.write_bytes(b"grep.c:1 \xff\xfe caf\xe9\nsrc/foo.c\n")

    result = CliRunner().invoke(cli.linkify, [str(log)])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith(f"{ROOT}/blob/main/grep.c#L1 ")
    assert "caf�" in lines[0]
    assert lines[1] == f"{ROOT}/blob/main/src/foo.c"
