import os
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from .runtime import log
from .utils import DEFAULT_HOSTING_ROOT, get_host_and_repo


class GitLinksError(Exception):
    """Base class for setup errors that abort a command."""


class NotInRepositoryError(GitLinksError):
    pass


class UnknownRevisionError(GitLinksError):
    pass


@dataclass
class CommitRecord:
    hash: str
    subject: str
    body: str = ""

    @property
    def short(self) -> str:
        return self.hash[:12]


def _run_git(cwd: str, args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", "-C", cwd, *args], check=True, capture_output=True, text=True
    )


def get_repo_root(start_path: str) -> Optional[str]:
    path = start_path if not os.path.isfile(start_path) else os.path.dirname(start_path)
    try:
        return _run_git(path, ["rev-parse", "--show-toplevel"]).stdout.strip()
    except (subprocess.CalledProcessError, OSError):
        return None


def parse_remotes(output: str) -> Dict[str, str]:
    """Map remote names to fetch URLs from `git remote -v` output."""
    remotes: dict[str, str] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        name, url = parts[0], parts[1]
        if len(parts) > 2 and parts[2] == "(push)" and name in remotes:
            continue
        remotes[name] = url
    return remotes


def find_hosting_remote(remotes: Dict[str, str], hosting_root: str) -> Optional[str]:
    """Return the first remote whose URL names the same host and repository."""
    wanted = get_host_and_repo(hosting_root)
    for name in sorted(remotes, key=lambda n: (n != "origin", n)):
        if get_host_and_repo(remotes[name]) == wanted:
            return name
    return None


class GitRepo:
    """
    Read-only queries against the work tree at `cwd`.

    Any failing git command is reported as "not found" (None or False);
    with verbose logging on, the command and its stderr are printed.
    """

    def __init__(
        self,
        root: str,
        cwd: Optional[str] = None,
        remote: Optional[str] = None,
        abbrev: Optional[int] = None,
    ):
        self.root = root
        self.cwd = cwd or root
        self.remote = remote
        self.abbrev = abbrev

    @classmethod
    def open(
        cls,
        cwd: Optional[str] = None,
        hosting_root: str = DEFAULT_HOSTING_ROOT,
        remote: Optional[str] = None,
        abbrev: Optional[int] = None,
    ) -> "GitRepo":
        """
        Locate the work tree containing `cwd` and its remote for `hosting_root`.
        Raises NotInRepositoryError when either is missing.
        """
        cwd = os.path.abspath(cwd or os.getcwd())
        root = get_repo_root(cwd)
        if root is None:
            raise NotInRepositoryError(f"Not inside a git work tree: {cwd}")

        repo = cls(root, cwd=cwd, abbrev=abbrev)
        remotes = repo.list_remotes()
        if remote:
            if remote not in remotes:
                raise NotInRepositoryError(
                    f"Remote '{remote}' is not configured in {root}"
                )
        else:
            remote = find_hosting_remote(remotes, hosting_root)
            if remote is None:
                raise NotInRepositoryError(
                    f"No remote of {root} points at {hosting_root}"
                )
        repo.remote = remote
        log("git", f"using remote '{remote}' ({remotes[remote]})")
        return repo

    def _git(self, args: list[str]) -> Optional[str]:
        try:
            return _run_git(self.cwd, args).stdout
        except subprocess.CalledProcessError as err:
            detail = (err.stderr or "").strip()
            log("git", f"git {' '.join(args)} failed ({err.returncode}): {detail}")
            return None

    def list_remotes(self) -> Dict[str, str]:
        out = self._git(["remote", "-v"])
        return parse_remotes(out) if out else {}

    def current_branch(self) -> str:
        out = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
        return out.strip() if out else "HEAD"

    def show_prefix(self) -> str:
        out = self._git(["rev-parse", "--show-prefix"])
        return out.strip() if out else ""

    def resolve_commit(self, rev: str, short: bool = False) -> Optional[str]:
        if not rev or rev.startswith("-"):
            return None
        args = ["rev-parse", "--verify", "--quiet"]
        if short:
            args.append(f"--short={self.abbrev}" if self.abbrev else "--short")
        args.append(f"{rev}^{{commit}}")
        out = self._git(args)
        return (out or "").strip() or None

    def remote_branch_exists(self, name: str) -> bool:
        if not self.remote or not name or name.startswith("-"):
            return False
        out = self._git(["ls-remote", "--heads", self.remote, f"refs/heads/{name}"])
        return bool(out and out.strip())

    def path_exists(self, rev: str, path: str) -> bool:
        return self._git(["cat-file", "-e", f"{rev}:{path}"]) is not None

    def merge_base(self, a: str, b: str) -> Optional[str]:
        out = self._git(["merge-base", a, b])
        return (out or "").strip() or None

    def commits(self, rev_range: str) -> List[CommitRecord]:
        """Non-merge commits in `rev_range`, newest first."""
        out = self._git(
            ["log", "--no-merges", "--format=%H%x1f%s%x1f%b%x1e", rev_range]
        )
        if out is None:
            raise UnknownRevisionError(f"Cannot list commits in {rev_range}")
        records = []
        for chunk in out.split("\x1e"):
            chunk = chunk.strip("\n")
            if not chunk:
                continue
            fields = chunk.split("\x1f")
            fields += [""] * (3 - len(fields))
            records.append(CommitRecord(fields[0], fields[1], fields[2].strip()))
        return records
