"""
Cherry-pick status of one branch relative to another.

Every non-merge commit on `source` since the merge base is reported as
picked when some commit on `target` names it in a
"(cherry picked from commit <hash>)" trailer, or has the same subject.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .gitrev import CommitRecord, UnknownRevisionError
from .runtime import log

CHERRY_MARKER_RE = re.compile(r"\(cherry picked from commit ([0-9a-f]{7,40})\)")


@dataclass
class CherryStatus:
    commit: CommitRecord
    picked_as: Optional[CommitRecord] = None

    @property
    def picked(self) -> bool:
        return self.picked_as is not None


def cherry_markers(body: str) -> List[str]:
    return CHERRY_MARKER_RE.findall(body)


def index_target(commits: Iterable[CommitRecord]) -> Dict[str, CommitRecord]:
    """
    Map each cherry-pick marker hash to the newest target commit carrying it.
    A marker seen again on an older commit is a duplicate pick and ignored.
    """
    index: dict[str, CommitRecord] = {}
    for commit in commits:
        for marker in cherry_markers(commit.body):
            if marker in index:
                log("cherry", f"{commit.short} repeats pick of {marker[:12]}")
                continue
            index[marker] = commit
    return index


def _lookup_marker(index: Dict[str, CommitRecord], commit_hash: str) -> Optional[CommitRecord]:
    if commit_hash in index:
        return index[commit_hash]
    for marker, picked in index.items():
        if len(marker) < 40 and commit_hash.startswith(marker):
            return picked
    return None


def match_commits(
    source: List[CommitRecord], target: List[CommitRecord]
) -> List[CherryStatus]:
    index = index_target(target)
    by_subject: dict[str, CommitRecord] = {}
    for commit in target:
        by_subject.setdefault(commit.subject, commit)

    statuses = []
    for commit in source:
        picked = _lookup_marker(index, commit.hash)
        if picked is None and commit.subject:
            picked = by_subject.get(commit.subject)
        statuses.append(CherryStatus(commit, picked))
    return statuses


def cherry_report(repo, source: str, target: str) -> List[CherryStatus]:
    for rev in (source, target):
        if repo.resolve_commit(rev) is None:
            raise UnknownRevisionError(f"Unknown revision: {rev}")
    base = repo.merge_base(source, target)
    if base is None:
        raise UnknownRevisionError(f"{source} and {target} share no history")
    log("cherry", f"merge base {base[:12]}")
    return match_commits(
        repo.commits(f"{base}..{source}"), repo.commits(f"{base}..{target}")
    )


def format_status(
    status: CherryStatus, markdown: bool = False, hosting_root: str = ""
) -> str:
    commit = status.commit
    mark = "+" if status.picked else "-"
    if markdown:
        checkbox = "x" if status.picked else " "
        line = f"- [{checkbox}] [{commit.short}]({hosting_root}/commit/{commit.hash}) {commit.subject}"
        if status.picked:
            picked = status.picked_as
            line += f" ([{picked.short}]({hosting_root}/commit/{picked.hash}))"
        return line
    line = f"{mark} {commit.short} {commit.subject}"
    if status.picked:
        line += f" ({status.picked_as.short})"
    return line
