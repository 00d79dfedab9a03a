"""
Rewrite `[revision:]path[:lineno]` references into links on the hosting site.

    grep.c:42:            -> https://github.com/openssl/openssl/blob/master/grep.c#L42
    openssl-3.0:ssl/s3.c  -> https://github.com/openssl/openssl/blob/openssl-3.0/ssl/s3.c

Paths are taken relative to the directory the filter runs in. A reference
is only rewritten when its revision resolves to a local commit and the path
exists at that commit; everything else passes through untouched.
"""

import posixpath
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .runtime import log
from .utils import DEFAULT_HOSTING_ROOT

_SEGMENT = r"[A-Za-z._-][A-Za-z0-9._-]*"

LOCATION_RE = re.compile(
    r"(?<![A-Za-z0-9_./:#\[-])"
    r"(?:(?P<revision>[A-Za-z0-9._-]+):)?"
    rf"(?P<path>{_SEGMENT}(?:/{_SEGMENT})*)(?<!\.)"
    r"(?::(?P<lineno>[0-9]+))?"
    r"(?P<colon>:)?"
    r"(?![A-Za-z0-9_/-]|\.[A-Za-z0-9_]|:/|\]\()"
)


@dataclass(frozen=True)
class LocationToken:
    text: str
    path: str
    revision: Optional[str] = None
    lineno: Optional[int] = None
    trailing_colon: bool = False
    start: int = 0
    end: int = 0

    @classmethod
    def from_match(cls, match: "re.Match[str]") -> "LocationToken":
        lineno = match.group("lineno")
        colon = match.group("colon") is not None
        text = match.group(0)
        return cls(
            text=text[:-1] if colon else text,
            path=match.group("path"),
            revision=match.group("revision"),
            lineno=int(lineno) if lineno is not None else None,
            trailing_colon=colon,
            start=match.start(),
            end=match.end(),
        )


class ResolvedRevision(NamedTuple):
    link_id: str
    commit: str


def find_tokens(line: str) -> List[LocationToken]:
    return [LocationToken.from_match(m) for m in LOCATION_RE.finditer(line)]


class LocationLinker:
    """
    Resolve location tokens against `repo` and render them as links.

    `repo` provides current_branch, show_prefix, resolve_commit,
    remote_branch_exists and path_exists (see gitrev.GitRepo). Both lookup
    caches live as long as the linker and are never invalidated.
    """

    def __init__(
        self,
        repo,
        hosting_root: str = DEFAULT_HOSTING_ROOT,
        markdown: bool = False,
        permanent: bool = False,
    ):
        self.repo = repo
        self.hosting_root = hosting_root.rstrip("/")
        self.markdown = markdown
        self.permanent = permanent
        self.branch = repo.current_branch()
        self.prefix = repo.show_prefix()
        self._revisions: Dict[str, Optional[ResolvedRevision]] = {}
        self._urls: Dict[Tuple[str, str], Optional[str]] = {}
        log("linker", f"branch '{self.branch}', prefix '{self.prefix}'")

    def resolve_revision(self, revision: str) -> Optional[ResolvedRevision]:
        if revision in self._revisions:
            return self._revisions[revision]

        resolved = None
        commit = self.repo.resolve_commit(revision)
        if commit is None:
            log("linker", f"unknown revision '{revision}'")
        elif self.permanent:
            resolved = ResolvedRevision(commit, commit)
        elif self.repo.remote_branch_exists(revision):
            resolved = ResolvedRevision(revision, commit)
        else:
            short = self.repo.resolve_commit(revision, short=True)
            resolved = ResolvedRevision(short or commit, commit)

        self._revisions[revision] = resolved
        return resolved

    def qualify(self, path: str) -> Optional[str]:
        """Join `path` onto the invocation prefix; None if it leaves the tree."""
        qualified = posixpath.normpath(self.prefix + path)
        if qualified in (".", "..") or qualified.startswith("../"):
            return None
        return qualified

    def resolve(self, token: LocationToken) -> Optional[str]:
        resolved = self.resolve_revision(token.revision or self.branch)
        if resolved is None:
            return None
        qualified = self.qualify(token.path)
        if qualified is None:
            return None

        key = (resolved.link_id, qualified)
        if key not in self._urls:
            if self.repo.path_exists(resolved.commit, qualified):
                self._urls[key] = (
                    f"{self.hosting_root}/blob/{resolved.link_id}/{qualified}"
                )
            else:
                self._urls[key] = None
        url = self._urls[key]
        if url is None:
            return None
        if token.lineno is not None:
            url += f"#L{token.lineno}"
        return url

    def render(self, token: LocationToken, link: str) -> str:
        if self.markdown:
            return f"[{token.text}]({link})"
        return link

    def replace_line(self, line: str) -> str:
        def repl(match: "re.Match[str]") -> str:
            token = LocationToken.from_match(match)
            link = self.resolve(token)
            if link is None:
                return match.group(0)
            rendered = self.render(token, link)
            return rendered + " " if token.trailing_colon else rendered

        return LOCATION_RE.sub(repl, line)

    def list_line(self, line: str) -> List[str]:
        links = []
        for token in find_tokens(line):
            link = self.resolve(token)
            if link is not None:
                links.append(self.render(token, link))
        return links

    def filter_lines(self, lines: Iterable[str], list_mode: bool = False) -> Iterator[str]:
        for line in lines:
            if list_mode:
                for rendered in self.list_line(line):
                    yield rendered + "\n"
            else:
                yield self.replace_line(line)
