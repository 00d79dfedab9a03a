"""Hyperlink and cherry-pick helpers for a git checkout of a GitHub project."""

from .gitrev import GitLinksError, GitRepo, NotInRepositoryError, UnknownRevisionError
from .linker import LocationLinker, LocationToken

__all__ = [
    "GitLinksError",
    "GitRepo",
    "LocationLinker",
    "LocationToken",
    "NotInRepositoryError",
    "UnknownRevisionError",
]
