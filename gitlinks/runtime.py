from __future__ import annotations

from contextvars import ContextVar, Token
import sys

_VERBOSE_LOGGING: ContextVar[bool] = ContextVar(
    "gitlinks_verbose_logging", default=False
)


def get_verbose_logging() -> bool:
    return _VERBOSE_LOGGING.get()


def set_verbose_logging(enabled: bool) -> Token[bool]:
    return _VERBOSE_LOGGING.set(bool(enabled))


def reset_verbose_logging(token: Token[bool]) -> None:
    _VERBOSE_LOGGING.reset(token)


def log(scope: str, message: str) -> None:
    if get_verbose_logging():
        print(f"[{scope}] {message}", file=sys.stderr, flush=True)
