"""Runtime logging helpers."""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Generator
from contextvars import ContextVar
from logging import Handler
from typing import Literal

import loguru
from loguru import logger
from rich import get_console
from rich.logging import RichHandler

LogProfile = Literal["default", "chat"]

_PROFILE_FORMATS: dict[LogProfile, str] = {
    "chat": "{level} | {extra[session]} | {message}",
    "default": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | {extra[session]} | {message}",
}
_CONFIGURED_PROFILE: LogProfile | None = None
_session_context: ContextVar[str] = ContextVar("session")


def current_session() -> str:
    """Get the session key of the turn running in this context."""
    return _session_context.get("-")


@contextlib.contextmanager
def session_scope(session_id: str) -> Generator[None, None, None]:
    token = _session_context.set(session_id)
    try:
        yield
    finally:
        _session_context.reset(token)


def _build_chat_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(*, level: str = "INFO", profile: LogProfile = "default") -> None:
    """Configure process-level logging once per profile."""

    def inject_context(record: loguru.Record) -> None:
        record["extra"]["session"] = current_session()

    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    logger.remove()
    logger.configure(patcher=inject_context)
    if profile == "chat":
        logger.add(
            _build_chat_handler(),
            level=level.upper(),
            format=_PROFILE_FORMATS["chat"],
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=level.upper(),
            format=_PROFILE_FORMATS[profile],
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED_PROFILE = profile
