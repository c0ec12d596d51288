"""Flatten database failures into the numbered error map sent to callers.

A failing batch may report several errors. They are emitted in chain order
as ``message-01``, ``message-02``, ... followed by the top-level error, so
the first failing statement is always the first entry.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, NamedTuple

import psycopg
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

UNKNOWN_CODE = "UNKNOWN"
UNKNOWN_LINE = None

_CONTEXT_LINE = re.compile(r"\bline (\d+)\b")


class ErrorEntry(NamedTuple):
    code: str
    message: str
    line: int | None


def _line_from_context(context: str | None) -> int | None:
    if not context:
        return None
    match = _CONTEXT_LINE.search(context)
    return int(match.group(1)) if match else None


def describe(error: Any) -> ErrorEntry | None:
    """Return ``(code, message, line)`` for ``error`` or ``None`` if it is empty."""

    if error is None:
        return None
    if isinstance(error, DBAPIError) and error.orig is not None:
        return describe(error.orig)
    if isinstance(error, Mapping):
        code = error.get("code")
        message = error.get("message")
        line = error.get("line", error.get("lineNumber"))
    elif isinstance(error, psycopg.Error):
        diag = error.diag
        code = error.sqlstate
        message = diag.message_primary or str(error)
        line = _line_from_context(diag.context)
    else:
        code = getattr(error, "code", None)
        message = getattr(error, "message", None)
        if message is None and isinstance(error, BaseException):
            message = str(error)
        line = getattr(error, "line", None)
    if not message:
        return None
    return ErrorEntry(str(code or UNKNOWN_CODE), str(message), line or UNKNOWN_LINE)


def cause_chain(error: BaseException) -> list[BaseException]:
    """Explicit causes of ``error`` (``raise ... from``), oldest first."""

    chain: list[BaseException] = []
    seen = {id(error)}
    current = error.__cause__
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = current.__cause__
    chain.reverse()
    return chain


def preceding_errors(error: Any) -> list[Any]:
    preceding = getattr(error, "preceding_errors", None)
    if preceding is not None:
        return list(preceding)
    if isinstance(error, BaseException):
        return cause_chain(error)
    return []


def normalize(error: Any) -> dict[str, dict[str, Any]]:
    """Build the ordered ``message-NN`` map for ``error``; never raises."""

    messages: dict[str, dict[str, Any]] = {}
    if error is None:
        return messages
    try:
        for item in preceding_errors(error):
            entry = describe(item) or ErrorEntry(UNKNOWN_CODE, "", UNKNOWN_LINE)
            messages[f"message-{len(messages) + 1:02d}"] = entry._asdict()
        entry = describe(error)
        if entry is not None:
            messages[f"message-{len(messages) + 1:02d}"] = entry._asdict()
    except Exception:  # pragma: no cover - malformed driver errors
        logger.exception("Failed to normalize database error")
    return messages


__all__ = [
    "UNKNOWN_CODE",
    "UNKNOWN_LINE",
    "ErrorEntry",
    "cause_chain",
    "describe",
    "normalize",
    "preceding_errors",
]
