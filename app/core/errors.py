"""Exception taxonomy shared by the gateway layers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from app.gateway.catalog import Operation

__all__ = [
    "DatabaseConnectionError",
    "ExecutionError",
    "GatewayError",
    "ValidationError",
]


class GatewayError(Exception):
    """Base class for failures surfaced by the gateway.

    ``operation`` is filled in by the gateway service so exception handlers
    can render the failure policy of the operation that was running.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        line: int | None = None,
        preceding_errors: Sequence[Any] = (),
        operation: Operation | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.line = line
        self.preceding_errors = tuple(preceding_errors)
        self.operation = operation


class ValidationError(GatewayError, ValueError):
    """Caller input is missing or malformed; never reaches the database."""

    default_code = "VALIDATION"

    def __init__(
        self,
        missing: Sequence[str] = (),
        invalid: Mapping[str, str] | None = None,
        *,
        operation: Operation | None = None,
    ) -> None:
        self.missing = tuple(missing)
        self.invalid = dict(invalid or {})
        super().__init__(_describe_fields(self.missing, self.invalid), operation=operation)


class DatabaseConnectionError(GatewayError, ConnectionError):
    """The connection pool could not hand out a connection."""

    default_code = "ECONN"


class ExecutionError(GatewayError):
    """A procedure or query failed inside the database."""

    default_code = "EREQUEST"


def _quote_all(fields: Sequence[str]) -> str:
    quoted = [f"'{name}'" for name in fields]
    if len(quoted) == 1:
        return quoted[0]
    return ", ".join(quoted[:-1]) + " e " + quoted[-1]


def _describe_fields(missing: Sequence[str], invalid: Mapping[str, str]) -> str:
    parts: list[str] = []
    if len(missing) == 1:
        parts.append(f"O campo {_quote_all(missing)} é obrigatório.")
    elif missing:
        parts.append(f"Os campos {_quote_all(missing)} são obrigatórios.")
    for name, reason in invalid.items():
        parts.append(f"O campo '{name}' {reason}.")
    return " ".join(parts) or "Requisição inválida."
