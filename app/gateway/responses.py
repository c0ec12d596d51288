"""Response envelopes and the handlers that render gateway failures.

Success bodies carry ``message`` and, when there is something to return,
``data``. Failure bodies carry ``error``, an optional ``suggestion`` and,
outside production, the normalized ``details`` map.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from app.core.errors import (
    DatabaseConnectionError,
    ExecutionError,
    GatewayError,
    ValidationError,
)
from app.core.settings import get_settings

from .normalizer import normalize

logger = logging.getLogger(__name__)


class SuccessEnvelope(BaseModel):
    message: str
    data: Any = None


class ErrorEnvelope(BaseModel):
    error: str
    suggestion: str | None = None
    details: dict[str, Any] | None = None


def envelope(status_code: int, message: str, data: Any = ...) -> JSONResponse:
    """Build a success response; ``data`` is left out unless given."""

    body = SuccessEnvelope(message=message) if data is ... else SuccessEnvelope(
        message=message, data=data
    )
    content = body.model_dump(exclude_unset=True)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def failure(
    status_code: int,
    error: str,
    *,
    suggestion: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build a failure response; ``details`` only outside production."""

    body = ErrorEnvelope(error=error, suggestion=suggestion)
    if details is not None and get_settings().expose_error_details:
        body.details = details
    content = body.model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def listing(rows: Sequence[Any], *, found: str, empty: str) -> JSONResponse:
    """Shape a list endpoint: counted message plus rows, or an empty notice."""

    if not rows:
        return envelope(status.HTTP_200_OK, empty)
    return envelope(status.HTTP_200_OK, f"{found}: {len(rows)}", list(rows))


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def read_json(request: Request) -> dict[str, Any]:
    """Parse the JSON object body of ``request``; empty bodies yield ``{}``."""

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ValidationError(invalid={"body": "deve conter um JSON válido"}) from exc
    if not isinstance(payload, dict):
        raise ValidationError(invalid={"body": "deve ser um objeto JSON"})
    return payload


def _log_failure(kind: str, exc: GatewayError, details: dict[str, Any]) -> None:
    key = exc.operation.key if exc.operation else "-"
    logger.error(
        "%s [%s]: %s", kind, key, json.dumps(details, ensure_ascii=False, default=str)
    )


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    suggestion = (
        exc.operation.validation_suggestion
        if exc.operation
        else "Envie um JSON válido com os campos obrigatórios."
    )
    return failure(status.HTTP_400_BAD_REQUEST, exc.message, suggestion=suggestion)


async def handle_connection_error(
    request: Request, exc: DatabaseConnectionError
) -> JSONResponse:
    details = normalize(exc)
    _log_failure("Erro de conexão", exc, details)
    return failure(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Banco de dados indisponível",
        suggestion="Tente novamente mais tarde",
        details=details,
    )


async def handle_execution_error(request: Request, exc: ExecutionError) -> JSONResponse:
    if exc.operation is None:
        return await handle_gateway_error(request, exc)
    details = normalize(exc)
    _log_failure("Erro SQL", exc, details)
    policy = exc.operation.failure
    return failure(
        policy.status_code, policy.error, suggestion=policy.suggestion, details=details
    )


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    details = normalize(exc)
    _log_failure("Erro no gateway", exc, details)
    return failure(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Erro ao processar a requisição",
        details=details,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Render anything outside the gateway taxonomy as a 500 envelope."""

    details = normalize(exc)
    logger.error(
        "Erro inesperado [%s %s]: %s",
        request.method,
        request.url.path,
        json.dumps(details, ensure_ascii=False, default=str),
        exc_info=exc,
    )
    return failure(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Erro ao processar a requisição",
        suggestion="Tente novamente mais tarde",
        details=details,
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_exception_handler(GatewayError, handle_gateway_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(DatabaseConnectionError, handle_connection_error)
    app.add_exception_handler(ExecutionError, handle_execution_error)


__all__ = [
    "ErrorEnvelope",
    "SuccessEnvelope",
    "envelope",
    "failure",
    "install_exception_handlers",
    "listing",
    "no_content",
    "read_json",
]
