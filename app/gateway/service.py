"""Validate, bind and execute catalog operations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from app.core.db import ConnectionProvider, get_connection_provider
from app.core.errors import GatewayError

from .catalog import Operation
from .invoker import ProcedureResult, invoke
from .params import BoundCall, bind

Invoker = Callable[..., Awaitable[ProcedureResult]]


class ProcedureGateway:
    """Entry point used by route handlers to reach the database."""

    def __init__(
        self,
        provider: ConnectionProvider,
        *,
        invoker: Invoker = invoke,
        schema: str | None = None,
    ) -> None:
        self.provider = provider
        self._invoker = invoker
        self._schema = schema

    @property
    def schema(self) -> str | None:
        if self._schema is not None:
            return self._schema
        return self.provider.settings.db_schema

    def bind(self, operation: Operation, payload: Mapping[str, Any] | None = None) -> BoundCall:
        """Validate ``payload``; raises before any database work happens."""

        return bind(operation, payload)

    async def execute(
        self, call: BoundCall, *, report_as: Operation | None = None
    ) -> ProcedureResult:
        """Run an already bound call.

        ``report_as`` attributes failures to another operation, for helper
        reads issued on behalf of a write.
        """

        try:
            async with self.provider.acquire() as conn:
                return await self._invoker(conn, call, schema=self.schema)
        except GatewayError as exc:
            exc.operation = report_as or call.operation
            raise

    async def call(
        self,
        operation: Operation,
        payload: Mapping[str, Any] | None = None,
        *,
        report_as: Operation | None = None,
    ) -> ProcedureResult:
        return await self.execute(self.bind(operation, payload), report_as=report_as)


_gateway: ProcedureGateway | None = None


def get_gateway() -> ProcedureGateway:
    """FastAPI dependency returning the shared gateway."""

    global _gateway
    if _gateway is None:
        _gateway = ProcedureGateway(get_connection_provider())
    return _gateway


__all__ = ["ProcedureGateway", "get_gateway"]
