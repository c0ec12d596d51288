import os
import pathlib
import sys
import tempfile
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="gateway-logs-"))

from app.app_logging import init_logging
from app.core.errors import ExecutionError
from app.core.settings import Settings, reset_settings_cache
from app.gateway import catalog
from app.gateway.invoker import ProcedureResult
from app.gateway.params import BoundCall
from app.gateway.responses import install_exception_handlers
from app.gateway.service import ProcedureGateway, get_gateway

Handler = Callable[[dict[str, Any]], Any]


def result(*sets: list[dict[str, Any]], affected: list[int] | None = None) -> ProcedureResult:
    """Build a :class:`ProcedureResult` from literal result sets."""

    result_sets = [list(rows) for rows in sets] or [[]]
    return ProcedureResult(
        result_sets, affected if affected is not None else [len(s) for s in result_sets]
    )


class FakeDatabase:
    """In-memory stand-in for the procedure invoker.

    Handlers are registered per procedure name and receive the bound params.
    They may return a ``ProcedureResult``, ``None`` (empty result) or raise.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Handler | ProcedureResult] = {}
        self.calls: list[BoundCall] = []

    def on(self, procedure: str, handler: Handler | ProcedureResult) -> None:
        self.handlers[procedure] = handler

    def called(self, procedure: str) -> list[dict[str, Any]]:
        return [call.params for call in self.calls if call.procedure == procedure]

    async def invoke(self, conn: Any, call: BoundCall, *, schema: str | None = None):
        self.calls.append(call)
        handler = self.handlers.get(call.procedure)
        outcome = handler(call.params) if callable(handler) else handler
        return outcome if outcome is not None else result()


class FakeProvider:
    """Connection provider that never opens a real connection."""

    def __init__(self, on_acquire: Callable[[], None] | None = None) -> None:
        self.settings = Settings()
        self.acquired = 0
        self._on_acquire = on_acquire

    @asynccontextmanager
    async def acquire(self):
        if self._on_acquire is not None:
            self._on_acquire()
        self.acquired += 1
        yield object()

    async def dispose(self) -> None:  # pragma: no cover - lifespan only
        return None


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def gateway(fake_db) -> ProcedureGateway:
    return ProcedureGateway(FakeProvider(), invoker=fake_db.invoke)


@pytest.fixture
def client(gateway):
    from app.main import app

    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def offline_client():
    """Client whose gateway fails the test if the database is reached."""

    from app.main import app

    def _forbidden() -> None:
        pytest.fail("database must not be reached")

    async def _never_invoke(conn, call, *, schema=None):  # pragma: no cover
        pytest.fail(f"{call.procedure} must not be invoked")

    offline = ProcedureGateway(FakeProvider(on_acquire=_forbidden), invoker=_never_invoke)
    app.dependency_overrides[get_gateway] = lambda: offline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def app_factory(monkeypatch):
    def _create_app(log_dir: str, log_request_bodies: bool = False):
        """Create an app with gateway logging and a customer route that fails in SQL."""
        monkeypatch.setenv("LOG_DIR", str(log_dir))
        if log_request_bodies:
            monkeypatch.setenv("LOG_REQUEST_BODIES", "true")
        app = FastAPI()

        @app.post("/clientes")
        async def save_customer(request: Request):
            await request.json()
            raise ExecutionError(
                "duplicate key value violates unique constraint",
                code="23505",
                line=14,
                operation=catalog.SAVE_CUSTOMER,
            )

        init_logging(app)
        install_exception_handlers(app)
        return app

    return _create_app
