"""FastAPI application wiring for the procedure gateway.

This module bootstraps the HTTP API:

- Loads ``.env``, configures logging, CORS and optional rate limiting.
- Installs the exception handlers that turn gateway errors into the failure
  envelope, and includes one router per resource.
- Disposes of the database pool on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .__version__ import __build_date__, __commit_sha__, __version__
from .app_logging import init_logging
from .core.db import get_connection_provider
from .core.settings import get_settings
from .gateway.responses import install_exception_handlers
from .routers import clientes, financeiro, pacotes, prompts, relatorios, threads, tokens

load_dotenv()

logger = logging.getLogger(__name__)

settings = get_settings()


def get_client_ip(request: Request) -> str:
    """Extract a best-effort client IP for rate limiting.

    Prefer ``X-Forwarded-For`` (first hop) if present, otherwise use the
    socket peer address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.rate_limit] if settings.rate_limit else [],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Gateway starting (env=%s)", settings.app_env)
    yield
    await get_connection_provider().dispose()


app = FastAPI(title="Procedure Gateway", version=__version__, lifespan=lifespan)
init_logging(app)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_exception_handlers(app)

app.include_router(clientes.router)
app.include_router(prompts.router)
app.include_router(tokens.router)
app.include_router(financeiro.router)
app.include_router(pacotes.router)
app.include_router(threads.router)
app.include_router(relatorios.router)


@app.get("/health")
async def health():
    """Liveness probe; does not touch the database."""
    return {"status": "ok"}


@app.get("/version")
async def version():
    """Return version information for the application."""
    return {
        "version": __version__,
        "build_date": __build_date__,
        "commit_sha": __commit_sha__,
    }
