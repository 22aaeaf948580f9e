import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.middleware.base import BaseHTTPMiddleware

from jwks_server.auth.router import router as auth_router
from jwks_server.config import settings
from jwks_server.database import async_session, engine as default_engine
from jwks_server.exceptions import InvalidInputError, KeyServiceError
from jwks_server.init_db import startup as init_startup
from jwks_server.keys.router import router as keys_router
from jwks_server.keys.service import keep_signing_keys_fresh
from jwks_server.keys.store import KeyStore

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


# --- Security Headers Middleware ---


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"

        if settings.app_env == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response


# --- Error mapping ---


async def key_service_error_handler(request: Request, exc: KeyServiceError) -> JSONResponse:
    if isinstance(exc, InvalidInputError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Requisição inválida"},
        )
    # Never reflect internal detail (key material, kids, stack state) to the caller
    logger.error("Erro ao processar %s %s: %s", request.method, request.url.path, type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Erro interno do servidor"},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Requisição inválida"},
    )


def create_app(store: KeyStore | None = None, db_engine: AsyncEngine | None = None) -> FastAPI:
    """Build the app around one process-wide key store.

    ``store`` and ``db_engine`` must point at the same database.
    """
    key_store = store or KeyStore(async_session)
    db_engine = db_engine or default_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.validate_key_settings()
        await init_startup(db_engine, key_store)
        refresher = asyncio.create_task(
            keep_signing_keys_fresh(key_store, settings.key_refresh_interval_seconds)
        )
        yield
        refresher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresher
        await db_engine.dispose()

    app = FastAPI(
        title="JWKS Server",
        description="Emissão de JWTs RS256 e publicação das chaves públicas em JWKS",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.key_store = key_store

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_exception_handler(KeyServiceError, key_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(keys_router, tags=["keys"])
    app.include_router(auth_router, tags=["auth"])

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "Howdy!"

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
