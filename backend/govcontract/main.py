# backend/govcontract/main.py
"""
Application factory.

Run with:  uvicorn --factory govcontract.main:create_app
"""
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, get_settings
from .core.db import Database
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .services.ai import ContractAI
from .services.auth import SupabaseAuthClient
from .services.caching import RedisCache
from .services.connectors import ConnectorRunner, build_connectors
from .services.llm import build_llm_client
from .services.payments import PaymentService
from .api.routes_account import router as account_router
from .api.routes_ai import router as ai_router
from .api.routes_applications import router as applications_router
from .api.routes_billing import router as billing_router
from .api.routes_opportunities import router as opportunities_router
from .api.routes_pages import router as pages_router

logger = logging.getLogger(__name__)


def _cors_origins(settings: Settings) -> list[str]:
    # CORS:
    # - In prod, FRONTEND_ORIGIN is required and we never fall back to "*".
    # - In non-prod, wide-open CORS is only enabled if CORS_ALLOW_ALL_ORIGINS=True.
    if settings.ENV.lower() == "prod":
        if not settings.FRONTEND_ORIGIN:
            raise RuntimeError(
                "FRONTEND_ORIGIN must be set in production – refusing to start with wide-open CORS."
            )
        return [o.strip() for o in settings.FRONTEND_ORIGIN.split(",") if o.strip()]

    if settings.CORS_ALLOW_ALL_ORIGINS:
        return ["*"]
    if settings.FRONTEND_ORIGIN:
        return [o.strip() for o in settings.FRONTEND_ORIGIN.split(",") if o.strip()]
    return ["*"]


def _build_ai(settings: Settings) -> ContractAI | None:
    try:
        client = build_llm_client(settings)
    except RuntimeError as e:
        # AI routes answer 500 until a key is configured; the rest of the app still works
        logger.warning("AI service disabled: %s", e)
        return None
    return ContractAI(client, settings.LLM_MODEL, settings.LLM_MAX_CONCURRENCY)


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    auth: SupabaseAuthClient | None = None,
    ai: ContractAI | None = None,
    payments: PaymentService | None = None,
    connectors: ConnectorRunner | None = None,
) -> FastAPI:
    """
    Build the API. Any handle passed in is used as-is and left open on
    shutdown; handles built here are owned and disposed by the lifespan.
    """
    settings = settings or get_settings()
    configure_logging(service=settings.SERVICE_NAME)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = []

        app.state.settings = settings
        app.state.database = database
        if app.state.database is None:
            app.state.database = Database(settings.DATABASE_URL)
            owned.append(app.state.database.dispose)

        app.state.auth = auth
        if app.state.auth is None:
            app.state.auth = SupabaseAuthClient(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY,
                httpx.Client(timeout=10),
            )
            owned.append(app.state.auth.close)

        app.state.ai = ai if ai is not None else _build_ai(settings)
        app.state.payments = payments or PaymentService(settings)
        app.state.connectors = connectors or build_connectors(
            settings, RedisCache(settings.REDIS_URL)
        )

        logger.info("Application started", extra={"step": "startup"})
        try:
            yield
        finally:
            for close in reversed(owned):
                close()
            logger.info("Application stopped", extra={"step": "shutdown"})

    app = FastAPI(title="GovContract AI API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id
        started = perf_counter()

        logger.info(
            "%s %s started",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )
        response = await call_next(request)
        duration_ms = round((perf_counter() - started) * 1000, 1)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "%s %s finished",
            request.method,
            request.url.path,
            extra={
                "request_id": request_id,
                "user_id": getattr(request.state, "user_id", None),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    register_exception_handlers(app)

    app.include_router(pages_router)
    app.include_router(account_router, prefix=settings.API_PREFIX)
    app.include_router(ai_router, prefix=settings.API_PREFIX)
    app.include_router(applications_router, prefix=settings.API_PREFIX)
    app.include_router(opportunities_router, prefix=settings.API_PREFIX)
    app.include_router(billing_router, prefix=settings.API_PREFIX)

    return app
