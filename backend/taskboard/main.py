"""FastAPI application entrypoint and router wiring for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from taskboard.api.tasks import TOTAL_COUNT_HEADER
from taskboard.api.tasks import router as tasks_router
from taskboard.core.config import settings
from taskboard.core.error_handling import install_error_handling
from taskboard.core.logging import configure_logging, get_logger
from taskboard.schemas.health import HealthStatusResponse, ServiceHealthResponse
from taskboard.services.task_store import TaskStore, build_task_store

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": (
            "Service liveness/readiness probes used by infrastructure and runtime checks."
        ),
    },
    {
        "name": "tasks",
        "description": "Task CRUD, filtered listing, and deadline-compliance checks.",
    },
]


def create_app(
    *,
    store_factory: Callable[[], TaskStore] | None = None,
) -> FastAPI:
    """Build the application; *store_factory* defaults to the configured backend."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
        """Own the task store for the lifetime of the application."""
        logger.info(
            "app.lifecycle.starting environment=%s store=%s db_auto_migrate=%s",
            settings.environment,
            settings.task_store_backend.value,
            settings.db_auto_migrate,
        )
        store = store_factory() if store_factory is not None else build_task_store(settings)
        await store.start()
        fastapi_app.state.task_store = store
        logger.info("app.lifecycle.started")
        try:
            yield
        finally:
            await store.close()
            fastapi_app.state.task_store = None
            logger.info("app.lifecycle.stopped")

    fastapi_app = FastAPI(
        title="Taskboard API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if origins:
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[TOTAL_COUNT_HEADER],
        )
        logger.info("app.cors.enabled origins_count=%s", len(origins))
    else:
        logger.info("app.cors.disabled")

    install_error_handling(fastapi_app)

    @fastapi_app.get(
        "/health",
        tags=["health"],
        response_model=ServiceHealthResponse,
        summary="Health Check",
        description="Service state, server time, and runtime environment.",
    )
    def health() -> ServiceHealthResponse:
        """Report service state, server time, and runtime environment."""
        return ServiceHealthResponse(
            status="OK",
            timestamp=datetime.now(UTC),
            environment=settings.environment,
        )

    @fastapi_app.get(
        "/healthz",
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Health Alias Check",
        description="Alias liveness probe endpoint for platform compatibility.",
        responses={
            status.HTTP_200_OK: {
                "description": "Service is alive.",
                "content": {"application/json": {"example": {"ok": True}}},
            }
        },
    )
    def healthz() -> HealthStatusResponse:
        """Alias liveness probe endpoint for platform compatibility."""
        return HealthStatusResponse(ok=True)

    @fastapi_app.get(
        "/readyz",
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Readiness Check",
        description="Readiness probe; ready once the task store has started.",
    )
    def readyz() -> HealthStatusResponse:
        """Readiness probe; ready once the task store has started."""
        return HealthStatusResponse(ok=getattr(fastapi_app.state, "task_store", None) is not None)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(tasks_router)
    fastapi_app.include_router(api_v1)

    logger.debug("app.routes.registered count=%s", len(fastapi_app.routes))
    return fastapi_app


app = create_app()
