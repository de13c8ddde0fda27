# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute
from pydantic import BaseModel

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_V1_PREFIX, API_VERSION
from .database import init_db
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import (
    availability as availability_v1,
    bookings as bookings_v1,
    schedule as schedule_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    service: str
    environment: str


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables on startup; the schema is small and owned by this service."""
    logger.info(f"Starting {settings.app_name} ({settings.environment})")
    init_db()
    yield
    logger.info(f"Shutting down {settings.app_name}")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


def create_app(*, run_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application with all v1 routers mounted."""
    application = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan if run_lifespan else None,
        generate_unique_id_function=_unique_operation_id,
    )
    # Register unified error envelope handlers
    register_error_handlers(application)

    api_v1 = APIRouter(prefix=API_V1_PREFIX)
    api_v1.include_router(availability_v1.router)
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(schedule_v1.router)
    application.include_router(api_v1)

    # Infrastructure paths stay unversioned
    application.include_router(prometheus.router)

    @application.get("/health", response_model=HealthResponse, include_in_schema=False)
    def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy", service=settings.app_name, environment=settings.environment
        )

    return application


app = create_app()
