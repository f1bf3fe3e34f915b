"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from payplanner.api.middleware import RequestIDMiddleware, MetricsMiddleware
from payplanner.api.v1 import installments, payments
from payplanner.domain.clock import SystemClock
from payplanner.infrastructure.database.session import SessionLocal
from payplanner.infrastructure.jobs.overdue_sweeper import OverdueSweeper
from payplanner.infrastructure.observability.logging import setup_logging
from payplanner.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(enable_sweeper: Optional[bool] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    if enable_sweeper is None:
        enable_sweeper = settings.sweeper_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = None
        if enable_sweeper:
            sweeper = OverdueSweeper(SessionLocal, SystemClock())
            sweeper.start()
        app.state.sweeper = sweeper
        yield
        if sweeper is not None:
            sweeper.stop()

    app = FastAPI(
        title="Payment Planner",
        description="Payment lifecycle tracking and installment schedules",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()
