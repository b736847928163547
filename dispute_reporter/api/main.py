"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from dispute_reporter.api.dependencies import get_pipeline
from dispute_reporter.api.v1 import reports
from dispute_reporter.infrastructure.observability.logging import setup_logging
from dispute_reporter.config import settings
from dispute_reporter.scheduler import ReportScheduler

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the report scheduler for the lifetime of the server"""
    scheduler = ReportScheduler(get_pipeline())
    scheduler.start(run_immediately=settings.run_on_startup)
    app.state.scheduler = scheduler
    logging.info("Dispute reporter started")
    try:
        yield
    finally:
        logging.info("Shutting down gracefully")
        await scheduler.stop()


def create_app(enable_scheduler: bool = True) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Dispute Reporter",
        description="Weekly dispute risk report service",
        version="0.1.0",
        lifespan=lifespan if enable_scheduler else None,
    )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "run_in_progress": get_pipeline().running,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
