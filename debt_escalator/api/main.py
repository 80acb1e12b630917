"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import sessionmaker
from starlette.responses import Response

from debt_escalator.api.middleware import RequestIDMiddleware, MetricsMiddleware
from debt_escalator.api.v1 import debts, history
from debt_escalator.infrastructure.clients.notifier import NotifierClient
from debt_escalator.infrastructure.database.session import SessionLocal
from debt_escalator.infrastructure.observability.logging import setup_logging
from debt_escalator.services.locks import AccountLocks
from debt_escalator.services.scheduler import EscalationScheduler
from debt_escalator.config import Settings, settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the escalation scheduler for the lifetime of the app"""
    scheduler: EscalationScheduler = app.state.scheduler
    if app.state.settings.scheduler_enabled:
        scheduler.start()
    try:
        yield
    finally:
        scheduler.stop()


def create_app(
    config: Settings | None = None,
    session_factory: sessionmaker | None = None,
    notifier: NotifierClient | None = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    config = config or settings
    app = FastAPI(
        title="Debt Escalator",
        description="Debt balance tracking with scheduled escalation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Scheduler and request handlers share the notifier and per-debt locks
    app.state.settings = config
    app.state.notifier = notifier or NotifierClient()
    app.state.account_locks = AccountLocks()
    app.state.scheduler = EscalationScheduler(
        session_factory or SessionLocal,
        app.state.notifier,
        app.state.account_locks,
        config=config,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": config.service_name,
            "scheduler_running": app.state.scheduler.running,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
