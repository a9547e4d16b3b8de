import time
import logging
import structlog
from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .application.dto import LogContext
from .infrastructure.db import engine, SessionLocal
from .infrastructure.log_repository import LogRepository
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.rate_limit import limiter
from .infrastructure.store_logger import StoreLogger
from .interfaces.http.errors import register_exception_handlers
from .interfaces.http.logging_route import LoggingRoute
from .interfaces.http.routers import logs as logs_router
from .interfaces.http.routers import users as users_router
from .config import settings

VERSION = "0.1.0"

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def create_app(bind: Engine = engine, session_factory: sessionmaker = SessionLocal) -> FastAPI:
    app = FastAPI(title="User Service", version=VERSION)
    # health и metrics тоже проходят через журнал запросов
    app.router.route_class = LoggingRoute

    # один логгер на процесс, компоненты получают его через app.state
    app.state.store_logger = StoreLogger(LogRepository(session_factory))
    app.state.limiter = limiter
    register_exception_handlers(app)

    @app.middleware("http")
    async def collect_metrics(request: Request, call_next):
        start_time = time.time()
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            endpoint = route.path if route is not None else request.url.path
            duration = time.time() - start_time
            http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    @app.on_event("startup")
    def on_startup():
        logger.info("Starting user service", version=VERSION)
        Base.metadata.create_all(bind=bind)
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
        app.state.store_logger.log(
            f"Application is running on: http://localhost:{settings.PORT}",
            "Bootstrap",
            LogContext(metadata={
                "port": settings.PORT,
                "environment": settings.ENVIRONMENT,
                "version": VERSION,
            }),
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics():
        """Prometheus metrics endpoint"""
        return metrics_endpoint()

    app.include_router(users_router.router)
    app.include_router(logs_router.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
