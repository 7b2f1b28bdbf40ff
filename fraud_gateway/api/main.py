"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fraud_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fraud_gateway.api.v1 import behavior, risk, transactions
from fraud_gateway.infrastructure.database.session import init_db
from fraud_gateway.infrastructure.observability.logging import setup_logging
from fraud_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Fraud Risk Gateway",
        description="Rule-based transaction risk scoring and behavioral anomaly detection",
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
    app.include_router(risk.router, prefix="/v1", tags=["risk"])
    app.include_router(behavior.router, prefix="/v1", tags=["behavior"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app


app = create_app()
