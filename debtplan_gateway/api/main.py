"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from debtplan_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from debtplan_gateway.api.v1 import debts, income, insights, plans, risk
from debtplan_gateway.config import settings
from debtplan_gateway.infrastructure.database.session import init_db
from debtplan_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema errors use the same error body as domain validation errors"""
    fields = {
        (".".join(str(part) for part in error["loc"] if part != "body") or "body"): error["msg"]
        for error in exc.errors()
    }
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "error": "validation_error",
                "message": "Request body failed validation",
                "fields": fields,
            }
        },
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Debt Plan Gateway",
        description="Debt normalization, DTI risk assessment and repayment planning service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(income.router, prefix="/v1", tags=["income"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(risk.router, prefix="/v1", tags=["risk"])
    app.include_router(plans.router, prefix="/v1", tags=["plans"])
    app.include_router(insights.router, prefix="/v1", tags=["insights"])

    return app


app = create_app()
