"""FastAPI application for the campground reservation REST API.

Routes are mounted under /api, matching the CloudFront /api/* behaviour in
front of API Gateway.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from campreserv.utils.logging import configure_logging
from campreserv_api.exceptions import register_exception_handlers
from campreserv_api.middleware import CorrelationIdMiddleware
from campreserv_api.routes import (
    campgrounds_router,
    currency_router,
    health_router,
    help_router,
    holds_router,
    payments_router,
    payouts_router,
    preferences_router,
    pricing_router,
    reservations_router,
    webhooks_router,
)

configure_logging(getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO))

app = FastAPI(
    title="Campreserv API",
    description="REST API for campground reservations, payments and reporting",
    version="0.1.0",
)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

# CORS_ALLOW_ORIGINS is a comma-separated list
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

for router in (
    health_router,
    campgrounds_router,
    pricing_router,
    holds_router,
    reservations_router,
    payments_router,
    payouts_router,
    currency_router,
    help_router,
    preferences_router,
    webhooks_router,
):
    app.include_router(router, prefix="/api")


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server locally with uvicorn."""
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "campreserv_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
