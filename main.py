"""
FastAPI Application - Review Service
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded

from app.core.config import config
from app.core.errors import (
    ErrorResponse,
    error_response_handler,
    http_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)
from app.core.logger import logger
from app.core.telemetry import instrument_app
from app.db.indexes import create_indexes
from app.db.mongodb import connect_to_mongo, close_mongo_connection, get_database
from app.api import reviews, health
from app.middleware import TraceContextMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting Review Service...")
    await connect_to_mongo()
    await create_indexes(await get_database())

    logger.info(
        "Review Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    yield

    # Shutdown
    logger.info("Shutting down Review Service...")
    await close_mongo_connection()


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Review Service",
        description="Product reviews, likes and denormalized product rating aggregates",
        version=config.service_version,
        lifespan=lifespan if with_lifespan else None,
    )

    instrument_app(app)

    # Attach limiter to app state for SlowAPI compatibility
    app.state.limiter = reviews.limiter

    app.add_exception_handler(ErrorResponse, error_response_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    app.add_middleware(TraceContextMiddleware, correlation_header=config.correlation_id_header)

    app.include_router(health.router, tags=["health"])
    app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development"
    )
