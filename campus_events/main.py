"""
Main FastAPI application for Campus Events Service.
Handles application startup, middleware, and routing.
"""

import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time

from campus_events.core.config import config
from campus_events.core.exceptions import DomainError, ErrorCode, ValidationError
from campus_events.db.database import db_manager
from campus_events.db.redis_client import redis_manager
from campus_events.api.v1.router import router as api_router
from campus_events.api.v1.registrations import failure_message_key, failure_response
from campus_events.services.sms_service import sms_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:8080"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting Campus Events Service...")

    try:
        await db_manager.initialize()
        logger.info("Database manager initialized")

        db_manager.create_tables()

        consistency_config = await config.get_consistency_config()
        if consistency_config["enable_distributed_locks"]:
            await redis_manager.initialize()
            logger.info("Redis manager initialized for distributed locks")

        await sms_service.initialize()

        logger.info("Campus Events Service started successfully")

    except Exception as e:
        logger.error(f"Failed to start Campus Events Service: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down Campus Events Service...")

    try:
        await db_manager.close()
        await redis_manager.close()
        await sms_service.close()
        await config.close()
        logger.info("Campus Events Service shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


# Create FastAPI application
app = FastAPI(
    title="Campus Events Service",
    description="Campus event proposals, approvals and OTP-verified registration",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add request processing time to response headers."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Domain error handler
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Render domain errors with their stable code and user-safe message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "timestamp": datetime.now().isoformat()
        }
    )


# Request validation handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies with the validation error code."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    message_key = failure_message_key(request.url.path)
    if message_key:
        return failure_response(message_key, ValidationError("Invalid request"))

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error_code": ErrorCode.VALIDATION_ERROR.value,
            "error_message": "Invalid request",
            "details": [
                {"loc": list(error.get("loc", [])), "msg": error.get("msg")}
                for error in exc.errors()
            ],
            "timestamp": datetime.now().isoformat()
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "error_message": "An internal server error occurred",
            "timestamp": datetime.now().isoformat()
        }
    )


# Include API router
app.include_router(api_router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "Campus Events Service",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "api": "/api/v1",
            "health": "/api/v1/health",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }


# Health check endpoint (simple)
@app.get("/health")
async def simple_health_check():
    """Simple health check endpoint."""
    return {"status": "healthy", "service": "campus-events"}
