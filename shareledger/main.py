"""
FastAPI application entry point.

Run with: uvicorn shareledger.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shareledger import telemetry
from shareledger._version import VERSION
from shareledger.database import init_db

# Import models to ensure they're registered with SQLAlchemy
from shareledger.models import Holding, Profile, Property, Transaction  # noqa: F401
from shareledger.routers import auth_router, properties_router, trading_router, user_router

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry.
    Shutdown: (nothing to clean up for now)
    """
    # Startup
    await init_db()
    print("Database initialized")

    if telemetry.setup_telemetry():
        # Attach OTLP handler to root logger for log export
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
            logging.getLogger().setLevel(logging.INFO)
        print("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        print("Telemetry disabled")

    yield

    # Shutdown
    print("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title="Share Ledger API",
    description="Fractional real-estate share trading ledger",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Wallet-Address"],
    max_age=86400,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400, like any other bad input."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


# Register routers
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(properties_router, prefix="/api", tags=["properties"])
app.include_router(trading_router, prefix="/api", tags=["trading"])
app.include_router(user_router, prefix="/api", tags=["user"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/version")
async def get_version():
    """Get API version information."""
    return {
        "version": VERSION,
        "api_version": "v1",
    }
