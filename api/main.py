"""
FastAPI application for the quiz platform's access core.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.auth import audit_router, router as auth_router, users_router
from api.handlers import (
    auth_exception_handler,
    general_exception_handler,
    http_exception_handler,
    store_error_handler,
    validation_exception_handler,
)
from api.retakes import router as retakes_router
from auth.dependencies import get_auth_service
from auth.exceptions import AuthException, StoreError
from config import Config

# Validate configuration on startup
Config.validate()

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown."""
    logger.info("Starting up application...")
    if Config.bootstrap_admin_enabled():
        await get_auth_service().ensure_admin(
            Config.BOOTSTRAP_ADMIN_EMAIL.lower(),
            Config.BOOTSTRAP_ADMIN_PASSWORD,
            Config.BOOTSTRAP_ADMIN_DEPARTMENT,
        )
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Quiz Access API",
    description="Token, session and retake management for the competency quiz platform",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers (apply to all endpoints)
app.add_exception_handler(AuthException, auth_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StoreError, store_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
app.include_router(audit_router, prefix="/api/v1/audit", tags=["audit"])
app.include_router(retakes_router, prefix="/api/v1", tags=["retakes"])


@app.get("/health")
async def health():
    """Health check."""
    return {"status": "healthy"}
