"""
Clinical Records API entry point.
Builds the FastAPI application: tables, handlers, middleware and routers.
"""
from dotenv import load_dotenv

# Environment must be loaded before settings are read
load_dotenv()

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth.router import router as auth_router
from .config import settings
from .core.middleware import setup_middlewares
from .core.security import dummy_password_hash
from .database import get_db, init_db
from .exceptions import register_exception_handlers
from .patients.router import router as patients_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

def create_app() -> FastAPI:
    """
    Create the application with every router and middleware attached.

    Returns:
        FastAPI: Configured application
    """
    logger.info("Starting Clinical Records API...")
    init_db()
    # Computed up front so the first unknown-email login costs one comparison
    dummy_password_hash()

    application = FastAPI(
        title="Clinical Records API",
        description="Accounts, authentication and role-scoped access to clinical records",
        version=API_VERSION,
    )

    register_exception_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_middlewares(application)

    application.include_router(auth_router)
    application.include_router(patients_router)

    application.add_api_route("/", root, methods=["GET"])
    application.add_api_route("/health", health_check, methods=["GET"])

    return application

def root():
    """Service name and version."""
    return {"message": "Welcome to Clinical Records API", "version": API_VERSION}

def health_check(db: Session = Depends(get_db)):
    """
    Health check for monitoring, including a round trip to the database.

    Returns:
        dict: Health status information
    """
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {type(e).__name__}")
        database = "unavailable"

    return {"status": "healthy" if database == "connected" else "degraded", "database": database}

app = create_app()
