"""
ShareBite backend service - application entry point
Food rescue marketplace connecting restaurants, shelters and volunteers

Main modules:
- Food item posting and availability feed
- Shelter requests against food items
- Allocation of a food item to exactly one shelter
- Pickup confirmation and audit trail

Stack: FastAPI + DuckDB document store + JWT sessions
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .config.settings import settings
from .core.database import DocumentStore, document_store
from .core.error_handler import (
    application_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    try:
        app.state.store.init_database()
        logger.info("Document store initialized at %s", app.state.store.db_path)
    except Exception:
        # Let the app start; the store is retried lazily on first use
        logger.exception("Document store initialization failed")

    yield


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """Create the FastAPI application"""
    configure_logging()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="ShareBite food rescue API",
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.store = store or document_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check():
        try:
            app.state.store.connection
            return {
                "status": "healthy",
                "version": settings.api_version,
                "database": "connected"
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "version": settings.api_version,
                "database": f"error: {str(e)}"
            }

    @app.get("/")
    async def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "ShareBite food rescue API"
        }

    return app

# Application instance
app = create_app()
