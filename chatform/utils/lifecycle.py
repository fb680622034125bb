# /chatform/utils/lifecycle.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from chatform.utils.logging import setup_logging
from chatform.services.session_service import session_service

# Application lifespan: logging setup on startup, dropping live
# conversations on shutdown.

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    setup_logging()

    logger.info("Application starting up...")
    logger.info(f"Templates available: {', '.join(session_service.template_names())}")

    yield  # Application is now running

    logger.info("Application shutting down...")
    session_service.close_all()
