"""
Ressursbørs API Server - Main entry point for the FastAPI application.

This script initializes the database and starts the FastAPI server.
"""

import logging
import sys

from src.database.connection import DatabaseManager
from app.core.config import get_settings
from app.core.logging_config import setup_logging

logger = logging.getLogger("server")


def main():
    """Initialize database and run server."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")

    try:
        DatabaseManager.initialize()
        DatabaseManager.create_all_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)

    logger.info(f"Starting FastAPI server on http://{settings.host}:{settings.port}")
    logger.info(f"API documentation available at http://{settings.host}:{settings.port}/docs")

    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
