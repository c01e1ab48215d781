"""Ensure database tables exist (Docker handles DB creation)."""

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.core.config import get_settings
from app.core.logging_config import setup_logging
from src.database.connection import DatabaseManager

logger = logging.getLogger("init_database")


def ensure_tables_exist(retries: int = 5, delay: float = 2.0) -> bool:
    """Wait for the database, then create all tables (idempotent)."""
    for attempt in range(1, retries + 1):
        try:
            DatabaseManager.initialize()
            with DatabaseManager.get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("[DB] Connected successfully")
            break
        except OperationalError as e:
            if attempt == retries:
                logger.error(f"[DB] Giving up after {retries} attempts: {e}")
                return False
            logger.info(f"[DB] Waiting for database... ({retries - attempt} retries left)")
            time.sleep(delay)

    DatabaseManager.create_all_tables()
    logger.info("[DB] Database ready")
    return True


if __name__ == "__main__":
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    ensure_tables_exist()
