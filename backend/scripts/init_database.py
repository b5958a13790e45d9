"""
Create the Kosovo COVID-19 database schema and reference data.

Idempotent: tables use CREATE TABLE IF NOT EXISTS and reference rows use
INSERT OR IGNORE, so it is safe to run against an existing database.

Usage:
    python scripts/init_database.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from covid_api.config import settings
from covid_api.middleware.structlog_config import configure as configure_logging
from covid_api.schema import create_tables, insert_initial_data

import structlog

logger = structlog.get_logger("covid.scripts.init")


def main() -> int:
    configure_logging(settings.LOG_LEVEL)
    logger.info("database_init_started", path=str(settings.DATABASE_PATH))

    if not create_tables():
        logger.error("database_init_failed", step="create_tables")
        return 1
    if not insert_initial_data():
        logger.error("database_init_failed", step="insert_initial_data")
        return 1

    logger.info("database_init_completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
