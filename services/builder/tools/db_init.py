# services/builder/tools/db_init.py
"""Container entry point: wait for the database, then create the projects table."""
import logging
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

import services.builder.core.shared as shared
from services.builder.core.repos import ensure_projects_schema
from services.builder.db import dsn_summary, is_sqlite, wait_for_db

logger = logging.getLogger("services.builder.tools.db_init")


def run() -> int:
    url = shared._database_url(shared._repo_root())
    retries = int(os.getenv("DB_INIT_RETRIES", "30"))
    delay = float(os.getenv("DB_INIT_DELAY", "1.0"))

    if is_sqlite(url):
        logger.info("[db_init] sqlite detected; skipping DB wait")
    elif not wait_for_db(max_attempts=retries, sleep_sec=delay):
        logger.error("[db_init] database not reachable: %s", dsn_summary(url))
        return 1

    try:
        ensure_projects_schema(shared._engine())
    except SQLAlchemyError as e:
        logger.error("[db_init] failed to ensure schema: %s", e)
        return 1
    logger.info("[db_init] database ready and schema ensured (%s)", dsn_summary(url))
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    sys.exit(run())
