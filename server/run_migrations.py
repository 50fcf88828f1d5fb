#!/usr/bin/env python3
"""
Bring the yqwork database schema up to date.

Usage: ``python run_migrations.py [revision]`` (defaults to ``head``).
Exits non-zero when Alembic fails so deploy scripts can stop early.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import logging
from alembic.config import Config
from alembic import command
from alembic.util import CommandError
from sqlalchemy.exc import SQLAlchemyError
from yqwork.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("yqwork.migrations")

ALEMBIC_INI = Path(__file__).parent / "alembic.ini"


def run_migrations(revision: str = "head") -> int:
    alembic_cfg = Config(str(ALEMBIC_INI))
    logger.info(f"Upgrading schema to {revision} ({settings.ENVIRONMENT})")
    try:
        command.upgrade(alembic_cfg, revision)
    except (CommandError, SQLAlchemyError, OSError) as e:
        logger.error(f"Migration to {revision} failed: {e}", exc_info=True)
        return 1
    logger.info("Schema is up to date")
    return 0


if __name__ == "__main__":
    sys.exit(run_migrations(sys.argv[1] if len(sys.argv) > 1 else "head"))
