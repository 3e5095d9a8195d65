# File: setup_core_db.py
"""
Creates the database (if missing) and every pipeline table.
Run once per environment: `python setup_core_db.py`.
"""
import logging

from sqlalchemy_utils import database_exists, create_database

from scribo.core.config.settings import settings
from scribo.core.database.base import Base
from scribo.core.database.connection import engine

# Import all models to ensure they are registered
import scribo.core.jobs.data.sql_models  # noqa: F401
import scribo.features.transcription.data.sql_models  # noqa: F401

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("setup_core_db")


def main():
    settings.ensure_dirs()

    if not database_exists(engine.url):
        logger.info(f"Creating database {engine.url.database}...")
        create_database(engine.url)

    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    main()
