"""
Main entry point for the SPOG Inventory Tracker.

This module configures logging, initializes the database and serves the
HTTP API with uvicorn.
"""

import logging
import sys
import traceback

import uvicorn

from spog.api.app import create_app
from spog.services.database import close_connections, initialize_app_database
from spog.utils.config import get_config

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level=None) -> None:
    """
    Configure root logging for the process.

    Args:
        level: Log level name or number; defaults to the configured
            SPOG_LOG_LEVEL
    """
    if level is None:
        level = get_config().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    # SQL echo is controlled by the engine, not the log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def initialize_application() -> bool:
    """
    Initialize the application.

    Returns:
        True if initialization successful, False otherwise
    """
    logger = logging.getLogger(__name__)
    try:
        logger.info("Initializing database...")
        initialize_app_database()
        logger.info("Database initialized successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        traceback.print_exc()
        return False


def main():
    """
    Main application entry point.

    Initializes the application and serves the API until interrupted.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    config = get_config()
    logger.info(f"Starting {config.app_name} v{config.app_version}")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Database: {config.database_url}")

    if not initialize_application():
        logger.error("Application initialization failed. Exiting.")
        sys.exit(1)

    uvicorn.run(
        create_app(), host=config.host, port=config.port, log_level=config.log_level.lower()
    )
    close_connections()
    logger.info("Application shut down")


if __name__ == "__main__":
    main()
