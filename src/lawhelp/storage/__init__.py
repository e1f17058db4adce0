"""
Storage backends.

``initialize_storage`` picks the adapter named by ``STORAGE_BACKEND``. A SQL
backend that cannot be reached falls back to in-memory storage so the
application still starts.
"""

import logging

from lawhelp.core.config import Config, get_config
from lawhelp.storage.base import LawyerFilters, Storage
from lawhelp.storage.memory import MemoryStorage

logger = logging.getLogger(__name__)


def initialize_storage(config: Config = None) -> Storage:
    """Create the configured storage backend, falling back to memory."""
    config = config or get_config()
    backend = config.database.storage_backend
    if backend == "memory":
        logger.info("Using in-memory storage")
        return MemoryStorage()

    database_url = config.get_database_url()
    if not database_url:
        logger.warning(f"Storage backend '{backend}' selected but no database URL configured")
    else:
        try:
            from lawhelp.storage.sql import SqlStorage
            logger.info(f"Attempting to connect to {backend} database...")
            storage = SqlStorage.from_url(database_url)
            storage.initialize()
            logger.info(f"{storage.backend_name} database connected successfully")
            return storage
        except Exception as e:
            logger.warning(f"Database connection failed: {e}")

    logger.warning("Falling back to in-memory storage")
    return MemoryStorage()


__all__ = ["initialize_storage", "LawyerFilters", "MemoryStorage", "Storage"]
