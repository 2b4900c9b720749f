"""Build the configured storage backend."""

import logging
from typing import Optional

from ..fuzzy import FuzzyMatcher
from ..shortcode import ShortCodeGenerator
from .base import Binder
from .filesystem import FilesystemStorage
from .regex import RegexStorage

STORAGE_TYPES = ("filesystem", "postgres", "s3", "regex")


async def create_storage(config, logger: Optional[logging.Logger] = None) -> Binder:
    """Create the backend named by ``config.storage_type``.

    Args:
        config: Configuration instance
        logger: Optional logger instance

    Returns:
        The connected backend

    Raises:
        ValueError: If the storage type is unknown
        StorageError: If a remote backend could not be reached
    """
    logger = logger or logging.getLogger(__name__)
    storage_type = config.storage_type.lower()

    if storage_type == "filesystem":
        logger.info(f"Using filesystem storage at {config.filesystem_root}")
        return FilesystemStorage(config.filesystem_root, logger=logger)

    if storage_type == "regex":
        logger.info(f"Using regex storage with {len(config.regex_rules)} rules")
        return RegexStorage(config.regex_rules, logger=logger)

    if storage_type == "postgres":
        # asyncpg is only needed for this backend
        from .postgres import PostgresStorage

        logger.info("Using PostgreSQL storage")
        matcher = FuzzyMatcher(
            similarity_threshold=config.fuzzy_similarity_threshold,
            max_distance=config.fuzzy_max_distance,
            logger=logger,
        )
        return await PostgresStorage.connect(
            config.postgres_url,
            matcher=matcher,
            pool_max_size=config.postgres_pool_max_size,
            connect_attempts=config.postgres_connect_attempts,
            retry_delay=config.postgres_connect_retry_seconds,
            create_tables=config.postgres_create_tables,
            logger=logger,
        )

    if storage_type == "s3":
        from .s3 import S3Storage

        logger.info(f"Using S3 storage in bucket {config.s3_bucket}")
        generator = ShortCodeGenerator(
            length=config.short_code_length,
            max_attempts=config.max_generation_attempts,
            logger=logger,
        )
        return await S3Storage.connect(
            config.s3_bucket,
            region=config.s3_region,
            generator=generator,
            logger=logger,
        )

    raise ValueError(f"Unknown storage type {config.storage_type!r}, expected one of {STORAGE_TYPES}")
