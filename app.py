#!/usr/bin/env python3
"""
Entry point for the shorten HTTP server.

Usage:
    python app.py
    shorten-server

Environment variables:
    STORAGE_TYPE - filesystem, postgres, s3 or regex
    FILESYSTEM_ROOT - Directory for filesystem storage
    POSTGRES_URL - PostgreSQL connection URL
    S3_BUCKET - Bucket for S3 storage
    REGEX_RULES - JSON object of pattern -> replacement rules
    PORT - Port to listen on
    LOG_LEVEL - Logging level
"""

import logging
import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import Config, load_config
from shorten.common.logging_config import setup_logging
from shorten.service import StorageService
from shorten.storage.factory import create_storage
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the configured backend before serving; close it afterwards."""
    config = app.state.config
    logger = app.state.logger

    logger.info(f"Connecting {config.storage_type} storage...")
    storage = await create_storage(config, logger=logger)
    app.state.service = StorageService(storage, logger=logger)
    if not await app.state.service.seed_health_check(config.healthcheck_path):
        logger.warning(f"Could not seed {config.healthcheck_path}; health checks will retry")
    logger.info(f"{storage.name} storage ready")

    try:
        yield
    finally:
        logger.info("Closing storage...")
        await app.state.service.close()
        app.state.service = None


def build_app(config: Config, logger: logging.Logger) -> FastAPI:
    """App whose storage is created by :func:`lifespan` on startup."""
    app = create_app(service_instance=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )
    logger.info(f"Configuration: {config.model_dump(exclude={'postgres_url'})}")

    server = uvicorn.Server(
        uvicorn.Config(
            build_app(config, logger),
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    )

    def request_shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        server.should_exit = True

    signal.signal(signal.SIGINT, request_shutdown)
    signal.signal(signal.SIGTERM, request_shutdown)

    logger.info(f"Listening on {config.host}:{config.port}")
    try:
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
