#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: each worker process serves many connections on one event loop
(FastAPI + asyncpg pool + redis.asyncio). Set WORKERS > 1 for multi-process
scaling; every worker builds its own pools, cache client and background
task pool.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - PostgreSQL connection URL (or memory://)
    DATABASE_CREATE_TABLES - Create the schema on startup
    REDIS_URL - Redis connection URL (optional)
    MEMBERSHIP_BACKEND - redis, memory or none
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from shortlink.common.logging_config import setup_logging
from shortlink.config import load_config
from shortlink.factory import build_service
from shortlink_web import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service on startup and close it on shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")
    app.state.service = await build_service(config, logger)
    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down short link service...")
        await app.state.service.close()
        logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Link Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    app = create_app(service_instance=None, config=config, lifespan=lifespan)
    app.state.logger = logger

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
