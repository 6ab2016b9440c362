# FILE: backend/tastelocal/core/db.py
# TASTELOCAL - CONNECTIONS
# Motor types are annotated as 'Any' to keep the linter quiet about the async driver.
# Connections are opened by the application lifespan, never at import time.

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from pymongo.errors import ConnectionFailure
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from .config import settings

logger = logging.getLogger(__name__)

async_mongo_client: Optional[Any] = None
async_db_instance: Optional[Any] = None
redis_client: Optional[Redis] = None


async def connect_to_motor() -> Any:
    global async_mongo_client, async_db_instance
    if async_db_instance is not None:
        return async_db_instance

    logger.info("--- [DB] Attempting to connect to Async MongoDB (Motor)... ---")
    try:
        from motor.motor_asyncio import AsyncIOMotorClient
        client = AsyncIOMotorClient(settings.DATABASE_URI, serverSelectionTimeoutMS=5000)
        await client.admin.command('ping')
        db_name = urlparse(settings.DATABASE_URI).path.lstrip('/')
        if not db_name:
            raise ValueError("Database name not found in DATABASE_URI.")

        async_mongo_client = client
        async_db_instance = client[db_name]
        logger.info(f"--- [DB] Successfully connected to Async MongoDB (Motor): '{db_name}' ---")
        return async_db_instance
    except (ConnectionFailure, ValueError) as e:
        logger.error(f"--- [DB] CRITICAL: Could not connect to Async MongoDB (Motor): {e} ---")
        raise


async def connect_to_redis() -> Redis:
    global redis_client
    if redis_client is not None:
        return redis_client

    logger.info("--- [DB] Attempting to connect to Redis... ---")
    try:
        client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        await client.ping()
        redis_client = client
        logger.info("--- [DB] Successfully connected to Redis. ---")
        return redis_client
    except RedisConnectionError as e:
        logger.error(f"--- [DB] CRITICAL: Could not connect to Redis: {e} ---")
        raise


# --- Shutdown Logic ---
def close_mongo_connection():
    global async_mongo_client, async_db_instance
    if async_mongo_client is not None:
        async_mongo_client.close()
        logger.info("--- [DB] Async MongoDB (Motor) connection closed. ---")
    async_mongo_client = None
    async_db_instance = None


async def close_redis_connection():
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        logger.info("--- [DB] Redis connection closed. ---")
    redis_client = None
