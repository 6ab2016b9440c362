# FILE: backend/tastelocal/core/lifespan.py
# TASTELOCAL - LIFESPAN
# 1. Opens Motor + Redis, builds the shared DocumentStore and StoreRegistry on app.state.
# 2. Ensures the owner lookup index exists.

from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging
from pymongo import ASCENDING

from .config import settings
from .db import close_mongo_connection, close_redis_connection, connect_to_motor, connect_to_redis
from .store_registry import StoreRegistry
from ..services.document_store import DocumentStore

logger = logging.getLogger(__name__)

async def create_mongo_indexes(db):
    """Owner lookup runs on every dashboard login; keep it off a collection scan."""
    try:
        logger.info("--- [Lifespan] Verifying database indexes... ---")
        await db[settings.BUSINESSES_COLLECTION].create_index([("ownerId", ASCENDING)])
        await db[settings.USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
        logger.info("--- [Lifespan] ✅ Database Indexes Verified/Created. ---")
    except Exception as e:
        logger.error(f"--- [Lifespan] ❌ Index Creation Failed: {e} ---")

async def perform_shutdown(app: FastAPI):
    logger.info("--- [Lifespan] Application shutdown sequence initiated. ---")
    registry = getattr(app.state, "store_registry", None)
    if registry is not None:
        await registry.close_all()
    close_mongo_connection()
    await close_redis_connection()
    logger.info("--- [Lifespan] All connections closed gracefully. Shutdown complete. ---")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- [Lifespan] Application startup sequence initiated. ---")

    db = await connect_to_motor()
    redis = await connect_to_redis()
    await create_mongo_indexes(db)

    documents = DocumentStore(db, redis)
    app.state.document_store = documents
    app.state.store_registry = StoreRegistry(documents)

    logger.info("--- [Lifespan] All resources initialized. Application is ready. ---")

    yield

    await perform_shutdown(app)
