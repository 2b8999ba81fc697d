from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from chatservice.core.config import get_settings


logger = structlog.get_logger("chatservice.database")


class _Mongo:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None


_mongo = _Mongo()


async def connect_to_mongo() -> None:
    settings = get_settings().MONGO
    _mongo.client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
    )
    _mongo.db = _mongo.client[settings.MONGODB_DB]
    logger.info("mongo.connected", database=settings.MONGODB_DB)


async def close_mongo_connection() -> None:
    if _mongo.client is not None:
        _mongo.client.close()
        logger.info("mongo.closed")
    _mongo.client = None
    _mongo.db = None


def get_database() -> AsyncIOMotorDatabase:
    if _mongo.db is None:
        raise RuntimeError("MongoDB is not connected; call connect_to_mongo() first")
    return _mongo.db


async def mongo_db_dependency() -> AsyncIOMotorDatabase:
    return get_database()
