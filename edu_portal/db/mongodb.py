"""
MongoDB connection
Single motor client shared by the content store, quiz repository and progress tracker
FILE: edu_portal/db/mongodb.py
"""
from typing import Optional
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from edu_portal.core.config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    client: Optional[AsyncIOMotorClient] = None


mongodb = MongoDB()


async def connect_to_mongo():
    """Open the client and make sure the server answers"""
    try:
        mongodb.client = AsyncIOMotorClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms
        )
        await mongodb.client.admin.command('ping')
        logger.info(f"✓ Connected to MongoDB database '{settings.database_name}'")
    except Exception as e:
        logger.error(f"✗ Failed to connect to MongoDB: {e}")
        raise


async def close_mongo_connection():
    if mongodb.client:
        mongodb.client.close()
        mongodb.client = None
        logger.info("✓ Closed MongoDB connection")


async def ping_database() -> bool:
    """Return True when the server answers a ping"""
    if mongodb.client is None:
        return False
    try:
        await mongodb.client.admin.command('ping')
        return True
    except Exception as e:
        logger.error(f"❌ MongoDB ping failed: {e}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """Portal database on the shared client"""
    if mongodb.client is None:
        raise RuntimeError("MongoDB is not connected; connect_to_mongo() runs at startup")
    return mongodb.client[settings.database_name]
