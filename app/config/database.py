"""
Database configuration and connection management for MongoDB
"""
from motor.motor_asyncio import AsyncIOMotorClient
from typing import Optional
import logging

from app.utils.errors import StoreNotReadyError

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """MongoDB database configuration"""

    def __init__(self, mongo_uri: str, database_name: str):
        self.MONGO_URI = mongo_uri
        self.DATABASE_NAME = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database = None

    @property
    def is_connected(self) -> bool:
        return self.database is not None

    async def connect_db(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.MONGO_URI)
            self.database = self.client[self.DATABASE_NAME]
            # Test connection
            await self.client.admin.command('ping')
            logger.info("✅ Connected to MongoDB: %s", self.DATABASE_NAME)
        except Exception as e:
            logger.error("❌ Error connecting to MongoDB: %s", e)
            self.database = None
            raise

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("✅ MongoDB connection closed")
        self.client = None
        self.database = None

    def get_collection(self, collection_name: str):
        """Get a specific collection"""
        if self.database is None:
            raise StoreNotReadyError("Database not connected")
        return self.database[collection_name]


# Collection names
class Collections:
    BOOKINGS = "bookings"
