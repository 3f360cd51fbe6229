"""
MongoDB Connection
Motor client for the contract collections: retrying connect, indexes, health
"""
import asyncio
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure

from config import settings

logger = logging.getLogger(__name__)

ACCOUNT_COLLECTIONS = ("free_games", "paid_games", "ongoing_games")


class MongoDBManager:
    """Owns the Motor client and the contract database handle"""

    def __init__(self, uri: Optional[str] = None, database_name: Optional[str] = None):
        self.uri = uri or settings.MONGODB_URI
        self.database_name = database_name or settings.DATABASE_NAME
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.database is not None

    async def connect(self, retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Connect and ping, backing off exponentially between attempts

        Raises:
            ConnectionFailure: When every attempt failed
        """
        if self.is_connected:
            return

        last_error: Optional[Exception] = None

        for attempt in range(1, retries + 1):
            client = AsyncIOMotorClient(
                self.uri,
                serverSelectionTimeoutMS=10000,
                connectTimeoutMS=15000,
                retryWrites=True,
                appname="GamePassContract",
            )
            try:
                logger.info(f"[ATTEMPT {attempt}/{retries}] Connecting to MongoDB...")
                await asyncio.wait_for(client.admin.command("ping"), timeout=10.0)
            except (ConnectionFailure, asyncio.TimeoutError) as e:
                client.close()
                last_error = e
                logger.error(f"[FAIL] MongoDB attempt {attempt} failed: {str(e)}")
                if attempt < retries:
                    await asyncio.sleep(retry_delay * (2 ** (attempt - 1)))
                continue

            self.client = client
            self.database = client[self.database_name]
            await self._create_indexes()
            logger.info(f"[OK] MongoDB connected to '{self.database_name}'")
            return

        raise ConnectionFailure(f"Failed to connect to MongoDB after {retries} attempts: {last_error}")

    async def disconnect(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.database = None

    async def get_database(self) -> AsyncIOMotorDatabase:
        if not self.is_connected:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self.database

    async def _create_indexes(self) -> None:
        """One record per account in each per-account collection"""
        for name in ACCOUNT_COLLECTIONS:
            collection = self.database[name]
            try:
                await collection.create_index("account_id", unique=True)
            except DuplicateKeyError:
                logger.warning(f"[WARN] Duplicate account_id found in {name}")
            except OperationFailure as e:
                logger.error(f"[FAIL] Failed to create {name} index: {str(e)}")
                raise

        logger.info("[OK] Contract indexes created/verified")

    async def health_check(self) -> dict:
        if not self.is_connected:
            return {"status": "disconnected", "error": "Database not connected"}

        try:
            await asyncio.wait_for(self.client.admin.command("ping"), timeout=3.0)
            counts = {
                name: await self.database[name].count_documents({})
                for name in ACCOUNT_COLLECTIONS
            }
        except (ConnectionFailure, OperationFailure, asyncio.TimeoutError) as e:
            logger.error(f"Health check failed: {str(e)}")
            return {"status": "unhealthy", "error": str(e)}

        return {"status": "healthy", "database": self.database_name, "collections": counts}


_manager = MongoDBManager()


async def connect_to_mongo(retries: int = 3) -> None:
    await _manager.connect(retries=retries)


async def close_mongo_connection() -> None:
    await _manager.disconnect()


async def get_database() -> AsyncIOMotorDatabase:
    return await _manager.get_database()


async def check_database_health() -> dict:
    return await _manager.health_check()
