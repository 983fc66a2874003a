"""
MongoDB connection management
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError

from app.core.config import config
from app.core.errors import TransientInfrastructureError
from app.core.logger import logger

AUCTIONS_COLLECTION = "auctions"
OUTBOX_COLLECTION = "outbox"


class Database:
    """Database connection manager"""

    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None


db = Database()


async def connect_to_mongo():
    """Create the database connection and ensure indexes"""
    logger.info("Connecting to MongoDB...")

    try:
        db.client = AsyncIOMotorClient(
            config.mongodb_url,
            uuidRepresentation="standard",
            serverSelectionTimeoutMS=config.mongodb_server_selection_timeout_ms,
            socketTimeoutMS=config.mongodb_socket_timeout_ms,
            w="majority",
            tz_aware=True,
        )
        db.database = db.client[config.mongodb_database]

        await db.client.admin.command('ping')
        await ensure_indexes(db.database)

        logger.info(
            f"Successfully connected to MongoDB database '{config.mongodb_database}'",
            metadata={
                "event": "mongodb_connected",
                "database": config.mongodb_database,
                "host": config.mongodb_host,
                "port": config.mongodb_port
            }
        )
    except PyMongoError as e:
        logger.error(
            "Could not connect to MongoDB",
            error=e,
            metadata={"event": "mongodb_connection_error"}
        )
        raise TransientInfrastructureError(f"Could not connect to MongoDB: {e}")


async def ensure_indexes(database: AsyncIOMotorDatabase):
    """Create the indexes the queries rely on"""
    await database[AUCTIONS_COLLECTION].create_indexes([
        IndexModel([("updated_at", DESCENDING)], name="updated_at_idx"),
        IndexModel([("item.make", ASCENDING)], name="item_make_idx"),
        IndexModel([("seller", ASCENDING)], name="seller_idx"),
    ])
    await database[OUTBOX_COLLECTION].create_indexes([
        IndexModel(
            [("published_at", ASCENDING), ("dead_at", ASCENDING), ("created_at", ASCENDING)],
            name="pending_idx",
        ),
        IndexModel([("published_at", ASCENDING)], expireAfterSeconds=604800, name="published_ttl_idx"),
    ])


async def close_mongo_connection():
    """Close database connection"""
    logger.info("Closing connection to MongoDB...")
    if db.client is not None:
        db.client.close()
        db.client = None
        db.database = None


async def get_database() -> AsyncIOMotorDatabase:
    """Get database instance, connecting lazily"""
    if db.database is None:
        await connect_to_mongo()
    return db.database


async def get_auction_collection() -> AsyncIOMotorCollection:
    database = await get_database()
    return database[AUCTIONS_COLLECTION]


async def get_outbox_collection() -> AsyncIOMotorCollection:
    database = await get_database()
    return database[OUTBOX_COLLECTION]
