"""
Repository for lifecycle events whose publication failed after the store
write was committed. The outbox relay drains it.
"""

from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from app.core.errors import TransientInfrastructureError
from app.core.logger import logger
from app.events.contracts import OutboundEvent

# Dead entries (rejected by the broker) are excluded; a missing field matches None
PENDING = {"published_at": None, "dead_at": None}


def _outbox_error(operation: str, event_id: Optional[str], error: PyMongoError) -> TransientInfrastructureError:
    logger.error(
        f"MongoDB error during {operation}",
        error=error,
        metadata={"event": "outbox_store_error", "operation": operation, "eventId": event_id}
    )
    return TransientInfrastructureError("Outbox unavailable", details={"operation": operation})


class OutboxRepository:
    """Repository for parked outbound events"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def add(self, event: OutboundEvent, error: Optional[str] = None) -> str:
        """
        Park an event for later publication

        Args:
            event: The event that could not be published
            error: Last publication error, kept for operators

        Returns:
            The outbox entry id (the event id)
        """
        document = {
            "_id": event.id,
            "event": event.model_dump(mode="json"),
            "partition_key": event.partition_key,
            "created_at": datetime.now(timezone.utc),
            "published_at": None,
            "dead_at": None,
            "attempts": 0,
            "last_error": error,
        }
        try:
            await self.collection.update_one(
                {"_id": event.id},
                {"$setOnInsert": document},
                upsert=True,
            )
        except PyMongoError as e:
            raise _outbox_error("outbox add", event.id, e)

        logger.warning(
            f"Parked {event.type} event in outbox",
            metadata={
                "event": "outbox_event_parked",
                "eventId": event.id,
                "eventType": event.type,
                "auction_id": event.partition_key,
            }
        )
        return event.id

    async def list_pending(self, limit: int = 50) -> List[OutboundEvent]:
        """Unpublished events, oldest first; dead entries are skipped"""
        try:
            cursor = self.collection.find(PENDING).sort("created_at", ASCENDING).limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise _outbox_error("outbox listing", None, e)
        return [OutboundEvent(**doc["event"]) for doc in docs]

    async def mark_published(self, event_id: str) -> None:
        try:
            await self.collection.update_one(
                {"_id": event_id},
                {"$set": {"published_at": datetime.now(timezone.utc)}, "$inc": {"attempts": 1}},
            )
        except PyMongoError as e:
            raise _outbox_error("outbox publish bookkeeping", event_id, e)

    async def record_failure(self, event_id: str, error: str) -> None:
        try:
            await self.collection.update_one(
                {"_id": event_id},
                {"$set": {"last_error": error}, "$inc": {"attempts": 1}},
            )
        except PyMongoError as e:
            raise _outbox_error("outbox failure bookkeeping", event_id, e)

    async def mark_dead(self, event_id: str, error: str) -> None:
        """Take an event the broker rejected out of the relay queue; it stays for operators"""
        try:
            await self.collection.update_one(
                {"_id": event_id},
                {
                    "$set": {"dead_at": datetime.now(timezone.utc), "last_error": error},
                    "$inc": {"attempts": 1},
                },
            )
        except PyMongoError as e:
            raise _outbox_error("outbox dead-letter bookkeeping", event_id, e)

    async def count_pending(self) -> int:
        try:
            return await self.collection.count_documents(PENDING)
        except PyMongoError as e:
            raise _outbox_error("outbox count", None, e)

    async def count_dead(self) -> int:
        try:
            return await self.collection.count_documents({"dead_at": {"$ne": None}})
        except PyMongoError as e:
            raise _outbox_error("outbox count", None, e)
