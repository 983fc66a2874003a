"""
Auction repository for data access layer following Repository pattern.

Every mutation is a compare-and-swap on the document's ``version`` field, so
concurrent writers to the same auction serialize through MongoDB's atomic
single-document updates while different auctions never contend.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import (
    AutoReconnect,
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

from app.core.config import config
from app.core.errors import ErrorResponse, TransientInfrastructureError
from app.core.logger import logger
from app.models.auction import Auction

TRANSIENT_ERRORS = (
    AutoReconnect,
    NetworkTimeout,
    ServerSelectionTimeoutError,
    ExecutionTimeout,
    WTimeoutError,
)


def _store_error(operation: str, auction_id: Optional[str], error: PyMongoError) -> ErrorResponse:
    metadata = {"event": "store_error", "operation": operation, "auction_id": auction_id}
    if isinstance(error, TRANSIENT_ERRORS):
        logger.warning(f"Transient MongoDB error during {operation}: {error}", metadata=metadata)
        return TransientInfrastructureError(
            f"Database temporarily unavailable during {operation}",
            details={"operation": operation},
        )
    logger.error(f"MongoDB error during {operation}", error=error, metadata=metadata)
    return ErrorResponse(f"Database error during {operation}", status_code=500)


class AuctionRepository:
    """Repository for auction data access operations"""

    def __init__(self, collection: AsyncIOMotorCollection, max_time_ms: Optional[int] = None):
        self.collection = collection
        self.max_time_ms = max_time_ms if max_time_ms is not None else config.mongodb_max_time_ms

    @staticmethod
    def _to_document(auction: Auction) -> Dict[str, Any]:
        doc = auction.model_dump(exclude={"id"})
        doc["_id"] = auction.id
        if auction.current_highest_bid is not None:
            doc["current_highest_bid"] = Decimal128(str(auction.current_highest_bid))
        return doc

    @staticmethod
    def _to_auction(doc: Optional[dict]) -> Optional[Auction]:
        if not doc:
            return None
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        bid = doc.get("current_highest_bid")
        if isinstance(bid, Decimal128):
            doc["current_highest_bid"] = bid.to_decimal()
        for field in ("created_at", "updated_at"):
            value = doc.get(field)
            if isinstance(value, datetime) and value.tzinfo is None:
                doc[field] = value.replace(tzinfo=timezone.utc)
        return Auction(**doc)

    async def create(self, auction: Auction) -> Auction:
        """Insert a new auction"""
        try:
            await self.collection.insert_one(self._to_document(auction))
        except DuplicateKeyError:
            # The id is generated by the service, so a duplicate means an
            # earlier attempt of this same insert was applied
            existing = await self.get_by_id(auction.id)
            if existing is None or existing.seller != auction.seller:
                raise ErrorResponse("Auction id collision", status_code=409)
            return existing
        except PyMongoError as e:
            raise _store_error("auction creation", auction.id, e)
        return auction

    async def get_by_id(self, auction_id: str) -> Optional[Auction]:
        try:
            doc = await self.collection.find_one({"_id": auction_id}, max_time_ms=self.max_time_ms)
        except PyMongoError as e:
            raise _store_error("auction retrieval", auction_id, e)
        return self._to_auction(doc)

    async def list_auctions(self, updated_after: Optional[datetime] = None) -> List[Auction]:
        """All auctions ordered by make, optionally only those updated after a point in time"""
        query: Dict[str, Any] = {}
        if updated_after is not None:
            query["updated_at"] = {"$gt": updated_after}
        try:
            cursor = self.collection.find(query, max_time_ms=self.max_time_ms).sort("item.make", ASCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise _store_error("auction listing", None, e)
        return [self._to_auction(doc) for doc in docs]

    async def update_item(
        self,
        auction_id: str,
        expected_version: int,
        changes: Dict[str, Any],
    ) -> Optional[Auction]:
        """
        Apply item field changes if the stored version still matches.

        Returns the updated auction, or None when the version moved on (or
        the auction vanished) and the caller has to reload.
        """
        update_set: Dict[str, Any] = {f"item.{field}": value for field, value in changes.items()}
        update_set["updated_at"] = datetime.now(timezone.utc)
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": auction_id, "version": expected_version},
                {"$set": update_set, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
                max_time_ms=self.max_time_ms,
            )
        except PyMongoError as e:
            raise _store_error("auction update", auction_id, e)
        return self._to_auction(doc)

    async def set_highest_bid(self, auction_id: str, expected_version: int, amount: Decimal) -> bool:
        """Store a new highest bid if the stored version still matches"""
        try:
            result = await self.collection.update_one(
                {"_id": auction_id, "version": expected_version},
                {
                    "$set": {
                        "current_highest_bid": Decimal128(str(amount)),
                        "updated_at": datetime.now(timezone.utc),
                    },
                    "$inc": {"version": 1},
                },
            )
        except PyMongoError as e:
            raise _store_error("highest bid update", auction_id, e)
        return result.matched_count == 1

    async def delete(self, auction_id: str, expected_version: int) -> bool:
        """Remove the auction if the stored version still matches"""
        try:
            result = await self.collection.delete_one({"_id": auction_id, "version": expected_version})
        except PyMongoError as e:
            raise _store_error("auction deletion", auction_id, e)
        return result.deleted_count == 1
