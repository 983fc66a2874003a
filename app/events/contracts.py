"""
Event contracts exchanged over Dapr pub/sub.

Inbound: BidPlaced, produced by the bid service.
Outbound: auction.created / auction.updated / auction.deleted.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import config
from app.models.auction import Auction, utc_now
from app.schemas.auction import AuctionResponse

AUCTION_CREATED = "auction.created"
AUCTION_UPDATED = "auction.updated"
AUCTION_DELETED = "auction.deleted"


class BidPlaced(BaseModel):
    """Bid lifecycle event; read-only for this service"""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    auction_id: str = Field(..., alias="auctionId")
    amount: Decimal
    bid_status: str = Field(..., alias="bidStatus")
    bidder: Optional[str] = None
    bid_time: Optional[datetime] = Field(None, alias="bidTime")

    @field_validator("auction_id")
    @classmethod
    def _canonical_uuid(cls, value: str) -> str:
        # Raises ValueError for anything that is not a UUID
        return str(uuid.UUID(value))

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amount must be a finite number")
        return value


class OutboundEvent(BaseModel):
    """
    A lifecycle event ready to publish. The id is fixed when the event is
    built so every retry and every outbox relay carries the same CloudEvent
    id, letting subscribers deduplicate.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str
    topic: str
    partition_key: str
    data: Dict[str, Any]
    correlation_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


def _snapshot(auction: Auction) -> Dict[str, Any]:
    return AuctionResponse.from_auction(auction).model_dump(mode="json", by_alias=True)


def auction_created(auction: Auction, correlation_id: Optional[str] = None) -> OutboundEvent:
    return OutboundEvent(
        type=AUCTION_CREATED,
        topic=config.auction_created_topic,
        partition_key=auction.id,
        data=_snapshot(auction),
        correlation_id=correlation_id,
    )


def auction_updated(auction: Auction, correlation_id: Optional[str] = None) -> OutboundEvent:
    return OutboundEvent(
        type=AUCTION_UPDATED,
        topic=config.auction_updated_topic,
        partition_key=auction.id,
        data=_snapshot(auction),
        correlation_id=correlation_id,
    )


def auction_deleted(auction_id: str, correlation_id: Optional[str] = None) -> OutboundEvent:
    return OutboundEvent(
        type=AUCTION_DELETED,
        topic=config.auction_deleted_topic,
        partition_key=auction_id,
        data={"id": auction_id},
        correlation_id=correlation_id,
    )
