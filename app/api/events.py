"""
Dapr Pub/Sub Subscription Endpoints
Handles incoming bid events from Dapr pub/sub
"""

import json

from fastapi import APIRouter, Depends, Request

from app.core.config import config
from app.core.errors import ErrorResponse, PoisonMessageError
from app.core.logger import logger
from app.dependencies.auction import get_bid_consumer
from app.events.consumers.bid_consumer import BidPlacedConsumer, parse_bid_placed

router = APIRouter(prefix="/dapr", tags=["dapr-pubsub"])

# Dapr subscriber response statuses
SUCCESS = {"status": "SUCCESS"}
RETRY = {"status": "RETRY"}
DROP = {"status": "DROP"}  # routed to the subscription's dead-letter topic


@router.get("/subscribe")
async def get_subscriptions():
    """
    Dapr calls this endpoint to get list of subscriptions.
    """
    subscriptions = [
        {
            "pubsubname": config.dapr_pubsub_name,
            "topic": config.bid_placed_topic,
            "route": "/dapr/events/bid-placed",
            "deadLetterTopic": config.bid_placed_dead_letter_topic,
        },
    ]

    logger.info(
        "Dapr subscriptions configured",
        metadata={
            "subscriptionCount": len(subscriptions),
            "topics": [s["topic"] for s in subscriptions]
        }
    )
    return subscriptions


@router.post("/events/bid-placed")
async def handle_bid_placed(
    request: Request,
    consumer: BidPlacedConsumer = Depends(get_bid_consumer),
):
    """
    Handle a BidPlaced event.

    SUCCESS acknowledges applied and ignored bids, including bids for
    auctions that no longer exist. RETRY asks Dapr to redeliver after a
    transient failure. DROP dead-letters a message that can never be parsed.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(
            "Dropping unreadable BidPlaced message",
            error=e,
            metadata={"event": "bid_poison_message"}
        )
        return DROP

    correlation_id = body.get("correlationid") if isinstance(body, dict) else None

    try:
        event = parse_bid_placed(body)
    except PoisonMessageError as e:
        logger.error(
            f"Dropping malformed BidPlaced event: {e.message}",
            correlation_id=correlation_id,
            metadata={"event": "bid_poison_message", "payload": e.payload}
        )
        return DROP

    try:
        outcome = await consumer.on_bid_placed(event)
    except ErrorResponse as e:
        logger.warning(
            f"BidPlaced processing failed, requesting redelivery: {e.message}",
            correlation_id=correlation_id,
            metadata={"event": "bid_retry", "auction_id": event.auction_id, **e.details}
        )
        return RETRY
    except Exception as e:
        logger.error(
            "Unexpected error handling BidPlaced, requesting redelivery",
            correlation_id=correlation_id,
            error=e,
            metadata={"event": "bid_retry", "auction_id": event.auction_id},
            exc_info=True,
        )
        return RETRY

    return {**SUCCESS, "outcome": outcome.value}
