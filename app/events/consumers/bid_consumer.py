"""
BidPlaced consumer

Folds bid events into the auction's current highest bid. Delivery is
at-least-once and unordered, so the update is a max over accepted amounts
applied by compare-and-swap on the auction version.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.config import config
from app.core.errors import PoisonMessageError, TransientInfrastructureError
from app.core.logger import logger
from app.events.contracts import BidPlaced
from app.repositories.auction import AuctionRepository
from app.utils.bidding import bid_supersedes, is_accepted


class BidOutcome(str, Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    AUCTION_MISSING = "auction_missing"


def parse_bid_placed(payload: Any) -> BidPlaced:
    """
    Build a BidPlaced from a raw payload or a CloudEvents envelope.

    Raises:
        PoisonMessageError: the payload can never be processed
    """
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        raise PoisonMessageError("BidPlaced payload is not an object")
    try:
        return BidPlaced.model_validate(payload)
    except PydanticValidationError as e:
        raise PoisonMessageError(
            f"Malformed BidPlaced event: {e.error_count()} invalid field(s)",
            payload=payload,
        ) from e


class BidPlacedConsumer:
    """Applies BidPlaced events to the auction store"""

    def __init__(self, repository: AuctionRepository, max_attempts: Optional[int] = None):
        self.repository = repository
        self.max_attempts = max_attempts if max_attempts is not None else config.cas_max_attempts

    async def on_bid_placed(self, event: BidPlaced) -> BidOutcome:
        metadata: Dict[str, Any] = {
            "auction_id": event.auction_id,
            "amount": str(event.amount),
            "bidStatus": event.bid_status,
            "bidder": event.bidder,
            "eventId": event.id,
        }

        if not is_accepted(event.bid_status):
            logger.info(
                "Bid ignored: not accepted",
                metadata={"event": "bid_ignored_not_accepted", **metadata}
            )
            return BidOutcome.IGNORED

        for attempt in range(1, self.max_attempts + 1):
            auction = await self.repository.get_by_id(event.auction_id)
            if auction is None:
                # Deleted, or not visible yet; either way acknowledge
                logger.info(
                    "Bid ignored: auction not found",
                    metadata={"event": "bid_ignored_auction_missing", **metadata}
                )
                return BidOutcome.AUCTION_MISSING

            current = auction.current_highest_bid
            if not bid_supersedes(current, event.amount, event.bid_status):
                logger.info(
                    "Bid ignored: not higher than current highest bid",
                    metadata={
                        "event": "bid_ignored_not_higher",
                        "currentHighestBid": str(current),
                        **metadata,
                    }
                )
                return BidOutcome.IGNORED

            if await self.repository.set_highest_bid(auction.id, auction.version, event.amount):
                logger.info(
                    "Bid applied as new highest bid",
                    metadata={
                        "event": "bid_applied",
                        "previousHighestBid": str(current) if current is not None else None,
                        **metadata,
                    }
                )
                return BidOutcome.APPLIED

            logger.debug(
                "Concurrent auction write, re-evaluating bid",
                metadata={"event": "bid_version_conflict", "attempt": attempt, **metadata}
            )

        raise TransientInfrastructureError(
            "Too much contention applying bid",
            details={"auction_id": event.auction_id, "attempts": self.max_attempts},
        )
