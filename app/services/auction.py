"""
Auction service containing the command handler and queries.

Every command writes the store first and publishes the lifecycle event only
after the write is acknowledged. Publication is retried within a bounded
budget; if it still fails the event is parked in the outbox and the command
reports PublicationFailureError even though the write is committed.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from app.core.config import config
from app.core.errors import (
    ForbiddenError,
    NotFoundError,
    PublicationFailureError,
    TransientInfrastructureError,
    ValidationError,
)
from app.core.logger import logger
from app.events import contracts
from app.events.contracts import OutboundEvent
from app.events.publishers.publisher import DaprEventPublisher, PublishError
from app.middleware.trace_context import get_trace_id
from app.models.auction import Auction, Item
from app.repositories.auction import AuctionRepository
from app.repositories.outbox import OutboxRepository
from app.schemas.auction import AuctionCreate, AuctionResponse, AuctionUpdate
from app.utils.retry import retry_async


class AuctionService:
    """Service layer for auction business logic"""

    def __init__(
        self,
        repository: AuctionRepository,
        publisher: DaprEventPublisher,
        outbox: OutboxRepository,
        store_max_attempts: Optional[int] = None,
        cas_max_attempts: Optional[int] = None,
        store_backoff_initial: Optional[float] = None,
        store_backoff_max: Optional[float] = None,
    ):
        self.repository = repository
        self.publisher = publisher
        self.outbox = outbox
        self.store_max_attempts = (
            store_max_attempts if store_max_attempts is not None else config.store_max_attempts
        )
        self.cas_max_attempts = cas_max_attempts if cas_max_attempts is not None else config.cas_max_attempts
        self.store_backoff_initial = (
            store_backoff_initial if store_backoff_initial is not None else config.store_backoff_initial_seconds
        )
        self.store_backoff_max = (
            store_backoff_max if store_backoff_max is not None else config.store_backoff_max_seconds
        )

    async def _store(self, operation_name: str, operation):
        return await retry_async(
            operation,
            operation_name=operation_name,
            retry_on=TransientInfrastructureError,
            max_attempts=self.store_max_attempts,
            backoff_initial=self.store_backoff_initial,
            backoff_max=self.store_backoff_max,
        )

    async def _publish(self, event: OutboundEvent) -> None:
        """Publish after a committed write; park in the outbox on failure"""
        try:
            await self.publisher.publish_with_retry(event)
            return
        except PublishError as e:
            error = e

        logger.error(
            f"Publication of {event.type} failed after retries",
            error=error,
            metadata={
                "event": "publication_failed",
                "eventId": event.id,
                "eventType": event.type,
                "auction_id": event.partition_key,
            }
        )

        outbox_id = None
        try:
            outbox_id = await self.outbox.add(event, error=str(error))
        except TransientInfrastructureError:
            logger.error(
                f"{event.type} for auction {event.partition_key} requires manual reconciliation",
                metadata={"event": "publication_lost_pending_reconciliation", "eventId": event.id}
            )

        raise PublicationFailureError(
            "Change saved but the event could not be published",
            auction_id=event.partition_key,
            event_type=event.type,
            outbox_id=outbox_id,
        )

    async def _load(self, auction_id: str) -> Auction:
        auction = await self._store("auction retrieval", lambda: self.repository.get_by_id(auction_id))
        if auction is None:
            raise NotFoundError(details={"auction_id": auction_id})
        return auction

    @staticmethod
    def _check_seller(auction: Auction, caller: str) -> None:
        if auction.seller != caller:
            logger.warning(
                f"User {caller} is not the seller of auction {auction.id}",
                metadata={"event": "auction_forbidden", "auction_id": auction.id, "caller": caller}
            )
            raise ForbiddenError(details={"auction_id": auction.id})

    async def create_auction(self, auction_data: AuctionCreate, seller: str) -> AuctionResponse:
        """Persist a new auction, then publish auction.created with the full snapshot"""
        if not seller:
            raise ValidationError("Seller is required")

        now = datetime.now(timezone.utc)
        auction = Auction(
            id=str(uuid.uuid4()),
            item=Item(**auction_data.model_dump()),
            seller=seller,
            created_at=now,
            updated_at=now,
        )
        auction = await self._store("auction creation", lambda: self.repository.create(auction))

        logger.info(
            f"Created auction {auction.id}",
            metadata={"event": "create_auction", "auction_id": auction.id, "seller": seller}
        )

        await self._publish(contracts.auction_created(auction, correlation_id=get_trace_id()))
        return AuctionResponse.from_auction(auction)

    async def update_auction(self, auction_id: str, auction_data: AuctionUpdate, caller: str) -> AuctionResponse:
        """Apply a partial item update as the seller, then publish auction.updated"""
        changes = auction_data.changes()
        if not changes:
            raise ValidationError("No fields to update")

        for attempt in range(1, self.cas_max_attempts + 1):
            current = await self._load(auction_id)
            self._check_seller(current, caller)

            updated = await self._store(
                "auction update",
                lambda: self.repository.update_item(auction_id, current.version, changes),
            )
            if updated is not None:
                break

            logger.debug(
                "Concurrent auction write, retrying update",
                metadata={"event": "auction_version_conflict", "auction_id": auction_id, "attempt": attempt}
            )
        else:
            raise TransientInfrastructureError(
                "Too much contention updating auction",
                details={"auction_id": auction_id},
            )

        logger.info(
            f"Updated auction {auction_id}",
            metadata={"event": "update_auction", "auction_id": auction_id, "fields": sorted(changes)}
        )

        await self._publish(contracts.auction_updated(updated, correlation_id=get_trace_id()))
        return AuctionResponse.from_auction(updated)

    async def delete_auction(self, auction_id: str, caller: str) -> None:
        """
        Remove the auction as the seller, then publish auction.deleted.

        A delete attempt that failed transiently may still have been applied.
        If the auction is gone on the next reload, that delete is taken as
        ours and the event is published rather than reporting NotFound.
        """
        outcome_unknown = False

        async def attempt_delete():
            nonlocal outcome_unknown
            try:
                return await self.repository.delete(auction_id, current.version)
            except TransientInfrastructureError:
                outcome_unknown = True
                raise

        for attempt in range(1, self.cas_max_attempts + 1):
            try:
                current = await self._load(auction_id)
            except NotFoundError:
                if not outcome_unknown:
                    raise
                logger.warning(
                    f"Auction {auction_id} already removed after an unacknowledged delete",
                    metadata={"event": "auction_delete_ack_lost", "auction_id": auction_id}
                )
                break
            self._check_seller(current, caller)

            if await self._store("auction deletion", attempt_delete):
                break

            logger.debug(
                "Concurrent auction write, retrying delete",
                metadata={"event": "auction_version_conflict", "auction_id": auction_id, "attempt": attempt}
            )
        else:
            raise TransientInfrastructureError(
                "Too much contention deleting auction",
                details={"auction_id": auction_id},
            )

        logger.info(
            f"Deleted auction {auction_id}",
            metadata={"event": "delete_auction", "auction_id": auction_id}
        )

        await self._publish(contracts.auction_deleted(auction_id, correlation_id=get_trace_id()))

    async def get_auction(self, auction_id: str) -> AuctionResponse:
        return AuctionResponse.from_auction(await self._load(auction_id))

    async def list_auctions(self, updated_after: Optional[datetime] = None) -> List[AuctionResponse]:
        """Auctions ordered by make; with a date, only those updated after it"""
        if updated_after is not None and updated_after.tzinfo is None:
            updated_after = updated_after.replace(tzinfo=timezone.utc)

        auctions = await self._store(
            "auction listing",
            lambda: self.repository.list_auctions(updated_after),
        )

        logger.info(
            f"Fetched {len(auctions)} auctions",
            metadata={
                "event": "list_auctions",
                "count": len(auctions),
                "updated_after": updated_after.isoformat() if updated_after else None,
            }
        )
        return [AuctionResponse.from_auction(a) for a in auctions]
