"""
Dependency injection for the auction service, bid consumer and outbox relay
"""

from fastapi import Depends

from app.core.config import config
from app.db.mongodb import get_auction_collection, get_outbox_collection
from app.events.consumers.bid_consumer import BidPlacedConsumer
from app.events.publishers.publisher import DaprEventPublisher, get_event_publisher
from app.repositories.auction import AuctionRepository
from app.repositories.outbox import OutboxRepository
from app.services.auction import AuctionService
from app.services.outbox_relay import OutboxRelay


async def get_auction_repository() -> AuctionRepository:
    collection = await get_auction_collection()
    return AuctionRepository(collection)


async def get_outbox_repository() -> OutboxRepository:
    collection = await get_outbox_collection()
    return OutboxRepository(collection)


async def get_auction_service(
    repository: AuctionRepository = Depends(get_auction_repository),
    outbox: OutboxRepository = Depends(get_outbox_repository),
    publisher: DaprEventPublisher = Depends(get_event_publisher),
) -> AuctionService:
    return AuctionService(repository, publisher, outbox)


async def get_bid_consumer(
    repository: AuctionRepository = Depends(get_auction_repository),
) -> BidPlacedConsumer:
    return BidPlacedConsumer(repository)


async def get_outbox_relay(
    outbox: OutboxRepository = Depends(get_outbox_repository),
    publisher: DaprEventPublisher = Depends(get_event_publisher),
) -> OutboxRelay:
    return OutboxRelay(outbox, publisher, batch_size=config.outbox_relay_batch_size)
