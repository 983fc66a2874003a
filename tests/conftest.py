"""Shared test fixtures"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import jwt
import pytest
from unittest.mock import AsyncMock

from app.core.config import config
from app.events.publishers.publisher import DaprEventPublisher
from app.models.auction import Auction, Item


class InMemoryAuctionRepository:
    """
    Stand-in for AuctionRepository with the same compare-and-swap contract:
    every mutation succeeds only if the expected version still matches.
    """

    def __init__(self):
        self.auctions: Dict[str, Auction] = {}
        self.writes = 0

    def _copy(self, auction: Optional[Auction]) -> Optional[Auction]:
        return auction.model_copy(deep=True) if auction is not None else None

    async def create(self, auction: Auction) -> Auction:
        self.auctions[auction.id] = self._copy(auction)
        self.writes += 1
        return self._copy(auction)

    async def get_by_id(self, auction_id: str) -> Optional[Auction]:
        return self._copy(self.auctions.get(auction_id))

    async def list_auctions(self, updated_after: Optional[datetime] = None) -> List[Auction]:
        auctions = [
            a for a in self.auctions.values()
            if updated_after is None or a.updated_at > updated_after
        ]
        return [self._copy(a) for a in sorted(auctions, key=lambda a: a.item.make)]

    async def update_item(self, auction_id: str, expected_version: int, changes: dict) -> Optional[Auction]:
        auction = self.auctions.get(auction_id)
        if auction is None or auction.version != expected_version:
            return None
        auction.item = auction.item.model_copy(update=changes)
        auction.updated_at = datetime.now(timezone.utc)
        auction.version += 1
        self.writes += 1
        return self._copy(auction)

    async def set_highest_bid(self, auction_id: str, expected_version: int, amount: Decimal) -> bool:
        auction = self.auctions.get(auction_id)
        if auction is None or auction.version != expected_version:
            return False
        auction.current_highest_bid = amount
        auction.updated_at = datetime.now(timezone.utc)
        auction.version += 1
        self.writes += 1
        return True

    async def delete(self, auction_id: str, expected_version: int) -> bool:
        auction = self.auctions.get(auction_id)
        if auction is None or auction.version != expected_version:
            return False
        del self.auctions[auction_id]
        self.writes += 1
        return True


@pytest.fixture
def repository():
    """Empty in-memory auction store"""
    return InMemoryAuctionRepository()


@pytest.fixture
def sample_item():
    return Item(make="Ford", model="GT", color="White", mileage=50000, year=2020)


@pytest.fixture
def sample_auction(sample_item):
    """Active auction with no bids yet"""
    return Auction(
        id=str(uuid.uuid4()),
        item=sample_item,
        seller="bob",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def stored_auction(repository, sample_auction):
    """sample_auction already persisted in the in-memory store"""
    repository.auctions[sample_auction.id] = sample_auction.model_copy(deep=True)
    return sample_auction


@pytest.fixture
def publisher():
    """Real publisher with no backoff; tests patch its single-attempt publish"""
    publisher = DaprEventPublisher(max_attempts=3, backoff_initial=0, backoff_max=0)
    publisher.publish = AsyncMock(return_value=None)
    return publisher


@pytest.fixture
def outbox():
    """Mock OutboxRepository"""
    outbox = AsyncMock()
    outbox.add = AsyncMock(side_effect=lambda event, error=None: event.id)
    return outbox


def make_token(username: str = "bob", roles=None) -> str:
    payload = {"username": username, "roles": roles or []}
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token('bob')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('alice', roles=['admin'])}"}
