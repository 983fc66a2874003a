"""Unit tests for AuctionRepository against a mocked Motor collection"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from bson.decimal128 import Decimal128
from pymongo.errors import AutoReconnect, DuplicateKeyError, OperationFailure
from unittest.mock import AsyncMock, MagicMock

from app.core.errors import ErrorResponse, TransientInfrastructureError
from app.repositories.auction import AuctionRepository


def auction_doc(auction_id="a1", seller="bob", make="Ford", bid=None, naive=False):
    tz = None if naive else timezone.utc
    return {
        "_id": auction_id,
        "item": {"make": make, "model": "GT", "color": "White", "mileage": 50000, "year": 2020},
        "seller": seller,
        "current_highest_bid": bid,
        "created_at": datetime(2024, 1, 1, tzinfo=tz),
        "updated_at": datetime(2024, 1, 2, tzinfo=tz),
        "version": 3,
    }


@pytest.fixture
def collection():
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def repo(collection):
    return AuctionRepository(collection, max_time_ms=1000)


class TestAuctionRepository:
    """Test AuctionRepository operations"""

    @pytest.mark.asyncio
    async def test_create_stores_id_and_decimal128(self, repo, collection, sample_auction):
        sample_auction.current_highest_bid = Decimal("10.50")

        await repo.create(sample_auction)

        doc = collection.insert_one.await_args.args[0]
        assert doc["_id"] == sample_auction.id
        assert "id" not in doc
        assert doc["current_highest_bid"] == Decimal128("10.50")
        assert doc["version"] == 1

    @pytest.mark.asyncio
    async def test_create_duplicate_from_retried_insert(self, repo, collection, sample_auction):
        collection.insert_one.side_effect = DuplicateKeyError("dup")
        collection.find_one.return_value = auction_doc(sample_auction.id, seller=sample_auction.seller)

        result = await repo.create(sample_auction)

        assert result.id == sample_auction.id

    @pytest.mark.asyncio
    async def test_create_id_collision(self, repo, collection, sample_auction):
        collection.insert_one.side_effect = DuplicateKeyError("dup")
        collection.find_one.return_value = auction_doc(sample_auction.id, seller="someone-else")

        with pytest.raises(ErrorResponse) as exc_info:
            await repo.create(sample_auction)
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_get_by_id_converts_document(self, repo, collection):
        collection.find_one.return_value = auction_doc(bid=Decimal128("250.75"), naive=True)

        auction = await repo.get_by_id("a1")

        assert auction.id == "a1"
        assert auction.current_highest_bid == Decimal("250.75")
        assert auction.updated_at.tzinfo is not None
        assert auction.item.make == "Ford"
        collection.find_one.assert_awaited_once_with({"_id": "a1"}, max_time_ms=1000)

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, repo, collection):
        collection.find_one.return_value = None
        assert await repo.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_list_auctions_filters_and_sorts(self, repo, collection):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[auction_doc("a1", make="Audi"), auction_doc("a2")])
        collection.find.return_value = cursor
        cutoff = datetime(2024, 1, 1, tzinfo=timezone.utc)

        auctions = await repo.list_auctions(updated_after=cutoff)

        assert [a.id for a in auctions] == ["a1", "a2"]
        collection.find.assert_called_once_with({"updated_at": {"$gt": cutoff}}, max_time_ms=1000)
        cursor.sort.assert_called_once_with("item.make", 1)

    @pytest.mark.asyncio
    async def test_update_item_is_versioned(self, repo, collection):
        collection.find_one_and_update.return_value = auction_doc()

        result = await repo.update_item("a1", 3, {"color": "Red"})

        assert result is not None
        query, update = collection.find_one_and_update.await_args.args
        assert query == {"_id": "a1", "version": 3}
        assert update["$set"]["item.color"] == "Red"
        assert "updated_at" in update["$set"]
        assert update["$inc"] == {"version": 1}

    @pytest.mark.asyncio
    async def test_update_item_version_conflict(self, repo, collection):
        collection.find_one_and_update.return_value = None
        assert await repo.update_item("a1", 3, {"color": "Red"}) is None

    @pytest.mark.asyncio
    async def test_set_highest_bid(self, repo, collection):
        collection.update_one.return_value = MagicMock(matched_count=1)

        assert await repo.set_highest_bid("a1", 3, Decimal("700")) is True

        query, update = collection.update_one.await_args.args
        assert query == {"_id": "a1", "version": 3}
        assert update["$set"]["current_highest_bid"] == Decimal128("700")
        assert update["$inc"] == {"version": 1}

    @pytest.mark.asyncio
    async def test_set_highest_bid_conflict(self, repo, collection):
        collection.update_one.return_value = MagicMock(matched_count=0)
        assert await repo.set_highest_bid("a1", 3, Decimal("700")) is False

    @pytest.mark.asyncio
    async def test_delete_is_versioned(self, repo, collection):
        collection.delete_one.return_value = MagicMock(deleted_count=1)

        assert await repo.delete("a1", 3) is True
        collection.delete_one.assert_awaited_once_with({"_id": "a1", "version": 3})

    @pytest.mark.asyncio
    async def test_transient_error_is_mapped(self, repo, collection):
        collection.find_one.side_effect = AutoReconnect("primary stepped down")

        with pytest.raises(TransientInfrastructureError) as exc_info:
            await repo.get_by_id("a1")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_permanent_error_is_internal(self, repo, collection):
        collection.update_one.side_effect = OperationFailure("bad update")

        with pytest.raises(ErrorResponse) as exc_info:
            await repo.set_highest_bid("a1", 3, Decimal("1"))
        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, TransientInfrastructureError)

    def test_explicit_max_time_is_kept(self, collection):
        assert AuctionRepository(collection, max_time_ms=0).max_time_ms == 0
