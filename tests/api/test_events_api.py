"""
Tests for the Dapr subscription endpoints
Checks the SUCCESS / RETRY / DROP contract of the BidPlaced handler
"""
import uuid

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from app.core.errors import TransientInfrastructureError
from app.dependencies.auction import get_bid_consumer
from app.events.consumers.bid_consumer import BidOutcome
from main import app


client = TestClient(app)


@pytest.fixture
def consumer():
    consumer = AsyncMock()
    consumer.on_bid_placed.return_value = BidOutcome.APPLIED
    app.dependency_overrides[get_bid_consumer] = lambda: consumer
    yield consumer
    app.dependency_overrides.clear()


def bid_payload(**overrides):
    payload = {
        "auctionId": str(uuid.uuid4()),
        "amount": 500,
        "bidStatus": "Accepted",
        "bidder": "tom",
    }
    payload.update(overrides)
    return payload


class TestSubscriptions:
    """Tests for Dapr subscription discovery"""

    def test_subscribe_lists_bid_placed_with_dead_letter(self):
        response = client.get("/dapr/subscribe")

        assert response.status_code == 200
        subscriptions = response.json()
        assert len(subscriptions) == 1
        assert subscriptions[0]["topic"] == "bid-placed"
        assert subscriptions[0]["route"] == "/dapr/events/bid-placed"
        assert subscriptions[0]["deadLetterTopic"] == "bid-placed-deadletter"


class TestBidPlacedHandler:
    """Tests for POST /dapr/events/bid-placed"""

    def test_applied_bid_is_acknowledged(self, consumer):
        response = client.post("/dapr/events/bid-placed", json=bid_payload())

        assert response.status_code == 200
        assert response.json() == {"status": "SUCCESS", "outcome": "applied"}
        consumer.on_bid_placed.assert_awaited_once()

    def test_cloud_event_envelope(self, consumer):
        data = bid_payload(amount="99.95")
        envelope = {
            "specversion": "1.0",
            "type": "com.dapr.event.sent",
            "correlationid": "abc",
            "data": data,
        }

        response = client.post("/dapr/events/bid-placed", json=envelope)

        assert response.json()["status"] == "SUCCESS"
        event = consumer.on_bid_placed.await_args.args[0]
        assert event.auction_id == data["auctionId"]
        assert str(event.amount) == "99.95"

    @pytest.mark.parametrize("outcome", [BidOutcome.IGNORED, BidOutcome.AUCTION_MISSING])
    def test_ignored_bids_are_still_acknowledged(self, consumer, outcome):
        consumer.on_bid_placed.return_value = outcome

        response = client.post("/dapr/events/bid-placed", json=bid_payload())

        assert response.json() == {"status": "SUCCESS", "outcome": outcome.value}

    def test_malformed_event_is_dropped(self, consumer):
        response = client.post("/dapr/events/bid-placed", json=bid_payload(auctionId="not-a-guid"))

        assert response.status_code == 200
        assert response.json() == {"status": "DROP"}
        consumer.on_bid_placed.assert_not_called()

    def test_unreadable_body_is_dropped(self, consumer):
        response = client.post(
            "/dapr/events/bid-placed",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.json() == {"status": "DROP"}

    def test_transient_failure_requests_retry(self, consumer):
        consumer.on_bid_placed.side_effect = TransientInfrastructureError("store down")

        response = client.post("/dapr/events/bid-placed", json=bid_payload())

        assert response.status_code == 200
        assert response.json() == {"status": "RETRY"}

    def test_unexpected_failure_requests_retry(self, consumer):
        consumer.on_bid_placed.side_effect = RuntimeError("boom")

        response = client.post("/dapr/events/bid-placed", json=bid_payload())

        assert response.json() == {"status": "RETRY"}
