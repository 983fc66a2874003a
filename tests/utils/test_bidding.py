"""Unit tests for the highest-bid projection rule"""
import itertools
from decimal import Decimal
from functools import reduce

import pytest

from app.utils.bidding import bid_supersedes, fold_highest_bid, is_accepted


def fold(events, start=None):
    return reduce(lambda current, e: fold_highest_bid(current, e[0], e[1]), events, start)


class TestIsAccepted:
    """Status label interpretation"""

    @pytest.mark.parametrize("status", ["Accepted", "accepted", "AcceptedBelowReserve"])
    def test_accepted_labels(self, status):
        assert is_accepted(status) is True

    @pytest.mark.parametrize("status", ["Rejected", "TooLow", "", None])
    def test_not_accepted_labels(self, status):
        assert is_accepted(status) is False


class TestBidSupersedes:
    """Single-step rule"""

    def test_first_accepted_bid_applies(self):
        assert bid_supersedes(None, Decimal("500"), "Accepted") is True

    def test_first_rejected_bid_does_not_apply(self):
        assert bid_supersedes(None, Decimal("500"), "Rejected") is False

    def test_lower_accepted_bid_does_not_apply(self):
        assert bid_supersedes(Decimal("500"), Decimal("400"), "Accepted") is False

    def test_equal_accepted_bid_does_not_apply(self):
        assert bid_supersedes(Decimal("500"), Decimal("500"), "Accepted") is False

    def test_higher_rejected_bid_does_not_apply(self):
        assert bid_supersedes(Decimal("500"), Decimal("700"), "Rejected") is False

    def test_higher_accepted_bid_applies(self):
        assert bid_supersedes(Decimal("500"), Decimal("700"), "Accepted") is True


class TestFoldHighestBid:
    """Order independence and idempotence of the projection"""

    EVENTS = [
        (Decimal("500"), "Accepted"),
        (Decimal("400"), "Accepted"),
        (Decimal("700"), "Rejected"),
        (Decimal("700"), "Accepted"),
        (Decimal("650.50"), "AcceptedBelowReserve"),
    ]

    def test_worked_example(self):
        assert fold(self.EVENTS[:1]) == Decimal("500")
        assert fold(self.EVENTS[:2]) == Decimal("500")
        assert fold(self.EVENTS[:3]) == Decimal("500")
        assert fold(self.EVENTS[:4]) == Decimal("700")

    def test_any_order_gives_max_accepted(self):
        for permutation in itertools.permutations(self.EVENTS):
            assert fold(permutation) == Decimal("700")

    def test_duplicates_do_not_change_result(self):
        duplicated = self.EVENTS + self.EVENTS[::-1] + [self.EVENTS[3]] * 3
        for permutation in itertools.permutations(duplicated[:7]):
            assert fold(permutation) == max(a for a, s in duplicated[:7] if is_accepted(s))

    def test_reapplying_same_event_is_idempotent(self):
        once = fold([(Decimal("500"), "Accepted")])
        twice = fold([(Decimal("500"), "Accepted")] * 2)
        assert once == twice == Decimal("500")

    def test_no_accepted_bids_leaves_absent(self):
        events = [(Decimal("100"), "Rejected"), (Decimal("900"), "TooLow")]
        for permutation in itertools.permutations(events):
            assert fold(permutation) is None
