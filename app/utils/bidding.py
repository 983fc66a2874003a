"""
Highest-bid projection rule.

The rule is a max over accepted amounts, so folding the same events in any
order, with any duplication, ends in the same value.
"""

from decimal import Decimal
from typing import Optional

ACCEPTED_MARKER = "accepted"


def is_accepted(bid_status: Optional[str]) -> bool:
    """True for status labels that denote an accepted bid (e.g. Accepted, AcceptedBelowReserve)"""
    return bool(bid_status) and ACCEPTED_MARKER in bid_status.lower()


def bid_supersedes(current: Optional[Decimal], amount: Decimal, bid_status: Optional[str]) -> bool:
    """
    Whether a bid replaces the stored highest bid.

    Acceptance is required for every bid, including the first one on an
    auction, so the stored value is always an accepted amount.
    """
    if not is_accepted(bid_status):
        return False
    return current is None or amount > current


def fold_highest_bid(current: Optional[Decimal], amount: Decimal, bid_status: Optional[str]) -> Optional[Decimal]:
    """Projection after one bid event"""
    return amount if bid_supersedes(current, amount, bid_status) else current
