"""
Event consumers
"""

from .bid_consumer import BidOutcome, BidPlacedConsumer, parse_bid_placed

__all__ = [
    "BidOutcome",
    "BidPlacedConsumer",
    "parse_bid_placed",
]
