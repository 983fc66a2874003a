"""
Services module initialization
"""

from .auction import AuctionService
from .outbox_relay import OutboxRelay, run_outbox_relay

__all__ = [
    "AuctionService",
    "OutboxRelay",
    "run_outbox_relay",
]
