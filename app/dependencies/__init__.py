"""
Dependencies module initialization
"""

from .auth import get_current_user, require_admin
from .auction import get_auction_service, get_bid_consumer, get_outbox_relay, get_outbox_repository

__all__ = [
    "get_current_user",
    "require_admin",
    "get_auction_service",
    "get_bid_consumer",
    "get_outbox_relay",
    "get_outbox_repository",
]
