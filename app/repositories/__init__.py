"""
Repositories module initialization
"""

from .auction import AuctionRepository
from .outbox import OutboxRepository

__all__ = [
    "AuctionRepository",
    "OutboxRepository",
]
