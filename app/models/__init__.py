"""
Models module initialization
"""

from .auction import Auction, Item, utc_now
from .user import User

__all__ = [
    "Auction",
    "Item",
    "User",
    "utc_now",
]
