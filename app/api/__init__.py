"""
API module initialization
"""

from . import admin, auctions, events, health

__all__ = ["admin", "auctions", "events", "health"]
