"""
Auction domain models
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


class Item(BaseModel):
    """The car being auctioned; embedded in the auction document"""
    make: str
    model: str
    color: str
    mileage: int
    year: int


class Auction(BaseModel):
    """Auction as stored, including the optimistic-concurrency version"""
    id: str
    item: Item
    seller: str
    current_highest_bid: Optional[Decimal] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = 1
