"""
API schemas for Auction endpoints
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.models.auction import Auction

MIN_YEAR = 1886
MAX_YEAR = 2100


class AuctionCreate(BaseModel):
    """Schema for creating a new auction"""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., min_length=1, max_length=50)
    mileage: int = Field(..., ge=0)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)


class AuctionUpdate(BaseModel):
    """
    Partial update of the item. Only fields present in the request are
    applied; absent or null fields keep their stored value.
    """
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    mileage: Optional[int] = Field(None, ge=0)
    year: Optional[int] = Field(None, ge=MIN_YEAR, le=MAX_YEAR)

    def changes(self) -> dict:
        """Fields explicitly provided with a value"""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class AuctionResponse(BaseModel):
    """Flattened auction snapshot returned by the API and carried in events"""
    id: str
    make: str
    model: str
    color: str
    mileage: int
    year: int
    seller: str
    current_highest_bid: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_auction(cls, auction: Auction) -> "AuctionResponse":
        return cls(
            id=auction.id,
            seller=auction.seller,
            current_highest_bid=auction.current_highest_bid,
            created_at=auction.created_at,
            updated_at=auction.updated_at,
            **auction.item.model_dump(),
        )
