"""
Auction API endpoints
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.errors import ErrorResponseModel
from app.dependencies.auction import get_auction_service
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.auction import AuctionCreate, AuctionResponse, AuctionUpdate
from app.services.auction import AuctionService

router = APIRouter()

_COMMAND_ERRORS = {
    401: {"model": ErrorResponseModel},
    502: {"model": ErrorResponseModel, "description": "Saved, but the event is awaiting publication"},
    503: {"model": ErrorResponseModel},
}


@router.get("", response_model=List[AuctionResponse])
async def list_auctions(
    date: Optional[datetime] = Query(None, description="Only auctions updated after this instant"),
    service: AuctionService = Depends(get_auction_service),
):
    """List auctions ordered by make."""
    return await service.list_auctions(updated_after=date)


@router.get(
    "/{auction_id}",
    response_model=AuctionResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_auction(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service),
):
    return await service.get_auction(str(auction_id))


@router.post(
    "",
    response_model=AuctionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponseModel}, **_COMMAND_ERRORS},
)
async def create_auction(
    auction: AuctionCreate,
    service: AuctionService = Depends(get_auction_service),
    user: User = Depends(get_current_user),
):
    """
    Create an auction with the caller as seller.
    Publishes auction.created once saved.
    """
    return await service.create_auction(auction, seller=user.username)


@router.put(
    "/{auction_id}",
    response_model=AuctionResponse,
    responses={
        400: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
        **_COMMAND_ERRORS,
    },
)
async def update_auction(
    auction_id: UUID,
    auction: AuctionUpdate,
    service: AuctionService = Depends(get_auction_service),
    user: User = Depends(get_current_user),
):
    """
    Update the item details. Only the seller can update; omitted fields
    keep their value. Publishes auction.updated once saved.
    """
    return await service.update_auction(str(auction_id), auction, caller=user.username)


@router.delete(
    "/{auction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
        **_COMMAND_ERRORS,
    },
)
async def delete_auction(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service),
    user: User = Depends(get_current_user),
):
    """Delete the auction. Only the seller can delete. Publishes auction.deleted once removed."""
    await service.delete_auction(str(auction_id), caller=user.username)
