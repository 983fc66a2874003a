"""
Admin endpoints for outbox reconciliation
"""

from fastapi import APIRouter, Depends

from app.core.logger import logger
from app.dependencies.auction import get_outbox_relay, get_outbox_repository
from app.dependencies.auth import require_admin
from app.models.user import User
from app.repositories.outbox import OutboxRepository
from app.services.outbox_relay import OutboxRelay

router = APIRouter()


@router.get("/outbox")
async def get_outbox_status(
    outbox: OutboxRepository = Depends(get_outbox_repository),
    _: User = Depends(require_admin),
):
    """Lifecycle events still waiting for publication, and those the broker rejected"""
    return {"pending": await outbox.count_pending(), "dead": await outbox.count_dead()}


@router.post("/outbox/relay")
async def relay_outbox(
    relay: OutboxRelay = Depends(get_outbox_relay),
    user: User = Depends(require_admin),
):
    """Run one relay pass now instead of waiting for the background loop"""
    published = await relay.relay_once()
    logger.info(
        "Manual outbox relay triggered",
        metadata={"event": "outbox_manual_relay", "published": published, "triggered_by": user.username}
    )
    return {"published": published, "pending": await relay.outbox.count_pending()}
