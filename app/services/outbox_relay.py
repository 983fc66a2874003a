"""
Outbox relay: re-publishes lifecycle events that were parked after their
publication budget ran out.
"""

import asyncio
from typing import Optional

from app.core.logger import logger
from app.events.publishers.publisher import DaprEventPublisher, PublishError
from app.repositories.outbox import OutboxRepository


class OutboxRelay:
    """Drains the outbox oldest first"""

    def __init__(self, outbox: OutboxRepository, publisher: DaprEventPublisher, batch_size: int = 50):
        self.outbox = outbox
        self.publisher = publisher
        self.batch_size = batch_size

    async def relay_once(self) -> int:
        """
        Publish one batch of pending events.

        Stops at the first transport failure so later events for the same
        auction do not overtake an earlier one. An event the broker rejects
        outright is marked dead and skipped, since retrying cannot succeed.
        Returns the number published.
        """
        pending = await self.outbox.list_pending(limit=self.batch_size)
        published = 0

        for event in pending:
            try:
                await self.publisher.publish(event)
            except PublishError as e:
                if not e.retryable:
                    await self.outbox.mark_dead(event.id, str(e))
                    logger.error(
                        "Outbox event rejected by the broker, marked dead",
                        error=e,
                        metadata={
                            "event": "outbox_event_dead",
                            "eventId": event.id,
                            "eventType": event.type,
                            "auction_id": event.partition_key,
                        }
                    )
                    continue

                await self.outbox.record_failure(event.id, str(e))
                logger.warning(
                    "Outbox relay paused: transport still failing",
                    metadata={
                        "event": "outbox_relay_failed",
                        "eventId": event.id,
                        "eventType": event.type,
                        "published": published,
                    }
                )
                break

            await self.outbox.mark_published(event.id)
            published += 1

        if pending:
            logger.info(
                f"Outbox relay published {published} of {len(pending)} pending events",
                metadata={"event": "outbox_relay_pass", "published": published, "pending": len(pending)}
            )
        return published


async def run_outbox_relay(relay: OutboxRelay, interval_seconds: float, stop: Optional[asyncio.Event] = None):
    """Background loop calling relay_once until ``stop`` is set"""
    stop = stop or asyncio.Event()
    while not stop.is_set():
        try:
            await relay.relay_once()
        except Exception as e:
            # Keep the loop alive; the next pass retries
            logger.error("Outbox relay pass failed", error=e, metadata={"event": "outbox_relay_error"})
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
