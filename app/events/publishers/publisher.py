"""
Dapr Event Publisher
Publishes auction lifecycle events via the Dapr sidecar using CloudEvents
"""

from typing import Optional

import httpx

from app.core.config import config
from app.core.logger import logger
from app.events.contracts import OutboundEvent
from app.utils.retry import retry_async

# Sidecar responses worth retrying; other 4xx mean the request itself is wrong
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class PublishError(Exception):
    """An event could not be handed to the Dapr sidecar"""

    def __init__(self, message: str, retryable: bool = True, status_code: Optional[int] = None):
        self.message = message
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message)


class RetryablePublishError(PublishError):
    pass


class DaprEventPublisher:
    """Publisher for sending events via Dapr Pub/Sub"""

    def __init__(
        self,
        pubsub_name: Optional[str] = None,
        max_attempts: Optional[int] = None,
        backoff_initial: Optional[float] = None,
        backoff_max: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.pubsub_name = pubsub_name or config.dapr_pubsub_name
        self.dapr_url = f"http://localhost:{config.dapr_http_port}"
        self.service_name = config.service_name
        self.max_attempts = max_attempts if max_attempts is not None else config.publish_max_attempts
        self.backoff_initial = (
            backoff_initial if backoff_initial is not None else config.publish_backoff_initial_seconds
        )
        self.backoff_max = backoff_max if backoff_max is not None else config.publish_backoff_max_seconds
        self.timeout = timeout if timeout is not None else config.publish_timeout_seconds

    def _cloud_event(self, event: OutboundEvent) -> dict:
        cloud_event = {
            "specversion": "1.0",
            "type": event.type,
            "source": self.service_name,
            "id": event.id,
            "time": event.created_at.isoformat(),
            "datacontenttype": "application/json",
            "partitionkey": event.partition_key,
            "data": event.data,
        }
        if event.correlation_id:
            cloud_event["correlationid"] = event.correlation_id
        return cloud_event

    async def publish(self, event: OutboundEvent) -> None:
        """
        Hand one event to the sidecar, single attempt.

        Raises:
            RetryablePublishError: timeout, connection failure or 5xx/429
            PublishError: the sidecar rejected the request
        """
        publish_url = f"{self.dapr_url}/v1.0/publish/{self.pubsub_name}/{event.topic}"
        headers = {"Content-Type": "application/cloudevents+json"}
        if event.correlation_id:
            headers["X-Correlation-ID"] = event.correlation_id

        metadata = {
            "correlationId": event.correlation_id,
            "eventId": event.id,
            "eventType": event.type,
            "topic": event.topic,
            "partitionKey": event.partition_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    publish_url,
                    json=self._cloud_event(event),
                    headers=headers,
                    # Kafka-backed components key partitions by this
                    params={"metadata.partitionKey": event.partition_key},
                )
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout publishing event to Dapr: {event.type}", metadata=metadata)
            raise RetryablePublishError(f"Timeout publishing {event.type}") from e
        except httpx.TransportError as e:
            logger.warning(
                f"Cannot reach Dapr sidecar: {e}",
                metadata={**metadata, "daprUrl": self.dapr_url}
            )
            raise RetryablePublishError(f"Dapr sidecar unreachable: {e}") from e

        if response.status_code in (200, 204):
            logger.info(f"Published event to Dapr: {event.type}", metadata=metadata)
            return

        logger.error(
            f"Failed to publish event to Dapr: {event.type}",
            metadata={**metadata, "statusCode": response.status_code, "response": response.text}
        )
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RetryablePublishError(
                f"Dapr returned {response.status_code} for {event.type}",
                status_code=response.status_code,
            )
        raise PublishError(
            f"Dapr rejected {event.type} with {response.status_code}",
            retryable=False,
            status_code=response.status_code,
        )

    async def publish_with_retry(self, event: OutboundEvent) -> None:
        """Publish, retrying transient failures with exponential backoff"""
        await retry_async(
            lambda: self.publish(event),
            operation_name=f"publish {event.type}",
            retry_on=RetryablePublishError,
            max_attempts=self.max_attempts,
            backoff_initial=self.backoff_initial,
            backoff_max=self.backoff_max,
        )


# Singleton instance
_publisher: Optional[DaprEventPublisher] = None


def get_event_publisher() -> DaprEventPublisher:
    """Get singleton Dapr publisher instance"""
    global _publisher
    if _publisher is None:
        _publisher = DaprEventPublisher()
    return _publisher
