"""
Event publishers
"""

from .publisher import DaprEventPublisher, PublishError, RetryablePublishError, get_event_publisher

__all__ = [
    "DaprEventPublisher",
    "PublishError",
    "RetryablePublishError",
    "get_event_publisher",
]
