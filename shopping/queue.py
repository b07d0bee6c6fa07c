"""
Event Publisher - QStash delivery of domain events

Fire-and-forget: one send attempt per event, bounded by a timeout, no
retries. A failed or slow send is logged and reported as False; it never
raises into the business operation that triggered it.
"""

import asyncio
import os
from typing import Dict, Optional

from qstash import QStash

from shopping.events import Channels, DomainEvent
from shopping.logging import get_logger

logger = get_logger(__name__)


QSTASH_TOKEN = os.environ.get("QSTASH_TOKEN", "")
EVENT_PUBLISH_TIMEOUT = float(os.environ.get("EVENT_PUBLISH_TIMEOUT", "3.0"))

# Destination URL per logical channel
CHANNEL_URLS: Dict[str, str] = {
    Channels.PRODUCT_SERVICE: os.environ.get("PRODUCT_SERVICE_EVENTS_URL", ""),
    Channels.NOTIFICATION_SERVICE: os.environ.get("NOTIFICATION_SERVICE_EVENTS_URL", ""),
}


def create_qstash() -> Optional[QStash]:
    """Create the QStash client, or None when no token is configured."""
    if not QSTASH_TOKEN:
        logger.warning("QSTASH_TOKEN not set - domain events will not be delivered")
        return None
    return QStash(token=QSTASH_TOKEN)


class EventPublisher:
    """Publishes DomainEvents to named channels."""

    def __init__(
        self,
        qstash: Optional[QStash],
        channel_urls: Optional[Dict[str, str]] = None,
        timeout: float = EVENT_PUBLISH_TIMEOUT,
    ):
        self.qstash = qstash
        self.channel_urls = dict(CHANNEL_URLS if channel_urls is None else channel_urls)
        self.timeout = timeout

    async def publish(self, channel: str, event: DomainEvent) -> bool:
        """
        Send one event to a channel.

        Returns True when the transport accepted the message, False on any
        failure (unconfigured channel, transport error, timeout).
        """
        url = self.channel_urls.get(channel)
        if self.qstash is None or not url:
            logger.warning(f"Dropping {event.event_type.value}: channel {channel} not configured")
            return False

        try:
            message_id = await asyncio.wait_for(
                asyncio.to_thread(self._send, url, event),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Publishing {event.event_type.value} to {channel} timed out after {self.timeout}s"
            )
            return False
        except Exception as e:
            logger.warning(f"Publishing {event.event_type.value} to {channel} failed: {e}")
            return False

        logger.info(f"Published {event.event_type.value} to {channel} (message {message_id})")
        return True

    def _send(self, url: str, event: DomainEvent) -> str:
        result = self.qstash.message.publish_json(
            url=url,
            body=event.to_message(),
            retries=0,
            deduplication_id=event.event_id,
        )
        return result.message_id
