"""
Tests for the QStash event publisher
"""

import time
import pytest
from unittest.mock import Mock

from shopping.events import Channels, EventType, order_created_event, stock_change_event
from shopping.queue import EventPublisher

URLS = {
    Channels.PRODUCT_SERVICE: "https://catalog.test/events",
    Channels.NOTIFICATION_SERVICE: "https://notify.test/events",
}


@pytest.fixture
def mock_qstash():
    """Mock QStash client"""
    qstash = Mock()
    qstash.message.publish_json.return_value = Mock(message_id="msg_1")
    return qstash


class TestDomainEvents:
    """Tests for event payloads."""

    def test_stock_change_message(self):
        event = stock_change_event("p1", -2)

        assert event.to_message() == {
            "event": "UPDATE_PRODUCT_STOCK",
            "data": {"productId": "p1", "quantityChange": -2},
        }

    def test_order_created_message(self):
        event = order_created_event("c1", "o1", [{"productId": "p1"}], 25.0)

        assert event.event_type == EventType.ORDER_CREATED
        assert event.to_message()["data"] == {
            "userId": "c1",
            "order": {"orderId": "o1", "items": [{"productId": "p1"}], "total": 25.0},
        }

    def test_event_ids_are_unique(self):
        assert stock_change_event("p1", -1).event_id != stock_change_event("p1", -1).event_id


class TestEventPublisher:
    """Tests for EventPublisher.publish."""

    @pytest.mark.asyncio
    async def test_publish_success(self, mock_qstash):
        publisher = EventPublisher(mock_qstash, channel_urls=URLS)
        event = stock_change_event("p1", -2)

        assert await publisher.publish(Channels.PRODUCT_SERVICE, event) is True

        mock_qstash.message.publish_json.assert_called_once_with(
            url="https://catalog.test/events",
            body=event.to_message(),
            retries=0,
            deduplication_id=event.event_id,
        )

    @pytest.mark.asyncio
    async def test_unconfigured_channel(self, mock_qstash):
        publisher = EventPublisher(mock_qstash, channel_urls={})

        assert await publisher.publish(Channels.PRODUCT_SERVICE, stock_change_event("p1", -1)) is False
        mock_qstash.message.publish_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_transport(self):
        publisher = EventPublisher(None, channel_urls=URLS)

        assert await publisher.publish(Channels.PRODUCT_SERVICE, stock_change_event("p1", -1)) is False

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self, mock_qstash):
        mock_qstash.message.publish_json.side_effect = RuntimeError("401 Unauthorized")
        publisher = EventPublisher(mock_qstash, channel_urls=URLS)

        assert await publisher.publish(Channels.NOTIFICATION_SERVICE, stock_change_event("p1", -1)) is False

    @pytest.mark.asyncio
    async def test_slow_transport_times_out(self, mock_qstash):
        mock_qstash.message.publish_json.side_effect = lambda **kwargs: time.sleep(0.5)
        publisher = EventPublisher(mock_qstash, channel_urls=URLS, timeout=0.05)

        assert await publisher.publish(Channels.PRODUCT_SERVICE, stock_change_event("p1", -1)) is False
