"""Unit tests for MessageBus fan-out."""

import json
from unittest.mock import AsyncMock

import pytest

from gallery.domain.shared.envelope import BusDelivery, Envelope
from gallery.domain.shared.error import ExternalServiceError, InvalidMessage, ValidationError
from gallery.infrastructure.messaging import FilterPolicy, MessageBus, MessageQueue, Subscription

TOPIC = "image-topic"


@pytest.fixture
def bus() -> MessageBus:
    bus = MessageBus()
    bus.create_topic(TOPIC)
    return bus


class TestMessageBus:
    @pytest.mark.asyncio
    async def test_publishes_to_every_matching_subscriber(self, bus):
        first, second = AsyncMock(), AsyncMock()
        bus.subscribe(TOPIC, Subscription(name="first", endpoint=first))
        bus.subscribe(TOPIC, Subscription(name="second", endpoint=second))
        envelope = Envelope.of({"id": "cat.jpg"})

        await bus.publish(TOPIC, envelope)

        first.assert_awaited_once_with(envelope)
        second.assert_awaited_once_with(envelope)

    @pytest.mark.asyncio
    async def test_filter_policy_selects_subscribers(self, bus):
        metadata, status = AsyncMock(), AsyncMock()
        bus.subscribe(
            TOPIC,
            Subscription(
                name="metadata",
                endpoint=metadata,
                filter_policy=FilterPolicy.allow("metadata_type", "Caption", "Date", "name"),
            ),
        )
        bus.subscribe(TOPIC, Subscription(name="status", endpoint=status))

        await bus.publish(TOPIC, Envelope.of({"id": "cat.jpg"}, metadata_type="status"))

        metadata.assert_not_awaited()
        status.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_topic(self, bus):
        with pytest.raises(ExternalServiceError):
            await bus.publish("missing-topic", Envelope.of({}))

    @pytest.mark.asyncio
    async def test_no_subscribers_is_fine(self, bus):
        await bus.publish(TOPIC, Envelope.of({}))

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_affect_others(self, bus):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(TOPIC, Subscription(name="failing", endpoint=failing))
        bus.subscribe(TOPIC, Subscription(name="healthy", endpoint=healthy))

        await bus.publish(TOPIC, Envelope.of({}))

        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_then_reports_to_failure_destination(self, bus):
        dead_letter = MessageQueue("dlq")
        endpoint = AsyncMock(side_effect=ValidationError("Invalid file type detected: x.gif"))
        bus.subscribe(
            TOPIC,
            Subscription(
                name="validator",
                endpoint=endpoint,
                max_attempts=3,
                failure_destination=dead_letter,
            ),
        )

        await bus.publish(TOPIC, Envelope.of({}))

        assert endpoint.await_count == 3
        [entry] = await dead_letter.receive()
        assert json.loads(entry.body) == {
            "errorMessage": "Invalid file type detected: x.gif",
            "errorType": "ValidationError",
        }

    @pytest.mark.asyncio
    async def test_recovers_on_retry(self, bus):
        dead_letter = MessageQueue("dlq")
        endpoint = AsyncMock(side_effect=[RuntimeError("flaky"), None])
        bus.subscribe(
            TOPIC,
            Subscription(name="flaky", endpoint=endpoint, max_attempts=3, failure_destination=dead_letter),
        )

        await bus.publish(TOPIC, Envelope.of({}))

        assert endpoint.await_count == 2
        assert len(dead_letter) == 0

    @pytest.mark.asyncio
    async def test_terminal_errors_are_not_retried(self, bus):
        endpoint = AsyncMock(side_effect=InvalidMessage("garbage"))
        bus.subscribe(TOPIC, Subscription(name="strict", endpoint=endpoint, max_attempts=3))

        await bus.publish(TOPIC, Envelope.of({}))

        assert endpoint.await_count == 1

    @pytest.mark.asyncio
    async def test_subscribe_queue_enqueues_bus_delivery(self, bus):
        queue = MessageQueue("ingestion-queue")
        bus.subscribe_queue(TOPIC, queue, FilterPolicy.allow("eventName", "ObjectCreated:*"))

        await bus.publish(TOPIC, Envelope.of({"a": 1}, eventName="ObjectCreated:Put"))
        await bus.publish(TOPIC, Envelope.of({"a": 2}, eventName="ObjectRemoved:Delete"))

        [message] = await queue.receive(10)
        delivery = BusDelivery.model_validate_json(message.body)
        assert json.loads(delivery.message) == {"a": 1}
        assert delivery.topic == TOPIC

    def test_topics_and_subscriptions(self, bus):
        subscription = bus.subscribe(TOPIC, Subscription(name="s", endpoint=AsyncMock()))

        assert bus.topics == [TOPIC]
        assert bus.subscriptions(TOPIC) == [subscription]
        assert bus.subscriptions("missing") == []

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            Subscription(name="s", endpoint=AsyncMock(), max_attempts=0)
