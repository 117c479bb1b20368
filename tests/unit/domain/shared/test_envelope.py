"""Unit tests for Envelope and the wire encodings it is unwrapped from."""

import json

from gallery.domain.shared.envelope import (
    BusDelivery,
    Envelope,
    QueueDelivery,
    open_envelope,
)

ORIGIN = {"id": "cat.jpg", "value": "A cat"}


class TestEnvelope:
    def test_of_serialises_body(self):
        envelope = Envelope.of(ORIGIN, metadata_type="Caption")

        assert json.loads(envelope.payload) == ORIGIN
        assert envelope.attribute("metadata_type") == "Caption"
        assert envelope.attribute("missing") is None

    def test_of_keeps_string_payload(self):
        envelope = Envelope.of("plain text")
        assert envelope.payload == "plain text"

    def test_message_ids_are_unique(self):
        assert Envelope.of(ORIGIN).message_id != Envelope.of(ORIGIN).message_id


class TestWireEncodings:
    def test_bus_delivery_uses_wire_field_names(self):
        envelope = Envelope.of(ORIGIN, metadata_type="Caption")

        data = json.loads(BusDelivery.wrap(envelope, "image-topic").dump())

        assert data["Type"] == "Notification"
        assert data["TopicArn"] == "image-topic"
        assert data["MessageId"] == envelope.message_id
        assert json.loads(data["Message"]) == ORIGIN
        assert data["MessageAttributes"] == {
            "metadata_type": {"Type": "String", "Value": "Caption"}
        }

    def test_queue_delivery_receive_count(self):
        delivery = QueueDelivery(body="{}", attributes={"ApproximateReceiveCount": "3"})
        assert delivery.receive_count == 3

    def test_queue_delivery_receive_count_defaults_to_zero(self):
        assert QueueDelivery(body="{}").receive_count == 0


class TestOpenEnvelope:
    def test_origin_payload_is_returned_unchanged(self):
        envelope = Envelope.of(ORIGIN, metadata_type="Caption")

        assert open_envelope(envelope) is envelope

    def test_bus_delivery_is_unwrapped(self):
        inner = Envelope.of(ORIGIN, metadata_type="Caption")
        wrapped = Envelope(payload=BusDelivery.wrap(inner, "image-topic").dump())

        opened = open_envelope(wrapped)

        assert json.loads(opened.payload) == ORIGIN
        assert opened.attribute("metadata_type") == "Caption"
        assert opened.message_id == wrapped.message_id

    def test_queued_bus_delivery_is_unwrapped(self):
        inner = Envelope.of(ORIGIN, metadata_type="Caption")
        queued = QueueDelivery(body=BusDelivery.wrap(inner).dump())
        wrapped = Envelope(payload=queued.dump())

        opened = open_envelope(wrapped)

        assert json.loads(opened.payload) == ORIGIN
        assert opened.attribute("metadata_type") == "Caption"

    def test_inner_attributes_win_over_outer(self):
        inner = Envelope.of(ORIGIN, metadata_type="Caption")
        wrapped = Envelope(
            payload=BusDelivery.wrap(inner).dump(),
            attributes={"metadata_type": "Date", "source": "queue"},
        )

        opened = open_envelope(wrapped)

        assert opened.attribute("metadata_type") == "Caption"
        assert opened.attribute("source") == "queue"

    def test_non_json_payload_is_untouched(self):
        envelope = Envelope(payload="not json")
        assert open_envelope(envelope) is envelope

    def test_malformed_bus_delivery_is_left_alone(self):
        envelope = Envelope.of({"Message": 42})
        assert open_envelope(envelope) is envelope
