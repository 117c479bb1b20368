"""Unit tests for ReapDeadLetters handler."""

from unittest.mock import AsyncMock, call

import pytest

from gallery.domain.ingestion.model.notification import CreationNotification
from gallery.domain.reaper.handler import ReapDeadLetters
from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.event import OutcomeStatus
from gallery.domain.shared.port.object_store import ObjectStore

REJECTION = "Invalid file type detected: {key} - This file will be removed from bucket {container}"


def error_entry(key: str, container: str = "uploads") -> Envelope:
    message = REJECTION.format(key=key, container=container)
    return Envelope.of({"errorMessage": message, "errorType": "ValidationError"})


@pytest.fixture
def object_store() -> AsyncMock:
    return AsyncMock(spec=ObjectStore)


class TestReapDeadLetters:
    def test_batch_size(self):
        assert ReapDeadLetters.__batch_size__ == 10

    @pytest.mark.asyncio
    async def test_error_message_entry_deletes_once(self, object_store):
        reaper = ReapDeadLetters(object_store=object_store)

        outcome = await reaper.handle(error_entry("x.gif"))

        assert outcome.ok
        object_store.delete.assert_awaited_once_with("uploads", "x.gif")

    @pytest.mark.asyncio
    async def test_origin_event_entry(self, object_store):
        reaper = ReapDeadLetters(object_store=object_store)
        body = CreationNotification.for_object("photos", "clip.mov").dump()

        await reaper.handle(Envelope(payload=body))

        object_store.delete.assert_awaited_once_with("photos", "clip.mov")

    @pytest.mark.asyncio
    async def test_default_container_fallback(self, object_store):
        reaper = ReapDeadLetters(object_store=object_store, default_container="fallback")

        await reaper.handle(Envelope.of({"errorMessage": "Invalid file type detected: x.gif"}))

        object_store.delete.assert_awaited_once_with("fallback", "x.gif")

    @pytest.mark.asyncio
    async def test_unrecoverable_entry_is_rejected(self, object_store):
        reaper = ReapDeadLetters(object_store=object_store)

        outcome = await reaper.handle(Envelope(payload="garbage"))

        assert outcome.status is OutcomeStatus.REJECTED
        assert outcome.code == "RecoveryFailure"
        object_store.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_failure_is_isolated(self, object_store):
        object_store.delete.side_effect = OSError("permission denied")
        reaper = ReapDeadLetters(object_store=object_store)

        outcome = await reaper.handle(error_entry("x.gif"))

        assert outcome.status is OutcomeStatus.REJECTED
        assert outcome.code == "DownstreamDispatchFailure"

    @pytest.mark.asyncio
    async def test_batch_continues_past_bad_entries(self, object_store):
        reaper = ReapDeadLetters(object_store=object_store)
        batch = [
            Envelope(payload="garbage"),
            error_entry("a.gif"),
            Envelope.of({"unexpected": True}),
            error_entry("b.exe", container="photos"),
        ]

        outcomes = await reaper.handle_batch(batch)

        assert [o.status for o in outcomes] == [
            OutcomeStatus.REJECTED,
            OutcomeStatus.OK,
            OutcomeStatus.REJECTED,
            OutcomeStatus.OK,
        ]
        assert object_store.delete.await_args_list == [
            call("uploads", "a.gif"),
            call("photos", "b.exe"),
        ]

    @pytest.mark.asyncio
    async def test_batch_survives_delete_failures(self, object_store):
        object_store.delete.side_effect = [OSError("boom"), None]
        reaper = ReapDeadLetters(object_store=object_store)

        outcomes = await reaper.handle_batch([error_entry("a.gif"), error_entry("b.gif")])

        assert [o.ok for o in outcomes] == [False, True]
        assert object_store.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_batch_never_raises(self, object_store, monkeypatch):
        reaper = ReapDeadLetters(object_store=object_store)

        async def explode(envelope):
            raise RuntimeError("unexpected")

        monkeypatch.setattr(reaper, "handle", explode)

        outcomes = await reaper.handle_batch([error_entry("a.gif")])

        assert outcomes[0].status is OutcomeStatus.REJECTED
        assert outcomes[0].code == "RuntimeError"
