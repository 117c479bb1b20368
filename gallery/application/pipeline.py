"""Pipeline runtime: container, wired topics, and the queue workers."""

import asyncio
import logging

from dishka import AsyncContainer

from gallery.application.di import create_container
from gallery.application.topology import wire_subscriptions
from gallery.config import Config, configure_logging
from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.port.object_store import ObjectStore
from gallery.infrastructure.event.worker import WorkerPool
from gallery.infrastructure.messaging import MessageBus, Queues

logger = logging.getLogger(__name__)


class Pipeline:
    """Owns the DI container for the lifetime of the pipeline.

    Usage:
        async with Pipeline(config) as pipeline:
            await pipeline.upload("uploads", "cat.jpg", data)
            await pipeline.drain()

    ``drain`` polls the queues in the caller's task, which is what tests and
    one-shot runs want; ``serve`` starts the workers in the background and
    blocks until cancelled.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config if config is not None else Config()  # type: ignore[call-arg]
        self._container: AsyncContainer | None = None
        self.bus: MessageBus | None = None
        self.queues: Queues | None = None
        self.object_store: ObjectStore | None = None
        self.pool: WorkerPool | None = None

    @property
    def container(self) -> AsyncContainer:
        if self._container is None:
            raise RuntimeError("Pipeline not opened")
        return self._container

    async def open(self) -> None:
        self._container = create_container(self.config)
        self.bus = await self._container.get(MessageBus)
        self.queues = await self._container.get(Queues)
        wire_subscriptions(self.bus, self.queues, self._container, self.config)
        self.object_store = await self._container.get(ObjectStore)
        self.pool = await self._container.get(WorkerPool)
        logger.info("Pipeline opened")

    async def close(self) -> None:
        if self._container is None:
            return
        if self.pool is not None:
            await self.pool.stop()
        await self._container.close()
        self._container = None
        logger.info("Pipeline closed")

    async def upload(self, container: str, key: str, data: bytes) -> None:
        """Store an object; its creation notification enters the ingestion path."""
        if self.object_store is None:
            raise RuntimeError("Pipeline not opened")
        await self.object_store.put(container, key, data)

    async def publish(self, topic: str, envelope: Envelope) -> None:
        if self.bus is None:
            raise RuntimeError("Pipeline not opened")
        await self.bus.publish(topic, envelope)

    async def drain(self, max_rounds: int = 100) -> int:
        """Run the queue workers until every queue is empty."""
        if self.pool is None:
            raise RuntimeError("Pipeline not opened")
        return await self.pool.drain(max_rounds)

    async def serve(self) -> None:
        """Run the workers in the background until cancelled."""
        if self.pool is None:
            raise RuntimeError("Pipeline not opened")
        await self.pool.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.pool.stop()

    async def __aenter__(self) -> "Pipeline":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()


async def serve(config: Config | None = None) -> None:
    config = config if config is not None else Config()  # type: ignore[call-arg]
    configure_logging(config.logging)
    async with Pipeline(config) as pipeline:
        await pipeline.serve()


def main() -> None:
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")
