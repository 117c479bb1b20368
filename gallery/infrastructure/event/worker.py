"""Worker and WorkerPool for pull-based queue consumption."""

import asyncio
import logging
from datetime import UTC, datetime

from dishka import AsyncContainer

from gallery.domain.shared.envelope import Envelope, QueueDelivery
from gallery.domain.shared.error import is_recoverable
from gallery.domain.shared.event import MessageHandler, WorkerState, WorkerStatus
from gallery.infrastructure.messaging.queue import MessageQueue
from gallery.util.di.scope import Scope

logger = logging.getLogger(__name__)


def to_envelope(message: QueueDelivery) -> Envelope:
    return Envelope(
        payload=message.body,
        attributes=message.message_attributes,
        message_id=message.message_id,
    )


class Worker:
    """Polls a queue and delegates messages to a MessageHandler.

    The worker is the delivery source's side of the contract: it acknowledges
    messages the handler finished, and leaves the others unacknowledged so the
    queue redelivers them (and dead-letters them once the receive budget is
    spent). It never retries by itself.

    Terminal errors (see ``is_recoverable``) are acknowledged and logged, since
    redelivery cannot make them succeed.

    Example:
        worker = Worker(ReapDeadLetters, dead_letter_queue)
        worker.set_container(container)
        worker.start()
    """

    def __init__(
        self,
        handler_type: type[MessageHandler],
        queue: MessageQueue,
        poll_interval: float = 0.5,
        batch_size: int | None = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if batch_size is not None and batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._handler_type = handler_type
        self._queue = queue
        self._batch_size = batch_size or handler_type.__batch_size__
        self._batched = handler_type.__batch_size__ > 1
        self._poll_interval = poll_interval
        self._state = WorkerState(name=self.name)
        self._shutdown = False
        self._task: asyncio.Task | None = None
        self._container: AsyncContainer | None = None

    @property
    def name(self) -> str:
        """Worker name (handler class name and queue)."""
        return f"{self._handler_type.__name__}@{self._queue.name}"

    @property
    def handler_type(self) -> type[MessageHandler]:
        return self._handler_type

    @property
    def queue(self) -> MessageQueue:
        return self._queue

    @property
    def batch_size(self) -> int:
        """Max messages received per poll."""
        return self._batch_size

    @property
    def state(self) -> WorkerState:
        """Current worker state."""
        return self._state

    def set_container(self, container: AsyncContainer) -> None:
        """Set the DI container for scoped handler resolution."""
        self._container = container

    def start(self) -> asyncio.Task:
        """Start the worker in a background task."""
        if self._container is None:
            raise RuntimeError("Container not set. Call set_container() first.")

        self._shutdown = False
        self._task = asyncio.create_task(self._run(), name=f"worker-{self.name}")
        logger.info(f"Worker '{self.name}' started")
        return self._task

    def stop(self) -> None:
        """Signal the worker to stop after the current batch."""
        self._shutdown = True
        self._state.status = WorkerStatus.STOPPING
        logger.info(f"Worker '{self.name}' stopping...")

    async def _run(self) -> None:
        """Main worker loop."""
        try:
            while not self._shutdown:
                had_messages = await self.poll_once()
                if not had_messages:
                    await asyncio.sleep(self._poll_interval)
        except asyncio.CancelledError:
            logger.info(f"Worker '{self.name}' cancelled")
            raise
        except Exception as e:
            logger.exception(f"Worker '{self.name}' crashed: {e}")
            self._state.error = e
            raise
        finally:
            logger.info(f"Worker '{self.name}' stopped")

    async def poll_once(self) -> bool:
        """Receive one batch and hand it to the handler.

        Returns:
            True if messages were received, False if idle.
        """
        if self._container is None:
            raise RuntimeError("Container not set")

        self._state.status = WorkerStatus.RECEIVING
        messages = await self._queue.receive(self._batch_size)
        if not messages:
            self._state.status = WorkerStatus.IDLE
            return False

        self._state.status = WorkerStatus.PROCESSING
        self._state.last_receive_at = datetime.now(UTC)
        try:
            await self._dispatch(self._container, messages)
        except asyncio.CancelledError:
            # Settled messages are already gone; nack only touches in-flight ones.
            for message in messages:
                await self._queue.nack(message.message_id)
            raise
        except Exception as e:
            logger.exception(f"Worker '{self.name}' could not dispatch batch: {e}")
            await self._settle_failure(messages, e)
        finally:
            self._state.status = WorkerStatus.IDLE
        return True

    async def _dispatch(self, container: AsyncContainer, messages: list[QueueDelivery]) -> None:
        async with container(scope=Scope.UOW) as scope:
            handler = await scope.get(self._handler_type)
            if self._batched:
                await self._process_batch(handler, messages)
            else:
                for message in messages:
                    await self._process_one(handler, message)

    async def _process_one(self, handler: MessageHandler, message: QueueDelivery) -> None:
        try:
            outcome = await handler.handle(to_envelope(message))
        except Exception as e:
            await self._settle_failure([message], e)
            return
        await self._queue.ack(message.message_id)
        self._state.processed_count += 1
        logger.debug(f"Worker '{self.name}' handled {message.message_id}: {outcome.status}")

    async def _process_batch(self, handler: MessageHandler, messages: list[QueueDelivery]) -> None:
        try:
            await handler.handle_batch([to_envelope(m) for m in messages])
        except Exception as e:
            await self._settle_failure(messages, e)
            return
        for message in messages:
            await self._queue.ack(message.message_id)
        self._state.processed_count += len(messages)

    async def _settle_failure(self, messages: list[QueueDelivery], error: Exception) -> None:
        self._state.error = error
        if not is_recoverable(error):
            logger.error(f"Worker '{self.name}' dropping {len(messages)} message(s): {error}")
            for message in messages:
                await self._queue.ack(message.message_id)
            self._state.processed_count += len(messages)
            return

        logger.warning(
            f"Worker '{self.name}' failed {len(messages)} message(s), leaving for redelivery: {error}"
        )
        for message in messages:
            await self._queue.nack(message.message_id)
        self._state.failed_count += len(messages)


class WorkerPool:
    """Manages the queue workers.

    Usage:
        pool = WorkerPool(container)
        pool.register(ValidateUpload, ingestion_queue)
        pool.register(ReapDeadLetters, dead_letter_queue)

        async with pool:
            # Workers are running
            await some_long_running_task()
        # Workers are stopped
    """

    def __init__(self, container: AsyncContainer | None = None, poll_interval: float = 0.5) -> None:
        self._container = container
        self._poll_interval = poll_interval
        self._workers: list[Worker] = []

    def set_container(self, container: AsyncContainer) -> None:
        """Set the DI container for all workers."""
        self._container = container
        for worker in self._workers:
            worker.set_container(container)

    @property
    def workers(self) -> list[Worker]:
        return self._workers

    def register(
        self,
        handler_type: type[MessageHandler],
        queue: MessageQueue,
        batch_size: int | None = None,
    ) -> Worker:
        """Create a worker consuming ``queue`` with ``handler_type``.

        ``batch_size`` overrides the handler's ``__batch_size__``.
        """
        worker = Worker(
            handler_type, queue, poll_interval=self._poll_interval, batch_size=batch_size
        )
        if self._container is not None:
            worker.set_container(self._container)
        self._workers.append(worker)
        logger.debug(f"Registered worker '{worker.name}'")
        return worker

    def get_worker(self, name: str) -> Worker | None:
        for worker in self._workers:
            if worker.name == name:
                return worker
        return None

    async def start(self) -> None:
        if self._container is None:
            raise RuntimeError("Container not set. Call set_container() first.")
        for worker in self._workers:
            worker.start()
        logger.info(f"WorkerPool started with {len(self._workers)} workers")

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop all workers gracefully.

        Args:
            timeout: Maximum time to wait for workers to stop.
        """
        for worker in self._workers:
            worker.stop()

        tasks = [w._task for w in self._workers if w._task and not w._task.done()]
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
            for task in pending:
                task.cancel()

        logger.info("WorkerPool stopped")

    async def drain(self, max_rounds: int = 100) -> int:
        """Poll every worker until all queues are idle; for tests and one-shot runs.

        Returns:
            Number of poll rounds that received messages.
        """
        busy_rounds = 0
        for _ in range(max_rounds):
            results = [await worker.poll_once() for worker in self._workers]
            if not any(results) and not any(len(w.queue) for w in self._workers):
                break
            busy_rounds += 1
        return busy_rounds

    async def __aenter__(self) -> "WorkerPool":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()
