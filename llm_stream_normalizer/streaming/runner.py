"""
Stream worker.

A ``StreamRunner`` owns everything that belongs to one streaming request:
its ``StreamState``, its accumulator and its usage tracker. It pulls native
chunks from the transport, pushes normalized events to a single consumer
through a bounded queue, and persists usage once the stream completes.
"""

from typing import Any, AsyncGenerator, AsyncIterable, List, Optional
import asyncio
import time
import uuid

from .usage_tracker import UsageTracker
from ..config.settings import StreamSettings
from ..models.events import ProviderEvent
from ..observability.logging import ProviderLogger
from ..providers.base import (
    ChunkNormalizer,
    StreamCancelledError,
    StreamTimeoutError,
    new_accumulator,
)
from ..providers.errors import ErrorMapper
from ..session.ledger import SessionLedger


class StreamRunner:
    """
    Drives one backend stream through its normalizer.

    The produced sequence always ends with exactly one ``finish`` or
    ``error`` event. Usage is written to the ledger only when the stream
    completes normally; cancelled or failed streams leave it untouched.
    """

    def __init__(
        self,
        normalizer: ChunkNormalizer,
        chunks: AsyncIterable[Any],
        *,
        ledger: Optional[SessionLedger] = None,
        session_id: Optional[str] = None,
        settings: Optional[StreamSettings] = None,
        cancel_event: Optional[asyncio.Event] = None,
        model: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        """
        Args:
            normalizer: Backend normalizer selected for this request
            chunks: Transport stream of native chunks
            ledger: Session ledger to persist usage into (optional)
            session_id: Session the usage belongs to; required with ``ledger``
            settings: Queue size, read timeout, usage policy and pricing
            cancel_event: Set to cancel the stream between chunk reads
            model: Model name, used for pricing lookup and logs
            request_id: Request ID for logs (generated if not provided)
        """
        if ledger is not None and not session_id:
            raise ValueError("session_id is required when a ledger is given")

        self.normalizer = normalizer
        self.provider = normalizer.provider
        self.chunks = chunks
        self.ledger = ledger
        self.session_id = session_id
        self.settings = settings or StreamSettings()
        self.cancel_event = cancel_event or asyncio.Event()
        self.model = model
        self.request_id = request_id or str(uuid.uuid4())[:8]

        self.accumulator = new_accumulator(normalizer)
        self.tracker = UsageTracker(
            self.settings.usage_policy_for(self.provider, normalizer.usage_policy),
            pricing=self.settings.pricing_for(model),
            provider=self.provider,
        )
        self.logger = ProviderLogger(self.provider)
        self._event_count = 0
        self._start_time: Optional[float] = None

    @property
    def state(self):
        return self.accumulator.state

    def cancel(self) -> None:
        """Request cancellation; honoured before the next chunk is processed."""
        self.cancel_event.set()

    async def _next_chunk(self, iterator) -> Any:
        timeout = self.settings.read_timeout
        if timeout is None:
            return await iterator.__anext__()
        try:
            return await asyncio.wait_for(iterator.__anext__(), timeout)
        except asyncio.TimeoutError as e:
            raise StreamTimeoutError(
                f"No chunk received within {timeout}s", self.provider, timeout
            ) from e

    def _stamp(self, event: ProviderEvent) -> ProviderEvent:
        self._event_count += 1
        event.metadata.setdefault("request_id", self.request_id)
        if self.model:
            event.metadata.setdefault("model", self.model)
        return event

    def _fail(self, error: Exception, message: str) -> ProviderEvent:
        self.logger.error(
            message,
            request_id=self.request_id,
            model=self.model,
            chunks=self.state.chunk_count,
            error=error
        )
        return self._stamp(ErrorMapper.to_event(error, self.provider))

    def _cancelled(self) -> ProviderEvent:
        self.logger.info("Stream cancelled", request_id=self.request_id, chunks=self.state.chunk_count)
        return self._stamp(ErrorMapper.to_event(
            StreamCancelledError("Stream cancelled by consumer", self.provider), self.provider
        ))

    async def _produce(self) -> AsyncGenerator[ProviderEvent, None]:
        self._start_time = time.time()
        self.logger.debug("Starting stream request", request_id=self.request_id, model=self.model)
        iterator = self.chunks.__aiter__()

        try:
            while True:
                if self.cancel_event.is_set():
                    yield self._cancelled()
                    return

                try:
                    native = await self._next_chunk(iterator)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    yield self._fail(e, "Transport failed during stream")
                    return

                if self.cancel_event.is_set():
                    yield self._cancelled()
                    return

                try:
                    events = self.normalizer.normalize_chunk(native, self.accumulator)
                except Exception as e:
                    yield self._fail(e, "Failed to normalize chunk")
                    return

                for event in events:
                    self.tracker.observe(event)
                    yield self._stamp(event)

            try:
                closing = self.normalizer.finish(self.accumulator)
            except Exception as e:
                yield self._fail(e, "Failed to finish stream")
                return
            finish_event = closing.pop()
            for event in closing:
                self.tracker.observe(event)
                yield self._stamp(event)
            self.tracker.observe(finish_event)

            if self.ledger is not None and self.tracker.has_usage:
                try:
                    await self.tracker.commit(self.ledger, self.session_id)
                except Exception as e:
                    yield self._fail(e, "Failed to persist session usage")
                    return

            if self.tracker.has_usage:
                self.logger.log_usage(self.tracker.snapshot(), self.request_id, self.session_id)
            self.logger.info(
                "Completed stream request",
                request_id=self.request_id,
                model=self.model,
                finish_reason=self.state.finish_reason,
                duration_ms=int((time.time() - self._start_time) * 1000)
            )
            yield self._stamp(finish_event)
        finally:
            self.logger.log_streaming_metrics(
                self.state.chunk_count,
                self._event_count,
                time.time() - self._start_time,
                request_id=self.request_id
            )
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    async def run(self, queue: "asyncio.Queue[ProviderEvent]") -> None:
        """
        Push every event into ``queue``.

        ``queue.put`` suspends when the queue is full, so a slow consumer
        slows the worker down instead of losing events.
        """
        producer = self._produce()
        try:
            async for event in producer:
                await queue.put(event)
        finally:
            await producer.aclose()

    async def events(self) -> AsyncGenerator[ProviderEvent, None]:
        """Run the worker as a task and yield its events in order."""
        queue: "asyncio.Queue[ProviderEvent]" = asyncio.Queue(maxsize=self.settings.queue_size)
        worker = asyncio.create_task(self.run(queue))
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, worker}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    event = getter.result()
                    yield event
                    if event.is_terminal:
                        break
                    continue
                getter.cancel()
                # The worker ended; drain anything it queued before surfacing its failure
                while not queue.empty():
                    event = queue.get_nowait()
                    yield event
                    if event.is_terminal:
                        return
                worker.result()
                return
        finally:
            if not worker.done():
                worker.cancel()
                try:
                    await worker
                except asyncio.CancelledError:
                    pass

    async def collect(self) -> List[ProviderEvent]:
        """Run the stream to completion and return all events."""
        return [event async for event in self.events()]
