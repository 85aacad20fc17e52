"""FIFO operation queue drained by a single worker task.

Controllers push their read/write units here so that, per controller, every
unit starts only after the previous one has completely finished. Submitting
never blocks; ``join()`` is the way to wait for the settled state.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Optional

from loguru import logger

Operation = Callable[[], Awaitable[Any]]
ErrorHandler = Callable[[Exception], None]


@dataclass
class _QueuedOperation:
    operation: Operation
    future: asyncio.Future
    on_error: Optional[ErrorHandler] = None


async def _barrier() -> None:
    return None


class OperationQueue:
    """
    Sequential operation queue with one worker.

    - ``submit`` appends an operation and returns its future immediately.
    - The worker runs operations one at a time in submission order.
    - A failing operation is logged and handed to its ``on_error`` handler;
      without a handler the failure waits for the next ``join()``. Either
      way the worker moves on to the next operation.
    - There is no retry, no cancellation of single operations and no timeout.

    The worker is bound to the event loop that is running at the first
    ``submit`` call. Operations still queued when a later ``submit`` runs on a
    different loop are dropped with a warning.
    """

    def __init__(self, name: str = "operations") -> None:
        self.name = name
        self._queue: Optional[asyncio.Queue[_QueuedOperation]] = None
        self._worker: Optional[asyncio.Task] = None
        self._failures: Deque[Exception] = deque()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def submit(self, operation: Operation, *, on_error: Optional[ErrorHandler] = None) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        self._ensure_worker(loop)
        future = loop.create_future()
        self._queue.put_nowait(_QueuedOperation(operation, future, on_error))
        return future

    async def drain(self) -> None:
        """Wait for everything submitted so far without reporting failures."""
        await self.submit(_barrier)

    async def join(self) -> None:
        """Wait for everything submitted so far, then report the oldest unreported failure."""
        await self.drain()
        if self._failures:
            raise self._failures.popleft()

    async def close(self) -> None:
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._worker is not None and not self._worker.done() and self._worker.get_loop() is loop:
            return
        if self._queue is not None and not self._queue.empty():
            # their futures belong to the previous loop and never resolve
            logger.warning(
                "Dropping operations queued on a previous event loop",
                queue=self.name,
                dropped=self._queue.qsize(),
            )
        self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._process_queue(), name=f"{self.name}-worker")
        logger.debug("Operation queue worker started", queue=self.name)

    async def _process_queue(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                result = await item.operation()
            except Exception as exc:
                logger.opt(exception=exc).warning(
                    "Queued operation failed",
                    queue=self.name,
                    operation=getattr(item.operation, "__name__", repr(item.operation)),
                )
                self._report(item, exc)
            else:
                if not item.future.done():
                    item.future.set_result(result)
            finally:
                self._queue.task_done()

    def _report(self, item: _QueuedOperation, exc: Exception) -> None:
        if not item.future.done():
            item.future.set_exception(exc)
            # delivered via on_error or join(), the future is marked retrieved
            item.future.exception()
        if item.on_error is not None:
            try:
                item.on_error(exc)
            except Exception:
                logger.exception("Error handler raised", queue=self.name)
                self._failures.append(exc)
        else:
            self._failures.append(exc)
