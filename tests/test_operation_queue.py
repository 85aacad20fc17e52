# tests/test_operation_queue.py

from __future__ import annotations

import asyncio

import pytest
from loguru import logger

from project_tracker.operation_queue import OperationQueue


@pytest.mark.asyncio
async def test_operations_run_in_submission_order() -> None:
    queue = OperationQueue("order")
    events: list[str] = []

    async def slow() -> None:
        events.append("slow:start")
        await asyncio.sleep(0.05)
        events.append("slow:end")

    async def fast() -> None:
        events.append("fast")

    queue.submit(slow)
    queue.submit(fast)
    await queue.join()

    assert events == ["slow:start", "slow:end", "fast"]
    await queue.close()


@pytest.mark.asyncio
async def test_submit_does_not_wait() -> None:
    queue = OperationQueue("nowait")
    ran: list[int] = []

    async def op() -> None:
        ran.append(1)

    future = queue.submit(op)

    assert ran == []
    assert not future.done()
    await queue.join()
    assert ran == [1]
    assert future.done()
    await queue.close()


@pytest.mark.asyncio
async def test_future_carries_result() -> None:
    queue = OperationQueue("result")

    async def answer() -> int:
        return 42

    assert await queue.submit(answer) == 42
    await queue.close()


@pytest.mark.asyncio
async def test_failure_surfaces_at_join_and_chain_continues() -> None:
    queue = OperationQueue("failing")
    ran: list[str] = []

    async def boom() -> None:
        raise RuntimeError("boom")

    async def after() -> None:
        ran.append("after")

    queue.submit(boom)
    queue.submit(after)

    with pytest.raises(RuntimeError, match="boom"):
        await queue.join()
    assert ran == ["after"]

    # reported once, the next join is clean
    await queue.join()
    await queue.close()


@pytest.mark.asyncio
async def test_error_handler_receives_failure() -> None:
    queue = OperationQueue("handled")
    seen: list[Exception] = []

    async def boom() -> None:
        raise ValueError("bad input")

    queue.submit(boom, on_error=seen.append)
    await queue.join()

    assert len(seen) == 1
    assert str(seen[0]) == "bad input"
    await queue.close()


@pytest.mark.asyncio
async def test_raising_handler_falls_back_to_join() -> None:
    queue = OperationQueue("bad-handler")

    async def boom() -> None:
        raise ValueError("original")

    def handler(exc: Exception) -> None:
        raise RuntimeError("handler broke")

    queue.submit(boom, on_error=handler)

    with pytest.raises(ValueError, match="original"):
        await queue.join()
    await queue.close()


@pytest.mark.asyncio
async def test_failures_reported_oldest_first() -> None:
    queue = OperationQueue("many")

    def failing(message: str):
        async def op() -> None:
            raise RuntimeError(message)

        return op

    queue.submit(failing("first"))
    queue.submit(failing("second"))

    with pytest.raises(RuntimeError, match="first"):
        await queue.join()
    with pytest.raises(RuntimeError, match="second"):
        await queue.join()
    await queue.close()


@pytest.mark.asyncio
async def test_drain_waits_without_raising() -> None:
    queue = OperationQueue("drain")

    async def boom() -> None:
        raise RuntimeError("later")

    queue.submit(boom)
    await queue.drain()

    assert queue.pending == 0
    with pytest.raises(RuntimeError):
        await queue.join()
    await queue.close()


def test_operations_left_on_a_finished_loop_are_reported() -> None:
    queue = OperationQueue("rebind")
    records: list[dict] = []
    sink = logger.add(lambda message: records.append(message.record), level="WARNING")

    async def noop() -> None:
        return None

    async def first_loop() -> None:
        # the worker blocks on the first operation until the loop shuts down
        queue.submit(asyncio.Event().wait)
        queue.submit(noop)
        await asyncio.sleep(0)

    async def second_loop() -> None:
        queue.submit(noop)
        await queue.join()
        await queue.close()

    try:
        asyncio.run(first_loop())
        asyncio.run(second_loop())
    finally:
        logger.remove(sink)

    dropped = [r for r in records if r["message"].startswith("Dropping operations")]
    assert len(dropped) == 1
    assert dropped[0]["extra"]["queue"] == "rebind"
    assert dropped[0]["extra"]["dropped"] == 1
