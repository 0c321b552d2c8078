"""Fixed-size batch execution with a pause between batches."""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

from newsingest.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split items into consecutive chunks of at most `size`."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int = 3,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> List[R]:
    """Run `worker` over items, `batch_size` at a time.

    Each batch is awaited in full before the next starts. The pause is
    applied between batches only, never after the last one. Results keep
    the input order. Worker exceptions propagate, so workers that must not
    stop their siblings should catch their own errors.

    Args:
        items: Items to process.
        worker: Coroutine function applied to each item.
        batch_size: Number of items run concurrently.
        delay_seconds: Pause between consecutive batches.
        sleep: Async sleep, injectable for tests.

    Returns:
        Worker results in input order.
    """
    batches = chunked(items, batch_size)
    results: List[R] = []

    for index, batch in enumerate(batches):
        logger.debug(
            "batch_starting",
            batch=index + 1,
            total_batches=len(batches),
            size=len(batch),
        )
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))

        if index < len(batches) - 1 and delay_seconds > 0:
            await sleep(delay_seconds)

    return results
