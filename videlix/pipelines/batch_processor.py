"""
Videlix Batch Processor

Runs large generation jobs in fixed-size chunks, one chunk at a time, with
a pause between chunks so the provider's rate limit is never hit in a burst.
Progress is reported at every chunk boundary.
"""

import asyncio
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from videlix.core.constants import RATE_LIMITS
from videlix.core.logging_config import get_logger

logger = get_logger("pipelines.batch")

SleepFn = Callable[[float], Awaitable[Any]]
ProgressCallback = Callable[['BatchProgress'], None]


@dataclass
class BatchProgress:
    """Snapshot of a batched job, taken at each chunk boundary."""
    step: str
    current_batch: int
    total_batches: int
    items_processed: int
    total_items: int
    is_delaying: bool = False
    delay_remaining_ms: int = 0

    @property
    def percent(self) -> int:
        return calculate_progress(self.items_processed, self.total_items)


@dataclass
class BatchItemError:
    """Stands in for the result of an item whose chunk failed."""
    item: Any
    batch_index: int
    error: str
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)


def calculate_progress(items_processed: int, total_items: int) -> int:
    """Whole-number percentage, 0 for an empty job."""
    if total_items <= 0:
        return 0
    return int(math.floor(items_processed * 100 / total_items + 0.5))


def format_remaining_time(ms: int) -> str:
    """Render a countdown: "45s" or "2m 5s"."""
    seconds = math.ceil(ms / 1000)
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m {seconds % 60}s"


async def delay_with_countdown(
    ms: int,
    on_tick: Optional[Callable[[int], None]] = None,
    sleep: SleepFn = asyncio.sleep
) -> None:
    """
    Sleep for `ms`, calling `on_tick(remaining_ms)` once per second.

    A final tick of 0 is always delivered.
    """
    remaining = ms
    while remaining > 0:
        if on_tick:
            on_tick(remaining)
        interval = min(1000, remaining)
        await sleep(interval / 1000)
        remaining -= interval
    if on_tick:
        on_tick(0)


def split_batches(items: Sequence[Any], batch_size: int) -> List[List[Any]]:
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


async def process_batches(
    items: Sequence[Any],
    worker: Callable[[List[Any], int], Awaitable[Any]],
    batch_size: int = RATE_LIMITS["BATCH_SIZE"],
    delay_ms: int = RATE_LIMITS["BATCH_DELAY_MS"],
    on_progress: Optional[ProgressCallback] = None,
    on_batch_complete: Optional[Callable[[int, List[Any]], None]] = None,
    step: str = "script",
    sleep: SleepFn = asyncio.sleep
) -> List[Any]:
    """
    Process `items` in sequential chunks with a pause between chunks.

    `worker(chunk, chunk_index)` returns a list of results for the chunk (a
    non-list return counts as one result). A worker exception does not
    escape: every item of that chunk gets a BatchItemError in the results.

    Args:
        items: Work units, in order
        worker: Async callable processing one chunk
        batch_size: Items per chunk
        delay_ms: Pause between chunks (never after the last)
        on_progress: Receives a BatchProgress at each chunk boundary
        on_batch_complete: Called with (chunk_index, chunk_results)
        step: Pipeline step name carried in progress reports
        sleep: Awaitable sleep in seconds, injectable for tests

    Returns:
        Results of all chunks, in order
    """
    batches = split_batches(items, batch_size)
    total_items = len(items)
    total_batches = len(batches)
    results: List[Any] = []
    processed = 0

    logger.info(
        f"Batching {total_items} items into {total_batches} batches "
        f"(batch_size={batch_size}, delay={delay_ms}ms)"
    )

    def report(progress: BatchProgress) -> None:
        if on_progress:
            on_progress(progress)

    for index, batch in enumerate(batches):
        report(BatchProgress(step, index + 1, total_batches, processed, total_items))

        try:
            outcome = await worker(batch, index)
            batch_results = list(outcome) if isinstance(outcome, list) else [outcome]
        except Exception as e:
            logger.error(f"Batch {index + 1}/{total_batches} failed: {e}")
            batch_results = [BatchItemError(item, index, str(e), e) for item in batch]

        results.extend(batch_results)
        processed += len(batch)
        if on_batch_complete:
            on_batch_complete(index, batch_results)

        has_more = index < total_batches - 1
        report(BatchProgress(
            step,
            index + 1,
            total_batches,
            processed,
            total_items,
            is_delaying=has_more,
            delay_remaining_ms=delay_ms if has_more else 0,
        ))

        if has_more and delay_ms > 0:
            logger.debug(f"Waiting {delay_ms}ms before batch {index + 2}/{total_batches}")
            await sleep(delay_ms / 1000)

    report(BatchProgress(step, total_batches, total_batches, total_items, total_items))
    return results
