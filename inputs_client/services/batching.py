"""
Batching Service
Splits bulk requests into bounded batches, dispatches them concurrently and
merges the per-batch results back into input order.
"""
import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Tuple, TypeVar

import structlog

from inputs_client.constants import MAX_BATCH_SIZE
from inputs_client.errors import PartialBatchFailure
from inputs_client.models.schemas import RecordCollection

logger = structlog.get_logger()

T = TypeVar("T")

# send(batch_index, batch) -> result of that batch
BatchSender = Callable[[int, List[Any]], Awaitable[RecordCollection]]

# Batches still running after a fail-fast abort, held until they finish
_abandoned_batches: Set["asyncio.Task"] = set()


def plan_batches(items: Sequence[T], max_batch_size: int = MAX_BATCH_SIZE) -> List[List[T]]:
    """
    Split items into contiguous batches of at most max_batch_size.

    Args:
        items: Items to split, order is preserved
        max_batch_size: Largest allowed batch

    Returns:
        ceil(len(items) / max_batch_size) lists; empty input gives no batches
    """
    if max_batch_size <= 0:
        raise ValueError(f"max_batch_size must be positive, got {max_batch_size}")

    items = list(items)
    return [
        items[start:start + max_batch_size]
        for start in range(0, len(items), max_batch_size)
    ]


def aggregate_batches(results: Sequence[RecordCollection]) -> RecordCollection:
    """Concatenate per-batch collections in batch order."""
    if not results:
        return RecordCollection()

    merged = results[0]
    for result in results[1:]:
        merged = merged.concat(result)
    return merged


@dataclass(frozen=True)
class BatchOutcome:
    """What happened to one batch of a bulk create."""
    index: int
    size: int
    result: Optional[RecordCollection] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchReport:
    """Per-batch outcomes of a bulk create, in batch order."""
    outcomes: Tuple[BatchOutcome, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> List[int]:
        return [o.index for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[int]:
        return [o.index for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def collection(self) -> RecordCollection:
        """Records created by the successful batches, in input order."""
        return aggregate_batches([o.result for o in self.outcomes if o.ok])

    def raise_for_failures(self) -> None:
        failed = [o for o in self.outcomes if not o.ok]
        if failed:
            raise PartialBatchFailure(self, self.succeeded, self.failed, failed[0].error)


def _log_late_outcome(index: int, task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning("Batch failed after bulk request was aborted", batch=index, error=str(error))
    else:
        logger.info("Batch completed after bulk request was aborted", batch=index)


async def dispatch_fail_fast(batches: Sequence[List[Any]], send: BatchSender) -> List[RecordCollection]:
    """
    Send all batches concurrently and return their results in batch order.

    The first failing batch makes this raise that batch's exception unchanged.
    Batches still in flight are not cancelled: they keep running and may
    still change remote state. Their outcome is only logged.
    """
    if not batches:
        return []

    tasks = [
        asyncio.ensure_future(send(index, batch))
        for index, batch in enumerate(batches)
    ]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    failed = [task for task in tasks if task in done and task.exception() is not None]
    if failed:
        for index, task in enumerate(tasks):
            if task in pending:
                _abandoned_batches.add(task)
                task.add_done_callback(partial(_log_late_outcome, index))
                task.add_done_callback(_abandoned_batches.discard)
        logger.error(
            "Bulk request failed",
            failed_batches=[tasks.index(task) for task in failed],
            pending_batches=len(pending),
        )
        raise failed[0].exception()

    return [task.result() for task in tasks]


async def dispatch_all(batches: Sequence[List[Any]], send: BatchSender) -> BatchReport:
    """Send all batches concurrently and wait for every one of them."""
    results = await asyncio.gather(
        *(send(index, batch) for index, batch in enumerate(batches)),
        return_exceptions=True,
    )

    outcomes = []
    for index, (batch, result) in enumerate(zip(batches, results)):
        if isinstance(result, BaseException):
            outcomes.append(BatchOutcome(index=index, size=len(batch), error=result))
        else:
            outcomes.append(BatchOutcome(index=index, size=len(batch), result=result))

    report = BatchReport(tuple(outcomes))
    if not report.ok:
        logger.warning("Bulk request partially failed", succeeded=report.succeeded, failed=report.failed)
    return report
