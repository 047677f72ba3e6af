"""Bounded-concurrency fan-out of per-file model requests.

Work items run in successive batches of at most ``cap`` items. Every item in
a batch gets its own worker thread and the next batch starts only after the
whole batch has finished, so no more than ``cap`` calls are ever in flight.
Results come back in submission order; when anything failed, the failure with
the lowest index is raised once every batch has run.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .git import FileCategory
from .progress import ProgressSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    """One per-file summary request."""

    index: int
    branch: str
    path: str
    category: FileCategory
    diff: str
    ticket_summary: Optional[str] = None


@dataclass(frozen=True)
class Outcome:
    """Result of one work item: ``text`` on success, ``error`` on failure."""

    index: int
    text: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def plan_batches(count: int, cap: int) -> List[range]:
    """Split ``range(count)`` into consecutive batches of at most ``cap``.

    A ``cap`` below 1 is treated as 1.
    """
    size = max(1, cap)
    return [range(start, min(start + size, count)) for start in range(0, count, size)]


def first_failure(outcomes: Sequence[Optional[Outcome]]) -> Optional[Outcome]:
    """Return the failed outcome with the lowest index, if any.

    Completion order is irrelevant: the same inputs always surface the same
    error.
    """
    failed = [o for o in outcomes if o is not None and not o.ok]
    if not failed:
        return None
    return min(failed, key=lambda o: o.index)


def dispatch(
    items: Sequence[WorkItem],
    cap: int,
    call: Callable[[WorkItem], str],
    progress: Optional[ProgressSink] = None,
) -> List[str]:
    """Run ``call`` for every item, ``cap`` at a time, preserving order.

    ``progress`` is advanced once per attempted item, successful or not.
    Sibling items keep running after a failure; the lowest-index error is
    raised after the final batch.
    """
    if not items:
        return []

    batches = plan_batches(len(items), cap)
    outcomes: List[Optional[Outcome]] = [None] * len(items)
    lock = threading.Lock()

    def run_one(position: int) -> None:
        item = items[position]
        try:
            outcome = Outcome(index=item.index, text=call(item))
        except Exception as e:  # noqa: BLE001 - recorded, surfaced after the batch
            logger.debug("Work item %d (%s) failed: %s", item.index, item.path, e)
            outcome = Outcome(index=item.index, error=e)
        if progress is not None:
            progress.advance()
        with lock:
            outcomes[position] = outcome

    logger.info(
        "Dispatching %d request(s) in %d batch(es) of up to %d",
        len(items),
        len(batches),
        max(1, cap),
    )
    for number, batch in enumerate(batches, start=1):
        logger.debug("Batch %d/%d: %d item(s)", number, len(batches), len(batch))
        with ThreadPoolExecutor(
            max_workers=len(batch), thread_name_prefix="commitbot-dispatch"
        ) as executor:
            futures = [executor.submit(run_one, position) for position in batch]
            wait(futures)
        for future in futures:
            # run_one records every exception; anything here is a bug.
            future.result()

    failed = first_failure(outcomes)
    if failed is not None and failed.error is not None:
        raise failed.error
    return [outcome.text or "" for outcome in outcomes if outcome is not None]
