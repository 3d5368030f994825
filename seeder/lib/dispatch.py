"""Bounded concurrent dispatch of chunk writes."""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Sequence

from seeder.lib.backend import WriteTarget

logger = logging.getLogger(__name__)

__all__ = ["dispatch_all"]

ChunkWrite = Callable[[WriteTarget, Any, int], Any]


def dispatch_all(
    chunks: Sequence[Any],
    target: WriteTarget,
    max_concurrency: int,
    write: ChunkWrite,
) -> int:
    """
    Write every chunk with at most ``max_concurrency`` writes in flight.

    A new chunk is admitted as soon as one finishes. Once a write fails no
    further chunks are admitted; writes already in flight are allowed to
    finish, then the first failure observed is raised.

    Args:
        chunks: Ordered chunks to write
        target: Destination table and write variant
        max_concurrency: Maximum simultaneous writes
        write: Callable invoked as ``write(target, chunk, index)``

    Returns:
        Number of chunks written

    Raises:
        ValueError: If max_concurrency is not a positive integer
        Exception: The first chunk write failure observed
    """
    if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency <= 0:
        raise ValueError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")

    if not chunks:
        return 0

    pending = iter(enumerate(chunks))
    in_flight: Dict[Future, int] = {}
    first_error = None
    written = 0

    logger.debug(
        "Dispatching %d chunks to %s with %d concurrent writes",
        len(chunks),
        target,
        max_concurrency,
    )

    with ThreadPoolExecutor(
        max_workers=max_concurrency,
        thread_name_prefix=f"seeder-{target.table}",
    ) as executor:
        while True:
            # Top up the window unless a failure has been seen
            while first_error is None and len(in_flight) < max_concurrency:
                item = next(pending, None)
                if item is None:
                    break
                index, group = item
                in_flight[executor.submit(write, target, group, index)] = index

            if not in_flight:
                break

            done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
            for future in done:
                index = in_flight.pop(future)
                error = future.exception()
                if error is None:
                    written += 1
                elif first_error is None:
                    first_error = error
                    logger.error(
                        "Chunk %d for %s failed; no further chunks will be started: %s",
                        index,
                        target,
                        error,
                    )
                else:
                    logger.debug("Chunk %d for %s also failed: %s", index, target, error)

    if first_error is not None:
        raise first_error

    logger.debug("Dispatched %d/%d chunks to %s", written, len(chunks), target)
    return written
