"""Split record sequences into BatchWriteItem-sized chunks."""

from __future__ import annotations

from typing import Any, List, Sequence

__all__ = ["MAX_CHUNK", "chunk"]

# BatchWriteItem accepts at most 25 put/delete requests per call
MAX_CHUNK = 25


def chunk(records: Sequence[Any], size: int) -> List[List[Any]]:
    """Partition records into consecutive groups of ``size``.

    The last group holds the remainder when ``len(records)`` is not a
    multiple of ``size``. Concatenating the groups gives back the input.

    Raises:
        ValueError: If size is not a positive integer
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValueError(f"Chunk size must be a positive integer, got {size!r}")

    items = list(records)
    return [items[start:start + size] for start in range(0, len(items), size)]
