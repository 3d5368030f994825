"""Load one fixture source file into one table."""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from seeder.lib.backend import WriteTarget
from seeder.lib.chunking import MAX_CHUNK, chunk
from seeder.lib.dispatch import dispatch_all
from seeder.lib.errors import BatchWriteError, SourceNotFoundError
from seeder.lib.sources import read_records
from seeder.lib.writer import BatchWriter

logger = logging.getLogger(__name__)

__all__ = ["DispatchResult", "load_source"]


@dataclass
class DispatchResult:
    """Outcome of loading one source into one table."""

    source: str
    target: WriteTarget
    record_count: int = 0
    chunk_count: int = 0
    chunks_written: int = 0
    elapsed_seconds: float = 0.0
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def failed_chunk(self) -> Optional[int]:
        """Index of the chunk whose failure was reported, if any."""
        return getattr(self.error, "chunk_index", None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "table": self.target.table,
            "variant": self.target.variant.value,
            "record_count": self.record_count,
            "chunk_count": self.chunk_count,
            "chunks_written": self.chunks_written,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "succeeded": self.succeeded,
            "failed_chunk": self.failed_chunk,
            "error": str(self.error) if self.error else None,
        }

    def __repr__(self) -> str:
        status = "SUCCESS" if self.succeeded else "FAILED"
        return (
            f"DispatchResult({status}, {self.source} -> {self.target}, "
            f"{self.chunks_written}/{self.chunk_count} chunks)"
        )


def load_source(
    path: Union[str, Path],
    target: WriteTarget,
    concurrency: int,
    writer: BatchWriter,
) -> DispatchResult:
    """Chunk a source file and write it to ``target``.

    Chunk write failures are captured in the returned result; problems
    found before any write is attempted are raised.

    Raises:
        SourceNotFoundError: If the source file doesn't exist
        SourceFormatError: If the source file can't be decoded
    """
    source = str(path)
    if not Path(source).exists():
        raise SourceNotFoundError(
            f"{source} doesn't exist", path=source, table=target.table
        )

    start = time.time()
    records = read_records(source)
    chunks = chunk(records, MAX_CHUNK)
    result = DispatchResult(
        source=source,
        target=target,
        record_count=len(records),
        chunk_count=len(chunks),
    )

    logger.info(
        "Loading %d records from %s into %s (%d chunks, %d concurrent writes)",
        len(records),
        source,
        target,
        len(chunks),
        concurrency,
    )

    write = functools.partial(writer.write_chunk, source=source)
    try:
        result.chunks_written = dispatch_all(chunks, target, concurrency, write)
    except BatchWriteError as e:
        result.error = e
        logger.error("Failed loading %s into %s: %s", source, target, e.message)
    finally:
        result.elapsed_seconds = time.time() - start

    if result.succeeded:
        logger.info(
            "Loaded %s into %s in %.2fs", source, target, result.elapsed_seconds
        )
    return result
