"""Chunk writer with resource-not-found backoff.

Right after a table is created DynamoDB may keep answering
ResourceNotFoundException for a few seconds. Each chunk write is retried
with a linear backoff (0s, 1s, 2s, ... 5s) while that is the failure;
any other error fails the chunk immediately.

Implementation: tenacity drives the attempts, with a stop condition that
tracks the backoff budget from the attempt number rather than wall time.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import tenacity
from botocore.exceptions import ClientError
from tenacity.stop import stop_base

from seeder.lib.backend import DynamoBackend, WriteTarget
from seeder.lib.errors import BatchWriteError

logger = logging.getLogger(__name__)

__all__ = [
    "RESOURCE_NOT_FOUND",
    "RETRY_BUDGET_SECONDS",
    "RETRY_STEP_SECONDS",
    "BatchWriter",
    "build_put_requests",
    "error_code",
    "is_resource_not_found",
    "stop_after_backoff_budget",
]

RESOURCE_NOT_FOUND = "ResourceNotFoundException"
RETRY_STEP_SECONDS = 1.0
RETRY_BUDGET_SECONDS = 5.0


def error_code(exc: BaseException) -> Optional[str]:
    """Return the service error code of a botocore ClientError, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def is_resource_not_found(exc: BaseException) -> bool:
    return error_code(exc) == RESOURCE_NOT_FOUND


class stop_after_backoff_budget(stop_base):
    """Stop once the next linear backoff delay would exceed the budget.

    After attempt ``n`` the next delay is ``n * step``; with step=1s and
    budget=5s attempts run after waits of 0, 1, 2, 3, 4 and 5 seconds.
    """

    def __init__(self, budget: float, step: float) -> None:
        self.budget = budget
        self.step = step

    def __call__(self, retry_state: tenacity.RetryCallState) -> bool:
        next_delay = retry_state.attempt_number * self.step
        return next_delay > self.budget


def build_put_requests(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One PutRequest entry per record, in order."""
    return [{"PutRequest": {"Item": record}} for record in records]


class BatchWriter:
    """Writes one chunk per call through a DynamoBackend.

    Args:
        backend: Backend used to submit BatchWriteItem requests
        retry_step: Seconds added to the delay after each not-found failure
        retry_budget: Largest delay still followed by another attempt
        sleep: Sleep function, swapped out in tests
    """

    def __init__(
        self,
        backend: DynamoBackend,
        *,
        retry_step: float = RETRY_STEP_SECONDS,
        retry_budget: float = RETRY_BUDGET_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.backend = backend
        self.retry_step = retry_step
        self.retry_budget = retry_budget
        self._sleep = sleep

    def _retrying(self, target: WriteTarget, chunk_index: Optional[int]) -> tenacity.Retrying:
        def before_sleep_handler(retry_state: tenacity.RetryCallState) -> None:
            """Log retry attempts."""
            exception = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Table %s not available yet (chunk %s, attempt %d): %s. Retrying in %.1fs...",
                target.table,
                chunk_index,
                retry_state.attempt_number,
                exception,
                retry_state.next_action.sleep if retry_state.next_action else 0,
            )

        return tenacity.Retrying(
            stop=stop_after_backoff_budget(self.retry_budget, self.retry_step),
            wait=tenacity.wait_incrementing(start=self.retry_step, increment=self.retry_step),
            retry=tenacity.retry_if_exception(is_resource_not_found),
            before_sleep=before_sleep_handler,
            sleep=self._sleep,
            reraise=True,
        )

    def write_chunk(
        self,
        target: WriteTarget,
        records: List[Dict[str, Any]],
        chunk_index: Optional[int] = None,
        *,
        source: Optional[str] = None,
    ) -> int:
        """Write one chunk and return the number of attempts it took.

        Raises:
            BatchWriteError: When the chunk could not be written
        """
        entries = build_put_requests(records)
        attempts = 0

        def submit() -> Dict[str, Any]:
            nonlocal attempts
            attempts += 1
            return self.backend.submit(target.variant, target.table, entries)

        try:
            response = self._retrying(target, chunk_index)(submit)
        except Exception as exc:
            code = error_code(exc)
            retryable = code == RESOURCE_NOT_FOUND
            if retryable:
                message = (
                    f"Table {target.table} still not found after {attempts} attempts "
                    f"(chunk {chunk_index})"
                )
            else:
                message = f"Chunk {chunk_index} write to {target.table} failed: {code or type(exc).__name__}"
            raise BatchWriteError(
                message,
                table=target.table,
                source=source,
                variant=target.variant.value,
                chunk_index=chunk_index,
                error_code=code,
                attempts=attempts,
                retryable=retryable,
                cause=exc,
            ) from exc

        unprocessed = (response or {}).get("UnprocessedItems") or {}
        pending = sum(len(items) for items in unprocessed.values())
        if pending:
            logger.warning(
                "%d of %d items in chunk %s for %s were left unprocessed",
                pending,
                len(entries),
                chunk_index,
                target.table,
            )

        if attempts > 1:
            logger.info(
                "Chunk %s for %s written after %d attempts",
                chunk_index,
                target.table,
                attempts,
            )
        return attempts
