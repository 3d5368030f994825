"""Shared test doubles for the fixture loading tests."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError


def client_error(code: str, operation: str = "BatchWriteItem") -> ClientError:
    """Build a botocore ClientError with the given service error code."""
    return ClientError(
        {"Error": {"Code": code, "Message": f"{code} raised by test"}},
        operation,
    )


def make_records(count: int, prefix: str = "r") -> List[Dict[str, Any]]:
    return [{"id": f"{prefix}{i}", "n": i} for i in range(count)]


def write_json(path: Path, records: List[Dict[str, Any]]) -> Path:
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


class FakeBackend:
    """Stands in for DynamoBackend.

    Each call is recorded as (variant, table, first item id, entry count).
    ``script`` maps a chunk's first item id to error codes raised on
    successive calls for that chunk; once the list is used up the call
    succeeds.
    """

    def __init__(
        self,
        script: Optional[Dict[str, List[str]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.script = {key: list(codes) for key, codes in (script or {}).items()}
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def submit(self, variant, table, entries):
        key = entries[0]["PutRequest"]["Item"].get("id") if entries else None
        with self._lock:
            self.calls.append((variant, table, key, len(entries)))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            planned = self.script.get(key)
            code = planned.pop(0) if planned else None
        try:
            if self.delay:
                time.sleep(self.delay)
            if code:
                raise client_error(code)
            return {"UnprocessedItems": {}}
        finally:
            with self._lock:
                self.active -= 1

    def calls_for(self, key: str) -> int:
        return sum(1 for call in self.calls if call[2] == key)
