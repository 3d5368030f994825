"""DynamoDB batch-write backend.

Two write variants are supported:

- DOCUMENT: items are plain Python/JSON values ({"id": "u1", "age": 30}),
  serialized to DynamoDB attribute values before the call.
- RAW: items are already typed attribute values ({"id": {"S": "u1"}}) and
  are sent unchanged.

Both variants go through the low-level client's ``batch_write_item`` so a
single backend can be shared by every writer thread.
"""

from __future__ import annotations

import decimal
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.types import TypeSerializer

logger = logging.getLogger(__name__)

__all__ = ["WriteVariant", "WriteTarget", "DynamoBackend", "to_dynamo_value"]


class WriteVariant(Enum):
    """How records of a source are encoded for BatchWriteItem."""

    DOCUMENT = "document"  # native values, serialized here
    RAW = "raw"  # typed attribute values, sent as-is


@dataclass(frozen=True)
class WriteTarget:
    """Destination table and encoding for one source."""

    table: str
    variant: WriteVariant

    def __str__(self) -> str:
        return f"{self.table} ({self.variant.value})"


def to_dynamo_value(value: Any) -> Any:
    """Convert floats to Decimal recursively; DynamoDB rejects float."""
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo_value(v) for v in value]
    return value


class DynamoBackend:
    """Submits BatchWriteItem requests for either write variant.

    Example:
        >>> backend = DynamoBackend(boto3.Session(region_name="eu-west-1"))
        >>> backend.submit(WriteVariant.DOCUMENT, "Users", [
        ...     {"PutRequest": {"Item": {"id": "u1"}}},
        ... ])
    """

    def __init__(
        self,
        session: Optional[boto3.Session] = None,
        *,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self._session = session
        self._endpoint_url = endpoint_url
        self._client = client
        self._lock = threading.Lock()
        self._serializer = TypeSerializer()

    @property
    def client(self) -> Any:
        """Lazy-load the DynamoDB client."""
        with self._lock:
            if self._client is None:
                session = self._session or boto3.Session()
                kwargs: Dict[str, Any] = {}
                if self._endpoint_url:
                    kwargs["endpoint_url"] = self._endpoint_url
                self._client = session.client("dynamodb", **kwargs)
        return self._client

    def serialize_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Encode a native item as DynamoDB attribute values."""
        return {
            key: self._serializer.serialize(to_dynamo_value(value))
            for key, value in item.items()
        }

    def encode_entries(
        self, variant: WriteVariant, entries: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        if variant is WriteVariant.RAW:
            return entries
        return [
            {"PutRequest": {"Item": self.serialize_item(entry["PutRequest"]["Item"])}}
            for entry in entries
        ]

    def submit(
        self,
        variant: WriteVariant,
        table: str,
        entries: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Send one BatchWriteItem call.

        Raises:
            botocore.exceptions.ClientError: On any service-side failure
        """
        request_items = {table: self.encode_entries(variant, entries)}
        logger.debug(
            "BatchWriteItem table=%s variant=%s entries=%d",
            table,
            variant.value,
            len(entries),
        )
        return self.client.batch_write_item(RequestItems=request_items)
