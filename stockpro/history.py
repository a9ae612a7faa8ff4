"""
Bounded valuation history.

PURPOSE:
- Keep the last few successful stock valuations (input + output) so a user
  can revisit them.
- The whole list lives as one JSON array under a single storage key and is
  overwritten on every change, newest first.

CONTEXT:
- Backed by any object with get/put/delete on strings: MemoryStorage,
  FileStorage (tools/local_storage.py) or DynamoDBStorage (tools/dynamodb_tool.py).
- Written by the request handler after a successful valuation; read and
  cleared through the FastAPI app.
"""

from __future__ import annotations
import json
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol
from zoneinfo import ZoneInfo

import structlog
from jsonschema import ValidationError

from stockpro.config import Settings, load_settings
from stockpro.flow_io import load_schema, validate_with_schema
from stockpro.tools.dynamodb_tool import DynamoDBStorage
from stockpro.tools.local_storage import FileStorage, MemoryStorage

HISTORY_KEY = "stockValuationHistory_v1"
HISTORY_CAPACITY = 5


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def put(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


def _new_id(tz: ZoneInfo) -> str:
    """Short random prefix plus a timestamp suffix, e.g. 'a1b2c3d4-20251021130000'."""
    return uuid.uuid4().hex[:8] + "-" + datetime.now(tz).strftime("%Y%m%d%H%M%S")


@dataclass
class HistoryItem:
    id: str
    timestamp: str
    input: Dict[str, Any]
    output: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryItem":
        return cls(id=data["id"], timestamp=data["timestamp"], input=data["input"], output=data["output"])


class HistoryStore:
    """
    Capped, newest-first list of HistoryItem records.

    parameters:
    - storage: KeyValueStorage – where the JSON array is kept.
    - key: str – storage key (default HISTORY_KEY).
    - capacity: int – items kept after each add (default 5).
    - tz_name: str – timezone for item timestamps.
    """

    def __init__(self, storage: KeyValueStorage, key: str = HISTORY_KEY,
                 capacity: int = HISTORY_CAPACITY, tz_name: str = "Europe/London"):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.storage = storage
        self.key = key
        self.capacity = capacity
        self.tz = ZoneInfo(tz_name)

    def list(self) -> List[HistoryItem]:
        """
        Load the stored items, newest first.

        notes:
        - A value that is not a JSON array of valid items is logged, removed
          and reported as an empty history.
        """
        raw = self.storage.get(self.key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError(f"expected a JSON array, got {type(records).__name__}")
            schema = load_schema("history_item")
            for rec in records:
                validate_with_schema(rec, schema)
        except (ValueError, ValidationError) as e:
            structlog.get_logger(__name__).warning("history.corrupt", key=self.key, error=str(e))
            self.storage.delete(self.key)
            return []
        return [HistoryItem.from_dict(rec) for rec in records]

    def save(self, items: List[HistoryItem]) -> None:
        self.storage.put(self.key, json.dumps([i.to_dict() for i in items]))

    def add(self, input: Dict[str, Any], output: Dict[str, Any]) -> HistoryItem:
        """Prepend a new item and trim to capacity (oldest evicted)."""
        item = HistoryItem(
            id=_new_id(self.tz),
            timestamp=datetime.now(self.tz).isoformat(timespec="seconds"),
            input=input,
            output=output,
        )
        self.save(([item] + self.list())[: self.capacity])
        return item

    def clear(self) -> None:
        self.storage.delete(self.key)


def build_history_store(settings: Optional[Settings] = None) -> Optional[HistoryStore]:
    """Create the configured store, or None when HISTORY_BACKEND=none."""
    settings = settings or load_settings()
    backend = settings.history_backend
    if backend == "none":
        return None
    if backend == "file":
        storage: KeyValueStorage = FileStorage(settings.history_path)
    elif backend == "dynamodb":
        storage = DynamoDBStorage(settings.ddb_history_table, settings.aws_region)
    else:
        storage = MemoryStorage()
    return HistoryStore(storage, tz_name=settings.tz_name)
