"""
Storage Backend Module

Named tables of JSON-compatible records, keyed by string id. Accounts (with
their transactions embedded), interest rules, id sequences and the audit log
all live here. Records go in and come out as deep copies, so callers can never
mutate stored state in place.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from datetime import date
from contextlib import contextmanager
import json
import threading


def _json_default(value: Any) -> str:
    # Decimal and date values are stored as their canonical strings
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Insert or replace a record"""

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load one record, None if absent"""

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Every record of a table, in first-insertion order"""

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""

    @abstractmethod
    def close(self) -> None:
        """Release the storage"""

    @contextmanager
    def atomic(self):
        """Group a load-then-save sequence; backends without locking do nothing"""
        yield


class InMemoryStorage(StorageInterface):
    """Process-local storage guarded by one re-entrant lock"""

    def __init__(self):
        self._tables: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()
        self._closed = False

    def _table(self, name: str) -> Dict[str, str]:
        if self._closed:
            raise RuntimeError("Storage is closed")
        return self._tables.setdefault(name, {})

    @contextmanager
    def atomic(self):
        """Hold the storage lock for the whole block"""
        with self._lock:
            yield

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        encoded = json.dumps(data, default=_json_default)
        with self._lock:
            self._table(table)[record_id] = encoded

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            encoded = self._table(table).get(record_id)
        return None if encoded is None else json.loads(encoded)

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            encoded = list(self._table(table).values())
        return [json.loads(item) for item in encoded]

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            return record_id in self._table(table)

    def close(self) -> None:
        """Drop all data; any later call raises RuntimeError"""
        with self._lock:
            self._tables = {}
            self._closed = True
