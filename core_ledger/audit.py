"""
Audit Trail Module

Append-only journal of ledger changes. Each entry names the resource it
touched ("account:AC001", "interest_rule:20230615"), the same resource string
the structured logs carry, so an account's history can be replayed from the
journal alone. Entries are digest-chained with SHA-256; editing or reordering
a stored entry breaks the chain from that entry on.
"""

import hashlib
import json
import threading
from datetime import date, datetime, timezone
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
from enum import Enum
from decimal import Decimal

from .storage import StorageInterface


class AuditEventType(Enum):
    """Ledger changes worth journaling"""
    ACCOUNT_CREATED = "account_created"
    TRANSACTION_POSTED = "transaction_posted"
    TRANSACTION_REJECTED = "transaction_rejected"
    INTEREST_RULE_UPSERTED = "interest_rule_upserted"
    INTEREST_POSTED = "interest_posted"
    STATEMENT_GENERATED = "statement_generated"


def account_resource(account_id: str) -> str:
    return f"account:{account_id}"


def _plain(value: Any) -> Any:
    """Journal details hold only JSON scalars"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, date)):
        return str(value)
    return value


@dataclass(frozen=True)
class AuditEntry:
    """One journaled change; `sequence` starts at 1"""
    sequence: int
    event_type: AuditEventType
    resource: str
    recorded_at: str
    previous_digest: str
    digest: str
    details: Dict[str, Any] = field(default_factory=dict)

    def expected_digest(self) -> str:
        payload = json.dumps(
            [self.sequence, self.event_type.value, self.resource,
             self.recorded_at, self.previous_digest, self.details],
            sort_keys=True, separators=(',', ':')
        )
        return hashlib.sha256(payload.encode('utf-8')).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sequence': self.sequence,
            'event_type': self.event_type.value,
            'resource': self.resource,
            'recorded_at': self.recorded_at,
            'previous_digest': self.previous_digest,
            'digest': self.digest,
            'details': self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEntry':
        return cls(
            sequence=data['sequence'],
            event_type=AuditEventType(data['event_type']),
            resource=data['resource'],
            recorded_at=data['recorded_at'],
            previous_digest=data['previous_digest'],
            digest=data['digest'],
            details=data['details'],
        )


class AuditTrail:
    """
    Digest-chained journal stored in the "audit_log" table, keyed by the
    zero-padded sequence number. A disabled trail records nothing.
    """

    table = "audit_log"

    def __init__(self, storage: StorageInterface, enabled: bool = True):
        self.storage = storage
        self.enabled = enabled
        self._lock = threading.Lock()

        stored = self.storage.load_all(self.table)
        last = stored[-1] if stored else None
        self._sequence = last['sequence'] if last else 0
        self._last_digest = last['digest'] if last else ""

    def record(self, event_type: AuditEventType, resource: str, **details) -> Optional[AuditEntry]:
        """Append an entry; returns None when the trail is disabled"""
        if not self.enabled:
            return None

        with self._lock:
            unsigned = AuditEntry(
                sequence=self._sequence + 1,
                event_type=event_type,
                resource=resource,
                recorded_at=datetime.now(timezone.utc).isoformat(),
                previous_digest=self._last_digest,
                digest="",
                details={k: _plain(v) for k, v in details.items()}
            )
            entry = replace(unsigned, digest=unsigned.expected_digest())

            self.storage.save(self.table, f"{entry.sequence:010d}", entry.to_dict())
            self._sequence = entry.sequence
            self._last_digest = entry.digest
            return entry

    def entries(self, resource: Optional[str] = None,
                event_type: Optional[AuditEventType] = None) -> List[AuditEntry]:
        """Journal entries in sequence order, optionally filtered"""
        found = [AuditEntry.from_dict(data) for data in self.storage.load_all(self.table)]
        if resource is not None:
            found = [e for e in found if e.resource == resource]
        if event_type is not None:
            found = [e for e in found if e.event_type == event_type]
        return found

    def account_history(self, account_id: str) -> List[AuditEntry]:
        """Everything journaled against one account, oldest first"""
        return self.entries(resource=account_resource(account_id))

    def find_tampered(self) -> List[int]:
        """
        Sequence numbers of entries whose digest no longer matches their
        content or whose link to the previous entry is broken. Empty when the
        journal is intact.
        """
        broken = []
        previous = ""
        for entry in self.entries():
            if entry.digest != entry.expected_digest() or entry.previous_digest != previous:
                broken.append(entry.sequence)
            previous = entry.digest
        return broken

    def count(self) -> int:
        """Number of entries recorded so far"""
        with self._lock:
            return self._sequence
