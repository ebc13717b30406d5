"""
Account Management Module

Keyed account store with get-or-create semantics, the per-date transaction id
sequence, and per-account locks that serialize validate-then-commit and
compute-then-credit sequences on the same account. Each account record embeds
its transactions, so reading one account never touches another.
"""

from datetime import datetime, timezone, date
from typing import Dict, List, Optional
import threading

from .models import Account, Transaction
from .parsing import format_date
from .storage import StorageInterface
from .audit import AuditTrail, AuditEventType, account_resource
from .logging_config import get_logger, log_action


SEQUENCE_SCOPES = ("global", "account")


class AccountManager:
    """
    Owns accounts and their transactions in storage
    """

    def __init__(
        self,
        storage: StorageInterface,
        audit_trail: AuditTrail,
        sequence_scope: str = "global"
    ):
        if sequence_scope not in SEQUENCE_SCOPES:
            raise ValueError(f"Unknown transaction sequence scope: {sequence_scope}")

        self.storage = storage
        self.audit_trail = audit_trail
        self.sequence_scope = sequence_scope
        self.accounts_table = "accounts"
        self.sequences_table = "transaction_sequences"
        self.logger = get_logger("core_ledger.accounts")

        self._locks_guard = threading.Lock()
        self._account_locks: Dict[str, threading.RLock] = {}

    def account_lock(self, account_id: str) -> threading.RLock:
        """Re-entrant lock serializing mutations of one account"""
        with self._locks_guard:
            lock = self._account_locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._account_locks[account_id] = lock
            return lock

    def get_or_create(self, account_id: str) -> Account:
        """Get an account, creating it on first reference"""
        with self.storage.atomic():
            record = self.storage.load(self.accounts_table, account_id)
            created = record is None
            if created:
                record = {
                    'account_id': account_id,
                    'opened_at': datetime.now(timezone.utc).isoformat(),
                    'transactions': [],
                }
                self.storage.save(self.accounts_table, account_id, record)

        if created:
            self.audit_trail.record(AuditEventType.ACCOUNT_CREATED, account_resource(account_id))
            log_action(
                self.logger, "info", "Account created",
                action="create_account", resource=account_resource(account_id)
            )

        return Account.from_dict(record)

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account snapshot by ID, None if it was never referenced"""
        record = self.storage.load(self.accounts_table, account_id)
        if record is None:
            return None
        return Account.from_dict(record)

    def exists(self, account_id: str) -> bool:
        return self.storage.exists(self.accounts_table, account_id)

    def list_accounts(self) -> List[Account]:
        """All accounts, in creation order"""
        return [Account.from_dict(record) for record in self.storage.load_all(self.accounts_table)]

    def next_transaction_id(self, transaction_date: date, account_id: str) -> str:
        """
        Consume the next id of the date's sequence. The counter is shared by
        all accounts unless the manager was built with the "account" scope.
        """
        day = format_date(transaction_date)
        key = day if self.sequence_scope == "global" else f"{account_id}:{day}"

        with self.storage.atomic():
            sequence = self.storage.load(self.sequences_table, key)
            next_value = (sequence['value'] if sequence else 0) + 1
            self.storage.save(self.sequences_table, key, {'value': next_value})

        return f"{day}-{next_value:02d}"

    def post_transaction(self, account_id: str, transaction: Transaction) -> Account:
        """Append a transaction to an existing account and return the new snapshot"""
        with self.storage.atomic():
            record = self.storage.load(self.accounts_table, account_id)
            if record is None:
                raise ValueError(f"Account {account_id} not found")

            record['transactions'].append(transaction.to_dict())
            self.storage.save(self.accounts_table, account_id, record)

        return Account.from_dict(record)
