"""
Test suite for account management

Tests get-or-create, transaction posting and the per-date transaction id
sequence in both of its scopes.
"""

import pytest
import threading
from decimal import Decimal
from datetime import date

from core_ledger.storage import InMemoryStorage
from core_ledger.audit import AuditTrail, AuditEventType
from core_ledger.accounts import AccountManager
from core_ledger.models import Transaction, TransactionType


class TestAccountManager:
    """Test account store operations"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)
        self.account_manager = AccountManager(self.storage, self.audit_trail)

    def test_get_or_create(self):
        """Test the first reference creates the account, later ones reuse it"""
        assert self.account_manager.get_account("AC001") is None
        assert not self.account_manager.exists("AC001")

        account = self.account_manager.get_or_create("AC001")
        assert account.account_id == "AC001"
        assert account.is_empty

        again = self.account_manager.get_or_create("AC001")
        assert again.opened_at == account.opened_at
        assert len(self.account_manager.list_accounts()) == 1

        created = self.audit_trail.entries(event_type=AuditEventType.ACCOUNT_CREATED)
        assert len(created) == 1
        assert created[0].resource == "account:AC001"

    def test_concurrent_get_or_create(self):
        """Test racing callers create a single account"""
        barrier = threading.Barrier(8)

        def create():
            barrier.wait()
            self.account_manager.get_or_create("AC001")

        threads = [threading.Thread(target=create) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(self.account_manager.list_accounts()) == 1
        assert len(self.audit_trail.entries(event_type=AuditEventType.ACCOUNT_CREATED)) == 1

    def test_post_transaction(self):
        """Test posted transactions appear in canonical order"""
        self.account_manager.get_or_create("AC001")
        later = Transaction(date(2023, 6, 2), "20230602-01", TransactionType.DEPOSIT, Decimal('5'))
        earlier = Transaction(date(2023, 6, 1), "20230601-01", TransactionType.DEPOSIT, Decimal('10'))

        self.account_manager.post_transaction("AC001", later)
        account = self.account_manager.post_transaction("AC001", earlier)

        assert account.transactions == [earlier, later]
        assert account.balance == Decimal('15.00')

    def test_post_transaction_unknown_account(self):
        """Test posting requires an existing account"""
        credit = Transaction(date(2023, 6, 1), "", TransactionType.INTEREST, Decimal('1'))
        with pytest.raises(ValueError, match="not found"):
            self.account_manager.post_transaction("NOPE", credit)

    def test_transactions_isolated_per_account(self):
        """Test accounts do not see each other's transactions"""
        self.account_manager.get_or_create("AC001")
        self.account_manager.get_or_create("AC002")
        self.account_manager.post_transaction(
            "AC001", Transaction(date(2023, 6, 1), "20230601-01", TransactionType.DEPOSIT, Decimal('10'))
        )

        assert len(self.account_manager.get_account("AC001").transactions) == 1
        assert self.account_manager.get_account("AC002").is_empty

    def test_transactions_stored_with_their_account(self):
        """Test each account record carries only its own transactions"""
        self.account_manager.get_or_create("AC001")
        self.account_manager.get_or_create("AC002")
        for i in range(1, 4):
            self.account_manager.post_transaction(
                "AC002", Transaction(date(2023, 6, i), f"2023060{i}-01", TransactionType.DEPOSIT, Decimal('1'))
            )
        self.account_manager.post_transaction(
            "AC001", Transaction(date(2023, 6, 5), "20230605-01", TransactionType.DEPOSIT, Decimal('7'))
        )

        record = self.storage.load(self.account_manager.accounts_table, "AC001")
        assert record["transactions"] == [
            {"date": "2023-06-05", "transaction_id": "20230605-01", "transaction_type": "D", "amount": "7.00"}
        ]
        assert len(self.storage.load(self.account_manager.accounts_table, "AC002")["transactions"]) == 3

    def test_account_lock_is_per_account(self):
        """Test the same lock is returned for an account, different ones otherwise"""
        lock = self.account_manager.account_lock("AC001")
        assert self.account_manager.account_lock("AC001") is lock
        assert self.account_manager.account_lock("AC002") is not lock


class TestTransactionIdSequence:
    """Test the per-date transaction id counter"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)

    def test_global_sequence_shared_across_accounts(self):
        """Test the default counter is keyed by date only"""
        manager = AccountManager(self.storage, self.audit_trail)
        day = date(2023, 6, 26)

        assert manager.next_transaction_id(day, "AC001") == "20230626-01"
        assert manager.next_transaction_id(day, "AC002") == "20230626-02"
        assert manager.next_transaction_id(day, "AC001") == "20230626-03"
        assert manager.next_transaction_id(date(2023, 6, 27), "AC001") == "20230627-01"

    def test_account_scoped_sequence(self):
        """Test the account scope keys the counter by account and date"""
        manager = AccountManager(self.storage, self.audit_trail, sequence_scope="account")
        day = date(2023, 6, 26)

        assert manager.next_transaction_id(day, "AC001") == "20230626-01"
        assert manager.next_transaction_id(day, "AC002") == "20230626-01"
        assert manager.next_transaction_id(day, "AC001") == "20230626-02"

    def test_unknown_scope(self):
        """Test an unknown scope is rejected"""
        with pytest.raises(ValueError, match="sequence scope"):
            AccountManager(self.storage, self.audit_trail, sequence_scope="branch")

    def test_counter_widens_past_99(self):
        """Test the counter is zero-padded to at least two digits"""
        manager = AccountManager(self.storage, self.audit_trail)
        day = date(2023, 6, 1)
        ids = [manager.next_transaction_id(day, "AC001") for _ in range(100)]

        assert ids[0] == "20230601-01"
        assert ids[98] == "20230601-99"
        assert ids[99] == "20230601-100"

    def test_concurrent_ids_are_unique(self):
        """Test racing callers on the same date never share an id"""
        manager = AccountManager(self.storage, self.audit_trail)
        day = date(2023, 6, 1)
        ids = []
        ids_lock = threading.Lock()

        def allocate(account_id):
            for _ in range(25):
                txn_id = manager.next_transaction_id(day, account_id)
                with ids_lock:
                    ids.append(txn_id)

        threads = [threading.Thread(target=allocate, args=(f"AC{i:03d}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ids) == 200
        assert len(set(ids)) == 200
