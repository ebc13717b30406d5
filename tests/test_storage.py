"""
Tests for the in-memory storage backend
"""

import pytest
import threading
from decimal import Decimal
from datetime import date

from core_ledger.storage import InMemoryStorage


class TestInMemoryStorage:
    """Test basic keyed store operations"""

    def setup_method(self):
        self.storage = InMemoryStorage()

    def test_basic_operations(self):
        """Test save, load, exists and load_all"""
        record = {"account_id": "AC001", "transactions": []}
        self.storage.save("accounts", "AC001", record)

        assert self.storage.load("accounts", "AC001") == record
        assert self.storage.exists("accounts", "AC001")
        assert not self.storage.exists("accounts", "AC002")
        assert self.storage.load("accounts", "AC002") is None
        assert self.storage.load_all("empty_table") == []

    def test_save_replaces_in_place(self):
        """Test saving an existing key keeps its original position"""
        self.storage.save("t", "a", {"v": 1})
        self.storage.save("t", "b", {"v": 2})
        self.storage.save("t", "a", {"v": 3})

        assert [r["v"] for r in self.storage.load_all("t")] == [3, 2]

    def test_tables_are_separate(self):
        """Test the same key in two tables holds two records"""
        self.storage.save("accounts", "x", {"v": 1})
        self.storage.save("interest_rules", "x", {"v": 2})

        assert self.storage.load("accounts", "x") == {"v": 1}
        assert self.storage.load("interest_rules", "x") == {"v": 2}

    def test_records_are_copied(self):
        """Test callers cannot mutate stored records"""
        record = {"items": [1, 2]}
        self.storage.save("t", "a", record)
        record["items"].append(3)

        loaded = self.storage.load("t", "a")
        assert loaded == {"items": [1, 2]}
        loaded["items"].append(4)
        assert self.storage.load("t", "a") == {"items": [1, 2]}

    def test_dates_and_decimals_serialized(self):
        """Test non-JSON values are stored as strings"""
        self.storage.save("t", "a", {"day": date(2023, 6, 1), "amount": Decimal('1.50')})
        assert self.storage.load("t", "a") == {"day": "2023-06-01", "amount": "1.50"}

    def test_closed_storage(self):
        """Test a closed storage refuses further use"""
        self.storage.save("t", "a", {"v": 1})
        self.storage.close()

        with pytest.raises(RuntimeError, match="closed"):
            self.storage.load("t", "a")
        with pytest.raises(RuntimeError, match="closed"):
            self.storage.save("t", "b", {"v": 2})


class TestAtomic:
    """Test atomic read-modify-write support"""

    def test_atomic_counter_under_threads(self):
        """Test increments inside atomic() never lose updates"""
        storage = InMemoryStorage()
        storage.save("counters", "c", {"value": 0})

        def increment():
            for _ in range(200):
                with storage.atomic():
                    current = storage.load("counters", "c")["value"]
                    storage.save("counters", "c", {"value": current + 1})

        threads = [threading.Thread(target=increment) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert storage.load("counters", "c")["value"] == 1600

    def test_atomic_propagates_errors(self):
        """Test exceptions leave the context and release the lock"""
        storage = InMemoryStorage()
        with pytest.raises(ValueError):
            with storage.atomic():
                storage.save("t", "a", {"v": 1})
                raise ValueError("Simulated error")

        # No rollback; the lock must be free again
        storage.save("t", "b", {"v": 2})
        assert len(storage.load_all("t")) == 2
