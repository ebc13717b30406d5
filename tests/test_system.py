"""
Integration tests for the ledger facade

End-to-end flows across transactions, interest rules and statements,
plus the non-negative balance property over a mixed sequence of requests.
"""

import pytest
from decimal import Decimal

from core_ledger.config import LedgerConfig
from core_ledger.models import canonical_order
from core_ledger.results import ErrorKind
from core_ledger.system import LedgerSystem


class TestLedgerSystem:
    """Test the in-process interface"""

    def setup_method(self):
        self.ledger = LedgerSystem(LedgerConfig())

    def teardown_method(self):
        self.ledger.close()

    def test_interest_rule_listing(self):
        """Test rules are listed and printed in effective-date order"""
        self.ledger.upsert_interest_rule("20230615", "RULE03", "2.20")
        self.ledger.upsert_interest_rule("20230101", "RULE01", "1.95")

        assert [r.rule_id for r in self.ledger.list_interest_rules()] == ["RULE01", "RULE03"]
        assert self.ledger.print_interest_rules().splitlines() == [
            "Interest rules:",
            "| Date     | RuleId | Rate (%) |",
            "| 20230101 | RULE01 |     1.95 |",
            "| 20230615 | RULE03 |     2.20 |",
        ]

    def test_empty_rule_book(self):
        """Test the rule table with no rules"""
        assert self.ledger.list_interest_rules() == []
        assert self.ledger.print_interest_rules() == "Interest rules:\n| Date     | RuleId | Rate (%) |\n"

    def test_result_unwrap(self):
        """Test unwrap returns the value or raises with the message"""
        assert self.ledger.add_transaction("20230601", "AC001", "D", "1.00").unwrap().account_id == "AC001"

        with pytest.raises(ValueError, match="Account not found"):
            self.ledger.print_account_all("NOPE").unwrap()

    def test_balance_never_negative(self):
        """Test every prefix stays non-negative across accepted and rejected requests"""
        requests = [
            ("20230601", "D", "50.00"), ("20230603", "W", "20.00"), ("20230602", "W", "40.00"),
            ("20230531", "W", "1.00"), ("20230604", "D", "10.00"), ("20230603", "W", "30.00"),
            ("20230605", "W", "10.01"), ("20230605", "W", "10.00"), ("20230601", "D", "0.01"),
        ]
        outcomes = [self.ledger.add_transaction(day, "AC001", code, amount).ok
                    for day, code, amount in requests]

        assert outcomes == [True, True, False, False, True, True, False, True, True]

        running = Decimal('0')
        for txn in canonical_order(self.ledger.account_manager.get_account("AC001").transactions):
            running += txn.signed_amount
            assert running >= 0
        assert running == Decimal('0.01')

    def test_interest_across_months(self):
        """Test consecutive statements each credit their own month"""
        self.ledger.add_transaction("20230101", "AC001", "D", "3650.00")
        self.ledger.upsert_interest_rule("20230101", "RULE01", "12.00")

        january = self.ledger.print_monthly_statement("AC001", "202301")
        february = self.ledger.print_monthly_statement("AC001", "202302")

        assert "| 20230131 |             | I    |  37.20 | 3687.20 |" in january.value
        # 28 days at 3687.20 x 12% / 365 = 33.9424...
        assert "| 20230228 |             | I    |  33.94 | 3721.14 |" in february.value

    def test_closed_system(self):
        """Test the storage cannot be used after close"""
        ledger = LedgerSystem(LedgerConfig())
        ledger.close()
        with pytest.raises(RuntimeError):
            ledger.add_transaction("20230601", "AC001", "D", "1.00")

    def test_errors_do_not_mutate(self):
        """Test failed requests leave rules and accounts untouched"""
        self.ledger.upsert_interest_rule("20230101", "RULE01", "1.00")
        assert self.ledger.upsert_interest_rule("20230101", "RULE01", "0").error.kind == ErrorKind.INVALID_RATE
        assert self.ledger.list_interest_rules()[0].rate_percent == Decimal('1.00')

        self.ledger.add_transaction("20230101", "AC001", "D", "5.00")
        assert self.ledger.add_transaction("20230102", "AC001", "W", "5.01").error.kind == ErrorKind.INSUFFICIENT_BALANCE
        assert self.ledger.account_manager.get_account("AC001").balance == Decimal('5.00')
