"""
Ledger System

State container wiring storage, audit trail and the ledger components
together. Build one per process (or per test), use it, then close it; no
ledger state lives in module globals.
"""

from typing import List, Optional

from .accounts import AccountManager
from .audit import AuditEntry, AuditTrail
from .config import LedgerConfig, get_config
from .formatters import render_interest_rules
from .interest import InterestRuleManager
from .models import Account, InterestRule
from .results import Result
from .statements import StatementEngine
from .storage import InMemoryStorage, StorageInterface
from .transactions import TransactionProcessor


class LedgerSystem:
    """
    In-process facade over the ledger

    Example:
        with LedgerSystem() as ledger:
            ledger.add_transaction("20230601", "AC001", "D", "150.00")
            print(ledger.print_monthly_statement("AC001", "202306").value)
    """

    def __init__(self, config: Optional[LedgerConfig] = None,
                 storage: Optional[StorageInterface] = None):
        self.config = config or get_config()
        self.storage = storage or InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage, enabled=self.config.enable_audit_logging)
        self.account_manager = AccountManager(
            self.storage, self.audit_trail,
            sequence_scope=self.config.transaction_sequence_scope
        )
        self.rule_manager = InterestRuleManager(self.storage, self.audit_trail)
        self.transaction_processor = TransactionProcessor(
            self.account_manager, self.audit_trail,
            strict_type_code=self.config.strict_type_code
        )
        self.statement_engine = StatementEngine(
            self.account_manager, self.rule_manager, self.audit_trail,
            days_in_year=self.config.days_in_year
        )

    def add_transaction(self, date: str, account_id: str, type_code: str, amount: str) -> Result[Account]:
        return self.transaction_processor.add_transaction(date, account_id, type_code, amount)

    def upsert_interest_rule(self, date: str, rule_id: str, rate: str) -> Result[InterestRule]:
        return self.rule_manager.upsert_rule(date, rule_id, rate)

    def list_interest_rules(self) -> List[InterestRule]:
        return self.rule_manager.list_rules()

    def print_interest_rules(self) -> str:
        return render_interest_rules(self.rule_manager.list_rules())

    def print_account_all(self, account_id: str) -> Result[str]:
        return self.statement_engine.print_account_all(account_id)

    def print_monthly_statement(self, account_id: str, year_month: str) -> Result[str]:
        return self.statement_engine.print_monthly(account_id, year_month)

    def account_history(self, account_id: str) -> List[AuditEntry]:
        """Journaled changes of one account, oldest first"""
        return self.audit_trail.account_history(account_id)

    def close(self) -> None:
        self.storage.close()

    def __enter__(self) -> 'LedgerSystem':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
