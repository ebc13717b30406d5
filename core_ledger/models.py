"""
Ledger Entities Module

Accounts, their transactions and effective-dated interest rules. Transactions
and rules are immutable; an account only ever grows by appending transactions.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
from enum import Enum

from .parsing import ZERO, round_money, format_date


class TransactionType(Enum):
    """Transaction types with their single-character statement code"""
    DEPOSIT = "D"
    WITHDRAWAL = "W"
    INTEREST = "I"  # Credited at month end, transaction id left blank

    @property
    def code(self) -> str:
        return self.value

    @property
    def is_credit(self) -> bool:
        """Deposits and interest add to the balance"""
        return self != TransactionType.WITHDRAWAL

    @classmethod
    def from_user_code(cls, code: str) -> Optional['TransactionType']:
        """Map a user-entered code (D or W, any case) to a type"""
        if not isinstance(code, str):
            return None
        normalized = code.upper()
        if normalized == "D":
            return cls.DEPOSIT
        if normalized == "W":
            return cls.WITHDRAWAL
        return None


@dataclass(frozen=True)
class Transaction:
    """
    A single ledger movement. The amount is always a positive magnitude;
    its sign comes from the transaction type.
    """
    date: date
    transaction_id: str  # e.g. "20230626-02", or "" for credited interest
    transaction_type: TransactionType
    amount: Decimal

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        object.__setattr__(self, 'amount', round_money(self.amount))

        if self.amount <= ZERO:
            raise ValueError("Transaction amount must be positive")

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.transaction_type.is_credit else -self.amount

    def sort_key(self) -> Tuple[date, str]:
        """Canonical order: date, then transaction id"""
        return (self.date, self.transaction_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'transaction_id': self.transaction_id,
            'transaction_type': self.transaction_type.value,
            'amount': str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            date=date.fromisoformat(data['date']),
            transaction_id=data['transaction_id'],
            transaction_type=TransactionType(data['transaction_type']),
            amount=Decimal(data['amount']),
        )


def canonical_order(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Sort by date then transaction id; ties keep their insertion order"""
    return sorted(transactions, key=Transaction.sort_key)


def balance_as_of(transactions: Iterable[Transaction], day: date) -> Decimal:
    """End-of-day balance: signed sum of everything dated on or before day"""
    return sum((t.signed_amount for t in transactions if t.date <= day), ZERO)


def balance_before(transactions: Iterable[Transaction], day: date) -> Decimal:
    """Signed sum of everything dated strictly before day"""
    return sum((t.signed_amount for t in transactions if t.date < day), ZERO)


def first_negative_prefix(transactions: Iterable[Transaction]) -> Optional[Transaction]:
    """
    Walk the transactions in canonical order and return the one that first
    takes the running balance below zero, or None if the balance never does.
    """
    running = ZERO
    for transaction in canonical_order(transactions):
        running += transaction.signed_amount
        if running < ZERO:
            return transaction
    return None


@dataclass
class Account:
    """
    Ledger entity: one account and its transactions in canonical order.
    Instances are snapshots; AccountManager owns the stored state.
    """
    account_id: str
    opened_at: datetime
    transactions: List[Transaction] = field(default_factory=list)

    def __post_init__(self):
        self.transactions = canonical_order(self.transactions)

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    @property
    def balance(self) -> Decimal:
        return sum((t.signed_amount for t in self.transactions), ZERO)

    def balance_as_of(self, day: date) -> Decimal:
        return balance_as_of(self.transactions, day)

    def transactions_between(self, start: date, end: date) -> List[Transaction]:
        """Transactions dated within [start, end], in canonical order"""
        return [t for t in self.transactions if start <= t.date <= end]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Build a snapshot from the stored record; stored order is insertion order"""
        return cls(
            account_id=data['account_id'],
            opened_at=datetime.fromisoformat(data['opened_at']),
            transactions=[Transaction.from_dict(t) for t in data['transactions']],
        )


@dataclass(frozen=True)
class InterestRule:
    """Annual interest rate applying from effective_date until superseded"""
    effective_date: date
    rule_id: str
    rate_percent: Decimal  # e.g. Decimal('2.20') for 2.20%

    def to_dict(self) -> Dict[str, Any]:
        return {
            'effective_date': self.effective_date.isoformat(),
            'rule_id': self.rule_id,
            'rate_percent': str(self.rate_percent),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InterestRule':
        return cls(
            effective_date=date.fromisoformat(data['effective_date']),
            rule_id=data['rule_id'],
            rate_percent=Decimal(data['rate_percent']),
        )

    @property
    def key(self) -> str:
        return format_date(self.effective_date)
