"""
Operation Results Module

Every ledger operation reports validation and lookup failures as a Result
carrying an ErrorKind instead of raising. The one historical exception,
a malformed transaction type code, is kept available as InvalidTypeCodeError
for callers that opt into strict mode.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar
from enum import Enum


T = TypeVar("T")


class ErrorKind(Enum):
    """Kinds of ledger errors with their default user-facing message"""
    INVALID_DATE = ("invalid_date", "Date must be in YYYYMMdd")
    INVALID_MONTH = ("invalid_month", "Month must be YYYYMM")
    MISSING_ACCOUNT = ("missing_account", "Account is required")
    MISSING_RULE_ID = ("missing_rule_id", "RuleId is required")
    INVALID_AMOUNT = ("invalid_amount", "Amount must be > 0 with up to 2 decimals")
    INVALID_RATE = ("invalid_rate", "Rate must be > 0 and < 100")
    INVALID_TYPE_CODE = ("invalid_type_code", "Type must be D or W")
    AMOUNT_OUT_OF_RANGE = ("amount_out_of_range", "Amount exceeds supported precision")
    FIRST_TRANSACTION_WITHDRAWAL = ("first_transaction_withdrawal", "First transaction cannot be withdrawal")
    INSUFFICIENT_BALANCE = ("insufficient_balance", "Balance cannot go below 0")
    ACCOUNT_NOT_FOUND = ("account_not_found", "Account not found")

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message


class InvalidTypeCodeError(ValueError):
    """Raised in strict mode when a transaction type code is not D or W"""

    def __init__(self, type_code: str):
        super().__init__(ErrorKind.INVALID_TYPE_CODE.message)
        self.type_code = type_code


@dataclass(frozen=True)
class LedgerError:
    """An error kind plus the message shown to the caller"""
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a ledger operation: either a value or a LedgerError"""
    value: Optional[T] = None
    error: Optional[LedgerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None) -> 'Result[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: Optional[str] = None) -> 'Result[T]':
        return cls(error=LedgerError(kind, message or kind.message))

    def unwrap(self) -> T:
        """Return the value, raising ValueError if the operation failed"""
        if self.error is not None:
            raise ValueError(self.error.message)
        return self.value
