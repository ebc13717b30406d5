"""
Transaction Processing Module

Validates user-initiated deposits and withdrawals and admits them into an
account only if the account's running balance stays non-negative at every
point of its canonical order.
"""

from typing import Optional

from .accounts import AccountManager
from .audit import AuditTrail, AuditEventType, account_resource
from .models import Account, Transaction, TransactionType, first_negative_prefix
from .parsing import parse_date, parse_amount
from .results import Result, ErrorKind, InvalidTypeCodeError
from .logging_config import get_logger, log_action


class TransactionProcessor:
    """
    Validates and commits user transactions.

    Validation order: date, account id, amount, type code; then, under the
    account lock, the first-transaction rule, id allocation and the balance
    simulation. A transaction id consumed before a rejection is not returned
    to the sequence.
    """

    def __init__(
        self,
        account_manager: AccountManager,
        audit_trail: AuditTrail,
        strict_type_code: bool = False
    ):
        self.account_manager = account_manager
        self.audit_trail = audit_trail
        self.strict_type_code = strict_type_code
        self.logger = get_logger("core_ledger.transactions")

    def add_transaction(
        self,
        date_text: str,
        account_id: str,
        type_code: str,
        amount_text: str
    ) -> Result[Account]:
        """
        Add a user-initiated transaction

        Args:
            date_text: Transaction date as yyyyMMdd
            account_id: Account identifier; the account is created if unknown
            type_code: "D" (deposit) or "W" (withdrawal), case-insensitive
            amount_text: Positive amount with at most 2 decimals

        Returns:
            Result holding the updated Account snapshot

        Raises:
            InvalidTypeCodeError: Only in strict mode, for a code other than D/W
        """
        try:
            transaction_date = parse_date(date_text)
        except ValueError:
            return self._reject(ErrorKind.INVALID_DATE, account_id)

        if not account_id or not account_id.strip():
            return self._reject(ErrorKind.MISSING_ACCOUNT, account_id)

        try:
            amount = parse_amount(amount_text)
        except ValueError:
            return self._reject(ErrorKind.INVALID_AMOUNT, account_id)

        transaction_type = TransactionType.from_user_code(type_code)
        if transaction_type is None:
            if self.strict_type_code:
                raise InvalidTypeCodeError(type_code)
            return self._reject(ErrorKind.INVALID_TYPE_CODE, account_id)

        with self.account_manager.account_lock(account_id):
            account = self.account_manager.get_or_create(account_id)

            if account.is_empty and transaction_type == TransactionType.WITHDRAWAL:
                return self._reject(ErrorKind.FIRST_TRANSACTION_WITHDRAWAL, account_id)

            transaction_id = self.account_manager.next_transaction_id(transaction_date, account_id)
            candidate = Transaction(
                date=transaction_date,
                transaction_id=transaction_id,
                transaction_type=transaction_type,
                amount=amount
            )

            breach = first_negative_prefix(account.transactions + [candidate])
            if breach is not None:
                return self._reject(
                    ErrorKind.INSUFFICIENT_BALANCE, account_id,
                    transaction_id=transaction_id
                )

            account = self.account_manager.post_transaction(account_id, candidate)

        self.audit_trail.record(
            AuditEventType.TRANSACTION_POSTED, account_resource(account_id),
            transaction_id=candidate.transaction_id,
            date=candidate.date,
            transaction_type=candidate.transaction_type,
            amount=candidate.amount
        )
        log_action(
            self.logger, "info", f"Transaction posted: {candidate.transaction_type.name.lower()}",
            action="add_transaction", resource=account_resource(account_id),
            extra={
                "transaction_id": candidate.transaction_id,
                "amount": str(candidate.amount),
                "balance": str(account.balance)
            }
        )

        return Result.success(account)

    def _reject(
        self,
        kind: ErrorKind,
        account_id: Optional[str],
        transaction_id: Optional[str] = None
    ) -> Result[Account]:
        """Record and return a rejected transaction request"""
        extra = {"reason": kind.code}
        if transaction_id:
            extra["transaction_id"] = transaction_id

        log_action(
            self.logger, "warning", f"Transaction rejected: {kind.message}",
            action="add_transaction", resource=account_resource(account_id),
            extra=extra
        )

        # Only requests that reached a real account are journaled
        if account_id and self.account_manager.exists(account_id):
            self.audit_trail.record(
                AuditEventType.TRANSACTION_REJECTED, account_resource(account_id), **extra
            )

        return Result.failure(kind)
