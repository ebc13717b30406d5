"""
Statement Engine Module

Account listings and monthly statements. Printing a monthly statement CREDITS
the month's interest to the account as an Interest transaction dated the last
day of the month whenever the computed amount is positive. The operation is
not idempotent: each call recomputes on the current ledger, which already
includes earlier credits, and credits again if the result is still positive.
"""

from typing import Optional

from .accounts import AccountManager
from .audit import AuditTrail, AuditEventType, account_resource
from .formatters import render_account, render_statement
from .interest import InterestRuleManager, MonthlyInterest, calculate_monthly_interest, month_bounds
from .models import Account, Transaction, TransactionType, balance_before
from .parsing import parse_year_month
from .results import Result, ErrorKind
from .logging_config import get_logger, log_action


class StatementEngine:
    """
    Renders statements and posts month-end interest
    """

    def __init__(
        self,
        account_manager: AccountManager,
        rule_manager: InterestRuleManager,
        audit_trail: AuditTrail,
        days_in_year: int = 365
    ):
        self.account_manager = account_manager
        self.rule_manager = rule_manager
        self.audit_trail = audit_trail
        self.days_in_year = days_in_year
        self.logger = get_logger("core_ledger.statements")

    def print_account_all(self, account_id: str) -> Result[str]:
        """Every transaction of the account in canonical order, no balances"""
        account = self.account_manager.get_account(account_id)
        if account is None:
            return Result.failure(ErrorKind.ACCOUNT_NOT_FOUND)
        return Result.success(render_account(account.account_id, account.transactions))

    def compute_monthly_interest(self, account: Account, year: int, month: int) -> MonthlyInterest:
        """Pure phase: the interest the month would credit, ledger untouched"""
        return calculate_monthly_interest(
            account.transactions,
            self.rule_manager.list_rules(),
            year,
            month,
            days_in_year=self.days_in_year
        )

    def credit_interest(self, account_id: str, interest: MonthlyInterest) -> Optional[Account]:
        """
        Effectful phase: post the interest if positive

        Returns:
            The updated account, or None when nothing was credited
        """
        if not interest.is_creditable:
            return None

        credit = Transaction(
            date=interest.period_end,
            transaction_id="",
            transaction_type=TransactionType.INTEREST,
            amount=interest.amount
        )
        account = self.account_manager.post_transaction(account_id, credit)

        self.audit_trail.record(
            AuditEventType.INTEREST_POSTED, account_resource(account_id),
            date=interest.period_end,
            amount=interest.amount,
            annualized_sum=interest.annualized_sum
        )
        log_action(
            self.logger, "info", "Interest credited",
            action="credit_interest", resource=account_resource(account_id),
            extra={"date": interest.period_end.isoformat(), "amount": str(interest.amount)}
        )
        return account

    def print_monthly(self, account_id: str, year_month_text: str) -> Result[str]:
        """
        Monthly statement for a yyyyMM period

        Computes and credits the month's interest first, then renders the
        month's transactions (the credit included) with running balances
        starting from the balance at the end of the previous month.
        """
        try:
            year, month = parse_year_month(year_month_text)
        except ValueError:
            return Result.failure(ErrorKind.INVALID_MONTH)

        if not self.account_manager.exists(account_id):
            return Result.failure(ErrorKind.ACCOUNT_NOT_FOUND)

        first, last = month_bounds(year, month)

        with self.account_manager.account_lock(account_id):
            account = self.account_manager.get_account(account_id)
            try:
                interest = self.compute_monthly_interest(account, year, month)
            except ValueError:
                log_action(
                    self.logger, "warning", "Interest exceeds supported precision",
                    action="print_monthly", resource=account_resource(account_id),
                    extra={"period": year_month_text}
                )
                return Result.failure(ErrorKind.AMOUNT_OUT_OF_RANGE)

            credited = self.credit_interest(account_id, interest)
            if credited is not None:
                account = credited

        opening_balance = balance_before(account.transactions, first)
        output = render_statement(
            account.account_id,
            opening_balance,
            account.transactions_between(first, last)
        )

        self.audit_trail.record(
            AuditEventType.STATEMENT_GENERATED, account_resource(account_id),
            period=year_month_text, interest=interest.amount
        )

        return Result.success(output)
