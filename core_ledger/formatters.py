"""
Table Formatters

Fixed-width text tables for account listings, monthly statements and the
interest rule book. Ids wider than their column are printed in full.
"""

from decimal import Decimal
from typing import Iterable, List

from .models import Transaction, InterestRule
from .parsing import format_date


ACCOUNT_HEADER = "| Date     | Txn Id      | Type | Amount |"
STATEMENT_HEADER = "| Date     | Txn Id      | Type | Amount | Balance |"
RULES_HEADER = "| Date     | RuleId | Rate (%) |"


def _lines(lines: List[str]) -> str:
    return "".join(line + "\n" for line in lines)


def format_transaction_row(transaction: Transaction) -> str:
    return (
        f"| {format_date(transaction.date)} | {transaction.transaction_id:<12}"
        f"| {transaction.transaction_type.code}    | {transaction.amount:>6.2f} |"
    )


def format_statement_row(transaction: Transaction, balance: Decimal) -> str:
    return f"{format_transaction_row(transaction)} {balance:>7.2f} |"


def format_rule_row(rule: InterestRule) -> str:
    return f"| {format_date(rule.effective_date)} | {rule.rule_id:<6} | {rule.rate_percent:>8.2f} |"


def render_account(account_id: str, transactions: Iterable[Transaction]) -> str:
    """All transactions of an account, without balances"""
    lines = [f"Account: {account_id}", ACCOUNT_HEADER]
    lines.extend(format_transaction_row(t) for t in transactions)
    return _lines(lines)


def render_statement(account_id: str, opening_balance: Decimal,
                     transactions: Iterable[Transaction]) -> str:
    """Transactions of a period with the running balance after each one"""
    lines = [f"Account: {account_id}", STATEMENT_HEADER]
    running = opening_balance
    for transaction in transactions:
        running += transaction.signed_amount
        lines.append(format_statement_row(transaction, running))
    return _lines(lines)


def render_interest_rules(rules: Iterable[InterestRule]) -> str:
    lines = ["Interest rules:", RULES_HEADER]
    lines.extend(format_rule_row(rule) for rule in rules)
    return _lines(lines)
