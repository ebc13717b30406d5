"""
Interest Engine Module

Effective-dated interest rules and the monthly accrual calculation. A rule
applies from its effective date until a later-dated rule supersedes it.
Interest accrues on each day's end-of-day balance at the annual rate in force
that day; the month's sum is divided by the days in the year and rounded once.
"""

from decimal import Decimal
from datetime import date, timedelta
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import bisect
import calendar

from .models import InterestRule, Transaction, balance_as_of, canonical_order
from .parsing import ZERO, HUNDRED, round_money, parse_date, parse_rate, format_date
from .storage import StorageInterface
from .audit import AuditTrail, AuditEventType
from .results import Result, ErrorKind
from .logging_config import get_logger, log_action


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month, both inclusive"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def effective_rule(rules: Sequence[InterestRule], day: date) -> Optional[InterestRule]:
    """
    Rule with the greatest effective date on or before day

    Args:
        rules: Rules sorted ascending by effective date, one per date
        day: Day to look up
    """
    dates = [rule.effective_date for rule in rules]
    index = bisect.bisect_right(dates, day)
    if index == 0:
        return None
    return rules[index - 1]


@dataclass(frozen=True)
class MonthlyInterest:
    """Outcome of a month's accrual, computed without touching the ledger"""
    period_start: date
    period_end: date
    annualized_sum: Decimal  # Sum of eod_balance * rate / 100 over the days
    amount: Decimal          # annualized_sum / days_in_year, rounded to cents

    @property
    def is_creditable(self) -> bool:
        return self.amount > ZERO


def calculate_monthly_interest(
    transactions: Sequence[Transaction],
    rules: Sequence[InterestRule],
    year: int,
    month: int,
    days_in_year: int = 365
) -> MonthlyInterest:
    """
    Accrue interest over every day of a month.

    Intermediate daily amounts keep full Decimal precision; only the final
    monthly amount is rounded (half away from zero).

    Raises:
        ValueError: If the monthly amount cannot be represented in cents
            within the Decimal context precision
    """
    first, last = month_bounds(year, month)
    ordered = canonical_order(transactions)
    ordered_rules = sorted(rules, key=lambda r: r.effective_date)

    annualized_sum = ZERO
    day = first
    while day <= last:
        eod_balance = balance_as_of(ordered, day)
        rule = effective_rule(ordered_rules, day)
        rate = rule.rate_percent if rule else ZERO
        annualized_sum += eod_balance * rate / HUNDRED
        day += timedelta(days=1)

    amount = round_money(annualized_sum / Decimal(days_in_year))
    return MonthlyInterest(
        period_start=first,
        period_end=last,
        annualized_sum=annualized_sum,
        amount=amount
    )


class InterestRuleManager:
    """
    Validates and stores interest rules, keyed by effective date
    """

    def __init__(self, storage: StorageInterface, audit_trail: AuditTrail):
        self.storage = storage
        self.audit_trail = audit_trail
        self.rules_table = "interest_rules"
        self.logger = get_logger("core_ledger.interest")

    def upsert_rule(self, date_text: str, rule_id: str, rate_text: str) -> Result[InterestRule]:
        """
        Create or replace the rule effective on a date

        Args:
            date_text: Effective date as yyyyMMdd
            rule_id: Non-blank label
            rate_text: Annual rate in percent, 0 < rate < 100

        Returns:
            Result holding the stored InterestRule
        """
        try:
            effective_date = parse_date(date_text)
        except ValueError:
            return Result.failure(ErrorKind.INVALID_DATE)

        if not rule_id or not rule_id.strip():
            return Result.failure(ErrorKind.MISSING_RULE_ID)

        try:
            rate = parse_rate(rate_text)
        except ValueError:
            return Result.failure(ErrorKind.INVALID_RATE)

        rule = InterestRule(effective_date=effective_date, rule_id=rule_id, rate_percent=rate)

        with self.storage.atomic():
            replaced = self.storage.exists(self.rules_table, rule.key)
            self.storage.save(self.rules_table, rule.key, rule.to_dict())

        resource = f"interest_rule:{rule.key}"
        self.audit_trail.record(
            AuditEventType.INTEREST_RULE_UPSERTED, resource,
            rule_id=rule_id, rate_percent=rate, replaced=replaced
        )
        log_action(
            self.logger, "info", "Interest rule replaced" if replaced else "Interest rule created",
            action="upsert_interest_rule", resource=resource,
            extra={"rule_id": rule_id, "rate_percent": str(rate)}
        )

        return Result.success(rule)

    def list_rules(self) -> List[InterestRule]:
        """All rules ascending by effective date"""
        rules = [InterestRule.from_dict(data) for data in self.storage.load_all(self.rules_table)]
        rules.sort(key=lambda r: r.effective_date)
        return rules

    def rule_on(self, day: date) -> Optional[InterestRule]:
        """Rule in force on a day, None if no rule is effective yet"""
        return effective_rule(self.list_rules(), day)

    def get_rule(self, effective_date: date) -> Optional[InterestRule]:
        """Rule stored for exactly this effective date"""
        data = self.storage.load(self.rules_table, format_date(effective_date))
        if data is None:
            return None
        return InterestRule.from_dict(data)
