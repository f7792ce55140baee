"""Derived metrics over an unordered collection of transactions.

Every function here is pure: the same records and the same ``now`` give the
same result, and input order never matters.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from functools import reduce
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from fintrack.domain import Transaction, TransactionType
from fintrack.filters import all_of, by_type, since
from fintrack.money import ZERO, percentage
from fintrack.periods import first_day_of_month, month_label, period_start


@dataclass(frozen=True)
class MonthlyTotals:
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class CategorySpending:
    category: str
    amount: Decimal
    percentage: float
    transactions: int


@dataclass(frozen=True)
class MonthlyTrend:
    month: str          # e.g. "Oct 2026"
    year: int
    month_number: int
    income: Decimal
    expense: Decimal

    @property
    def savings(self) -> Decimal:
        return self.income - self.expense

    @property
    def savings_rate(self) -> float:
        return compute_savings_rate(self.income, self.expense)


@dataclass(frozen=True)
class SpendingStatus:
    status: str         # good | warning | danger
    message: str
    description: str
    spent_percentage: float
    remaining: Decimal


def iter_transactions(trans: Iterable[Transaction], pred) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def _sum_amounts(trans: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in trans), ZERO)


def compute_balance(transactions: Iterable[Transaction]) -> Decimal:
    return reduce(lambda acc, t: acc + t.signed_amount, transactions, ZERO)


def compute_totals(transactions: Iterable[Transaction]) -> MonthlyTotals:
    income = ZERO
    expense = ZERO
    for t in transactions:
        if t.is_income:
            income += t.amount
        else:
            expense += t.amount
    return MonthlyTotals(income=income, expense=expense)


def compute_monthly_totals(transactions: Iterable[Transaction], now: datetime) -> MonthlyTotals:
    return compute_totals(iter_transactions(transactions, since(first_day_of_month(now))))


def compute_savings_rate(income: Decimal, expense: Decimal) -> float:
    if income == 0:
        return 0.0
    return percentage(income - expense, income)


def compute_category_breakdown(
    transactions: Iterable[Transaction],
    window_start: Optional[datetime] = None,
) -> List[CategorySpending]:
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[str, int] = defaultdict(int)

    pred = by_type(TransactionType.EXPENSE)
    if window_start is not None:
        pred = all_of(pred, since(window_start))

    for t in iter_transactions(transactions, pred):
        totals[t.category] += t.amount
        counts[t.category] += 1

    total_expense = sum(totals.values(), ZERO)
    rows = [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=percentage(amount, total_expense),
            transactions=counts[category],
        )
        for category, amount in totals.items()
    ]
    rows.sort(key=lambda row: row.amount, reverse=True)
    return rows


def compute_monthly_trends(transactions: Iterable[Transaction]) -> List[MonthlyTrend]:
    buckets: Dict[Tuple[int, int], Dict[str, Decimal]] = defaultdict(
        lambda: {"income": ZERO, "expense": ZERO}
    )
    for t in transactions:
        key = (t.timestamp.year, t.timestamp.month)
        buckets[key][t.type.value] += t.amount

    return [
        MonthlyTrend(
            month=month_label(datetime(year, month, 1)),
            year=year,
            month_number=month,
            income=values["income"],
            expense=values["expense"],
        )
        for (year, month), values in sorted(buckets.items())
    ]


def compute_streak(transactions: Iterable[Transaction], now: datetime) -> int:
    """Count consecutive calendar days with at least one transaction, walking back from today.

    An empty today does not break the chain; counting then starts at yesterday.
    """
    active_days = {t.timestamp.date() for t in transactions}
    today = now.date()
    day = today if today in active_days else today - timedelta(days=1)

    streak = 0
    while day in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_level(transaction_count: int, divisor: int = 10) -> int:
    if divisor <= 0:
        raise ValueError("level divisor must be positive")
    return max(1, transaction_count // divisor)


def filter_by_period(transactions: Iterable[Transaction], period: str, now: datetime) -> List[Transaction]:
    return list(iter_transactions(transactions, since(period_start(period, now))))


def recent_transactions(transactions: Iterable[Transaction], limit: int = 5) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.timestamp, reverse=True)[: max(0, limit)]


def spending_status(spent: Decimal, budget: Decimal) -> SpendingStatus:
    if budget > 0:
        spent_pct = percentage(spent, budget)
    else:
        spent_pct = 100.0 if spent > 0 else 0.0

    if spent_pct <= 60:
        status, message, description = "good", "Great progress", "You're staying within budget"
    elif spent_pct <= 85:
        status, message, description = "warning", "Budget alert", "Consider monitoring your spending"
    else:
        status, message, description = "danger", "Over budget", "You've exceeded your monthly limit"

    return SpendingStatus(
        status=status,
        message=message,
        description=description,
        spent_percentage=spent_pct,
        remaining=budget - spent,
    )


def daily_average(spent: Decimal, now: datetime) -> Decimal:
    return spent / now.day
