from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from fintrack.achievements import Achievement, evaluate_achievements
from fintrack.aggregation import (
    CategorySpending,
    MonthlyTotals,
    MonthlyTrend,
    SpendingStatus,
    compute_balance,
    compute_category_breakdown,
    compute_level,
    compute_monthly_totals,
    compute_monthly_trends,
    compute_savings_rate,
    compute_streak,
    compute_totals,
    daily_average,
    filter_by_period,
    recent_transactions,
    spending_status,
)
from fintrack.config import Settings
from fintrack.domain import Goal, Transaction
from fintrack.money import ZERO
from fintrack.periods import first_day_of_month, period_start


@dataclass(frozen=True)
class FinancialSnapshot:
    """Everything the dashboard shows, derived from the records at ``as_of``."""

    as_of: datetime
    balance: Decimal
    monthly: MonthlyTotals
    savings_rate: float
    category_breakdown: Tuple[CategorySpending, ...]
    monthly_trends: Tuple[MonthlyTrend, ...]
    streak: int
    level: int
    achievements: Tuple[Achievement, ...]
    transaction_count: int
    recent_transactions: Tuple[Transaction, ...]
    active_goals: Tuple[Goal, ...]
    total_saved: Decimal
    monthly_budget: Decimal
    spending: SpendingStatus
    daily_average: Decimal

    @property
    def monthly_income(self) -> Decimal:
        return self.monthly.income

    @property
    def monthly_expenses(self) -> Decimal:
        return self.monthly.expense

    @property
    def net(self) -> Decimal:
        return self.monthly.net


@dataclass(frozen=True)
class AnalyticsReport:
    period: str
    start: datetime
    totals: MonthlyTotals
    savings_rate: float
    category_breakdown: Tuple[CategorySpending, ...]
    monthly_trends: Tuple[MonthlyTrend, ...]


def build_snapshot(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal] = (),
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> FinancialSnapshot:
    now = now or datetime.now()
    settings = settings or Settings()
    transactions = tuple(transactions)
    goals = tuple(goals)

    balance = compute_balance(transactions)
    monthly = compute_monthly_totals(transactions, now)
    streak = compute_streak(transactions, now)

    return FinancialSnapshot(
        as_of=now,
        balance=balance,
        monthly=monthly,
        savings_rate=compute_savings_rate(monthly.income, monthly.expense),
        category_breakdown=tuple(compute_category_breakdown(transactions, first_day_of_month(now))),
        monthly_trends=tuple(compute_monthly_trends(transactions)),
        streak=streak,
        level=compute_level(len(transactions), settings.level_divisor),
        achievements=tuple(evaluate_achievements(streak, len(transactions), balance, settings)),
        transaction_count=len(transactions),
        recent_transactions=tuple(recent_transactions(transactions, 5)),
        active_goals=tuple(g for g in goals if not g.is_achieved),
        total_saved=sum((g.current for g in goals), ZERO),
        monthly_budget=settings.monthly_budget,
        spending=spending_status(monthly.expense, settings.monthly_budget),
        daily_average=daily_average(monthly.expense, now),
    )


def build_analytics(transactions: Iterable[Transaction], period: str, now: Optional[datetime] = None) -> AnalyticsReport:
    now = now or datetime.now()
    filtered: List[Transaction] = filter_by_period(transactions, period, now)
    totals = compute_totals(filtered)

    return AnalyticsReport(
        period=period,
        start=period_start(period, now),
        totals=totals,
        savings_rate=compute_savings_rate(totals.income, totals.expense),
        category_breakdown=tuple(compute_category_breakdown(filtered)),
        monthly_trends=tuple(compute_monthly_trends(filtered)),
    )


def advisor_summary(snapshot: FinancialSnapshot, goals: Iterable[Goal]) -> dict:
    return {
        "balance": snapshot.balance,
        "monthly_income": snapshot.monthly_income,
        "monthly_expenses": snapshot.monthly_expenses,
        "savings_rate": snapshot.savings_rate,
        "goals": [g.title for g in goals],
    }
