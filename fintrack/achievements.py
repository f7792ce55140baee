"""Achievement rules evaluated against the derived metrics."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from fintrack.config import Settings
from fintrack.domain import Goal
from fintrack.money import ZERO, percentage

MILESTONES = (25, 50, 75, 100)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    progress: Decimal
    max_progress: Decimal

    @property
    def fraction(self) -> float:
        if self.max_progress == 0:
            return 0.0
        return float(self.progress / self.max_progress)


@dataclass(frozen=True)
class Milestone:
    threshold: int
    reached: bool


def _rule(id, title, description, icon, value, target) -> Achievement:
    value = Decimal(value)
    target = Decimal(target)
    return Achievement(
        id=id,
        title=title,
        description=description,
        icon=icon,
        unlocked=value >= target,
        progress=max(ZERO, min(value, target)),
        max_progress=target,
    )


def streak_achievement(streak: int, target: int = 7) -> Achievement:
    return _rule(
        "streak", "Saving Streak", f"Track expenses for {target} days straight",
        "flame", streak, target,
    )


def volume_achievement(transaction_count: int, target: int = 50) -> Achievement:
    return _rule(
        "volume", "Transaction Master", f"Record {target} transactions",
        "trophy", transaction_count, target,
    )


def emergency_fund_achievement(balance: Decimal, target: Decimal = Decimal("1000")) -> Achievement:
    return _rule(
        "emergency-fund", "Emergency Fund", f"Save ${target:,.0f}",
        "star", balance, target,
    )


def evaluate_achievements(
    streak: int,
    transaction_count: int,
    balance: Decimal,
    settings: Optional[Settings] = None,
) -> List[Achievement]:
    settings = settings or Settings()
    return [
        streak_achievement(streak, settings.streak_target),
        volume_achievement(transaction_count, settings.transaction_target),
        emergency_fund_achievement(balance, settings.emergency_fund_target),
    ]


def goal_milestones(goal: Goal) -> List[Milestone]:
    progress = percentage(goal.current, goal.target)
    return [Milestone(threshold=m, reached=progress >= m) for m in MILESTONES]
