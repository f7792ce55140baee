"""Savings goals: create/update/delete, deposits, and progress helpers."""

import logging
import math
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Tuple

from fintrack.config import Settings
from fintrack.domain import GOAL_CATEGORIES, Goal, new_id, parse_amount
from fintrack.errors import InvalidAmount, NotFound, ValidationError
from fintrack.events import SAVINGS_GOALS_UPDATED, EventBus
from fintrack.functional import Maybe, Nothing, Some
from fintrack.money import ZERO, percentage
from fintrack.storage import GoalRepository
from fintrack.transforms import append_goal, remove_goal, replace_goal
from fintrack.validation import GOAL_FIELDS, validate_goal_data

logger = logging.getLogger(__name__)

# fields update_goal accepts beyond the validated form fields
EXTRA_UPDATE_FIELDS = ("current", "is_achieved", "icon", "color")


def goal_progress(goal: Goal) -> float:
    """Percentage of target reached; exceeds 100 when a goal is over-funded."""
    return percentage(goal.current, goal.target)


def days_remaining(goal: Goal, now: datetime) -> int:
    return math.ceil((goal.deadline - now).total_seconds() / 86400)


def goal_status(goal: Goal, now: datetime) -> str:
    if goal.is_achieved or goal.current >= goal.target:
        return "completed"
    days = days_remaining(goal, now)
    if days < 0:
        return "overdue"
    if days <= 30:
        return "urgent"
    return "active"


class GoalLedger:

    def __init__(
        self,
        repository: GoalRepository,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.bus = bus
        self.settings = settings or Settings()
        self.clock = clock

    def goals(self) -> Tuple[Goal, ...]:
        return self.repository.all()

    def find(self, goal_id: str) -> Maybe[Goal]:
        for goal in self.goals():
            if goal.id == goal_id:
                return Some(goal)
        return Nothing()

    def get(self, goal_id: str) -> Goal:
        return self.find(goal_id).get_or_raise(NotFound("Goal", goal_id))

    def _commit(self, goals: Tuple[Goal, ...], action: str, goal_id: str) -> None:
        self.repository.save(goals)
        logger.info("goal %s %s", goal_id, action)
        if self.bus is not None:
            self.bus.publish(SAVINGS_GOALS_UPDATED, {"action": action, "goal_id": goal_id, "goals": goals})

    def create_goal(self, data: Mapping[str, Any], now: Optional[datetime] = None) -> Goal:
        now = now or self.clock()
        result = validate_goal_data(data, now, max_target=self.settings.max_goal_target)
        if result.is_left():
            raise ValidationError(result.get_error())

        fields = result.get_or_else({})
        category = GOAL_CATEGORIES[fields["category"]]
        goal = Goal(
            id=new_id(),
            title=fields["title"],
            description=fields["description"],
            target=fields["target"],
            current=ZERO,
            deadline=fields["deadline"],
            category=category.value,
            icon=data.get("icon") or category.icon,
            color=data.get("color") or category.color,
            is_achieved=False,
            created_at=now,
            updated_at=now,
        )
        self._commit(append_goal(self.goals(), goal), "created", goal.id)
        return goal

    def update_goal(self, goal_id: str, updates: Mapping[str, Any], now: Optional[datetime] = None) -> Goal:
        now = now or self.clock()
        goal = self.get(goal_id)

        unknown = [k for k in updates if k not in GOAL_FIELDS + EXTRA_UPDATE_FIELDS]
        if unknown:
            raise ValidationError({k: "Unknown goal field" for k in unknown})

        result = validate_goal_data(updates, now, partial=True, max_target=self.settings.max_goal_target)
        if result.is_left():
            raise ValidationError(result.get_error())
        changes = dict(result.get_or_else({}))

        if "current" in updates:
            changes["current"] = parse_amount(updates["current"], "current", allow_zero=True)
        if "is_achieved" in updates:
            if not isinstance(updates["is_achieved"], bool):
                raise ValidationError({"is_achieved": "is_achieved must be true or false"})
            changes["is_achieved"] = updates["is_achieved"]
        for key in ("icon", "color"):
            if key in updates:
                changes[key] = str(updates[key])

        updated = replace(goal, **changes, updated_at=now)
        self._commit(replace_goal(self.goals(), updated), "updated", goal_id)
        return updated

    def delete_goal(self, goal_id: str) -> bool:
        """Remove a goal. Unknown ids are ignored; returns whether anything was removed."""
        goals = self.goals()
        remaining = remove_goal(goals, goal_id)
        if len(remaining) == len(goals):
            logger.debug("delete of unknown goal %s ignored", goal_id)
            return False
        self._commit(remaining, "deleted", goal_id)
        return True

    def add_money(self, goal_id: str, amount: Any, now: Optional[datetime] = None) -> Goal:
        now = now or self.clock()
        value = parse_amount(amount)
        if value > self.settings.max_deposit:
            raise InvalidAmount(f"Amount cannot exceed ${self.settings.max_deposit:,.0f}", amount)

        goal = self.get(goal_id)
        current = goal.current + value
        updated = replace(
            goal,
            current=current,
            is_achieved=goal.is_achieved or current >= goal.target,
            updated_at=now,
        )
        self._commit(replace_goal(self.goals(), updated), f"funded with {value}", goal_id)
        return updated

    def mark_achieved(self, goal_id: str, now: Optional[datetime] = None) -> Goal:
        goal = self.get(goal_id)
        updated = replace(goal, is_achieved=True, updated_at=now or self.clock())
        self._commit(replace_goal(self.goals(), updated), "marked achieved", goal_id)
        return updated

    def get_total_saved(self) -> Decimal:
        return sum((g.current for g in self.goals()), ZERO)

    def get_active_goals_count(self) -> int:
        return sum(1 for g in self.goals() if not g.is_achieved)

