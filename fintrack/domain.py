import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from fintrack.errors import InvalidAmount, ValidationError
from fintrack.money import to_money


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


EXPENSE_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Other",
)

INCOME_CATEGORIES = ("Salary", "Freelance", "Investment", "Gift", "Other")


@dataclass(frozen=True)
class GoalCategory:
    value: str
    label: str
    icon: str
    color: str


GOAL_CATEGORIES = {
    c.value: c
    for c in (
        GoalCategory("transport", "Transportation", "car", "primary"),
        GoalCategory("housing", "Housing", "home", "success"),
        GoalCategory("travel", "Travel", "plane", "secondary"),
        GoalCategory("education", "Education", "graduation-cap", "accent"),
        GoalCategory("wedding", "Wedding", "heart", "warning"),
        GoalCategory("gifts", "Gifts", "gift", "gold"),
        GoalCategory("emergency", "Emergency", "target", "destructive"),
        GoalCategory("technology", "Technology", "smartphone", "blue"),
        GoalCategory("entertainment", "Entertainment", "gamepad", "purple"),
        GoalCategory("other", "Other", "coffee", "gray"),
    )
}


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal       # magnitude, sign comes from type
    description: str
    category: str
    type: TransactionType
    timestamp: datetime

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_income else -self.amount


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    description: str
    target: Decimal
    current: Decimal
    deadline: datetime
    category: str
    icon: str
    color: str
    is_achieved: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserProfile:
    name: str = ""
    email: str = ""
    avatar: str = ""
    balance: Decimal = Decimal("0")   # cache only, transactions are the source of truth
    extra: dict = field(default_factory=dict)


def new_id() -> str:
    return uuid.uuid4().hex


def _local_naive(moment: datetime) -> datetime:
    # records are compared as local naive datetimes
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return _local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError({field_name: f"Invalid date: {value!r}"}) from None
        return _local_naive(parsed)
    raise ValidationError({field_name: f"{field_name} is required"})


def parse_amount(value: Any, field_name: str = "amount", allow_zero: bool = False) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidAmount(f"{field_name} is required", value, field=field_name)
    try:
        amount = to_money(value)
    except (TypeError, ValueError):
        raise InvalidAmount(f"{field_name} must be a number", value, field=field_name) from None
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(f"{field_name} must be greater than 0", value, field=field_name)
    return amount


def _required_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError({key: f"{key} is required"})
    return value.strip()


def parse_transaction_type(value: Any) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError({"type": f"type must be 'income' or 'expense', got {value!r}"}) from None


def parse_transaction(data: Mapping[str, Any]) -> Transaction:
    """Build a Transaction from an untrusted mapping, rejecting malformed fields."""

    return Transaction(
        id=str(data.get("id") or new_id()),
        amount=parse_amount(data.get("amount")),
        description=_required_text(data, "description"),
        category=_required_text(data, "category"),
        type=parse_transaction_type(data.get("type")),
        timestamp=parse_datetime(data.get("timestamp"), "timestamp"),
    )


def parse_goal(data: Mapping[str, Any]) -> Goal:
    """Build a Goal from stored data. Form-level rules live in ``fintrack.validation``."""

    goal_id = data.get("id")
    if not goal_id:
        raise ValidationError({"id": "id is required"})
    created_at = parse_datetime(data.get("createdAt"), "createdAt")
    return Goal(
        id=str(goal_id),
        title=_required_text(data, "title"),
        description=str(data.get("description") or ""),
        target=parse_amount(data.get("target"), "target"),
        current=parse_amount(data.get("current", 0), "current", allow_zero=True),
        deadline=parse_datetime(data.get("deadline"), "deadline"),
        category=str(data.get("category") or "other"),
        icon=str(data.get("icon") or ""),
        color=str(data.get("color") or ""),
        is_achieved=bool(data.get("isAchieved", False)),
        created_at=created_at,
        updated_at=parse_datetime(data.get("updatedAt") or created_at, "updatedAt"),
    )


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "amount": str(t.amount),
        "description": t.description,
        "category": t.category,
        "type": t.type.value,
        "timestamp": t.timestamp.isoformat(),
    }


def goal_to_dict(g: Goal) -> dict:
    return {
        "id": g.id,
        "title": g.title,
        "description": g.description,
        "target": str(g.target),
        "current": str(g.current),
        "deadline": g.deadline.isoformat(),
        "category": g.category,
        "icon": g.icon,
        "color": g.color,
        "isAchieved": g.is_achieved,
        "createdAt": g.created_at.isoformat(),
        "updatedAt": g.updated_at.isoformat(),
    }


def parse_profile(data: Mapping[str, Any]) -> UserProfile:
    known = {"name", "email", "avatar", "balance"}
    try:
        balance = to_money(data.get("balance", 0) or 0)
    except (TypeError, ValueError):
        balance = Decimal("0")
    return UserProfile(
        name=str(data.get("name") or ""),
        email=str(data.get("email") or ""),
        avatar=str(data.get("avatar") or ""),
        balance=balance,
        extra={k: v for k, v in data.items() if k not in known},
    )


def profile_to_dict(p: UserProfile) -> dict:
    return {
        **p.extra,
        "name": p.name,
        "email": p.email,
        "avatar": p.avatar,
        "balance": str(p.balance),
    }


def goal_category(value: str) -> GoalCategory:
    """Category metadata for a stored tag; unknown tags display as "other"."""
    return GOAL_CATEGORIES.get(value, GOAL_CATEGORIES["other"])
