"""Form-level rules for goals and transactions.

Validators collect every failing field and return ``Left({field: message})``,
or ``Right(cleaned)`` with trimmed strings and parsed numbers/dates.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping

from fintrack.domain import GOAL_CATEGORIES, TransactionType, parse_datetime
from fintrack.errors import FintrackError
from fintrack.functional import Either, Left, Right
from fintrack.money import to_money

GOAL_FIELDS = ("title", "description", "target", "category", "deadline")

MAX_GOAL_TARGET = Decimal("1000000")


def _check_title(value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError("Goal title is required")
    if len(text) < 2:
        raise ValueError("Title must be at least 2 characters")
    if len(text) > 50:
        raise ValueError("Title must be less than 50 characters")
    return text


def _check_description(value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError("Description is required")
    if len(text) < 10:
        raise ValueError("Description must be at least 10 characters")
    if len(text) > 200:
        raise ValueError("Description must be less than 200 characters")
    return text


def _check_target(value: Any, max_target: Decimal) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("Target amount is required")
    try:
        target = to_money(value)
    except (TypeError, ValueError):
        raise ValueError("Target must be a valid number greater than 0") from None
    if target <= 0:
        raise ValueError("Target must be a valid number greater than 0")
    if target > max_target:
        raise ValueError(f"Target must be less than ${max_target:,.0f}")
    return target


def _check_category(value: Any) -> str:
    if not value:
        raise ValueError("Please select a category")
    if value not in GOAL_CATEGORIES:
        raise ValueError("Please select a valid category")
    return value


def _check_deadline(value: Any, now: datetime) -> datetime:
    if value is None or value == "":
        raise ValueError("Target date is required")
    try:
        deadline = parse_datetime(value, "deadline")
    except FintrackError:
        raise ValueError("Target date is not a valid date") from None
    if deadline <= now:
        raise ValueError("Deadline must be in the future")
    return deadline


def validate_goal_data(
    data: Mapping[str, Any],
    now: datetime,
    partial: bool = False,
    max_target: Decimal = MAX_GOAL_TARGET,
) -> Either[Dict[str, str], Dict[str, Any]]:
    """Validate goal form fields.

    With ``partial=True`` only the fields present in ``data`` are checked,
    which is how updates are validated.
    """
    checks = {
        "title": _check_title,
        "description": _check_description,
        "target": lambda v: _check_target(v, max_target),
        "category": _check_category,
        "deadline": lambda v: _check_deadline(v, now),
    }
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}
    for name, check in checks.items():
        if partial and name not in data:
            continue
        try:
            cleaned[name] = check(data.get(name))
        except ValueError as e:
            errors[name] = str(e)

    if errors:
        return Left(errors)
    return Right(cleaned)


def validate_transaction_data(data: Mapping[str, Any]) -> Either[Dict[str, str], Dict[str, Any]]:
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    try:
        amount = to_money(data.get("amount"))
        if amount <= 0:
            raise ValueError
        cleaned["amount"] = amount
    except (TypeError, ValueError):
        errors["amount"] = "Please enter a valid amount"

    description = str(data.get("description") or "").strip()
    if not description:
        errors["description"] = "Please enter a description"
    cleaned["description"] = description

    category = str(data.get("category") or "").strip()
    if not category:
        errors["category"] = "Please select a category"
    cleaned["category"] = category

    try:
        cleaned["type"] = TransactionType(data.get("type", TransactionType.EXPENSE))
    except ValueError:
        errors["type"] = "Please choose income or expense"

    if data.get("timestamp") is not None:
        try:
            cleaned["timestamp"] = parse_datetime(data["timestamp"], "timestamp")
        except FintrackError:
            errors["timestamp"] = "Please enter a valid date"

    if errors:
        return Left(errors)
    return Right(cleaned)
