from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fintrack.domain import (
    Goal,
    TransactionType,
    goal_to_dict,
    parse_datetime,
    parse_goal,
    parse_transaction,
    transaction_to_dict,
)
from fintrack.errors import InvalidAmount, ValidationError


def raw_tx(**overrides):
    data = {
        "id": "t1",
        "amount": "42.10",
        "description": "Groceries",
        "category": "Food & Dining",
        "type": "expense",
        "timestamp": "2026-10-18T09:30:00",
    }
    data.update(overrides)
    return data


def test_parse_transaction():
    t = parse_transaction(raw_tx())
    assert t.amount == Decimal("42.10")
    assert t.type is TransactionType.EXPENSE
    assert t.signed_amount == Decimal("-42.10")
    assert transaction_to_dict(t) == raw_tx()


@pytest.mark.parametrize("amount", [0, -5, "abc", None])
def test_parse_transaction_rejects_bad_amount(amount):
    with pytest.raises(InvalidAmount):
        parse_transaction(raw_tx(amount=amount))


def test_parse_transaction_rejects_unknown_type_and_blank_text():
    with pytest.raises(ValidationError) as exc:
        parse_transaction(raw_tx(type="transfer"))
    assert exc.value.fields == ("type",)

    with pytest.raises(ValidationError):
        parse_transaction(raw_tx(description="  "))


def test_parse_datetime_normalizes_utc_to_local_naive():
    parsed = parse_datetime("2026-10-18T09:30:00Z", "timestamp")
    expected = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert parsed == expected
    assert parsed.tzinfo is None

    with pytest.raises(ValidationError):
        parse_datetime("yesterday", "timestamp")


def test_parse_datetime_normalizes_aware_datetime_objects():
    aware = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
    parsed = parse_datetime(aware, "deadline")

    assert parsed.tzinfo is None
    assert parsed == aware.astimezone().replace(tzinfo=None)
    assert parse_datetime(datetime(2026, 10, 18), "deadline") == datetime(2026, 10, 18)


def test_goal_dict_uses_stored_field_names():
    goal = Goal(
        id="g1",
        title="Trip",
        description="Summer in Lisbon",
        target=Decimal("2000"),
        current=Decimal("150"),
        deadline=datetime(2027, 6, 1),
        category="travel",
        icon="plane",
        color="green",
        is_achieved=False,
        created_at=datetime(2026, 9, 1),
        updated_at=datetime(2026, 9, 2),
    )
    data = goal_to_dict(goal)

    assert data["isAchieved"] is False
    assert data["createdAt"] == "2026-09-01T00:00:00"
    assert parse_goal(data) == goal


def test_parse_goal_defaults_updated_at_to_created_at():
    goal = parse_goal({
        "id": "g2",
        "title": "Car",
        "target": 5000,
        "deadline": "2027-01-01",
        "createdAt": "2026-05-01T00:00:00",
    })
    assert goal.current == Decimal("0")
    assert goal.updated_at == goal.created_at
    assert goal.category == "other"
