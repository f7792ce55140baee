from datetime import datetime, timedelta
from decimal import Decimal

from fintrack.domain import TransactionType
from fintrack.validation import validate_goal_data, validate_transaction_data

NOW = datetime(2026, 10, 19, 12, 0)


def goal_form(**overrides):
    data = {
        "title": "  Trip to Lisbon ",
        "description": "Flights and hostel for a week",
        "target": "1500",
        "category": "travel",
        "deadline": NOW + timedelta(days=90),
    }
    data.update(overrides)
    return data


def test_valid_goal_is_cleaned():
    result = validate_goal_data(goal_form(), NOW)
    assert result.is_right()
    cleaned = result.get_or_else({})
    assert cleaned["title"] == "Trip to Lisbon"
    assert cleaned["target"] == Decimal("1500")
    assert cleaned["deadline"] == NOW + timedelta(days=90)


def test_title_length_limits():
    assert validate_goal_data(goal_form(title="A"), NOW).get_error() == {
        "title": "Title must be at least 2 characters"
    }
    assert "title" in validate_goal_data(goal_form(title="x" * 51), NOW).get_error()
    assert validate_goal_data(goal_form(title="x" * 50), NOW).is_right()
    assert validate_goal_data(goal_form(title="   "), NOW).get_error()["title"] == "Goal title is required"


def test_description_length_limits():
    assert "description" in validate_goal_data(goal_form(description="too short"), NOW).get_error()
    assert "description" in validate_goal_data(goal_form(description="y" * 201), NOW).get_error()


def test_target_rules():
    for bad in ("0", "-5", "abc", None, "1000000.01"):
        assert "target" in validate_goal_data(goal_form(target=bad), NOW).get_error(), bad
    assert validate_goal_data(goal_form(target=1000000), NOW).is_right()


def test_category_must_be_known():
    assert validate_goal_data(goal_form(category="yachts"), NOW).get_error() == {
        "category": "Please select a valid category"
    }
    assert "category" in validate_goal_data(goal_form(category=""), NOW).get_error()


def test_deadline_must_be_in_future():
    assert "deadline" in validate_goal_data(goal_form(deadline=NOW), NOW).get_error()
    assert "deadline" in validate_goal_data(goal_form(deadline="2020-01-01"), NOW).get_error()
    assert "deadline" in validate_goal_data(goal_form(deadline="not a date"), NOW).get_error()
    assert validate_goal_data(goal_form(deadline="2027-03-01"), NOW).is_right()


def test_all_failing_fields_are_reported():
    errors = validate_goal_data({"title": "A", "target": "0"}, NOW).get_error()
    assert set(errors) == {"title", "description", "target", "category", "deadline"}


def test_partial_validation_checks_only_supplied_fields():
    assert validate_goal_data({"title": "Bike"}, NOW, partial=True).get_or_else(None) == {"title": "Bike"}
    assert "title" in validate_goal_data({"title": "B"}, NOW, partial=True).get_error()


def test_transaction_form():
    result = validate_transaction_data(
        {"amount": "12.50", "description": " Lunch ", "category": "Food & Dining", "type": "expense"}
    )
    cleaned = result.get_or_else({})
    assert cleaned["amount"] == Decimal("12.50")
    assert cleaned["description"] == "Lunch"
    assert cleaned["type"] is TransactionType.EXPENSE


def test_transaction_form_errors():
    errors = validate_transaction_data({"amount": "0", "description": "", "category": "", "type": "gift"}).get_error()
    assert set(errors) == {"amount", "description", "category", "type"}


def test_transaction_timestamp_is_optional_but_checked():
    base = {"amount": "5", "description": "Tea", "category": "Food & Dining", "type": "expense"}

    assert "timestamp" not in validate_transaction_data(base).get_or_else({})
    cleaned = validate_transaction_data({**base, "timestamp": "2026-10-18T08:00:00"}).get_or_else({})
    assert cleaned["timestamp"] == datetime(2026, 10, 18, 8, 0)
    assert validate_transaction_data({**base, "timestamp": "yesterday"}).get_error() == {
        "timestamp": "Please enter a valid date"
    }
