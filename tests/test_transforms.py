import os
from datetime import datetime
from decimal import Decimal

from fintrack.domain import Transaction, TransactionType
from fintrack.transforms import load_seed, prepend_transaction, remove_goal

SEED = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "seed.json")


def make_tx(id):
    return Transaction(
        id=id,
        amount=Decimal("10"),
        description="Snack",
        category="Food & Dining",
        type=TransactionType.EXPENSE,
        timestamp=datetime(2026, 10, 1),
    )


def test_prepend_transaction_is_newest_first_and_immutable():
    t1, t2 = make_tx("t1"), make_tx("t2")
    transactions = (t1,)
    new_transactions = prepend_transaction(transactions, t2)

    assert new_transactions == (t2, t1)
    assert transactions == (t1,)


def test_load_seed():
    transactions, goals = load_seed(SEED)

    assert len(transactions) >= 5
    assert len(goals) >= 3
    assert all(t.amount > 0 for t in transactions)
    assert {g.category for g in goals} <= {"emergency", "travel", "transport"}


def test_remove_goal_keeps_order_of_the_rest():
    _, goals = load_seed(SEED)
    remaining = remove_goal(goals, goals[0].id)

    assert remaining == goals[1:]
    assert remove_goal(goals, "missing") == goals
