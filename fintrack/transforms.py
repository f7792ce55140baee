import json
from typing import Tuple

from fintrack.domain import Goal, Transaction, parse_goal, parse_transaction


def load_seed(path: str) -> Tuple[Tuple[Transaction, ...], Tuple[Goal, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = tuple(parse_transaction(t) for t in data.get("transactions", []))
    goals = tuple(parse_goal(g) for g in data.get("savingsGoals", []))
    return transactions, goals


def prepend_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return (t,) + trans


def append_goal(goals: Tuple[Goal, ...], goal: Goal) -> Tuple[Goal, ...]:
    return goals + (goal,)


def replace_goal(goals: Tuple[Goal, ...], goal: Goal) -> Tuple[Goal, ...]:
    return tuple(goal if g.id == goal.id else g for g in goals)


def remove_goal(goals: Tuple[Goal, ...], goal_id: str) -> Tuple[Goal, ...]:
    return tuple(g for g in goals if g.id != goal_id)
