from datetime import datetime

from fintrack.domain import Transaction, TransactionType


def by_type(kind: TransactionType):
    def _filter(t: Transaction) -> bool:
        return t.type is kind

    return _filter


def since(start: datetime):
    def _filter(t: Transaction) -> bool:
        return t.timestamp >= start

    return _filter


def all_of(*preds):
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter
