import logging
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'TRANSACTIONS_UPDATED', 'SAVINGS_GOALS_UPDATED', 'BALANCE_UPDATED',
    'SNAPSHOT_UPDATED', 'STORAGE_WARNING', 'Event', 'EventBus',
]

logger = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], object]


class EventBus:
    """Synchronous publish/subscribe; handlers run in subscription order before publish returns."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        self._subscribers.setdefault(name, []).append(handler)
        return lambda: self.unsubscribe(name, handler)

    def publish(self, name: str, payload: dict) -> List[object]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        logger.debug("publishing %s to %d handler(s)", name, len(handlers))
        return [handler(event, payload) for handler in handlers]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, ()):
            self._subscribers[name].remove(handler)


TRANSACTIONS_UPDATED = "transactionsUpdated"
SAVINGS_GOALS_UPDATED = "savingsGoalsUpdated"
BALANCE_UPDATED = "balanceUpdated"
SNAPSHOT_UPDATED = "snapshotUpdated"
STORAGE_WARNING = "storageWarning"
