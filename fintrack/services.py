import logging
import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Tuple

from fintrack.config import Settings
from fintrack.domain import Goal, Transaction, UserProfile, new_id
from fintrack.errors import InvalidAmount, ValidationError
from fintrack.events import (
    BALANCE_UPDATED,
    SAVINGS_GOALS_UPDATED,
    SNAPSHOT_UPDATED,
    TRANSACTIONS_UPDATED,
    Event,
    EventBus,
)
from fintrack.ledger import GoalLedger
from fintrack.snapshot import AnalyticsReport, FinancialSnapshot, build_analytics, build_snapshot
from fintrack.storage import GoalRepository, KeyValueStore, ProfileRepository, TransactionRepository
from fintrack.transforms import prepend_transaction
from fintrack.validation import validate_transaction_data

logger = logging.getLogger(__name__)


class FinanceTracker:
    """Facade over one user's records.

    A mutation is persisted first, then its change event is published; the
    tracker reacts by recomputing a single snapshot and broadcasting it on
    ``snapshotUpdated``, so every subscriber sees the same object. Mutation
    and recompute run under one lock and never interleave.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
        bus: Optional[EventBus] = None,
        user_id: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self.clock = clock
        self.transaction_repo = TransactionRepository(store, bus=self.bus, user_id=user_id)
        self.goal_repo = GoalRepository(store, bus=self.bus, user_id=user_id)
        self.profile_repo = ProfileRepository(store, bus=self.bus, user_id=user_id)
        self.ledger = GoalLedger(self.goal_repo, bus=self.bus, settings=self.settings, clock=clock)
        self._lock = threading.RLock()
        self._last_snapshot: Optional[FinancialSnapshot] = None

        self.bus.subscribe(TRANSACTIONS_UPDATED, self._on_records_changed)
        self.bus.subscribe(SAVINGS_GOALS_UPDATED, self._on_records_changed)

    # -- reads

    def transactions(self) -> Tuple[Transaction, ...]:
        return self.transaction_repo.all()

    def goals(self) -> Tuple[Goal, ...]:
        return self.ledger.goals()

    def profile(self) -> UserProfile:
        return self.profile_repo.get()

    def snapshot(self, now: Optional[datetime] = None) -> FinancialSnapshot:
        with self._lock:
            return build_snapshot(self.transactions(), self.goals(), now or self.clock(), self.settings)

    @property
    def last_snapshot(self) -> FinancialSnapshot:
        if self._last_snapshot is None:
            self._last_snapshot = self.snapshot()
        return self._last_snapshot

    def analytics(self, period: str = "month", now: Optional[datetime] = None) -> AnalyticsReport:
        return build_analytics(self.transactions(), period, now or self.clock())

    def subscribe(self, handler: Callable[[FinancialSnapshot], Any]) -> Callable[[], None]:
        """Call ``handler(snapshot)`` after every change; returns an unsubscribe function."""
        return self.bus.subscribe(SNAPSHOT_UPDATED, lambda event, payload: handler(payload["snapshot"]))

    # -- recompute

    def _on_records_changed(self, event: Event, payload: dict) -> FinancialSnapshot:
        with self._lock:
            snap = build_snapshot(self.transactions(), self.goals(), self.clock(), self.settings)
            self._last_snapshot = snap
            profile = self.profile()
            if profile.balance != snap.balance:
                self.profile_repo.save(replace(profile, balance=snap.balance))
                self.bus.publish(BALANCE_UPDATED, {"balance": snap.balance})
            self.bus.publish(SNAPSHOT_UPDATED, {"snapshot": snap, "cause": event.name})
            return snap

    # -- transactions

    def add_transaction(
        self,
        amount: Any,
        description: str,
        category: str,
        type: str = "expense",
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        result = validate_transaction_data(
            {
                "amount": amount,
                "description": description,
                "category": category,
                "type": type,
                "timestamp": timestamp,
            }
        )
        if result.is_left():
            errors = result.get_error()
            if "amount" in errors:
                raise InvalidAmount(errors["amount"], amount, errors=errors)
            raise ValidationError(errors)

        fields = dict(result.get_or_else({}))
        fields.setdefault("timestamp", self.clock())
        t = Transaction(id=new_id(), **fields)
        with self._lock:
            self.transaction_repo.save(prepend_transaction(self.transactions(), t))
            logger.info("recorded %s of %s in %s", t.type.value, t.amount, t.category)
            self.bus.publish(TRANSACTIONS_UPDATED, {"transaction": t})
        return t

    def reload(self) -> FinancialSnapshot:
        """Re-read storage (e.g. after another process wrote it) and broadcast the result."""
        with self._lock:
            self.transaction_repo.reload()
            self.goal_repo.reload()
            self.bus.publish(TRANSACTIONS_UPDATED, {"reload": True})
            return self.last_snapshot

    # -- goals

    def create_goal(self, data: Mapping[str, Any]) -> Goal:
        with self._lock:
            return self.ledger.create_goal(data)

    def update_goal(self, goal_id: str, updates: Mapping[str, Any]) -> Goal:
        with self._lock:
            return self.ledger.update_goal(goal_id, updates)

    def delete_goal(self, goal_id: str) -> bool:
        with self._lock:
            return self.ledger.delete_goal(goal_id)

    def add_money_to_goal(self, goal_id: str, amount: Any) -> Goal:
        with self._lock:
            return self.ledger.add_money(goal_id, amount)

    def mark_goal_achieved(self, goal_id: str) -> Goal:
        with self._lock:
            return self.ledger.mark_achieved(goal_id)

    def get_total_saved(self) -> Decimal:
        return self.ledger.get_total_saved()

    def get_active_goals_count(self) -> int:
        return self.ledger.get_active_goals_count()

    # -- profile

    def update_profile(self, **fields: Any) -> UserProfile:
        with self._lock:
            profile = replace(self.profile(), **fields)
            self.profile_repo.save(profile)
            return profile
