"""Whole-collection persistence behind a small key/value contract.

Records are stored as JSON blobs under the logical keys ``transactions``,
``savingsGoals`` and ``userProfile``. Reading never raises: a blob that
cannot be parsed degrades to an empty collection with a warning. Writing
failures are reported, but the repository keeps serving its in-memory copy.
"""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Tuple, TypeVar

from fintrack.domain import (
    Goal,
    Transaction,
    UserProfile,
    goal_to_dict,
    parse_goal,
    parse_profile,
    parse_transaction,
    profile_to_dict,
    transaction_to_dict,
)
from fintrack.errors import FintrackError, StorageUnavailable
from fintrack.events import STORAGE_WARNING, EventBus

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = "transactions"
GOALS_KEY = "savingsGoals"
PROFILE_KEY = "userProfile"

R = TypeVar("R")


def scoped_key(user_id: Optional[str], key: str) -> str:
    return f"{user_id}/{key}" if user_id else key


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Raise ``StorageUnavailable`` when the value cannot be written."""

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStore):

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key under ``directory``."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        name = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return os.path.join(self.directory, f"{name}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.warning("could not read %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageUnavailable(key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass


class _Repository(Generic[R]):

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        bus: Optional[EventBus] = None,
        user_id: Optional[str] = None,
    ):
        self.store = store
        self.key = scoped_key(user_id, key)
        self.bus = bus
        self.last_error: Optional[StorageUnavailable] = None

    def _read_blob(self) -> Any:
        raw = self.store.get(self.key)
        if raw is None or not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("stored '%s' is not valid JSON, starting empty: %s", self.key, e)
            return None

    def _write_blob(self, data: Any) -> bool:
        try:
            try:
                raw = json.dumps(data)
            except (TypeError, ValueError) as e:
                raise StorageUnavailable(self.key, f"serialization failed: {e}") from e
            self.store.set(self.key, raw)
        except StorageUnavailable as e:
            self.last_error = e
            logger.warning("%s; keeping in-memory state", e)
            if self.bus is not None:
                self.bus.publish(STORAGE_WARNING, {"key": self.key, "message": str(e)})
            return False
        self.last_error = None
        return True


class _CollectionRepository(_Repository[R]):
    kind = "record"

    def __init__(self, store, key, parse: Callable[[Mapping], R], dump: Callable[[R], dict], **kwargs):
        super().__init__(store, key, **kwargs)
        self._parse = parse
        self._dump = dump
        self._items: Optional[Tuple[R, ...]] = None

    def all(self) -> Tuple[R, ...]:
        if self._items is None:
            self._items = self._load()
        return self._items

    def _load(self) -> Tuple[R, ...]:
        blob = self._read_blob()
        if blob is None:
            return ()
        if not isinstance(blob, list):
            logger.warning("stored '%s' is not a list, starting empty", self.key)
            return ()

        items = []
        for i, raw in enumerate(blob):
            if not isinstance(raw, Mapping):
                logger.warning("skipping %s #%d in '%s': not an object", self.kind, i, self.key)
                continue
            try:
                items.append(self._parse(raw))
            except FintrackError as e:
                logger.warning("skipping malformed %s #%d in '%s': %s", self.kind, i, self.key, e)
        return tuple(items)

    def save(self, items: Tuple[R, ...]) -> bool:
        items = tuple(items)
        blob = [self._dump(item) for item in items]
        self._items = items
        return self._write_blob(blob)

    def reload(self) -> Tuple[R, ...]:
        """Re-read the store, unless the last write failed and memory holds the only copy."""
        if self.last_error is not None:
            logger.warning("not reloading '%s': last write failed, keeping in-memory state", self.key)
            return self.all()
        self._items = None
        return self.all()


class TransactionRepository(_CollectionRepository[Transaction]):
    kind = "transaction"

    def __init__(self, store: KeyValueStore, bus: Optional[EventBus] = None, user_id: Optional[str] = None):
        super().__init__(store, TRANSACTIONS_KEY, parse_transaction, transaction_to_dict, bus=bus, user_id=user_id)


class GoalRepository(_CollectionRepository[Goal]):
    kind = "goal"

    def __init__(self, store: KeyValueStore, bus: Optional[EventBus] = None, user_id: Optional[str] = None):
        super().__init__(store, GOALS_KEY, parse_goal, goal_to_dict, bus=bus, user_id=user_id)


class ProfileRepository(_Repository[UserProfile]):

    def __init__(self, store: KeyValueStore, bus: Optional[EventBus] = None, user_id: Optional[str] = None):
        super().__init__(store, PROFILE_KEY, bus=bus, user_id=user_id)
        self._profile: Optional[UserProfile] = None

    def get(self) -> UserProfile:
        if self._profile is None:
            blob = self._read_blob()
            self._profile = parse_profile(blob) if isinstance(blob, Mapping) else UserProfile()
        return self._profile

    def save(self, profile: UserProfile) -> bool:
        self._profile = profile
        return self._write_blob(profile_to_dict(profile))
