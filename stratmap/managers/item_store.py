"""
Item store for the stratmap cascade engine.

Defines the persistence contract the propagation engine reads and writes
through, and two implementations: an in-memory store with snapshot rollback
and a JSON-backed store that saves on commit.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError as PydanticValidationError

from stratmap.exceptions import InvariantViolationError, NotFoundError, ValidationError
from stratmap.managers.storage_manager import StorageManager
from stratmap.models import Item, ItemsFile, Timeframe
from stratmap.signals import signal

logger = logging.getLogger(__name__)

# Fields that never change once an item exists
IMMUTABLE_FIELDS = ("id", "organization_id", "timeframe", "created_at")


class ItemStore(ABC):
    """
    Persistence contract for strategic map items.

    Every mutation emits its signal synchronously, after the base mutation is
    applied and inside the same transaction, so listeners (the propagation
    engine) can issue further mutations that commit or roll back together
    with the original one.
    """

    @signal
    def item_created(self, item: Item) -> None:
        """Emitted after an item is inserted."""

    @signal
    def item_updated(self, item: Item, changed_fields: Dict[str, Any]) -> None:
        """Emitted after an item is updated, with the fields that actually changed."""

    @signal
    def item_deleted(self, item: Item) -> None:
        """Emitted after an item is deleted, with the item as it was."""

    @abstractmethod
    def find_by_id(self, item_id: str) -> Optional[Item]:
        """Return the item with this id, or None."""

    @abstractmethod
    def find_child(self, parent_id: str) -> Optional[Item]:
        """Return the single cascaded child of an item, or None."""

    @abstractmethod
    def insert(self, item: Item) -> Item:
        """Persist a new item, assigning its id."""

    @abstractmethod
    def update(self, item_id: str, fields: Dict[str, Any]) -> Item:
        """Apply field changes to an existing item."""

    @abstractmethod
    def delete(self, item_id: str) -> None:
        """Remove an item."""

    @abstractmethod
    def list_items(self, organization_id: str, timeframe: Optional[Timeframe] = None) -> List[Item]:
        """Return an organization's items, optionally for one timeframe."""

    @abstractmethod
    def transaction(self):
        """Context manager grouping mutations into one all-or-nothing unit."""


class InMemoryItemStore(ItemStore):
    """
    Dict-backed item store.

    A re-entrant lock is held for the whole of a transaction and for every
    read, so mutations of the same cascade chain from different threads are
    serialized and readers only ever see committed state. Nested
    transactions join the outermost one; an exception anywhere inside it
    restores the snapshot taken when it began.

    Stored items are never mutated in place: updates replace the stored
    object and readers get copies.
    """

    def __init__(self, items: Optional[List[Item]] = None) -> None:
        self._items: Dict[str, Item] = {}
        for item in items or []:
            self._items[item.id] = item
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[Dict[str, Item]] = None

    # =========================================================================
    # Transactions
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator["InMemoryItemStore"]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._snapshot = dict(self._items)
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                raise
            self._depth -= 1
            if outermost:
                try:
                    self._commit()
                except Exception:
                    self._rollback()
                    raise
                self._snapshot = None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _rollback(self) -> None:
        logger.debug("Rolling back item store transaction")
        if self._snapshot is not None:
            self._items = self._snapshot
        self._snapshot = None

    def _commit(self) -> None:
        """Hook for subclasses that persist committed state."""

    # =========================================================================
    # Queries
    # Readers take the transaction lock, so they never see uncommitted state.
    # =========================================================================

    def find_by_id(self, item_id: str) -> Optional[Item]:
        with self._lock:
            item = self._items.get(item_id)
            return item.model_copy() if item else None

    def find_child(self, parent_id: str) -> Optional[Item]:
        with self._lock:
            children = [item for item in self._items.values() if item.parent_item_id == parent_id]
            if len(children) > 1:
                raise InvariantViolationError(
                    f"Item '{parent_id}' has {len(children)} cascaded children; expected at most one."
                )
            return children[0].model_copy() if children else None

    def list_items(self, organization_id: str, timeframe: Optional[Timeframe] = None) -> List[Item]:
        with self._lock:
            return [
                item.model_copy()
                for item in self._items.values()
                if item.organization_id == organization_id
                and (timeframe is None or item.timeframe == timeframe)
            ]

    def all_items(self) -> List[Item]:
        """Return every stored item regardless of organization."""
        with self._lock:
            return [item.model_copy() for item in self._items.values()]

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert(self, item: Item) -> Item:
        with self.transaction():
            now = datetime.now()
            new_item = item.model_copy(update={
                "id": item.id or str(uuid.uuid4()),
                "created_at": now,
                "updated_at": now,
            })
            if new_item.id in self._items:
                raise ValidationError(f"An item with id '{new_item.id}' already exists.")
            self._items[new_item.id] = new_item
            self.item_created(new_item.model_copy())
            return new_item.model_copy()

    def update(self, item_id: str, fields: Dict[str, Any]) -> Item:
        with self.transaction():
            current = self._get_or_raise(item_id)

            for key in fields:
                if key in IMMUTABLE_FIELDS:
                    raise ValidationError(f"Field '{key}' cannot be changed after creation.")
                if key not in Item.model_fields:
                    raise ValidationError(f"Unknown item field: '{key}'.")

            changed = {
                key: value for key, value in fields.items()
                if getattr(current, key) != value
            }
            if not changed:
                return current.model_copy()

            data = current.model_dump()
            data.update(changed)
            data["updated_at"] = datetime.now()
            try:
                updated = Item.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid update for item '{item_id}': {e}")

            self._items[item_id] = updated
            self.item_updated(updated.model_copy(), dict(changed))
            return updated.model_copy()

    def delete(self, item_id: str) -> None:
        with self.transaction():
            removed = self._get_or_raise(item_id)
            del self._items[item_id]
            self.item_deleted(removed.model_copy())

    def _get_or_raise(self, item_id: str) -> Item:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Item '{item_id}' not found.")
        return item


class JsonItemStore(InMemoryItemStore):
    """
    Item store persisted to .stratmap/items.json.

    Items are loaded once at construction; every committed outermost
    transaction writes the full item list back atomically.
    """

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage
        super().__init__(storage.load_items().items)

    def _commit(self) -> None:
        self.storage.save_items(ItemsFile(items=list(self._items.values())))
