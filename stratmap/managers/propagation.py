"""
Propagation engine for the stratmap cascade engine.

Keeps the chain of cascaded items below a root in lockstep with it. The
engine holds no item state and takes no locks; it reacts to the item
store's signals and issues further store mutations from inside the same
transaction, so a failure anywhere rolls the whole chain back.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from stratmap.constants import (
    MAX_CASCADE_LEVEL,
    PROPAGATED_FIELDS,
    RETARGET_FIELDS,
    get_reference_year,
)
from stratmap.exceptions import InvalidOperationError, InvariantViolationError
from stratmap.managers.item_store import ItemStore
from stratmap.managers.resolver import resolve_target
from stratmap.models import Item, Timeframe

logger = logging.getLogger(__name__)


class PropagationEngine:
    """
    Builds, updates and tears down cascade chains.

    Handles:
    - Creating the cascaded child chain when a root item is created
    - Copying text/status changes down to the daily leaf
    - Rebuilding the chain when a root is moved to another cell
    - Deleting every descendant when an item is deleted

    Usage:
        store = InMemoryItemStore()
        engine = PropagationEngine(store, reference_year=2025)
        engine.attach()

        with store.transaction():
            root = store.insert(Item(...))   # chain is created here
    """

    def __init__(self, store: ItemStore, reference_year: Optional[int] = None) -> None:
        """
        Initialize PropagationEngine.

        Args:
            store: Item store to read and write through.
            reference_year: Pinned calendar year for yearly offsets. None
                reads config.json, then the wall clock, at each mutation.
        """
        self.store = store
        self.reference_year = reference_year

    def attach(self) -> None:
        """Connect the engine's hooks to the store's signals."""
        self.store.item_created.connect(self.on_item_created)
        self.store.item_updated.connect(self.on_item_updated)
        self.store.item_deleted.connect(self.on_item_deleted)

    def detach(self) -> None:
        """Disconnect the engine's hooks from the store's signals."""
        self.store.item_created.disconnect(self.on_item_created)
        self.store.item_updated.disconnect(self.on_item_updated)
        self.store.item_deleted.disconnect(self.on_item_deleted)

    def current_reference_year(self) -> int:
        """Reference year for this mutation: pinned, configured, or today's."""
        if self.reference_year is not None:
            return self.reference_year
        configured = get_reference_year()
        if configured is not None:
            return configured
        return date.today().year

    # =========================================================================
    # Hooks
    # =========================================================================

    def on_item_created(self, item: Item) -> None:
        """Build the cascade chain below a newly created root item.

        Cascaded items are created by the engine itself while it walks a
        chain, so their creation triggers nothing further.
        """
        if item.is_cascaded:
            return
        self._cascade_from(item, self.current_reference_year())

    def on_item_updated(self, item: Item, changed_fields: Dict[str, Any]) -> None:
        """Propagate an update to the direct child.

        A root whose position or category changed gets a fresh chain; a
        cascaded item cannot be moved on its own.
        Otherwise only text/status travel down; the child's own update
        signal carries them further.
        """
        if item.is_cascaded:
            self._check_parent_link(item)

        retargeted = [name for name in RETARGET_FIELDS if name in changed_fields]
        if retargeted:
            if item.is_cascaded:
                raise InvalidOperationError(
                    f"Cannot move cascaded item '{item.id}' ({', '.join(retargeted)}); "
                    f"its position follows its parent '{item.parent_item_id}'."
                )
            self._retarget(item, retargeted)
            return

        payload = {
            name: changed_fields[name] for name in PROPAGATED_FIELDS if name in changed_fields
        }
        if not payload:
            return

        child = self._find_checked_child(item)
        if child is None:
            return
        logger.debug(
            "[cascade] update %s -> %s (%s): %s",
            item.timeframe.value, child.timeframe.value, child.id, payload,
        )
        self.store.update(child.id, payload)

    def on_item_deleted(self, item: Item) -> None:
        """Delete the direct child; its own delete signal removes the rest."""
        child = self._find_checked_child(item)
        if child is None:
            return
        logger.debug(
            "[cascade] delete %s -> %s (%s)", item.timeframe.value, child.timeframe.value, child.id
        )
        self.store.delete(child.id)

    # =========================================================================
    # Queries
    # =========================================================================

    def descendants(self, item_id: str) -> List[Item]:
        """Return the chain below an item, nearest first.

        Raises:
            InvariantViolationError: If the chain is longer than yearly -> daily
                or loops back on itself.
        """
        chain: List[Item] = []
        seen = {item_id}
        current_id = item_id
        while True:
            child = self.store.find_child(current_id)
            if child is None:
                return chain
            if child.id in seen:
                raise self._violation(f"Cascade chain below '{item_id}' contains a cycle at '{child.id}'.")
            chain.append(child)
            if len(chain) > MAX_CASCADE_LEVEL:
                raise self._violation(
                    f"Cascade chain below '{item_id}' is deeper than {MAX_CASCADE_LEVEL} levels."
                )
            seen.add(child.id)
            current_id = child.id

    # =========================================================================
    # Internals
    # =========================================================================

    def _cascade_from(self, parent: Item, reference_year: int) -> None:
        """Create the child of parent, then continue one level deeper."""
        child = self._create_child(parent, reference_year)
        if child is not None:
            self._cascade_from(child, reference_year)

    def _create_child(self, parent: Item, reference_year: int) -> Optional[Item]:
        parent_month_col_index = None
        if parent.timeframe == Timeframe.WEEKLY and parent.parent_item_id is not None:
            month_item = self._check_parent_link(parent)
            parent_month_col_index = month_item.month_col_index

        target = resolve_target(parent, reference_year, parent_month_col_index)
        if not target:
            logger.debug(
                "[cascade] %s item %s is terminal (%s=%s)",
                parent.timeframe.value, parent.id,
                parent.timeframe.positional_field, parent.positional_key,
            )
            return None

        if parent.cascade_level >= MAX_CASCADE_LEVEL:
            raise self._violation(
                f"Item '{parent.id}' at cascade level {parent.cascade_level} cannot cascade further."
            )
        if target.timeframe != parent.timeframe.finer():
            raise self._violation(
                f"Cascade from {parent.timeframe.value} must target "
                f"{parent.timeframe.finer().value}, not {target.timeframe.value}."
            )
        if self.store.find_child(parent.id) is not None:
            raise self._violation(f"Item '{parent.id}' already has a cascaded child.")

        logger.debug(
            "[cascade] %s -> %s: %s=%s -> %s=%s",
            parent.timeframe.value, target.timeframe.value,
            parent.timeframe.positional_field, parent.positional_key,
            target.field, target.value,
        )
        child = Item(
            organization_id=parent.organization_id,
            timeframe=target.timeframe,
            category_index=parent.category_index,
            text=parent.text,
            status=parent.status,
            created_by=parent.created_by,
            parent_item_id=parent.id,
            is_cascaded=True,
            cascade_level=parent.cascade_level + 1,
            **{target.field: target.value},
        )
        return self.store.insert(child)

    def _retarget(self, item: Item, fields: List[str]) -> None:
        """Replace a root's chain after its cell changed."""
        logger.debug("[cascade] retarget %s %s after change of %s", item.timeframe.value, item.id, fields)
        child = self._find_checked_child(item)
        if child is not None:
            self.store.delete(child.id)
        self._cascade_from(item, self.current_reference_year())

    def _find_checked_child(self, item: Item) -> Optional[Item]:
        child = self.store.find_child(item.id)
        if child is None:
            return None
        if item.timeframe == Timeframe.DAILY:
            raise self._violation(f"Daily item '{item.id}' has a cascaded child '{child.id}'.")
        self._check_link(item, child)
        return child

    def _check_parent_link(self, item: Item) -> Item:
        """Return the parent of a cascaded item, verifying the link."""
        parent = self.store.find_by_id(item.parent_item_id)
        if parent is None:
            raise self._violation(
                f"Cascaded item '{item.id}' references missing parent '{item.parent_item_id}'."
            )
        self._check_link(parent, item)
        return parent

    def _check_link(self, parent: Item, child: Item) -> None:
        if not child.is_cascaded:
            raise self._violation(f"Item '{child.id}' is linked to '{parent.id}' but is not cascaded.")
        if child.timeframe != parent.timeframe.finer():
            raise self._violation(
                f"Cascaded item '{child.id}' is {child.timeframe.value} but its parent "
                f"'{parent.id}' is {parent.timeframe.value}."
            )
        if child.cascade_level != parent.cascade_level + 1:
            raise self._violation(
                f"Cascaded item '{child.id}' has level {child.cascade_level}; "
                f"expected {parent.cascade_level + 1}."
            )

    def _violation(self, message: str) -> InvariantViolationError:
        logger.error("Cascade invariant violated: %s", message)
        return InvariantViolationError(message)
