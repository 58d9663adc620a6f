"""
StratmapCore - business facade for the stratmap cascade engine.

Callers (CLI, API layers) create, update and delete root items here. Each
operation runs in one store transaction together with every cascade step
it triggers, and reports the cascaded items it left behind.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from stratmap.calendar_math import check_week_number, date_key_to_date, decode_month_col_index
from stratmap.constants import (
    DEFAULT_STATUS,
    MAX_CASCADE_LEVEL,
    UPDATABLE_FIELDS,
    VALIDATION_INVALID_TIMEFRAME,
    VALIDATION_NO_UPDATE_FIELDS,
    ConfigManager,
    get_config_manager,
)
from stratmap.exceptions import (
    ConfigurationError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from stratmap.managers import (
    ItemStore,
    JsonItemStore,
    PropagationEngine,
    StorageManager,
)
from stratmap.models import Item, Timeframe

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """An item together with the chain cascaded below it."""
    item: Item
    cascaded_items: List[Item] = field(default_factory=list)


def parse_timeframe(value: Any) -> Timeframe:
    """Convert a timeframe name into a Timeframe, raising ValidationError."""
    try:
        return Timeframe(value)
    except ValueError:
        raise ValidationError(f"Invalid timeframe: '{value}'. {VALIDATION_INVALID_TIMEFRAME}")


def check_calendar_fields(fields: Dict[str, Any]) -> None:
    """Reject impossible calendar positions before the store is touched.

    Raises:
        CalendarComputationError: If a date key, week or month is not real.
    """
    if fields.get("daily_date_key") is not None:
        date_key_to_date(fields["daily_date_key"])
    if fields.get("week_number") is not None:
        check_week_number(fields["week_number"])
    if fields.get("month_col_index") is not None:
        decode_month_col_index(fields["month_col_index"])


class StratmapCore:
    """
    Core class for strategic map operations.

    Wires together:
    - StorageManager / JsonItemStore: persistence to .stratmap/
    - PropagationEngine: cascade chains, attached to the store's signals
    - ConfigManager: reference year and default status
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        store: Optional[ItemStore] = None,
        reference_year: Optional[int] = None,
    ) -> None:
        """
        Initialize the StratmapCore.

        Args:
            data_dir: Path to .stratmap/ directory. Defaults to .stratmap/ in current directory.
            store: Item store to use instead of the JSON store in data_dir.
            reference_year: Pinned year for yearly offsets; overrides config.json.
        """
        if store is None:
            self.storage = StorageManager(data_dir)
            store = JsonItemStore(self.storage)
        else:
            self.storage = None
        self.store = store

        if data_dir is not None:
            self.config = ConfigManager(data_dir=data_dir)
        else:
            self.config = get_config_manager()

        if reference_year is None:
            try:
                reference_year = self.config.get_optional_int('reference_year')
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"reference_year in {self.config.config_path} must be a year or null, "
                    f"not {self.config.get('reference_year')!r}."
                )
        self.default_status = self.config.get_str('default_status', DEFAULT_STATUS)

        self.engine = PropagationEngine(self.store, reference_year=reference_year)
        self.engine.attach()

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_item(
        self,
        organization_id: str,
        timeframe: Any,
        category_index: int,
        text: str,
        status: Optional[str] = None,
        year_index: Optional[int] = None,
        month_col_index: Optional[int] = None,
        week_number: Optional[int] = None,
        daily_date_key: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> CascadeResult:
        """Create a root item and its cascade chain.

        Raises:
            ValidationError: If the item data is invalid.
            CalendarComputationError: If the position is not a real calendar
                cell or can't be cascaded.
            InvariantViolationError: If the store holds a corrupt chain.
        """
        try:
            item = Item(
                organization_id=organization_id,
                timeframe=parse_timeframe(timeframe),
                category_index=category_index,
                text=text,
                status=status or self.default_status,
                year_index=year_index,
                month_col_index=month_col_index,
                week_number=week_number,
                daily_date_key=daily_date_key,
                created_by=created_by,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid item: {e}")
        check_calendar_fields(item.model_dump())

        with self.store.transaction():
            created = self.store.insert(item)
            cascaded = self.engine.descendants(created.id)

        logger.info(
            "Created %s item %s with %d cascaded items",
            created.timeframe.value, created.id, len(cascaded),
        )
        return CascadeResult(created, cascaded)

    def update_item(self, organization_id: str, item_id: str, **fields: Any) -> CascadeResult:
        """Update a root item; content flows down, a moved root gets a new chain.

        Only fields given with a value other than None are changed.

        Raises:
            NotFoundError: If the item doesn't exist in this organization.
            InvalidOperationError: If the item is a cascaded item.
            ValidationError: If no or unknown fields are given.
            CalendarComputationError: If a new position is not a real calendar cell.
        """
        unknown = [name for name in fields if name not in UPDATABLE_FIELDS]
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(unknown)}. "
                f"Updatable fields are: {', '.join(UPDATABLE_FIELDS)}."
            )
        changes = {name: value for name, value in fields.items() if value is not None}
        if not changes:
            raise ValidationError(VALIDATION_NO_UPDATE_FIELDS)
        check_calendar_fields(changes)

        with self.store.transaction():
            item = self._get_root(organization_id, item_id, "update")
            updated = self.store.update(item.id, changes)
            cascaded = self.engine.descendants(updated.id)

        logger.info("Updated item %s (%s)", item_id, ", ".join(sorted(changes)))
        return CascadeResult(updated, cascaded)

    def delete_item(self, organization_id: str, item_id: str) -> int:
        """Delete a root item and its chain.

        Returns:
            Number of cascaded items deleted along with the root.
        """
        with self.store.transaction():
            item = self._get_root(organization_id, item_id, "delete")
            removed = len(self.engine.descendants(item.id))
            self.store.delete(item.id)

        logger.info("Deleted item %s and %d cascaded items", item_id, removed)
        return removed

    # =========================================================================
    # Queries
    # =========================================================================

    def get_item(self, organization_id: str, item_id: str) -> Item:
        """Get an item of this organization by id.

        Raises:
            NotFoundError: If no such item exists for the organization.
        """
        item = self.store.find_by_id(item_id)
        if item is None or item.organization_id != organization_id:
            raise NotFoundError(
                f"Item '{item_id}' not found. "
                f"Please verify the id is correct and the item belongs to '{organization_id}'."
            )
        return item

    def list_items(self, organization_id: str, timeframe: Any = None) -> List[Item]:
        """List an organization's items, optionally for one timeframe."""
        if timeframe is not None:
            timeframe = parse_timeframe(timeframe)
        return self.store.list_items(organization_id, timeframe)

    def get_chain(self, organization_id: str, item_id: str) -> List[Item]:
        """Get an item followed by every item cascaded below it."""
        item = self.get_item(organization_id, item_id)
        return [item] + self.engine.descendants(item.id)

    def check_integrity(self, organization_id: str) -> List[str]:
        """Report cascade chain problems for an organization without raising.

        Returns:
            Human-readable problem descriptions; empty when every chain is sound.
        """
        items = self.store.list_items(organization_id)
        by_id = {item.id: item for item in items}
        problems = []

        child_counts: dict = {}
        for item in items:
            if item.parent_item_id is not None:
                child_counts[item.parent_item_id] = child_counts.get(item.parent_item_id, 0) + 1

        for item in items:
            count = child_counts.get(item.id, 0)
            if count > 1:
                problems.append(f"Item '{item.id}' has {count} cascaded children.")
            if count and item.timeframe == Timeframe.DAILY:
                problems.append(f"Daily item '{item.id}' has a cascaded child.")

            if not item.is_cascaded:
                continue
            parent = by_id.get(item.parent_item_id)
            if parent is None:
                problems.append(
                    f"Cascaded item '{item.id}' references missing parent '{item.parent_item_id}'."
                )
                continue
            if item.timeframe != parent.timeframe.finer():
                problems.append(
                    f"Cascaded item '{item.id}' is {item.timeframe.value} but its parent "
                    f"is {parent.timeframe.value}."
                )
            if item.cascade_level != parent.cascade_level + 1:
                problems.append(
                    f"Cascaded item '{item.id}' has level {item.cascade_level}; "
                    f"expected {parent.cascade_level + 1}."
                )

        return problems

    def _get_root(self, organization_id: str, item_id: str, action: str) -> Item:
        item = self.get_item(organization_id, item_id)
        if item.is_cascaded:
            raise InvalidOperationError(
                f"Cannot {action} cascaded item '{item_id}'. "
                f"Cascaded items follow their root item '{self._root_of(item).id}'; "
                f"{action} the root instead."
            )
        return item

    def _root_of(self, item: Item) -> Item:
        current = item
        for _ in range(MAX_CASCADE_LEVEL):
            if current.parent_item_id is None:
                break
            parent = self.store.find_by_id(current.parent_item_id)
            if parent is None:
                break
            current = parent
        return current
