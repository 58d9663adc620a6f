"""
Item model for the stratmap cascade engine.

One flat model for every timeframe; the timeframe decides which positional
field locates the item on the strategic map.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from stratmap.constants import (
    DEFAULT_STATUS,
    MAX_CASCADE_LEVEL,
    POSITIONAL_FIELDS,
    TIMEFRAME_ORDER,
    VALIDATION_TEXT_REQUIRED,
)


class Timeframe(str, Enum):
    """Calendar granularity of an item, coarsest first."""
    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"

    @property
    def rank(self) -> int:
        """Position in the yearly < monthly < weekly < daily order."""
        return TIMEFRAME_ORDER.index(self.value)

    @property
    def positional_field(self) -> str:
        """Name of the Item field that holds this timeframe's position."""
        return POSITIONAL_FIELDS[self.value]

    def finer(self) -> Optional["Timeframe"]:
        """Return the next finer timeframe, or None for daily."""
        if self.rank + 1 >= len(TIMEFRAME_ORDER):
            return None
        return Timeframe(TIMEFRAME_ORDER[self.rank + 1])


class Item(BaseModel):
    """
    A goal placed on the strategic map.

    Root items are authored by users (is_cascaded=False). Cascaded items are
    derived by the propagation engine and always point at the item one
    timeframe coarser through parent_item_id.
    """
    id: Optional[str] = None
    organization_id: str
    timeframe: Timeframe
    category_index: int
    text: str
    status: str = DEFAULT_STATUS

    # Positional keys; only the one matching timeframe may be set
    year_index: Optional[int] = None
    month_col_index: Optional[int] = None
    week_number: Optional[int] = None
    daily_date_key: Optional[int] = None

    parent_item_id: Optional[str] = None
    is_cascaded: bool = False
    cascade_level: int = 0

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject blank goal text."""
        if not v or not v.strip():
            raise ValueError(VALIDATION_TEXT_REQUIRED)
        return v

    @model_validator(mode='after')
    def validate_cascade_fields(self) -> "Item":
        """Check positional keys and root/cascaded bookkeeping."""
        own_field = self.timeframe.positional_field
        for field_name in POSITIONAL_FIELDS.values():
            if field_name != own_field and getattr(self, field_name) is not None:
                raise ValueError(
                    f"{self.timeframe.value} items cannot carry '{field_name}'; "
                    f"their position is '{own_field}'."
                )

        if self.is_cascaded:
            if self.parent_item_id is None:
                raise ValueError('Cascaded items must reference a parent item.')
            if not 1 <= self.cascade_level <= MAX_CASCADE_LEVEL:
                raise ValueError(
                    f'Cascade level must be between 1 and {MAX_CASCADE_LEVEL} for cascaded items.'
                )
        else:
            if self.parent_item_id is not None or self.cascade_level != 0:
                raise ValueError('Root items cannot have a parent or a cascade level.')
        return self

    @property
    def positional_key(self) -> Optional[int]:
        """Value of the positional field for this item's timeframe."""
        return getattr(self, self.timeframe.positional_field)

    @property
    def is_root(self) -> bool:
        return not self.is_cascaded
