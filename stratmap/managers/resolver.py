"""
Cascade rule resolver for the stratmap cascade engine.

Decides, for one item, the single cell one timeframe finer that its
cascaded child belongs in.
"""

from dataclasses import dataclass
from typing import Optional, Union

from stratmap.calendar_math import (
    date_to_date_key,
    decode_month_col_index,
    december_col_index,
    last_iso_week_of_month,
    sunday_for_week_in_context,
)
from stratmap.models import Item, Timeframe


@dataclass(frozen=True)
class CascadeTarget:
    """A cell on the strategic map: a timeframe plus its positional key."""
    timeframe: Timeframe
    value: int

    @property
    def field(self) -> str:
        """Name of the Item field the value goes into."""
        return self.timeframe.positional_field


class _Terminal:
    """Resolution outcome meaning the chain stops here."""

    _instance: Optional["_Terminal"] = None

    def __new__(cls) -> "_Terminal":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "TERMINAL"

    def __bool__(self) -> bool:
        return False


TERMINAL = _Terminal()

Resolution = Union[CascadeTarget, _Terminal]


def resolve_target(
    item: Item,
    reference_year: int,
    parent_month_col_index: Optional[int] = None,
) -> Resolution:
    """
    Resolve the cascade target for an item.

    Rules:
    - yearly -> monthly: December of reference_year + year_index.
    - monthly -> weekly: the ISO week holding the month's last day.
    - weekly -> daily: the Sunday of the week, with the ISO year taken from
      the parent month when there is one and reference_year otherwise.
    - daily, or anything else: TERMINAL.

    An item missing the positional field its rule needs resolves to
    TERMINAL; incomplete goals simply don't cascade.

    Args:
        item: Item to cascade from.
        reference_year: Calendar year that year offsets and context-less
            week numbers are measured from.
        parent_month_col_index: month_col_index of the weekly item's parent,
            when it has one.

    Returns:
        CascadeTarget for the child cell, or TERMINAL.

    Raises:
        CalendarComputationError: If the positional data is out of range.
    """
    if item.timeframe == Timeframe.YEARLY:
        if item.year_index is None:
            return TERMINAL
        return CascadeTarget(
            Timeframe.MONTHLY, december_col_index(reference_year + item.year_index)
        )

    if item.timeframe == Timeframe.MONTHLY:
        if item.month_col_index is None:
            return TERMINAL
        year, month = decode_month_col_index(item.month_col_index)
        return CascadeTarget(Timeframe.WEEKLY, last_iso_week_of_month(year, month))

    if item.timeframe == Timeframe.WEEKLY:
        if item.week_number is None:
            return TERMINAL
        if parent_month_col_index is not None:
            year, month = decode_month_col_index(parent_month_col_index)
        else:
            year, month = reference_year, None
        sunday = sunday_for_week_in_context(year, item.week_number, month)
        return CascadeTarget(Timeframe.DAILY, date_to_date_key(sunday))

    return TERMINAL
