"""
Data models for the stratmap cascade engine.
"""

from .base import (
    Timeframe,
    Item,
)
from .files import (
    ItemsFile,
    ConfigFile,
)

__all__ = [
    "Timeframe",
    "Item",
    "ItemsFile",
    "ConfigFile",
]
