"""
Manager classes for the stratmap cascade engine.

Provides:
- StorageManager: JSON persistence in .stratmap/
- ItemStore / InMemoryItemStore / JsonItemStore: item persistence contract
- resolve_target: cascade rule resolver
- PropagationEngine: keeps cascade chains in lockstep with their roots
"""

from stratmap.managers.storage_manager import StorageManager
from stratmap.managers.item_store import (
    ItemStore,
    InMemoryItemStore,
    JsonItemStore,
)
from stratmap.managers.resolver import (
    CascadeTarget,
    TERMINAL,
    resolve_target,
)
from stratmap.managers.propagation import PropagationEngine

__all__ = [
    "StorageManager",
    "ItemStore",
    "InMemoryItemStore",
    "JsonItemStore",
    "CascadeTarget",
    "TERMINAL",
    "resolve_target",
    "PropagationEngine",
]
