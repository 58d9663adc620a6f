"""
File models for the stratmap cascade engine.

Models representing the structure of JSON files in the .stratmap/ directory.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from stratmap.constants import DEFAULT_LOG_LEVEL, DEFAULT_REFERENCE_YEAR, DEFAULT_STATUS

from .base import Item


class ItemsFile(BaseModel):
    """Model for items.json file.

    Flat list of every item, roots and cascaded, linked by parent_item_id.
    """

    schema_version: str = "1.0.0"
    items: List[Item] = Field(default_factory=list)


class ConfigFile(BaseModel):
    """Model for config.json file.

    Engine settings and configuration.
    """

    schema_version: str = "1.0.0"

    # Year that yearly offsets and context-less weeks are measured from.
    # Null means the wall-clock year.
    reference_year: Optional[int] = DEFAULT_REFERENCE_YEAR

    default_status: str = DEFAULT_STATUS
    log_level: str = DEFAULT_LOG_LEVEL
