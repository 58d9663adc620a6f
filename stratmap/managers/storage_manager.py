"""
Storage manager for the stratmap cascade engine.

Handles loading and saving of all JSON files in the .stratmap/ directory.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from stratmap.constants import DEFAULT_DATA_DIR_NAME
from stratmap.exceptions import StorageError
from stratmap.models.files import ConfigFile, ItemsFile


class StorageManager:
    """
    Manages persistence of strategic map data to JSON files in the .stratmap/ directory.

    Handles atomic writes to prevent data corruption.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize the StorageManager with a .stratmap/ directory path.

        Args:
            data_dir: Path to the .stratmap/ directory. Defaults to .stratmap/ in current directory.
        """
        self.data_dir = data_dir if data_dir else Path(DEFAULT_DATA_DIR_NAME)
        self._ensure_data_dir()

    def _ensure_data_dir(self) -> None:
        """Create the .stratmap/ directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _atomic_write(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Write data to a JSON file atomically to prevent corruption.

        Args:
            file_path: Path to the file to write.
            data: Dictionary data to write as JSON.

        Raises:
            StorageError: If writing to file fails.
        """
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.data_dir, prefix=".tmp_stratmap_", suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, "w") as temp_file:
                json.dump(data, temp_file, indent=2)
            os.replace(temp_path, file_path)
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageError(f"Failed to write to {file_path}: {e}")

    # =========================================================================
    # Items File
    # =========================================================================

    @property
    def items_path(self) -> Path:
        return self.data_dir / "items.json"

    def load_items(self) -> ItemsFile:
        """Load items.json and return as ItemsFile model."""
        if not self.items_path.exists():
            return ItemsFile()

        try:
            with open(self.items_path, "r") as f:
                data = json.load(f)
            return ItemsFile.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to load items.json: {e}")

    def save_items(self, data: ItemsFile) -> None:
        """Save ItemsFile model to items.json."""
        self._atomic_write(self.items_path, data.model_dump(mode="json"))

    # =========================================================================
    # Config File
    # =========================================================================

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.json"

    def load_config(self) -> ConfigFile:
        """Load config.json and return as ConfigFile model."""
        if not self.config_path.exists():
            return ConfigFile()

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            return ConfigFile.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to load config.json: {e}")

    def save_config(self, data: ConfigFile) -> None:
        """Save ConfigFile model to config.json."""
        self._atomic_write(self.config_path, data.model_dump(mode="json"))
