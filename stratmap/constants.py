"""
Constants for the stratmap cascade engine.

Note: These constants serve as default fallback values.
Actual values are loaded from .stratmap/config.json at runtime via ConfigManager.
"""
from pathlib import Path
from typing import Any, Optional
import json

# =============================================================================
# Default Fallback Values
# These are used if config.json doesn't exist or doesn't specify a value.
# =============================================================================

DEFAULT_DATA_DIR_NAME = ".stratmap"

# Status given to new items when the caller doesn't supply one
DEFAULT_STATUS = "neutral"

# None means "use the wall-clock year at the call site"
DEFAULT_REFERENCE_YEAR = None

DEFAULT_LOG_LEVEL = "WARNING"

# Timeframe names, coarsest first (not configurable)
TIMEFRAME_ORDER = ["yearly", "monthly", "weekly", "daily"]

# Deepest cascade level: yearly -> monthly -> weekly -> daily (not configurable)
MAX_CASCADE_LEVEL = len(TIMEFRAME_ORDER) - 1

# Positional field carried by each timeframe (not configurable)
POSITIONAL_FIELDS = {
    "yearly": "year_index",
    "monthly": "month_col_index",
    "weekly": "week_number",
    "daily": "daily_date_key",
}

# Payload copied from a parent to its cascaded child on update
PROPAGATED_FIELDS = ("text", "status")

# Fields whose change moves a root to a different cascade target
RETARGET_FIELDS = ("category_index",) + tuple(POSITIONAL_FIELDS.values())

# Fields a caller may change through update_item
UPDATABLE_FIELDS = PROPAGATED_FIELDS + RETARGET_FIELDS

# Validation error messages (not configurable)
VALIDATION_TEXT_REQUIRED = "Text is required for all items."
VALIDATION_INVALID_TIMEFRAME = "Timeframe must be one of: yearly, monthly, weekly, daily."
VALIDATION_NO_UPDATE_FIELDS = (
    "No update parameters provided. "
    "Please specify at least one field to update: text, status, category_index or a positional key."
)

# =============================================================================
# Config Loader
# Load values from .stratmap/config.json at runtime.
# =============================================================================

_config_manager_instance: Optional['ConfigManager'] = None


class ConfigManager:
    """
    Manages loading configuration from a config.json file with fallback to defaults.

    Usage:
        # With default path (.stratmap/config.json)
        config = ConfigManager()
        year = config.get('reference_year', DEFAULT_REFERENCE_YEAR)

        # With custom path
        config = ConfigManager(config_path=Path("/custom/path/config.json"))
    """

    def __init__(self, config_path: Optional[Path] = None, data_dir: Optional[Path] = None) -> None:
        """
        Initialize ConfigManager.

        Args:
            config_path: Direct path to config.json file. Takes precedence over data_dir.
            data_dir: Path to .stratmap/ directory. Config path will be data_dir/config.json.
        """
        self._config: Optional[dict] = None

        if config_path is not None:
            self._config_path = config_path
        elif data_dir is not None:
            self._config_path = data_dir / "config.json"
        else:
            self._config_path = Path(DEFAULT_DATA_DIR_NAME) / "config.json"

    def _load_config(self) -> dict:
        """Load config from config.json file."""
        if self._config is not None:
            return self._config

        if self._config_path.exists():
            try:
                with open(self._config_path, "r") as f:
                    self._config = json.load(f)
            except (json.JSONDecodeError, IOError):
                self._config = {}
        else:
            self._config = {}

        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value with fallback to default.

        Args:
            key: Configuration key name.
            default: Default value if key not found.

        Returns:
            Config value or default.
        """
        config = self._load_config()
        return config.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        """Get an integer config value with fallback."""
        value = self.get(key, default)
        return int(value) if value is not None else default

    def get_optional_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Get an integer config value that may legitimately be null."""
        value = self.get(key, default)
        return int(value) if value is not None else None

    def get_str(self, key: str, default: str) -> str:
        """Get a string config value with fallback."""
        value = self.get(key, default)
        return str(value) if value is not None else default

    def reload(self) -> dict:
        """Force reload of config from disk."""
        self._config = None
        return self._load_config()

    @property
    def config_path(self) -> Path:
        """Get the config file path."""
        return self._config_path


def get_config_manager(reset: bool = False) -> ConfigManager:
    """
    Get the singleton ConfigManager instance with default path.

    Args:
        reset: If True, reset the singleton and create a new instance.

    Returns:
        ConfigManager singleton instance.
    """
    global _config_manager_instance
    if _config_manager_instance is None or reset:
        _config_manager_instance = ConfigManager()
    return _config_manager_instance


def set_config_manager(manager: ConfigManager) -> None:
    """Install a specific ConfigManager as the singleton (e.g. for a custom data dir)."""
    global _config_manager_instance
    _config_manager_instance = manager


def reset_config_manager() -> None:
    """Reset the singleton ConfigManager instance (useful for testing)."""
    global _config_manager_instance
    _config_manager_instance = None


# Convenience functions for common config access
def get_reference_year() -> Optional[int]:
    """Get the pinned reference year from config, or None for wall-clock time."""
    return get_config_manager().get_optional_int('reference_year', DEFAULT_REFERENCE_YEAR)


def get_default_status() -> str:
    """Get the default item status from config or default."""
    return get_config_manager().get_str('default_status', DEFAULT_STATUS)


def get_log_level() -> str:
    """Get the log level name from config or default."""
    return get_config_manager().get_str('log_level', DEFAULT_LOG_LEVEL)
