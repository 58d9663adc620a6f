"""
Tests for ConfigManager and the config accessors.
"""

import json
from pathlib import Path

from stratmap.constants import (
    DEFAULT_STATUS,
    MAX_CASCADE_LEVEL,
    RETARGET_FIELDS,
    UPDATABLE_FIELDS,
    ConfigManager,
    get_config_manager,
    get_default_status,
    get_log_level,
    get_reference_year,
    reset_config_manager,
    set_config_manager,
)


def _write_config(data_dir: Path, **values) -> None:
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "config.json").write_text(json.dumps(values))


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_defaults_without_file(self, data_dir):
        config = ConfigManager(data_dir=data_dir)

        assert config.get("reference_year") is None
        assert config.get_str("default_status", DEFAULT_STATUS) == "neutral"
        assert config.get_int("missing", 7) == 7

    def test_reads_values(self, data_dir):
        _write_config(data_dir, reference_year=2027, default_status="on-track")
        config = ConfigManager(data_dir=data_dir)

        assert config.get_optional_int("reference_year") == 2027
        assert config.get_str("default_status", DEFAULT_STATUS) == "on-track"

    def test_null_reference_year(self, data_dir):
        _write_config(data_dir, reference_year=None)

        assert ConfigManager(data_dir=data_dir).get_optional_int("reference_year") is None

    def test_config_path_takes_precedence(self, data_dir, temp_dir):
        custom = temp_dir / "custom.json"
        custom.write_text(json.dumps({"log_level": "DEBUG"}))

        config = ConfigManager(config_path=custom, data_dir=data_dir)

        assert config.config_path == custom
        assert config.get("log_level") == "DEBUG"

    def test_corrupt_file_falls_back_to_defaults(self, data_dir):
        (data_dir / "config.json").write_text("{oops")

        assert ConfigManager(data_dir=data_dir).get("reference_year", 1999) == 1999

    def test_values_are_cached_until_reload(self, data_dir):
        _write_config(data_dir, reference_year=2025)
        config = ConfigManager(data_dir=data_dir)
        assert config.get("reference_year") == 2025

        _write_config(data_dir, reference_year=2026)
        assert config.get("reference_year") == 2025
        assert config.reload()["reference_year"] == 2026


class TestSingleton:
    """Tests for the process-wide ConfigManager."""

    def test_default_path_is_cwd(self):
        assert get_config_manager().config_path == Path(".stratmap") / "config.json"

    def test_same_instance_until_reset(self):
        first = get_config_manager()
        assert get_config_manager() is first
        reset_config_manager()
        assert get_config_manager() is not first

    def test_accessors_use_installed_manager(self, data_dir):
        _write_config(data_dir, reference_year=2024, default_status="blocked", log_level="INFO")
        set_config_manager(ConfigManager(data_dir=data_dir))

        assert get_reference_year() == 2024
        assert get_default_status() == "blocked"
        assert get_log_level() == "INFO"

    def test_accessor_defaults(self):
        assert get_reference_year() is None
        assert get_default_status() == "neutral"
        assert get_log_level() == "WARNING"


def test_field_groups():
    assert MAX_CASCADE_LEVEL == 3
    assert "category_index" in RETARGET_FIELDS
    assert set(UPDATABLE_FIELDS) == {
        "text", "status", "category_index",
        "year_index", "month_col_index", "week_number", "daily_date_key",
    }
