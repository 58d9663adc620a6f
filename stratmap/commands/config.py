"""
Config command group for the stratmap CLI.

Commands for viewing and editing engine configuration.
"""
import json

import click
from pydantic import ValidationError as PydanticValidationError

from stratmap.exceptions import StratmapError
from stratmap.managers.storage_manager import StorageManager
from stratmap.models import ConfigFile

# Values typed as these words on the command line mean "unset"
NULL_WORDS = ("null", "none", "")


def _get_storage(ctx: click.Context) -> StorageManager:
    obj = ctx.obj or {}
    return StorageManager(obj.get("data_dir"))


def _load(ctx: click.Context) -> tuple:
    storage = _get_storage(ctx)
    try:
        return storage, storage.load_config()
    except StratmapError as e:
        raise click.ClickException(f"Error: {e}")


@click.group()
def config():
    """View and edit engine configuration.

    Configuration is stored in .stratmap/config.json.
    """
    pass


@config.command(name="show")
@click.pass_context
def show_config(ctx):
    """Show current configuration."""
    _, config_file = _load(ctx)
    click.echo(json.dumps(config_file.model_dump(mode="json"), indent=2))


@config.command(name="get")
@click.argument("key")
@click.pass_context
def get_config(ctx, key):
    """Get a configuration value."""
    _, config_file = _load(ctx)
    if key not in ConfigFile.model_fields:
        raise click.ClickException(
            f"Unknown config key: '{key}'. Valid keys are: {', '.join(ConfigFile.model_fields)}."
        )
    click.echo(json.dumps(getattr(config_file, key)))


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value.

    Use 'null' to clear reference_year and follow the wall clock again.
    """
    storage, config_file = _load(ctx)
    if key not in ConfigFile.model_fields or key == "schema_version":
        raise click.ClickException(f"Unknown or read-only config key: '{key}'.")

    data = config_file.model_dump()
    data[key] = None if value.strip().lower() in NULL_WORDS else value
    if key == "log_level" and data[key] is not None:
        data[key] = data[key].upper()

    try:
        updated = ConfigFile.model_validate(data)
        storage.save_config(updated)
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid value for '{key}': {e.errors()[0]['msg']}")
    except StratmapError as e:
        raise click.ClickException(f"Error: {e}")

    click.echo(f"Set {key} = {json.dumps(getattr(updated, key))}")
