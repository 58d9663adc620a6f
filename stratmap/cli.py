"""
Command-line interface for stratmap.

Goals entered at any timeframe cascade down to the daily view.
"""
from pathlib import Path

import click

from stratmap.commands.config import config
from stratmap.commands.item import item
from stratmap.constants import ConfigManager, set_config_manager
from stratmap.logging_config import configure_logging


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              envvar="STRATMAP_DATA_DIR", help="Data directory (default: ./.stratmap).")
@click.option("--reference-year", type=int,
              help="Pin the year that yearly offsets are measured from.")
@click.option("-v", "--verbose", is_flag=True, help="Log every cascade step to stderr.")
@click.pass_context
def cli(ctx, data_dir, reference_year, verbose):
    """Record goals on a yearly/monthly/weekly/daily strategic map."""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["reference_year"] = reference_year
    if data_dir is not None:
        set_config_manager(ConfigManager(data_dir=data_dir))
    configure_logging("DEBUG" if verbose else None)


cli.add_command(item)
cli.add_command(config)


if __name__ == '__main__':
    cli()
