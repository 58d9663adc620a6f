"""
Item commands for the stratmap CLI.

Create, inspect, edit and delete strategic map items. Only root items can
be edited or deleted; their cascaded chains follow automatically.
"""
import json
from datetime import datetime
from typing import Optional

import click

from stratmap.calendar_math import date_to_date_key, month_col_index
from stratmap.constants import TIMEFRAME_ORDER
from stratmap.core import StratmapCore
from stratmap.exceptions import (
    CalendarComputationError,
    InvalidOperationError,
    InvariantViolationError,
    NotFoundError,
    StratmapError,
    ValidationError,
)


@click.group()
def item():
    """Manage strategic map items (yearly, monthly, weekly, daily goals)."""
    pass


def _get_core(ctx: click.Context) -> StratmapCore:
    obj = ctx.obj or {}
    return StratmapCore(data_dir=obj.get("data_dir"), reference_year=obj.get("reference_year"))


def _parse_month(value: Optional[str]) -> Optional[int]:
    """Turn YYYY-MM into a month column index."""
    if value is None:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a month. Use YYYY-MM, e.g. 2025-12.")
    return month_col_index(parsed.year, parsed.month)


def _parse_date_key(value: Optional[str]) -> Optional[int]:
    """Turn YYYY-MM-DD or YYYYMMDD into a date key."""
    if value is None:
        return None
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return date_to_date_key(datetime.strptime(value, fmt).date())
        except ValueError:
            continue
    raise click.BadParameter(f"'{value}' is not a date. Use YYYY-MM-DD or YYYYMMDD.")


def _serialize_item(item) -> dict:
    """Serialize an item to a dict for JSON output."""
    return item.model_dump(mode='json')


def _display_item(item, indent: str = "") -> None:
    """Display item details in human-readable format."""
    kind = "cascaded" if item.is_cascaded else "root"
    click.echo(f"{indent}[{item.timeframe.value}] {item.text}")
    click.echo(f"{indent}  ID: {item.id}")
    click.echo(f"{indent}  Status: {item.status}")
    click.echo(f"{indent}  Category: {item.category_index}")
    click.echo(f"{indent}  {item.timeframe.positional_field}: {item.positional_key}")
    click.echo(f"{indent}  Kind: {kind} (level {item.cascade_level})")


def _raise_click(e: StratmapError) -> None:
    if isinstance(e, NotFoundError):
        raise click.ClickException(str(e))
    if isinstance(e, ValidationError):
        raise click.ClickException(f"Validation Error: {e}")
    if isinstance(e, InvalidOperationError):
        raise click.ClickException(f"Operation Error: {e}")
    if isinstance(e, CalendarComputationError):
        raise click.ClickException(f"Calendar Error: {e}")
    if isinstance(e, InvariantViolationError):
        raise click.ClickException(f"Integrity Error: {e}")
    raise click.ClickException(f"Error: {e}")


_org_option = click.option(
    "-o", "--org", "organization_id", required=True, envvar="STRATMAP_ORG",
    help="Organization id (or STRATMAP_ORG).",
)


@item.command(name="add")
@_org_option
@click.option("-t", "--timeframe", required=True, type=click.Choice(TIMEFRAME_ORDER),
              help="Timeframe of the goal.")
@click.option("-c", "--category", "category_index", required=True, type=int,
              help="Category row index.")
@click.option("-x", "--text", required=True, help="Goal text.")
@click.option("-s", "--status", help="Initial status (default from config: neutral).")
@click.option("--year-index", type=int, help="Yearly position: offset from the reference year.")
@click.option("--month", help="Monthly position as YYYY-MM.")
@click.option("--week", "week_number", type=int, help="Weekly position: ISO week number.")
@click.option("--date", "date_value", help="Daily position as YYYY-MM-DD.")
@click.option("--created-by", help="Id of the author.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def add(ctx, organization_id, timeframe, category_index, text, status, year_index,
        month, week_number, date_value, created_by, json_output):
    """Add a goal and cascade it down to the daily view.

    Yearly goals land in December, December goals in the last ISO week of
    the month, and weekly goals on that week's Sunday.
    """
    try:
        result = _get_core(ctx).create_item(
            organization_id=organization_id,
            timeframe=timeframe,
            category_index=category_index,
            text=text,
            status=status,
            year_index=year_index,
            month_col_index=_parse_month(month),
            week_number=week_number,
            daily_date_key=_parse_date_key(date_value),
            created_by=created_by,
        )
    except StratmapError as e:
        _raise_click(e)

    if json_output:
        click.echo(json.dumps({
            "item": _serialize_item(result.item),
            "cascaded_items": [_serialize_item(c) for c in result.cascaded_items],
        }, indent=2))
        return

    click.echo(f"{timeframe.capitalize()} goal '{text}' created successfully ({result.item.id}).")
    for child in result.cascaded_items:
        click.echo(f"  ↳ cascaded to {child.timeframe.value} "
                   f"({child.timeframe.positional_field}={child.positional_key})")


@item.command(name="show")
@_org_option
@click.argument("item_id")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def show(ctx, organization_id, item_id, json_output):
    """Show a goal and every goal cascaded below it."""
    try:
        chain = _get_core(ctx).get_chain(organization_id, item_id)
    except StratmapError as e:
        _raise_click(e)

    if json_output:
        item_dict = _serialize_item(chain[0])
        item_dict["cascaded_items"] = [_serialize_item(c) for c in chain[1:]]
        click.echo(json.dumps(item_dict, indent=2))
        return

    for depth, chain_item in enumerate(chain):
        _display_item(chain_item, indent="    " * depth)


@item.command(name="list")
@_org_option
@click.option("-t", "--timeframe", type=click.Choice(TIMEFRAME_ORDER), help="Only this timeframe.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def list_items(ctx, organization_id, timeframe, json_output):
    """List an organization's goals."""
    try:
        items = _get_core(ctx).list_items(organization_id, timeframe)
    except StratmapError as e:
        _raise_click(e)

    if json_output:
        click.echo(json.dumps([_serialize_item(i) for i in items], indent=2))
        return

    if not items:
        click.echo("No items.")
        return
    for list_item in items:
        marker = "↳" if list_item.is_cascaded else "•"
        click.echo(
            f"{marker} [{list_item.timeframe.value}] {list_item.text} "
            f"({list_item.status}) {list_item.id}"
        )


@item.command(name="edit")
@_org_option
@click.argument("item_id")
@click.option("-x", "--text", help="New goal text.")
@click.option("-s", "--status", help="New status.")
@click.option("-c", "--category", "category_index", type=int, help="New category row index.")
@click.option("--year-index", type=int, help="New yearly position.")
@click.option("--month", help="New monthly position as YYYY-MM.")
@click.option("--week", "week_number", type=int, help="New weekly position.")
@click.option("--date", "date_value", help="New daily position as YYYY-MM-DD.")
@click.pass_context
def edit(ctx, organization_id, item_id, text, status, category_index, year_index,
         month, week_number, date_value):
    """Edit a root goal.

    Text and status changes flow down the cascade chain. Moving the goal
    (category or position) rebuilds its chain.
    """
    try:
        result = _get_core(ctx).update_item(
            organization_id,
            item_id,
            text=text,
            status=status,
            category_index=category_index,
            year_index=year_index,
            month_col_index=_parse_month(month),
            week_number=week_number,
            daily_date_key=_parse_date_key(date_value),
        )
    except StratmapError as e:
        _raise_click(e)

    click.echo(
        f"Item '{result.item.text}' updated successfully "
        f"({len(result.cascaded_items)} cascaded items in sync)."
    )


@item.command(name="delete")
@_org_option
@click.argument("item_id")
@click.confirmation_option(prompt="Are you sure you want to delete this item?")
@click.pass_context
def delete(ctx, organization_id, item_id):
    """Delete a root goal.

    WARNING: This will delete all cascaded items as well.
    """
    try:
        removed = _get_core(ctx).delete_item(organization_id, item_id)
    except StratmapError as e:
        _raise_click(e)

    click.echo(f"Item '{item_id}' deleted successfully ({removed} cascaded items removed).")


@item.command(name="check")
@_org_option
@click.pass_context
def check(ctx, organization_id):
    """Check every cascade chain of an organization for corruption."""
    try:
        problems = _get_core(ctx).check_integrity(organization_id)
    except StratmapError as e:
        _raise_click(e)

    if not problems:
        click.echo("All cascade chains are consistent.")
        return
    for problem in problems:
        click.echo(f"  ⚠ {problem}", err=True)
    raise click.ClickException(f"{len(problems)} cascade problem(s) found.")
