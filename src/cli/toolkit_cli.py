"""
Typer CLI for the assessment toolkit.

Developer tooling for inspecting tool registrations, visibility, config
resolution and attempt identities without a browser.

Commands:
    toolkit tools list                     - Show registered tools and their PNP support ids
    toolkit tools visible ITEM.json        - Show tools visible for an item (or one element)
    toolkit tools resolve TOOL             - Resolve a tool from item/roster/student config
    toolkit scoped-id parse ID             - Parse a scoped tool instance id
    toolkit session identifier ASSESSMENT  - Compute a deterministic attempt identifier

Usage:
    toolkit --help
    toolkit tools visible item.json --level element --element-id mc1
    toolkit tools resolve calculator --roster calculator=0 --item-config '{"calculator": {}}'
    toolkit session identifier demo-assessment --user student-42
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from src.attempt.session import MissingIdentifierError, create_test_attempt_session_identifier
from src.section.models import AssessmentEntity, AssessmentItemRef, ItemEntity
from src.tools.config_normalizer import normalize_tools_config, parse_tool_list
from src.tools.config_resolver import ToolConfigResolver
from src.tools.context import ELEMENT, ITEM, ElementToolContext, ItemToolContext
from src.tools.registrations import create_default_tool_registry
from src.tools.scoped_id import ScopedToolIds

app = typer.Typer(
    name="toolkit",
    help="Assessment toolkit: tool visibility, config resolution and attempt sessions",
    no_args_is_help=True,
)

tools_app = typer.Typer(help="Tool registry and configuration", no_args_is_help=True)
scoped_id_app = typer.Typer(help="Scoped tool instance ids", no_args_is_help=True)
session_app = typer.Typer(help="Attempt sessions", no_args_is_help=True)

app.add_typer(tools_app, name="tools")
app.add_typer(scoped_id_app, name="scoped-id")
app.add_typer(session_app, name="session")

console = Console()


# ========================================
# TOOLS COMMANDS
# ========================================


@tools_app.command("list")
def tools_list() -> None:
    """List built-in tools."""
    registry = create_default_tool_registry()

    table = Table(title=f"Registered Tools ({len(registry)})", show_header=True)
    table.add_column("Tool", style="cyan")
    table.add_column("Name")
    table.add_column("Levels", style="green")
    table.add_column("PNP Support", style="dim")

    for meta in registry.get_tool_metadata():
        table.add_row(
            meta["toolId"],
            meta["name"],
            ", ".join(meta["supportedLevels"]),
            ", ".join(meta["pnpSupportIds"]),
        )

    console.print(table)


@tools_app.command("visible")
def tools_visible(
    item_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Item JSON file"),
    level: str = typer.Option(ITEM, "--level", "-l", help="item or element"),
    element_id: Optional[str] = typer.Option(None, "--element-id", "-e", help="Element id (element level)"),
    tools: Optional[str] = typer.Option(
        None, "--tools", "-t", help="Comma-separated allow list (default: placement for the level)"
    ),
) -> None:
    """Show which tools are visible for an item."""
    try:
        item = ItemEntity.model_validate(json.loads(item_file.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        rprint(f"[red]✗[/red] Invalid item file: {e}")
        raise typer.Exit(code=1)

    assessment = AssessmentEntity(id="cli")
    item_ref = AssessmentItemRef(identifier=item.id, item=item)

    if level == ELEMENT:
        if not element_id:
            rprint("[red]✗[/red] --element-id is required for the element level")
            raise typer.Exit(code=1)
        context = ElementToolContext(assessment=assessment, item_ref=item_ref, item=item, element_id=element_id)
    elif level == ITEM:
        context = ItemToolContext(assessment=assessment, item_ref=item_ref, item=item)
    else:
        rprint(f"[red]✗[/red] Unsupported level '{level}' (use item or element)")
        raise typer.Exit(code=1)

    allowed = parse_tool_list(tools) if tools is not None else normalize_tools_config(
        get_settings().get_tools_config()
    ).placement_for(level)

    registry = create_default_tool_registry()
    visible = registry.filter_visible_in_context(allowed, context)

    rprint(f"[bold]Allowed:[/bold] {', '.join(allowed) or '(none)'}")
    if not visible:
        rprint("[yellow]⚠[/yellow] No tools visible")
        return
    for tool in visible:
        rprint(f"  [green]✓[/green] {tool.tool_id} [dim]({tool.name})[/dim]")


def _parse_roster(value: str | None) -> dict[str, str]:
    roster: dict[str, str] = {}
    for entry in (value or "").split(","):
        if "=" not in entry:
            continue
        tool_id, allowance = entry.split("=", 1)
        roster[tool_id.strip()] = allowance.strip()
    return roster


@tools_app.command("resolve")
def tools_resolve(
    tool_id: str = typer.Argument(..., help="Tool id"),
    item_config: Optional[str] = typer.Option(None, "--item-config", help="Item tool config as JSON"),
    roster: Optional[str] = typer.Option(None, "--roster", help="Roster allowances, e.g. calculator=0,tts=1"),
    accommodations: Optional[str] = typer.Option(None, "--accommodations", help="Comma-separated accommodations"),
) -> None:
    """Resolve one tool through the item > roster > student hierarchy."""
    try:
        item = json.loads(item_config) if item_config else None
    except json.JSONDecodeError as e:
        rprint(f"[red]✗[/red] Invalid --item-config JSON: {e}")
        raise typer.Exit(code=1)

    if item is not None and not (
        isinstance(item, dict) and all(isinstance(config, dict) for config in item.values())
    ):
        rprint('[red]✗[/red] --item-config must map tool ids to objects, e.g. {"calculator": {}}')
        raise typer.Exit(code=1)

    student = {"accommodations": [a.strip() for a in (accommodations or "").split(",") if a.strip()]}
    resolved = ToolConfigResolver().resolve_tool(tool_id, item, _parse_roster(roster), student)

    if resolved is None:
        rprint(f"[yellow]⚠[/yellow] {tool_id}: not available")
        return

    table = Table(title=f"Resolved: {tool_id}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in resolved.to_dict().items():
        table.add_row(key, json.dumps(value) if not isinstance(value, str) else value)
    console.print(table)


# ========================================
# SCOPED ID COMMANDS
# ========================================


@scoped_id_app.command("parse")
def scoped_id_parse(tool_instance_id: str = typer.Argument(..., help="e.g. calculator:item:q1")) -> None:
    """Parse a scoped tool instance id."""
    codec = ScopedToolIds()
    parsed = codec.parse(tool_instance_id)
    if parsed is None:
        rprint(f"[red]✗[/red] Not a valid tool instance id: {tool_instance_id}")
        raise typer.Exit(code=1)

    rprint(f"[bold]Tool:[/bold]    {parsed.base_tool_id}")
    rprint(f"[bold]Level:[/bold]   {parsed.scope_level}")
    rprint(f"[bold]Scope:[/bold]   {parsed.scope_id}")
    rprint(f"[bold]Role:[/bold]    {parsed.role}")
    rprint(f"[bold]Overlay:[/bold] {codec.to_overlay(tool_instance_id)}")


# ========================================
# SESSION COMMANDS
# ========================================


@session_app.command("identifier")
def session_identifier(
    assessment_id: str = typer.Argument(..., help="Assessment id"),
    assignment_id: Optional[str] = typer.Option(None, "--assignment", "-a", help="Assignment id"),
    user_id: str = typer.Option("anonymous", "--user", "-u", help="User id (or device id)"),
) -> None:
    """Compute the deterministic attempt session identifier."""
    try:
        identity = create_test_attempt_session_identifier(assessment_id, assignment_id, user_id)
    except MissingIdentifierError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    rprint(f"[bold]Identifier:[/bold] {identity.identifier}")
    rprint(f"[bold]Seed:[/bold]       {identity.seed}")
    rprint(f"[dim]Storage key: {get_settings().session_storage_prefix}v1:{identity.identifier}[/dim]")


def main() -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")
    app()


if __name__ == "__main__":
    main()
