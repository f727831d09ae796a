"""CLI entry point for cauldron-trust.

Invoked as::

    cauldron-trust [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m cauldron_trust.cli.main

Commands
--------
db init              Create the schema and seed the badge catalog
badges list          List the badge catalog
badges create        Add a badge to the catalog
badges update        Edit or (de)activate a catalog badge
trust show           Display an agent's trust view
trust record-task    Record a task completion
trust feedback       Record a 1-5 rating
trust award-xp       Grant XP
trust award-badge    Grant a badge manually
trust history        Show an agent's XP ledger
serve                Run the HTTP server
"""
from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from cauldron_trust import __version__
from cauldron_trust.badges.catalog import Badge, BadgeCategory, BadgeTier, RequirementType
from cauldron_trust.config import Settings, configure_logging, load_settings
from cauldron_trust.errors import TrustEngineError
from cauldron_trust.scoring.actions import XpActionType

console = Console()
logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="cauldron-trust")
@click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy database URL for the trust store.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level.",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str | None, log_level: str | None) -> None:
    """Agent trust scoring, XP leveling, and badge awards"""
    settings = load_settings(database_url=database_url, log_level=log_level)
    configure_logging(settings.log_level)
    ctx.obj = settings


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    console.print(f"[bold]cauldron-trust[/bold] v{__version__}")


# ------------------------------------------------------------------
# db command group
# ------------------------------------------------------------------


@cli.group(name="db")
def db_group() -> None:
    """Manage the trust store."""


@db_group.command(name="init")
@click.pass_obj
def db_init_command(settings: Settings) -> None:
    """Create the schema and seed the default badge catalog."""
    from cauldron_trust.storage import Database

    database = None
    try:
        database = Database(settings.database_url, echo=settings.echo_sql)
        database.create_all()
        created = database.seed_badges()
    except TrustEngineError as exc:
        _fail(exc)
    finally:
        if database is not None:
            database.dispose()

    console.print(f"[green]Trust store ready[/green] at {settings.database_url}")
    console.print(f"  Badges seeded: {created}")


# ------------------------------------------------------------------
# badges command group
# ------------------------------------------------------------------


@cli.group(name="badges")
def badges_group() -> None:
    """Inspect and manage the badge catalog."""


@badges_group.command(name="list")
@click.option("--active-only", is_flag=True, default=False, help="Hide inactive badges.")
@click.pass_obj
def badges_list_command(settings: Settings, active_only: bool) -> None:
    """List every badge in the catalog."""
    engine = _engine(settings)
    try:
        badges = engine.list_badges(active_only=active_only)
    except TrustEngineError as exc:
        _fail(exc)

    if not badges:
        console.print("[yellow]The badge catalog is empty.[/yellow]")
        return

    table = Table(title="Badge Catalog", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Tier")
    table.add_column("Requirement")
    table.add_column("Active", justify="center")

    for badge in badges:
        requirement = (
            "manual award"
            if badge.requirement_type.value == "SPECIAL"
            else f"{badge.requirement_type.value} >= {badge.requirement_value:g}"
        )
        table.add_row(
            badge.badge_id,
            badge.name,
            badge.category.value,
            badge.tier.value,
            requirement,
            "[green]Yes[/green]" if badge.is_active else "[red]No[/red]",
        )

    console.print(table)
    console.print(f"\nTotal: {len(badges)} badge(s)")


_CATEGORY_CHOICE = click.Choice([c.value for c in BadgeCategory], case_sensitive=False)
_TIER_CHOICE = click.Choice([t.value for t in BadgeTier], case_sensitive=False)
_REQUIREMENT_CHOICE = click.Choice([r.value for r in RequirementType], case_sensitive=False)


@badges_group.command(name="create")
@click.argument("badge_id")
@click.option("--name", required=True, help="Display name.")
@click.option("--description", "-d", default="", help="What the badge recognizes.")
@click.option("--category", type=_CATEGORY_CHOICE, required=True)
@click.option("--tier", type=_TIER_CHOICE, required=True)
@click.option("--requirement-type", type=_REQUIREMENT_CHOICE, required=True)
@click.option(
    "--requirement-value",
    type=click.FloatRange(min=0),
    default=1.0,
    show_default=True,
    help="Threshold the requirement metric must reach.",
)
@click.option("--inactive", is_flag=True, default=False, help="Create the badge switched off.")
@click.pass_obj
def badges_create_command(
    settings: Settings,
    badge_id: str,
    name: str,
    description: str,
    category: str,
    tier: str,
    requirement_type: str,
    requirement_value: float,
    inactive: bool,
) -> None:
    """Add BADGE_ID to the badge catalog."""
    badge = Badge(
        badge_id=badge_id,
        name=name,
        description=description,
        category=BadgeCategory(category.upper()),
        tier=BadgeTier(tier.upper()),
        requirement_type=RequirementType(requirement_type.upper()),
        requirement_value=requirement_value,
        is_active=not inactive,
    )
    try:
        _catalog(settings).create_badge(badge)
    except TrustEngineError as exc:
        _fail(exc)

    console.print(f"[green]Created badge[/green] [bold]{badge_id}[/bold] ({badge.tier.value})")


@badges_group.command(name="update")
@click.argument("badge_id")
@click.option("--name", default=None, help="New display name.")
@click.option("--description", "-d", default=None, help="New description.")
@click.option("--category", type=_CATEGORY_CHOICE, default=None)
@click.option("--tier", type=_TIER_CHOICE, default=None)
@click.option("--requirement-type", type=_REQUIREMENT_CHOICE, default=None)
@click.option("--requirement-value", type=click.FloatRange(min=0), default=None)
@click.option("--active/--inactive", "is_active", default=None, help="Switch automatic awards on or off.")
@click.pass_obj
def badges_update_command(
    settings: Settings,
    badge_id: str,
    name: str | None,
    description: str | None,
    category: str | None,
    tier: str | None,
    requirement_type: str | None,
    requirement_value: float | None,
    is_active: bool | None,
) -> None:
    """Edit BADGE_ID; options left out keep their current value."""
    try:
        badge = _catalog(settings).update_badge(
            badge_id,
            name=name,
            description=description,
            category=category.upper() if category else None,
            tier=tier.upper() if tier else None,
            requirement_type=requirement_type.upper() if requirement_type else None,
            requirement_value=requirement_value,
            is_active=is_active,
        )
    except TrustEngineError as exc:
        _fail(exc)

    state = "[green]active[/green]" if badge.is_active else "[red]inactive[/red]"
    console.print(f"Updated badge [bold]{badge.badge_id}[/bold] ({state})")


# ------------------------------------------------------------------
# trust command group
# ------------------------------------------------------------------


@cli.group(name="trust")
def trust_group() -> None:
    """Inspect and update agent trust records."""


@trust_group.command(name="show")
@click.argument("agent_id")
@click.pass_obj
def trust_show_command(settings: Settings, agent_id: str) -> None:
    """Display the trust view for AGENT_ID."""
    engine = _engine(settings)
    try:
        view = engine.get_agent_trust_score(agent_id)
    except TrustEngineError as exc:
        _fail(exc)
    _print_view(view)


@trust_group.command(name="record-task")
@click.argument("agent_id")
@click.option("--failed", is_flag=True, default=False, help="Record a failed task.")
@click.option("--task-type", default=None, help="Kind of task, recorded in the XP ledger.")
@click.pass_obj
def record_task_command(
    settings: Settings,
    agent_id: str,
    failed: bool,
    task_type: str | None,
) -> None:
    """Record a task completion for AGENT_ID."""
    engine = _engine(settings)
    try:
        view = engine.record_task(agent_id, success=not failed, task_type=task_type)
    except TrustEngineError as exc:
        _fail(exc)

    outcome = "[red]failed[/red]" if failed else "[green]successful[/green]"
    console.print(f"Recorded {outcome} task for [bold]{agent_id}[/bold]")
    _print_view(view)


@trust_group.command(name="feedback")
@click.argument("agent_id")
@click.argument("rating", type=click.IntRange(1, 5))
@click.pass_obj
def feedback_command(settings: Settings, agent_id: str, rating: int) -> None:
    """Record a RATING from 1 to 5 for AGENT_ID."""
    engine = _engine(settings)
    try:
        view = engine.record_feedback(agent_id, rating)
    except TrustEngineError as exc:
        _fail(exc)

    console.print(f"Recorded rating [bold]{rating}[/bold] for [bold]{agent_id}[/bold]")
    _print_view(view)


@trust_group.command(name="award-xp")
@click.argument("agent_id")
@click.argument("xp", type=click.IntRange(min=0))
@click.option(
    "--action-type",
    type=click.Choice([a.value for a in XpActionType], case_sensitive=False),
    default=XpActionType.SPECIAL_ACHIEVEMENT.value,
    show_default=True,
    help="Ledger action type for the grant.",
)
@click.option("--description", "-d", default=None, help="Ledger description.")
@click.pass_obj
def award_xp_command(
    settings: Settings,
    agent_id: str,
    xp: int,
    action_type: str,
    description: str | None,
) -> None:
    """Grant XP experience points to AGENT_ID."""
    engine = _engine(settings)
    try:
        view = engine.award_xp(agent_id, xp, action_type.upper(), description=description)
    except TrustEngineError as exc:
        _fail(exc)

    console.print(f"Awarded [bold]{xp}[/bold] XP to [bold]{agent_id}[/bold]")
    _print_view(view)


@trust_group.command(name="award-badge")
@click.argument("agent_id")
@click.argument("badge_id")
@click.pass_obj
def award_badge_command(settings: Settings, agent_id: str, badge_id: str) -> None:
    """Grant BADGE_ID to AGENT_ID."""
    engine = _engine(settings)
    try:
        result = engine.award_badge(agent_id, badge_id)
    except TrustEngineError as exc:
        _fail(exc)

    if result.success:
        console.print(f"[green]{result.message}[/green] to [bold]{agent_id}[/bold]")
    else:
        console.print(f"[yellow]{result.message}[/yellow]")


@trust_group.command(name="history")
@click.argument("agent_id")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Newest N entries.")
@click.pass_obj
def history_command(settings: Settings, agent_id: str, limit: int | None) -> None:
    """Show the XP ledger for AGENT_ID, newest first."""
    engine = _engine(settings)
    try:
        entries = engine.xp_history(agent_id, limit=limit)
    except TrustEngineError as exc:
        _fail(exc)

    if not entries:
        console.print(f"[yellow]No XP history for {agent_id}.[/yellow]")
        return

    table = Table(title=f"XP History — {agent_id}", show_header=True)
    table.add_column("When", style="dim")
    table.add_column("Action", style="cyan")
    table.add_column("XP", justify="right")
    table.add_column("Description")

    for entry in entries:
        table.add_row(
            entry.created_at.isoformat(timespec="seconds"),
            entry.action_type.value,
            f"+{entry.xp}",
            entry.description or "",
        )

    console.print(table)


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@cli.command(name="serve")
@click.option("--host", default=None, help="Bind address.")
@click.option("--port", type=int, default=None, help="TCP port.")
@click.pass_obj
def serve_command(settings: Settings, host: str | None, port: int | None) -> None:
    """Run the trust HTTP server."""
    from cauldron_trust.server.app import configure_from_settings, run_server

    configure_from_settings(settings)
    run_server(host=host or settings.host, port=port if port is not None else settings.port)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _engine(settings: Settings):  # type: ignore[no-untyped-def]
    from cauldron_trust.engine import build_engine

    try:
        return build_engine(settings)
    except TrustEngineError as exc:
        _fail(exc)


def _catalog(settings: Settings):  # type: ignore[no-untyped-def]
    from cauldron_trust.badges.manager import BadgeCatalogManager

    return BadgeCatalogManager(_engine(settings).database)


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {exc}")
    sys.exit(1)


def _print_view(view) -> None:  # type: ignore[no-untyped-def]
    table = Table(title=f"Trust Score — {view.agent_id}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Trust score", f"{view.trust_score:.2f}")
    table.add_row("Trust level", view.trust_level.value)
    table.add_row("Level", str(view.level))
    table.add_row("Experience", f"{view.experience_points} / {view.xp_for_next_level}")
    table.add_row("Level progress", f"{view.level_progress:.1f}%")
    table.add_row("Tasks", f"{view.successful_tasks} ok / {view.failed_tasks} failed")
    table.add_row("Success rate", f"{view.success_rate:.1f}%")
    table.add_row("Feedback", str(view.feedback_count))
    table.add_row("Approval rate", f"{view.approval_rate:.1f}%")
    table.add_row("Badges", str(len(view.earned_badges)))

    console.print(table)
    for badge in view.new_badges:
        console.print(f"  [green]New badge:[/green] {badge.name} ({badge.tier.value})")


if __name__ == "__main__":
    cli()
