"""
Bois & Bocage CLI

Examples:
    # Dashboard table, filtered and sorted
    bocage list --department 22 --certified --min-score 60 --sort estimated_area

    # One farm: profile, score audit, journey and history
    bocage show 42

    # Record a call outcome
    bocage log 42 interested --notes "Rappeler après moisson"

    # Email the awareness brochure
    bocage send-doc 42 brochure

    # Campaign progress
    bocage pipeline

    # Export the filtered list
    bocage export -o prospects.csv --zone Nord

    # Check configuration
    bocage check
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api import OutreachSession
from .backend.client import AuthenticationError, BackendError
from .config import Settings, load_config
from .constants import KIND_LABELS, MESSAGES, PIPELINE_ORDER, STATUS_COLOURS, STATUS_LABELS
from .export import export_csv_string, export_prospects
from .journey import BROCHURE, DOCUMENT_TAGS, ENGAGEMENT, journey_progress, send_document
from .models import InteractionKind
from .report import (
    SORT_KEYS,
    ProspectFilter,
    SortState,
    build_pipeline_report,
    compute_kpis,
    filter_prospects,
    recent_activity,
    sort_prospects,
)
from .scoring import get_score_breakdown, score_tier

# Progress to stderr, data to stdout
console = Console(stderr=True)
logger = logging.getLogger(__name__)

TIER_COLOURS = {"high": "green", "medium": "yellow", "low": "red"}


def setup_logging(verbose: bool, quiet: bool, debug: bool) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def status_badge(status) -> str:
    colour = STATUS_COLOURS[status]
    return f"[{colour}]{STATUS_LABELS[status]}[/{colour}]"


def score_badge(score: int) -> str:
    colour = TIER_COLOURS[score_tier(score)]
    return f"[{colour}]{score}[/{colour}]"


def format_area(area: Optional[float]) -> str:
    return f"{round(area)}" if area else "-"


async def _open_loaded(settings: Settings) -> OutreachSession:
    """Open a session and load the snapshot, exiting on failure."""
    try:
        session = await OutreachSession.open(settings)
    except AuthenticationError as e:
        console.print(f"[red]Sign-in failed:[/red] {e}")
        sys.exit(1)
    except BackendError as e:
        console.print(f"[red]Backend error:[/red] {e}")
        sys.exit(1)

    result = await session.refresh()
    if not result.ok:
        await session.close()
        console.print(f"[red]{session.error or 'Load failed'}[/red]")
        console.print("[dim]Retry with the same command once the backend is reachable.[/dim]")
        sys.exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    return session


def _settings(ctx: click.Context) -> Settings:
    settings: Settings = ctx.obj["settings"]
    if not settings.backend_configured:
        console.print("[red]Backend not configured.[/red]")
        console.print("  Set [cyan]SUPABASE_URL[/cyan] and [cyan]SUPABASE_ANON_KEY[/cyan] (or use a .env file).")
        sys.exit(1)
    return settings


def filter_options(func):
    """Shared filter options for list and export."""
    options = [
        click.option("-s", "--search", default="", help="Name or external reference contains"),
        click.option("--department", help="Department equals"),
        click.option("--zone", help="Zone equals"),
        click.option("--certified", is_flag=True, help="Certified farms only"),
        click.option("--min-score", type=int, default=0, help="Minimum relevance score"),
        click.option("--sort", "sort_key", type=click.Choice(SORT_KEYS), default="relevance_score",
                     help="Sort column"),
        click.option("--asc", is_flag=True, help="Ascending order (default descending)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def apply_filters(prospects, search, department, zone, certified, min_score, sort_key, asc):
    prospect_filter = ProspectFilter(
        search=search,
        department=department,
        zone=zone,
        certified_only=certified,
        min_score=min_score,
    )
    return sort_prospects(
        filter_prospects(prospects, prospect_filter),
        SortState(key=sort_key, ascending=asc),
    )


def display_kpis(prospects) -> None:
    kpis = compute_kpis(prospects)
    total_area = f"{round(kpis.total_area):,}".replace(",", " ")
    console.print(
        f"[bold]Prospects[/bold] {kpis.count}   "
        f"[bold]SAU totale[/bold] {total_area} ha   "
        f"[bold]Certifiés[/bold] {kpis.certified_pct}%   "
        f"[bold]Score moyen[/bold] {kpis.mean_score}"
    )


def display_table(prospects) -> None:
    table = Table(show_header=True, header_style="bold green")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Exploitation", style="cyan", max_width=30)
    table.add_column("Ville")
    table.add_column("Dept", justify="center")
    table.add_column("Zone", justify="center")
    table.add_column("SAU (ha)", justify="right")
    table.add_column("Score", justify="center")
    table.add_column("Statut", justify="center")

    for p in prospects:
        table.add_row(
            str(p.id),
            p.name[:30],
            p.city or "",
            p.department or "",
            p.zone or "",
            format_area(p.estimated_area),
            score_badge(p.relevance_score),
            status_badge(p.status),
        )

    console.print(table)
    if not prospects:
        console.print(f"[dim]{MESSAGES['no_match']}[/dim]")


# ============================================================================
# CLI Group
# ============================================================================

@click.group(invoke_without_command=True)
@click.option("--config", type=click.Path(exists=True), help="YAML config file")
@click.option("-q", "--quiet", is_flag=True, help="Only errors on stderr")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
@click.version_option(version="1.0.0")
def cli(ctx, config, quiet, verbose, debug):
    """Outreach tracker for the Bois & Bocage recruitment campaign."""
    setup_logging(verbose, quiet, debug)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_config(config)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============================================================================
# List / Export
# ============================================================================

@cli.command("list")
@filter_options
@click.option("-l", "--limit", type=int, default=0, help="Show at most N rows")
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json", "csv"]),
              default="table", help="Output format")
@click.pass_context
def list_prospects(ctx, search, department, zone, certified, min_score, sort_key, asc, limit, output_format):
    """List prospects with dashboard filters and KPIs."""
    settings = _settings(ctx)

    async def run():
        session = await _open_loaded(settings)
        async with session:
            return apply_filters(session.prospects, search, department, zone, certified, min_score, sort_key, asc)

    prospects = asyncio.run(run())

    if output_format == "json":
        rows = prospects[:limit] if limit else prospects
        click.echo(json.dumps([p.to_dict() for p in rows], indent=2, default=str, ensure_ascii=False))
        return
    if output_format == "csv":
        click.echo(export_csv_string(prospects[:limit] if limit else prospects, bom=False), nl=False)
        return

    display_kpis(prospects)
    display_table(prospects[:limit] if limit else prospects)


@cli.command()
@filter_options
@click.option("-o", "--output", type=click.Path(), help="Output file (default from config)")
@click.option("-f", "--format", "output_format", type=click.Choice(["csv", "json"]), default="csv",
              help="Output format")
@click.pass_context
def export(ctx, search, department, zone, certified, min_score, sort_key, asc, output, output_format):
    """Export the filtered prospects (CSV is spreadsheet-safe)."""
    settings = _settings(ctx)

    async def run():
        session = await _open_loaded(settings)
        async with session:
            return apply_filters(session.prospects, search, department, zone, certified, min_score, sort_key, asc)

    prospects = asyncio.run(run())
    output = output or settings.export_filename
    path = export_prospects(prospects, output, format=output_format)
    console.print(f"[green]Exported {len(prospects)} prospects to[/green] {path}")


# ============================================================================
# Show / Log / Send document
# ============================================================================

@cli.command()
@click.argument("prospect_id", type=int)
@click.pass_context
def show(ctx, prospect_id):
    """Show one prospect: profile, score audit, journey and history."""
    settings = _settings(ctx)

    async def run():
        session = await _open_loaded(settings)
        async with session:
            return session.get_prospect(prospect_id), session.history(prospect_id)

    prospect, history = asyncio.run(run())
    if prospect is None:
        console.print(f"[red]{MESSAGES['not_found']}[/red] (#{prospect_id})")
        sys.exit(1)

    title = " ".join(part for part in (prospect.civility, prospect.name) if part)
    lines = [
        f"N° {prospect.external_reference} | Zone {prospect.zone or '-'} | {status_badge(prospect.status)}",
        "",
        prospect.street or "",
        f"{prospect.postal_code or ''} {prospect.city or ''}".strip(),
        f"Dept {prospect.department or '-'}",
    ]
    if prospect.farm_phone:
        lines.append(f"Tél. élevage: {prospect.farm_phone}")
    if prospect.home_phone:
        lines.append(f"Tél. domicile: {prospect.home_phone}")
    if prospect.email:
        lines.append(f"Email: {prospect.email}")
    if prospect.account_manager:
        lines.append(f"TC référent: {prospect.account_manager}")
    console.print(Panel("\n".join(lines), title=title, expand=False))

    breakdown = get_score_breakdown(prospect, settings.scoring)
    table = Table(title=f"Score {prospect.relevance_score}", show_header=True, header_style="bold")
    table.add_column("Critère")
    table.add_column("Points", justify="right")
    for criterion in breakdown.criteria:
        mark = "[green]✓[/green]" if criterion.met else "[dim]✗[/dim]"
        table.add_row(f"{mark} {criterion.label}", f"{criterion.points_awarded}/{criterion.points_max}")
    table.add_row("[bold]Total[/bold]", f"{breakdown.total}/{breakdown.maximum}")
    console.print(table)
    if breakdown.has_discrepancy:
        console.print(f"[dim]{breakdown.discrepancy_label}[/dim]")

    progress = journey_progress(prospect, history)
    steps = "  →  ".join(
        f"[green]{step.label}[/green]" if done else f"[dim]{step.label}[/dim]"
        for step, done in progress.steps()
    )
    console.print(Panel(steps, title="Parcours commercial", expand=False))

    if not history:
        console.print("[dim]Aucune action[/dim]")
    for interaction in history:
        when = interaction.created_at.strftime("%d/%m %H:%M")
        who = f" ({interaction.created_by})" if interaction.created_by else ""
        notes = f" - {interaction.notes}" if interaction.notes else ""
        console.print(f"{when}  {KIND_LABELS[interaction.kind]}{who}{notes}")


async def _record(settings: Settings, action) -> None:
    session = await _open_loaded(settings)
    async with session:
        error = await action(session)
    if error is not None:
        console.print(f"[red]{error}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("prospect_id", type=int)
@click.argument("kind", type=click.Choice([k.value for k in InteractionKind]))
@click.option("-n", "--notes", help="Free-text notes")
@click.pass_context
def log(ctx, prospect_id, kind, notes):
    """Record an interaction with a prospect."""
    settings = _settings(ctx)

    async def action(session):
        if session.get_prospect(prospect_id) is None:
            return MESSAGES["not_found"]
        error = await session.add_interaction(prospect_id, kind, notes)
        if error is None:
            prospect = session.get_prospect(prospect_id)
            console.print(f"[green]Recorded.[/green] {prospect.name}: {status_badge(prospect.status)}")
        return error

    asyncio.run(_record(settings, action))


@cli.command("send-doc")
@click.argument("prospect_id", type=int)
@click.argument("document", type=click.Choice([BROCHURE, ENGAGEMENT]))
@click.pass_context
def send_doc(ctx, prospect_id, document):
    """Record that a campaign document was emailed."""
    settings = _settings(ctx)

    async def action(session):
        prospect = session.get_prospect(prospect_id)
        if prospect is None:
            return MESSAGES["not_found"]
        sent, error = await send_document(session.mutations, prospect, session.history(prospect_id), document)
        if sent:
            console.print(f"[green]Sent:[/green] {DOCUMENT_TAGS[document]}")
        elif error is None:
            console.print(f"[yellow]Already sent:[/yellow] {DOCUMENT_TAGS[document]}")
        return error

    asyncio.run(_record(settings, action))


# ============================================================================
# Pipeline
# ============================================================================

@cli.command()
@click.pass_context
def pipeline(ctx):
    """Campaign progress: goal gauge, status counts, recent activity."""
    settings = _settings(ctx)

    async def run():
        session = await _open_loaded(settings)
        async with session:
            report = build_pipeline_report(session.prospects, settings.recruitment_goal)
            activity = recent_activity(session.interactions, session.prospects, settings.recent_activity_limit)
            return report, activity

    report, activity = asyncio.run(run())

    width = 40
    filled = round(width * report.progress / 100)
    console.print(Panel(
        f"[green]{'█' * filled}[/green]{'░' * (width - filled)}  "
        f"{report.recruited} / {report.goal}  ({report.progress}%)",
        title="Objectif annuel",
        expand=False,
    ))

    table = Table(title="Pipeline", show_header=True, header_style="bold")
    table.add_column("Statut")
    table.add_column("Prospects", justify="right")
    table.add_column("Part", justify="right")
    for status in PIPELINE_ORDER:
        table.add_row(status_badge(status), str(report.counts[status]), f"{report.share(status):.0%}")
    console.print(table)

    console.print("\n[bold]Actions récentes[/bold]")
    if not activity:
        console.print(f"[dim]{MESSAGES['no_activity']}[/dim]")
    for entry in activity:
        name = entry.prospect.name if entry.prospect else f"#{entry.interaction.prospect_id}"
        when = entry.interaction.created_at.strftime("%d/%m %H:%M")
        console.print(f"{when}  {KIND_LABELS[entry.interaction.kind]:<12} {name}")


# ============================================================================
# Check
# ============================================================================

@cli.command()
@click.pass_context
def check(ctx):
    """Check configuration."""
    settings: Settings = ctx.obj["settings"]

    def mark(ok: bool) -> str:
        return "[green]✓[/green]" if ok else "[red]✗[/red]"

    console.print(f"{mark(bool(settings.supabase_url))} SUPABASE_URL")
    console.print(f"{mark(bool(settings.supabase_anon_key))} SUPABASE_ANON_KEY")
    console.print(f"{mark(bool(settings.email and settings.password))} Sign-in credentials (needed to record actions)")
    console.print(f"  Row caps: {settings.prospect_limit} prospects, {settings.interaction_limit} actions")
    console.print(f"  Reconcile: {settings.reconcile}")
    console.print(f"  Recruitment goal: {settings.recruitment_goal}")

    if not settings.backend_configured:
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
