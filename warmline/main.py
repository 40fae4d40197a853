"""
Warmline CLI

Command-line interface for importing network exports and reviewing contacts.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

console = Console()

STATUS_STYLES = {"warm": "green", "cooling": "yellow", "cold": "blue"}


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging with rich handler."""
    handlers = [RichHandler(console=console, show_path=False)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def _open_store(ctx: click.Context):
    from warmline.storage import open_store

    config = ctx.obj["config"]
    if ctx.obj.get("store_path"):
        config.storage.backend = "disk"
        config.storage.path = ctx.obj["store_path"]
    return open_store(config.storage)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--config", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file (default: config.yaml)",
)
@click.option(
    "--store", "store_path",
    default=None,
    type=click.Path(file_okay=False),
    help="Contact store directory (overrides configuration)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_path: Optional[str],
    store_path: Optional[str],
) -> None:
    """Warmline - Turn your network export into warm, tagged contacts."""
    from warmline.utils.config import load_config

    ctx.ensure_object(dict)
    config = load_config(Path(config_path) if config_path else None)
    ctx.obj["config"] = config
    ctx.obj["store_path"] = store_path

    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = config.logging.level

    setup_logging(level, config.logging.file)


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Output directory for reports",
)
@click.option(
    "--format", "-f",
    "formats",
    multiple=True,
    type=click.Choice(["csv", "markdown", "json"]),
    help="Report formats to generate",
)
@click.option("--no-report", is_flag=True, help="Skip writing report files")
@click.option("--parallel", default=None, type=int, help="Worker threads for persistence")
@click.pass_context
def import_export(
    ctx: click.Context,
    path: str,
    output_dir: Optional[str],
    formats: tuple[str, ...],
    no_report: bool,
    parallel: Optional[int],
) -> None:
    """Import a connections CSV or a full export ZIP."""
    from warmline.errors import ArchiveError
    from warmline.pipeline.bulk_import import ImportCoordinator
    from warmline.pipeline.ingest import read_export_file
    from warmline.pipeline.outputs import ReportGenerator

    config = ctx.obj["config"]
    if parallel is not None:
        config.processing.parallel_calls = parallel

    console.print("\n[bold blue]Warmline Import[/bold blue]")
    console.print("=" * 50)

    store = _open_store(ctx)
    coordinator = ImportCoordinator.from_config(store, config)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Importing contacts...", total=None)

        def progress_cb(current: int, total: int) -> None:
            progress.update(task, completed=current, total=total)

        try:
            outcome = coordinator.import_payload(read_export_file(path), progress=progress_cb)
        except ArchiveError as e:
            progress.update(task, completed=True)
            console.print(f"  [red]✗[/red] {e}")
            sys.exit(1)
        progress.update(task, completed=True)

    console.print(f"  [green]✓[/green] Files processed: {', '.join(outcome.files_processed) or 'none'}")
    if outcome.profile_created:
        console.print("  [green]✓[/green] User profile created")
    elif outcome.profile_updated:
        console.print("  [green]✓[/green] User profile updated")

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Created", str(outcome.created_count))
    table.add_row("Duplicates skipped", str(outcome.skipped_count))
    table.add_row("Failed", str(outcome.failed_count))
    table.add_row("Flagged", str(len(outcome.invalid_rows)))
    console.print(table)

    if outcome.invalid_rows:
        console.print("\n[bold]Flagged rows:[/bold]")
        for issue in outcome.invalid_rows:
            console.print(f"  • {issue.name} <{issue.email or ''}>: [yellow]{issue.error}[/yellow]")

    if not no_report:
        from warmline.models.warmth import WarmthCalculator

        generator = ReportGenerator(
            output_dir=output_dir or config.output.directory,
            formats=list(formats) or config.output.formats,
            timestamp_filenames=config.output.timestamp_filenames,
            calculator=WarmthCalculator(**config.warmth.model_dump()),
        )
        output_files = generator.generate_import_report(outcome)
        console.print("\n[bold]Reports Generated:[/bold]")
        for fmt, filepath in output_files.items():
            console.print(f"  • {fmt}: [cyan]{filepath}[/cyan]")

    console.print()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", default=20, help="Maximum rows to show")
@click.pass_context
def preview(ctx: click.Context, path: str, limit: int) -> None:
    """Parse an export without saving anything."""
    from warmline.errors import ArchiveError
    from warmline.pipeline.archive import ExportFiles, extract_export_files, is_archive
    from warmline.pipeline.ingest import parse_connections, parse_positions, parse_profile, read_export_file

    config = ctx.obj["config"]
    data = read_export_file(path)

    try:
        if is_archive(data):
            files = extract_export_files(data, tuple(config.parsing.recognized_extensions))
        else:
            files = ExportFiles(connections=data.decode("utf-8", errors="replace"))
    except ArchiveError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    scan_lines = config.parsing.header_scan_lines

    if files.profile is not None:
        profile = parse_profile(files.profile, scan_lines)
        console.print(f"\n[bold]Profile:[/bold] {profile.full_name or 'Unknown'}  {profile.headline}")
    if files.positions is not None:
        work = parse_positions(files.positions, scan_lines)
        console.print(
            f"[bold]Positions:[/bold] {len(work.work_history)}"
            + (f" (current: {work.current_role} at {work.current_company})" if work.current_company else "")
        )

    if files.connections is None:
        console.print("\n[yellow]No connections table found[/yellow]")
        return

    contacts = parse_connections(files.connections, scan_lines, config.contacts)
    valid = sum(1 for c in contacts if c.is_valid)
    console.print(f"\n[bold]{len(contacts)} contacts parsed[/bold] ({valid} valid, {len(contacts) - valid} flagged)\n")

    if not contacts:
        console.print("Please check that the CSV headers match the standard export format.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Company")
    table.add_column("Role")
    table.add_column("Valid", justify="center")

    for c in contacts[:limit]:
        table.add_row(
            c.name,
            c.email or "",
            c.company,
            c.role,
            "[green]Yes[/green]" if c.is_valid else f"[red]{c.error}[/red]",
        )

    console.print(table)
    if len(contacts) > limit:
        console.print(f"[dim]... and {len(contacts) - limit} more[/dim]")


@cli.command()
@click.option("--query", "-q", default=None, help="Search name, role, company, and tags")
@click.option("--tag", "-t", default=None, help="Only contacts carrying this tag")
@click.option("--limit", default=25, help="Maximum contacts to show")
@click.option("--export", "export_dir", default=None, type=click.Path(file_okay=False), help="Write a CSV listing here")
@click.pass_context
def contacts(
    ctx: click.Context,
    query: Optional[str],
    tag: Optional[str],
    limit: int,
    export_dir: Optional[str],
) -> None:
    """List contacts with freshly computed warmth."""
    from warmline.models.warmth import WarmthCalculator
    from warmline.pipeline.outputs import ReportGenerator
    from warmline.storage.base import filter_contacts

    config = ctx.obj["config"]
    calculator = WarmthCalculator(**config.warmth.model_dump())
    store = _open_store(ctx)

    results = filter_contacts(
        calculator.refresh(store.list_contacts(query=query, tag=tag), datetime.now())
    )

    if not results:
        console.print("\n[yellow]No contacts found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Company")
    table.add_column("Role")
    table.add_column("Warmth", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Tags")

    for c in results[:limit]:
        status = calculator.status(c.warmth_score).value
        table.add_row(
            c.id,
            c.name,
            c.company,
            c.role,
            str(c.warmth_score),
            f"[{STATUS_STYLES[status]}]{status}[/{STATUS_STYLES[status]}]",
            ", ".join(c.tags),
        )

    console.print(table)

    if export_dir:
        generator = ReportGenerator(output_dir=export_dir, calculator=calculator)
        filepath = generator.generate_contacts_csv(results)
        console.print(f"\n[dim]Exported to {filepath}[/dim]")


@cli.command()
@click.argument("contact_ref")
@click.option(
    "--at", "at",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]),
    default=None,
    help="When the interaction happened (default: now)",
)
@click.option("--priority", type=click.IntRange(0, 100), default=None, help="Set the contact's priority")
@click.pass_context
def touch(ctx: click.Context, contact_ref: str, at: Optional[datetime], priority: Optional[int]) -> None:
    """Record an interaction with a contact (by id or email)."""
    from warmline.models.warmth import WarmthCalculator

    config = ctx.obj["config"]
    calculator = WarmthCalculator(**config.warmth.model_dump())
    store = _open_store(ctx)

    contact = store.get_contact(contact_ref) or store.find_contact_by_email(contact_ref)
    if contact is None:
        console.print(f"[red]Contact not found: {contact_ref}[/red]")
        sys.exit(1)

    now = datetime.now()
    changes = {"last_interaction": at or now}
    if priority is not None:
        changes["priority_score"] = priority

    updated = store.update_contact(contact.id, **changes)
    warmth = calculator.calculate(updated, now)
    store.update_contact(contact.id, warmth_score=warmth)

    status = calculator.status(warmth).value
    console.print(
        f"[green]✓[/green] {updated.name}: warmth {warmth} "
        f"([{STATUS_STYLES[status]}]{status}[/{STATUS_STYLES[status]}])"
    )


@cli.command()
@click.option("--generate", is_flag=True, help="Create decay nudges for stale contacts first")
@click.option(
    "--status",
    type=click.Choice(["pending", "dismissed", "completed"]),
    default="pending",
    help="Which nudges to show",
)
@click.option("--complete", "complete_id", default=None, help="Mark a nudge completed")
@click.option("--dismiss", "dismiss_id", default=None, help="Dismiss a nudge")
@click.pass_context
def nudges(
    ctx: click.Context,
    generate: bool,
    status: str,
    complete_id: Optional[str],
    dismiss_id: Optional[str],
) -> None:
    """Show follow-up nudges."""
    from warmline.models.entities import NudgeStatus
    from warmline.models.nudges import NudgeGenerator
    from warmline.models.warmth import WarmthCalculator

    config = ctx.obj["config"]
    store = _open_store(ctx)

    for nudge_id, new_status in ((complete_id, NudgeStatus.COMPLETED), (dismiss_id, NudgeStatus.DISMISSED)):
        if nudge_id is None:
            continue
        if store.update_nudge_status(nudge_id, new_status) is None:
            console.print(f"[red]Nudge not found: {nudge_id}[/red]")
            sys.exit(1)
        console.print(f"[green]✓[/green] Nudge {nudge_id} {new_status.value}")

    if generate:
        generator = NudgeGenerator(
            decay_after_days=config.nudges.decay_after_days,
            high_priority_below=config.nudges.high_priority_below,
            calculator=WarmthCalculator(**config.warmth.model_dump()),
        )
        pending = {n.contact_id for n in store.list_nudges(NudgeStatus.PENDING)}
        created = 0
        for nudge in generator.generate(store.all_contacts()):
            if nudge.contact_id not in pending:
                store.create_nudge(nudge)
                created += 1
        console.print(f"[green]✓[/green] Created {created} nudges")

    results = store.list_nudges(NudgeStatus(status))
    if not results:
        console.print(f"\n[yellow]No {status} nudges[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Priority")
    table.add_column("Type")
    table.add_column("Message")

    for n in results:
        table.add_row(n.id, n.priority.value, n.type.value, n.message)

    console.print(table)


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from warmline import __version__

    console.print(f"Warmline v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
