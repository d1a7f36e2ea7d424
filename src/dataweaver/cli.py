"""Dataweaver CLI -- Rich-formatted dataset reconciliation from the terminal."""

import logging
import sys
from pathlib import Path

import click


def _fail(console, message):
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


def _load_tickets(path, template):
    """Ticket rows from raw help-desk JSON or from an already converted table."""
    from .ingestion import convert_json, load_dataset

    if Path(path).suffix.lower() == ".json":
        return convert_json(Path(path).read_text(encoding="utf-8"), template)
    return load_dataset(path)


@click.group()
@click.version_option(package_name="dataweaver")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
@click.option("--config", "config_path", default="", help="Settings file (default: ~/.dataweaver/settings.json).")
@click.pass_context
def cli(ctx, verbose, config_path):
    """Dataweaver -- Join, fuzzy-match and reconcile student and ticket datasets."""
    from .config import load_settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = load_settings(config_path or None)


@cli.command()
@click.argument("file_a", type=click.Path(exists=True))
@click.argument("file_b", type=click.Path(exists=True))
@click.option("--key", "-k", default="", help="Merge key column (default: Nama or the saved key).")
@click.option("--accept-auto", is_flag=True, help="Commit the auto-selected fuzzy matches.")
@click.option("--headers", default="", help="Comma-separated export headers (default: saved headers).")
@click.option("--output", "-o", default="", help="Write the merged rows to this .xlsx file.")
@click.pass_obj
def merge(settings, file_a, file_b, key, accept_auto, headers, output):
    """Join FILE_A (reference) with FILE_B (incoming) and review fuzzy candidates."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    from .config import export_headers
    from .export import export_merged
    from .ingestion import drop_rows_with_identity, load_dataset, validate_incoming, validate_reference
    from .reconciler import ReconciliationSession, choose_merge_key, confidence_tier, merged_headers

    console = Console()

    loaded_a = load_dataset(file_a)
    if loaded_a.ok:
        loaded_a = validate_reference(loaded_a.dataset, settings.identity_field)
    if not loaded_a.ok:
        _fail(console, f"Invalid File A: {loaded_a.error}")

    loaded_b = load_dataset(file_b)
    if loaded_b.ok:
        loaded_b = validate_incoming(loaded_b.dataset)
    if loaded_b.ok:
        loaded_b = drop_rows_with_identity(loaded_b.dataset, settings.identity_field)
    if not loaded_b.ok:
        _fail(console, f"Invalid File B: {loaded_b.error}")
    if loaded_b.filtered_rows:
        console.print(
            f"[yellow]{loaded_b.filtered_rows} rows with an existing "
            f"{settings.identity_field} were removed from File B.[/yellow]"
        )

    dataset_a, dataset_b = loaded_a.dataset, loaded_b.dataset
    merge_key = key or choose_merge_key(dataset_a.headers, dataset_b.headers, settings.default_merge_key)

    session = ReconciliationSession(dataset_a, dataset_b, identity_field=settings.identity_field)
    with console.status("Merging..."):
        result = session.run(merge_key)
    if not result.ok:
        _fail(console, result.error)

    console.print(Panel(
        f"Merge key: [bold]{merge_key}[/bold]\n"
        f"Matched: {result.matched_count:,}  |  Unmatched: {result.unmatched_count:,}  |  "
        f"Auto-selected: {result.auto_selected:,}",
        title="Merge Summary",
    ))

    if session.candidates:
        table = Table(title="Unmatched Rows")
        table.add_column(f"{merge_key} (File B)", style="cyan")
        table.add_column("Best match (File A)", style="green")
        table.add_column("Score", justify="right", style="bold")
        table.add_column("Selected", justify="center")

        for candidate in session.candidates:
            style = {"high": "green", "good": "yellow", "weak": "red"}.get(confidence_tier(candidate.score), "dim")
            best = candidate.best_match.get(session.key_a, "") if candidate.best_match else "-"
            table.add_row(
                str(candidate.source_row.get(session.key_b, "")),
                str(best),
                f"[{style}]{candidate.score}%[/{style}]",
                "x" if candidate.auto_selected else "",
            )
        console.print(table)

    if accept_auto:
        committed = session.commit_all()
        console.print(f"\nCommitted [bold]{committed.committed}[/bold] auto-selected matches.")

    if output:
        available = merged_headers(dataset_a.headers, dataset_b.headers)
        selected = [h.strip() for h in headers.split(",") if h.strip()] or export_headers(settings, available)
        exported = export_merged(session.matched_rows, selected, output)
        if not exported.ok:
            _fail(console, exported.error)
        console.print(f"\nSaved to: [bold]{exported.path}[/bold]")


@cli.command()
@click.argument("value_a")
@click.argument("value_b")
def score(value_a, value_b):
    """Show the match confidence between two names."""
    from rich.console import Console

    from .reconciler import confidence_tier, similarity_score

    console = Console()
    result = similarity_score(value_a, value_b)
    tier = confidence_tier(result)
    style = {"high": "green", "good": "yellow", "weak": "red"}.get(tier, "dim")
    console.print(f"[{style}]{result}%[/{style}] ({tier})")


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--template", "-t", default="", help="Comma-separated header template (default: saved template).")
@click.option("--date-format", default="report", type=click.Choice(["origin", "report", "jam"]),
              help="Format for Created At / Resolved At in TSV output.")
@click.option("--output", "-o", default="", help="Write the table as .tsv or .xlsx.")
@click.pass_obj
def convert(settings, file, template, date_format, output):
    """Convert help-desk ticket JSON into the case-sheet layout."""
    from rich.console import Console
    from rich.table import Table

    from .export import DATE_FIELDS, to_tsv
    from .ingestion import convert_json

    console = Console()

    result = convert_json(Path(file).read_text(encoding="utf-8"), template or settings.header_template)
    if not result.ok:
        _fail(console, result.error)

    dataset = result.dataset
    console.print(f"\n[bold]Converted {len(dataset.rows)} tickets[/bold]\n")

    table = Table(title="Preview (first rows)")
    for header in dataset.headers:
        table.add_column(header, overflow="fold")
    for row in dataset.rows[:10]:
        table.add_row(*[str(row.get(h, "")) for h in dataset.headers])
    console.print(table)

    if output:
        if output.endswith(".xlsx"):
            import pandas as pd

            pd.DataFrame(dataset.rows, columns=dataset.headers).to_excel(output, index=False)
        else:
            Path(output).write_text(to_tsv(dataset, {h: date_format for h in DATE_FIELDS}), encoding="utf-8")
        console.print(f"\nSaved to: [bold]{output}[/bold]")


@cli.command("status-preview")
@click.argument("file", type=click.Path(exists=True))
@click.option("--url", default="", help="Case sheet share link (default: saved link).")
@click.option("--sheet", default="", help="Target sheet name (default: saved sheet name).")
@click.pass_obj
def status_preview(settings, file, url, sheet):
    """Preview the status changes FILE would make to the case sheet."""
    from rich.console import Console
    from rich.table import Table

    from .sheets import GoogleSheetsClient, preview_updates

    console = Console()

    loaded = _load_tickets(file, settings.header_template)
    if not loaded.ok:
        _fail(console, loaded.error)

    client = GoogleSheetsClient()
    with console.status("Reading case sheet..."):
        preview = preview_updates(
            client, url or settings.sheet_url, loaded.dataset.rows, sheet or settings.sheet_name,
        )
    if not preview.ok:
        _fail(console, preview.error)

    if not preview.changes:
        console.print("[green]No changes detected. Everything is up-to-date.[/green]")
    else:
        table = Table(title=f"{len(preview.changes)} rows to update")
        table.add_column("Row", justify="right", style="dim")
        table.add_column("Title", style="cyan", overflow="fold")
        table.add_column("Status")
        table.add_column("Ticket OP")
        for change in preview.changes:
            table.add_row(
                str(change.row_index),
                change.title,
                f"{change.old_status} -> [bold]{change.new_status}[/bold]",
                f"{change.old_ticket_op} -> [bold]{change.new_ticket_op}[/bold]",
            )
        console.print(table)

    if preview.skipped:
        console.print(f"[yellow]{preview.skipped} rows have no ticket number and were skipped.[/yellow]")


@cli.command()
@click.argument("file_a", type=click.Path(exists=True))
@click.argument("file_b", type=click.Path(exists=True))
@click.option("--map", "-m", "mapping", multiple=True, help="SOURCE:TARGET column letters, e.g. A:C.")
@click.option("--output", "-o", required=True, help="Output .xlsx path.")
@click.pass_obj
def normalize(settings, file_a, file_b, mapping, output):
    """Copy columns of FILE_A into FILE_B by column letter."""
    from rich.console import Console

    from ._types import ColumnMapping
    from .ingestion import apply_column_mappings, load_workbook_grid, write_grid

    console = Console()

    mappings = []
    for item in mapping:
        source, _, target = item.partition(":")
        mappings.append(ColumnMapping(source_column=source.strip().upper(), target_column=target.strip().upper()))
    mappings = mappings or settings.column_mappings

    grid_a = load_workbook_grid(file_a)
    grid_b = load_workbook_grid(file_b)
    for loaded, label in ((grid_a, "File A"), (grid_b, "File B")):
        if not loaded.ok:
            _fail(console, f"{label}: {loaded.error}")

    result = apply_column_mappings(grid_a.grid, grid_b.grid, mappings)
    if not result.ok:
        _fail(console, result.error)

    write_grid(result.grid, output)
    console.print(f"[bold]{len(result.grid.rows)}[/bold] rows processed. Saved to: [bold]{output}[/bold]")


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.pass_obj
def report(settings, file):
    """Print the daily case report for a ticket file."""
    from rich.console import Console

    from .report import build_daily_report

    console = Console()

    loaded = _load_tickets(file, settings.header_template)
    if not loaded.ok:
        _fail(console, loaded.error)

    console.print(build_daily_report(loaded.dataset).render(), markup=False, highlight=False)


@cli.command("check-duplicates")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True))
def check_duplicates_cmd(files):
    """Find duplicate NIS, empty NIS and empty birth dates across FILES."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table
    from rich.text import Text

    from .ingestion import check_duplicates

    console = Console()

    with console.status("Checking workbooks..."):
        report = check_duplicates(list(files))
    if not report.ok:
        _fail(console, report.error)

    for message in report.file_errors:
        console.print(f"[yellow]{message}[/yellow]", highlight=False)
    for sheet in report.skipped_sheets:
        console.print(f"[dim]No header row found in {sheet}; sheet skipped.[/dim]", highlight=False)

    if not report.has_issues:
        console.print("[green]No duplicate NIS, empty NIS or empty birth dates found.[/green]")
        return

    if report.duplicates:
        groups = report.duplicate_groups()
        table = Table(title=f"{len(groups)} duplicated NIS ({len(report.duplicates)} entries)")
        table.add_column("NIS", style="bold")
        table.add_column("Name")
        table.add_column("File", style="dim")
        table.add_column("Sheet", style="dim")
        for record in sorted(report.duplicates, key=lambda r: (r.nis, r.file_name)):
            table.add_row(record.nis, record.name, record.file_name, record.sheet_name)
        console.print(table)

    for records, title, style in (
        (report.empty_nis, "students without a valid NIS", "yellow"),
        (report.empty_dob, "students without a date of birth", "cyan"),
    ):
        if not records:
            continue
        table = Table(title=f"{len(records)} {title}")
        table.add_column("Name", style=style)
        table.add_column("File", style="dim")
        table.add_column("Sheet", style="dim")
        for record in sorted(records, key=lambda r: r.name):
            table.add_row(record.name, record.file_name, record.sheet_name)
        console.print(table)

    console.print(Panel(Text(report.render()), title="Summary"))
