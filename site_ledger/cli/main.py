"""
CLI interface for Site Ledger.

Presentation layer over the ledger session: every command opens the stored
ledger, applies at most one mutation and prints the result.
"""

import logging
import sqlite3
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from site_ledger.config.loader import AppConfig, default_config, load_config
from site_ledger.core.aggregation import aggregate_portfolio, aggregate_project
from site_ledger.core.entries import LaborInput, MaterialInput
from site_ledger.core.errors import LedgerError
from site_ledger.core.ledger import Project
from site_ledger.core.report import build_project_report
from site_ledger.core.session import LedgerSession
from site_ledger.logging_config import configure_logging
from site_ledger.reports.csv_export import write_project_csv
from site_ledger.storage.repository import LedgerRepository, initialize_schema

app = typer.Typer()
project_app = typer.Typer(help="Create, list, update and delete projects.")
labor_app = typer.Typer(help="Manage labor entries of a project.")
material_app = typer.Typer(help="Manage material entries of a project.")
app.add_typer(project_app, name="project")
app.add_typer(labor_app, name="labor")
app.add_typer(material_app, name="material")

console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DATE_FORMATS = ["%Y-%m-%d"]


@dataclass
class CliState:
    """Settings resolved by the top-level callback."""
    config: AppConfig
    db_path: str


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="SITE_LEDGER_CONFIG",
        help="Path to a YAML configuration file"
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="SQLite database path (overrides the configuration)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr"
    )
):
    """Site Ledger CLI."""
    try:
        app_config = load_config(str(config)) if config else default_config()
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        console.print(f"[red]Configuration error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    if verbose:
        configure_logging(level=logging.DEBUG)

    ctx.obj = CliState(config=app_config, db_path=db or app_config.db_path)
    if ctx.invoked_subcommand is None:
        console.print("Site Ledger - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the Site Ledger database."""
    state: CliState = ctx.obj
    try:
        initialize_schema(state.db_path)
    except sqlite3.Error as e:
        console.print(f"[red]Error initializing database:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    console.print("[green]✓[/] Database initialized successfully")


@app.command()
def overview(ctx: typer.Context):
    """Show labor, material and overhead totals across all projects."""
    with _session(ctx) as session:
        totals = aggregate_portfolio(session.ledger)

    if totals.is_empty:
        console.print("\n[bold yellow]No costs recorded yet[/]\n")
        return

    table = Table(title=f"Portfolio overview ({totals.project_count} projects)")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_row("Labor", _format_currency(totals.total_labor))
    table.add_row("Materials", _format_currency(totals.total_material))
    table.add_row("Overhead", _format_currency(totals.total_overhead))
    table.add_row("[bold]Total[/]", f"[bold]{_format_currency(totals.grand_total)}[/]")
    if totals.total_sale_price:
        table.add_row("Quoted sales", _format_currency(totals.total_sale_price))
        table.add_row("Margin on quoted projects", _format_currency(totals.total_margin))
    console.print(table)


@app.command("export-csv")
def export_csv(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file")
):
    """Export a project's line items and totals as CSV."""
    with _session(ctx) as session:
        project = session.ledger.get_project(project_id)

    try:
        path = write_project_csv(build_project_report(project), output or _default_csv_path(project))
    except OSError as e:
        console.print(f"[red]Error writing CSV:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Exported {escape(project.name)} to {escape(str(path))}")


# -- projects -------------------------------------------------------------

@project_app.command("add")
def project_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Project name"),
    overhead: Optional[float] = typer.Option(None, "--overhead", help="Overhead percent"),
    sale_price: Optional[float] = typer.Option(None, "--sale-price", help="Quoted sale price")
):
    """Create a new empty project."""
    state: CliState = ctx.obj
    if overhead is None:
        overhead = state.config.default_overhead_percent
    with _session(ctx) as session:
        project = session.create_project(name, overhead, sale_price)
    console.print(f"[green]✓[/] Created project {escape(project.name)} (id {project.id})")


@project_app.command("list")
def project_list(ctx: typer.Context):
    """List projects with their totals."""
    with _session(ctx) as session:
        projects = list(session.ledger)

    if not projects:
        console.print("\n[dim]No projects yet. Add one with `site-ledger project add`.[/]\n")
        return

    table = Table(title="Projects")
    for column in ("ID", "Name", "Overhead %", "Labor", "Materials", "Total", "Sale price", "Margin"):
        table.add_column(column, justify="left" if column == "Name" else "right")
    for project in projects:
        totals = aggregate_project(project)
        table.add_row(
            str(project.id),
            escape(project.name),
            f"{project.overhead_percent:g}",
            _format_currency(totals.labor_cost),
            _format_currency(totals.material_cost),
            _format_currency(totals.total),
            _format_optional(project.sale_price),
            _format_optional(totals.margin)
        )
    console.print(table)


@project_app.command("show")
def project_show(ctx: typer.Context, project_id: int = typer.Argument(..., help="Project id")):
    """Show a project's line items and cost breakdown."""
    with _session(ctx) as session:
        project = session.ledger.get_project(project_id)
    _display_project(project)


@project_app.command("update")
def project_update(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    overhead: Optional[float] = typer.Option(None, "--overhead", help="New overhead percent"),
    sale_price: Optional[float] = typer.Option(None, "--sale-price", help="New sale price"),
    clear_sale_price: bool = typer.Option(False, "--clear-sale-price", help="Remove the sale price")
):
    """Update a project's name, overhead or sale price."""
    if sale_price is not None and clear_sale_price:
        console.print("[red]Error:[/] --sale-price and --clear-sale-price are mutually exclusive")
        sys.exit(EXIT_CODE_FAIL)

    changes = {}
    if name is not None:
        changes["name"] = name
    if overhead is not None:
        changes["overhead_percent"] = overhead
    if sale_price is not None:
        changes["sale_price"] = sale_price
    elif clear_sale_price:
        changes["sale_price"] = None

    with _session(ctx) as session:
        project = session.update_project(project_id, **changes)
    console.print(f"[green]✓[/] Updated project {escape(project.name)}")


@project_app.command("delete")
def project_delete(ctx: typer.Context, project_id: int = typer.Argument(..., help="Project id")):
    """Delete a project and all of its entries."""
    with _session(ctx) as session:
        session.delete_project(project_id)
    console.print(f"[green]✓[/] Deleted project {project_id}")


# -- labor ----------------------------------------------------------------

@labor_app.command("add")
def labor_add(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    name: str = typer.Argument(..., help="Worker name"),
    net_wage: float = typer.Argument(..., help="Net monthly wage"),
    hours: float = typer.Argument(..., help="Hours worked on the project"),
    recorded: Optional[datetime] = typer.Option(None, "--date", formats=DATE_FORMATS, help="Recorded date")
):
    """Add a worker's hours to a project."""
    data = LaborInput(name, net_wage, hours, _as_date(recorded))
    with _session(ctx) as session:
        entry = session.add_labor_entry(project_id, data)
    console.print(f"[green]✓[/] Added {escape(entry.name)}: {_format_currency(entry.cost_for_hours)}")


@labor_app.command("update")
def labor_update(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    index: int = typer.Argument(..., help="Entry index as shown by `project show`"),
    name: str = typer.Argument(..., help="Worker name"),
    net_wage: float = typer.Argument(..., help="Net monthly wage"),
    hours: float = typer.Argument(..., help="Hours worked on the project"),
    recorded: Optional[datetime] = typer.Option(None, "--date", formats=DATE_FORMATS, help="Recorded date")
):
    """Replace a labor entry."""
    with _session(ctx) as session:
        entries = session.ledger.get_project(project_id).labor_entries
        data = LaborInput(name, net_wage, hours, _as_date(recorded, entries, index))
        entry = session.update_labor_entry(project_id, index, data)
    console.print(f"[green]✓[/] Updated {escape(entry.name)}: {_format_currency(entry.cost_for_hours)}")


@labor_app.command("delete")
def labor_delete(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    index: int = typer.Argument(..., help="Entry index as shown by `project show`")
):
    """Delete a labor entry; later entries move up by one."""
    with _session(ctx) as session:
        session.delete_labor_entry(project_id, index)
    console.print(f"[green]✓[/] Deleted labor entry {index}")


# -- materials ------------------------------------------------------------

@material_app.command("add")
def material_add(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    name: str = typer.Argument(..., help="Material name"),
    unit_price: float = typer.Argument(..., help="Unit price"),
    quantity: float = typer.Argument(..., help="Quantity"),
    recorded: Optional[datetime] = typer.Option(None, "--date", formats=DATE_FORMATS, help="Recorded date")
):
    """Add a material purchase to a project."""
    data = MaterialInput(name, unit_price, quantity, _as_date(recorded))
    with _session(ctx) as session:
        entry = session.add_material_entry(project_id, data)
    console.print(f"[green]✓[/] Added {escape(entry.name)}: {_format_currency(entry.total)}")


@material_app.command("update")
def material_update(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    index: int = typer.Argument(..., help="Entry index as shown by `project show`"),
    name: str = typer.Argument(..., help="Material name"),
    unit_price: float = typer.Argument(..., help="Unit price"),
    quantity: float = typer.Argument(..., help="Quantity"),
    recorded: Optional[datetime] = typer.Option(None, "--date", formats=DATE_FORMATS, help="Recorded date")
):
    """Replace a material entry."""
    with _session(ctx) as session:
        entries = session.ledger.get_project(project_id).material_entries
        data = MaterialInput(name, unit_price, quantity, _as_date(recorded, entries, index))
        entry = session.update_material_entry(project_id, index, data)
    console.print(f"[green]✓[/] Updated {escape(entry.name)}: {_format_currency(entry.total)}")


@material_app.command("delete")
def material_delete(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
    index: int = typer.Argument(..., help="Entry index as shown by `project show`")
):
    """Delete a material entry; later entries move up by one."""
    with _session(ctx) as session:
        session.delete_material_entry(project_id, index)
    console.print(f"[green]✓[/] Deleted material entry {index}")


# -- helpers --------------------------------------------------------------

@contextmanager
def _session(ctx: typer.Context):
    """Open the stored ledger and turn ledger errors into a failing exit."""
    state: CliState = ctx.obj
    session = LedgerSession(LedgerRepository(state.db_path), state.config.rates)
    try:
        session.open()
        yield session
    except LedgerError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    except sqlite3.Error as e:
        console.print(f"[red]Database error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


def _as_date(recorded: Optional[datetime], entries: Sequence = (), index: int = -1) -> date:
    """Pick the recorded date: explicit option, the replaced entry's date, or today."""
    if recorded is not None:
        return recorded.date()
    if 0 <= index < len(entries):
        return entries[index].recorded_date
    return date.today()


def _default_csv_path(project: Project) -> Path:
    """File name in the working directory; separators in the project name become underscores."""
    stem = project.name.replace("/", "_").replace("\\", "_")
    return Path(f"{stem}.csv")


def _format_currency(amount: float) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f} €"


def _format_optional(amount: Optional[float]) -> str:
    return "-" if amount is None else _format_currency(amount)


def _display_project(project: Project):
    """Display a project's entries and cost breakdown."""
    report = build_project_report(project)

    console.print(f"\n[bold]{escape(project.name)}[/bold] (id {project.id}, created {project.creation_date.isoformat()})")
    console.print(f"Overhead: {project.overhead_percent:g}%")

    if report.lines:
        table = Table()
        table.add_column("#", justify="right")
        table.add_column("Type")
        table.add_column("Name")
        table.add_column("Details")
        table.add_column("Total", justify="right")
        # Indices restart at 0 for materials, matching the entry commands
        labor_count = len(project.labor_entries)
        for position, line in enumerate(report.lines):
            index = position if position < labor_count else position - labor_count
            table.add_row(str(index), line.kind, escape(line.name), escape(line.detail), _format_currency(line.amount))
        console.print(table)
    else:
        console.print("\n[dim]No entries yet.[/]")

    console.print("-" * 40)
    for label, amount in report.summary_rows():
        console.print(f"{label}: {_format_currency(amount)}")
    if report.totals.margin_percent is not None:
        console.print(f"Margin rate: {report.totals.margin_percent:,.1f}%")
    console.print()


if __name__ == "__main__":
    app()
