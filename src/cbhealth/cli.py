"""cbhealth CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cbhealth import __version__
from cbhealth._constants import DATASET_HEADER, EXIT_CONFIG_ERROR
from cbhealth.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    MonitorConfig,
    Period,
    generate_example_config_yaml,
    load_config,
)
from cbhealth.dataset import DatasetStorage, MetricRecord, dataset_filename, read_rows
from cbhealth.dispatch import select_recipients

# Default config file names for auto-discovery, in lookup order
DEFAULT_CONFIG = "cbhealth.yaml"
LEGACY_CONFIG = "cluster-config.json"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="cbhealth",
    help="Collect Couchbase cluster health metrics and mail an HTML report",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> validate -> collect -> run[/dim]",
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def resolve_config_path(config_file: Path | None) -> Path:
    """Resolve config file path.

    Falls back to ./cbhealth.yaml, then to the legacy ./cluster-config.json.
    """
    if config_file is not None:
        return config_file

    for name in (DEFAULT_CONFIG, LEGACY_CONFIG):
        default = Path(name)
        if default.exists():
            return default

    console.print(f"[red]ERROR[/red] No config file specified and ./{DEFAULT_CONFIG} not found")
    console.print("[blue]INFO[/blue] Create one with: cbhealth init")
    raise typer.Exit(EXIT_CONFIG_ERROR)


def load_config_or_exit(config_file: Path) -> MonitorConfig:
    """Load config, printing a readable error and exiting on failure."""
    try:
        return load_config(config_file)
    except ConfigFileNotFoundError as e:
        print_error(f"File not found: {e}")
    except ConfigValidationError as e:
        print_error("Config validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
    except ConfigError as e:
        print_error(f"Config error: {e}")
    raise typer.Exit(EXIT_CONFIG_ERROR)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def _rows_table(title: str, header: list[str], rows: list[list[str]]) -> Table:
    table = Table(title=title)
    for col in header[2:]:
        table.add_column(col)
    for row in rows:
        if not row:
            table.add_section()
            continue
        style = "red" if MetricRecord.from_row(row).is_placeholder else None
        table.add_row(*row[2:], style=style)
    return table


def _pick_archived(storage: DatasetStorage, date: str | None, period: Period | None) -> tuple[str, str]:
    """Choose the archived day and period to render, exiting when none match."""
    if date is None:
        days = storage.list_days()
        if not days:
            print_error(f"No archived datasets under {storage.data_dir}")
            raise typer.Exit(EXIT_CONFIG_ERROR)
        date = days[0]

    if period is not None:
        return date, period.value

    names = {p.name for p in storage.list_files(date)}
    # est_morning is the later run of the day
    for candidate in (Period.EST_MORNING, Period.IST_MORNING):
        if dataset_filename(candidate.value) in names:
            return date, candidate.value
    print_error(f"No datasets archived for {date}")
    raise typer.Exit(EXIT_CONFIG_ERROR)


ConfigArg = Annotated[
    Path | None,
    typer.Argument(
        help=f"Path to configuration file (default: ./{DEFAULT_CONFIG} or ./{LEGACY_CONFIG})",
    ),
]

HourOption = Annotated[
    int | None,
    typer.Option(
        "--hour",
        min=0,
        max=23,
        help="Local hour used to pick the period (default: current hour)",
    ),
]


# =============================================================================
# CLI Commands
# =============================================================================


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """cbhealth - Couchbase cluster health report."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"cbhealth version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for configuration",
        ),
    ] = Path(DEFAULT_CONFIG),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
) -> None:
    """Write an example configuration file."""
    if output.exists() and not force:
        print_error(f"{output} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    output.write_text(generate_example_config_yaml(), encoding="utf-8")
    print_success(f"Configuration written to {output}")
    print_info("Fill in the clusters and recipients, then run: cbhealth validate")


@app.command()
def validate(config_file: ConfigArg = None) -> None:
    """Validate configuration and show the monitored clusters."""
    config_file = resolve_config_path(config_file)
    console.print(Panel(f"Validating: [bold]{config_file}[/bold]", expand=False))

    cfg = load_config_or_exit(config_file)
    print_success("Config valid")

    table = Table(title="Clusters")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("User")
    for i, cluster in enumerate(cfg.clusters, start=1):
        table.add_row(str(i), cluster.name, cluster.url, cluster.username)
    console.print(table)

    for period in cfg.mail.recipients:
        sets = select_recipients(period, cfg.mail)
        for rs in sets:
            if rs.to:
                print_success(f"{period.value}/{rs.name}: {', '.join(rs.to)}")
            else:
                print_warning(f"{period.value}/{rs.name}: no recipients configured")
        if not sets:
            print_warning(f"{period.value}: no recipient sets")


@app.command()
def collect(
    config_file: ConfigArg = None,
    hour: HourOption = None,
) -> None:
    """Collect metrics from every cluster and archive the dataset (no email)."""
    from cbhealth.runner import ReportRunner

    config_file = resolve_config_path(config_file)
    cfg = load_config_or_exit(config_file)

    runner = ReportRunner(cfg)
    result = runner.run(dry_run=True, hour=hour)

    header, rows = read_rows(result.csv_path) if result.csv_path else ([], [])
    console.print(_rows_table(f"{result.period.value} {result.date}", header, rows))
    print_success(f"Dataset saved to {result.csv_path}")


@app.command()
def report(
    csv_file: Annotated[
        Path | None,
        typer.Argument(help="Dataset CSV to render (default: look it up in the archive)"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file for thresholds, report text and the archive location",
        ),
    ] = None,
    date: Annotated[
        str | None,
        typer.Option("--date", help="Archived day to render (default: newest)"),
    ] = None,
    period: Annotated[
        Period | None,
        typer.Option("--period", help="Archived period to render (default: latest of the day)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="HTML output path (default: CSV path with .html suffix)",
        ),
    ] = None,
) -> None:
    """Render a dataset CSV as an HTML report.

    With no CSV argument the dataset is taken from the archive directory
    of the configuration, picked by --date and --period.
    """
    from cbhealth.reports import ReportGenerator

    cfg = None
    if config_file is not None or csv_file is None:
        cfg = load_config_or_exit(resolve_config_path(config_file))

    if csv_file is None:
        storage = DatasetStorage(cfg.paths.resolve_data_dir())
        date, period_name = _pick_archived(storage, date, period)
        loaded = storage.load(date, period_name)
        if loaded is None:
            print_error(f"No {period_name} dataset archived for {date}")
            raise typer.Exit(EXIT_CONFIG_ERROR)
        header, rows = loaded
        default_output = storage.path_for(date, period_name).with_suffix(".html")
    elif csv_file.exists():
        header, rows = read_rows(csv_file)
        default_output = csv_file.with_suffix(".html")
    else:
        print_error(f"Dataset not found: {csv_file}")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    if cfg is None:
        generator = ReportGenerator()
        cluster_names = None
    else:
        generator = ReportGenerator(cfg.thresholds, cfg.report)
        cluster_names = cfg.cluster_names()

    document = generator.render(rows, header=header or DATASET_HEADER, cluster_names=cluster_names)
    path = generator.write(document, output or default_output)

    console.print(
        Panel(
            f"[green]Report generated successfully![/green]\n\nOutput: {path}",
            title="Report Generated",
            expand=False,
        )
    )


@app.command()
def run(
    config_file: ConfigArg = None,
    hour: HourOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Collect and render but do not send email"),
    ] = False,
    html: Annotated[
        Path | None,
        typer.Option("--html", help="Also write the rendered report to this file"),
    ] = None,
) -> None:
    """Collect metrics, render the report and email it.

    Exits 3 when any delivery failed.  Unreachable clusters or nodes only
    show up as Error/Failure rows in the report.
    """
    from cbhealth.runner import ReportRunner

    config_file = resolve_config_path(config_file)
    cfg = load_config_or_exit(config_file)

    result = ReportRunner(cfg).run(dry_run=dry_run, hour=hour, html_path=html)

    print_info(f"Period: {result.period.value}")
    if result.csv_path:
        print_success(f"Dataset saved to {result.csv_path}")
    if result.html_path:
        print_success(f"Report written to {result.html_path}")
    if result.dry_run:
        print_warning("Dry run: no email sent")

    for d in result.deliveries:
        if d.success:
            print_success(f"Email sent to '{d.recipient_set}'")
        else:
            print_error(f"Failed to send '{d.recipient_set}' mail: {d.error}")

    if not result.success:
        raise typer.Exit(result.exit_code)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
