"""
Backtest CLI command.

Runs the configured strategy variants over a universe and observation file
and prints a comparison as text or JSON.

Exit codes:
- 0: at least one strategy produced a result
- 1: every strategy failed
- 2: invalid configuration or missing input files

Usage:
    indexsim backtest --universe universe.csv --observations prices.csv \
        --start-year 2010 --end-year 2020 --investment 1000000

    # Two variants, SPY benchmark, JSON output
    indexsim backtest --universe universe.csv --observations prices.csv \
        --start-year 2010 --end-year 2020 --investment 1000000 \
        --strategy equal_weight_rebalanced market_cap_rebalanced \
        --benchmark SPY --output-format json
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from indexsim.backtest.orchestrator import BacktestOrchestrator
from indexsim.backtest.portfolio.results import BacktestReport, ResultsComparison
from indexsim.cli.logging_setup import setup_logging
from indexsim.config.parameters import STRATEGY_VARIANTS, BacktestParameters
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.data_io.formatters import (
    format_report_json,
    format_report_text,
    generate_output_filename,
)
from indexsim.data_io.providers import CsvObservationProvider
from indexsim.data_io.store import ObservationStore
from indexsim.data_io.universe import load_universe_csv
from indexsim.models.enums import OutputFormat
from indexsim.models.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ALL_FAILED = 1
EXIT_CONFIG_ERROR = 2


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the input, year range, output and logging arguments."""
    parser.add_argument(
        "--universe",
        type=Path,
        required=True,
        help="CSV with ticker,start_date,end_date columns",
    )
    parser.add_argument(
        "--observations",
        type=Path,
        required=True,
        help="CSV with ticker,date,price,adjusted_price,shares_outstanding,market_cap",
    )
    parser.add_argument("--start-year", type=int, required=True, help="First year")
    parser.add_argument("--end-year", type=int, required=True, help="Last year")
    parser.add_argument(
        "--output-format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Also write the report to a timestamped file in this directory",
    )
    parser.add_argument(
        "--cache-file",
        type=Path,
        default=None,
        help="JSON observation cache to load before and save after the run",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file", type=Path, default=None, help="Optional log file path"
    )
    parser.add_argument(
        "--log-json", action="store_true", help="Write the log file as JSON lines"
    )


def configure_backtest_parser(parser: argparse.ArgumentParser) -> None:
    """Configure arguments for the backtest subcommand."""
    add_common_arguments(parser)
    parser.add_argument(
        "--investment",
        type=float,
        required=True,
        help="Initial investment per strategy",
    )
    parser.add_argument(
        "--strategy",
        nargs="+",
        default=None,
        metavar="VARIANT",
        help=f"Strategy variants to run (default: all). Known: {', '.join(STRATEGY_VARIANTS)}",
    )
    parser.add_argument(
        "--benchmark",
        default=None,
        help="Benchmark ticker held buy-and-hold for comparison (e.g. SPY)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=8,
        help="Maximum concurrent observation fetches (default: 8)",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        default=None,
        help="Maximum concurrent strategy runs (default: cores - 1)",
    )
    parser.add_argument(
        "--snapshots-dir",
        type=Path,
        default=None,
        help="Write per-strategy JSONL snapshots to this directory",
    )


def build_fetcher(
    observations_path: Path,
    cache_file: Path | None,
    max_workers: int = 8,
    timeout_sec: float = 30.0,
    retries: int = 1,
) -> ObservationFetcher:
    """Create the CSV-backed fetcher, loading the cache file when present."""
    provider = CsvObservationProvider(observations_path)
    store = (
        ObservationStore.load(cache_file)
        if cache_file is not None and cache_file.exists()
        else ObservationStore()
    )
    return ObservationFetcher(
        provider,
        store=store,
        max_workers=max_workers,
        timeout_sec=timeout_sec,
        retries=retries,
    )


def write_output(text: str, output_dir: Path | None, kind: str, fmt: OutputFormat) -> None:
    """Write ``text`` to a timestamped file under ``output_dir``, if given."""
    if output_dir is None:
        return
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / generate_output_filename(kind, fmt, datetime.now(timezone.utc))
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote %s report to %s", kind, path)


def render_report(report: BacktestReport, console: Console) -> None:
    """Print a report as a Rich table followed by the comparison summary."""
    table = Table(
        title="Strategy Results", show_header=True, header_style="bold magenta"
    )
    table.add_column("Strategy", style="cyan")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Total Return", style="green", justify="right")
    table.add_column("Annualized", style="green", justify="right")
    table.add_column("Skipped", justify="right")

    rows = ResultsComparison(report).ranking()
    if report.benchmark is not None:
        rows = rows + [report.benchmark]
    for result in rows:
        table.add_row(
            result.name,
            f"${result.start_value:,.2f}",
            f"${result.end_value:,.2f}",
            f"{result.total_return:.2%}",
            f"{result.annualized_return:.2%}",
            str(len(result.skipped_years)),
        )
    console.print(table)
    console.print(format_report_text(report), markup=False, highlight=False)


def run_backtest_command(args: argparse.Namespace) -> int:
    """
    Execute the backtest subcommand.

    Returns:
        Process exit code.
    """
    setup_logging(level=args.log_level, log_file=args.log_file, use_json=args.log_json)
    console = Console()
    output_format = OutputFormat(args.output_format)

    values = {
        "start_year": args.start_year,
        "end_year": args.end_year,
        "initial_investment": args.investment,
        "benchmark_ticker": args.benchmark,
        "max_concurrent_fetches": args.max_workers,
        "max_parallel_strategies": args.max_parallel,
        "snapshots_dir": args.snapshots_dir,
    }
    if args.strategy:
        values["strategies"] = args.strategy

    try:
        params = BacktestParameters.from_values(**values)
        universe = load_universe_csv(args.universe)
        fetcher = build_fetcher(
            args.observations,
            args.cache_file,
            max_workers=params.max_concurrent_fetches,
            timeout_sec=params.fetch_timeout_sec,
            retries=params.fetch_retries,
        )
    except (ConfigurationError, FileNotFoundError) as exc:
        logger.error("Configuration error: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    show_progress = output_format == OutputFormat.TEXT and console.is_terminal
    runs = len(params.strategies) + (1 if params.benchmark_ticker else 0)

    if show_progress:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(
                "Running strategies...", total=runs * len(params.years)
            )
            orchestrator = BacktestOrchestrator(
                params,
                universe,
                fetcher,
                progress_callback=lambda _name, _done, _total: progress.advance(task),
            )
            report = orchestrator.run()
    else:
        report = BacktestOrchestrator(params, universe, fetcher).run()

    if args.cache_file is not None:
        fetcher.store.save(args.cache_file)

    if output_format == OutputFormat.JSON:
        text = format_report_json(report)
        print(text)
    else:
        text = format_report_text(report)
        render_report(report, console)
    write_output(text, args.output_dir, "backtest", output_format)

    if report.all_failed:
        logger.error("Every strategy failed: %s", report.failures)
        return EXIT_ALL_FAILED
    return EXIT_OK
