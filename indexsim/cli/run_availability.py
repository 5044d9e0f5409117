"""
Availability CLI command.

Classifies every universe ticker as entering, exiting or continuing for
each year in a range and prints the result as text or JSON.

Usage:
    indexsim availability --universe universe.csv --observations prices.csv \
        --start-year 2010 --end-year 2020
"""

import argparse
import logging
import sys

from rich.console import Console

from indexsim.backtest.availability import AvailabilityAnalyzer
from indexsim.cli.logging_setup import setup_logging
from indexsim.cli.run_backtest import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    add_common_arguments,
    build_fetcher,
    write_output,
)
from indexsim.data_io.formatters import format_availability_json, format_availability_text
from indexsim.data_io.universe import load_universe_csv
from indexsim.models.enums import OutputFormat
from indexsim.models.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def configure_availability_parser(parser: argparse.ArgumentParser) -> None:
    """Configure arguments for the availability subcommand."""
    add_common_arguments(parser)
    parser.add_argument(
        "--index-ticker",
        nargs="+",
        default=None,
        metavar="TICKER",
        help="Tickers exempt from the market cap requirement (default: common ETFs)",
    )


def run_availability_command(args: argparse.Namespace) -> int:
    """
    Execute the availability subcommand.

    Returns:
        Process exit code.
    """
    setup_logging(level=args.log_level, log_file=args.log_file, use_json=args.log_json)
    output_format = OutputFormat(args.output_format)

    try:
        universe = load_universe_csv(args.universe)
        fetcher = build_fetcher(args.observations, args.cache_file)
        analyzer = (
            AvailabilityAnalyzer(fetcher, [t.upper() for t in args.index_ticker])
            if args.index_ticker
            else AvailabilityAnalyzer(fetcher)
        )
        report = analyzer.analyze(universe.tickers(), args.start_year, args.end_year)
    except (ConfigurationError, FileNotFoundError) as exc:
        logger.error("Configuration error: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.cache_file is not None:
        fetcher.store.save(args.cache_file)

    if output_format == OutputFormat.JSON:
        text = format_availability_json(report)
        print(text)
    else:
        text = format_availability_text(report)
        Console().print(text, markup=False, highlight=False)
    write_output(text, args.output_dir, "availability", output_format)
    return EXIT_OK
