import argparse
import sys
from typing import Optional

from indexsim.cli.run_availability import (
    configure_availability_parser,
    run_availability_command,
)
from indexsim.cli.run_backtest import configure_backtest_parser, run_backtest_command


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for the 'indexsim' CLI.
    """
    parser = argparse.ArgumentParser(
        description="indexsim: Index Strategy Backtesting (equal weight vs market cap)"
    )
    subparsers = parser.add_subparsers(
        dest="command", required=True, help="Subcommands"
    )

    # -------------------------------------------------------------------------
    # Subcommand: backtest
    # -------------------------------------------------------------------------
    backtest_parser = subparsers.add_parser(
        "backtest",
        help="Run a strategy backtest",
        description="Run equal-weight and market-cap strategies over a year range.",
    )
    configure_backtest_parser(backtest_parser)

    # -------------------------------------------------------------------------
    # Subcommand: availability
    # -------------------------------------------------------------------------
    availability_parser = subparsers.add_parser(
        "availability",
        help="Analyze ticker availability",
        description="Classify tickers as entering, exiting or continuing per year.",
    )
    configure_availability_parser(availability_parser)

    # -------------------------------------------------------------------------
    # Parse & Execute
    # -------------------------------------------------------------------------
    parsed_args = parser.parse_args(args)

    if parsed_args.command == "backtest":
        return run_backtest_command(parsed_args)
    if parsed_args.command == "availability":
        return run_availability_command(parsed_args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
