"""Command-line interface modules.

This package provides the ``indexsim`` console script.

Available Commands:
-------------------

backtest
    Run strategy variants over a year range and compare their returns

    Usage:
        indexsim backtest --universe <csv> --observations <csv> \
            --start-year 2010 --end-year 2020 --investment 1000000

availability
    Classify tickers as entering, exiting or continuing per year

    Usage:
        indexsim availability --universe <csv> --observations <csv> \
            --start-year 2010 --end-year 2020
"""
