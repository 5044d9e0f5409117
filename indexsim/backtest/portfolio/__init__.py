"""Portfolio construction components for index strategy backtests.

This package contains the engines that turn a year's observations into
holdings under two regimes:
- Rebalanced: full liquidation and reallocation every year
- Buy-hold: hold existing positions, diluting them to admit new tickers

Modules:
    allocation_engine: Equal and market-cap weights, integer-share allocation
    rebalance_engine: Annual liquidate-and-reallocate
    buy_hold_engine: Initial allocation, repricing and entrant admission
    outcome: Per-year engine result record and held-ticker price lookup
    snapshot_logger: JSONL persistence of yearly snapshots
    results: Backtest report and strategy comparison
    errors: Custom exceptions for portfolio operations
"""
