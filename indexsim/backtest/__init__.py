"""Backtest execution: strategy runner, orchestrator, metrics, availability."""
