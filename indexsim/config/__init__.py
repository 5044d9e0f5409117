"""Backtest configuration."""
