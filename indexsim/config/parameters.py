"""
Backtest parameter configuration using Pydantic.

This module provides type-safe parameter validation for a backtest run and
the mapping from strategy variant identifiers to their weighting scheme and
rebalancing regime. Validation failures surface as ``ConfigurationError`` so
an invalid run never begins.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from indexsim.data_io.calendar import years_in_range
from indexsim.models.enums import RebalanceMode, WeightingScheme
from indexsim.models.exceptions import ConfigurationError


STRATEGY_VARIANTS: dict[str, tuple[str, WeightingScheme, RebalanceMode]] = {
    "equal_weight_buy_hold": (
        "Equal Weight Buy & Hold",
        WeightingScheme.EQUAL,
        RebalanceMode.BUY_HOLD,
    ),
    "market_cap_buy_hold": (
        "Market Cap Buy & Hold",
        WeightingScheme.MARKET_CAP,
        RebalanceMode.BUY_HOLD,
    ),
    "equal_weight_rebalanced": (
        "Equal Weight Rebalanced",
        WeightingScheme.EQUAL,
        RebalanceMode.REBALANCED,
    ),
    "market_cap_rebalanced": (
        "Market Cap Rebalanced",
        WeightingScheme.MARKET_CAP,
        RebalanceMode.REBALANCED,
    ),
}


class StrategyConfig(BaseModel):
    """
    One strategy variant: a weighting scheme under a rebalancing regime.

    Attributes:
        variant: Variant identifier (e.g. 'market_cap_rebalanced').
        name: Display name.
        weighting: Equal or market-cap weighting.
        regime: Buy-hold or full annual rebalance.
    """

    variant: str
    name: str
    weighting: WeightingScheme
    regime: RebalanceMode

    @classmethod
    def from_variant(cls, variant: str) -> "StrategyConfig":
        """
        Build the configuration for a known variant identifier.

        Args:
            variant: One of the keys of ``STRATEGY_VARIANTS``.

        Returns:
            StrategyConfig for the variant.

        Raises:
            ConfigurationError: If the variant is unknown.
        """
        key = variant.strip().lower().replace("-", "_")
        if key not in STRATEGY_VARIANTS:
            raise ConfigurationError(
                f"Unknown strategy variant: {variant}",
                context={"known": ", ".join(STRATEGY_VARIANTS)},
            )
        name, weighting, regime = STRATEGY_VARIANTS[key]
        return cls(variant=key, name=name, weighting=weighting, regime=regime)


class BacktestParameters(BaseModel):
    """
    Configuration parameters for a backtest over a year range.

    Attributes:
        start_year: First simulated year (inclusive).
        end_year: Last simulated year (inclusive); must be after start_year.
        initial_investment: Starting capital (must be positive).
        strategies: Strategy variant identifiers to run (default: all four).
        benchmark_ticker: Optional instrument held buy-and-hold for comparison.
        max_concurrent_fetches: Worker cap for per-year observation fetches
            (default: 8).
        fetch_timeout_sec: Timeout for a single observation fetch (default: 30).
        fetch_retries: Extra attempts for failed fetches (default: 1).
        max_parallel_strategies: Worker cap for concurrent strategy runs;
            None derives it from the logical core count.
        snapshots_dir: Optional directory for per-strategy JSONL snapshots.
    """

    start_year: int = Field(..., ge=1900, le=2100)
    end_year: int = Field(..., ge=1900, le=2100)
    initial_investment: float = Field(..., gt=0.0)
    strategies: list[str] = Field(
        default_factory=lambda: list(STRATEGY_VARIANTS), min_length=1
    )
    benchmark_ticker: Optional[str] = None

    max_concurrent_fetches: int = Field(default=8, ge=1, le=64)
    fetch_timeout_sec: float = Field(default=30.0, gt=0.0, le=600.0)
    fetch_retries: int = Field(default=1, ge=0, le=10)
    max_parallel_strategies: Optional[int] = Field(default=None, ge=1)

    snapshots_dir: Optional[Path] = None

    @field_validator("strategies")
    @classmethod
    def strategies_must_be_known(cls, v):
        """Validate and normalize strategy variant identifiers."""
        normalized = []
        for variant in v:
            key = variant.strip().lower().replace("-", "_")
            if key not in STRATEGY_VARIANTS:
                raise ValueError(f"Unknown strategy variant: {variant}")
            if key not in normalized:
                normalized.append(key)
        return normalized

    @field_validator("benchmark_ticker")
    @classmethod
    def normalize_benchmark(cls, v):
        """Upper-case the benchmark ticker; blank means no benchmark."""
        if v is None:
            return None
        v = v.strip().upper()
        return v or None

    @model_validator(mode="after")
    def start_must_precede_end(self) -> "BacktestParameters":
        """Validate that start_year is strictly before end_year."""
        if self.start_year >= self.end_year:
            raise ValueError(
                f"start_year ({self.start_year}) must be before "
                f"end_year ({self.end_year})"
            )
        return self

    @property
    def years(self) -> list[int]:
        """Return every simulated year in order."""
        return years_in_range(self.start_year, self.end_year)

    def strategy_configs(self) -> list[StrategyConfig]:
        """Return the StrategyConfig of every configured variant."""
        return [StrategyConfig.from_variant(variant) for variant in self.strategies]

    @classmethod
    def from_values(cls, **values) -> "BacktestParameters":
        """
        Validate raw values into parameters.

        Args:
            **values: Field values (e.g. from CLI arguments).

        Returns:
            Validated BacktestParameters.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        try:
            return cls(**values)
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'parameters'}: "
                f"{err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(
                f"Invalid backtest parameters: {errors}"
            ) from exc
