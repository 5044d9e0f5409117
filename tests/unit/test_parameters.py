"""Unit tests for backtest parameter validation."""
import pytest
from pydantic import ValidationError

from indexsim.config.parameters import (
    STRATEGY_VARIANTS,
    BacktestParameters,
    StrategyConfig,
)
from indexsim.models.enums import RebalanceMode, WeightingScheme
from indexsim.models.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


class TestBacktestParameters:
    """Test parameter defaults and validation."""

    def test_defaults(self, custom_parameters):
        params = custom_parameters()
        assert params.strategies == list(STRATEGY_VARIANTS)
        assert params.max_concurrent_fetches == 8
        assert params.fetch_retries == 1
        assert params.benchmark_ticker is None
        assert params.years == [2010, 2011, 2012, 2013, 2014, 2015]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"initial_investment": 0.0},
            {"initial_investment": -100.0},
            {"start_year": 2015, "end_year": 2015},
            {"start_year": 2016, "end_year": 2010},
            {"strategies": ["momentum"]},
            {"strategies": []},
            {"max_concurrent_fetches": 0},
        ],
    )
    def test_invalid_values_raise_configuration_error(self, overrides):
        values = {"start_year": 2010, "end_year": 2015, "initial_investment": 1000.0}
        values.update(overrides)
        with pytest.raises(ConfigurationError):
            BacktestParameters.from_values(**values)

    def test_direct_construction_raises_validation_error(self):
        with pytest.raises(ValidationError):
            BacktestParameters(start_year=2015, end_year=2010, initial_investment=1.0)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            BacktestParameters.from_values(
                start_year=2010, end_year=2015, initial_investment=0.0
            )

    def test_strategy_ids_normalized_and_deduplicated(self, custom_parameters):
        params = custom_parameters(
            strategies=["Equal-Weight-Rebalanced", "equal_weight_rebalanced", "market_cap_buy_hold"]
        )
        assert params.strategies == ["equal_weight_rebalanced", "market_cap_buy_hold"]

    def test_benchmark_upper_cased(self, custom_parameters):
        assert custom_parameters(benchmark_ticker=" spy ").benchmark_ticker == "SPY"
        assert custom_parameters(benchmark_ticker="  ").benchmark_ticker is None


class TestStrategyConfig:
    """Test variant lookup."""

    def test_from_variant(self):
        config = StrategyConfig.from_variant("market_cap_rebalanced")
        assert config.name == "Market Cap Rebalanced"
        assert config.weighting is WeightingScheme.MARKET_CAP
        assert config.regime is RebalanceMode.REBALANCED

    def test_unknown_variant(self):
        with pytest.raises(ConfigurationError):
            StrategyConfig.from_variant("sector_rotation")

    def test_strategy_configs_follow_order(self, custom_parameters):
        params = custom_parameters(strategies=["market_cap_buy_hold", "equal_weight_buy_hold"])
        assert [c.variant for c in params.strategy_configs()] == [
            "market_cap_buy_hold",
            "equal_weight_buy_hold",
        ]
