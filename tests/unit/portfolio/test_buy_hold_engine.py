"""Unit tests for the buy-and-hold-with-entries engine.

Tests verify:
- Initial allocation keeps per-ticker rounding leftovers as cash
- Only tickers whose window began this year or last year are admitted
- Dilution never increases an existing holding's share count
- Delisted holdings are dropped without crediting cash
"""
from datetime import date

import pytest

from indexsim.backtest.portfolio.buy_hold_engine import BuyHoldEngine
from indexsim.models.enums import TradeAction, WeightingScheme
from indexsim.models.exceptions import DegenerateUniverseError
from indexsim.models.portfolio import Holding, PortfolioState
from indexsim.models.universe import Stock

pytestmark = pytest.mark.unit


def _by_ticker(observations):
    return {obs.ticker: obs for obs in observations}


def _stocks(**start_years):
    return [
        Stock(ticker=ticker, start_date=date(year, 1, 1))
        for ticker, year in sorted(start_years.items())
    ]


class TestInitialize:
    """Test the first-year allocation."""

    def test_leftovers_accumulate_in_cash(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        observations = _by_ticker(
            [make_observation("A", 2010, 30.0), make_observation("B", 2010, 70.0)]
        )

        outcome = engine.initialize(1000.0, observations, ["A", "B"], date(2010, 1, 5))

        state = outcome.state
        # 500 / 30 -> 16 shares (20 left); 500 / 70 -> 7 shares (10 left)
        assert state.get("A").shares == 16
        assert state.get("B").shares == 7
        assert state.cash == pytest.approx(30.0)
        assert state.total_value() == pytest.approx(1000.0)

    def test_no_priced_observation_is_degenerate(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        with pytest.raises(DegenerateUniverseError):
            engine.initialize(
                1000.0,
                _by_ticker([make_observation("A", 2010, 0.0)]),
                ["A"],
                date(2010, 1, 5),
            )


class TestAdmission:
    """Test which tickers may enter an existing portfolio."""

    def test_recent_listing_admitted_pre_existing_ticker_not(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={"X": Holding(ticker="X", shares=10_000, price=100.0)}
        )
        observations = _by_ticker(
            [
                make_observation("X", 2014, 100.0),
                make_observation("Y", 2014, 100.0),
                make_observation("OLD", 2014, 100.0),
            ]
        )
        eligible = _stocks(X=1996, Y=2014, OLD=1996)

        entrants = engine.select_entrants(state, observations, eligible, date(2014, 1, 7))

        assert [o.ticker for o in entrants] == ["Y"]

    def test_listing_from_previous_year_admitted(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={"X": Holding(ticker="X", shares=10, price=100.0)}
        )
        observations = _by_ticker(
            [make_observation("X", 2015, 100.0), make_observation("Y", 2015, 100.0)]
        )

        entrants = engine.select_entrants(
            state, observations, _stocks(X=1996, Y=2014), date(2015, 1, 6)
        )

        assert [o.ticker for o in entrants] == ["Y"]

    def test_listing_two_years_old_not_admitted(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={"X": Holding(ticker="X", shares=10, price=100.0)}
        )
        observations = _by_ticker(
            [make_observation("X", 2016, 100.0), make_observation("Y", 2016, 100.0)]
        )

        entrants = engine.select_entrants(
            state, observations, _stocks(X=1996, Y=2014), date(2016, 1, 5)
        )

        assert entrants == []

    def test_market_cap_entrant_requires_cap(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.MARKET_CAP)
        observations = _by_ticker(
            [
                make_observation("Y", 2014, 100.0),
                make_observation("Z", 2014, 100.0, market_cap=5e9),
            ]
        )

        entrants = engine.select_entrants(
            PortfolioState(), observations, _stocks(Y=2014, Z=2014), date(2014, 1, 7)
        )

        assert [o.ticker for o in entrants] == ["Z"]


class TestAdvance:
    """Test year-over-year carry forward, dilution and drops."""

    def test_equal_dilution_halves_single_holding(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={"X": Holding(ticker="X", shares=10_000, price=100.0)}
        )
        observations = _by_ticker(
            [make_observation("X", 2014, 100.0), make_observation("Y", 2014, 100.0)]
        )

        outcome = engine.advance(
            state, observations, _stocks(X=1996, Y=2014), date(2014, 1, 7)
        )

        new_state = outcome.state
        assert new_state.get("X").shares == 5000
        assert new_state.get("Y").shares == 5000
        assert new_state.get("Y").weight == pytest.approx(0.5)
        assert new_state.cash == pytest.approx(0.0)
        assert outcome.added == ["Y"]
        assert [t.action for t in outcome.trades] == [TradeAction.SELL, TradeAction.BUY]

    def test_dilution_never_increases_existing_shares(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={
                "A": Holding(ticker="A", shares=331, price=17.0),
                "B": Holding(ticker="B", shares=57, price=93.0),
                "C": Holding(ticker="C", shares=1009, price=4.0),
            },
            cash=12.0,
        )
        observations = _by_ticker(
            [
                make_observation("A", 2012, 19.3),
                make_observation("B", 2012, 88.1),
                make_observation("C", 2012, 4.7),
                make_observation("D", 2012, 61.0),
                make_observation("E", 2012, 7.9),
            ]
        )

        outcome = engine.advance(
            state,
            observations,
            _stocks(A=2000, B=2000, C=2000, D=2012, E=2011),
            date(2012, 1, 3),
        )

        new_state = outcome.state
        for ticker in ("A", "B", "C"):
            assert new_state.get(ticker).shares <= state.get(ticker).shares
        assert set(outcome.added) == {"D", "E"}
        total = new_state.total_value()
        weight_sum = sum(h.weight for h in new_state.holdings.values())
        assert weight_sum == pytest.approx(1.0, abs=5 * 88.1 / total)
        assert new_state.cash >= 0

    def test_market_cap_entrant_weight_is_cap_share(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.MARKET_CAP)
        state = PortfolioState(
            holdings={
                "A": Holding(ticker="A", shares=10_000, price=100.0, market_cap=900e9)
            }
        )
        observations = _by_ticker(
            [
                make_observation("A", 2011, 100.0, market_cap=900e9),
                make_observation("C", 2011, 10.0, market_cap=100e9),
            ]
        )

        outcome = engine.advance(
            state, observations, _stocks(A=1990, C=2011), date(2011, 1, 4)
        )

        new_state = outcome.state
        assert new_state.get("A").shares == 9000
        assert new_state.get("C").shares == 10_000
        assert new_state.get("C").weight == pytest.approx(0.1)

    def test_delisted_holding_dropped_without_cash(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={
                "A": Holding(ticker="A", shares=100, price=10.0),
                "B": Holding(ticker="B", shares=50, price=20.0),
            },
            cash=3.0,
        )
        observations = _by_ticker([make_observation("A", 2011, 12.0)])

        outcome = engine.advance(
            state, observations, _stocks(A=2000), date(2011, 1, 4)
        )

        new_state = outcome.state
        assert outcome.dropped == ["B"]
        assert new_state.tickers() == {"A"}
        assert new_state.get("A").shares == 100
        assert new_state.get("A").price == 12.0
        assert new_state.cash == 3.0

    def test_no_priced_observation_is_degenerate(self, make_observation):
        engine = BuyHoldEngine(WeightingScheme.EQUAL)
        state = PortfolioState(
            holdings={"A": Holding(ticker="A", shares=100, price=10.0)}
        )

        with pytest.raises(DegenerateUniverseError):
            engine.advance(state, {}, _stocks(A=2000), date(2011, 1, 4))

        assert state.get("A").shares == 100
