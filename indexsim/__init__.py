"""Historical index-constituent portfolio backtesting.

Replays yearly prices and market capitalizations for a changing stock
universe and compares equal-weight and market-cap-weight strategies under
full annual rebalancing and buy-and-hold-with-entries regimes.
"""

__version__ = "0.1.0"
