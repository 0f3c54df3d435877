"""Shared fixtures and factory functions for greeker tests."""

from datetime import date, timedelta

import pytest

from greeker.analytics.chain import ChainGenerator, Option, option_id
from greeker.config import AnalyticsConfig
from greeker.data.models import PricePoint, StockData
from greeker.portfolio.models import PortfolioPosition
from greeker.pricing.bsm import BSMPricer, Greeks, OptionType


# ─── Configuration Fixtures ─────────────────────────────────────────


@pytest.fixture
def config():
    """Default config pinned to a fixed date window."""
    return AnalyticsConfig(start_date="2024-01-01", end_date="2024-03-31")


@pytest.fixture
def chain(config):
    """Chain around 100 at 20% historical vol."""
    return ChainGenerator(config).generate(100.0, 0.20)


# ─── Factory Functions ──────────────────────────────────────────────


def make_option(**overrides):
    """Factory for chain Options priced with BSM at the given IV."""
    spot = overrides.pop("spot", 100.0)
    r = overrides.pop("r", 0.07)
    strike = overrides.pop("strike", 100)
    maturity = overrides.pop("maturity", 30)
    option_type = overrides.pop("option_type", OptionType.CALL)
    iv = overrides.pop("iv", 0.20)

    priced = BSMPricer.price(spot, strike, maturity / 252, iv, r, option_type)
    defaults = dict(
        id=option_id(strike, maturity, option_type),
        strike=strike,
        maturity=maturity,
        option_type=option_type,
        iv=iv,
        price=priced.price,
        greeks=priced.greeks,
        d1=priced.d1,
        d2=priced.d2,
        price_hist_vol=priced.price,
        greeks_hist_vol=priced.greeks,
    )
    defaults.update(overrides)
    return Option(**defaults)


def make_fixed_option(gamma=0.0, delta=0.0, **overrides):
    """Option with hand-set Greeks, for hedge arithmetic."""
    greeks = Greeks(delta=delta, gamma=gamma)
    overrides.setdefault("greeks", greeks)
    return make_option(**overrides)


def make_position(quantity=1, **option_overrides) -> PortfolioPosition:
    return PortfolioPosition(option=make_option(**option_overrides), quantity=quantity)


def make_stock_data(prices, ticker="TEST", start=date(2024, 1, 1)) -> StockData:
    """StockData with one point per calendar day from ``start``."""
    points = [
        PricePoint(date=(start + timedelta(days=i)).isoformat(), price=float(p))
        for i, p in enumerate(prices)
    ]
    return StockData(ticker=ticker, historical_data=points)


def make_price_series(n=30, start=100.0, step=0.5):
    """Gently zig-zagging price path with non-zero dispersion."""
    prices = []
    price = start
    for i in range(n):
        price += step if i % 3 else -step * 1.5
        prices.append(round(price, 4))
    return prices


class FakeFetcher:
    """PriceFetcher returning a fixed series, or raising a given exception."""

    def __init__(self, prices=None, error=None):
        self.prices = prices
        self.error = error
        self.calls = []

    def get_close_history(self, ticker, start_date, end_date):
        self.calls.append((ticker, start_date, end_date))
        if self.error is not None:
            raise self.error
        return make_stock_data(self.prices, ticker=ticker)
