"""Deterministic simulated prices used when live data is unavailable."""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from greeker.data.models import LiveQuote, PricePoint, StockData
from greeker.pricing.normal import box_muller, mulberry32

MIN_SIMULATED_PRICE = 10.0
DT = 1 / 252


def ticker_seed(ticker: str) -> int:
    return sum(ord(ch) for ch in ticker)


def _epoch_millis(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp() * 1000)


def simulate_stock_data(ticker: str, start_date: str, end_date: str) -> StockData:
    """
    Geometric Brownian motion path over the weekdays of [start_date, end_date].

    The seed, starting price, drift and volatility all derive from the ticker
    and start date, so the same request always returns the same series.
    """
    start = date.fromisoformat(start_date)
    end = date.fromisoformat(end_date)
    seed = ticker_seed(ticker) + _epoch_millis(start)
    rand1 = mulberry32(seed)
    rand2 = mulberry32(seed + 1)

    base_price = 200 + (seed % 300)
    mu = 0.15 + (seed % 10) / 100
    sigma = 0.20 + (seed % 20) / 100
    drift = (mu - 0.5 * sigma * sigma) * DT
    shock_scale = sigma * math.sqrt(DT)

    points = []
    price = float(base_price)
    current = start
    while current <= end:
        if current.weekday() < 5:
            points.append(PricePoint(date=current.isoformat(), price=price))
            z = box_muller(rand1, rand2)
            price = max(MIN_SIMULATED_PRICE, price * math.exp(drift + shock_scale * z))
        current += timedelta(days=1)

    if not points:
        points.append(PricePoint(date=end_date, price=float(base_price)))

    return StockData(
        ticker=f"(Simulated) {ticker}",
        historical_data=points,
        is_simulated=True,
    )


def generate_live_quote(ticker: str, last_price: float, day: Optional[int] = None) -> LiveQuote:
    """
    Plausible intraday OHLC around ``last_price``.

    Args:
        ticker: Symbol, part of the seed
        last_price: Close to build around
        day: Day of month for the seed; defaults to today

    Returns:
        LiveQuote with volume formatted in millions
    """
    if day is None:
        day = date.today().day
    rand = mulberry32(ticker_seed(ticker) + day)

    change = last_price * 0.025 * (rand() - 0.5)
    open_ = last_price - change + (rand() - 0.5) * last_price * 0.01
    high = max(open_, last_price) + rand() * last_price * 0.015
    low = min(open_, last_price) - rand() * last_price * 0.015
    previous_close = last_price / (1 + change / last_price)
    volume = math.floor(100000 + rand() * 5000000)

    return LiveQuote(
        open=open_,
        high=high,
        low=low,
        close=last_price,
        previous_close=previous_close,
        volume=f"{volume / 1_000_000:.2f}M",
    )
