"""Data model dataclasses for price history and quotes."""

from dataclasses import dataclass, field
from typing import List

import pandas as pd


class PriceDataError(RuntimeError):
    """A price provider failed or returned no usable points."""


@dataclass(frozen=True)
class PricePoint:
    date: str  # ISO yyyy-mm-dd
    price: float


@dataclass(frozen=True)
class StockData:
    """
    Close-price history for one ticker, oldest first.
    Simulated series are flagged and carry a "(Simulated)" ticker prefix.
    """

    ticker: str
    historical_data: List[PricePoint] = field(default_factory=list)
    is_simulated: bool = False

    @property
    def last_price(self) -> float:
        return self.historical_data[-1].price

    @property
    def prices(self) -> List[float]:
        return [p.price for p in self.historical_data]

    def to_series(self) -> pd.Series:
        """Closes as a Series indexed by date."""
        return pd.Series(
            self.prices,
            index=pd.to_datetime([p.date for p in self.historical_data]),
            name=self.ticker,
            dtype=float,
        )

    @classmethod
    def from_closes(cls, ticker: str, closes: pd.Series) -> "StockData":
        """
        Build from a Series of closes indexed by timestamp.
        Null and non-positive closes are dropped.
        """
        closes = pd.to_numeric(closes, errors="coerce").dropna()
        closes = closes[closes > 0]
        points = [
            PricePoint(date=pd.Timestamp(ts).strftime("%Y-%m-%d"), price=float(price))
            for ts, price in closes.items()
        ]
        if not points:
            raise PriceDataError(f"No valid historical data points for {ticker}")
        return cls(ticker=ticker, historical_data=points)


@dataclass(frozen=True)
class LiveQuote:
    """Intraday snapshot shown next to the history."""

    open: float
    high: float
    low: float
    close: float
    previous_close: float
    volume: str  # e.g. "2.35M"
