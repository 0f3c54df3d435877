"""Equity close history from Alpaca."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pandas as pd

from alpaca.data.requests import StockBarsRequest
from alpaca.data.timeframe import TimeFrame

from greeker.data.models import PriceDataError, StockData

if TYPE_CHECKING:
    from greeker.clients import AlpacaClientManager

logger = logging.getLogger(__name__)


class AlpacaEquityFetcher:
    """
    Fetches daily bars from Alpaca.
    US listings only; no exchange suffix is applied to the ticker.
    """

    def __init__(self, alpaca_manager: "AlpacaClientManager") -> None:
        self.client = alpaca_manager.data_client

    def get_close_history(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """
        Daily closes for [start_date, end_date].

        Raises:
            PriceDataError: when the request fails or returns no bars
        """
        request = StockBarsRequest(
            symbol_or_symbols=[ticker],
            timeframe=TimeFrame.Day,
            start=datetime.fromisoformat(start_date),
            end=datetime.fromisoformat(end_date) + timedelta(days=1),
        )

        try:
            bars = self.client.get_stock_bars(request)
        except Exception as e:
            raise PriceDataError(f"Alpaca bars request failed for {ticker}: {e}") from e

        if ticker not in bars.data or not bars.data[ticker]:
            raise PriceDataError(f"No Alpaca data for {ticker}")

        symbol_bars = bars.data[ticker]
        closes = pd.Series(
            [bar.close for bar in symbol_bars],
            index=[bar.timestamp for bar in symbol_bars],
            name=ticker,
        )
        return StockData.from_closes(ticker, closes)
