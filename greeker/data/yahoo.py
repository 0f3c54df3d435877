"""Daily close history from Yahoo Finance."""

import logging
from datetime import datetime, timezone
from typing import Optional

import pandas as pd
import requests
import yfinance as yf

from greeker.data.models import PriceDataError, StockData

logger = logging.getLogger(__name__)

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _epoch_seconds(iso_date: str) -> int:
    day = datetime.strptime(iso_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(day.timestamp())


class YahooChartFetcher:
    """
    Calls the Yahoo v8 chart endpoint directly with requests.
    No authentication required.
    """

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_close_history(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """
        Daily closes between start_date and end_date (ISO dates).

        Raises:
            PriceDataError: on HTTP failure, timeout, malformed payload or
                no usable closes
        """
        try:
            params = {
                "period1": _epoch_seconds(start_date),
                "period2": _epoch_seconds(end_date),
                "interval": "1d",
            }
        except ValueError as e:
            raise PriceDataError(f"Invalid date format: {e}") from e

        try:
            resp = self.session.get(
                CHART_URL.format(ticker=ticker),
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise PriceDataError(f"Yahoo chart request failed for {ticker}: {e}") from e

        return self.parse_chart(ticker, payload)

    @staticmethod
    def parse_chart(ticker: str, payload: dict) -> StockData:
        """Extract (timestamp, close) pairs from a chart response."""
        try:
            result = payload["chart"]["result"][0]
            timestamps = result["timestamp"]
            closes = result["indicators"]["quote"][0]["close"]
        except (KeyError, IndexError, TypeError) as e:
            raise PriceDataError(f"Invalid data structure from Yahoo for {ticker}") from e
        if not timestamps or closes is None:
            raise PriceDataError(f"Invalid data structure from Yahoo for {ticker}")

        series = pd.Series(
            closes,
            index=pd.to_datetime(timestamps, unit="s", utc=True),
            dtype=float,
        )
        return StockData.from_closes(ticker, series)


class YFinanceFetcher:
    """Daily closes through the yfinance library."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def get_close_history(self, ticker: str, start_date: str, end_date: str) -> StockData:
        try:
            history = yf.Ticker(ticker).history(
                start=start_date,
                end=end_date,
                interval="1d",
                timeout=self.timeout,
            )
        except Exception as e:
            raise PriceDataError(f"yfinance history failed for {ticker}: {e}") from e

        if history is None or history.empty or "Close" not in history:
            raise PriceDataError(f"No yfinance data for {ticker}")

        return StockData.from_closes(ticker, history["Close"])
