"""Price history with provider selection and simulated fallback."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from greeker.data.models import PriceDataError, StockData
from greeker.data.simulation import simulate_stock_data
from greeker.data.yahoo import YahooChartFetcher, YFinanceFetcher

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class PriceFetcher(Protocol):
    """Interface every price-series provider implements."""

    def get_close_history(self, ticker: str, start_date: str, end_date: str) -> StockData: ...


def build_price_fetcher(config: AnalyticsConfig) -> PriceFetcher:
    """Factory: build the configured provider."""
    if config.provider == "alpaca":
        from greeker.clients import AlpacaClientManager
        from greeker.data.equity import AlpacaEquityFetcher

        return AlpacaEquityFetcher(AlpacaClientManager())
    if config.provider == "yfinance":
        return YFinanceFetcher(timeout=config.fetch_timeout)
    return YahooChartFetcher(timeout=config.fetch_timeout)


class PriceDataManager:
    """
    Single entry point for price history.
    Provider failures never propagate: the caller gets a deterministic
    simulated series instead, flagged with ``is_simulated``.
    """

    def __init__(self, config: AnalyticsConfig, fetcher: Optional[PriceFetcher] = None) -> None:
        self.config = config
        self.fetcher = fetcher or build_price_fetcher(config)

    def provider_symbol(self, ticker: str) -> str:
        """Ticker as the provider expects it (Yahoo needs the exchange suffix)."""
        suffix = self.config.ticker_suffix
        if self.config.provider == "alpaca" or not suffix or ticker.endswith(suffix):
            return ticker
        return f"{ticker}{suffix}"

    def get_stock_data(
        self,
        ticker: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> StockData:
        start_date = start_date or self.config.start_date
        end_date = end_date or self.config.end_date
        symbol = self.provider_symbol(ticker)

        try:
            data = self.fetcher.get_close_history(symbol, start_date, end_date)
        except PriceDataError as e:
            logger.warning("Price fetch failed for %s, using simulation: %s", ticker, e)
            return simulate_stock_data(ticker, start_date, end_date)
        except Exception as e:
            logger.exception("Unexpected provider error for %s, using simulation: %s", ticker, e)
            return simulate_stock_data(ticker, start_date, end_date)

        if not data.historical_data:
            logger.warning("No usable prices for %s, using simulation", ticker)
            return simulate_stock_data(ticker, start_date, end_date)

        logger.info("Fetched %d closes for %s (%s to %s)",
                    len(data.historical_data), symbol, start_date, end_date)
        return replace(data, ticker=ticker)
