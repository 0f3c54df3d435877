"""Analysis session: owns config, price history, chain and the position book."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from greeker.analytics.chain import ChainGenerator, Option, OptionChain, index_by_id
from greeker.analytics.statistics import HistoricalStats, compute_stats
from greeker.analytics.surface import volatility_surface
from greeker.config import AnalyticsConfig
from greeker.data.manager import PriceDataManager, PriceFetcher
from greeker.data.models import LiveQuote, StockData
from greeker.data.simulation import generate_live_quote
from greeker.portfolio.book import PortfolioBook
from greeker.portfolio.hedging import HedgeAdvisor
from greeker.portfolio.models import (
    GammaHedgeSuggestion,
    PnLScenario,
    PortfolioPosition,
    Strategy,
    VaRResult,
)
from greeker.portfolio.risk import RiskEngine
from greeker.portfolio.scenarios import ScenarioEngine
from greeker.portfolio.strategies import StrategyBuilder, StrategyType
from greeker.pricing.bsm import Greeks
from greeker.report import export_report

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    One ticker, one config snapshot, one book.

    ``load()`` fetches prices and rebuilds everything derived from them.
    ``apply_config()`` swaps the config atomically and reloads. Positions
    survive reloads by option id; ids missing from the new chain are dropped.
    """

    def __init__(
        self,
        ticker: str,
        config: Optional[AnalyticsConfig] = None,
        fetcher: Optional[PriceFetcher] = None,
    ) -> None:
        self.ticker = ticker
        self.book = PortfolioBook()
        self._fetcher = fetcher
        self.stock_data: Optional[StockData] = None
        self.stats: Optional[HistoricalStats] = None
        self.chain: OptionChain = {}
        self.live_quote: Optional[LiveQuote] = None
        self._configure(config or AnalyticsConfig())

    def _configure(self, config: AnalyticsConfig) -> None:
        # Build everything before assigning anything, so a provider that
        # fails to construct leaves the previous snapshot in place.
        data_manager = PriceDataManager(config, fetcher=self._fetcher)
        chain_generator = ChainGenerator(config)
        risk_engine = RiskEngine(config)
        hedge_advisor = HedgeAdvisor(config)
        scenario_engine = ScenarioEngine(config)
        strategy_builder = StrategyBuilder(config)

        self.config = config
        self.data_manager = data_manager
        self.chain_generator = chain_generator
        self.risk_engine = risk_engine
        self.hedge_advisor = hedge_advisor
        self.scenario_engine = scenario_engine
        self.strategy_builder = strategy_builder

    @property
    def is_loaded(self) -> bool:
        return self.stock_data is not None

    @property
    def is_simulated(self) -> bool:
        return bool(self.stock_data and self.stock_data.is_simulated)

    @property
    def last_price(self) -> float:
        self._require_loaded()
        return self.stock_data.last_price

    def _require_loaded(self) -> None:
        if self.stock_data is None:
            raise RuntimeError("Session not loaded; call load() first")

    def load(self, extra_strikes: Iterable[float] = ()) -> None:
        """Fetch prices, then recompute stats, chain and position links.

        ``extra_strikes`` are added to the chain alongside the strikes of
        held positions, so contracts named up front can be traded.
        """
        stock_data = self.data_manager.get_stock_data(
            self.ticker, self.config.start_date, self.config.end_date
        )
        if stock_data.is_simulated:
            logger.warning("Could not fetch live data for %s; using deterministic simulation",
                           self.ticker)

        stats = compute_stats(stock_data.prices, self.config.trading_days)
        chain = self.chain_generator.generate(
            stock_data.last_price,
            stats.annualized_volatility,
            self.config.risk_free_rate,
            existing_strikes=[*self.book.strikes(), *extra_strikes],
        )

        self.stock_data = stock_data
        self.stats = stats
        self.chain = chain
        self.live_quote = generate_live_quote(self.ticker, stock_data.last_price)
        self.book.relink(chain)

    def apply_config(self, config: AnalyticsConfig) -> None:
        """Replace the config snapshot and recompute everything."""
        logger.info("Applying config: %s", config.to_dict())
        self._configure(config)
        self.load()

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    def option(self, option_id: str) -> Option:
        option = index_by_id(self.chain).get(option_id)
        if option is None:
            raise ValueError(f"Option {option_id} not in current chain")
        return option

    def trade(self, option_id: str, change: int) -> Optional[PortfolioPosition]:
        """Buy (positive) or sell (negative) contracts of a chain option."""
        return self.book.adjust(self.option(option_id), change)

    @property
    def positions(self) -> List[PortfolioPosition]:
        return self.book.positions

    def portfolio_greeks(self) -> Greeks:
        return self.book.greeks()

    def portfolio_value(self) -> float:
        return self.book.value(self.config.lot_size)

    # ------------------------------------------------------------------
    # Risk, hedges and scenarios
    # ------------------------------------------------------------------

    def var(self) -> VaRResult:
        self._require_loaded()
        return self.risk_engine.compute_var(self.positions, self.stock_data.prices)

    def hedged_var(self) -> VaRResult:
        self._require_loaded()
        return self.risk_engine.compute_hedged_var(self.positions, self.stock_data.prices)

    def delta_hedge_shares(self) -> float:
        return self.hedge_advisor.delta_hedge(self.positions)

    def gamma_hedge(self) -> Optional[GammaHedgeSuggestion]:
        return self.hedge_advisor.gamma_hedge(self.positions, self.chain)

    def pnl_scenarios(self) -> List[PnLScenario]:
        return self.scenario_engine.spot_shock_pnl(self.positions, self.last_price)

    def strategies(self) -> Dict[StrategyType, Strategy]:
        return self.strategy_builder.build_all(self.last_price, self.chain)

    def strategy_pnl_grid(
        self,
        strategy_type: StrategyType,
        days_passed: float = 0.0,
        iv_shift: float = 0.0,
    ) -> Optional[pd.DataFrame]:
        strategy = self.strategy_builder.build(strategy_type, self.last_price, self.chain)
        if strategy is None:
            return None
        return self.scenario_engine.strategy_pnl_grid(
            strategy.legs, self.last_price, days_passed, iv_shift
        )

    def volatility_surface(self) -> pd.DataFrame:
        return volatility_surface(self.chain)

    def report(self) -> str:
        self._require_loaded()
        return export_report(self.stock_data, self.stats, self.chain, self.positions, self.config)
