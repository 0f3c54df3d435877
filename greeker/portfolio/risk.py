"""Value-at-Risk by repricing the book across the historical spot path."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from greeker.portfolio.hedging import delta_hedge_shares
from greeker.portfolio.models import PortfolioPosition, VaRResult
from greeker.pricing.bsm import BSMPricer
from greeker.pricing.normal import norm_cdf

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

logger = logging.getLogger(__name__)


class RiskEngine:
    """
    Parametric and historical VaR of the option book.

    Every historical close is treated as a spot shock applied today: each
    option is repriced at its own IV and unchanged maturity, so the value
    series reflects spot moves only, not time decay.

    Parametric VaR scales the return stdev by norm_cdf(alpha) (about 0.520 at
    5%, 0.504 at 1%) rather than by a z-score. Reported figures depend on it.
    """

    def __init__(self, config: "AnalyticsConfig") -> None:
        self.config = config

    def value_series(
        self,
        positions: Sequence[PortfolioPosition],
        prices: Sequence[float],
        stock_shares: float = 0.0,
        lot_size: Optional[int] = None,
    ) -> np.ndarray:
        """Book value at each historical spot, plus an optional stock leg valued at spot."""
        if lot_size is None:
            lot_size = self.config.lot_size
        r = self.config.risk_free_decimal
        values = np.empty(len(prices), dtype=float)
        for i, spot in enumerate(prices):
            total = stock_shares * spot
            for pos in positions:
                opt = pos.option
                t = self.config.year_fraction(opt.maturity)
                price = BSMPricer.price(spot, opt.strike, t, opt.iv, r, opt.option_type).price
                total += pos.quantity * price * lot_size
            values[i] = total
        return values

    def compute_var(
        self,
        positions: Sequence[PortfolioPosition],
        prices: Sequence[float],
        stock_shares: float = 0.0,
        lot_size: Optional[int] = None,
    ) -> VaRResult:
        """
        Compute VaR at the configured confidence levels.

        Args:
            positions: Option positions
            prices: Historical closes, oldest first
            stock_shares: Shares of the underlying held alongside the options
            lot_size: Shares per contract; defaults to the config lot size

        Returns:
            VaRResult, all zero with an empty book, fewer than 2 prices or
            fewer than 2 finite returns
        """
        if not positions or len(prices) < 2:
            return VaRResult()

        values = self.value_series(positions, prices, stock_shares, lot_size)
        with np.errstate(divide="ignore", invalid="ignore"):
            returns = np.diff(values) / values[:-1]
        returns = returns[np.isfinite(returns)]
        n = returns.size
        if n < 2:
            logger.debug("Only %d finite portfolio returns; VaR set to zero", n)
            return VaRResult()

        current_value = values[-1]
        mean = returns.mean()
        std = returns.std(ddof=1)
        ordered = np.sort(returns)

        alpha95, alpha99 = self.config.var_confidence_levels
        return VaRResult(
            parametric95=float(-(mean + norm_cdf(alpha95) * std) * current_value),
            parametric99=float(-(mean + norm_cdf(alpha99) * std) * current_value),
            historical95=float(-ordered[math.floor(alpha95 * n)] * current_value),
            historical99=float(-ordered[math.floor(alpha99 * n)] * current_value),
        )

    def compute_hedged_var(
        self,
        positions: Sequence[PortfolioPosition],
        prices: Sequence[float],
    ) -> VaRResult:
        """
        VaR of the book plus the stock position that flattens its delta.

        The hedge shares are sized at the configured lot size, but the
        combined book is valued at lot size 1, so with ``lot_size > 1`` the
        stock leg dominates. Reported VaR_Hedged figures depend on it.
        """
        shares = delta_hedge_shares(positions, self.config.lot_size)
        return self.compute_var(positions, prices, stock_shares=shares, lot_size=1)
