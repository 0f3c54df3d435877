"""P&L scenarios: spot shocks on the book and time/vol shifts on strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Union

import numpy as np
import pandas as pd

from greeker.portfolio.hedging import delta_hedge_shares
from greeker.portfolio.models import PnLScenario, PortfolioPosition, StrategyLeg
from greeker.pricing.bsm import BSMPricer

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

Leg = Union[PortfolioPosition, StrategyLeg]


def scenario_label(change: float) -> str:
    """-0.02 -> "-2%"."""
    return f"{round(change * 100)}%"


class ScenarioEngine:
    """
    Reprices positions under hypothetical market moves.
    IV and maturity stay fixed for spot shocks; strategy scenarios also
    move the clock forward and shift every leg's IV.
    """

    def __init__(self, config: "AnalyticsConfig") -> None:
        self.config = config

    def _reprice(self, leg: Leg, spot: float, days_passed: float = 0.0, iv_shift: float = 0.0) -> float:
        opt = leg.option
        t = max(0.0, self.config.year_fraction(opt.maturity - days_passed))
        sigma = opt.iv + iv_shift
        return BSMPricer.price(
            spot, opt.strike, t, sigma, self.config.risk_free_decimal, opt.option_type
        ).price

    def spot_shock_pnl(
        self,
        positions: Sequence[PortfolioPosition],
        last_price: float,
    ) -> List[PnLScenario]:
        """
        Unhedged and delta-hedged P&L for each configured spot shock.

        The option P&L is scaled by lot size. The hedge leg holds the per-lot
        delta hedge (lot size 1) and earns shares x spot move.
        """
        if not positions:
            return []

        lot_size = self.config.lot_size
        current_value = sum(pos.quantity * pos.option.price for pos in positions)
        hedge_shares = delta_hedge_shares(positions, lot_size=1)

        scenarios = []
        for change in self.config.pnl_shocks:
            new_price = last_price * (1 + change)
            new_value = sum(pos.quantity * self._reprice(pos, new_price) for pos in positions)
            pnl_unhedged = (new_value - current_value) * lot_size
            hedge_pnl = hedge_shares * (new_price - last_price)
            scenarios.append(
                PnLScenario(
                    scenario=scenario_label(change),
                    spot_change=change,
                    new_price=new_price,
                    pnl_unhedged=pnl_unhedged,
                    pnl_delta_hedged=pnl_unhedged + hedge_pnl,
                )
            )
        return scenarios

    def strategy_pnl(
        self,
        legs: Sequence[Leg],
        spot: float,
        days_passed: float = 0.0,
        iv_shift: float = 0.0,
        lot_size: int = 1,
    ) -> float:
        """
        P&L versus entry cost after ``days_passed`` trading days and an
        additive IV shift, at spot ``spot``.

        Legs past expiry price at intrinsic; a shift taking IV to zero or
        below also prices at intrinsic.
        """
        pnl = 0.0
        for leg in legs:
            new_price = self._reprice(leg, spot, days_passed, iv_shift)
            pnl += leg.quantity * (new_price - leg.option.price)
        return pnl * lot_size

    def strategy_pnl_grid(
        self,
        legs: Sequence[Leg],
        last_price: float,
        days_passed: float = 0.0,
        iv_shift: float = 0.0,
        width: float = 0.20,
        points: int = 41,
        lot_size: int = 1,
    ) -> pd.DataFrame:
        """P&L across spots spanning last_price * (1 +/- width)."""
        spots = np.linspace(last_price * (1 - width), last_price * (1 + width), points)
        pnl = [self.strategy_pnl(legs, s, days_passed, iv_shift, lot_size) for s in spots]
        return pd.DataFrame({"spot": spots, "pnl": pnl})
