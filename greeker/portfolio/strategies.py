"""Standard multi-leg option strategies built from the generated chain."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from greeker.analytics.chain import Option, OptionChain
from greeker.portfolio.models import Strategy, StrategyLeg
from greeker.pricing.bsm import BSMPricer, Greeks, OptionType

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

logger = logging.getLogger(__name__)

CALL = OptionType.CALL
PUT = OptionType.PUT


class StrategyType(Enum):
    STRADDLE = "Straddle"
    STRANGLE = "Strangle"
    BULL_CALL_SPREAD = "Bull Call Spread"
    BEAR_PUT_SPREAD = "Bear Put Spread"
    IRON_CONDOR = "Iron Condor"
    BUTTERFLY = "Butterfly"


# (strike offset from ATM, right, quantity) per leg
STRATEGY_LEGS: Dict[StrategyType, List[Tuple[int, OptionType, int]]] = {
    StrategyType.STRADDLE: [(0, CALL, 1), (0, PUT, 1)],
    StrategyType.STRANGLE: [(-1, PUT, 1), (1, CALL, 1)],
    StrategyType.BULL_CALL_SPREAD: [(0, CALL, 1), (1, CALL, -1)],
    StrategyType.BEAR_PUT_SPREAD: [(0, PUT, 1), (-1, PUT, -1)],
    StrategyType.IRON_CONDOR: [(-2, PUT, 1), (-1, PUT, -1), (1, CALL, -1), (2, CALL, 1)],
    StrategyType.BUTTERFLY: [(-1, CALL, 1), (0, CALL, -2), (1, CALL, 1)],
}

DESCRIPTIONS = {
    StrategyType.STRADDLE: "Long ATM call and put. Profits from a large move in either direction.",
    StrategyType.STRANGLE: "Long OTM put and OTM call. Cheaper than a straddle, needs a bigger move.",
    StrategyType.BULL_CALL_SPREAD: "Long ATM call, short higher call. Capped upside for a lower debit.",
    StrategyType.BEAR_PUT_SPREAD: "Long ATM put, short lower put. Capped downside bet for a lower debit.",
    StrategyType.IRON_CONDOR: "Short strangle with long wings. Collects premium if the stock stays in range.",
    StrategyType.BUTTERFLY: "Long wings, two short ATM calls. Profits if the stock pins the middle strike.",
}


def expiry_pnl(legs: Sequence[StrategyLeg], spot: float) -> float:
    """Per-share P&L at expiry: intrinsic value of the legs less entry cost."""
    return sum(
        leg.quantity * (BSMPricer.intrinsic(spot, leg.option.strike, leg.option.option_type).price
                        - leg.entry_price)
        for leg in legs
    )


def payoff_profile(legs: Sequence[StrategyLeg]) -> Tuple[Optional[float], Optional[float], List[float]]:
    """
    Max profit, max loss and breakevens of the expiry P&L.

    The expiry P&L is piecewise linear with kinks at the strikes, so it is
    evaluated at 0 and at every strike; beyond the last strike it moves with
    slope equal to the net call quantity.

    Returns:
        (max_profit, max_loss, breakevens); max values are None when unbounded.
        max_loss is a positive magnitude.
    """
    xs = [0.0] + sorted({float(leg.option.strike) for leg in legs})
    ys = [expiry_pnl(legs, x) for x in xs]
    tail_slope = sum(leg.quantity for leg in legs if leg.option.option_type is CALL)

    max_profit = None if tail_slope > 0 else max(ys)
    max_loss = None if tail_slope < 0 else max(0.0, -min(ys))

    breakevens: List[float] = []
    for i, (x, y) in enumerate(zip(xs, ys)):
        if y == 0:
            breakevens.append(x)
        if i + 1 < len(xs):
            x_next, y_next = xs[i + 1], ys[i + 1]
            if y * y_next < 0:
                breakevens.append(x + (x_next - x) * (-y) / (y_next - y))
    if tail_slope != 0 and ys[-1] * tail_slope < 0:
        breakevens.append(xs[-1] - ys[-1] / tail_slope)

    return max_profit, max_loss, sorted(set(breakevens))


class StrategyBuilder:
    """
    Picks strategy legs around the at-the-money strike of one maturity.
    The ATM strike is the chain strike closest to the last price.
    """

    def __init__(self, config: "AnalyticsConfig") -> None:
        self.config = config

    def build(
        self,
        strategy_type: StrategyType,
        last_price: float,
        chain: OptionChain,
        maturity: Optional[int] = None,
    ) -> Optional[Strategy]:
        """
        Returns:
            Strategy, or None when the chain lacks the maturity or enough
            strikes on either side of ATM
        """
        if maturity is None:
            maturity = self.config.hedge_maturity
        options = chain.get(maturity)
        if not options:
            return None

        by_key: Dict[Tuple[float, OptionType], Option] = {
            (float(o.strike), o.option_type): o for o in options
        }
        strikes = sorted({float(o.strike) for o in options})
        atm_index = min(range(len(strikes)), key=lambda i: abs(strikes[i] - last_price))

        legs = []
        for offset, option_type, quantity in STRATEGY_LEGS[strategy_type]:
            idx = atm_index + offset
            if idx < 0 or idx >= len(strikes):
                logger.debug("%s needs strike offset %d from ATM; chain too narrow",
                             strategy_type.value, offset)
                return None
            option = by_key.get((strikes[idx], option_type))
            if option is None:
                return None
            legs.append(StrategyLeg(option=option, quantity=quantity))

        cost = sum(leg.quantity * leg.entry_price for leg in legs)
        net_greeks = Greeks.total(leg.option.greeks.scaled(leg.quantity) for leg in legs)
        max_profit, max_loss, breakevens = payoff_profile(legs)

        return Strategy(
            name=strategy_type.value,
            description=DESCRIPTIONS[strategy_type],
            legs=legs,
            cost=cost,
            net_greeks=net_greeks,
            max_profit=max_profit,
            max_loss=max_loss,
            breakevens=breakevens,
        )

    def build_all(self, last_price: float, chain: OptionChain) -> Dict[StrategyType, Strategy]:
        """Every strategy the chain can support."""
        result = {}
        for strategy_type in StrategyType:
            strategy = self.build(strategy_type, last_price, chain)
            if strategy is not None:
                result[strategy_type] = strategy
        return result
