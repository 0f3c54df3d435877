"""Delta and gamma hedge suggestions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from greeker.analytics.chain import Option, OptionChain, all_options
from greeker.portfolio.book import aggregate_greeks
from greeker.portfolio.models import GammaHedgeSuggestion, HedgeAction, PortfolioPosition
from greeker.pricing.normal import round_half_up

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

logger = logging.getLogger(__name__)


def delta_hedge_shares(positions: Sequence[PortfolioPosition], lot_size: int = 1) -> float:
    """Signed share quantity that flattens portfolio delta. Positive means buy stock."""
    return -aggregate_greeks(positions).delta * lot_size


class HedgeAdvisor:
    """
    Suggests hedges for the current book.

    Delta: trade the underlying.
    Gamma: trade the highest-gamma option of the hedge maturity (30d by default).
    """

    def __init__(self, config: "AnalyticsConfig") -> None:
        self.config = config

    def delta_hedge(self, positions: Sequence[PortfolioPosition], lot_size: Optional[int] = None) -> float:
        if lot_size is None:
            lot_size = self.config.lot_size
        return delta_hedge_shares(positions, lot_size)

    def hedge_instrument(self, chain: OptionChain) -> Optional[Option]:
        """
        Option with the largest absolute gamma at the hedge maturity.
        Ties go to the one appearing last in chain order.
        """
        candidates = [
            o for o in all_options(chain) if o.maturity == self.config.hedge_maturity
        ]
        if not candidates:
            return None
        return sorted(candidates, key=lambda o: abs(o.greeks.gamma))[-1]

    def gamma_hedge(
        self,
        positions: Sequence[PortfolioPosition],
        chain: OptionChain,
    ) -> Optional[GammaHedgeSuggestion]:
        """
        Returns:
            Suggestion, or None if the book is empty, already gamma neutral,
            or the chain has no usable hedge instrument
        """
        if not positions:
            return None

        portfolio_gamma = aggregate_greeks(positions).gamma
        if abs(portfolio_gamma) < self.config.gamma_neutral_tolerance:
            return None

        instrument = self.hedge_instrument(chain)
        if instrument is None or instrument.greeks.gamma == 0:
            logger.warning("No gamma hedge instrument at %dd maturity",
                           self.config.hedge_maturity)
            return None

        raw_quantity = -portfolio_gamma / instrument.greeks.gamma
        action = HedgeAction.BUY if raw_quantity > 0 else HedgeAction.SELL
        lots = abs(round_half_up(raw_quantity))

        return GammaHedgeSuggestion(
            action=action,
            quantity=lots,
            option=instrument,
            message=f"{action.value} {lots} lots of the {instrument.label}",
        )
