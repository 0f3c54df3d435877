"""Position book and portfolio-level aggregation."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from greeker.analytics.chain import Option, OptionChain, index_by_id, normalize_strike
from greeker.portfolio.models import PortfolioPosition
from greeker.pricing.bsm import Greeks

logger = logging.getLogger(__name__)


def aggregate_greeks(positions: Iterable[PortfolioPosition]) -> Greeks:
    """Sum of quantity x IV Greeks. Empty portfolio gives all zeros."""
    return Greeks.total(pos.greeks for pos in positions)


def portfolio_value(positions: Iterable[PortfolioPosition], lot_size: int = 1) -> float:
    """Mark-to-market value: sum of quantity x IV price x lot size."""
    return sum((pos.market_value(lot_size) for pos in positions), 0.0)


class PortfolioBook:
    """
    The session's option positions, keyed by option id.
    Insertion order is kept. Positions that reach zero quantity are removed.
    """

    def __init__(self, positions: Optional[Iterable[PortfolioPosition]] = None) -> None:
        self._positions: Dict[str, PortfolioPosition] = {}
        for pos in positions or ():
            self.add(pos.option, pos.quantity)

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self):
        return iter(self._positions.values())

    def __contains__(self, option_id: str) -> bool:
        return option_id in self._positions

    @property
    def positions(self) -> List[PortfolioPosition]:
        return list(self._positions.values())

    @property
    def is_empty(self) -> bool:
        return not self._positions

    def get(self, option_id: str) -> Optional[PortfolioPosition]:
        return self._positions.get(option_id)

    def quantity_of(self, option_id: str) -> int:
        pos = self._positions.get(option_id)
        return pos.quantity if pos else 0

    def add(self, option: Option, quantity: int) -> PortfolioPosition:
        """
        Open a new position. Raises ValueError if the option is already held
        or quantity is zero.
        """
        if option.id in self._positions:
            raise ValueError(f"Position in {option.id} already exists")
        position = PortfolioPosition(option=option, quantity=quantity)
        self._positions[option.id] = position
        return position

    def adjust(self, option: Option, change: int) -> Optional[PortfolioPosition]:
        """
        Add ``change`` contracts to the position in ``option``, opening it if
        needed. Returns the position, or None when it nets to zero and is removed.
        """
        if change == 0:
            return self._positions.get(option.id)

        new_quantity = self.quantity_of(option.id) + change
        if new_quantity == 0:
            self.remove(option.id)
            return None

        position = PortfolioPosition(option=option, quantity=new_quantity)
        self._positions[option.id] = position
        return position

    def set_quantity(self, option_id: str, quantity: int) -> Optional[PortfolioPosition]:
        """Overwrite quantity of an existing position. Zero removes it."""
        position = self._positions.get(option_id)
        if position is None:
            raise ValueError(f"No position in {option_id}")
        if quantity == 0:
            self.remove(option_id)
            return None
        position.quantity = quantity
        return position

    def remove(self, option_id: str) -> Optional[PortfolioPosition]:
        return self._positions.pop(option_id, None)

    def clear(self) -> None:
        self._positions.clear()

    def strikes(self) -> List[float]:
        """Strikes of held options, passed to chain regeneration."""
        return sorted({normalize_strike(p.option.strike) for p in self._positions.values()})

    def relink(self, chain: OptionChain) -> List[str]:
        """
        Re-point every position at the matching option of a fresh chain.

        Returns:
            Ids of positions dropped because the new chain has no such option
        """
        by_id = index_by_id(chain)
        dropped = []
        relinked: Dict[str, PortfolioPosition] = {}
        for option_id, pos in self._positions.items():
            fresh = by_id.get(option_id)
            if fresh is None:
                dropped.append(option_id)
                continue
            relinked[option_id] = PortfolioPosition(option=fresh, quantity=pos.quantity)

        if dropped:
            logger.warning("Dropped %d position(s) missing from new chain: %s",
                           len(dropped), ", ".join(dropped))
        self._positions = relinked
        return dropped

    def greeks(self) -> Greeks:
        return aggregate_greeks(self)

    def value(self, lot_size: int = 1) -> float:
        return portfolio_value(self, lot_size)
