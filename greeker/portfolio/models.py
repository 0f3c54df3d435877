"""Portfolio layer models - positions, VaR, hedge suggestions, scenarios, strategies."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from greeker.analytics.chain import Option
from greeker.pricing.bsm import Greeks


class HedgeAction(Enum):
    BUY = "Buy"
    SELL = "Sell"


@dataclass
class PortfolioPosition:
    """
    A signed holding of one option.
    Positive quantity is long, negative is short. Zero is not a position.
    """

    option: Option
    quantity: int

    def __post_init__(self):
        if self.quantity == 0:
            raise ValueError(f"Zero quantity for {self.option.id} is not a position")

    @property
    def option_id(self) -> str:
        return self.option.id

    @property
    def greeks(self) -> Greeks:
        """Quantity-weighted IV Greeks."""
        return self.option.greeks.scaled(self.quantity)

    def market_value(self, lot_size: int = 1) -> float:
        return self.quantity * self.option.price * lot_size

    def to_dict(self) -> Dict[str, Any]:
        return {"option_id": self.option.id, "quantity": self.quantity}


@dataclass(frozen=True)
class VaRResult:
    """Loss magnitudes in currency units. All zero when there is not enough data."""

    parametric95: float = 0.0
    parametric99: float = 0.0
    historical95: float = 0.0
    historical99: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "parametric95": self.parametric95,
            "parametric99": self.parametric99,
            "historical95": self.historical95,
            "historical99": self.historical99,
        }


@dataclass(frozen=True)
class GammaHedgeSuggestion:
    """Option trade that flattens portfolio gamma. Quantity is in lots, non-negative."""

    action: HedgeAction
    quantity: int
    option: Option
    message: str


@dataclass(frozen=True)
class PnLScenario:
    """P&L of the portfolio under one spot shock."""

    scenario: str  # e.g. "-2%"
    spot_change: float
    new_price: float
    pnl_unhedged: float
    pnl_delta_hedged: float


@dataclass(frozen=True)
class StrategyLeg:
    """One leg of a multi-leg strategy. Entry cost is the option's IV price."""

    option: Option
    quantity: int

    @property
    def entry_price(self) -> float:
        return self.option.price

    @property
    def side(self) -> HedgeAction:
        return HedgeAction.BUY if self.quantity > 0 else HedgeAction.SELL


@dataclass
class Strategy:
    """
    A named multi-leg option position.

    ``cost`` is positive for a net debit, negative for a net credit.
    ``max_profit`` / ``max_loss`` are None when unbounded.
    """

    name: str
    description: str
    legs: List[StrategyLeg]
    cost: float
    net_greeks: Greeks
    max_profit: Optional[float]
    max_loss: Optional[float]
    breakevens: List[float] = field(default_factory=list)

    @property
    def is_credit(self) -> bool:
        return self.cost < 0
