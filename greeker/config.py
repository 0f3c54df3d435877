"""Central configuration for the options analytics engine."""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Tuple


PROVIDERS = ("yahoo", "yfinance", "alpaca")


def default_start_date() -> str:
    """90 calendar days before today, ISO formatted."""
    return (date.today() - timedelta(days=90)).isoformat()


def default_end_date() -> str:
    return date.today().isoformat()


@dataclass(frozen=True)
class AnalyticsConfig:
    """Immutable analytics snapshot. All parameters in one place.

    Changing any field means building a new snapshot with
    ``with_overrides`` and recomputing everything downstream.
    """

    # ==================== MARKET ====================
    risk_free_rate: float = 7.0  # percent, e.g. 7 for 7%
    lot_size: int = 1  # shares per contract
    start_date: str = field(default_factory=default_start_date)
    end_date: str = field(default_factory=default_end_date)

    # ==================== OPTION CHAIN ====================
    maturities: Tuple[int, ...] = (30, 60, 90)
    strike_multipliers: Tuple[float, ...] = (0.95, 0.98, 1.00, 1.02, 1.05)
    smile_curvature: float = 0.2
    smile_skew: float = 0.1
    trading_days: int = 252

    # ==================== RISK & HEDGING ====================
    var_confidence_levels: Tuple[float, float] = (0.05, 0.01)
    pnl_shocks: Tuple[float, ...] = (-0.02, -0.01, 0.0, 0.01, 0.02)
    gamma_neutral_tolerance: float = 1e-6
    hedge_maturity: int = 30

    # ==================== DATA ====================
    provider: str = "yahoo"  # "yahoo", "yfinance" or "alpaca"
    ticker_suffix: str = ".NS"  # appended for Yahoo symbols when missing
    fetch_timeout: float = 10.0  # seconds

    def __post_init__(self):
        if self.lot_size < 1:
            raise ValueError(f"lot_size must be >= 1, got {self.lot_size}")
        if date.fromisoformat(self.start_date) > date.fromisoformat(self.end_date):
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        if self.provider not in PROVIDERS:
            raise ValueError(
                f"Unknown provider {self.provider!r}, expected one of {PROVIDERS}"
            )
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")

    @property
    def risk_free_decimal(self) -> float:
        """Risk-free rate as a decimal (7.0 -> 0.07)."""
        return self.risk_free_rate / 100

    def year_fraction(self, days: float) -> float:
        """Convert trading days to years."""
        return days / self.trading_days

    def with_overrides(self, **overrides) -> "AnalyticsConfig":
        """Return a new snapshot with the given fields replaced."""
        return replace(self, **overrides)

    def to_dict(self) -> dict:
        return {
            "risk_free_rate": self.risk_free_rate,
            "lot_size": self.lot_size,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "provider": self.provider,
        }
