"""Historical return statistics from a close-price series."""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

TRADING_DAYS = 252


@dataclass(frozen=True)
class HistoricalStats:
    """Daily log-return moments of a price series."""

    log_returns: List[float] = field(default_factory=list)
    annualized_volatility: float = 0.0
    skewness: float = 0.0
    kurtosis: float = 0.0  # excess kurtosis


def log_returns(prices: Sequence[float]) -> np.ndarray:
    """ln(p[i+1] / p[i]) for each consecutive pair."""
    arr = np.asarray(prices, dtype=float)
    if arr.size < 2:
        return np.array([], dtype=float)
    return np.log(arr[1:] / arr[:-1])


def compute_stats(
    prices: Sequence[float],
    trading_days: int = TRADING_DAYS,
) -> HistoricalStats:
    """
    Annualized volatility, skewness and excess kurtosis of daily log returns.

    The standard deviation is the sample one (n - 1) while the third and
    fourth central moments are population moments (divided by n).

    Fewer than 2 returns gives all-zero stats with no returns. A flat series
    (zero dispersion) keeps its returns but reports zero for every moment.
    """
    returns = log_returns(prices)
    n = returns.size
    if n < 2:
        return HistoricalStats()

    mean = returns.mean()
    deviations = returns - mean
    std = float(np.sqrt(np.sum(deviations ** 2) / (n - 1)))
    if std == 0:
        return HistoricalStats(log_returns=returns.tolist())

    m3 = np.sum(deviations ** 3) / n
    m4 = np.sum(deviations ** 4) / n

    return HistoricalStats(
        log_returns=returns.tolist(),
        annualized_volatility=std * np.sqrt(trading_days),
        skewness=float(m3 / std ** 3),
        kurtosis=float(m4 / std ** 4 - 3),
    )
