"""Synthetic option chain generation with a parametric volatility smile."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

import pandas as pd

from greeker.pricing.bsm import BSMPricer, Greeks, OptionType
from greeker.pricing.normal import round_half_up

if TYPE_CHECKING:
    from greeker.config import AnalyticsConfig

Strike = Union[int, float]


def normalize_strike(strike: float) -> Strike:
    """Integral strikes are kept as int so ids read "100-30-Call", not "100.0-30-Call"."""
    value = float(strike)
    return int(value) if value.is_integer() else value


def option_id(strike: float, maturity: int, option_type: OptionType) -> str:
    """Stable identity shared by every regeneration of the same contract."""
    return f"{normalize_strike(strike)}-{maturity}-{option_type.value}"


@dataclass(frozen=True)
class Option:
    """
    One synthetic contract.

    ``price``/``greeks`` use the smile IV; the ``*_hist_vol`` fields are the
    same contract priced at flat historical volatility.
    """

    id: str
    strike: Strike
    maturity: int  # trading days
    option_type: OptionType
    iv: float
    price: float
    greeks: Greeks
    d1: float
    d2: float
    price_hist_vol: float
    greeks_hist_vol: Greeks

    @property
    def label(self) -> str:
        return f"{self.strike} {self.option_type.value} @ {self.maturity}d"


OptionChain = Dict[int, List[Option]]


class ChainGenerator:
    """
    Builds a maturity x strike chain of calls and puts around the spot.

    IV per strike follows sigma_hist * (1 + c * m^2 - s * m) with
    m = ln(K / S). At the money the IV equals historical volatility.
    """

    def __init__(self, config: "AnalyticsConfig") -> None:
        self.config = config

    def strikes(self, current_price: float, existing_strikes: Iterable[float] = ()) -> List[Strike]:
        """Default strike ladder merged with strikes already held.

        Non-positive strikes are dropped: a low spot can round its whole
        ladder down to 0, which has no log-moneyness.
        """
        generated = {
            round_half_up(current_price * m) for m in self.config.strike_multipliers
        }
        merged = generated | {normalize_strike(k) for k in existing_strikes}
        return sorted(k for k in merged if k > 0)

    def smile_iv(self, strike: float, current_price: float, hist_volatility: float) -> float:
        moneyness = math.log(strike / current_price)
        return hist_volatility * (
            1
            + self.config.smile_curvature * moneyness ** 2
            - self.config.smile_skew * moneyness
        )

    def generate(
        self,
        current_price: float,
        hist_volatility: float,
        risk_free_rate_pct: Optional[float] = None,
        existing_strikes: Iterable[float] = (),
    ) -> OptionChain:
        """
        Generate the chain.

        Args:
            current_price: Spot used for moneyness and pricing
            hist_volatility: Annualized historical volatility
            risk_free_rate_pct: Rate in percent; defaults to the config rate
            existing_strikes: Strikes that must stay representable

        Returns:
            Dict mapping maturity (days) -> options, strike ascending,
            call before put
        """
        if risk_free_rate_pct is None:
            risk_free_rate_pct = self.config.risk_free_rate
        r = risk_free_rate_pct / 100
        strikes = self.strikes(current_price, existing_strikes)

        chain: OptionChain = {}
        for maturity in self.config.maturities:
            t = self.config.year_fraction(maturity)
            options: List[Option] = []
            for strike in strikes:
                iv = self.smile_iv(strike, current_price, hist_volatility)
                for option_type in (OptionType.CALL, OptionType.PUT):
                    at_iv = BSMPricer.price(current_price, strike, t, iv, r, option_type)
                    at_hist = BSMPricer.price(
                        current_price, strike, t, hist_volatility, r, option_type
                    )
                    options.append(
                        Option(
                            id=option_id(strike, maturity, option_type),
                            strike=strike,
                            maturity=maturity,
                            option_type=option_type,
                            iv=iv,
                            price=at_iv.price,
                            greeks=at_iv.greeks,
                            d1=at_iv.d1,
                            d2=at_iv.d2,
                            price_hist_vol=at_hist.price,
                            greeks_hist_vol=at_hist.greeks,
                        )
                    )
            chain[maturity] = options
        return chain


def all_options(chain: OptionChain) -> List[Option]:
    """Flatten the chain, maturities ascending."""
    return [opt for maturity in sorted(chain) for opt in chain[maturity]]


def index_by_id(chain: OptionChain) -> Dict[str, Option]:
    return {opt.id: opt for opt in all_options(chain)}


def find_option(
    chain: OptionChain,
    strike: float,
    maturity: int,
    option_type: OptionType,
) -> Optional[Option]:
    return index_by_id(chain).get(option_id(strike, maturity, option_type))


def chain_to_frame(chain: OptionChain, use_hist_vol: bool = False) -> pd.DataFrame:
    """
    Tabular view of the chain.

    Args:
        chain: Generated chain
        use_hist_vol: Report price/Greeks at historical vol instead of IV

    Returns:
        DataFrame with one row per option
    """
    rows = []
    for opt in all_options(chain):
        greeks = opt.greeks_hist_vol if use_hist_vol else opt.greeks
        rows.append({
            "id": opt.id,
            "strike": opt.strike,
            "maturity": opt.maturity,
            "type": opt.option_type.value,
            "iv": opt.iv,
            "price": opt.price_hist_vol if use_hist_vol else opt.price,
            **greeks.to_dict(),
        })
    columns = ["id", "strike", "maturity", "type", "iv", "price",
               "delta", "gamma", "vega", "theta", "rho"]
    return pd.DataFrame(rows, columns=columns)
