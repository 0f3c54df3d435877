"""Black-Scholes-Merton pricing with analytic Greeks."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from greeker.pricing.normal import norm_cdf, norm_pdf


class OptionType(Enum):
    """European option right."""

    CALL = "Call"
    PUT = "Put"


@dataclass(frozen=True)
class Greeks:
    """First-order sensitivities plus gamma. Vega and rho are per unit (not per 1%)."""

    delta: float = 0.0
    gamma: float = 0.0
    vega: float = 0.0
    theta: float = 0.0
    rho: float = 0.0

    def __add__(self, other: "Greeks") -> "Greeks":
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            vega=self.vega + other.vega,
            theta=self.theta + other.theta,
            rho=self.rho + other.rho,
        )

    def scaled(self, factor: float) -> "Greeks":
        return Greeks(
            delta=self.delta * factor,
            gamma=self.gamma * factor,
            vega=self.vega * factor,
            theta=self.theta * factor,
            rho=self.rho * factor,
        )

    @classmethod
    def total(cls, items: Iterable["Greeks"]) -> "Greeks":
        result = cls()
        for g in items:
            result = result + g
        return result

    def to_dict(self) -> dict:
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "vega": self.vega,
            "theta": self.theta,
            "rho": self.rho,
        }


@dataclass(frozen=True)
class PricingResult:
    """Price, Greeks and the d1/d2 terms behind them."""

    price: float
    greeks: Greeks
    d1: float
    d2: float


class BSMPricer:
    """
    Prices European options under Black-Scholes-Merton.
    Stateless; all methods are static.

    Expired (t <= 0) or zero-vol (sigma <= 0) inputs return intrinsic value
    with a step delta and zero second-order Greeks instead of raising.
    """

    @staticmethod
    def price(
        spot: float,
        strike: float,
        t: float,
        sigma: float,
        r: float,
        option_type: OptionType,
    ) -> PricingResult:
        """
        Price one option.

        Args:
            spot: Underlying price
            strike: Strike price
            t: Time to maturity in years
            sigma: Annualized volatility
            r: Risk-free rate as a decimal
            option_type: OptionType.CALL or OptionType.PUT

        Returns:
            PricingResult with price, Greeks, d1 and d2
        """
        if t <= 0 or sigma <= 0:
            return BSMPricer.intrinsic(spot, strike, option_type)

        sqrt_t = math.sqrt(t)
        d1 = (math.log(spot / strike) + (r + 0.5 * sigma * sigma) * t) / (sigma * sqrt_t)
        d2 = d1 - sigma * sqrt_t

        discount = math.exp(-r * t)
        pdf_d1 = norm_pdf(d1)
        decay = -(spot * pdf_d1 * sigma) / (2 * sqrt_t)

        if option_type is OptionType.CALL:
            n_d2 = norm_cdf(d2)
            price = spot * norm_cdf(d1) - strike * discount * n_d2
            delta = norm_cdf(d1)
            theta = decay - r * strike * discount * n_d2
            rho = strike * t * discount * n_d2
        else:
            n_minus_d2 = norm_cdf(-d2)
            price = strike * discount * n_minus_d2 - spot * norm_cdf(-d1)
            delta = norm_cdf(d1) - 1.0
            theta = decay + r * strike * discount * n_minus_d2
            rho = -strike * t * discount * n_minus_d2

        gamma = pdf_d1 / (spot * sigma * sqrt_t)
        vega = spot * pdf_d1 * sqrt_t

        return PricingResult(
            price=price,
            greeks=Greeks(delta=delta, gamma=gamma, vega=vega, theta=theta, rho=rho),
            d1=d1,
            d2=d2,
        )

    @staticmethod
    def intrinsic(spot: float, strike: float, option_type: OptionType) -> PricingResult:
        """Payoff at expiry with a moneyness step delta."""
        if option_type is OptionType.CALL:
            price = max(0.0, spot - strike)
            delta = 1.0 if spot > strike else 0.0
        else:
            price = max(0.0, strike - spot)
            delta = -1.0 if spot < strike else 0.0
        return PricingResult(
            price=price,
            greeks=Greeks(delta=delta),
            d1=math.inf,
            d2=math.inf,
        )
