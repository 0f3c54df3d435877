"""Normal distribution helpers and a deterministic PRNG for simulations."""

import math
from typing import Callable

# Abramowitz-Stegun 7.1.26 coefficients
A1 = 0.254829592
A2 = -0.284496736
A3 = 1.421413741
A4 = -1.453152027
A5 = 1.061405429
P = 0.3275911

INV_SQRT_2PI = 1 / math.sqrt(2 * math.pi)
UINT32_MASK = 0xFFFFFFFF


def erf(x: float) -> float:
    """Rational approximation of the error function (max abs error ~1.5e-7)."""
    sign = 1 if x >= 0 else -1
    x = abs(x)
    t = 1.0 / (1.0 + P * x)
    y = 1.0 - (((((A5 * t + A4) * t) + A3) * t + A2) * t + A1) * t * math.exp(-x * x)
    return sign * y


def norm_cdf(x: float) -> float:
    """Standard normal CDF built on the approximated erf."""
    return 0.5 * (1 + erf(x / math.sqrt(2)))


def norm_pdf(x: float) -> float:
    return INV_SQRT_2PI * math.exp(-0.5 * x * x)


def round_half_up(x: float) -> int:
    """Round to nearest integer with .5 going towards +inf."""
    return math.floor(x + 0.5)


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


def mulberry32(seed: int) -> Callable[[], float]:
    """
    Mulberry32 generator returning floats in [0, 1).

    Works on the low 32 bits of ``seed`` so any integer seed is accepted.
    The same seed always yields the same stream.
    """
    state = int(seed) & UINT32_MASK

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & UINT32_MASK
        a = state
        t = _imul(a ^ (a >> 15), 1 | a)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296

    return next_float


def box_muller(rand1: Callable[[], float], rand2: Callable[[], float]) -> float:
    """Standard normal draw from two uniform streams."""
    u = 0.0
    v = 0.0
    while u == 0:
        u = rand1()
    while v == 0:
        v = rand2()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
