"""Implied volatility surface (strike x maturity) from a generated chain."""

import pandas as pd

from greeker.analytics.chain import OptionChain, all_options
from greeker.pricing.bsm import OptionType


def volatility_surface(chain: OptionChain) -> pd.DataFrame:
    """
    Call IVs pivoted by strike.

    Returns:
        DataFrame indexed by strike with one "<maturity>D IV" column per
        maturity. Missing strike/maturity pairs are NaN.
    """
    calls = [o for o in all_options(chain) if o.option_type is OptionType.CALL]
    if not calls:
        return pd.DataFrame()

    frame = pd.DataFrame(
        {"strike": [o.strike for o in calls],
         "maturity": [o.maturity for o in calls],
         "iv": [o.iv for o in calls]}
    )
    surface = frame.pivot_table(index="strike", columns="maturity", values="iv")
    surface = surface.sort_index().reindex(columns=sorted(surface.columns))
    surface.columns = [f"{m}D IV" for m in surface.columns]
    surface.columns.name = None
    return surface
