"""Flat CSV-style text report of stats, chain, portfolio and risk."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, List, Sequence

from greeker.analytics.chain import OptionChain, all_options
from greeker.portfolio.risk import RiskEngine
from greeker.portfolio.scenarios import ScenarioEngine

if TYPE_CHECKING:
    from greeker.analytics.statistics import HistoricalStats
    from greeker.config import AnalyticsConfig
    from greeker.data.models import StockData
    from greeker.portfolio.models import PortfolioPosition, VaRResult

Row = Sequence[object]


class ReportWriter:
    """Accumulates titled sections: a header line, quoted rows, a blank line."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self._writer = csv.writer(self._buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    def add_section(self, title: str, rows: List[Row]) -> None:
        self._buffer.write(title + "\n")
        self._writer.writerows(rows)
        self._buffer.write("\n")

    def getvalue(self) -> str:
        return self._buffer.getvalue()


def _var_rows(var: "VaRResult", headers: Row) -> List[Row]:
    return [
        headers,
        [95, f"{var.parametric95:.4f}", f"{var.historical95:.4f}"],
        [99, f"{var.parametric99:.4f}", f"{var.historical99:.4f}"],
    ]


def export_report(
    stock_data: "StockData",
    stats: "HistoricalStats",
    chain: OptionChain,
    positions: Sequence["PortfolioPosition"],
    config: "AnalyticsConfig",
) -> str:
    """
    Render every analytics section as text.

    Portfolio, PnL_Scenarios, VaR_Unhedged and VaR_Hedged sections are
    only written when the portfolio is non-empty.
    """
    report = ReportWriter()
    options = all_options(chain)

    report.add_section("Summary Statistics", [
        ["Metric", "Value"],
        ["Stock Ticker", stock_data.ticker],
        ["Start Date", config.start_date],
        ["End Date", config.end_date],
        ["Last Price", f"{stock_data.last_price:.4f}"],
        ["Annualized Volatility", f"{stats.annualized_volatility:.6f}"],
        ["Skewness", f"{stats.skewness:.6f}"],
        ["Excess Kurtosis", f"{stats.kurtosis:.6f}"],
    ])

    report.add_section(
        "Prices",
        [["Date", "Close"]] + [[p.date, f"{p.price:.4f}"] for p in stock_data.historical_data],
    )

    report.add_section(
        "OptionPricing_BSM",
        [["Strike", "Maturity_days", "Option", "BSM_Price_IV", "BSM_Price_histVol"]]
        + [[o.strike, o.maturity, o.option_type.value, f"{o.price:.6f}", f"{o.price_hist_vol:.6f}"]
           for o in options],
    )

    for title, suffix, attr in (("Greeks_IV", "IV", "greeks"),
                                ("Greeks_HistVol", "hist", "greeks_hist_vol")):
        rows: List[Row] = [["Strike", "Maturity_days", "Option"]
                           + [f"{g}_{suffix}" for g in ("Delta", "Gamma", "Vega", "Theta", "Rho")]]
        for o in options:
            g = getattr(o, attr)
            rows.append([o.strike, o.maturity, o.option_type.value]
                        + [f"{v:.6f}" for v in (g.delta, g.gamma, g.vega, g.theta, g.rho)])
        report.add_section(title, rows)

    if positions:
        prices = stock_data.prices
        risk = RiskEngine(config)
        unhedged_var = risk.compute_var(positions, prices)
        hedged_var = risk.compute_hedged_var(positions, prices)
        scenarios = ScenarioEngine(config).spot_shock_pnl(positions, stock_data.last_price)

        portfolio_rows: List[Row] = [["Type", "Strike", "Qty", "DaysToExp", "Price",
                                      "ImpliedVol", "Delta", "Gamma", "Vega"]]
        for p in positions:
            o = p.option
            portfolio_rows.append([
                o.option_type.value, o.strike, p.quantity, o.maturity, f"{o.price:.6f}",
                f"{o.iv:.6f}", f"{o.greeks.delta:.6f}", f"{o.greeks.gamma:.6f}", f"{o.greeks.vega:.6f}",
            ])
        report.add_section("Portfolio", portfolio_rows)

        report.add_section(
            "PnL_Scenarios",
            [["Scenario", "PnL_unhedged", "PnL_delta_hedged"]]
            + [[s.scenario, f"{s.pnl_unhedged:.4f}", f"{s.pnl_delta_hedged:.4f}"] for s in scenarios],
        )

        report.add_section("VaR_Unhedged", _var_rows(
            unhedged_var, ["Level", "ParametricVaR", "HistoricalVaR"]))
        report.add_section("VaR_Hedged", _var_rows(
            hedged_var, ["Level", "ParametricVaR_hedged", "HistoricalVaR_hedged"]))

    return report.getvalue()
