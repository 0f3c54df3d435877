"""CLI entry point: analyse one ticker and optionally export the report.

Usage:
    python -m greeker.main RELIANCE
    python -m greeker.main RELIANCE --position 2500-30-Call:2 --position 2400-30-Put:-1
    python -m greeker.main AAPL --provider alpaca --output report.csv
    python -m greeker.main RELIANCE --dry-run    # prints config and exits

Environment variables:
    GREEKER_RISK_FREE_RATE  Risk-free rate in percent (default: 7)
    GREEKER_LOT_SIZE        Shares per contract (default: 1)
    GREEKER_PROVIDER        "yahoo", "yfinance" or "alpaca" (default: yahoo)
    GREEKER_FETCH_TIMEOUT   Provider timeout in seconds (default: 10)
    GREEKER_LOG_LEVEL       Logging level (default: INFO)
    ALPACA_API_KEY          Alpaca API key (required for provider=alpaca)
    ALPACA_SECRET_KEY       Alpaca secret key (required for provider=alpaca)
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence, Tuple

from greeker.analytics.chain import option_id
from greeker.config import PROVIDERS, AnalyticsConfig
from greeker.pricing.bsm import OptionType
from greeker.session import AnalysisSession

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def build_config(args: Optional[argparse.Namespace] = None) -> AnalyticsConfig:
    """Build AnalyticsConfig from environment variables, then CLI flags.

    Only overrides AnalyticsConfig defaults when a variable or flag is
    explicitly set. All defaults live in config.py.
    """
    overrides = {}

    if os.getenv("GREEKER_RISK_FREE_RATE"):
        overrides["risk_free_rate"] = _env_float("GREEKER_RISK_FREE_RATE", 7.0)
    if os.getenv("GREEKER_LOT_SIZE"):
        overrides["lot_size"] = _env_int("GREEKER_LOT_SIZE", 1)
    if os.getenv("GREEKER_PROVIDER"):
        overrides["provider"] = os.getenv("GREEKER_PROVIDER")
    if os.getenv("GREEKER_FETCH_TIMEOUT"):
        overrides["fetch_timeout"] = _env_float("GREEKER_FETCH_TIMEOUT", 10.0)

    if args is not None:
        for attr in ("risk_free_rate", "lot_size", "start_date", "end_date", "provider"):
            value = getattr(args, attr, None)
            if value is not None:
                overrides[attr] = value

    return AnalyticsConfig(**overrides)


def parse_position(text: str) -> Tuple[str, float, int]:
    """Parse ``STRIKE-MAT-TYPE:QTY`` into (option id, strike, quantity).

    Raises:
        argparse.ArgumentTypeError: on any malformed part
    """
    try:
        contract, qty = text.rsplit(":", 1)
        strike, maturity, type_name = contract.rsplit("-", 2)
        option_type = OptionType(type_name.capitalize())
        quantity = int(qty)
        strike_value = float(strike)
        oid = option_id(strike_value, int(maturity), option_type)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"invalid position {text!r}, expected STRIKE-MAT-TYPE:QTY (e.g. 100-30-Call:2)"
        ) from e
    if quantity == 0:
        raise argparse.ArgumentTypeError(f"position {text!r} has zero quantity")
    return oid, strike_value, quantity


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="greeker",
        description="Option chain, Greeks and portfolio risk for one ticker.",
    )
    parser.add_argument("ticker", help="Ticker symbol, e.g. RELIANCE or AAPL")
    parser.add_argument(
        "--position", action="append", default=[], type=parse_position,
        metavar="STRIKE-MAT-TYPE:QTY",
        help="Portfolio position, repeatable. Negative QTY is a short.",
    )
    parser.add_argument("--output", help="Write the CSV report to this path")
    parser.add_argument("--dry-run", action="store_true", help="Print config and exit")
    parser.add_argument("--risk-free-rate", dest="risk_free_rate", type=float)
    parser.add_argument("--lot-size", dest="lot_size", type=int)
    parser.add_argument("--start-date", dest="start_date")
    parser.add_argument("--end-date", dest="end_date")
    parser.add_argument("--provider", choices=PROVIDERS)
    return parser


def print_summary(session: AnalysisSession) -> None:
    stats = session.stats
    quote = session.live_quote
    label = session.stock_data.ticker

    print("=" * 60)
    print(f"{label}  last={session.last_price:,.2f}")
    print("=" * 60)
    print(f"  Observations:     {len(session.stock_data.historical_data)}")
    print(f"  Annualized vol:   {stats.annualized_volatility:.4f}")
    print(f"  Skewness:         {stats.skewness:.4f}")
    print(f"  Excess kurtosis:  {stats.kurtosis:.4f}")
    print(f"  Quote:            O {quote.open:.2f}  H {quote.high:.2f}  "
          f"L {quote.low:.2f}  C {quote.close:.2f}  Vol {quote.volume}")

    for maturity in sorted(session.chain):
        print(f"\n  {maturity}D chain")
        print(f"  {'Strike':>10} {'Type':>5} {'IV':>8} {'Price':>10} {'Delta':>8} {'Gamma':>9}")
        for opt in session.chain[maturity]:
            print(f"  {opt.strike:>10} {opt.option_type.value:>5} {opt.iv:>8.4f} "
                  f"{opt.price:>10.4f} {opt.greeks.delta:>8.4f} {opt.greeks.gamma:>9.6f}")

    if not session.positions:
        print("\n  No portfolio positions.")
        return

    greeks = session.portfolio_greeks()
    print("\n  Portfolio")
    for pos in session.positions:
        print(f"    {pos.quantity:+d} x {pos.option.label}")
    print(f"  Value:            {session.portfolio_value():,.4f}")
    print(f"  Net greeks:       delta {greeks.delta:.4f}  gamma {greeks.gamma:.6f}  "
          f"vega {greeks.vega:.4f}  theta {greeks.theta:.4f}")
    print(f"  Delta hedge:      {session.delta_hedge_shares():.4f} shares")

    hedge = session.gamma_hedge()
    print(f"  Gamma hedge:      {hedge.message if hedge else 'portfolio is gamma neutral'}")

    var = session.var()
    hedged = session.hedged_var()
    print(f"  VaR 95/99:        {var.parametric95:.4f} / {var.parametric99:.4f} (parametric), "
          f"{var.historical95:.4f} / {var.historical99:.4f} (historical)")
    print(f"  Hedged VaR 95/99: {hedged.parametric95:.4f} / {hedged.parametric99:.4f} (parametric), "
          f"{hedged.historical95:.4f} / {hedged.historical99:.4f} (historical)")

    print("\n  Spot shocks")
    for s in session.pnl_scenarios():
        print(f"    {s.scenario:>4}  unhedged {s.pnl_unhedged:>12.4f}  "
              f"delta-hedged {s.pnl_delta_hedged:>12.4f}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=os.getenv("GREEKER_LOG_LEVEL", "INFO").upper(),
        format=LOG_FORMAT,
    )

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    print("=" * 60)
    print("Greeker options analytics")
    print("=" * 60)
    print(f"  Ticker:           {args.ticker}")
    print(f"  Provider:         {config.provider}")
    print(f"  Window:           {config.start_date} .. {config.end_date}")
    print(f"  Risk-free rate:   {config.risk_free_rate}%")
    print(f"  Lot size:         {config.lot_size}")
    print(f"  Positions:        {len(args.position)}")

    if args.dry_run:
        print("\n--dry-run: config looks good, exiting.")
        return 0

    session = AnalysisSession(args.ticker, config)
    session.load(extra_strikes=[strike for _, strike, _ in args.position])
    if session.is_simulated:
        print("\n  NOTE: live data unavailable, showing simulated prices.")

    rejected: List[str] = []
    for oid, _, quantity in args.position:
        try:
            session.trade(oid, quantity)
        except ValueError as e:
            logger.warning("Skipping position %s: %s", oid, e)
            rejected.append(oid)

    print_summary(session)
    if rejected:
        print(f"\n  Skipped positions: {', '.join(rejected)}")

    if args.output:
        with open(args.output, "w", newline="") as f:
            f.write(session.report())
        print(f"\nReport written to {args.output}")

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
