#!/usr/bin/env python3
"""
DeFi Yield CLI -- Educational Yield Comparison & Strategy Tool
==============================================================

Compare protocol yields, model impermanent loss and generate a suggested
allocation for a risk tolerance and time horizon.

Usage:
  python run.py protocols                                       List supported protocols
  python run.py yields --protocols aave,curve                   Current yields
  python run.py yields --asset-type lp-token --live             Live yields (DefiLlama)
  python run.py history --protocols aave --timeframe 30d        Historical yield summary
  python run.py projections --scenario bull                     Projected APY paths
  python run.py il 1 2000 --change 0.5                          Impermanent loss (+50%)
  python run.py strategy --amount 10000 --months 12 --risk low  Suggested allocation
  python run.py info                                            System overview

Sources:
  Uniswap V2 Whitepaper : https://uniswap.org/whitepaper.pdf
  DefiLlama Yields API  : https://defillama.com/docs/api
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

# ── Imports ───────────────────────────────────────────────────────────────

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from yield_cli.central_config import LOG_LEVEL, PROJECT_VERSION, SCENARIOS, TIMEFRAMES
from yield_cli.commands import (
    cmd_history,
    cmd_il,
    cmd_info,
    cmd_projections,
    cmd_protocols,
    cmd_strategy,
    cmd_yields,
    _simple_disclaimer,
)
from yield_cli.models import AssetType, RiskTolerance

ASSET_TYPES = [t.value for t in AssetType]
RISK_TOLERANCES = [t.value for t in RiskTolerance]


# ── CLI Parser ────────────────────────────────────────────────────────────


def _add_catalog_filters(p: argparse.ArgumentParser, timeframe: str = "7d") -> None:
    p.add_argument(
        "--protocols",
        type=str,
        default=None,
        help="Comma-separated protocol ids, e.g. aave,curve,yearn (default: all)",
    )
    p.add_argument(
        "--asset-type",
        type=str,
        default=None,
        choices=ASSET_TYPES,
        help="Filter by asset type (default: all)",
    )
    p.add_argument(
        "--timeframe",
        type=str,
        default=timeframe,
        choices=list(TIMEFRAMES),
        help=f"Timeframe (default: {timeframe})",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="defi-yield",
        description=f"DeFi Yield CLI v{PROJECT_VERSION} — Educational Yield Comparison",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py yields --protocols aave,compound --asset-type stablecoin
  python run.py il 1 2000 --change -0.5
  python run.py strategy --protocols aave,curve,yearn,convex --amount 25000 --months 24 --risk high
  python run.py strategy --live --asset-type stablecoin --amount 5000 --months 6 --risk low --yes

Risk tolerances:
  low        🛡️  equal weight across the 6 best-scored opportunities
  moderate   ⚖️  half flat, half score-proportional across 4
  high       📈 score-proportional across 3
  aggressive 🚀 squared-score concentration across 2
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"DeFi Yield CLI v{PROJECT_VERSION}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    sub.add_parser("protocols", help="List supported protocols")

    yields_p = sub.add_parser("yields", help="Current yields per protocol")
    _add_catalog_filters(yields_p)
    yields_p.add_argument(
        "--live", action="store_true", help="Fetch live yields from DefiLlama"
    )

    history_p = sub.add_parser("history", help="Historical yield summary")
    _add_catalog_filters(history_p, timeframe="90d")

    proj_p = sub.add_parser("projections", help="Projected APY under a market scenario")
    proj_p.add_argument("--protocols", type=str, default=None, help="Comma-separated protocol ids")
    proj_p.add_argument(
        "--scenario",
        type=str,
        default="base",
        choices=list(SCENARIOS),
        help="Market scenario (default: base)",
    )
    proj_p.add_argument(
        "--asset-type",
        type=str,
        default=None,
        choices=ASSET_TYPES,
        help="Filter by asset type (default: all)",
    )

    il_p = sub.add_parser("il", help="Impermanent loss for a two-token pool position")
    il_p.add_argument("token1", type=float, help="Token 1 amount (e.g. 1 ETH)")
    il_p.add_argument("token2", type=float, help="Token 2 amount (e.g. 2000 USDC)")
    il_p.add_argument(
        "--change",
        type=float,
        default=0.0,
        help="Price change ratio of token 1, e.g. 0.5 = +50%%, -0.5 = -50%% (default: 0)",
    )

    strat_p = sub.add_parser("strategy", help="Suggested allocation for a risk tolerance")
    _add_catalog_filters(strat_p)
    strat_p.add_argument("--amount", type=float, required=True, help="Investment amount (USD)")
    strat_p.add_argument("--months", type=int, default=12, help="Time horizon in months (default: 12)")
    strat_p.add_argument(
        "--risk",
        type=str,
        default="moderate",
        choices=RISK_TOLERANCES,
        help="Risk tolerance (default: moderate)",
    )
    strat_p.add_argument("--live", action="store_true", help="Use live DefiLlama yields")
    strat_p.add_argument("--yes", action="store_true", help="Accept the disclaimer non-interactively")

    sub.add_parser("info", help="System & architecture info")

    return parser


# ── Main ──────────────────────────────────────────────────────────────────


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "info":
        return 0 if cmd_info() else 1
    if args.command == "protocols":
        return 0 if cmd_protocols() else 1

    if args.command == "yields":
        ok = asyncio.run(
            cmd_yields(
                protocols=args.protocols,
                asset_type=args.asset_type,
                timeframe=args.timeframe,
                live=args.live,
            )
        )
        return 0 if ok else 1
    if args.command == "history":
        return 0 if cmd_history(args.protocols, args.timeframe, args.asset_type) else 1
    if args.command == "projections":
        return 0 if cmd_projections(args.protocols, args.scenario, args.asset_type) else 1
    if args.command == "il":
        return 0 if cmd_il(args.token1, args.token2, args.change) else 1

    # Consent-required commands
    if args.command == "strategy":
        if not args.yes and not _simple_disclaimer():
            print("❌ Consent required.")
            return 1
        ok = asyncio.run(
            cmd_strategy(
                protocols=args.protocols,
                amount=args.amount,
                months=args.months,
                risk=args.risk,
                asset_type=args.asset_type,
                timeframe=args.timeframe,
                live=args.live,
            )
        )
        return 0 if ok else 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n❌ Cancelled.")
        sys.exit(130)
