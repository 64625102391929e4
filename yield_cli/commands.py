"""
DeFi Yield CLI — Command Implementations
========================================

All CLI command handlers live here, keeping run.py as a thin
argparse dispatcher.  Each public function corresponds to a
subcommand (info, protocols, yields, history, projections, il, strategy)
and returns True on success.

Engine errors (YieldCliError) are reported here as one-line messages;
anything else propagates.
"""

from __future__ import annotations

from typing import List, Sequence

from yield_cli.central_config import PROJECT_NAME, PROJECT_VERSION
from yield_cli.errors import CalculationError, YieldCliError
from yield_cli.legal_disclaimers import (
    CLI_DISCLAIMER,
    STRATEGY_FOOTER,
    get_jurisdiction_specific_warning,
)
from yield_cli.models import ImpermanentLossResult, Strategy, YieldOpportunity


# ── Consent Helpers ──────────────────────────────────────────────────────


def _simple_disclaimer() -> bool:
    """Show disclaimer and get consent (y/N)."""
    print("\n" + "=" * 60)
    print(f"🏛️ {PROJECT_NAME} v{PROJECT_VERSION} — EDUCATIONAL TOOL")
    print(CLI_DISCLAIMER)
    print(get_jurisdiction_specific_warning("GLOBAL"))
    print("=" * 60)
    try:
        ans = input("\n✅ Accept terms? (y/N): ")
        return ans.strip().lower() in ("y", "yes")
    except (KeyboardInterrupt, EOFError):
        return False


def parse_protocol_ids(raw: str | None) -> List[str]:
    """'aave, curve,,yearn' → ['aave', 'curve', 'yearn'] (None → [])."""
    if not raw:
        return []
    return [p.strip().lower() for p in raw.split(",") if p.strip()]


# ── Formatting ───────────────────────────────────────────────────────────


def _fmt_tvl(tvl: float) -> str:
    if tvl >= 1_000_000_000:
        return f"${tvl / 1_000_000_000:.2f}B"
    if tvl >= 1_000_000:
        return f"${tvl / 1_000_000:.1f}M"
    return f"${tvl:,.0f}"


def format_yields_table(opportunities: Sequence[YieldOpportunity]) -> str:
    """Format current yields for CLI display."""
    if not opportunities:
        return "No yield opportunities match the selected filters."

    hdr = f"  {'#':>2} {'Protocol':16s} {'Asset':18s} {'Type':11s} {'APY%':>7s} {'TVL':>10s} {'Risk':10s}"
    lines = [hdr, f"  {'-' * (len(hdr) - 2)}"]
    for i, o in enumerate(opportunities, 1):
        lines.append(
            f"  {i:>2} {o.protocol_name[:16]:16s} {o.asset_name[:18]:18s} "
            f"{o.asset_type.value:11s} {o.apy:7.2f} {_fmt_tvl(o.tvl):>10s} {o.risk_level.value:10s}"
        )
    return "\n".join(lines)


def format_il_result(result: ImpermanentLossResult) -> str:
    """Format an impermanent-loss result for CLI display."""
    return "\n".join(
        [
            f"  Initial price   : {result.initial_price:,.6f}",
            f"  New price       : {result.new_price:,.6f} ({result.price_change_percent:+.2f}%)",
            f"  Token 1         : {result.token1_initial_amount:,.6f} → {result.token1_new_amount:,.6f}",
            f"  Token 2         : {result.token2_initial_amount:,.6f} → {result.token2_new_amount:,.6f}",
            f"  HODL value      : {result.hold_value:,.4f}",
            f"  LP value        : {result.lp_value:,.4f}",
            f"  Impermanent loss: {result.impermanent_loss:,.4f} ({result.impermanent_loss_percent:.4f}%)",
        ]
    )


def format_strategy(strategy: Strategy, investment_amount: float, months: int) -> str:
    """Format a suggested strategy for CLI display."""
    lines = [
        "=" * 72,
        f"  🎯 Suggested Strategy — {strategy.risk_level.value.title()} risk tolerance",
        "=" * 72,
        f"  Investment      : ${investment_amount:,.2f}",
        f"  Horizon         : {months} months",
        f"  Expected return : {strategy.expected_return:.2f}% APY",
        f"  Projected value : ${strategy.projected_value:,.2f}",
        "",
    ]
    if strategy.allocations:
        lines.append(f"  {'Protocol':16s} {'Asset':18s} {'Alloc%':>7s} {'APY%':>7s} {'Amount':>14s}")
        lines.append(f"  {'-' * 66}")
        for a in strategy.allocations:
            amount = investment_amount * a.percentage / 100
            lines.append(
                f"  {a.protocol_name[:16]:16s} {a.asset_name[:18]:18s} "
                f"{a.percentage:7.2f} {a.expected_apy:7.2f} {'$' + format(amount, ',.2f'):>14s}"
            )
        lines.append("")
    lines.append(f"  💡 {strategy.insights}")
    lines.append("")
    lines.append(STRATEGY_FOOTER)
    lines.append("=" * 72)
    return "\n".join(lines)


# ── Commands ─────────────────────────────────────────────────────────────


def cmd_info() -> bool:
    """Display system and architecture information."""
    print(f"\n📊 {PROJECT_NAME} v{PROJECT_VERSION}")
    print("=" * 55)
    print("📈 Yields      : Lending, vaults and LP pools across 8 protocols")
    print("📡 Data Source : Bundled dataset (offline) or DefiLlama (--live)")
    print()
    print("📁 Files:")
    print("   run.py              — CLI entry point")
    print("   strategy_engine.py  — Ranking, allocation policies, projection")
    print("   defi_math.py        — Rate math, statistics, impermanent loss")
    print("   yield_catalog.py    — Yield catalog (bundled + DefiLlama)")
    print("   yield_cli/          — Models, config, errors, insights, disclaimers")
    print()
    print("⚖️  Weighting policies by risk tolerance:")
    print("   low        — equal weight across top 6")
    print("   moderate   — 50% flat + 50% score-proportional across top 4")
    print("   high       — score-proportional across top 3")
    print("   aggressive — squared-score concentration across top 2")
    print()
    print("🔗 Quick Start:")
    print("   python run.py yields --protocols aave,curve")
    print("   python run.py il 1 2000 --change 0.5")
    print("   python run.py strategy --protocols aave,curve,yearn --amount 10000 --months 12 --risk moderate")
    print()
    print("📚 References:")
    print("   Uniswap V2 Whitepaper : https://uniswap.org/whitepaper.pdf")
    print("   DefiLlama Yields API  : https://defillama.com/docs/api")
    return True


def cmd_protocols() -> bool:
    """List supported protocols."""
    from yield_catalog import YieldCatalog

    print("\n🏦 Supported protocols")
    for p in YieldCatalog().get_protocols():
        print(f"   {p['id']:<10} {p['name']}")
    return True


async def cmd_yields(
    protocols: str | None = None,
    asset_type: str | None = None,
    timeframe: str = "7d",
    live: bool = False,
) -> bool:
    """Show current yields for the selected protocols."""
    from yield_catalog import fetch_opportunities

    source = "DefiLlama" if live else "bundled dataset"
    print(f"\n📈 Current yields ({timeframe}, {source})")
    try:
        opportunities = await fetch_opportunities(
            parse_protocol_ids(protocols), asset_type, timeframe, live=live
        )
    except YieldCliError as e:
        print(f"❌ {e}")
        return False
    print(format_yields_table(opportunities))
    return True


def cmd_history(
    protocols: str | None = None,
    timeframe: str = "90d",
    asset_type: str | None = None,
) -> bool:
    """Summarize historical yields per protocol."""
    from yield_catalog import YieldCatalog, summarize_history

    try:
        histories = YieldCatalog().get_historical_yields(
            parse_protocol_ids(protocols), timeframe, asset_type
        )
    except YieldCliError as e:
        print(f"❌ {e}")
        return False

    print(f"\n🕰️  Historical yields ({timeframe})")
    if not histories:
        print("  No historical data for the selected protocols.")
        return True
    print(f"  {'Protocol':16s} {'Asset':12s} {'Mean':>7s} {'StdDev':>7s} {'Min':>7s} {'Max':>7s} {'Latest':>7s}")
    for h in histories:
        s = summarize_history(h["data"])
        print(
            f"  {h['protocol_name'][:16]:16s} {h['asset_name'][:12]:12s} "
            f"{s['mean']:7.2f} {s['std_dev']:7.2f} {s['min']:7.2f} {s['max']:7.2f} {s['latest']:7.2f}"
        )
    return True


def cmd_projections(
    protocols: str | None = None,
    scenario: str = "base",
    asset_type: str | None = None,
) -> bool:
    """Show projected APY paths under a market scenario."""
    from yield_catalog import YieldCatalog

    try:
        rows = YieldCatalog().get_projected_returns(
            parse_protocol_ids(protocols), scenario, asset_type
        )
    except YieldCliError as e:
        print(f"❌ {e}")
        return False

    print(f"\n🔮 Projected APY — {scenario} scenario")
    if not rows:
        print("  No projections for the selected protocols.")
        return True
    print(f"  {'Protocol':16s} {'Asset':12s} {'Now':>6s} {'1m':>6s} {'3m':>6s} {'6m':>6s} {'12m':>6s}")
    for r in rows:
        p = r["projections"]
        print(
            f"  {r['protocol_name'][:16]:16s} {r['asset_name'][:12]:12s} {r['current_apy']:6.2f} "
            f"{p['month1']:6.2f} {p['month3']:6.2f} {p['month6']:6.2f} {p['month12']:6.2f}"
        )
    return True


def cmd_il(token1: float, token2: float, change: float) -> bool:
    """Model impermanent loss for a two-token constant-product position."""
    from defi_math import compute_impermanent_loss, impermanent_loss_closed_form

    try:
        result = compute_impermanent_loss(token1, token2, change)
    except YieldCliError as e:
        print(f"❌ {e}")
        return False

    print("\n📉 Impermanent Loss — constant product (x·y = k)")
    print("=" * 55)
    print(format_il_result(result))
    print(f"  Cross-check     : {impermanent_loss_closed_form(1 + change):.4f}% (2√r/(1+r) − 1)")
    print("=" * 55)
    return True


async def cmd_strategy(
    protocols: str | None,
    amount: float,
    months: int,
    risk: str,
    asset_type: str | None = None,
    timeframe: str = "7d",
    live: bool = False,
) -> bool:
    """Fetch the catalog and print a suggested allocation."""
    from strategy_engine import calculate_optimal_strategy
    from yield_catalog import fetch_opportunities

    try:
        opportunities = await fetch_opportunities(
            parse_protocol_ids(protocols), asset_type, timeframe, live=live
        )
        strategy = calculate_optimal_strategy(opportunities, amount, months, risk)
    except CalculationError as e:
        print(f"❌ Strategy failed at {e.stage} stage: {e.__cause__ or e}")
        return False
    except YieldCliError as e:
        print(f"❌ {e}")
        return False

    print(format_strategy(strategy, amount, months))
    return True
