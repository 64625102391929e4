"""
Asset Classification — Token Symbols → Asset Type & Risk Label
==============================================================

Maps raw pool symbols (as returned by DefiLlama, e.g. "WETH-USDC",
"DAI-USDC-USDT", "STETH") onto the catalog vocabulary:

  asset type : stablecoin | ethereum | bitcoin | altcoin | lp-token
  risk level : very-low | low | moderate | high | very-high

Known stablecoins are recognized by normalized symbol.
Covers major USD/EUR pegged tokens and their bridged variants.

Risk signals (DefiLlama pool fields):
  - ilRisk     : "no" / "yes" (impermanent loss exposure)
  - exposure   : "single" / "multi"
  - stablecoin : bool
  - sigma      : APY volatility
  - apyReward  : incentive share of the headline APY
"""

import re
from typing import List

from yield_cli.models import AssetType, RiskLevel

# ── Known Stablecoin Symbols ────────────────────────────────────────────
# Normalized to uppercase. Includes bridged variants (.e, .b, etc.)

STABLECOIN_SYMBOLS: frozenset = frozenset({
    # USD-pegged — major
    "USDC", "USDT", "DAI", "BUSD", "TUSD", "FRAX", "LUSD",
    "USDP", "GUSD", "SUSD", "PYUSD", "GHO", "FDUSD", "CRVUSD",
    "USDS", "USDE", "SDAI",

    # USD-pegged — bridged variants
    "USDC.E", "USDT.E", "DAI.E", "USDBC", "AXLUSDC",

    # EUR-pegged
    "EURS", "EURT", "AGEUR", "EURC",

    # CDP / algorithmic
    "MIM", "DOLA", "ALUSD",
})

# Same-underlying families (staked / wrapped variants)
ETH_FAMILY: frozenset = frozenset(
    {"ETH", "WETH", "STETH", "WSTETH", "RETH", "CBETH", "METH", "WEETH", "EZETH"}
)
BTC_FAMILY: frozenset = frozenset(
    {"BTC", "WBTC", "TBTC", "CBBTC", "RENBTC", "SBTC"}
)

# APY volatility above which a pool is treated as one notch riskier
HIGH_SIGMA = 1.0
# Share of APY paid in reward tokens that marks incentive-dependent yield
REWARD_HEAVY_SHARE = 0.7


def split_symbol(symbol: str) -> List[str]:
    """
    Split a pool symbol into normalized token symbols.

    Examples:
        >>> split_symbol("weth-usdc")
        ['WETH', 'USDC']
        >>> split_symbol("80/20 USDC/WETH")
        ['USDC', 'WETH']
    """
    tokens = re.split(r"[-/\s]+", symbol.strip().upper())
    # Drop weighting prefixes such as "80" in "80/20 USDC/WETH"
    return [t for t in tokens if t and not t.isdigit()]


def is_stablecoin(symbol: str) -> bool:
    """
    Check if a token symbol is a known stablecoin (case-insensitive).

        >>> is_stablecoin("usdc.e")
        True
        >>> is_stablecoin("WETH")
        False
    """
    return symbol.strip().upper() in STABLECOIN_SYMBOLS


def classify_asset(symbol: str) -> AssetType:
    """
    Classify a pool symbol into an asset type.

    All tokens stable              → stablecoin  (USDC, DAI-USDC-USDT)
    All tokens in the ETH family   → ethereum    (STETH, STETH-ETH)
    All tokens in the BTC family   → bitcoin     (WBTC, RENBTC-WBTC)
    Other multi-token pools        → lp-token    (WETH-USDC)
    Other single tokens            → altcoin     (AAVE, LINK)
    """
    tokens = split_symbol(symbol)
    if not tokens:
        return AssetType.ALTCOIN
    if all(is_stablecoin(t) for t in tokens):
        return AssetType.STABLECOIN
    if all(t in ETH_FAMILY for t in tokens):
        return AssetType.ETHEREUM
    if all(t in BTC_FAMILY for t in tokens):
        return AssetType.BITCOIN
    if len(tokens) > 1:
        return AssetType.LP_TOKEN
    return AssetType.ALTCOIN


def estimate_risk_level(pool: dict) -> RiskLevel:
    """
    Derive a risk label from DefiLlama pool signals.

    Baseline:
      stablecoin, no IL, single exposure → very-low
      stablecoin, no IL                  → low
      no IL (volatile single asset)      → moderate
      IL exposure, stable pair           → moderate
      IL exposure, volatile pair         → high

    Then one notch riskier when APY is volatile (sigma > 1.0) or mostly
    paid in reward tokens (> 70% of the headline APY).
    """
    il_risk = str(pool.get("ilRisk") or "no").lower() == "yes"
    is_stable = bool(pool.get("stablecoin", False))
    single = str(pool.get("exposure") or "single").lower() == "single"

    if not il_risk:
        if is_stable:
            level = 1 if single else 2
        else:
            level = 3
    else:
        level = 3 if is_stable else 4

    sigma = pool.get("sigma") or 0
    apy = pool.get("apy") or 0
    reward = pool.get("apyReward") or 0
    reward_heavy = apy > 0 and reward / apy > REWARD_HEAVY_SHARE
    if sigma > HIGH_SIGMA or reward_heavy:
        level = min(level + 1, 5)

    return _LEVELS_BY_ORDINAL[level]


_LEVELS_BY_ORDINAL = {level.ordinal: level for level in RiskLevel}
