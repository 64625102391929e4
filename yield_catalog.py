#!/usr/bin/env python3
"""
Yield Catalog — Protocol Yields, History & Projections
======================================================

Supplies the strategy engine with YieldOpportunity records.

Two sources:
  1. Built-in dataset (default, offline)
     - 8 protocols, 25 yield records across all asset types
     - Deterministic daily yield history (seeded random walk)
     - Projected returns under base / bull / bear / volatile scenarios

  2. DefiLlama Yields API (``--live``)
     https://yields.llama.fi/pools
     Rate Limit: ~30 requests/minute (free, no key)
     Coverage: 20,000+ pools across all major protocols and chains
     Documentation: https://defillama.com/docs/api

Filters (both sources): protocol ids, asset type, timeframe.
"""

import logging
import random
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

import httpx

from defi_math import PortfolioStats
from yield_cli.asset_types import classify_asset, estimate_risk_level
from yield_cli.central_config import SCENARIOS, TIMEFRAMES, config
from yield_cli.errors import CatalogError, InvalidInput
from yield_cli.models import AssetType, YieldOpportunity

logger = logging.getLogger(__name__)


# ── Built-in Dataset ──────────────────────────────────────────────────────

PROTOCOLS = (
    {"id": "aave", "name": "Aave", "logo_url": "https://cryptologos.cc/logos/aave-aave-logo.png"},
    {"id": "compound", "name": "Compound", "logo_url": "https://cryptologos.cc/logos/compound-comp-logo.png"},
    {"id": "uniswap", "name": "Uniswap", "logo_url": "https://cryptologos.cc/logos/uniswap-uni-logo.png"},
    {"id": "curve", "name": "Curve", "logo_url": "https://cryptologos.cc/logos/curve-dao-token-crv-logo.png"},
    {"id": "yearn", "name": "Yearn Finance", "logo_url": "https://cryptologos.cc/logos/yearn-finance-yfi-logo.png"},
    {"id": "sushiswap", "name": "SushiSwap", "logo_url": "https://cryptologos.cc/logos/sushiswap-sushi-logo.png"},
    {"id": "balancer", "name": "Balancer", "logo_url": "https://cryptologos.cc/logos/balancer-bal-logo.png"},
    {"id": "convex", "name": "Convex Finance", "logo_url": "https://cryptologos.cc/logos/convex-finance-cvx-logo.png"},
)

_PROTOCOL_NAMES = {p["id"]: p["name"] for p in PROTOCOLS}

# (protocol_id, asset_name, asset_type, apy %, tvl USD, risk label)
_YIELD_ROWS = (
    # Stablecoins
    ("aave", "USDC", "stablecoin", 4.2, 532_000_000, "Low"),
    ("compound", "USDC", "stablecoin", 3.9, 487_000_000, "Low"),
    ("aave", "DAI", "stablecoin", 4.1, 498_000_000, "Low"),
    ("compound", "DAI", "stablecoin", 3.8, 423_000_000, "Low"),
    ("curve", "3pool", "stablecoin", 5.3, 732_000_000, "Low"),
    ("yearn", "USDC Vault", "stablecoin", 7.2, 356_000_000, "Moderate"),
    ("convex", "3pool", "stablecoin", 8.4, 412_000_000, "Moderate"),
    # Ethereum
    ("aave", "ETH", "ethereum", 2.1, 843_000_000, "Moderate"),
    ("compound", "ETH", "ethereum", 1.9, 678_000_000, "Moderate"),
    ("yearn", "ETH Vault", "ethereum", 5.7, 289_000_000, "High"),
    ("curve", "stETH/ETH", "ethereum", 3.8, 432_000_000, "Moderate"),
    # Bitcoin
    ("aave", "WBTC", "bitcoin", 1.8, 321_000_000, "Moderate"),
    ("compound", "WBTC", "bitcoin", 1.6, 287_000_000, "Moderate"),
    ("yearn", "WBTC Vault", "bitcoin", 4.9, 198_000_000, "High"),
    ("curve", "renBTC/WBTC", "bitcoin", 3.2, 267_000_000, "Moderate"),
    # Altcoins
    ("aave", "AAVE", "altcoin", 6.4, 156_000_000, "High"),
    ("aave", "LINK", "altcoin", 3.7, 134_000_000, "High"),
    ("compound", "COMP", "altcoin", 7.8, 98_000_000, "High"),
    ("yearn", "YFI Vault", "altcoin", 9.3, 76_000_000, "Very High"),
    # LP tokens
    ("uniswap", "ETH/USDC", "lp-token", 15.2, 245_000_000, "High"),
    ("uniswap", "ETH/WBTC", "lp-token", 12.7, 187_000_000, "High"),
    ("sushiswap", "ETH/USDT", "lp-token", 17.8, 156_000_000, "High"),
    ("sushiswap", "WBTC/ETH", "lp-token", 14.3, 143_000_000, "High"),
    ("balancer", "BAL/ETH", "lp-token", 21.5, 87_000_000, "Very High"),
    ("balancer", "80/20 USDC/WETH", "lp-token", 11.2, 112_000_000, "Moderate"),
)

# (protocol_id, asset_name, asset_type, base apy %, daily volatility)
_HISTORY_SEEDS = (
    ("aave", "USDC", "stablecoin", 4.2, 0.3),
    ("compound", "USDC", "stablecoin", 3.9, 0.25),
    ("curve", "3pool", "stablecoin", 5.3, 0.4),
    ("yearn", "USDC Vault", "stablecoin", 7.2, 0.6),
    ("uniswap", "ETH/USDC", "lp-token", 15.2, 1.8),
    ("sushiswap", "ETH/USDT", "lp-token", 17.8, 2.1),
    ("balancer", "BAL/ETH", "lp-token", 21.5, 3.2),
    ("convex", "3pool", "stablecoin", 8.4, 0.7),
)

# (protocol_id, asset_name, asset_type, scenario, current apy, (month1, month3, month6, month12))
_PROJECTION_ROWS = (
    ("aave", "USDC", "stablecoin", "base", 4.2, (4.3, 4.4, 4.5, 4.7)),
    ("compound", "USDC", "stablecoin", "base", 3.9, (4.0, 4.1, 4.2, 4.4)),
    ("curve", "3pool", "stablecoin", "base", 5.3, (5.4, 5.5, 5.6, 5.8)),
    ("yearn", "USDC Vault", "stablecoin", "base", 7.2, (7.3, 7.4, 7.5, 7.7)),
    ("aave", "USDC", "stablecoin", "bull", 4.2, (4.5, 5.0, 5.5, 6.0)),
    ("compound", "USDC", "stablecoin", "bull", 3.9, (4.2, 4.7, 5.2, 5.7)),
    ("curve", "3pool", "stablecoin", "bull", 5.3, (5.8, 6.5, 7.2, 8.0)),
    ("yearn", "USDC Vault", "stablecoin", "bull", 7.2, (7.8, 8.5, 9.2, 10.0)),
    ("aave", "USDC", "stablecoin", "bear", 4.2, (4.0, 3.8, 3.5, 3.2)),
    ("compound", "USDC", "stablecoin", "bear", 3.9, (3.7, 3.5, 3.2, 2.9)),
    ("curve", "3pool", "stablecoin", "bear", 5.3, (5.0, 4.7, 4.3, 4.0)),
    ("yearn", "USDC Vault", "stablecoin", "bear", 7.2, (6.8, 6.4, 6.0, 5.5)),
    ("aave", "USDC", "stablecoin", "volatile", 4.2, (3.8, 4.5, 3.9, 4.7)),
    ("compound", "USDC", "stablecoin", "volatile", 3.9, (3.5, 4.2, 3.6, 4.3)),
    ("curve", "3pool", "stablecoin", "volatile", 5.3, (4.8, 5.8, 5.0, 6.0)),
    ("yearn", "USDC Vault", "stablecoin", "volatile", 7.2, (6.5, 7.8, 6.8, 8.0)),
)

HISTORY_DAYS = 365
MEAN_REVERSION = 0.1  # pull of each daily step back toward the base APY


# ── Helpers ───────────────────────────────────────────────────────────────


def _normalize_ids(protocol_ids: Optional[Sequence[str]]) -> Optional[set]:
    """None, empty or all-blank → no protocol filter."""
    ids = {pid.strip().lower() for pid in protocol_ids or () if pid and pid.strip()}
    return ids or None


def _timeframe_days(timeframe: str) -> int:
    try:
        return TIMEFRAMES[timeframe]
    except KeyError:
        choices = ", ".join(TIMEFRAMES)
        raise InvalidInput(
            f"Unknown timeframe {timeframe!r} (expected one of: {choices})"
        ) from None


def generate_historical_series(
    protocol_id: str,
    asset_name: str,
    base_apy: float,
    volatility: float,
    days: int = HISTORY_DAYS,
    as_of: Optional[date] = None,
) -> List[Dict]:
    """
    Deterministic daily APY history ending at ``as_of`` (default: today).

    Mean-reverting random walk seeded by protocol + asset, so the same
    series is produced on every run. APY never drops below zero.
    """
    end = as_of or date.today()
    rng = random.Random(f"{protocol_id}:{asset_name}")
    apy = base_apy
    points = []
    for offset in range(days - 1, -1, -1):
        apy += rng.gauss(0, volatility) * 0.2 + MEAN_REVERSION * (base_apy - apy)
        apy = max(apy, 0.0)
        points.append(
            {
                "date": (end - timedelta(days=offset)).isoformat(),
                "yield": round(apy, 2),
            }
        )
    return points


def summarize_history(points: Sequence[Dict]) -> Dict[str, float]:
    """Mean, standard deviation, min, max and latest of a yield series."""
    values = [p["yield"] for p in points]
    if not values:
        return {"mean": 0.0, "std_dev": 0.0, "min": 0.0, "max": 0.0, "latest": 0.0}
    return {
        "mean": round(sum(values) / len(values), 4),
        "std_dev": round(PortfolioStats.standard_deviation(values, sample=True), 4),
        "min": min(values),
        "max": max(values),
        "latest": values[-1],
    }


def yield_correlation(a: Sequence[Dict], b: Sequence[Dict]) -> float:
    """Pearson correlation of two yield series over their common dates."""
    by_date = {p["date"]: p["yield"] for p in b}
    pairs = [(p["yield"], by_date[p["date"]]) for p in a if p["date"] in by_date]
    if not pairs:
        return 0.0
    xs, ys = zip(*pairs)
    return PortfolioStats.correlation(list(xs), list(ys))


# ── Catalog ───────────────────────────────────────────────────────────────


class YieldCatalog:
    """
    Static yield catalog built from the bundled dataset.

    Read-only: every call returns fresh records, filtered on demand.
    """

    def __init__(self, as_of: Optional[date] = None):
        self._as_of = as_of
        self._opportunities = tuple(
            YieldOpportunity(
                protocol_id=pid,
                protocol_name=_PROTOCOL_NAMES[pid],
                asset_name=asset,
                asset_type=asset_type,
                apy=apy,
                tvl=tvl,
                risk_level=risk,
            )
            for pid, asset, asset_type, apy, tvl, risk in _YIELD_ROWS
        )

    def get_protocols(self) -> List[Dict]:
        return [dict(p) for p in PROTOCOLS]

    def get_yields(
        self,
        protocol_ids: Optional[Sequence[str]] = None,
        asset_type=None,
        timeframe: str = "7d",
    ) -> List[YieldOpportunity]:
        """
        Current yields, filtered by protocol ids and asset type.

        ``timeframe`` is validated; the bundled dataset holds one snapshot.
        """
        _timeframe_days(timeframe)
        ids = _normalize_ids(protocol_ids)
        wanted = AssetType.parse(asset_type) if asset_type else None
        return [
            opp
            for opp in self._opportunities
            if (ids is None or opp.protocol_id in ids)
            and (wanted is None or opp.asset_type is wanted)
        ]

    def get_historical_yields(
        self,
        protocol_ids: Optional[Sequence[str]] = None,
        timeframe: str = "90d",
        asset_type=None,
    ) -> List[Dict]:
        """Daily yield history per protocol, truncated to the timeframe window."""
        days = _timeframe_days(timeframe)
        ids = _normalize_ids(protocol_ids)
        wanted = AssetType.parse(asset_type) if asset_type else None

        histories = []
        for pid, asset, a_type, base_apy, vol in _HISTORY_SEEDS:
            if ids is not None and pid not in ids:
                continue
            if wanted is not None and AssetType.parse(a_type) is not wanted:
                continue
            series = generate_historical_series(
                pid, asset, base_apy, vol, as_of=self._as_of
            )
            histories.append(
                {
                    "protocol_id": pid,
                    "protocol_name": _PROTOCOL_NAMES[pid],
                    "asset_name": asset,
                    "asset_type": a_type,
                    "data": series[-days:],
                }
            )
        return histories

    def get_projected_returns(
        self,
        protocol_ids: Optional[Sequence[str]] = None,
        scenario: str = "base",
        asset_type=None,
    ) -> List[Dict]:
        """Projected APY path (1/3/6/12 months) for a market scenario."""
        if scenario not in SCENARIOS:
            raise InvalidInput(
                f"Unknown scenario {scenario!r} (expected one of: {', '.join(SCENARIOS)})"
            )
        ids = _normalize_ids(protocol_ids)
        wanted = AssetType.parse(asset_type) if asset_type else None
        return [
            {
                "protocol_id": pid,
                "protocol_name": _PROTOCOL_NAMES[pid],
                "asset_name": asset,
                "asset_type": a_type,
                "scenario": scen,
                "current_apy": current,
                "projections": dict(zip(("month1", "month3", "month6", "month12"), path)),
            }
            for pid, asset, a_type, scen, current, path in _PROJECTION_ROWS
            if scen == scenario
            and (ids is None or pid in ids)
            and (wanted is None or AssetType.parse(a_type) is wanted)
        ]


# ── DefiLlama Source ──────────────────────────────────────────────────────


class DefiLlamaSource:
    """
    Live yield catalog powered by the DefiLlama Yields API.

    One HTTP call to https://yields.llama.fi/pools returns every pool —
    APY, TVL, IL risk, exposure — across all chains. No API key required.
    """

    def __init__(self, min_tvl: float = 1_000_000):
        self.min_tvl = min_tvl
        self._cache: Optional[List[Dict]] = None
        self._cache_time: Optional[datetime] = None
        self._cache_ttl_seconds = config.api.CACHE_TTL_SECONDS

    async def _fetch_pools(self) -> List[Dict]:
        """Fetch all pools from DefiLlama yields API (cached)."""
        now = datetime.now()
        if (
            self._cache is not None
            and self._cache_time is not None
            and (now - self._cache_time).total_seconds() < self._cache_ttl_seconds
        ):
            return self._cache

        try:
            async with httpx.AsyncClient(timeout=config.api.TIMEOUT_SECONDS) as client:
                resp = await client.get(config.api.YIELDS_URL)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogError(f"DefiLlama API error: {e}") from e

        if not isinstance(data, dict):
            raise CatalogError(
                f"DefiLlama API error: unexpected payload type {type(data).__name__}"
            )
        if data.get("status") != "success":
            raise CatalogError(f"DefiLlama API error: {data.get('status')}")

        self._cache = data.get("data", [])
        self._cache_time = now
        logger.info("Fetched %d pools from DefiLlama", len(self._cache))
        return self._cache

    @staticmethod
    def to_opportunity(pool: Dict, timeframe: str = "7d") -> YieldOpportunity:
        """Map one DefiLlama pool record onto a YieldOpportunity."""
        project = pool.get("project", "")
        protocol_id = config.api.protocol_id_for(project)
        apy = pool.get("apy") or 0
        if timeframe == "30d" and pool.get("apyMean30d") is not None:
            apy = pool["apyMean30d"]
        return YieldOpportunity(
            protocol_id=protocol_id,
            protocol_name=_PROTOCOL_NAMES.get(protocol_id, project),
            asset_name=pool.get("symbol", "?"),
            asset_type=classify_asset(pool.get("symbol", "")),
            apy=max(float(apy), 0.0),
            tvl=max(float(pool.get("tvlUsd") or 0), 0.0),
            risk_level=estimate_risk_level(pool),
        )

    async def get_yields(
        self,
        protocol_ids: Optional[Sequence[str]] = None,
        asset_type=None,
        timeframe: str = "7d",
    ) -> List[YieldOpportunity]:
        _timeframe_days(timeframe)
        ids = _normalize_ids(protocol_ids)
        wanted = AssetType.parse(asset_type) if asset_type else None
        slugs = {config.api.project_slug(pid) for pid in ids} if ids else None

        pools = await self._fetch_pools()
        opportunities = []
        for pool in pools:
            if slugs is not None and pool.get("project") not in slugs:
                continue
            if (pool.get("tvlUsd") or 0) < self.min_tvl:
                continue
            opp = self.to_opportunity(pool, timeframe)
            if wanted is None or opp.asset_type is wanted:
                opportunities.append(opp)

        opportunities.sort(key=lambda o: o.tvl, reverse=True)
        return opportunities


async def fetch_opportunities(
    protocol_ids: Optional[Sequence[str]] = None,
    asset_type=None,
    timeframe: str = "7d",
    live: bool = False,
    source: Optional[DefiLlamaSource] = None,
) -> List[YieldOpportunity]:
    """Resolve the opportunity catalog from the bundled dataset or DefiLlama."""
    if live:
        source = source or DefiLlamaSource()
        return await source.get_yields(protocol_ids, asset_type, timeframe)
    return YieldCatalog().get_yields(protocol_ids, asset_type, timeframe)
