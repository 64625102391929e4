"""
Project Configuration — API endpoints, version, constants
==========================================================

Contains DefiLlama Yields API configuration, project metadata and the
catalog vocabularies (timeframes, projection scenarios, protocol slugs).
Source: https://defillama.com/docs/api
"""

import os
import re
from dataclasses import dataclass
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path
from types import MappingProxyType

# Version — single source of truth is pyproject.toml
try:
    PROJECT_VERSION = version("defi-yield-cli")
except PackageNotFoundError:
    # Dev / CI: package not installed — read pyproject.toml directly
    _toml = Path(__file__).resolve().parent.parent / "pyproject.toml"
    _m = (
        re.search(r'version\s*=\s*"([^"]+)"', _toml.read_text())
        if _toml.exists()
        else None
    )
    PROJECT_VERSION = _m.group(1) if _m else "0.0.0-dev"
PROJECT_NAME = "DeFi Yield CLI"

# Logging — overridden by `run.py --verbose`
LOG_LEVEL = os.environ.get("DEFI_YIELD_LOG_LEVEL", "WARNING").upper()


@dataclass(frozen=True)
class DefiLlamaAPI:
    """DefiLlama Yields API configuration (free, no key)."""

    YIELDS_URL: str = "https://yields.llama.fi/pools"
    TIMEOUT_SECONDS: int = 20
    CACHE_TTL_SECONDS: int = 120  # one HTTP call returns 20,000+ pools

    # Internal protocol id → DefiLlama "project" slug — immutable mapping
    PROJECT_MAP = MappingProxyType(
        {
            "aave": "aave-v3",
            "compound": "compound-v3",
            "uniswap": "uniswap-v3",
            "curve": "curve-dex",
            "yearn": "yearn-finance",
            "sushiswap": "sushiswap",
            "balancer": "balancer-v2",
            "convex": "convex-finance",
        }
    )

    @classmethod
    def project_slug(cls, protocol_id: str) -> str:
        return cls.PROJECT_MAP.get(protocol_id.lower(), protocol_id.lower())

    @classmethod
    def protocol_id_for(cls, project_slug: str) -> str:
        """Reverse lookup; unmapped slugs are returned unchanged."""
        for pid, slug in cls.PROJECT_MAP.items():
            if slug == project_slug:
                return pid
        return project_slug


# Timeframe label → days of history
TIMEFRAMES = MappingProxyType(
    {
        "24h": 1,
        "7d": 7,
        "30d": 30,
        "90d": 90,
        "1y": 365,
    }
)

# Market scenarios available for projected returns
SCENARIOS = ("base", "bull", "bear", "volatile")


# Unified configuration
class YieldConfig:
    """Unified configuration based on DefiLlama."""

    api = DefiLlamaAPI()


# Global instance
config = YieldConfig()
