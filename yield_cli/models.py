"""
Data Models — Yield Opportunities, Allocations, Strategies
==========================================================

Immutable records passed between the catalog, the ranker, the allocation
engine and the projector. Derived records (scores, allocations) are always
new objects; nothing is extended in place.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from yield_cli.errors import InvalidInput

logger = logging.getLogger(__name__)


# ── Enumerations ─────────────────────────────────────────────────────────


class AssetType(str, Enum):
    STABLECOIN = "stablecoin"
    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"
    ALTCOIN = "altcoin"
    LP_TOKEN = "lp-token"

    @classmethod
    def parse(cls, value) -> "AssetType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            raise InvalidInput(f"Unknown asset type: {value!r}") from None


class RiskLevel(str, Enum):
    """Protocol-side risk label attached to an opportunity."""

    VERY_LOW = "very-low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very-high"

    @property
    def ordinal(self) -> int:
        """1 (very-low) … 5 (very-high)."""
        return _RISK_ORDINALS[self]

    @classmethod
    def parse(cls, value) -> "RiskLevel":
        """
        Lenient parse: accepts "Very High", "very_high", "VERY-HIGH".
        Unrecognized labels map to MODERATE.
        """
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(label)
        except ValueError:
            if label:
                logger.warning("Unknown risk label %r, treating as moderate", value)
            return cls.MODERATE


_RISK_ORDINALS = {
    RiskLevel.VERY_LOW: 1,
    RiskLevel.LOW: 2,
    RiskLevel.MODERATE: 3,
    RiskLevel.HIGH: 4,
    RiskLevel.VERY_HIGH: 5,
}


class RiskTolerance(str, Enum):
    """Caller-side preference tier driving ranking, selection and weighting."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value) -> "RiskTolerance":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise InvalidInput(
                f"Unknown risk tolerance {value!r} (expected one of: {choices})"
            ) from None


# ── Opportunity Records ──────────────────────────────────────────────────


@dataclass(frozen=True)
class YieldOpportunity:
    """
    One investable position at one protocol.

    Mirrors a row of the yields table:
      - protocol_id / protocol_name → "aave" / "Aave"
      - asset_name                  → "USDC", "ETH/USDC", "3pool"
      - asset_type                  → stablecoin | ethereum | bitcoin | altcoin | lp-token
      - apy                         → annual percentage yield (e.g. 4.2 = 4.2%)
      - tvl                         → total value locked, USD
      - risk_level                  → very-low … very-high (unknown → moderate)
    """

    protocol_id: str
    protocol_name: str
    asset_name: str
    asset_type: AssetType = AssetType.STABLECOIN
    apy: float = 0.0
    tvl: float = 0.0
    risk_level: RiskLevel = RiskLevel.MODERATE

    def __post_init__(self):
        for name in ("apy", "tvl"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInput(f"{name} must be a finite number, got {value!r}")
            if value < 0:
                raise InvalidInput(f"{name} must be non-negative, got {value}")
        # Normalize loosely-typed labels coming from JSON / mock data
        object.__setattr__(self, "asset_type", AssetType.parse(self.asset_type))
        object.__setattr__(self, "risk_level", RiskLevel.parse(self.risk_level))

    @classmethod
    def from_dict(cls, data: dict) -> "YieldOpportunity":
        """Factory: build from a camelCase catalog record (API / mock data)."""
        return cls(
            protocol_id=data.get("protocolId", data.get("protocol_id", "")),
            protocol_name=data.get("protocolName", data.get("protocol_name", "")),
            asset_name=data.get("assetName", data.get("asset_name", "")),
            asset_type=data.get("assetType", data.get("asset_type", "stablecoin")),
            apy=float(data.get("apy", 0) or 0),
            tvl=float(data.get("tvl", 0) or 0),
            risk_level=data.get("riskLevel", data.get("risk_level", "moderate")),
        )


@dataclass(frozen=True)
class ScoredOpportunity:
    """An opportunity annotated with its ranker score in [0, 1]."""

    opportunity: YieldOpportunity
    score: float


@dataclass(frozen=True)
class ConcentratedOpportunity:
    """A scored opportunity carrying the squared score used for concentration."""

    scored: ScoredOpportunity
    concentrated_score: float

    @classmethod
    def from_scored(cls, scored: ScoredOpportunity) -> "ConcentratedOpportunity":
        return cls(scored=scored, concentrated_score=scored.score**2)


# ── Allocation / Strategy ────────────────────────────────────────────────


@dataclass(frozen=True)
class Allocation:
    protocol_id: str
    protocol_name: str
    asset_name: str
    percentage: float
    expected_apy: float

    @classmethod
    def for_opportunity(
        cls, opportunity: YieldOpportunity, percentage: float
    ) -> "Allocation":
        return cls(
            protocol_id=opportunity.protocol_id,
            protocol_name=opportunity.protocol_name,
            asset_name=opportunity.asset_name,
            percentage=percentage,
            expected_apy=opportunity.apy,
        )


@dataclass(frozen=True)
class Strategy:
    """Suggested allocation plus its projected outcome."""

    expected_return: float
    risk_level: RiskTolerance
    projected_value: float
    allocations: Tuple[Allocation, ...] = field(default_factory=tuple)
    insights: str = ""

    def to_dict(self) -> dict:
        """camelCase view, matching the JSON shape consumed by dashboards."""
        return {
            "expectedReturn": self.expected_return,
            "riskLevel": self.risk_level.value,
            "projectedValue": self.projected_value,
            "allocations": [
                {
                    "protocolId": a.protocol_id,
                    "protocolName": a.protocol_name,
                    "assetName": a.asset_name,
                    "percentage": a.percentage,
                    "expectedApy": a.expected_apy,
                }
                for a in self.allocations
            ],
            "insights": self.insights,
        }


@dataclass(frozen=True)
class ImpermanentLossResult:
    """Outcome of a constant-product (x·y = k) pool after a price move."""

    token1_initial_amount: float
    token2_initial_amount: float
    token1_new_amount: float
    token2_new_amount: float
    initial_price: float
    new_price: float
    price_change_percent: float
    hold_value: float
    lp_value: float
    impermanent_loss: float
    impermanent_loss_percent: float
