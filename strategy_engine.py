#!/usr/bin/env python3
"""
Strategy Engine
===============

Turns a catalog of yield opportunities into a suggested capital allocation.

Pipeline:
    opportunities ──rank──▶ scored (sorted) ──allocate──▶ allocations
                  ──project──▶ Strategy (expected return, projected value, insights)

SCORING:
──────────────────────────────────────────────
    ordinal         = very-low 1 … very-high 5  (unknown → 3)
    normalized_risk = (5 − ordinal) / 4         (lower risk → higher score)
    normalized_apy  = min(APY / 30, 1)          (APY capped at 30%)
    score           = w_apy · normalized_apy + w_risk · normalized_risk

    Risk tolerance │ w_apy │ w_risk │ selected │ weighting policy
    ───────────────┼───────┼────────┼──────────┼───────────────────────────
    low            │  0.3  │  0.7   │    6     │ equal      100/n
    moderate       │  0.5  │  0.5   │    4     │ mixed      50/n + 50·s/Σs
    high           │  0.7  │  0.3   │    3     │ score      100·s/Σs
    aggressive     │  0.9  │  0.1   │    2     │ concentrated 100·s²/Σs²

PROJECTION:
──────────────────────────────────────────────
    expected_return = Σ APY_i · pct_i / 100
    projected_value = amount · (1 + expected_return/100)^(months/12)

Every function here is pure and synchronous.
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import List, Optional, Sequence

from defi_math import RateMath, require_positive
from yield_cli.errors import (
    CalculationError,
    InvalidInput,
    InvalidState,
)
from yield_cli.insights import generate_insights
from yield_cli.models import (
    Allocation,
    ConcentratedOpportunity,
    RiskLevel,
    RiskTolerance,
    ScoredOpportunity,
    Strategy,
    YieldOpportunity,
)

logger = logging.getLogger(__name__)

# ── Named Constants ──────────────────────────────────────────────────────
APY_NORMALIZATION_CAP = 30.0  # % — extreme yields are compressed, not dominant
MAX_RISK_ORDINAL = 5
TOTAL_PERCENT = 100.0

# (apy_weight, risk_weight) per tolerance
RISK_WEIGHTS = MappingProxyType(
    {
        RiskTolerance.LOW: (0.3, 0.7),
        RiskTolerance.MODERATE: (0.5, 0.5),
        RiskTolerance.HIGH: (0.7, 0.3),
        RiskTolerance.AGGRESSIVE: (0.9, 0.1),
    }
)

# How many top-ranked opportunities each tolerance keeps
SELECTION_WIDTH = MappingProxyType(
    {
        RiskTolerance.LOW: 6,
        RiskTolerance.MODERATE: 4,
        RiskTolerance.HIGH: 3,
        RiskTolerance.AGGRESSIVE: 2,
    }
)


# ── Ranking ──────────────────────────────────────────────────────────────


def score_opportunity(
    opportunity: YieldOpportunity, risk_tolerance: RiskTolerance
) -> float:
    """Blend normalized APY and normalized (inverted) risk into [0, 1]."""
    apy_weight, risk_weight = RISK_WEIGHTS[risk_tolerance]
    ordinal = RiskLevel.parse(opportunity.risk_level).ordinal
    normalized_risk = (MAX_RISK_ORDINAL - ordinal) / (MAX_RISK_ORDINAL - 1)
    normalized_apy = min(opportunity.apy / APY_NORMALIZATION_CAP, 1.0)
    return apy_weight * normalized_apy + risk_weight * normalized_risk


def rank_opportunities(
    opportunities: Optional[Sequence[YieldOpportunity]],
    risk_tolerance,
) -> List[ScoredOpportunity]:
    """
    Score every opportunity and sort by score, highest first.

    The sort is stable: equal scores keep their input order.

    Raises:
        InvalidInput: ``opportunities`` is None or the tolerance is unknown.
    """
    if opportunities is None:
        raise InvalidInput("opportunities must be a list, got None")
    tolerance = RiskTolerance.parse(risk_tolerance)

    scored = [
        ScoredOpportunity(opportunity=opp, score=score_opportunity(opp, tolerance))
        for opp in opportunities
    ]
    scored.sort(key=lambda s: s.score, reverse=True)

    logger.debug(
        "Ranked %d opportunities for %s tolerance (top score %.4f)",
        len(scored),
        tolerance.value,
        scored[0].score if scored else 0.0,
    )
    return scored


# ── Weighting Policies ───────────────────────────────────────────────────


def equal_weight(selected: Sequence[ScoredOpportunity]) -> List[Allocation]:
    """Each opportunity gets 100/n percent, irrespective of score."""
    if not selected:
        return []
    percentage = TOTAL_PERCENT / len(selected)
    return [Allocation.for_opportunity(s.opportunity, percentage) for s in selected]


def mixed_weight(selected: Sequence[ScoredOpportunity]) -> List[Allocation]:
    """
    Flat base of 50/n plus a 50% score-proportional top-up.

    With every score at zero the proportional half is undefined; the flat
    base is doubled instead (equivalent to equal weight).
    """
    if not selected:
        return []
    total_score = sum(s.score for s in selected)
    if total_score <= 0:
        logger.warning(
            "All %d selected scores are zero; mixed weight falls back to equal weight",
            len(selected),
        )
        return equal_weight(selected)

    half = TOTAL_PERCENT / 2
    base = half / len(selected)
    return [
        Allocation.for_opportunity(s.opportunity, base + half * (s.score / total_score))
        for s in selected
    ]


def score_weight(selected: Sequence[ScoredOpportunity]) -> List[Allocation]:
    """Pure proportional allocation: 100 · s / Σs."""
    if not selected:
        return []
    total_score = sum(s.score for s in selected)
    if total_score <= 0:
        raise InvalidState(
            f"score weight needs a positive score total, got {total_score}"
        )
    return [
        Allocation.for_opportunity(s.opportunity, TOTAL_PERCENT * s.score / total_score)
        for s in selected
    ]


def concentrated_weight(selected: Sequence[ScoredOpportunity]) -> List[Allocation]:
    """
    Proportional to squared scores: 100 · s² / Σs².

    Squaring widens the gap between near-tied candidates, pushing capital
    into the one or two strongest opportunities.
    """
    if not selected:
        return []
    concentrated = [ConcentratedOpportunity.from_scored(s) for s in selected]
    total = sum(c.concentrated_score for c in concentrated)
    if total <= 0:
        raise InvalidState(
            f"concentrated weight needs a positive squared-score total, got {total}"
        )
    return [
        Allocation.for_opportunity(
            c.scored.opportunity, TOTAL_PERCENT * c.concentrated_score / total
        )
        for c in concentrated
    ]


class WeightingPolicy(Enum):
    """Closed set of capital-weighting policies."""

    EQUAL = "equal-weight"
    MIXED = "mixed-weight"
    SCORE = "score-weight"
    CONCENTRATED = "concentrated-weight"

    @classmethod
    def for_tolerance(cls, risk_tolerance) -> "WeightingPolicy":
        return _POLICY_BY_TOLERANCE[RiskTolerance.parse(risk_tolerance)]

    def apply(self, selected: Sequence[ScoredOpportunity]) -> List[Allocation]:
        return _POLICY_FUNCTIONS[self](selected)


_POLICY_FUNCTIONS = MappingProxyType(
    {
        WeightingPolicy.EQUAL: equal_weight,
        WeightingPolicy.MIXED: mixed_weight,
        WeightingPolicy.SCORE: score_weight,
        WeightingPolicy.CONCENTRATED: concentrated_weight,
    }
)

_POLICY_BY_TOLERANCE = MappingProxyType(
    {
        RiskTolerance.LOW: WeightingPolicy.EQUAL,
        RiskTolerance.MODERATE: WeightingPolicy.MIXED,
        RiskTolerance.HIGH: WeightingPolicy.SCORE,
        RiskTolerance.AGGRESSIVE: WeightingPolicy.CONCENTRATED,
    }
)


# ── Allocation ───────────────────────────────────────────────────────────


def select_top(
    ranked: Sequence[ScoredOpportunity], risk_tolerance
) -> List[ScoredOpportunity]:
    """Keep the top-N ranked opportunities, N = selection width of the tolerance."""
    width = SELECTION_WIDTH[RiskTolerance.parse(risk_tolerance)]
    return list(ranked[: min(width, len(ranked))])


def allocate(
    ranked: Optional[Sequence[ScoredOpportunity]], risk_tolerance
) -> List[Allocation]:
    """
    Select a subset of ranked opportunities and split 100% of capital.

    Empty input gives an empty allocation list.

    Raises:
        InvalidInput: ``ranked`` is None or the tolerance is unknown.
        InvalidState: proportional policy with an all-zero score total.
    """
    if ranked is None:
        raise InvalidInput("ranked opportunities must be a list, got None")
    tolerance = RiskTolerance.parse(risk_tolerance)

    selected = select_top(ranked, tolerance)
    if not selected:
        logger.info("No opportunities to allocate for %s tolerance", tolerance.value)
        return []

    policy = WeightingPolicy.for_tolerance(tolerance)
    allocations = policy.apply(selected)
    logger.debug(
        "Allocated %d/%d opportunities with %s",
        len(allocations),
        len(ranked),
        policy.value,
    )
    return allocations


# ── Projection ───────────────────────────────────────────────────────────


def expected_return(allocations: Sequence[Allocation]) -> float:
    """Percentage-weighted APY: Σ APY · pct / 100 (0 for no allocations)."""
    return sum(a.expected_apy * a.percentage / TOTAL_PERCENT for a in allocations)


def _require_months(time_horizon_months) -> int:
    if isinstance(time_horizon_months, bool) or not isinstance(time_horizon_months, int):
        raise InvalidInput(
            f"time_horizon_months must be an integer, got {time_horizon_months!r}"
        )
    if time_horizon_months <= 0:
        raise InvalidInput(
            f"time_horizon_months must be positive, got {time_horizon_months}"
        )
    return time_horizon_months


def project(
    allocations: Optional[Sequence[Allocation]],
    investment_amount: float,
    time_horizon_months: int,
    risk_tolerance,
) -> Strategy:
    """
    Aggregate allocations into a Strategy.

    An empty allocation list projects zero return (value = amount invested).

    Raises:
        InvalidInput: non-positive amount / horizon, or unknown tolerance.
    """
    if allocations is None:
        raise InvalidInput("allocations must be a list, got None")
    amount = require_positive("investment_amount", investment_amount)
    months = _require_months(time_horizon_months)
    tolerance = RiskTolerance.parse(risk_tolerance)

    records = tuple(allocations)
    annual_return = expected_return(records)
    projected_value = RateMath.compound_growth(amount, annual_return, months)

    return Strategy(
        expected_return=annual_return,
        risk_level=tolerance,
        projected_value=projected_value,
        allocations=records,
        insights=generate_insights(tolerance, records, months),
    )


# ── Pipeline ─────────────────────────────────────────────────────────────


def calculate_optimal_strategy(
    opportunities: Optional[Sequence[YieldOpportunity]],
    investment_amount: float,
    time_horizon_months: int,
    risk_tolerance,
) -> Strategy:
    """
    rank → allocate → project.

    Raises:
        CalculationError: any failure in a stage; ``stage`` names it and the
            original exception is chained as ``__cause__``.
    """
    stage = "rank"
    try:
        ranked = rank_opportunities(opportunities, risk_tolerance)
        stage = "allocate"
        allocations = allocate(ranked, risk_tolerance)
        stage = "project"
        return project(allocations, investment_amount, time_horizon_months, risk_tolerance)
    except Exception as exc:
        logger.warning("Strategy calculation failed at %s stage: %s", stage, exc)
        raise CalculationError(stage, str(exc)) from exc
