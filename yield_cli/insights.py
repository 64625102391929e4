"""
Strategy Insights — Narrative Templates
=======================================

Pure text generation for a suggested strategy. Kept apart from the
allocation math so the wording can change (or be localized) without
touching any numbers.

Inputs: risk tolerance, the top allocation, allocation count, horizon.
"""

from typing import Optional, Sequence

from yield_cli.models import Allocation, RiskTolerance

_TEMPLATES = {
    RiskTolerance.LOW: (
        "This conservative strategy prioritizes capital preservation by "
        "diversifying across {count} assets. The largest allocation ({pct:.1f}%) "
        "is to {protocol}'s {asset}, which offers a balance of stability and "
        "yield. This strategy aims to minimize exposure to protocol risk and "
        "market volatility over your {months}-month investment horizon."
    ),
    RiskTolerance.MODERATE: (
        "This balanced strategy allocates capital across {count} assets to "
        "provide a mix of yield and stability. With {pct:.1f}% allocated to "
        "{protocol}'s {asset}, the portfolio aims to capture yield "
        "opportunities while managing overall risk. This approach is "
        "well-suited for your {months}-month timeframe, offering potential for "
        "growth while maintaining reasonable security."
    ),
    RiskTolerance.HIGH: (
        "This growth-oriented strategy focuses on higher-yielding "
        "opportunities, with a significant {pct:.1f}% allocation to "
        "{protocol}'s {asset}. By concentrating investments across {count} "
        "carefully selected assets, this approach aims to maximize returns "
        "over your {months}-month horizon. While this strategy entails higher "
        "risk, it's structured to capture yield efficiently in the current "
        "market conditions."
    ),
    RiskTolerance.AGGRESSIVE: (
        "This aggressive yield-maximizing strategy concentrates {pct:.1f}% of "
        "capital in {protocol}'s {asset}, which currently offers the most "
        "attractive risk-adjusted returns. With allocations to just {count} "
        "high-performing assets, this approach prioritizes capturing the "
        "highest possible yields over your {months}-month timeframe. Note that "
        "this concentrated strategy carries higher risk of impermanent loss "
        "and protocol-specific risks."
    ),
}

NEUTRAL_TEMPLATE = (
    "This strategy allocates across {count} assets with {pct:.1f}% in "
    "{protocol}'s {asset}. It aims to balance risk and reward over your "
    "{months}-month investment horizon."
)

EMPTY_TEMPLATE = (
    "No yield opportunities matched the selected protocols, so no capital "
    "was allocated. The projected value over your {months}-month horizon "
    "equals the amount invested."
)


def top_allocation(allocations: Sequence[Allocation]) -> Optional[Allocation]:
    """Largest percentage; the first one wins ties. Input order is untouched."""
    top = None
    for allocation in allocations:
        if top is None or allocation.percentage > top.percentage:
            top = allocation
    return top


def generate_insights(
    risk_tolerance,
    allocations: Sequence[Allocation],
    time_horizon_months: int,
) -> str:
    """
    Render the narrative for a strategy.

    ``risk_tolerance`` values outside RiskTolerance use the neutral template.
    """
    top = top_allocation(allocations)
    if top is None:
        return EMPTY_TEMPLATE.format(months=time_horizon_months)

    template = _TEMPLATES.get(risk_tolerance, NEUTRAL_TEMPLATE)
    return template.format(
        count=len(allocations),
        pct=top.percentage,
        protocol=top.protocol_name,
        asset=top.asset_name,
        months=time_horizon_months,
    )
