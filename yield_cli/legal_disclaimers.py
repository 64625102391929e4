"""
LEGAL DISCLAIMERS
=================

This software is provided for EDUCATIONAL and INFORMATIONAL purposes ONLY.

⚠️ NOT FINANCIAL ADVICE:
• Suggested allocations are mechanical outputs of a scoring formula
• Yields are snapshots and change continuously
• Past performance does NOT indicate future results
• DeFi protocols carry HIGH RISK including total loss of capital
"""

# CLI disclaimer for user acceptance prompt
CLI_DISCLAIMER = """
🚨 NOT FINANCIAL ADVICE - EDUCATIONAL TOOL ONLY
🔥 HIGH RISK - DeFi can result in TOTAL LOSS of capital
📉 Impermanent loss and protocol exploits are NOT modelled in projections
📚 DO YOUR OWN RESEARCH (DYOR) before any decisions
⚡ USE AT YOUR OWN RISK - DEVELOPER NOT LIABLE FOR LOSSES
"""

# Footer printed under every suggested strategy
STRATEGY_FOOTER = (
    "⚠️  Projection assumes constant APY compounded over the horizon.\n"
    "⚠️  NOT financial advice — always verify yields before allocating capital."
)


def get_jurisdiction_specific_warning(jurisdiction: str = "GLOBAL") -> str:
    """Returns a short jurisdiction-specific warning."""

    warnings = {
        "BR": "🇧🇷 BRAZIL: Not an investment advisory service per CVM regulations.",
        "US": "🇺🇸 USA: Not a registered investment advisor. Educational tool only.",
        "EU": "🇪🇺 EU: No investment advice per ESMA guidelines. Capital at risk.",
        "GLOBAL": "🌍 GLOBAL: Educational analysis only. User assumes all responsibility.",
    }

    return warnings.get(jurisdiction, warnings["GLOBAL"])
