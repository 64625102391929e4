"""DeFi Yield CLI — models, configuration and command handlers."""
