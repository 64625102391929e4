#!/usr/bin/env python3
"""
DeFi Math Engine
================

Rate conversions, portfolio statistics and the constant-product
impermanent-loss model used by the yield dashboard and the strategy engine.

FORMULA SOURCES (every formula is traceable):
──────────────────────────────────────────────
1. APR ↔ APY (periodic compounding)
   APY = (1 + APR/n)^n − 1
   APR = n · ((1 + APY)^(1/n) − 1)

2. Future value with periodic contributions
   FV = P·(1+i)^N + C·((1+i)^N − 1)/i,   i = rate/n, N = n·years

3. Sharpe / Sortino ratios
   Sharpe  = (R − Rf) / σ
   Sortino = (R̄ − Rf) / σ_downside

4. Uniswap V2 Whitepaper — Constant Product Market Maker
   https://uniswap.org/whitepaper.pdf
   x · y = k;  after a price move P' the pool holds
   x' = √(k / P'),  y' = √(k · P')

5. Impermanent Loss — Original AMM Math
   https://pintail.medium.com/uniswap-a-good-deal-for-liquidity-providers-104c0b6816f2
   IL = 2·√(r) / (1 + r) − 1,  where r = P_new / P_initial
"""

import math
from typing import Sequence

from yield_cli.errors import InvalidInput
from yield_cli.models import ImpermanentLossResult

# ── Named Constants ──────────────────────────────────────────────────────
DAYS_PER_YEAR = 365
MONTHS_PER_YEAR = 12
DEFAULT_RISK_FREE_RATE = 1.5  # % — T-bill proxy


def require_finite(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    return float(value)


def require_positive(name: str, value: float) -> float:
    value = require_finite(name, value)
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")
    return value


# ── Rate Conversions ─────────────────────────────────────────────────────


class RateMath:
    """Pure functions for yield-rate conversions and compounding."""

    @staticmethod
    def apr_to_apy(apr: float, compounding_periods: int = DAYS_PER_YEAR) -> float:
        """
        APR (percentage) → APY (decimal fraction).

        Formula: APY = (1 + APR/100/n)^n − 1

        Example: 10% APR compounded daily → 0.10516 (10.52%).
        """
        n = require_positive("compounding_periods", compounding_periods)
        return (1 + apr / 100 / n) ** n - 1

    @staticmethod
    def apy_to_apr(apy: float, compounding_periods: int = DAYS_PER_YEAR) -> float:
        """
        APY (percentage) → APR (percentage).

        Formula: APR = n · ((1 + APY/100)^(1/n) − 1) · 100
        """
        n = require_positive("compounding_periods", compounding_periods)
        if apy <= -100:
            raise InvalidInput(f"apy must be greater than -100%, got {apy}")
        return n * ((1 + apy / 100) ** (1 / n) - 1) * 100

    @staticmethod
    def future_value(
        principal: float,
        monthly_contribution: float,
        annual_rate: float,
        years: float,
        compounding_frequency: int = MONTHS_PER_YEAR,
    ) -> float:
        """
        Future value of a principal plus periodic contributions.

        Formula:
            i  = annual_rate / 100 / n
            N  = n · years
            FV = P·(1+i)^N + C·((1+i)^N − 1)/i

        A zero rate degenerates to P + C·N.
        """
        n = require_positive("compounding_frequency", compounding_frequency)
        periodic_rate = annual_rate / 100 / n
        periods = n * years
        if periodic_rate == 0:
            return principal + monthly_contribution * periods
        growth = (1 + periodic_rate) ** periods
        return principal * growth + monthly_contribution * (growth - 1) / periodic_rate

    @staticmethod
    def compound_growth(amount: float, annual_rate: float, months: float) -> float:
        """
        Value of ``amount`` after ``months`` at an annualized rate (percentage),
        using a fractional-year exponent: amount · (1 + r/100)^(months/12).
        """
        return amount * (1 + annual_rate / 100) ** (months / MONTHS_PER_YEAR)


# ── Portfolio Statistics ─────────────────────────────────────────────────


class PortfolioStats:
    """Descriptive statistics for yield series and allocations."""

    @staticmethod
    def weighted_average(values: Sequence[float], weights: Sequence[float]) -> float:
        """Σ(v·w) / Σw. Empty input or zero total weight → 0."""
        if len(values) != len(weights):
            raise InvalidInput(
                f"values and weights differ in length ({len(values)} vs {len(weights)})"
            )
        total_weight = sum(weights)
        if not values or total_weight == 0:
            return 0.0
        return sum(v * w for v, w in zip(values, weights)) / total_weight

    @staticmethod
    def standard_deviation(values: Sequence[float], sample: bool = False) -> float:
        """
        Population (default) or sample standard deviation.
        Returns 0 when there are too few points to define one.
        """
        n = len(values)
        if n == 0 or (sample and n < 2):
            return 0.0
        mean = sum(values) / n
        squared = sum((v - mean) ** 2 for v in values)
        return math.sqrt(squared / (n - 1 if sample else n))

    @staticmethod
    def correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
        """
        Pearson correlation coefficient in [−1, 1].
        Fewer than two points or a constant series → 0.
        """
        if len(xs) != len(ys):
            raise InvalidInput(f"series differ in length ({len(xs)} vs {len(ys)})")
        n = len(xs)
        if n < 2:
            return 0.0
        mean_x = sum(xs) / n
        mean_y = sum(ys) / n
        cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
        var_x = sum((x - mean_x) ** 2 for x in xs)
        var_y = sum((y - mean_y) ** 2 for y in ys)
        if var_x == 0 or var_y == 0:
            return 0.0
        return cov / math.sqrt(var_x * var_y)

    @staticmethod
    def sharpe_ratio(
        expected_return: float,
        volatility: float,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    ) -> float:
        """(R − Rf) / σ, all in percentage points. Zero volatility → 0."""
        if volatility == 0:
            return 0.0
        return (expected_return - risk_free_rate) / volatility

    @staticmethod
    def sortino_ratio(
        returns: Sequence[float],
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    ) -> float:
        """
        (mean(R) − Rf) / downside deviation.

        Downside deviation only counts periods below the risk-free rate;
        a series with no downside returns 0.
        """
        if not returns:
            return 0.0
        mean = sum(returns) / len(returns)
        downside = [min(0.0, r - risk_free_rate) ** 2 for r in returns]
        downside_dev = math.sqrt(sum(downside) / len(returns))
        if downside_dev == 0:
            return 0.0
        return (mean - risk_free_rate) / downside_dev


# ── Impermanent Loss ─────────────────────────────────────────────────────


def impermanent_loss_closed_form(price_ratio: float) -> float:
    """
    V2 impermanent loss as a percentage (negative = loss vs. holding).

    Formula (Pintail, 2019):
        IL = 2·√(r) / (1 + r) − 1
        where r = P_new / P_initial
    """
    r = require_positive("price_ratio", price_ratio)
    return (2 * math.sqrt(r) / (1 + r) - 1) * 100


def compute_impermanent_loss(
    token1_amount: float,
    token2_amount: float,
    price_change_ratio: float,
) -> ImpermanentLossResult:
    """
    Model a two-token constant-product position after a price move.

    Price is quoted as token2 per token1 (initial = token2 / token1).
    A ``price_change_ratio`` of 0.5 means token1 gained 50% against token2.

    Steps (Uniswap V2 Whitepaper §2):
        k          = token1 · token2
        P'         = P · (1 + ratio)
        token1'    = √(k / P')
        token2'    = √(k · P')
        hold value = token1 · P' + token2
        LP value   = token1' · P' + token2'

    ``impermanent_loss`` keeps its sign (LP − hold, ≤ 0);
    ``impermanent_loss_percent`` is the non-negative magnitude.

    Raises:
        InvalidInput: non-positive token amounts, ratio ≤ −1, or amounts whose
            price or position value overflows a float.
    """
    token1_amount = require_positive("token1_amount", token1_amount)
    token2_amount = require_positive("token2_amount", token2_amount)
    price_change_ratio = require_finite("price_change_ratio", price_change_ratio)
    if price_change_ratio <= -1:
        raise InvalidInput(
            f"price_change_ratio must be greater than -1, got {price_change_ratio}"
        )

    initial_price = token2_amount / token1_amount
    k = token1_amount * token2_amount
    new_price = initial_price * (1 + price_change_ratio)
    if not all(math.isfinite(v) and v > 0 for v in (initial_price, new_price, k)):
        raise InvalidInput(
            f"token amounts {token1_amount!r} / {token2_amount!r} are outside the representable price range"
        )

    # Pool rebalances so that token1' · token2' = k at the new price
    token1_new = math.sqrt(k / new_price)
    token2_new = math.sqrt(k * new_price)

    hold_value = token1_amount * new_price + token2_amount
    lp_value = token1_new * new_price + token2_new
    if not (math.isfinite(hold_value) and math.isfinite(lp_value)):
        raise InvalidInput("position value overflows; scale the token amounts down")

    impermanent_loss = lp_value - hold_value
    impermanent_loss_percent = abs(impermanent_loss / hold_value * 100)

    return ImpermanentLossResult(
        token1_initial_amount=token1_amount,
        token2_initial_amount=token2_amount,
        token1_new_amount=token1_new,
        token2_new_amount=token2_new,
        initial_price=initial_price,
        new_price=new_price,
        price_change_percent=price_change_ratio * 100,
        hold_value=hold_value,
        lp_value=lp_value,
        impermanent_loss=impermanent_loss,
        impermanent_loss_percent=impermanent_loss_percent,
    )
