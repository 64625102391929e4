"""
Test Suite — DeFi Yield Formula Validation
==========================================

Tests every formula in defi_math.py against known inputs, verifying
correctness with reverse calculations and documented expected values.

Formula Sources:
  - Uniswap V2 Whitepaper §2 (constant product x·y = k)
  - Pintail (2019) — Impermanent Loss
  - APR ↔ APY periodic compounding

Run:  python -m pytest tests/test_math.py -v
"""

import math
import pytest

from defi_math import (
    DEFAULT_RISK_FREE_RATE,
    PortfolioStats,
    RateMath,
    compute_impermanent_loss,
    impermanent_loss_closed_form,
    require_finite,
    require_positive,
)
from yield_cli.errors import InvalidInput
from yield_cli.models import ImpermanentLossResult


# ── Helpers ──────────────────────────────────────────────────────────────

def expected_il(r: float) -> float:
    """Reference impermanent loss magnitude: |2√r/(1+r) - 1| (Pintail formula)."""
    return abs(2 * math.sqrt(r) / (1 + r) - 1) * 100


# ── Impermanent Loss (Whitepaper §2) ─────────────────────────────────────

class TestImpermanentLoss:
    """1 ETH + 2000 USDC position, price quoted in USDC per ETH."""

    def test_returns_result_record(self):
        result = compute_impermanent_loss(1, 2000, 0.5)
        assert isinstance(result, ImpermanentLossResult)

    def test_no_price_change_no_loss(self):
        result = compute_impermanent_loss(1, 2000, 0)
        assert result.impermanent_loss == pytest.approx(0, abs=1e-9)
        assert result.impermanent_loss_percent == pytest.approx(0, abs=1e-9)
        assert result.lp_value == pytest.approx(result.hold_value)
        assert result.token1_new_amount == pytest.approx(1)
        assert result.token2_new_amount == pytest.approx(2000)

    def test_fifty_percent_up(self):
        """r = 1.5: 2√1.5/2.5 − 1 = −2.02%."""
        result = compute_impermanent_loss(1, 2000, 0.5)
        assert result.initial_price == pytest.approx(2000)
        assert result.new_price == pytest.approx(3000)
        assert result.price_change_percent == pytest.approx(50)
        assert result.hold_value == pytest.approx(5000)
        assert result.lp_value == pytest.approx(2 * math.sqrt(2000 * 3000))
        assert result.impermanent_loss_percent == pytest.approx(2.0204, abs=0.001)

    def test_fifty_percent_down(self):
        """r = 0.5 gives the same loss as r = 2 (5.72%)."""
        result = compute_impermanent_loss(1, 2000, -0.5)
        assert result.new_price == pytest.approx(1000)
        assert result.price_change_percent == pytest.approx(-50)
        assert result.hold_value == pytest.approx(3000)
        assert result.hold_value > result.lp_value
        assert result.impermanent_loss_percent == pytest.approx(5.7191, abs=0.001)

    def test_reciprocal_ratio_symmetry(self):
        """IL(r) == IL(1/r): +50% (r=1.5) matches −33.3% (r=2/3)."""
        up = compute_impermanent_loss(1, 2000, 0.5)
        down = compute_impermanent_loss(1, 2000, -1 / 3)
        assert up.impermanent_loss_percent == pytest.approx(
            down.impermanent_loss_percent, abs=1e-9
        )

    def test_constant_product_preserved(self):
        for ratio in [-0.9, -0.5, 0.25, 1.0, 3.0]:
            result = compute_impermanent_loss(2.5, 4000, ratio)
            assert result.token1_new_amount * result.token2_new_amount == pytest.approx(
                2.5 * 4000
            )

    def test_scale_invariance(self):
        """Doubling both reserves leaves the loss percentage unchanged."""
        base = compute_impermanent_loss(1, 2000, 0.5)
        scaled = compute_impermanent_loss(2, 4000, 0.5)
        assert scaled.impermanent_loss_percent == pytest.approx(base.impermanent_loss_percent)
        assert scaled.hold_value == pytest.approx(2 * base.hold_value)

    def test_lp_never_beats_hold(self):
        for ratio in [-0.99, -0.5, -0.1, 0.1, 0.5, 2.0, 9.0]:
            result = compute_impermanent_loss(1, 2000, ratio)
            assert result.lp_value <= result.hold_value + 1e-9
            assert result.impermanent_loss <= 1e-9
            assert result.impermanent_loss_percent >= 0

    def test_loss_grows_with_divergence(self):
        il = [compute_impermanent_loss(1, 100, r).impermanent_loss_percent for r in (1, 2, 4)]
        assert il[0] < il[1] < il[2]

    def test_matches_closed_form(self):
        """Reserve-based model and Pintail closed form agree."""
        for ratio in [-0.75, -0.5, 0.0, 0.5, 1.0, 3.0]:
            result = compute_impermanent_loss(3, 600, ratio)
            assert result.impermanent_loss_percent == pytest.approx(
                expected_il(1 + ratio), abs=1e-9
            )

    @pytest.mark.parametrize("t1,t2,ratio", [
        (0, 2000, 0.5),
        (1, 0, 0.5),
        (-1, 2000, 0.5),
        (1, 2000, -1.0),
        (1, 2000, -2.0),
        (1, 2000, float("nan")),
        (float("inf"), 2000, 0.5),
    ])
    def test_invalid_inputs_raise(self, t1, t2, ratio):
        with pytest.raises(InvalidInput):
            compute_impermanent_loss(t1, t2, ratio)

    @pytest.mark.parametrize("t1,t2,ratio", [
        (1e-200, 1e200, 0.5),   # initial price overflows
        (1e200, 1e-200, 0.5),   # initial price underflows to zero
        (1e300, 1e300, 0.0),    # k overflows
        (1, 1e308, 1.0),        # new price overflows
        (1, 1e308, 0.5),        # hold value overflows
    ])
    def test_overflowing_amounts_raise(self, t1, t2, ratio):
        """Finite inputs whose derived prices leave the float range never yield NaN."""
        with pytest.raises(InvalidInput):
            compute_impermanent_loss(t1, t2, ratio)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            compute_impermanent_loss(1, 2000, -1)


class TestClosedForm:
    """IL = 2√r / (1+r) − 1, negative percentage."""

    @pytest.mark.parametrize("ratio,expected", [
        (1.0, 0.0),
        (1.5, -2.0204),
        (2.0, -5.7191),
        (0.5, -5.7191),
        (4.0, -20.0),
        (0.25, -20.0),
    ])
    def test_known_values(self, ratio, expected):
        assert impermanent_loss_closed_form(ratio) == pytest.approx(expected, abs=0.001)

    def test_non_positive_ratio_raises(self):
        with pytest.raises(InvalidInput):
            impermanent_loss_closed_form(0)


# ── Rate Conversions ─────────────────────────────────────────────────────

class TestRateMath:
    def test_apr_to_apy_daily(self):
        """10% APR daily → 10.516% APY."""
        assert RateMath.apr_to_apy(10) == pytest.approx(0.105156, abs=1e-5)

    def test_apr_to_apy_annual_is_identity(self):
        assert RateMath.apr_to_apy(8, compounding_periods=1) == pytest.approx(0.08)

    def test_apy_to_apr_reverses_apr_to_apy(self):
        apy_pct = RateMath.apr_to_apy(12.5) * 100
        assert RateMath.apy_to_apr(apy_pct) == pytest.approx(12.5, abs=1e-9)

    def test_apy_to_apr_total_loss_rejected(self):
        with pytest.raises(InvalidInput):
            RateMath.apy_to_apr(-100)

    def test_zero_periods_rejected(self):
        with pytest.raises(InvalidInput):
            RateMath.apr_to_apy(10, compounding_periods=0)

    def test_future_value_zero_rate(self):
        """P + C·N when the rate is zero: 1000 + 100·12."""
        assert RateMath.future_value(1000, 100, 0, 1) == pytest.approx(2200)

    def test_future_value_principal_only(self):
        """1000 at 12% compounded monthly for a year → 1000·1.01^12."""
        assert RateMath.future_value(1000, 0, 12, 1) == pytest.approx(1000 * 1.01**12)

    def test_future_value_with_contributions(self):
        i = 0.06 / 12
        growth = (1 + i) ** 24
        expected = 500 * growth + 50 * (growth - 1) / i
        assert RateMath.future_value(500, 50, 6, 2) == pytest.approx(expected)

    def test_compound_growth_full_year(self):
        assert RateMath.compound_growth(10_000, 10, 12) == pytest.approx(11_000)

    def test_compound_growth_fractional_year(self):
        assert RateMath.compound_growth(10_000, 10, 6) == pytest.approx(10_000 * math.sqrt(1.1))

    def test_compound_growth_zero_rate(self):
        assert RateMath.compound_growth(2500, 0, 36) == pytest.approx(2500)


# ── Portfolio Statistics ─────────────────────────────────────────────────

class TestPortfolioStats:
    def test_weighted_average(self):
        assert PortfolioStats.weighted_average([1, 2, 3], [1, 1, 2]) == pytest.approx(2.25)

    def test_weighted_average_empty(self):
        assert PortfolioStats.weighted_average([], []) == 0.0

    def test_weighted_average_zero_weights(self):
        assert PortfolioStats.weighted_average([5, 7], [0, 0]) == 0.0

    def test_weighted_average_length_mismatch(self):
        with pytest.raises(InvalidInput):
            PortfolioStats.weighted_average([1, 2], [1])

    def test_population_std_dev(self):
        assert PortfolioStats.standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_sample_std_dev(self):
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert PortfolioStats.standard_deviation(values, sample=True) == pytest.approx(
            math.sqrt(32 / 7)
        )

    def test_std_dev_too_few_points(self):
        assert PortfolioStats.standard_deviation([]) == 0.0
        assert PortfolioStats.standard_deviation([3.0], sample=True) == 0.0

    def test_perfect_correlation(self):
        assert PortfolioStats.correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert PortfolioStats.correlation([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)

    def test_correlation_constant_series(self):
        assert PortfolioStats.correlation([1, 1, 1], [1, 2, 3]) == 0.0

    def test_correlation_length_mismatch(self):
        with pytest.raises(InvalidInput):
            PortfolioStats.correlation([1, 2, 3], [1, 2])

    def test_sharpe_ratio(self):
        assert PortfolioStats.sharpe_ratio(10, 5, 1.5) == pytest.approx(1.7)

    def test_sharpe_default_risk_free(self):
        assert PortfolioStats.sharpe_ratio(DEFAULT_RISK_FREE_RATE + 4, 2) == pytest.approx(2.0)

    def test_sharpe_zero_volatility(self):
        assert PortfolioStats.sharpe_ratio(10, 0) == 0.0

    def test_sortino_ratio(self):
        """Downside deviation counts only the −10 period: √(100/3)."""
        expected = (20 / 3) / math.sqrt(100 / 3)
        assert PortfolioStats.sortino_ratio([10, -10, 20], risk_free_rate=0) == pytest.approx(expected)

    def test_sortino_no_downside(self):
        assert PortfolioStats.sortino_ratio([5, 6, 7], risk_free_rate=1.5) == 0.0


# ── Input Guards ─────────────────────────────────────────────────────────

class TestInputGuards:
    def test_require_finite_accepts_int(self):
        assert require_finite("x", 3) == 3.0

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "3", None, True])
    def test_require_finite_rejects(self, value):
        with pytest.raises(InvalidInput):
            require_finite("x", value)

    @pytest.mark.parametrize("value", [0, -0.01, -5])
    def test_require_positive_rejects(self, value):
        with pytest.raises(InvalidInput, match="must be positive"):
            require_positive("amount", value)
