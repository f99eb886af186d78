"""
Tests for the Riemann-Siegel evaluator.

Covers:
1. theta series against the loggamma reference
2. remainder coefficients against Ψ(p) and its mpmath derivatives
3. Z(t): finiteness, determinism, accuracy per correction order
4. sample_range shape and validation
"""

import math

import mpmath
import numpy as np
import pytest

from siegel_z import (
    T_FLOOR,
    TWO_PI,
    CorrectionOrder,
    SamplePoint,
    correction_terms,
    evaluate_z,
    main_sum_length,
    sample_range,
    theta,
    theta_derivative,
    theta_exact,
    z_derivative,
)
from zero_finder import KNOWN_ZEROS


ALL_ORDERS = list(CorrectionOrder)


def psi_closed_form(p):
    return math.cos(2 * math.pi * (p * p - p - 1 / 16)) / math.cos(2 * math.pi * p)


def reference_z(t):
    with mpmath.workdps(30):
        return float(mpmath.siegelz(mpmath.mpf(t)))


# =============================================================================
# THETA
# =============================================================================


class TestTheta:
    """Stirling series for θ(t)"""

    @pytest.mark.parametrize("t", [14.134725, 50.0, 1000.0, 1e6])
    def test_matches_loggamma_reference(self, t):
        """Series agrees with Im log Γ(1/4 + it/2) - (t/2) log π"""
        assert theta(t) == pytest.approx(theta_exact(t), rel=1e-12, abs=1e-8)

    def test_first_gram_point(self):
        """θ vanishes at the first Gram point g₀ ≈ 17.8456"""
        assert abs(theta(17.845599540)) < 1e-6

    @pytest.mark.parametrize("t", [0.0, 1e-300, 0.5, 1.0, 3.0])
    def test_small_t_is_finite(self, t):
        """Small arguments lose precision but never overflow"""
        assert math.isfinite(theta(t))
        assert theta(t) == theta(T_FLOOR) or t >= T_FLOOR

    @pytest.mark.parametrize("t", [20.0, 300.0, 1e5])
    def test_derivative_matches_finite_difference(self, t):
        h = 1e-5 * t
        numeric = (theta(t + h) - theta(t - h)) / (2 * h)
        assert theta_derivative(t) == pytest.approx(numeric, rel=1e-7)

    def test_increasing_beyond_two_pi(self):
        ts = np.linspace(TWO_PI + 0.1, 500.0, 200)
        values = [theta(t) for t in ts]
        assert all(b > a for a, b in zip(values, values[1:]))


# =============================================================================
# REMAINDER COEFFICIENTS
# =============================================================================


class TestCorrectionTerms:
    """C₀ … C₄ from the Ψ Taylor polynomial"""

    @pytest.mark.parametrize("p", [0.0, 0.1, 0.2, 0.4, 0.5, 0.6, 0.9, 0.999])
    def test_c0_matches_closed_form(self, p):
        (c0,) = correction_terms(p, CorrectionOrder.BASE)
        assert c0 == pytest.approx(psi_closed_form(p), abs=1e-12)

    @pytest.mark.parametrize("p", [0.25, 0.75])
    def test_c0_finite_at_removable_poles(self, p):
        """cos(2πp) = 0 here; the polynomial gives the limit"""
        (c0,) = correction_terms(p)
        left = psi_closed_form(p - 1e-6)
        right = psi_closed_form(p + 1e-6)
        assert c0 == pytest.approx((left + right) / 2, abs=1e-8)

    @pytest.mark.parametrize("p", [0.1, 0.6])
    def test_c1_c2_match_psi_derivatives(self, p):
        """C₁ = -Ψ'''/(96π²), C₂ = Ψ''/(64π²) + Ψ⁽⁶⁾/(18432π⁴)"""
        with mpmath.workdps(40):
            def psi(x):
                return mpmath.cos(2 * mpmath.pi * (x * x - x - mpmath.mpf(1) / 16)) \
                    / mpmath.cos(2 * mpmath.pi * x)
            pp = mpmath.mpf(p)
            pi = mpmath.pi
            c1 = -mpmath.diff(psi, pp, 3) / (96 * pi ** 2)
            c2 = mpmath.diff(psi, pp, 2) / (64 * pi ** 2) \
                + mpmath.diff(psi, pp, 6) / (18432 * pi ** 4)
            expected = (float(c1), float(c2))

        _, got_c1, got_c2 = correction_terms(p, CorrectionOrder.HIGH_ORDER)
        assert got_c1 == pytest.approx(expected[0], rel=1e-9, abs=1e-12)
        assert got_c2 == pytest.approx(expected[1], rel=1e-9, abs=1e-12)

    def test_published_leading_coefficients(self):
        """Values at z = 0 (p = 1/2) of the even coefficients"""
        c0, c1, c2, c3, c4 = correction_terms(0.5, CorrectionOrder.EXTENDED)
        assert c0 == pytest.approx(0.38268343236508977, rel=1e-14)
        assert c1 == pytest.approx(0.0, abs=1e-15)
        assert c2 == pytest.approx(0.00518854283029316849, rel=1e-7)
        assert c3 == pytest.approx(0.0, abs=1e-15)
        assert c4 == pytest.approx(0.00046483389361763382, rel=1e-6)

    def test_length_follows_order(self):
        assert len(correction_terms(0.3, CorrectionOrder.BASE)) == 1
        assert len(correction_terms(0.3, CorrectionOrder.HIGH_ORDER)) == 3
        assert len(correction_terms(0.3, CorrectionOrder.EXTENDED)) == 5


# =============================================================================
# Z(t)
# =============================================================================


class TestEvaluateZ:
    """Riemann-Siegel Z(t)"""

    @pytest.mark.parametrize("order", ALL_ORDERS)
    @pytest.mark.parametrize("t", [0.0, 1e-12, 0.5, TWO_PI, 9.8175, 14.0, 1e3, 1e8])
    def test_finite_for_non_negative_t(self, t, order):
        assert math.isfinite(evaluate_z(t, order))

    @pytest.mark.parametrize("order", ALL_ORDERS)
    def test_deterministic(self, order):
        """Bit-identical results for repeated calls"""
        assert evaluate_z(1234.5678, order) == evaluate_z(1234.5678, order)

    @pytest.mark.parametrize("t", [-1.0, float("nan"), float("inf")])
    def test_rejects_invalid_argument(self, t):
        with pytest.raises(ValueError):
            evaluate_z(t)

    def test_negative_before_first_zero(self):
        """Z(t) < 0 on (0, 14.13): no spurious sign changes at small t"""
        for t in np.linspace(0.0, 14.0, 141):
            assert evaluate_z(t, CorrectionOrder.HIGH_ORDER) < 0

    def test_sign_change_around_first_zero(self):
        assert evaluate_z(14.0, CorrectionOrder.HIGH_ORDER) < 0
        assert evaluate_z(15.0, CorrectionOrder.HIGH_ORDER) > 0

    def test_accuracy_per_order_at_moderate_t(self):
        """Against mpmath.siegelz at t = 1000.5"""
        t = 1000.5
        ref = reference_z(t)
        assert abs(evaluate_z(t, CorrectionOrder.BASE) - ref) < 2e-3
        assert abs(evaluate_z(t, CorrectionOrder.HIGH_ORDER) - ref) < 1e-6
        assert abs(evaluate_z(t, CorrectionOrder.EXTENDED) - ref) < 1e-7

    @pytest.mark.parametrize("t", KNOWN_ZEROS[:2])
    def test_high_order_beats_base_at_first_zeros(self, t):
        ref = reference_z(t)
        base_err = abs(evaluate_z(t, CorrectionOrder.BASE) - ref)
        high_err = abs(evaluate_z(t, CorrectionOrder.HIGH_ORDER) - ref)
        assert high_err < base_err

    def test_high_order_beats_base_on_known_zeros(self):
        """Aggregate error over the first 30 zeros"""
        base_errs, high_errs = [], []
        for t in KNOWN_ZEROS:
            ref = reference_z(t)
            base_errs.append(abs(evaluate_z(t, CorrectionOrder.BASE) - ref))
            high_errs.append(abs(evaluate_z(t, CorrectionOrder.HIGH_ORDER) - ref))
        assert max(high_errs) < max(base_errs)
        assert np.mean(high_errs) < np.mean(base_errs)

    def test_continuous_at_removable_pole(self):
        """p = 1/4 at t = 2π·1.25²"""
        t = TWO_PI * 1.25 ** 2
        for order in ALL_ORDERS:
            assert abs(evaluate_z(t + 1e-9, order) - evaluate_z(t - 1e-9, order)) < 1e-6

    def test_small_jump_at_main_sum_boundary(self):
        """N goes from 1 to 2 at t = 8π; the jump is truncation-sized"""
        t = 4 * TWO_PI
        assert main_sum_length(t - 1e-9) == 1
        assert main_sum_length(t + 1e-9) == 2
        for order, bound in [(CorrectionOrder.BASE, 2e-3), (CorrectionOrder.HIGH_ORDER, 1e-3)]:
            assert abs(evaluate_z(t + 1e-9, order) - evaluate_z(t - 1e-9, order)) < bound

    def test_derivative_sign_at_first_zero(self):
        """Z crosses upward at the first zero with |Z'| ≈ 0.79"""
        slope = z_derivative(KNOWN_ZEROS[0], CorrectionOrder.HIGH_ORDER)
        assert slope == pytest.approx(0.79, abs=0.05)

    def test_derivative_at_origin(self):
        assert math.isfinite(z_derivative(0.0))


class TestMainSumLength:
    @pytest.mark.parametrize("t, expected", [(0.0, 0), (6.0, 0), (7.0, 1), (25.2, 2), (1e6, 398)])
    def test_floor_of_sqrt(self, t, expected):
        assert main_sum_length(t) == expected


# =============================================================================
# SAMPLING
# =============================================================================


class TestSampleRange:
    def test_count_and_endpoints(self):
        points = sample_range(10.0, 30.0, 50)
        assert len(points) == 50
        assert points[0].t == 10.0
        assert points[-1].t == 30.0
        assert all(isinstance(p, SamplePoint) for p in points)

    def test_strictly_ascending(self):
        points = sample_range(0.0, 100.0, 333, CorrectionOrder.HIGH_ORDER)
        assert all(b.t > a.t for a, b in zip(points, points[1:]))

    def test_values_match_evaluator(self):
        for point in sample_range(14.0, 15.0, 5, CorrectionOrder.HIGH_ORDER):
            assert point.z == evaluate_z(point.t, CorrectionOrder.HIGH_ORDER)

    def test_restartable(self):
        assert sample_range(1.0, 2.0, 7) == sample_range(1.0, 2.0, 7)

    @pytest.mark.parametrize("low, high, count", [
        (5.0, 5.0, 10),
        (6.0, 5.0, 10),
        (-1.0, 5.0, 10),
        (0.0, 5.0, 1),
        (0.0, 5.0, 2.5),
        (0.0, 5.0, True),
        (0.0, 5.0, None),
        (0.0, 5.0, "10"),
    ])
    def test_rejects_invalid_arguments(self, low, high, count):
        with pytest.raises(ValueError):
            sample_range(low, high, count)
