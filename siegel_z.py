#!/usr/bin/env python3
"""
Riemann-Siegel Z(t) Evaluator
=============================

Hardy's Z-function on the critical line, evaluated in double precision with
the Riemann-Siegel asymptotic expansion.

    Z(t) = 2 Σ_{k=1}^{N} k^{-1/2} cos(θ(t) - t·ln k)
           + (-1)^{N-1} (t/2π)^{-1/4} Σ_j C_j(p) (t/2π)^{-j/2}

where N = floor(√(t/2π)) and p = √(t/2π) - N. The main sum costs O(√t);
the remainder series is truncated at the selected correction order.

Theta:
------
  θ(t) comes from the Stirling series in inverse powers of t. It is
  accurate to ~1e-12 already at the first zero (t ≈ 14) and only degrades
  for single-digit t. theta_exact() gives the loggamma reference.

Remainder coefficients:
-----------------------
  C₀(p) = Ψ(p) = cos(2π(p² - p - 1/16)) / cos(2πp) has removable poles at
  p = 1/4 and p = 3/4, so it is never evaluated in closed form. We use its
  even Taylor polynomial in z = 2p - 1 (Haselgrove's table) and obtain
  C₁ … C₄ as exact derivatives of that polynomial:

    C₁ = -Ψ⁽³⁾/(96π²)
    C₂ =  Ψ⁽²⁾/(64π²) + Ψ⁽⁶⁾/(18432π⁴)
    C₃ = -Ψ⁽¹⁾/(64π²) - Ψ⁽⁵⁾/(3840π⁴) - Ψ⁽⁹⁾/(5308416π⁶)
    C₄ =  Ψ/(128π²) + 19Ψ⁽⁴⁾/(24576π⁴) + 11Ψ⁽⁸⁾/(5898240π⁶)
          + Ψ⁽¹²⁾/(2038431744π⁸)

Usage:
------
    from siegel_z import evaluate_z, CorrectionOrder, sample_range

    z = evaluate_z(14.134725, CorrectionOrder.HIGH_ORDER)   # ~ 0
    points = sample_range(10.0, 30.0, 200)
"""

import enum
import logging
import numbers
from typing import NamedTuple

import numpy as np
from numpy.polynomial import Polynomial
from scipy.special import loggamma


logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

TWO_PI = 2 * np.pi

# Arguments below this are evaluated at the floor (θ and the remainder
# scale carry inverse powers of t).
T_FLOOR = 1.0

# Main-sum terms accumulated per numpy block; bounds memory for huge t.
MAIN_SUM_CHUNK = 1 << 18

# Relative step of the centered difference used for Z'(t).
FD_STEP = np.sqrt(np.finfo(float).eps)

# Taylor coefficients of Ψ in z = 2p - 1, even powers z^0, z^2, ..., z^42.
_PSI_EVEN_COEFFS = np.array([
    .38268343236508977173, .43724046807752044936, .13237657548034352332,
    -.01360502604767418865, -.01356762197010358089, -.00162372532314446528,
    .00029705353733379691, .00007943300879521470, .00000046556124614505,
    -.00000143272516309551, -.00000010354847112313, .00000001235792708386,
    .00000000178810838580, -.00000000003391414390, -.00000000001632663390,
    -.00000000000037851093, .00000000000009327423, .00000000000000522184,
    -.00000000000000033507, -.00000000000000003412, .00000000000000000058,
    .00000000000000000015,
])


class CorrectionOrder(enum.IntEnum):
    """How many remainder coefficients the evaluator sums.

    The value is the index of the highest coefficient: BASE uses C₀,
    HIGH_ORDER adds C₁ and C₂, EXTENDED continues through C₄.
    """
    BASE = 0
    HIGH_ORDER = 2
    EXTENDED = 4


class SamplePoint(NamedTuple):
    t: float
    z: float


# ═══════════════════════════════════════════════════════════════════════
# THETA
# ═══════════════════════════════════════════════════════════════════════

def theta(t):
    """Riemann-Siegel theta function from its Stirling series.

    θ(t) = (t/2)(ln(t/2π) - 1) - π/8 + 1/(48t) + 7/(5760t³) - 31/(80640t⁵)

    Finite for every t ≥ 0: arguments below T_FLOOR are evaluated at the
    floor, where the series is only a rough approximation.
    """
    t = max(float(t), T_FLOOR)
    u = 1.0 / t
    u2 = u * u
    tail = u * (1.0 / 48 + u2 * (7.0 / 5760 - u2 * 31.0 / 80640))
    return float(0.5 * t * (np.log(t / TWO_PI) - 1.0) - np.pi / 8 + tail)


def theta_derivative(t):
    """dθ/dt of the same series: ½ln(t/2π) - 1/(48t²) - 7/(1920t⁴) + 31/(16128t⁶)."""
    t = max(float(t), T_FLOOR)
    u2 = 1.0 / (t * t)
    tail = u2 * (1.0 / 48 + u2 * (7.0 / 1920 - u2 * 31.0 / 16128))
    return float(0.5 * np.log(t / TWO_PI) - tail)


def theta_exact(t):
    """θ(t) = Im(log Γ(1/4 + it/2)) - (t/2)·log(π), via scipy loggamma.

    Used as the reference for the asymptotic series.
    """
    t = float(t)
    return float(np.imag(loggamma(0.25 + 0.5j * t))) - (t / 2) * np.log(np.pi)


# ═══════════════════════════════════════════════════════════════════════
# REMAINDER COEFFICIENTS
# ═══════════════════════════════════════════════════════════════════════

def _build_correction_polynomials():
    coeffs = np.zeros(2 * len(_PSI_EVEN_COEFFS) - 1)
    coeffs[::2] = _PSI_EVEN_COEFFS
    psi = Polynomial(coeffs)

    def d(k):
        # k-th derivative in p; dz/dp = 2
        return psi.deriv(k) * 2.0 ** k if k else psi

    pi2 = np.pi ** 2
    pi4 = pi2 * pi2
    pi6 = pi4 * pi2
    pi8 = pi4 * pi4

    c0 = psi
    c1 = -d(3) / (96 * pi2)
    c2 = d(2) / (64 * pi2) + d(6) / (18432 * pi4)
    c3 = -d(1) / (64 * pi2) - d(5) / (3840 * pi4) - d(9) / (5308416 * pi6)
    c4 = (d(0) / (128 * pi2) + 19 * d(4) / (24576 * pi4)
          + 11 * d(8) / (5898240 * pi6) + d(12) / (2038431744 * pi8))
    return (c0, c1, c2, c3, c4)


_CORRECTION_POLYNOMIALS = _build_correction_polynomials()


def correction_terms(p, order=CorrectionOrder.BASE):
    """Remainder coefficients C₀(p) … C_order(p) for fractional part p.

    Args:
        p: Fractional part of √(t/2π), in [0, 1)
        order: CorrectionOrder selecting the last coefficient

    Returns:
        Tuple of floats (C₀, ..., C_order)
    """
    order = CorrectionOrder(order)
    z = 2.0 * p - 1.0
    return tuple(float(c(z)) for c in _CORRECTION_POLYNOMIALS[:order + 1])


# ═══════════════════════════════════════════════════════════════════════
# Z(t)
# ═══════════════════════════════════════════════════════════════════════

def main_sum_length(t):
    """N = floor(√(t/2π)), the number of terms in the main sum."""
    return int(np.sqrt(max(float(t), T_FLOOR) / TWO_PI))


def _main_sum(t, th, N):
    total = 0.0
    for start in range(1, N + 1, MAIN_SUM_CHUNK):
        k = np.arange(start, min(start + MAIN_SUM_CHUNK, N + 1), dtype=np.float64)
        total += float(np.sum(np.cos(th - t * np.log(k)) / np.sqrt(k)))
    return total


def _check_argument(t):
    t = float(t)
    if not np.isfinite(t) or t < 0:
        raise ValueError(f"t must be a finite non-negative number, got {t!r}")
    return t


def evaluate_z(t, order=CorrectionOrder.BASE):
    """Riemann-Siegel Z(t), real-valued on the critical line.

    Z(t) = exp(iθ(t)) · ζ(1/2 + it)

    Its sign changes are the zeta zeros. Evaluated with the main sum of
    N = floor(√(t/2π)) rotations plus the remainder series up to `order`.

    Args:
        t: Height on the critical line (finite, ≥ 0)
        order: CorrectionOrder (BASE, HIGH_ORDER or EXTENDED)

    Returns:
        Z(t) as a float
    """
    t = _check_argument(t)
    order = CorrectionOrder(order)
    if t < T_FLOOR:
        logger.debug("t=%g below floor, evaluating at %g", t, T_FLOOR)
        t = T_FLOOR

    a = t / TWO_PI
    root = np.sqrt(a)
    N = int(root)
    p = root - N

    Z = 2.0 * _main_sum(t, theta(t), N)

    # Remainder series in powers of (t/2π)^(-1/2)
    tau = 1.0 / root
    scale = 1.0
    R = 0.0
    for c in correction_terms(p, order):
        R += c * scale
        scale *= tau

    sign = 1.0 if N % 2 else -1.0
    return float(Z + sign * a ** -0.25 * R)


def z_derivative(t, order=CorrectionOrder.BASE, h=None):
    """Centered finite difference of Z(t).

    The default step is √eps · max(1, t); the lower point never goes
    below t = 0.
    """
    t = _check_argument(t)
    if h is None:
        h = FD_STEP * max(1.0, t)
    lo = max(t - h, 0.0)
    hi = t + h
    return (evaluate_z(hi, order) - evaluate_z(lo, order)) / (hi - lo)


# ═══════════════════════════════════════════════════════════════════════
# SAMPLING
# ═══════════════════════════════════════════════════════════════════════

def sample_range(low, high, count, order=CorrectionOrder.BASE):
    """Evenly spaced (t, Z(t)) samples over [low, high], endpoints included.

    Args:
        low: Start of the range (finite, ≥ 0)
        high: End of the range (> low)
        count: Number of samples (≥ 2)
        order: CorrectionOrder for the evaluator

    Returns:
        List of SamplePoint in strictly ascending t
    """
    low = _check_argument(low)
    high = _check_argument(high)
    if not high > low:
        raise ValueError(f"need low < high, got [{low}, {high}]")
    if isinstance(count, bool) or not isinstance(count, numbers.Integral) or count < 2:
        raise ValueError(f"count must be an integer >= 2, got {count!r}")

    ts = np.linspace(low, high, int(count))
    return [SamplePoint(float(t), evaluate_z(t, order)) for t in ts]
