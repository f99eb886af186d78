#!/usr/bin/env python3
"""
Zeta Zero Finder
================

Locate zeros of Hardy's Z(t) either inside a caller-supplied bracket or
directly by ordinal index n → t_n.

Pipeline (ordinal lookups):
---------------------------
  Stage 1 (Seed):     Lambert W inversion of the smooth counting
                      function → O(1) global estimate.
  Stage 2 (Smooth):   Newton iteration on θ(T)/π + 1 = n to pin the
                      smooth coordinate t0. θ is monotone and smooth,
                      so this converges in a handful of steps.
  Stage 3 (Isolate):  Scan Z(t) on a grid ±3.5 local spacings around t0,
                      split dips in |Z| that hide close zero pairs,
                      select the sign change whose sequential index is n,
                      and refine it with bisection plus Newton polish.

The isolator treats bisection as the correctness backbone. Newton steps
(with Z' from a centered difference) are only taken once the bracket is
narrow, and only when they land strictly inside the validated bracket.

Failure modes:
--------------
  - NoSignChange:          bracket endpoints share a sign (caller misuse)
  - InvalidOrdinal:        n is not a positive integer
  - MaxIterationsExceeded: iteration budget spent; by default this is a
                           flag on the returned estimate, not an error

Precision and runtime concerns never fail a call; they are attached to the
result as Advisory flags and logged.

Usage:
------
    from zero_finder import find_zero_in_range, find_nth_zero
    from siegel_z import CorrectionOrder

    est = find_zero_in_range(14, 15, 1e-10, CorrectionOrder.HIGH_ORDER)
    est.t          # 14.13472...

    est = find_nth_zero(1000000, 1e-6, CorrectionOrder.HIGH_ORDER)
"""

import enum
import logging
import numbers
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from scipy.special import lambertw

from siegel_z import (
    TWO_PI,
    CorrectionOrder,
    evaluate_z,
    main_sum_length,
    theta,
    theta_derivative,
    z_derivative,
)


logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

DEFAULT_TOL = 1e-10
DEFAULT_MAX_ITER = 100

# Newton polish kicks in once the bracket is this narrow.
POLISH_WIDTH = 1e-3
POLISH_STEPS = 4

# Brackets starting below this height carry the SMALL_T advisory.
SMALL_T_ADVISORY = 10.0

# Ordinals above this are flagged; still computed.
ORDINAL_ADVISORY_THRESHOLD = 10 ** 12

# Main-sum length above which ordinal lookups do not evaluate Z at all.
MAX_MAIN_SUM_TERMS = 10 ** 7

# Ordinal search window, in local mean spacings.
WINDOW_SPACINGS = 3.5
MAX_WIDENINGS = 3
SCAN_FLOOR = 1.0
MIN_SCAN_POINTS = 30
MAX_SCAN_POINTS = 500

# Candidate zeros are located to this fraction of the local spacing
# before sequential indexing.
COARSE_TOL_FRACTION = 1e-3

# Grid points where |Z| dips toward zero without a sign change are
# rescanned on DIP_POINTS sub-samples, at most DIP_DEPTH levels deep.
DIP_POINTS = 33
DIP_DEPTH = 3

# Consecutive sign changes further apart than this, in smooth-count
# units, mean zeros were lost between them.
MAX_SMOOTH_GAP = 2.5

# First 30 known zeros (for verification)
KNOWN_ZEROS = [
    14.134725141734694, 21.022039638771555, 25.010857580145689,
    30.424876125859513, 32.935061587739189, 37.586178158825671,
    40.918719012147500, 43.327073280914999, 48.005150881167160,
    49.773832477672302, 52.970321477714460, 56.446247697063394,
    59.347044002602353, 60.831778524609809, 65.112544048081607,
    67.079810529494174, 69.546401711173980, 72.067157674481908,
    75.704690699083933, 77.144840068874805, 79.337375020249367,
    82.910380854086030, 84.735492980517050, 87.425274613125196,
    88.809111207634465, 92.491899270228280, 94.651344040519838,
    95.870634228245309, 98.831194218193692, 101.31785100573139,
]


# ═══════════════════════════════════════════════════════════════════════
# RESULT TYPES & ERRORS
# ═══════════════════════════════════════════════════════════════════════

class Advisory(enum.Enum):
    """Warnings that accompany a still-returned ZeroEstimate."""
    SMALL_T = "small-t"
    MAX_ITERATIONS = "max-iterations"
    BELOW_RESOLUTION = "below-resolution"
    ORDINAL_MAGNITUDE = "ordinal-magnitude"
    MAIN_SUM_CAPPED = "main-sum-capped"
    NO_SIGN_CHANGE_IN_WINDOW = "no-sign-change-in-window"
    INDEX_UNCERTAIN = "index-uncertain"


@dataclass(frozen=True)
class ZeroEstimate:
    """Zero location t, iterations spent, and whether the bracket reached tol."""
    t: float
    iterations: int
    converged: bool
    z_value: Optional[float] = None
    advisories: Tuple[Advisory, ...] = ()


class ZetaZeroError(Exception):
    """Base class for zero-finding errors."""


class InvalidBracket(ZetaZeroError, ValueError):
    pass


class NoSignChange(ZetaZeroError):
    """Z(low) and Z(high) have the same sign."""

    def __init__(self, low, high, z_low, z_high):
        super().__init__(
            f"no sign change in [{low}, {high}]: Z(low)={z_low:.6g}, Z(high)={z_high:.6g}")
        self.low = low
        self.high = high
        self.z_low = z_low
        self.z_high = z_high


class InvalidOrdinal(ZetaZeroError, ValueError):
    def __init__(self, n):
        super().__init__(f"ordinal must be a positive integer, got {n!r}")
        self.n = n


class MaxIterationsExceeded(ZetaZeroError):
    """Raised only on request; carries the best estimate reached."""

    def __init__(self, estimate):
        super().__init__(
            f"no convergence after {estimate.iterations} iterations (best t={estimate.t!r})")
        self.estimate = estimate


def _log_advisories(advisories, context):
    for advisory in advisories:
        logger.warning("%s: advisory %s", context, advisory.value)


# ═══════════════════════════════════════════════════════════════════════
# ISOLATOR / REFINER
# ═══════════════════════════════════════════════════════════════════════

def _refine(a, b, za, zb, tol, order, max_iter, polish):
    """Safeguarded bisection on a validated bracket with za·zb < 0.

    Returns (t, iterations, converged, advisories).
    """
    # Newton starts from the endpoint closer to the root
    x_last, z_last = (a, za) if abs(za) < abs(zb) else (b, zb)
    newton_budget = POLISH_STEPS if polish else 0

    for iteration in range(1, max_iter + 1):
        mid = a + (b - a) / 2
        if not a < mid < b:
            return mid, iteration - 1, True, [Advisory.BELOW_RESOLUTION]

        x = mid
        newton_step = None
        if newton_budget and b - a <= POLISH_WIDTH:
            newton_budget -= 1
            slope = z_derivative(x_last, order)
            if slope != 0 and np.isfinite(slope):
                step = z_last / slope
                candidate = x_last - step
                if abs(step) <= tol and a <= candidate <= b:
                    # x_last already sits within tol of the root
                    return candidate, iteration, True, []
                if a < candidate < b:
                    x = candidate
                    newton_step = abs(step)

        zx = evaluate_z(x, order)
        logger.debug("iter %d: bracket [%.17g, %.17g], t=%.17g, Z=%.3e",
                     iteration, a, b, x, zx)
        if zx == 0:
            return x, iteration, True, []
        if (zx > 0) == (za > 0):
            a, za = x, zx
        else:
            b, zb = x, zx
        x_last, z_last = x, zx

        if newton_step is not None and newton_step <= tol:
            return x, iteration, True, []
        if b - a <= tol:
            return a + (b - a) / 2, iteration, True, []

    return a + (b - a) / 2, max_iter, False, [Advisory.MAX_ITERATIONS]


def _check_bracket(low, high, tol, max_iter):
    try:
        low, high, tol = float(low), float(high), float(tol)
    except (TypeError, ValueError) as exc:
        raise InvalidBracket(f"bracket and tolerance must be numbers: {exc}") from exc
    if not (np.isfinite(low) and np.isfinite(high)):
        raise InvalidBracket(f"bracket must be finite, got [{low}, {high}]")
    if low < 0:
        raise InvalidBracket(f"bracket must lie in t >= 0, got low={low}")
    if not low < high:
        raise InvalidBracket(f"need low < high, got [{low}, {high}]")
    if not (np.isfinite(tol) and tol > 0):
        raise InvalidBracket(f"tolerance must be positive, got {tol}")
    if max_iter < 1:
        raise InvalidBracket(f"max_iter must be >= 1, got {max_iter}")
    return low, high, tol


def find_zero_in_range(low, high, tol=DEFAULT_TOL, order=CorrectionOrder.BASE,
                       max_iter=DEFAULT_MAX_ITER, polish=True, strict=False):
    """Find a zero of Z(t) inside [low, high].

    Args:
        low: Lower end of the bracket (≥ 0)
        high: Upper end of the bracket (> low)
        tol: Target bracket width
        order: CorrectionOrder for every Z evaluation
        max_iter: Iteration budget (bisection + Newton steps)
        polish: Allow Newton steps once the bracket is narrow
        strict: Raise MaxIterationsExceeded instead of flagging it

    Returns:
        ZeroEstimate

    Raises:
        InvalidBracket: malformed interval or tolerance
        NoSignChange: Z(low) and Z(high) share a sign
        MaxIterationsExceeded: only when strict=True
    """
    low, high, tol = _check_bracket(low, high, tol, max_iter)
    order = CorrectionOrder(order)

    z_low = evaluate_z(low, order)
    z_high = evaluate_z(high, order)

    advisories = []
    if low < SMALL_T_ADVISORY:
        advisories.append(Advisory.SMALL_T)

    if z_low == 0 or z_high == 0:
        t, z_t = (low, z_low) if z_low == 0 else (high, z_high)
        _log_advisories(advisories, f"zero at t={t}")
        return ZeroEstimate(t=t, iterations=0, converged=True, z_value=z_t,
                            advisories=tuple(advisories))

    if (z_low > 0) == (z_high > 0):
        raise NoSignChange(low, high, z_low, z_high)

    t, iterations, converged, extra = _refine(
        low, high, z_low, z_high, tol, order, max_iter, polish)
    advisories.extend(extra)

    estimate = ZeroEstimate(t=t, iterations=iterations, converged=converged,
                            z_value=evaluate_z(t, order), advisories=tuple(advisories))
    _log_advisories(estimate.advisories, f"zero in [{low}, {high}]")
    if strict and not converged:
        raise MaxIterationsExceeded(estimate)
    return estimate


# ═══════════════════════════════════════════════════════════════════════
# STAGE 1 & 2: SEED AND SMOOTH COORDINATE
# ═══════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=50000)
def lambert_w_estimate(n):
    """Lambert W inversion of the smooth counting function.

    Solves N_smooth(T) ≈ n using the leading-order approximation:
        T ≈ 2π(n - 7/8) / W((n - 7/8)/e)

    This is the closed form of t_n ≈ 2πn / ln(n) with the constant term kept.
    """
    shift = n - 7 / 8
    w = float(np.real(lambertw(shift / np.e)))
    return TWO_PI * shift / w


def smooth_count(T):
    """Smooth zero counting function: N_smooth(T) = θ(T)/π + 1."""
    return theta(T) / np.pi + 1


def invert_smooth_count(n, t0, max_iter=50, rtol=1e-14):
    """Newton iteration on N_smooth(T) = n.

    θ is convex and increasing beyond 2π, so iterates are kept above 4π
    (where N_smooth < 1 ≤ n) and converge monotonically.

    Returns (t_refined, iterations).
    """
    t = t0
    for i in range(max_iter):
        dt = (n - smooth_count(t)) * np.pi / theta_derivative(t)
        t = max(t + dt, 2 * TWO_PI)
        if abs(dt) <= rtol * t:
            return t, i + 1
    return t, max_iter


def estimate_t(n):
    """Smooth coordinate of the nth zero: the root of θ(t)/π + 1 = n."""
    t, _ = invert_smooth_count(n, lambert_w_estimate(n))
    return t


def local_spacing(t):
    """Mean gap between consecutive zeros near height t: 2π / ln(t/2π)."""
    if t > 10:
        return TWO_PI / np.log(t / TWO_PI)
    return 8.0


# ═══════════════════════════════════════════════════════════════════════
# STAGE 3: SCAN, INDEX, ISOLATE
# ═══════════════════════════════════════════════════════════════════════

def _validate_ordinal(n):
    if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
        raise InvalidOrdinal(n)
    return int(n)


def _sign_changes(ts, Zs):
    return [(float(ts[i]), float(ts[i + 1]), Zs[i], Zs[i + 1])
            for i in range(len(ts) - 1) if Zs[i] * Zs[i + 1] < 0]


def _dips(Zs):
    """Indices where |Z| has a local minimum and Z keeps its sign.

    Two zeros closer than one grid step leave no sign change behind, only
    such a dip. Ties go to the left point so neighbouring dips never share
    a cell.
    """
    dips = []
    last = len(Zs) - 1
    for i, z in enumerate(Zs):
        left = Zs[i - 1] if i > 0 else None
        right = Zs[i + 1] if i < last else None
        if any(nb is not None and nb * z <= 0 for nb in (left, right)):
            continue
        if left is not None and not abs(z) < abs(left):
            continue
        if right is not None and not abs(z) <= abs(right):
            continue
        dips.append(i)
    return dips


def _split_dip(t_lo, t_hi, order, depth):
    """Rescan a dip finely; returns the sign changes found inside."""
    ts = np.linspace(t_lo, t_hi, DIP_POINTS)
    Zs = [evaluate_z(t, order) for t in ts]
    brackets = _sign_changes(ts, Zs)
    if brackets or depth <= 1:
        return brackets
    i = int(np.argmin(np.abs(Zs)))
    return _split_dip(ts[max(i - 1, 0)], ts[min(i + 1, len(ts) - 1)], order, depth - 1)


def _scan_sign_changes(t_lo, t_hi, step, order):
    """Grid-scan Z over [t_lo, t_hi]; return brackets (a, b, Z(a), Z(b)).

    Dips in |Z| without a sign change are subdivided so that close zero
    pairs come back as two brackets.
    """
    t_lo = max(SCAN_FLOOR, t_lo)
    n_steps = int(np.clip((t_hi - t_lo) / step, MIN_SCAN_POINTS, MAX_SCAN_POINTS))
    ts = np.linspace(t_lo, t_hi, n_steps)
    Zs = [evaluate_z(t, order) for t in ts]

    brackets = _sign_changes(ts, Zs)
    if DIP_DEPTH > 0:
        last = len(ts) - 1
        for i in _dips(Zs):
            found = _split_dip(ts[max(i - 1, 0)], ts[min(i + 1, last)], order, DIP_DEPTH)
            if found:
                logger.debug("dip at t=%.6f split into %d sign changes", ts[i], len(found))
            brackets.extend(found)
    brackets.sort(key=lambda br: br[0])
    return brackets


def _index_gaps_consistent(smooth_counts):
    """False when consecutive zeros sit more than MAX_SMOOTH_GAP apart in N_smooth."""
    gaps = np.diff(smooth_counts)
    return not (len(gaps) and gaps.max() > MAX_SMOOTH_GAP)


def _select_by_index(n, brackets, spacing, order):
    """Sequential indexing over the sign changes found in the window.

    Candidates are sorted by position. Actual zeros sit below their smooth
    coordinate on average (N_smooth(t_k) ≈ k - 1/2), so the index of the
    first candidate is the median of N_smooth(z_i) - i + 1/2.

    Returns (bracket, consistent); consistent is False when the gaps
    between candidates suggest the scan lost zeros.
    """
    coarse_tol = spacing * COARSE_TOL_FRACTION
    candidates = []
    for a, b, za, zb in brackets:
        t_c, _, _, _ = _refine(a, b, za, zb, coarse_tol, order, DEFAULT_MAX_ITER, False)
        candidates.append((t_c, smooth_count(t_c), (a, b, za, zb)))
    candidates.sort(key=lambda c: c[0])
    consistent = _index_gaps_consistent([c[1] for c in candidates])

    base_estimates = [c[1] - i + 0.5 for i, c in enumerate(candidates)]
    base = int(round(np.median(base_estimates)))

    target_idx = n - base
    if 0 <= target_idx < len(candidates):
        return candidates[target_idx][2], consistent
    # Fallback: closest smooth count to the expected n - 1/2
    logger.debug("index %d outside %d candidates; nearest smooth count used",
                 target_idx, len(candidates))
    return min(candidates, key=lambda c: abs(c[1] - (n - 0.5)))[2], consistent


def find_nth_zero(n, tol=DEFAULT_TOL, order=CorrectionOrder.BASE,
                  max_iter=DEFAULT_MAX_ITER, polish=True,
                  advisory_threshold=ORDINAL_ADVISORY_THRESHOLD,
                  max_terms=MAX_MAIN_SUM_TERMS):
    """Compute the nth zero on the critical line (imaginary part).

    Args:
        n: Zero index (1-indexed, positive integer)
        tol: Target bracket width for the final refinement
        order: CorrectionOrder for every Z evaluation
        max_iter: Iteration budget of the final refinement
        polish: Allow Newton steps in the final refinement
        advisory_threshold: Ordinals above this carry ORDINAL_MAGNITUDE
        max_terms: Skip Z evaluation when the main sum would be longer

    Returns:
        ZeroEstimate

    Raises:
        InvalidOrdinal: n is not a positive integer
    """
    n = _validate_ordinal(n)
    order = CorrectionOrder(order)

    advisories = []
    if n > advisory_threshold:
        advisories.append(Advisory.ORDINAL_MAGNITUDE)

    t0 = estimate_t(n)
    N_terms = main_sum_length(t0)
    if N_terms > max_terms:
        advisories.append(Advisory.MAIN_SUM_CAPPED)
        _log_advisories(advisories, f"zero #{n}")
        logger.warning("zero #%d: main sum of %d terms exceeds cap %d; "
                       "returning the smooth estimate t0=%.10g", n, N_terms, max_terms, t0)
        return ZeroEstimate(t=t0, iterations=0, converged=False,
                            advisories=tuple(advisories))

    spacing = local_spacing(t0)
    radius = WINDOW_SPACINGS * spacing
    for _ in range(MAX_WIDENINGS + 1):
        brackets = _scan_sign_changes(t0 - radius, t0 + radius, spacing / 4, order)
        if brackets:
            break
        radius *= 2
    else:
        advisories.append(Advisory.NO_SIGN_CHANGE_IN_WINDOW)
        _log_advisories(advisories, f"zero #{n}")
        return ZeroEstimate(t=t0, iterations=0, converged=False,
                            z_value=evaluate_z(t0, order), advisories=tuple(advisories))

    (a, b, za, zb), consistent = _select_by_index(n, brackets, spacing, order)
    t, iterations, converged, extra = _refine(a, b, za, zb, tol, order, max_iter, polish)
    advisories.extend(extra)
    if not consistent:
        advisories.append(Advisory.INDEX_UNCERTAIN)
        converged = False

    estimate = ZeroEstimate(t=t, iterations=iterations, converged=converged,
                            z_value=evaluate_z(t, order), advisories=tuple(advisories))
    _log_advisories(estimate.advisories, f"zero #{n}")
    return estimate


def find_zeros_batch(start, end, **kwargs):
    """Compute zeros start..end (inclusive); returns {n: ZeroEstimate}."""
    return {n: find_nth_zero(n, **kwargs) for n in range(start, end + 1)}


# ═══════════════════════════════════════════════════════════════════════
# DIAGNOSTICS
# ═══════════════════════════════════════════════════════════════════════

def diagnose(n, tol=DEFAULT_TOL, order=CorrectionOrder.BASE):
    """Show the full pipeline diagnostics for zero #n.

    Returns a dict with all intermediate values.
    """
    t_start = time.time()

    t_lambert = lambert_w_estimate(_validate_ordinal(n))
    t_smooth, refine_iter = invert_smooth_count(n, t_lambert)
    estimate = find_nth_zero(n, tol=tol, order=order)

    elapsed = time.time() - t_start

    return {
        'n': n,
        't_lambert': t_lambert,
        't_smooth': t_smooth,
        't_zero': estimate.t,
        'Z_at_zero': estimate.z_value,
        'N_smooth_at_zero': smooth_count(estimate.t),
        'N_terms': main_sum_length(estimate.t),
        'local_spacing': local_spacing(estimate.t),
        'refine_iterations': refine_iter,
        'zero_iterations': estimate.iterations,
        'converged': estimate.converged,
        'advisories': [a.value for a in estimate.advisories],
        'time_ms': elapsed * 1000,
    }
