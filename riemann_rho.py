#!/usr/bin/env python3
"""
RiemannRho: Command Line
========================

Find nontrivial zeta zeros on the critical line from the shell.

    riemann-rho 14 15 1e-10 --high-order      # zero inside [14, 15]
    riemann-rho --nth 1000000 --order high    # the millionth zero
    riemann-rho --nth 1 --plot                # plus a D3.js plot
    riemann-rho                               # interactive prompts

Both argument parsing and the interactive prompt produce one validated
Config; run() consumes it the same way regardless of its source.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from typing import Optional

import mpmath
import numpy as np

from siegel_z import CorrectionOrder, sample_range
from zero_finder import (
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
    KNOWN_ZEROS,
    ORDINAL_ADVISORY_THRESHOLD,
    Advisory,
    NoSignChange,
    ZetaZeroError,
    diagnose,
    find_nth_zero,
    find_zero_in_range,
    find_zeros_batch,
    local_spacing,
)
from zeta_plot import DEFAULT_PLOT_PATH, write_html


logger = logging.getLogger(__name__)

ORDER_NAMES = {
    'base': CorrectionOrder.BASE,
    'high': CorrectionOrder.HIGH_ORDER,
    'extended': CorrectionOrder.EXTENDED,
}

# Half-width of the plot window around a zero found by ordinal, in local
# mean spacings.
PLOT_SPACINGS = 1.0


# ═══════════════════════════════════════════════════════════════════════
# CONFIG & LOGGING
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Config:
    # Search
    low: Optional[float] = None
    high: Optional[float] = None
    nth: Optional[int] = None
    tol: float = DEFAULT_TOL
    order: CorrectionOrder = CorrectionOrder.BASE
    max_iter: int = DEFAULT_MAX_ITER
    polish: bool = True
    advisory_threshold: int = ORDINAL_ADVISORY_THRESHOLD

    # Visualization
    plot_path: Optional[str] = None
    samples: int = 200

    # Logging
    log_file: Optional[str] = None
    verbose: bool = False

    def validate(self):
        """Raise ValueError if the settings cannot drive a search."""
        if not (np.isfinite(self.tol) and self.tol > 0):
            raise ValueError(f"tolerance must be positive, got {self.tol}")
        if self.max_iter < 1:
            raise ValueError(f"max-iter must be >= 1, got {self.max_iter}")
        if self.samples < 2:
            raise ValueError(f"samples must be >= 2, got {self.samples}")
        if self.nth is not None:
            if self.nth < 1:
                raise ValueError(f"n must be a positive integer, got {self.nth}")
            return self
        if self.low is None or self.high is None:
            raise ValueError("give both low and high bounds, or --nth")
        if not (np.isfinite(self.low) and np.isfinite(self.high)):
            raise ValueError("bounds must be finite")
        if self.low < 0 or not self.low < self.high:
            raise ValueError(f"need 0 <= low < high, got [{self.low}, {self.high}]")
        return self


def setup_logger(verbose=False, log_file=None):
    """
    Route library log records to the console (stderr) and, optionally,
    to a file. Calling it again replaces the handlers it installed before.
    """
    logger_obj = logging.getLogger()
    for handler in list(logger_obj.handlers):
        if getattr(handler, "_riemann_rho", False):
            logger_obj.removeHandler(handler)
            handler.close()

    level = logging.DEBUG if verbose else logging.INFO
    logger_obj.setLevel(level)

    log_format = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(log_format)
        handler._riemann_rho = True
        logger_obj.addHandler(handler)

    return logger_obj


# ═══════════════════════════════════════════════════════════════════════
# ARGUMENTS & PROMPTS
# ═══════════════════════════════════════════════════════════════════════

def build_parser():
    parser = argparse.ArgumentParser(
        prog='riemann-rho',
        description='Approximate nontrivial zeros of the Riemann zeta function')
    parser.add_argument('low', type=float, nargs='?', help='Lower bound of the interval')
    parser.add_argument('high', type=float, nargs='?', help='Upper bound of the interval')
    parser.add_argument('tol', type=float, nargs='?', default=DEFAULT_TOL,
                        help='Tolerance on the bracket width (default 1e-10)')
    parser.add_argument('--nth', type=int, default=None,
                        help='Find the nth zero instead of searching an interval')
    parser.add_argument('--order', choices=sorted(ORDER_NAMES), default='base',
                        help='Riemann-Siegel correction order')
    parser.add_argument('--high-order', dest='order', action='store_const', const='high',
                        help='Shorthand for --order high')
    parser.add_argument('--max-iter', type=int, default=DEFAULT_MAX_ITER,
                        help='Refinement iteration budget')
    parser.add_argument('--no-polish', dest='polish', action='store_false',
                        help='Pure bisection, no Newton steps')
    parser.add_argument('--plot', nargs='?', const=DEFAULT_PLOT_PATH, default=None,
                        metavar='PATH', help='Write a D3.js plot (default zeta_plot.html)')
    parser.add_argument('--samples', type=int, default=200,
                        help='Number of plot samples')
    parser.add_argument('--batch', type=str, default=None,
                        help='Batch range of ordinals (e.g., "1-100")')
    parser.add_argument('--diagnose', type=int, default=None,
                        help='Show full pipeline diagnostics for zero #n')
    parser.add_argument('--benchmark', action='store_true',
                        help='Check the first 30 zeros against mpmath')
    parser.add_argument('--log-file', default=None, help='Also append log records here')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def config_from_args(args):
    return Config(
        low=args.low,
        high=args.high,
        nth=args.nth,
        tol=args.tol,
        order=ORDER_NAMES[args.order],
        max_iter=args.max_iter,
        polish=args.polish,
        plot_path=args.plot,
        samples=args.samples,
        log_file=args.log_file,
        verbose=args.verbose,
    )


def prompt_config(config, input_fn=input):
    """Fill bounds, tolerance and the plot choice from interactive answers."""
    print("Enter low bound (or use --nth for an ordinal lookup):")
    config.low = float(input_fn().strip())
    print("Enter high bound:")
    config.high = float(input_fn().strip())
    print("Enter tolerance (e.g., 1e-10):")
    config.tol = float(input_fn().strip())
    print("Do you want a D3.js visualization? (yes/no)")
    if input_fn().strip().lower() in ('y', 'yes'):
        config.plot_path = config.plot_path or DEFAULT_PLOT_PATH
    return config


# ═══════════════════════════════════════════════════════════════════════
# RUN
# ═══════════════════════════════════════════════════════════════════════

def report(estimate):
    print(f"Approximate imaginary part of the nontrivial zero: {estimate.t:.10f}")
    status = "converged" if estimate.converged else "NOT converged"
    print(f"  {status} after {estimate.iterations} iterations")
    if estimate.z_value is not None:
        print(f"  Z(t) = {estimate.z_value:.3e}")
    for advisory in estimate.advisories:
        print(f"  advisory: {advisory.value}")


def run(config):
    """Search for the zero described by a validated Config; returns exit status."""
    status = 0
    estimate = None

    if config.nth is not None:
        estimate = find_nth_zero(config.nth, tol=config.tol, order=config.order,
                                 max_iter=config.max_iter, polish=config.polish,
                                 advisory_threshold=config.advisory_threshold)
        half_width = PLOT_SPACINGS * local_spacing(estimate.t)
        low = max(0.0, estimate.t - half_width)
        high = estimate.t + half_width
    else:
        low, high = config.low, config.high
        try:
            estimate = find_zero_in_range(low, high, tol=config.tol, order=config.order,
                                          max_iter=config.max_iter, polish=config.polish)
        except NoSignChange:
            print(f"No sign change detected in [{low}, {high}]. "
                  "Adjust interval or try smaller n.")
            status = 1

    if estimate is not None:
        report(estimate)

    if not config.plot_path:
        return status
    if estimate is not None and Advisory.MAIN_SUM_CAPPED in estimate.advisories:
        print("Plot skipped: Z(t) is too expensive to sample at this height.")
    elif not low < high:
        print(f"Plot skipped: no room between samples at t={estimate.t:.6g}.")
    else:
        samples = sample_range(low, high, config.samples, config.order)
        path = write_html(config.plot_path, samples,
                          zero=estimate.t if estimate is not None else None)
        print(f"Visualization generated in {path}. Open it in a web browser.")

    return status


def run_batch(start, end, config):
    print(f"Computing zeros {start} to {end}...")
    t0 = time.time()
    zeros = find_zeros_batch(start, end, tol=config.tol, order=config.order,
                             max_iter=config.max_iter, polish=config.polish)
    elapsed = time.time() - t0
    print(f"Completed in {elapsed:.3f}s ({elapsed/(end-start+1)*1000:.1f}ms per zero)")
    print()
    for n in sorted(zeros)[:20]:
        print(f"  zetazero({n}) = {zeros[n].t:.10f}")
    if len(zeros) > 20:
        print(f"  ... ({len(zeros) - 20} more)")
    return 0


def run_diagnose(n, config):
    d = diagnose(n, tol=config.tol, order=config.order)
    print(f"Zero #{d['n']}:")
    print(f"  Lambert W estimate: {d['t_lambert']:.10f}")
    print(f"  Smooth coordinate:  {d['t_smooth']:.10f}  ({d['refine_iterations']} iterations)")
    print(f"  Found zero:         {d['t_zero']:.10f}  ({d['zero_iterations']} iterations)")
    if d['Z_at_zero'] is not None:
        print(f"  |Z(t)|:             {abs(d['Z_at_zero']):.2e}")
    print(f"  N_smooth at zero:   {d['N_smooth_at_zero']:.4f}")
    print(f"  R-S terms:          {d['N_terms']}")
    print(f"  Local spacing:      {d['local_spacing']:.4f}")
    print(f"  Time:               {d['time_ms']:.1f}ms")
    for advisory in d['advisories']:
        print(f"  advisory: {advisory}")
    return 0


def benchmark(config):
    """Check the first 30 zeros by index against mpmath.zetazero."""
    print("=" * 72)
    print(f"RiemannRho benchmark ({config.order.name})")
    print("=" * 72)

    mpmath.mp.dps = 20
    errs = []
    t0 = time.time()
    for n in range(1, len(KNOWN_ZEROS) + 1):
        found = find_nth_zero(n, tol=config.tol, order=config.order).t
        reference = float(mpmath.zetazero(n).imag)
        errs.append(abs(found - reference))
    elapsed = time.time() - t0

    correct = sum(1 for e in errs if e < 0.5)
    print(f"  Index-accurate: {correct}/{len(errs)}")
    print(f"  Mean |error|:   {np.mean(errs):.2e}")
    print(f"  Max |error|:    {np.max(errs):.2e}")
    print(f"  Time:           {elapsed:.3f}s ({elapsed/len(errs)*1000:.1f}ms per zero)")
    print("=" * 72)
    return 0 if correct == len(errs) else 1


def main(argv=None, input_fn=input):
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    setup_logger(config.verbose, config.log_file)

    try:
        if args.benchmark:
            return benchmark(config)
        if args.batch:
            try:
                start, end = map(int, args.batch.split('-'))
            except ValueError:
                parser.error(f"invalid batch range {args.batch!r}, expected e.g. 1-100")
            if end < start:
                parser.error(f"empty batch range {args.batch!r}, end must be >= start")
            return run_batch(start, end, config)
        if args.diagnose is not None:
            return run_diagnose(args.diagnose, config)

        if config.nth is None and (config.low is None or config.high is None):
            if config.low is not None:
                parser.error("give both low and high bounds, or --nth")
            try:
                prompt_config(config, input_fn)
            except ValueError as exc:
                print(f"Invalid input: {exc}")
                return 2

        try:
            config.validate()
        except ValueError as exc:
            parser.error(str(exc))
        return run(config)
    except ZetaZeroError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
