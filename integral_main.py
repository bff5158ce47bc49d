#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Read a lower bound, an upper bound and a sample count from stdin and
print the integral of atan(x)/(x**4+1).

Exit status: 1, 2 or 3 when the lower bound, upper bound or sample count
cannot be parsed, 4 when the integral cannot be calculated.
"""

import re
import sys
import argparse
import logging

from quadrature import TRAPEZOID, MIDPOINT, integrand, \
    integrand_second_derivative
from parallel_integrate import IntegralCalcError, calculate_integral
from accuracy import estimate_with_remainder

EXIT_INCORRECT_LOWER_BOUND = 1
EXIT_INCORRECT_UPPER_BOUND = 2
EXIT_INCORRECT_SAMPLES_COUNT = 3
EXIT_UNABLE_TO_CALCULATE = 4

_UINT_RE = re.compile(r"\+?[0-9]+")
_UINT_MAX = 2**64 - 1


def get_line(prompt):
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline().strip()


def parse_to_double(text):
    return float(text)


def parse_to_uint(text):
    if not _UINT_RE.fullmatch(text):
        raise ValueError("not a non-negative integer: {0!r}".format(text))
    value = int(text)
    if value > _UINT_MAX:
        raise ValueError("integer out of range: {0!r}".format(text))
    return value


def _fail(message, status):
    sys.stderr.write(message + "\n")
    sys.exit(status)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--midpoint", action="store_true",
                        help="use the midpoint rule and report its error")
    parser.add_argument("--workers", type=int, default=None,
                        help="number of sub-intervals for large requests")
    parser.add_argument("--executor", choices=("thread", "process"),
                        default="process")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose
                        else logging.WARNING)

    try:
        lower_bound = parse_to_double(get_line("Enter the lower bound: "))
    except ValueError:
        _fail("Could not convert input to a floating-point number",
              EXIT_INCORRECT_LOWER_BOUND)
    try:
        upper_bound = parse_to_double(get_line("Enter the upper bound: "))
    except ValueError:
        _fail("Could not convert input to a floating-point number",
              EXIT_INCORRECT_UPPER_BOUND)
    try:
        samples = parse_to_uint(get_line("Enter the number of samples: "))
    except ValueError:
        _fail("Could not convert input to an integer",
              EXIT_INCORRECT_SAMPLES_COUNT)

    try:
        if args.midpoint:
            report = estimate_with_remainder(
                integrand, integrand_second_derivative,
                lower_bound, upper_bound, samples,
                threads_count=args.workers, executor=args.executor)
        else:
            result = calculate_integral(
                integrand, lower_bound, upper_bound, samples,
                rule=TRAPEZOID, threads_count=args.workers,
                executor=args.executor)
    except IntegralCalcError as e:
        _fail(str(e), EXIT_UNABLE_TO_CALCULATE)

    if args.midpoint:
        print("Calculated integral value ({0}): {1}"
              .format(MIDPOINT, report.value))
        print("Reference value: {0}".format(report.reference))
        print("Absolute error: {0}".format(report.absolute_error))
        print("Remainder bound: {0}".format(report.remainder_bound))
        print("Error within bound: {0}".format(report.within_bound))
        print("Relative error: {0}%".format(report.relative_error_percent))
    else:
        print("Calculated integral value: {0}".format(result))
    return 0


if __name__ == '__main__':
    sys.exit(main())
