#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Midpoint integration with an error report.

The integral is computed by the midpoint rule through
parallel_integrate.calculate_integral and checked two ways: against the
Lagrange remainder bound from the second derivative, and against a
high-resolution midpoint reference evaluated with numpy.
"""

__all__ = ["REFERENCE_SAMPLES", "reference_integral", "IntegralReport",
           "estimate_with_remainder"]

from logging import debug

import numpy as np

from quadrature import MIDPOINT, get_remaining_term
from parallel_integrate import calculate_integral, check_request

REFERENCE_SAMPLES = 10000000


def reference_integral(f, lower_bound, upper_bound, samples=REFERENCE_SAMPLES,
                       chunk_size=1000000):
    """Composite midpoint rule with f applied to whole numpy chunks.

    f must accept arrays.
    """
    check_request(lower_bound, upper_bound, samples)
    step = (upper_bound - lower_bound) / samples
    total = 0.0
    for start in range(0, samples, chunk_size):
        j = np.arange(start, min(start + chunk_size, samples),
                      dtype=np.float64)
        total += np.sum(f(lower_bound + (j + 0.5) * step))
    return float(total * step)


class IntegralReport(object):
    def __init__(self, value, reference, remainder_bound):
        self.value = value
        self.reference = reference
        self.remainder_bound = remainder_bound
        self.absolute_error = abs(value - reference)
        self.within_bound = self.absolute_error <= remainder_bound
        if reference != 0:
            self.relative_error_percent = \
                self.absolute_error / abs(reference) * 100
        else:
            self.relative_error_percent = float("nan")

    def __repr__(self):
        return ("IntegralReport(value={0!r}, reference={1!r}, "
                "absolute_error={2!r}, remainder_bound={3!r}, "
                "within_bound={4!r}, relative_error_percent={5!r})"
                .format(self.value, self.reference, self.absolute_error,
                        self.remainder_bound, self.within_bound,
                        self.relative_error_percent))


def estimate_with_remainder(f, second_derivative, lower_bound, upper_bound,
                            samples, threads_count=None, executor=None,
                            reference_samples=REFERENCE_SAMPLES):
    value = calculate_integral(f, lower_bound, upper_bound, samples,
                               rule=MIDPOINT, threads_count=threads_count,
                               executor=executor)
    step = (upper_bound - lower_bound) / samples
    remainder_bound = get_remaining_term(second_derivative,
                                         lower_bound, upper_bound, step)
    reference = reference_integral(f, lower_bound, upper_bound,
                                   reference_samples)
    report = IntegralReport(value, reference, remainder_bound)
    debug("Midpoint report: {0!r}".format(report))
    return report
