#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Single-range composite rules and the midpoint remainder bound.

Everything in here is sequential and pure; the parallel engine in
parallel_integrate hands disjoint ranges of one global grid to these
functions from many workers at once.

Grid positions are always computed from their index as
``origin + j*step`` rather than by adding ``step`` repeatedly, so two
workers that share an origin agree bit for bit on every position. A cell
``[i, i+step)`` belongs to a range when its midpoint lies inside the
half-open range; adjacent ranges therefore split the grid without gaps or
double counting.
"""

__all__ = ["TRAPEZOID", "MIDPOINT", "RULES",
           "integrand", "integrand_second_derivative",
           "numeric_second_derivative",
           "calculate_accumulated_sum_on_range", "get_remaining_term"]

import math

import numpy as np

TRAPEZOID = "trapezoid"
MIDPOINT = "midpoint"
RULES = (TRAPEZOID, MIDPOINT)


def integrand(x):
    """atan(x)/(x**4+1); works on floats and numpy arrays alike."""
    return np.arctan(x) / (x**4 + 1)


def integrand_second_derivative(x):
    u = np.arctan(x)
    du = 1 / (1 + x**2)
    d2u = -2 * x / (1 + x**2)**2
    v = x**4 + 1
    dv = 4 * x**3
    d2v = 12 * x**2
    return (d2u / v
            - 2 * du * dv / v**2
            - u * d2v / v**2
            + 2 * u * dv**2 / v**3)


def numeric_second_derivative(f, eps=1e-4):
    """Central-difference estimate of f'' for integrands without a closed form."""
    def d2f(x):
        return (f(x + eps) - 2 * f(x) + f(x - eps)) / eps**2
    return d2f


def _midpoint(origin, step, j):
    return origin + (j + 0.5) * step


def _first_cell(origin, step, lower_bound):
    # Estimate, then settle on the exact float comparison the neighbouring
    # range uses for its last cell.
    j = max(int(math.ceil((lower_bound - origin) / step - 0.5)), 0)
    while _midpoint(origin, step, j) < lower_bound:
        j += 1
    while j > 0 and _midpoint(origin, step, j - 1) >= lower_bound:
        j -= 1
    return j


def calculate_accumulated_sum_on_range(f, lower_bound, upper_bound, step,
                                       rule=TRAPEZOID, origin=None):
    """Sum the rule's per-cell values over the grid cells of a range.

    The grid is ``origin + j*step`` (origin defaults to lower_bound); a cell
    is counted when its midpoint falls in ``[lower_bound, upper_bound)``.
    With ``rule="trapezoid"`` each cell contributes ``(f(i) + f(i+step))/2``,
    with ``rule="midpoint"`` it contributes ``f(i + step/2)``. The result is
    not multiplied by step.
    """
    if rule not in RULES:
        raise ValueError("Unknown quadrature rule {0!r}; expected one of {1}"
                         .format(rule, RULES))
    if upper_bound <= lower_bound:
        return 0.0
    if not step > 0:
        raise ValueError("Step must be positive, got {0!r}".format(step))
    if origin is None:
        origin = lower_bound

    local_sum = 0.0
    j = _first_cell(origin, step, lower_bound)
    if rule == TRAPEZOID:
        while _midpoint(origin, step, j) < upper_bound:
            value = f(origin + j * step)
            next_value = f(origin + (j + 1) * step)
            local_sum += (value + next_value) / 2
            j += 1
    else:
        while _midpoint(origin, step, j) < upper_bound:
            local_sum += f(_midpoint(origin, step, j))
            j += 1
    return float(local_sum)


def get_remaining_term(second_derivative, lower_bound, upper_bound, step,
                       chunk_size=1000000):
    """Midpoint-rule error bound (b-a) * h**2 / 24 * max|f''|.

    max|f''| is taken over the grid positions ``lower_bound + j*step``
    inside the interval, the midpoints of their cells and the upper end
    point. second_derivative is applied to numpy chunks of those points,
    so it must accept arrays.
    """
    if upper_bound <= lower_bound:
        return 0.0
    if not step > 0:
        raise ValueError("Step must be positive, got {0!r}".format(step))
    max_abs = float(np.abs(second_derivative(upper_bound)))
    start = 0
    while lower_bound + start * step < upper_bound:
        j = np.arange(start, start + chunk_size, dtype=np.float64)
        points = np.concatenate([lower_bound + j * step,
                                 lower_bound + (j + 0.5) * step])
        points = points[points < upper_bound]
        max_abs = max(max_abs,
                      float(np.max(np.abs(second_derivative(points)))))
        start += chunk_size
    return float((upper_bound - lower_bound) * step**2 / 24 * max_abs)
