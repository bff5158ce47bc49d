#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Composite-rule integration split across a pool of workers.

Requests up to ASYNC_THRESHOLD_SAMPLES_COUNT samples are summed in one pass
on the calling thread. Larger ones are cut into a fixed number of equal
sub-intervals; an asyncio event loop hands each sub-interval to an executor
and, as each local sum comes back, adds it into one SharedAccumulator under
its lock. The loop waits for every task before the total is read, so a
failing worker is re-raised only after its siblings have finished.

All workers use the global step ``(upper_bound - lower_bound)/samples`` and
the global origin ``lower_bound``, which means they evaluate the integrand
at the density of the whole request and, between them, cover every grid
cell exactly once.

A pool (processes by default, threads on request) is created for each
parallel call and shut down at its end unless the caller passes in an
Executor of their own.
"""

__all__ = ["IntegralCalcError", "InvalidBounds", "SampleCountExceeded",
           "InvalidSampleCount", "NonFiniteInterval",
           "MAX_SAMPLES_COUNT", "ASYNC_THRESHOLD_SAMPLES_COUNT",
           "THREADS_COUNT", "MIDPOINT_THREADS_COUNT",
           "check_request", "default_threads_count", "partition",
           "SharedAccumulator", "pmap",
           "calculate_integral", "calculate_integral_async", "Integrator"]

import asyncio
import math
import os
import concurrent.futures
import threading
from logging import debug

from quadrature import TRAPEZOID, MIDPOINT, calculate_accumulated_sum_on_range

MAX_SAMPLES_COUNT = 1000000000
ASYNC_THRESHOLD_SAMPLES_COUNT = 10000
THREADS_COUNT = 16
MIDPOINT_THREADS_COUNT = 32


class IntegralCalcError(ValueError):
    def __init__(self, reason):
        ValueError.__init__(self, reason)
        self.reason = reason

    def __str__(self):
        return "Unable to calculate integral: {0}".format(self.reason)


class InvalidBounds(IntegralCalcError):
    def __init__(self, lower_bound, upper_bound):
        IntegralCalcError.__init__(
            self, "lower bound {0!r} is greater than upper bound {1!r}"
            .format(lower_bound, upper_bound))
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound


class SampleCountExceeded(IntegralCalcError):
    def __init__(self, samples, maximum=MAX_SAMPLES_COUNT):
        IntegralCalcError.__init__(
            self, "sample count {0} exceeds the maximum of {1}"
            .format(samples, maximum))
        self.samples = samples
        self.maximum = maximum


class InvalidSampleCount(IntegralCalcError):
    def __init__(self, samples):
        IntegralCalcError.__init__(
            self, "sample count must be positive, got {0}".format(samples))
        self.samples = samples


class NonFiniteInterval(IntegralCalcError):
    def __init__(self, lower_bound, upper_bound, reason):
        IntegralCalcError.__init__(self, reason)
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound


def check_request(lower_bound, upper_bound, samples):
    if lower_bound > upper_bound:
        raise InvalidBounds(lower_bound, upper_bound)
    if not (math.isfinite(lower_bound) and math.isfinite(upper_bound)):
        raise NonFiniteInterval(
            lower_bound, upper_bound,
            "bounds must be finite, got [{0!r}, {1!r}]"
            .format(lower_bound, upper_bound))
    if samples > MAX_SAMPLES_COUNT:
        raise SampleCountExceeded(samples)
    if samples < 1:
        raise InvalidSampleCount(samples)
    range_ = upper_bound - lower_bound
    if not math.isfinite(range_):
        raise NonFiniteInterval(
            lower_bound, upper_bound,
            "interval width of [{0!r}, {1!r}] overflows"
            .format(lower_bound, upper_bound))
    if range_ > 0 and range_ / samples == 0:
        raise NonFiniteInterval(
            lower_bound, upper_bound,
            "interval [{0!r}, {1!r}] is too narrow for {2} samples"
            .format(lower_bound, upper_bound, samples))


def default_threads_count(rule):
    if rule == TRAPEZOID:
        return THREADS_COUNT
    elif rule == MIDPOINT:
        return MIDPOINT_THREADS_COUNT
    raise ValueError("Unknown quadrature rule {0!r}".format(rule))


def partition(lower_bound, upper_bound, threads_count):
    """Split [lower_bound, upper_bound] into threads_count equal pieces.

    Boundary k is ``lower_bound + k*range/threads_count``; each interior
    boundary is computed once and shared by the two pieces that meet there.
    """
    if threads_count < 1:
        raise ValueError("Need at least one worker, got {0}"
                         .format(threads_count))
    range_ = upper_bound - lower_bound
    boundaries = [lower_bound + k * range_ / threads_count
                  for k in range(threads_count)]
    boundaries[0] = lower_bound
    boundaries.append(upper_bound)
    return list(zip(boundaries[:-1], boundaries[1:]))


class SharedAccumulator(object):
    """A float total that many workers add into, one at a time."""

    def __init__(self):
        self._total = 0.0
        self._count = 0
        self._lock = threading.Lock()

    def add(self, value):
        with self._lock:
            self._total += value
            self._count += 1

    @property
    def total(self):
        with self._lock:
            return self._total

    @property
    def count(self):
        with self._lock:
            return self._count


async def pmap(f, xs):
    fs = [asyncio.ensure_future(f(*x)) for x in xs]
    await asyncio.wait(fs)
    return [f.result() for f in fs]


def _make_executor(executor, workers):
    """Return (executor, owned); owned executors are shut down by us.

    The summation loop is pure Python and holds the GIL, so the default is
    a process pool with at most one process per CPU; the integrand must
    then be picklable (a module-level function). "thread" keeps everything
    in this process, which lambdas and closures need.
    """
    if executor is None or executor == "process":
        cores = min(workers, os.cpu_count() or 1)
        return concurrent.futures.ProcessPoolExecutor(cores), True
    if executor == "thread":
        return concurrent.futures.ThreadPoolExecutor(workers), True
    if isinstance(executor, concurrent.futures.Executor):
        return executor, False
    raise ValueError("Unknown executor {0!r}; expected 'thread', 'process' "
                     "or a concurrent.futures.Executor".format(executor))


async def _sum_partition(loop, pool, f, ranges, step, origin, rule,
                         accumulator):
    async def _worker(k, lower, upper):
        local_sum = await loop.run_in_executor(
            pool, calculate_accumulated_sum_on_range,
            f, lower, upper, step, rule, origin)
        accumulator.add(local_sum)
        debug("Worker {0} summed [{1!r}, {2!r}) to {3!r}."
              .format(k, lower, upper, local_sum))
        return local_sum
    return await pmap(_worker, [(k, lower, upper)
                                for k, (lower, upper) in enumerate(ranges)])


def calculate_integral_async(f, lower_bound, upper_bound, samples,
                             rule=TRAPEZOID, threads_count=None,
                             executor=None):
    check_request(lower_bound, upper_bound, samples)
    if threads_count is None:
        threads_count = default_threads_count(rule)
    range_ = upper_bound - lower_bound
    step = range_ / samples
    ranges = partition(lower_bound, upper_bound, threads_count)
    debug("Integrating [{0!r}, {1!r}] with {2} samples on {3} workers."
          .format(lower_bound, upper_bound, samples, threads_count))

    accumulator = SharedAccumulator()
    pool, owned = _make_executor(executor, threads_count)
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(_sum_partition(
            loop, pool, f, ranges, step, lower_bound, rule, accumulator))
    finally:
        loop.close()
        if owned:
            pool.shutdown(wait=True)
    debug("Merged {0} partial sums.".format(accumulator.count))
    return accumulator.total * step


def calculate_integral(f, lower_bound, upper_bound, samples,
                       rule=TRAPEZOID, threads_count=None, executor=None):
    """Integrate f over [lower_bound, upper_bound] with `samples` cells.

    Raises InvalidBounds, SampleCountExceeded, InvalidSampleCount or
    NonFiniteInterval for a bad request. Above ASYNC_THRESHOLD_SAMPLES_COUNT
    samples the work goes to calculate_integral_async; otherwise it is done
    here in one pass.

    The accumulated per-cell sum is multiplied by the step
    ``(upper_bound - lower_bound)/samples``, not just divided by samples,
    so the result is the integral on any interval and not only on one of
    unit width.
    """
    check_request(lower_bound, upper_bound, samples)
    if samples > ASYNC_THRESHOLD_SAMPLES_COUNT:
        return calculate_integral_async(f, lower_bound, upper_bound, samples,
                                        rule=rule,
                                        threads_count=threads_count,
                                        executor=executor)
    debug("Integrating [{0!r}, {1!r}] with {2} samples sequentially."
          .format(lower_bound, upper_bound, samples))
    step = (upper_bound - lower_bound) / samples
    accumulated_sum = calculate_accumulated_sum_on_range(
        f, lower_bound, upper_bound, step, rule)
    return accumulated_sum * step


class Integrator(object):
    """A fixed integrand together with how it should be integrated."""

    def __init__(self, f, rule=TRAPEZOID, threads_count=None, executor=None):
        if threads_count is None:
            threads_count = default_threads_count(rule)
        self.f = f
        self.rule = rule
        self.threads_count = threads_count
        self.executor = executor

    def integrate_interval(self, a, b, samples):
        return calculate_integral(self.f, a, b, samples,
                                  rule=self.rule,
                                  threads_count=self.threads_count,
                                  executor=self.executor)
