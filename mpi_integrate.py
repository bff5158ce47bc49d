#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""The parallel engine's partition, spread over MPI ranks instead of threads.

Sub-interval k of the partition is summed on rank ``k % size``; the local
sums are then combined with a single allreduce, so every rank returns the
same total. All ranks must call mpi_calculate_integral with the same
arguments, as with any collective operation.
"""

__all__ = ["mpi_calculate_integral"]

from logging import debug

from mpi4py import MPI

from quadrature import TRAPEZOID, calculate_accumulated_sum_on_range
from parallel_integrate import check_request, default_threads_count, partition


def mpi_calculate_integral(f, lower_bound, upper_bound, samples,
                           rule=TRAPEZOID, threads_count=None, comm=None):
    comm = MPI.COMM_WORLD if comm is None else comm
    rank = comm.Get_rank()
    size = comm.Get_size()
    check_request(lower_bound, upper_bound, samples)
    if threads_count is None:
        threads_count = default_threads_count(rule)

    step = (upper_bound - lower_bound) / samples
    ranges = partition(lower_bound, upper_bound, threads_count)
    local_sum = 0.0
    for k in range(rank, threads_count, size):
        lower, upper = ranges[k]
        local_sum += calculate_accumulated_sum_on_range(
            f, lower, upper, step, rule, lower_bound)
    debug("Rank {0} of {1} summed its sub-intervals to {2!r}."
          .format(rank, size, local_sum))
    total = comm.allreduce(local_sum, op=MPI.SUM)
    return total * step
