#!/usr/bin/env python
# -*- coding: utf-8 -*-

# You should probably run this as "mpirun -n 8 python mpi_demo.py"

import sys
import logging
from logging import debug

from mpi4py import MPI

from quadrature import TRAPEZOID, MIDPOINT, integrand
from mpi_integrate import mpi_calculate_integral

# One failing rank would leave the rest blocked in allreduce.
sys_excepthook = sys.excepthook
def mpi_excepthook(type, value, traceback):
    sys_excepthook(type, value, traceback)
    if MPI.COMM_WORLD.size > 1:
        MPI.COMM_WORLD.Abort(1)
sys.excepthook = mpi_excepthook

if __name__=='__main__':
    comm = MPI.COMM_WORLD
    logging.basicConfig(filename='integrate-{0}.log'.format(comm.rank),
                        level=logging.DEBUG)
    debug("Started initial setup")
    for rule in (TRAPEZOID, MIDPOINT):
        start = MPI.Wtime()
        r = mpi_calculate_integral(integrand, 0., 10., 1000000, rule=rule)
        if comm.rank == 0:
            print(rule, r, MPI.Wtime()-start)
