# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of the hpcjm command-line tool.

This package provides a uniform interface to the job managers found on HPC
systems (direct execution, prun, Slurm, and a site-specific Slurm variant),
detection of installed MPI implementations (Open MPI, MVAPICH2, MPICH), and
the construction of the mpirun command lines and batch scripts used to
launch applications. All hpcjm CLI commands delegate to the functionality
implemented here.
"""

from .hpcjm import __version__, cli

__all__ = [
    "__version__",
    "cli",
    "core",
    "jm",
    "job",
    "jobmgr",
    "launcher",
    "mpi",
    "mpi_detect",
    "run",
]
