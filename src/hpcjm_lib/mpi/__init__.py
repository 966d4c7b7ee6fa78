# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Detection of MPI implementations and construction of mpirun command lines.

This module provides:

- `ImplementationInfo`: immutable identification of an installed MPI
  implementation (identifier, version, installation directory).

- `MPIInterface` and `MPIMeta`: the interface every supported implementation
  provides and the registry probing installations. Implementations are probed
  in the order of their registration: Open MPI, MVAPICH2, MPICH.

- `MPIConfig` and the helpers from `mpi.mpi` building mpirun arguments,
  locating mpirun and checking the integrity of an installation.
"""

from .implem import ImplementationInfo, is_mpi
from .interface import MPIInterface
from .meta import MPIMeta

# import so that the implementations are available but do not export them from here;
# the order of the imports is the order in which installations are probed
from .openmpi import OpenMPI as _OpenMPI  # isort: skip
from .mvapich2 import MVAPICH2 as _MVAPICH2  # isort: skip
from .mpich import MPICH as _MPICH  # isort: skip

from .mpi import (  # isort: skip
    MPIConfig,
    check_integrity,
    detect,
    detect_from_dir,
    get_mpirun_args,
    get_path_to_mpirun,
    get_placement_args,
)

__all__ = [
    "ImplementationInfo",
    "MPIConfig",
    "MPIInterface",
    "MPIMeta",
    "check_integrity",
    "detect",
    "detect_from_dir",
    "get_mpirun_args",
    "get_path_to_mpirun",
    "get_placement_args",
    "is_mpi",
]
