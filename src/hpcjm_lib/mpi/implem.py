# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from pathlib import Path

# identifier of Open MPI
OPENMPI = "openmpi"
# identifier of MPICH
MPICH = "mpich"
# identifier of MVAPICH2
MVAPICH2 = "mvapich2"

# all supported MPI implementations
SUPPORTED_IMPLEMENTATIONS = (OPENMPI, MPICH, MVAPICH2)


@dataclass(frozen=True)
class ImplementationInfo:
    """
    Identification of a single installed MPI implementation.

    Instances are created by the detection routines and are immutable.
    """

    # Identifier of the implementation (one of SUPPORTED_IMPLEMENTATIONS).
    id: str
    # Version of the implementation as reported by the implementation itself.
    version: str
    # Root directory of the installation (contains `bin` and `lib`).
    install_dir: Path

    def __str__(self) -> str:
        return f"{self.id} {self.version}"

    @property
    def bin_dir(self) -> Path:
        """Directory containing the binaries of the installation."""
        return self.install_dir / "bin"

    @property
    def lib_dir(self) -> Path:
        """Directory containing the libraries of the installation."""
        return self.install_dir / "lib"


def is_mpi(info: ImplementationInfo | None) -> bool:
    """
    Check whether the provided information describes a supported MPI implementation.
    """
    return info is not None and info.id in SUPPORTED_IMPLEMENTATIONS
