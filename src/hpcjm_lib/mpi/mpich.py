# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

from hpcjm_lib.core.error import JMParseError
from hpcjm_lib.core.logger import get_logger

from .implem import MPICH as MPICH_ID
from .implem import ImplementationInfo
from .interface import MPIInterface
from .meta import MPIMeta, mpi_implementation

logger = get_logger(__name__)

# key preceding the version in the HYDRA build details
VERSION_KEY = "Version:"


@mpi_implementation
class MPICH(MPIInterface, metaclass=MPIMeta):
    """
    Implementation of MPIInterface for MPICH (HYDRA process manager).
    """

    @classmethod
    def envName(cls) -> str:
        return MPICH_ID

    @classmethod
    def detectFromDir(cls, install_dir: Path) -> ImplementationInfo:
        mpirun = cls._requireBinary(install_dir, "mpirun")
        output = cls._runVersionCommand(install_dir, mpirun, ["--version"])
        return ImplementationInfo(MPICH_ID, cls.parseVersion(output), install_dir)

    @classmethod
    def parseVersion(cls, output: str) -> str:
        """
        Extract the version from the HYDRA banner printed by `mpirun --version`.

        The second line of the banner has the form `    Version:    <version>`.

        Raises:
            JMParseError: If the second line does not contain the version.
        """
        lines = output.split("\n")
        if len(lines) < 2 or VERSION_KEY not in lines[1]:
            raise JMParseError("Invalid format of MPICH version banner.", output)

        version = lines[1].split(VERSION_KEY, 1)[1].strip()
        if not version:
            raise JMParseError("MPICH version banner contains no version.", output)

        return version

    @classmethod
    def getPlacementArgs(cls, ranks_per_node: int) -> list[str]:
        return ["-ppn", str(ranks_per_node)]
