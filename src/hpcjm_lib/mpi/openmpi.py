# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import re
from pathlib import Path

from hpcjm_lib.core.error import JMDetectionError, JMParseError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import NetworkConfig, SystemConfig

from .implem import OPENMPI, ImplementationInfo
from .interface import MPIInterface
from .meta import MPIMeta, mpi_implementation

logger = get_logger(__name__)

# names of the Open MPI information tool
OMPI_INFO_BINARIES = ["ompi_info", "ompi-info"]

# prefix of the first line printed by `ompi_info --version`
OMPI_INFO_PREFIX = "Open MPI"

# first line printed by `mpirun --version`, e.g. `mpirun (Open MPI) 4.1.5`
MPIRUN_VERSION_REGEX = re.compile(r"^\S+ \(Open MPI\) (\S+)")

# UCX is preferred over the legacy openib transport
TRANSPORT_ARGS = ["--mca", "btl", "^openib", "--mca", "pml", "ucx"]


@mpi_implementation
class OpenMPI(MPIInterface, metaclass=MPIMeta):
    """
    Implementation of MPIInterface for Open MPI.
    """

    @classmethod
    def envName(cls) -> str:
        return OPENMPI

    @classmethod
    def detectFromDir(cls, install_dir: Path) -> ImplementationInfo:
        for name in OMPI_INFO_BINARIES:
            binary = install_dir / "bin" / name
            if binary.is_file():
                output = cls._runVersionCommand(install_dir, binary, ["--version"])
                return ImplementationInfo(
                    OPENMPI, cls.parseVersion(output), install_dir
                )

        # installations without the information tool still report the version through mpirun
        try:
            mpirun = cls._requireBinary(install_dir, "mpirun")
        except JMDetectionError as e:
            raise JMDetectionError(
                f"Neither {' nor '.join(OMPI_INFO_BINARIES)} nor mpirun found in '{install_dir / 'bin'}'."
            ) from e

        output = cls._runVersionCommand(install_dir, mpirun, ["--version"])
        return ImplementationInfo(
            OPENMPI, cls.parseMpirunVersion(output), install_dir
        )

    @classmethod
    def parseVersion(cls, output: str) -> str:
        """
        Extract the version from the output of `ompi_info --version`.

        The first line of the output has the form `Open MPI v<version>`.

        Raises:
            JMParseError: If the first line does not have the expected form.
        """
        first_line = output.split("\n", 1)[0].strip()
        if not first_line.startswith(OMPI_INFO_PREFIX):
            raise JMParseError(
                f"Invalid format of Open MPI version banner: '{first_line}'.", output
            )

        version = first_line.removeprefix(OMPI_INFO_PREFIX).strip().removeprefix("v")
        if not version:
            raise JMParseError("Open MPI version banner contains no version.", output)

        return version

    @classmethod
    def parseMpirunVersion(cls, output: str) -> str:
        """
        Extract the version from the output of Open MPI's `mpirun --version`.

        Raises:
            JMParseError: If the output does not belong to Open MPI.
        """
        first_line = output.split("\n", 1)[0].strip()
        if not (match := MPIRUN_VERSION_REGEX.match(first_line)):
            raise JMParseError(
                f"Invalid format of Open MPI mpirun version banner: '{first_line}'.",
                output,
            )

        return match.group(1)

    @classmethod
    def getExtraMpirunArgs(
        cls, sys_cfg: SystemConfig | None, net_cfg: NetworkConfig | None
    ) -> list[str]:
        args = list(TRANSPORT_ARGS)
        if net_cfg and net_cfg.device:
            args.extend(["-x", f"UCX_NET_DEVICES={net_cfg.device}"])
        return args

    @classmethod
    def getPlacementArgs(cls, ranks_per_node: int) -> list[str]:
        return [
            "--map-by",
            f"ppr:{ranks_per_node}:node",
            "-rank-by",
            "core",
            "-bind-to",
            "core",
        ]
