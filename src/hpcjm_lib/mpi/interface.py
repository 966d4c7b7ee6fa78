# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
from abc import ABC
from pathlib import Path

from hpcjm_lib.core.common import prefix_search_path
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMDetectionError
from hpcjm_lib.core.executor import Command, run_command
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import NetworkConfig, SystemConfig

from .implem import ImplementationInfo

logger = get_logger(__name__)


class MPIInterface(ABC):
    """
    Abstract base class for supported MPI implementations.

    Concrete implementations must implement these methods to allow hpcjm
    to detect them and to launch applications through them uniformly.

    Detection methods should raise JMDetectionError if the required binary
    is missing, JMParseError if the version banner cannot be parsed and
    JMExecutionError if the version command fails.
    """

    @classmethod
    def envName(cls) -> str:
        """
        Return the identifier of the MPI implementation.

        Returns:
            str: One of the identifiers from `implem.SUPPORTED_IMPLEMENTATIONS`.
        """
        raise NotImplementedError(
            "envName method is not implemented for this MPI implementation"
        )

    @classmethod
    def detectFromDir(cls, install_dir: Path) -> ImplementationInfo:
        """
        Check whether the directory contains an installation of this MPI implementation.

        Args:
            install_dir (Path): Root directory of the installation.

        Returns:
            ImplementationInfo: Information about the detected installation.

        Raises:
            JMDetectionError: If the binaries required by the implementation are missing.
            JMParseError: If the version banner could not be parsed.
            JMExecutionError: If the version command failed.
        """
        raise NotImplementedError(
            "detectFromDir method is not implemented for this MPI implementation"
        )

    @classmethod
    def parseVersion(cls, output: str) -> str:
        """
        Extract the version from the output of the implementation's version command.

        Raises:
            JMParseError: If the output does not have the expected format.
        """
        raise NotImplementedError(
            "parseVersion method is not implemented for this MPI implementation"
        )

    @classmethod
    def getExtraMpirunArgs(
        cls, sys_cfg: SystemConfig | None, net_cfg: NetworkConfig | None
    ) -> list[str]:
        """
        Return the implementation-specific arguments for mpirun.

        Args:
            sys_cfg (SystemConfig | None): Configuration of the system.
            net_cfg (NetworkConfig | None): Network configuration.

        Returns:
            list[str]: Arguments to place on the mpirun command line.
        """
        return []

    @classmethod
    def getPlacementArgs(cls, ranks_per_node: int) -> list[str]:
        """
        Return the implementation-specific process-placement arguments for mpirun.

        Args:
            ranks_per_node (int): Number of MPI ranks per node.
        """
        return []

    @classmethod
    def _requireBinary(cls, install_dir: Path, name: str) -> Path:
        """
        Return the path to a binary of the installation.

        Raises:
            JMDetectionError: If the binary does not exist.
        """
        binary = install_dir / "bin" / name
        if not binary.is_file():
            raise JMDetectionError(
                f"'{binary}' does not exist, not an installation of {cls.envName()}."
            )
        return binary

    @classmethod
    def _runVersionCommand(
        cls, install_dir: Path, binary: Path, args: list[str]
    ) -> str:
        """
        Run a version command of the installation and return its standard output.

        The command is executed with the installation's `bin` and `lib`
        directories prepended to PATH and LD_LIBRARY_PATH.
        """
        env = os.environ.copy()
        env[CFG.env_vars.path] = prefix_search_path(
            install_dir / "bin", env.get(CFG.env_vars.path)
        )
        env[CFG.env_vars.ld_library_path] = prefix_search_path(
            install_dir / "lib", env.get(CFG.env_vars.ld_library_path)
        )

        result = run_command(
            Command(
                binary,
                args,
                exec_dir=install_dir / "bin",
                env=env,
                timeout=CFG.timeouts.probe,
            )
        )
        return result.stdout
