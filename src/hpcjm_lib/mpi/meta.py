# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import shutil
from abc import ABCMeta
from pathlib import Path

from hpcjm_lib.core.error import JMDetectionError, JMError
from hpcjm_lib.core.logger import get_logger

from .implem import ImplementationInfo
from .interface import MPIInterface

logger = get_logger(__name__)


class MPIMeta(ABCMeta):
    """
    Metaclass for MPI implementation classes.
    """

    # registry of supported MPI implementations; the order of registration
    # is the order in which installations are probed
    _registry: dict[str, type[MPIInterface]] = {}

    def __str__(cls: type[MPIInterface]):
        """
        Get the string representation of the MPI implementation class.
        """
        return cls.envName()

    @classmethod
    def register(mcs, mpi_cls: type[MPIInterface]):
        """
        Register an MPI implementation class in the metaclass registry.

        Args:
            mpi_cls: Subclass of MPIInterface to register.
        """
        mcs._registry[mpi_cls.envName()] = mpi_cls

    @classmethod
    def fromStr(mcs, name: str) -> type[MPIInterface]:
        """
        Return the MPI implementation class registered with the given name.

        Raises:
            JMError: If no class is registered for the given name.
        """
        try:
            return mcs._registry[name]
        except KeyError as e:
            raise JMError(f"No MPI implementation registered as '{name}'.") from e

    @classmethod
    def detectFromDir(mcs, install_dir: Path) -> ImplementationInfo:
        """
        Detect the MPI implementation installed in the specified directory.

        Registered implementations are probed in the order of their registration.
        A probe that fails (missing binary, failed version command, malformed
        version banner) is skipped and the next implementation is tried.

        Args:
            install_dir (Path): Root directory of the installation.

        Returns:
            ImplementationInfo: The first implementation whose probe succeeded.

        Raises:
            JMDetectionError: If no supported implementation is found in the directory.
        """
        for Implementation in mcs._registry.values():
            try:
                info = Implementation.detectFromDir(install_dir)
            except JMError as e:
                logger.debug(f"{Implementation} not detected in '{install_dir}': {e}")
                continue

            logger.debug(f"Detected {info} in '{install_dir}'.")
            return info

        raise JMDetectionError(
            f"No supported MPI implementation detected in '{install_dir}'."
        )

    @classmethod
    def detect(mcs) -> ImplementationInfo:
        """
        Detect the MPI implementation providing the `mpirun` found in PATH.

        The installation root is the parent of the directory containing `mpirun`,
        which must be named `bin`.

        Raises:
            JMDetectionError: If `mpirun` is not available, is not located in a `bin`
                directory, or belongs to an unsupported implementation.
        """
        if not (mpirun := shutil.which("mpirun")):
            raise JMDetectionError("Could not find mpirun in PATH.")

        bin_dir = Path(mpirun).parent
        # system-wide shims do not live in a dedicated installation directory
        if bin_dir.name != "bin":
            raise JMDetectionError(f"'{bin_dir}' is not a valid MPI installation.")

        return mcs.detectFromDir(bin_dir.parent)


def mpi_implementation(cls):
    """
    Class decorator to register an MPI implementation with the MPIMeta registry.
    """
    MPIMeta.register(cls)
    return cls
