# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Construction of mpirun command lines.

Functions in this module combine the implementation-specific arguments
provided by the registered MPI implementations with user-supplied arguments
and locate the mpirun binary of an installation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from hpcjm_lib.app import AppInfo
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMConfigurationError, JMError, JMIntegrityError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.manifest import check_manifest
from hpcjm_lib.core.system import NetworkConfig, SystemConfig

from .implem import ImplementationInfo
from .interface import MPIInterface
from .meta import MPIMeta

logger = get_logger(__name__)


@dataclass
class MPIConfig:
    """
    MPI configuration attached to a job.
    """

    # The MPI implementation used to launch the job.
    implem: ImplementationInfo
    # Additional user-supplied arguments for mpirun.
    user_args: list[str] = field(default_factory=list)

    def copy(self) -> "MPIConfig":
        """Return a copy of the configuration that does not share the list of arguments."""
        return MPIConfig(self.implem, list(self.user_args))


def get_implementation(implem: ImplementationInfo) -> type[MPIInterface]:
    """
    Return the class handling the specified MPI implementation.

    Raises:
        JMConfigurationError: If the implementation is not supported.
    """
    try:
        return MPIMeta.fromStr(implem.id)
    except JMError as e:
        raise JMConfigurationError(
            f"Unsupported MPI implementation '{implem.id}'."
        ) from e


def get_mpirun_args(
    implem: ImplementationInfo,
    app: AppInfo | None = None,
    sys_cfg: SystemConfig | None = None,
    net_cfg: NetworkConfig | None = None,
    user_args: list[str] | None = None,
) -> list[str]:
    """
    Return the arguments for mpirun required by an MPI implementation.

    Implementation-specific arguments come first, user-supplied arguments are
    appended verbatim, so they can override the defaults for launchers that
    apply the last occurrence of a flag.

    Args:
        implem (ImplementationInfo): The MPI implementation.
        app (AppInfo | None): The application to launch.
        sys_cfg (SystemConfig | None): Configuration of the system.
        net_cfg (NetworkConfig | None): Network configuration.
        user_args (list[str] | None): Additional user-supplied arguments.

    Returns:
        list[str]: Arguments for mpirun (not including the application).

    Raises:
        JMConfigurationError: If the implementation is not supported.
    """
    args = get_implementation(implem).getExtraMpirunArgs(sys_cfg, net_cfg)
    if user_args:
        args.extend(user_args)

    logger.debug(f"mpirun arguments for {implem}: {args}.")
    return args


def get_placement_args(implem: ImplementationInfo, np: int, nnodes: int) -> list[str]:
    """
    Return the process-placement arguments for mpirun.

    No placement is requested if the number of processes or nodes is unknown.

    Raises:
        JMConfigurationError: If the implementation is not supported.
    """
    if np <= 0 or nnodes <= 0:
        return []

    # at least one rank per node
    ranks_per_node = max(np // nnodes, 1)
    return get_implementation(implem).getPlacementArgs(ranks_per_node)


def get_path_to_mpirun(
    implem: ImplementationInfo,
) -> tuple[Path, JMIntegrityError | None]:
    """
    Return the path to mpirun of an MPI installation and check the installation's integrity.

    A failed integrity check does not prevent the path from being returned.
    The caller decides whether to proceed.

    Args:
        implem (ImplementationInfo): The MPI implementation.

    Returns:
        tuple[Path, JMIntegrityError | None]: Path to mpirun and the integrity error, if any.
    """
    path = implem.install_dir / "bin" / "mpirun"

    try:
        check_integrity(implem.install_dir)
    except JMIntegrityError as e:
        logger.warning(f"Integrity check of '{implem.install_dir}' failed: {e}")
        return path, e

    return path, None


def check_integrity(basedir: Path) -> None:
    """
    Check that an MPI installation has not been modified since it was installed.

    Raises:
        JMIntegrityError: If the installation does not match its manifest.
    """
    logger.debug(f"Checking integrity of MPI installed in '{basedir}'.")
    check_manifest(basedir / CFG.mpi.manifest_name)


def detect_from_dir(install_dir: Path) -> ImplementationInfo:
    """
    Detect the MPI implementation installed in the specified directory.

    Raises:
        JMDetectionError: If no supported implementation is found.
    """
    return MPIMeta.detectFromDir(Path(install_dir))


def detect() -> ImplementationInfo:
    """
    Detect the MPI implementation providing the `mpirun` found in PATH.

    Raises:
        JMDetectionError: If no supported implementation is found.
    """
    return MPIMeta.detect()
