# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

from hpcjm_lib.core.error import JMParseError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import NetworkConfig, SystemConfig

from .implem import MVAPICH2 as MVAPICH2_ID
from .implem import ImplementationInfo
from .interface import MPIInterface
from .meta import MPIMeta, mpi_implementation

logger = get_logger(__name__)

# prefixes preceding the version on the first line printed by mpichversion
VERSION_PREFIXES = ["MVAPICH2 Version:", "Version:", f"{MVAPICH2_ID}-"]

# version reported when mpichversion prints nothing
DEFAULT_VERSION = "0.0.0"

# tuning for homogeneous clusters, passed to mpirun as `-genv NAME VALUE`
TUNING_VARIABLES = {
    "MV2_HOMOGENEOUS_CLUSTER": "1",
    "MV2_USE_RDMA_CM": "0",
    "MV2_CPU_BINDING_POLICY": "hybrid",
    "MV2_HYBRID_BINDING_POLICY": "spread",
}


@mpi_implementation
class MVAPICH2(MPIInterface, metaclass=MPIMeta):
    """
    Implementation of MPIInterface for MVAPICH2.

    MVAPICH2 is derived from MPICH and ships binaries with the same names,
    so it must be probed before MPICH.
    """

    @classmethod
    def envName(cls) -> str:
        return MVAPICH2_ID

    @classmethod
    def detectFromDir(cls, install_dir: Path) -> ImplementationInfo:
        binary = cls._requireBinary(install_dir, "mpichversion")
        output = cls._runVersionCommand(install_dir, binary, [])
        return ImplementationInfo(MVAPICH2_ID, cls.parseVersion(output), install_dir)

    @classmethod
    def parseVersion(cls, output: str) -> str:
        """
        Extract the version from the first line printed by MVAPICH2's `mpichversion`.

        An empty banner resolves to the default version `0.0.0`.

        Raises:
            JMParseError: If the first line does not describe MVAPICH2
                (e.g. it is printed by MPICH's `mpichversion`).
        """
        first_line = output.split("\n", 1)[0].strip()
        if not first_line:
            logger.debug(f"Empty MVAPICH2 version banner, using '{DEFAULT_VERSION}'.")
            return DEFAULT_VERSION

        for prefix in VERSION_PREFIXES:
            if first_line.startswith(prefix):
                return first_line.removeprefix(prefix).strip()

        raise JMParseError(
            f"Invalid format of MVAPICH2 version banner: '{first_line}'.", output
        )

    @classmethod
    def getExtraMpirunArgs(
        cls, sys_cfg: SystemConfig | None, net_cfg: NetworkConfig | None
    ) -> list[str]:
        args = []
        for name, value in TUNING_VARIABLES.items():
            args.extend(["-genv", name, value])
        return args

    @classmethod
    def getPlacementArgs(cls, ranks_per_node: int) -> list[str]:
        return ["-ppn", str(ranks_per_node)]
