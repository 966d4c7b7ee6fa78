# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from pathlib import Path
from typing import NoReturn

import click

from hpcjm_lib.core.click_format import GNUHelpColorsCommand
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.mpi import detect, detect_from_dir

logger = get_logger(__name__)

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(
    short_help="Detect the installed MPI implementation.",
    help=f"""Detect the MPI implementation installed in a directory.

If no directory is specified, `{CFG.binary_name} mpi-detect` uses the installation providing `mpirun` in PATH.
Supported implementations are Open MPI, MVAPICH2, and MPICH.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "-dir",
    "--dir",
    "directory",
    type=str,
    default=None,
    metavar="PATH",
    help="Root directory of the MPI installation.",
)
def mpi_detect(directory: str | None) -> NoReturn:
    """
    Detect the MPI implementation and print its identifier and version.
    """
    try:
        info = detect_from_dir(Path(directory)) if directory else detect()

        print("Detected MPI:")
        print(f"{info.id} {info.version}")
        sys.exit(0)
    except JMError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
