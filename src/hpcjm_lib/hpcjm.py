# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys

import click
from click_help_colors import HelpColorsGroup

from hpcjm_lib.core.config import CFG
from hpcjm_lib.jobmgr.cli import jobmgr
from hpcjm_lib.mpi_detect.cli import mpi_detect
from hpcjm_lib.run.cli import run

__version__ = "0.3.0"

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(
    cls=HelpColorsGroup,
    help_options_color="bright_blue",
    invoke_without_command=True,
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "--version",
    is_flag=True,
    help=f"Print the current version of {CFG.binary_name} and exit.",
)
@click.pass_context
def cli(ctx: click.Context, version: bool):
    """
    Run any hpcjm command.

    hpcjm runs applications on HPC systems through the available job manager
    (Slurm, prun, or direct execution) and detects the installed MPI implementation.
    """
    if version:
        print(__version__)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(0)


cli.add_command(run)
cli.add_command(jobmgr)
cli.add_command(mpi_detect, name="mpi-detect")
