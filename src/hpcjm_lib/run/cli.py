# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shlex
import shutil
import sys
from pathlib import Path
from typing import NoReturn

import click
from click_option_group import optgroup

from hpcjm_lib.app import AppInfo
from hpcjm_lib.core.click_format import GNUHelpColorsCommand, styled_metavar
from hpcjm_lib.core.common import is_executable_file, parse_env_assignments
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMConfigurationError, JMError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import NetworkConfig
from hpcjm_lib.jm import JobManager
from hpcjm_lib.job import Job
from hpcjm_lib.launcher import load
from hpcjm_lib.launcher import run as launch
from hpcjm_lib.mpi import MPIConfig, detect, detect_from_dir

logger = get_logger(__name__)

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(
    short_help="Run an application using the job manager.",
    help=f"""Run an application using the job manager detected on this host.

{styled_metavar("BINARY")}   Application to execute, either a path or a name found in PATH.
{styled_metavar("ARGS")}     Arguments of the application.

The application is executed directly (`native`), through `prun`, or submitted to Slurm.
If an MPI installation is selected, the application is launched using its `mpirun`.
Alternatively, `{CFG.binary_name} run --batch-script` submits an existing batch script.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
    context_settings={**_CONTEXT_SETTINGS, "allow_interspersed_args": False},
)
@click.argument(
    "binary",
    type=str,
    metavar=styled_metavar("BINARY"),
    required=False,
    default=None,
)
@click.argument(
    "args",
    nargs=-1,
    type=click.UNPROCESSED,
    metavar=styled_metavar("ARGS"),
)
@optgroup.group(f"{click.style('General settings', fg='yellow')}")
@optgroup.option(
    "--job-manager",
    type=str,
    default=None,
    help=f"Job manager to use. If not specified, it is taken from the environment variable '{CFG.env_vars.job_manager}' or detected.",
)
@optgroup.option("--name", type=str, default="", help="Name of the job.")
@optgroup.option(
    "--non-blocking",
    is_flag=True,
    help="Return as soon as the job is queued instead of waiting for it to finish.",
)
@optgroup.option(
    "--batch-script",
    type=str,
    default=None,
    help="Submit an existing batch script instead of generating one.",
)
@optgroup.option(
    "--run-dir",
    type=str,
    default=None,
    help="Directory in which the job is submitted.",
)
@optgroup.group(f"{click.style('Requested resources', fg='yellow')}")
@optgroup.option("--partition", type=str, default=None, help="Partition to use.")
@optgroup.option(
    "--np",
    type=int,
    default=0,
    help=f"Number of MPI ranks. If neither the number of ranks nor nodes is specified, {CFG.launcher.default_np} ranks are used.",
)
@optgroup.option(
    "--nnodes",
    type=int,
    default=0,
    help=f"Number of nodes. If neither the number of ranks nor nodes is specified, {CFG.launcher.default_nnodes} nodes are used.",
)
@optgroup.option(
    "--walltime",
    type=str,
    default=None,
    help=f"Wall time of the job. Defaults to '{CFG.slurm_options.default_walltime}' for Slurm.",
)
@optgroup.group(f"{click.style('Environment', fg='yellow')}")
@optgroup.option(
    "--module",
    "modules",
    type=str,
    multiple=True,
    help="Environment module to load before running the application. Can be repeated.",
)
@optgroup.option(
    "--env",
    "env",
    type=str,
    multiple=True,
    help="Environment variable of the job as 'NAME=VALUE'. Can be repeated.",
)
@optgroup.option(
    "--scratch",
    type=str,
    default=None,
    help="Directory for batch scripts and output files of the job.",
)
@optgroup.option(
    "--persistent",
    type=str,
    default=None,
    help="Directory with persistent installations. Batch scripts get deterministic names when set.",
)
@optgroup.group(f"{click.style('MPI', fg='yellow')}")
@optgroup.option(
    "--mpi",
    "use_mpi",
    is_flag=True,
    help="Launch the application using the MPI installation providing `mpirun` in PATH.",
)
@optgroup.option(
    "--mpi-dir",
    type=str,
    default=None,
    help="Root directory of the MPI installation used to launch the application.",
)
@optgroup.option(
    "--mpi-args",
    type=str,
    default=None,
    help="Additional arguments for mpirun, as a single quoted string.",
)
@optgroup.option(
    "--network-device",
    type=str,
    default=None,
    help="Network device used for MPI communication.",
)
def run(binary: str | None, args: tuple[str, ...], **kwargs) -> NoReturn:
    """
    Run an application using the job manager.
    """
    try:
        sys_cfg, jobmgr = load()
        if kwargs["job_manager"]:
            jobmgr = JobManager.obtain(kwargs["job_manager"])

        if kwargs["scratch"]:
            sys_cfg.scratch_dir = Path(kwargs["scratch"]).absolute()
        if kwargs["persistent"]:
            sys_cfg.persistent = Path(kwargs["persistent"]).absolute()

        jobmgr = jobmgr.load(sys_cfg)
        logger.debug(f"Using job manager '{jobmgr}'.")

        job = build_job(binary, list(args), kwargs)
        host_mpi = build_mpi_config(kwargs)

        verdict, result = launch(job, host_mpi, jobmgr, sys_cfg)
        if not verdict.passed:
            raise JMError(verdict.note)

        if job.non_blocking:
            print(f"Submitted job '{job.name}' with ID {job.id}.")
        else:
            print(result.stdout, end="")

        if result.returncode != 0:
            raise JMError(
                f"Job '{job.name}' finished with exit code {result.returncode}."
            )

        sys.exit(0)
    except JMError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


def build_job(binary: str | None, args: list[str], options: dict) -> Job:
    """
    Create a job from the command-line options.

    Raises:
        JMConfigurationError: If the binary cannot be found.
        JMError: If an environment variable assignment is invalid.
    """
    app = AppInfo()
    if binary:
        bin_path = resolve_binary(binary)
        app = AppInfo(bin_path.name, bin_path.name, bin_path, args)

    batch_script = options["batch_script"]
    run_dir = options["run_dir"]
    return Job(
        name=options["name"] or app.name,
        np=options["np"],
        nnodes=options["nnodes"],
        partition=options["partition"],
        env_vars=parse_env_assignments(list(options["env"])),
        modules=list(options["modules"]),
        net_cfg=NetworkConfig(options["network_device"]),
        app=app,
        batch_script=Path(batch_script).absolute() if batch_script else None,
        run_dir=Path(run_dir).absolute() if run_dir else None,
        walltime=options["walltime"],
        non_blocking=options["non_blocking"],
    )


def resolve_binary(binary: str) -> Path:
    """
    Return the absolute path to the application binary.

    Names without a directory component are looked up in PATH.

    Raises:
        JMConfigurationError: If the binary does not exist or is not executable.
    """
    if is_executable_file(binary):
        return Path(binary).absolute()

    if "/" not in binary and (found := shutil.which(binary)):
        return Path(found)

    raise JMConfigurationError(f"Application binary '{binary}' not found.")


def build_mpi_config(options: dict) -> MPIConfig | None:
    """
    Detect the MPI installation requested on the command line.

    Returns None if no MPI installation is requested.

    Raises:
        JMDetectionError: If the MPI installation cannot be detected.
    """
    if options["mpi_dir"]:
        implem = detect_from_dir(Path(options["mpi_dir"]))
    elif options["use_mpi"]:
        implem = detect()
    else:
        return None

    logger.info(f"Using MPI implementation '{implem}'.")
    user_args = shlex.split(options["mpi_args"]) if options["mpi_args"] else []
    return MPIConfig(implem, user_args)
