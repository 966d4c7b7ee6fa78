# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import getpass
import sys
from typing import NoReturn

import click

from hpcjm_lib.core.click_format import GNUHelpColorsCommand
from hpcjm_lib.core.common import parse_job_ids
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.jm import JobManager

logger = get_logger(__name__)

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(
    short_help="Query jobs of the job manager.",
    help=f"""Query the status of jobs or the number of running jobs using the job manager detected on this host.

`{CFG.binary_name} jobmgr` prints `<job ID>: <STATUS>` for each job specified with `-job-status`
and the number of jobs of the current user in a partition specified with `-running-jobs`.
The job manager can be forced using the environment variable '{CFG.env_vars.job_manager}'.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "-job-status",
    "--job-status",
    "job_status",
    type=str,
    default=None,
    metavar="IDS",
    help="Comma-separated list of job IDs to get the status of.",
)
@click.option(
    "-running-jobs",
    "--running-jobs",
    "running_jobs",
    type=str,
    default=None,
    metavar="PARTITION",
    help="Name of the partition to count the jobs of the current user in.",
)
@click.pass_context
def jobmgr(
    ctx: click.Context, job_status: str | None, running_jobs: str | None
) -> NoReturn:
    """
    Query the status of jobs and the number of running jobs.
    """
    if job_status is None and running_jobs is None:
        click.echo(ctx.get_help())
        sys.exit(0)

    try:
        handle = JobManager.detect().load()
        logger.debug(f"Using job manager '{handle}'.")

        if job_status is not None:
            print_job_status(handle, parse_job_ids(job_status))

        if running_jobs is not None:
            print_running_jobs(handle, running_jobs)

        sys.exit(0)
    except JMError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


def print_job_status(handle: JobManager, job_ids: list[int]) -> None:
    """
    Print the status of each job as `<job ID>: <STATUS>`.

    Raises:
        JMError: If the status cannot be obtained.
    """
    for job_id, status in zip(job_ids, handle.jobStatus(job_ids), strict=True):
        print(f"{job_id}: {status}")


def print_running_jobs(handle: JobManager, partition: str) -> None:
    """
    Print the number of jobs of the current user in the partition.

    Raises:
        JMError: If the number of jobs cannot be obtained.
    """
    num = handle.numJobs(partition, getpass.getuser())
    print(f"Number of running jobs: {num}")
