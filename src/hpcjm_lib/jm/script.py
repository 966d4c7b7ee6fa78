# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Generation of batch scripts and launch commands.

The batch scripts are shared by the Slurm-family job managers. The launch
command (mpirun line or bare application invocation) is shared by all job
managers starting MPI applications.
"""

import os
import shlex
import tempfile
from pathlib import Path

from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMConfigurationError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job
from hpcjm_lib.mpi import get_mpirun_args, get_path_to_mpirun, get_placement_args

logger = get_logger(__name__)


def output_file_prefix(job: Job) -> str:
    """
    Return the name shared by the output and error files of a job.

    The name contains the identifier and version of the MPI implementation,
    so that runs of the same job with different MPI implementations do not
    overwrite each other's output.
    """
    name = job.name or CFG.slurm_options.default_job_name
    if job.mpi_cfg:
        return f"{name}-{job.mpi_cfg.implem.id}-{job.mpi_cfg.implem.version}"
    return name


def get_output_file(job: Job, sys_cfg: SystemConfig) -> Path:
    """Return the path to the file collecting the standard output of a job."""
    return _scratch_dir(sys_cfg) / f"{output_file_prefix(job)}.out"


def get_error_file(job: Job, sys_cfg: SystemConfig) -> Path:
    """Return the path to the file collecting the standard error output of a job."""
    return _scratch_dir(sys_cfg) / f"{output_file_prefix(job)}.err"


def get_launch_command(job: Job, sys_cfg: SystemConfig | None) -> list[str]:
    """
    Return the command starting the application of a job.

    With an MPI configuration, the command is
    `<mpirun> -np <np> <placement> <mpirun arguments> <application> <arguments>`.
    Otherwise, the application is invoked directly.

    Raises:
        JMConfigurationError: If the job does not specify an application binary
            or its MPI implementation is not supported.
    """
    if not job.app.bin_path:
        raise JMConfigurationError(f"Application binary of job '{job.name}' is undefined.")

    if not job.mpi_cfg:
        return job.app.command()

    implem = job.mpi_cfg.implem
    # integrity failure is reported by get_path_to_mpirun and does not prevent the launch
    mpirun, _ = get_path_to_mpirun(implem)

    command = [str(mpirun)]
    if job.np > 0:
        command.extend(["-np", str(job.np)])
    command.extend(get_placement_args(implem, job.np, job.nnodes))
    command.extend(
        get_mpirun_args(
            implem, job.app, sys_cfg, job.net_cfg, job.mpi_cfg.user_args
        )
    )
    command.extend(job.app.command())

    return command


def render_batch_script(
    job: Job, sys_cfg: SystemConfig, prefix: str = CFG.slurm_options.script_prefix
) -> str:
    """
    Render the content of a batch script for a job.

    Args:
        job (Job): The job to render the script for.
        sys_cfg (SystemConfig): Configuration of the system.
        prefix (str): Prefix of the directive lines.

    Returns:
        str: Content of the batch script.

    Raises:
        JMConfigurationError: If the scratch directory or the application binary is undefined.
    """
    lines = ["#!/bin/bash", "#"]

    if job.partition:
        lines.append(f"{prefix} -p {job.partition}")
    if job.nnodes > 0:
        lines.append(f"{prefix} -N {job.nnodes}")
    if job.np > 0:
        lines.append(f"{prefix} -n {job.np}")
    lines.append(f"{prefix} -t {job.walltime or CFG.slurm_options.default_walltime}")
    lines.append(f"{prefix} --error={get_error_file(job, sys_cfg)}")
    lines.append(f"{prefix} --output={get_output_file(job, sys_cfg)}")

    if job.modules:
        lines.extend(["", "module purge", f"module load {' '.join(job.modules)}"])

    if job.env_vars:
        lines.append("")
        lines.extend(
            f"export {name}={shlex.quote(value)}" for name, value in job.env_vars.items()
        )

    lines.extend(["", shlex.join(get_launch_command(job, sys_cfg))])

    return "\n".join(lines) + "\n"


def prepare_batch_script_path(job: Job, sys_cfg: SystemConfig) -> Path:
    """
    Assign a new batch script path to a job.

    If the system has a persistent installation directory, the script gets
    a deterministic name in the run directory of the job (or in the persistent
    directory), and an existing file with the same name is an error. Otherwise,
    a unique temporary file is created in the scratch directory.

    The existence check for the deterministic name is not atomic.
    Two operators submitting the same job at the same time may race.

    Sets `job.batch_script` and `job.cleanup`, which removes the generated file.

    Raises:
        JMConfigurationError: If the deterministic path already exists or
            the temporary file cannot be created.
    """
    name = job.name or CFG.slurm_options.default_job_name
    file_prefix = f"{CFG.slurm_options.batch_script_prefix}-{name}"

    if sys_cfg.persistent:
        script_dir = Path(job.run_dir or sys_cfg.persistent).absolute()
        path = script_dir / f"{file_prefix}.sh"
        if path.exists():
            raise JMConfigurationError(f"Batch script '{path}' already exists.")
    else:
        try:
            fd, raw_path = tempfile.mkstemp(
                prefix=f"{file_prefix}-", suffix=".sh", dir=_scratch_dir(sys_cfg)
            )
            os.close(fd)
        except OSError as e:
            raise JMConfigurationError(
                f"Unable to create a batch script in '{sys_cfg.scratch_dir}': {e}."
            ) from e
        path = Path(raw_path)

    job.batch_script = path
    job.cleanup = lambda: path.unlink(missing_ok=True)

    logger.debug(f"Batch script of job '{job.name}': '{path}'.")
    return path


def write_batch_script(job: Job, sys_cfg: SystemConfig) -> Path:
    """
    Render the batch script of a job and write it to `job.batch_script`.

    Raises:
        JMConfigurationError: If the script cannot be rendered or written.
    """
    if not job.batch_script:
        raise JMConfigurationError(f"Batch script path of job '{job.name}' is undefined.")

    content = render_batch_script(job, sys_cfg)
    try:
        job.batch_script.write_text(content)
    except OSError as e:
        raise JMConfigurationError(
            f"Unable to write batch script '{job.batch_script}': {e}."
        ) from e

    logger.debug(f"Batch script '{job.batch_script}':\n{content}")
    return job.batch_script


def _scratch_dir(sys_cfg: SystemConfig) -> Path:
    if not sys_cfg.scratch_dir:
        raise JMConfigurationError("Scratch directory is undefined.")
    # the scheduler resolves relative paths against the run directory
    return Path(sys_cfg.scratch_dir).absolute()
