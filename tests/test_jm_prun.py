# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path
from unittest.mock import patch

import pytest

from hpcjm_lib.core.error import (
    JMConfigurationError,
    JMExecutionError,
    JMNotSupportedError,
)
from hpcjm_lib.core.executor import ExecResult
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.jm import JobManager, Prun
from hpcjm_lib.job import AppInfo, Job

APP = AppInfo("bench", "bench", Path("/opt/app/bench"), ["-size", "10"])


@pytest.fixture
def prun(tmp_path):
    binary = tmp_path / "prun"
    binary.write_text("")
    return JobManager(Prun, binary, ("--verbose",))


def test_submit_builds_command(prun):
    job = Job(name="bench", np=4, env_vars={"OMP_NUM_THREADS": "1"}, app=APP)

    with patch(
        "hpcjm_lib.jm.prun.run_command", return_value=ExecResult("out", "err", 0)
    ) as run:
        result = prun.submit(job, SystemConfig())

    cmd = run.call_args.args[0]
    assert cmd.bin_path == prun.bin_path
    assert cmd.args == [
        "--verbose",
        "-np",
        "4",
        "-x",
        "PATH",
        "-x",
        "OMP_NUM_THREADS",
        "/opt/app/bench",
        "-size",
        "10",
    ]
    assert cmd.env["OMP_NUM_THREADS"] == "1"

    assert result.stdout == "out"
    assert job.getOutput() == "out"
    assert job.getError() == "err"


def test_submit_without_np(prun):
    job = Job(name="bench", app=APP)

    with patch("hpcjm_lib.jm.prun.run_command", return_value=ExecResult()) as run:
        prun.submit(job, SystemConfig())

    assert "-np" not in run.call_args.args[0].args


def test_submit_failure_keeps_output(prun):
    job = Job(name="bench", app=APP)
    error = JMExecutionError("failed", stdout="partial", stderr="crash", returncode=1)

    with (
        patch("hpcjm_lib.jm.prun.run_command", side_effect=error),
        pytest.raises(JMExecutionError),
    ):
        prun.submit(job, SystemConfig())

    assert job.getOutput() == "partial"
    assert job.getError() == "crash"


def test_submit_user_script_is_not_supported(prun, tmp_path):
    script = tmp_path / "job.sh"
    script.write_text("#!/bin/bash\n")

    with pytest.raises(JMConfigurationError, match="Application binary"):
        prun.submit(Job(name="bench", batch_script=script), SystemConfig())


def test_job_status_not_supported(prun):
    with pytest.raises(JMNotSupportedError):
        prun.jobStatus([1])
