# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMNotSupportedError
from hpcjm_lib.job import JobStatus
from hpcjm_lib.jobmgr.cli import jobmgr


def _handle(**kwargs):
    handle = MagicMock()
    handle.configure_mock(**kwargs)
    detected = MagicMock()
    detected.load.return_value = handle
    return detected, handle


def test_jobmgr_job_status():
    detected, handle = _handle()
    handle.jobStatus.return_value = [JobStatus.RUNNING, JobStatus.DONE]

    with patch("hpcjm_lib.jobmgr.cli.JobManager.detect", return_value=detected):
        result = CliRunner().invoke(jobmgr, ["-job-status", "12,13"])

    assert result.exit_code == 0
    assert result.stdout == "12: RUNNING\n13: DONE\n"
    handle.jobStatus.assert_called_once_with([12, 13])


def test_jobmgr_running_jobs():
    detected, handle = _handle()
    handle.numJobs.return_value = 3

    with (
        patch("hpcjm_lib.jobmgr.cli.JobManager.detect", return_value=detected),
        patch("hpcjm_lib.jobmgr.cli.getpass.getuser", return_value="alice"),
    ):
        result = CliRunner().invoke(jobmgr, ["--running-jobs", "gpu"])

    assert result.exit_code == 0
    assert result.stdout == "Number of running jobs: 3\n"
    handle.numJobs.assert_called_once_with("gpu", "alice")


def test_jobmgr_without_options_prints_help():
    with patch("hpcjm_lib.jobmgr.cli.JobManager.detect") as detect:
        result = CliRunner().invoke(jobmgr, [])

    assert result.exit_code == 0
    assert "job-status" in result.output
    assert CFG.binary_name in result.output
    assert CFG.env_vars.job_manager in result.output
    detect.assert_not_called()


def test_jobmgr_invalid_job_ids():
    detected, _ = _handle()

    with (
        patch("hpcjm_lib.jobmgr.cli.JobManager.detect", return_value=detected),
        patch("hpcjm_lib.jobmgr.cli.logger") as logger,
    ):
        result = CliRunner().invoke(jobmgr, ["-job-status", "12,abc"])

    assert result.exit_code == CFG.exit_codes.default
    logger.error.assert_called_once()


def test_jobmgr_not_supported():
    detected, handle = _handle()
    handle.jobStatus.side_effect = JMNotSupportedError("not supported")

    with (
        patch("hpcjm_lib.jobmgr.cli.JobManager.detect", return_value=detected),
        patch("hpcjm_lib.jobmgr.cli.logger") as logger,
    ):
        result = CliRunner().invoke(jobmgr, ["-job-status", "1"])

    assert result.exit_code == CFG.exit_codes.default
    logger.error.assert_called_once()


def test_jobmgr_unexpected_error():
    with (
        patch("hpcjm_lib.jobmgr.cli.JobManager.detect", side_effect=RuntimeError("boom")),
        patch("hpcjm_lib.jobmgr.cli.logger") as logger,
    ):
        result = CliRunner().invoke(jobmgr, ["-job-status", "1"])

    assert result.exit_code == CFG.exit_codes.unexpected_error
    logger.critical.assert_called_once()
